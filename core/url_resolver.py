"""Target URL normalization."""

import json
import re
from collections.abc import Iterable

import httpx

from core.exceptions import BadURLError
from core.request_types import TargetRequest

URL_FRAGMENT_SEPARATOR = "&url="

# Prefix injected by a low-bandwidth-mode rewriter in front of the real URL.
BMI_PREFIX = re.compile(r"http://1\.1\.\d\.\d/bmi/(https?://)?", re.IGNORECASE | re.ASCII)


def resolve_target(
    raw_url: str | list[str] | None,
    extra_params: Iterable[tuple[str, str]] = (),
) -> TargetRequest | None:
    """Turn the ``url`` query value into the URL to fetch.

    Returns None when there is no target at all.
    """
    if isinstance(raw_url, list):
        raw_url = URL_FRAGMENT_SEPARATOR.join(raw_url)
    if not raw_url:
        return None

    extra = list(extra_params)
    url = raw_url
    if extra:
        url = append_query_params(url, extra)

    url = _unwrap_json(url)
    url = BMI_PREFIX.sub("http://", url, count=1)
    return TargetRequest(url=url, extra_params=extra)


def append_query_params(base_url: str, params: list[tuple[str, str]]) -> str:
    """Append each pair to ``base_url`` in order, keeping duplicate keys."""
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as e:
        raise BadURLError(f"Invalid URL: {base_url!r} ({e})") from e
    if not url.is_absolute_url:
        raise BadURLError(f"Invalid URL: {base_url!r}")

    for key, value in params:
        url = url.copy_add_param(key, value)
    return str(url)


def _unwrap_json(url: str) -> str:
    """Undo JSON encoding applied by some clients."""
    try:
        parsed = json.loads(url)
    except ValueError:
        return url

    if isinstance(parsed, str):
        return parsed
    if isinstance(parsed, list) and all(isinstance(part, str) for part in parsed):
        return URL_FRAGMENT_SEPARATOR.join(parsed)
    return url
