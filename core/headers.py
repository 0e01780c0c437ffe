"""Header handling for origin requests and client responses."""

from collections.abc import Mapping
from typing import Any

FORWARDED_REQUEST_HEADERS = ("cookie", "dnt", "referer", "user-agent", "x-forwarded-for")

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)

# Cookies belong to the origin's domain, not the proxy's.
ORIGIN_ONLY_HEADERS = frozenset({"set-cookie"})

CSP_HEADER = "content-security-policy"
MIXED_CONTENT_DIRECTIVE = "block-all-mixed-content"
PATCHED_DIRECTIVES = ("img-src", "default-src", "connect-src")


class HeaderRewriter:
    """Build origin request headers and rewrite origin response headers."""

    def pick_request_headers(self, headers: Mapping[str, Any]) -> dict[str, str]:
        """Pass through the client headers the origin may care about."""
        lowered = {key.lower(): value for key, value in headers.items()}
        return {
            name: str(lowered[name])
            for name in FORWARDED_REQUEST_HEADERS
            if lowered.get(name) is not None
        }

    def strip_origin_headers(self, headers: Mapping[str, Any]) -> dict[str, str]:
        """Drop headers that describe the origin connection or session, not the image.

        The fetcher hands over a decoded body, so a compressed origin
        encoding and its length no longer apply.
        """
        cleaned = {
            name: value
            for name, value in _normalize(headers).items()
            if name not in HOP_BY_HOP_HEADERS and name not in ORIGIN_ONLY_HEADERS
        }
        encoding = cleaned.get("content-encoding", "").strip().lower()
        if encoding and encoding != "identity":
            cleaned.pop("content-encoding", None)
            cleaned.pop("content-length", None)
        return cleaned

    def patch_security(self, headers: Mapping[str, Any], host: str | None) -> dict[str, str]:
        """Let the proxy's own origin load the resource and open it to CORS."""
        host_source = f"https://{host}" if host else ""
        patched: dict[str, str] = {}
        for name, value in _normalize(headers).items():
            if CSP_HEADER in name:
                patched[name] = patch_csp(value, host_source)
            else:
                patched[name] = value

        patched["access-control-allow-origin"] = "*"
        patched["cross-origin-resource-policy"] = "cross-origin"
        return patched

    def apply_svg_passthrough(self, headers: dict[str, str]) -> dict[str, str]:
        """Serve vector images without a length the body may not match."""
        adjusted = dict(headers)
        adjusted["content-encoding"] = "identity"
        adjusted.pop("content-length", None)
        return adjusted


def patch_csp(value: str, host_source: str) -> str:
    """Rewrite a CSP header value so ``host_source`` may serve images."""
    policies = []
    for policy in value.split(","):
        directives = [
            directive
            for directive in _parse_directives(policy)
            if directive[0] != MIXED_CONTENT_DIRECTIVE
        ]
        if host_source:
            directives = _allow_source(directives, host_source)
        policies.append("; ".join(" ".join(directive) for directive in directives))
    return ", ".join(policy for policy in policies if policy)


def _allow_source(directives: list[list[str]], source: str) -> list[list[str]]:
    by_name = {directive[0]: directive for directive in directives}
    default = by_name.get("default-src")
    default_sources = default[1:] if default else None

    result = [
        [directive[0], *_with_source(directive[1:], source)]
        if directive[0] in PATCHED_DIRECTIVES
        else directive
        for directive in directives
    ]
    # Missing fetch directives fall back to default-src; spell that out.
    if default_sources is not None:
        for name in PATCHED_DIRECTIVES:
            if name not in by_name:
                result.append([name, *_with_source(default_sources, source)])
    return result


def _with_source(sources: list[str], source: str) -> list[str]:
    if source in sources:
        return list(sources)
    if [s.lower() for s in sources] == ["'none'"]:
        return [source]
    return [source, *sources]


def _parse_directives(policy: str) -> list[list[str]]:
    directives = []
    for chunk in policy.split(";"):
        tokens = chunk.split()
        if tokens:
            directives.append([tokens[0].lower(), *tokens[1:]])
    return directives


def _normalize(headers: Mapping[str, Any]) -> dict[str, str]:
    """Lower-case header names, merging names that differ only in case."""
    normalized: dict[str, str] = {}
    for name, value in headers.items():
        key = name.lower()
        if key in normalized:
            normalized[key] = f"{normalized[key]}, {value}"
        else:
            normalized[key] = str(value)
    return normalized
