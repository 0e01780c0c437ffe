"""Compression directives sent by the client."""

import re
from collections.abc import Mapping
from typing import Any

from core.config import DirectiveDefaults
from core.request_types import CompressionDirectives

BW_HEADER = "x-image-lite-bw"
LEVEL_HEADER = "x-image-lite-level"
JPEG_HEADER = "x-image-lite-jpeg"

DEFAULT_QUALITY = 40

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def read_directives(
    headers: Mapping[str, Any],
    defaults: DirectiveDefaults,
) -> CompressionDirectives:
    """Build directives from the request, falling back to ``defaults``.

    The override only applies when all three headers are present.
    """
    lowered = {key.lower(): value for key, value in headers.items()}
    bw = lowered.get(BW_HEADER)
    level = lowered.get(LEVEL_HEADER)
    jpeg = lowered.get(JPEG_HEADER)

    if not (bw and level and jpeg):
        return CompressionDirectives(
            use_webp=defaults.use_webp,
            grayscale=defaults.grayscale,
            quality=defaults.quality,
        )

    return CompressionDirectives(
        use_webp=jpeg == "0",
        grayscale=bw != "0",
        quality=parse_quality(level),
    )


def parse_quality(value: str) -> int:
    """Read the leading integer of ``value``; zero or garbage means default."""
    match = _LEADING_INT.match(value)
    quality = int(match.group(1)) if match else 0
    if quality == 0:
        return DEFAULT_QUALITY
    return max(1, min(100, quality))
