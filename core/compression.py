"""Decide whether re-encoding an image is worth it."""

MIN_COMPRESS_LENGTH = 460800  # 450 KiB
MIN_TRANSPARENT_COMPRESS_LENGTH = 563200  # 550 KiB


def should_compress(content_type: str, size: int, output_is_webp: bool) -> bool:
    """Return True when the image should be re-encoded."""
    if not content_type.startswith("image"):
        return False

    # Vector images are passed through untouched
    if "svg" in content_type:
        return False

    if size == 0:
        return False

    if output_is_webp and size < MIN_COMPRESS_LENGTH:
        return False

    if (
        not output_is_webp
        and (content_type.endswith("png") or content_type.endswith("gif"))
        and size < MIN_TRANSPARENT_COMPRESS_LENGTH
    ):
        return False

    return True
