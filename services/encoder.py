"""Image re-encoding with Pillow."""

import asyncio
import io

from PIL import Image

from core.request_types import EncodeFailure, EncodeOutcome, EncodeSuccess

CACHE_CONTROL = "max-age=2592000"
JPEG_MODES = ("L", "RGB", "CMYK")


class PillowEncoder:
    """Re-encode images to JPEG or WebP off the event loop."""

    async def encode(
        self,
        data: bytes,
        use_webp: bool,
        grayscale: bool,
        quality: int,
        original_size: int,
    ) -> EncodeOutcome:
        image_format = "webp" if use_webp else "jpeg"
        try:
            output = await asyncio.to_thread(_encode, data, image_format, grayscale, quality)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            return EncodeFailure(reason=f"{type(e).__name__}: {e}")

        size = len(output)
        bytes_saved = original_size - size
        headers = {
            "cache-control": CACHE_CONTROL,
            "content-type": f"image/{image_format}",
            "content-length": str(size),
            "x-original-size": str(original_size),
            "x-bytes-saved": str(bytes_saved),
        }
        return EncodeSuccess(
            body=output,
            size=size,
            bytes_saved=bytes_saved,
            content_type=f"image/{image_format}",
            headers=headers,
        )


def _encode(data: bytes, image_format: str, grayscale: bool, quality: int) -> bytes:
    with Image.open(io.BytesIO(data)) as source:
        image = source
        has_alpha = "A" in image.getbands() or "transparency" in image.info
        if image.mode in ("P", "PA"):
            image = image.convert("RGBA" if has_alpha else "RGB")

        if grayscale:
            keep_alpha = image_format == "webp" and has_alpha
            image = image.convert("LA" if keep_alpha else "L")
        elif image_format == "jpeg" and image.mode not in JPEG_MODES:
            image = image.convert("RGB")

        buffer = io.BytesIO()
        if image_format == "jpeg":
            image.save(buffer, format="JPEG", quality=quality, optimize=True, progressive=True)
        else:
            image.save(buffer, format="WEBP", quality=quality)
        return buffer.getvalue()
