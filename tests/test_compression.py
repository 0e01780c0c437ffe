import pytest

from core.compression import (
    MIN_COMPRESS_LENGTH,
    MIN_TRANSPARENT_COMPRESS_LENGTH,
    should_compress,
)


@pytest.mark.parametrize("content_type", ["text/html", "application/octet-stream", "", "video/mp4"])
@pytest.mark.parametrize("webp", [True, False])
def test_non_images_are_never_compressed(content_type, webp):
    assert should_compress(content_type, 10_000_000, webp) is False


@pytest.mark.parametrize("webp", [True, False])
def test_svg_is_never_compressed(webp):
    assert should_compress("image/svg+xml", 50_000_000, webp) is False


def test_empty_image_is_not_compressed():
    assert should_compress("image/jpeg", 0, False) is False


def test_webp_threshold_boundary():
    assert MIN_COMPRESS_LENGTH == 460800
    assert should_compress("image/webp", 460799, True) is False
    assert should_compress("image/webp", 460800, True) is True


def test_png_threshold_boundary():
    assert MIN_TRANSPARENT_COMPRESS_LENGTH == 563200
    assert should_compress("image/png", 563199, False) is False
    assert should_compress("image/png", 563200, False) is True


def test_gif_uses_transparent_threshold():
    assert should_compress("image/gif", 563199, False) is False
    assert should_compress("image/gif", 563200, False) is True


def test_small_jpeg_is_compressed_to_jpeg():
    assert should_compress("image/jpeg", 1, False) is True
