import base64
import io

import pytest
from PIL import Image

from services.thumbnail_generator import ThumbnailGenerator

from conftest import png_b64


def test_thumbnail_fits_and_keeps_aspect_ratio():
    png = ThumbnailGenerator(max_size=(128, 128)).thumbnail_png(png_b64(size=(600, 300)))

    thumb = Image.open(io.BytesIO(png))
    assert thumb.format == "PNG"
    assert thumb.size == (128, 64)


def test_accepts_data_urls_and_bytes():
    payload = "data:image/png;base64," + png_b64(size=(40, 40))

    png = ThumbnailGenerator().thumbnail_png(payload.encode("ascii"))

    assert Image.open(io.BytesIO(png)).size == (40, 40)


def test_transparent_images_are_flattened():
    buf = io.BytesIO()
    Image.new("RGBA", (10, 10), (0, 0, 0, 0)).save(buf, format="PNG")

    png = ThumbnailGenerator().thumbnail_png(base64.b64encode(buf.getvalue()))

    thumb = Image.open(io.BytesIO(png))
    assert thumb.mode == "RGB"
    assert thumb.getpixel((0, 0)) == (255, 255, 255)


def test_invalid_input_raises_value_error():
    generator = ThumbnailGenerator()

    with pytest.raises(ValueError):
        generator.thumbnail_png("not base64!!")
    with pytest.raises(ValueError):
        generator.thumbnail_png(base64.b64encode(b"plain text, not an image"))
