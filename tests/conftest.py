"""Общие фикстуры: синтетические изображения в памяти, без файлов на диске."""
from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image

from frame_editor.models.image_model import SourceImage
from frame_editor.services.image_service import ImageService


def make_image(width: int, height: int) -> Image.Image:
    """Непрозрачное RGB-изображение с плавным градиентом, чтобы пиксели различались."""
    xs = np.linspace(0, 255, num=width, dtype=np.float64)
    ys = np.linspace(0, 255, num=height, dtype=np.float64)
    r = np.tile(xs, (height, 1))
    g = np.tile(ys[:, None], (1, width))
    b = np.full((height, width), 128.0)
    arr = np.stack([r, g, b], axis=-1).astype(np.uint8)
    return Image.fromarray(arr)


def to_png_bytes(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return to_png_bytes(make_image(1000, 800))


@pytest.fixture
def source(png_bytes) -> SourceImage:
    return ImageService().decode_bytes(png_bytes, name="gradient.png")


@pytest.fixture
def small_source() -> SourceImage:
    return ImageService().decode_bytes(to_png_bytes(make_image(120, 90)), name="small.png")
