"""Модели кадрирования: выделение на экране, кроп в пикселях источника и круглый растр."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Tuple

from PIL import Image

CropUnit = Literal["%", "px"]


@dataclass(frozen=True)
class CropRegion:
    """Прямоугольник выделения относительно показанного изображения.

    `unit == "%"` — проценты от экранных ширины/высоты, `unit == "px"` — экранные пиксели.
    """
    x: float
    y: float
    width: float
    height: float
    unit: CropUnit = "px"

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class PixelCrop:
    """Кроп в пикселях исходного изображения (дробные координаты допустимы)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def box(self) -> Tuple[float, float, float, float]:
        """Бокс в формате PIL: (left, upper, right, lower)."""
        return self.x, self.y, self.x + self.width, self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class CircularRaster:
    """Квадратный RGBA-растр с круглой маской.

    Fields:
        pil_image: Растр размером `size × size` с прозрачными углами.
        density: Плотность пикселей, с которой растр был снят.
        logical_size: Сторона до умножения на плотность, px источника.
    """
    pil_image: Image.Image
    density: float
    logical_size: float

    @property
    def size(self) -> int:
        return self.pil_image.width

    @property
    def radius(self) -> float:
        return self.pil_image.width / 2.0
