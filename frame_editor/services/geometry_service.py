"""Перевод экранного выделения в координаты пикселей исходного изображения.

Принципы:
- SRP: только арифметика координат, без рисования.
- Чистые функции: ни один метод не меняет состояние сервиса или аргументов.
"""
from __future__ import annotations

import math
from typing import Tuple

from frame_editor.errors import NotReadyError
from frame_editor.models.crop_model import CropRegion, PixelCrop

Dims = Tuple[float, float]


def _clip(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class GeometryService:
    def __init__(self, crop_percent: float = 90.0, square_tolerance: float = 0.5) -> None:
        self.crop_percent = crop_percent
        self.square_tolerance = square_tolerance

    # ---- Units ----
    def to_pixels(self, region: CropRegion, display_dims: Dims) -> CropRegion:
        """Возвращает выделение в экранных пикселях."""
        if region.unit == "px":
            return region
        dw, dh = display_dims
        return CropRegion(
            x=region.x * dw / 100.0,
            y=region.y * dh / 100.0,
            width=region.width * dw / 100.0,
            height=region.height * dh / 100.0,
            unit="px",
        )

    def to_percent(self, region: CropRegion, display_dims: Dims) -> CropRegion:
        """Возвращает выделение в процентах от экранного размера (переживает ресайз окна)."""
        if region.unit == "%":
            return region
        dw, dh = self._checked_dims(display_dims)
        return CropRegion(
            x=region.x * 100.0 / dw,
            y=region.y * 100.0 / dh,
            width=region.width * 100.0 / dw,
            height=region.height * 100.0 / dh,
            unit="%",
        )

    # ---- Shape ----
    def center_aspect_crop(self, display_dims: Dims, percent: float | None = None) -> CropRegion:
        """Квадрат по центру со стороной `percent`% от короткой стороны показа."""
        dw, dh = self._checked_dims(display_dims)
        side = min(dw, dh) * (self.crop_percent if percent is None else percent) / 100.0
        return CropRegion(x=(dw - side) / 2.0, y=(dh - side) / 2.0, width=side, height=side, unit="px")

    def is_square(self, region: CropRegion) -> bool:
        return math.isclose(region.width, region.height, abs_tol=self.square_tolerance)

    def clamp(self, region: CropRegion, display_dims: Dims) -> CropRegion:
        """Обрезает выделение (в px) границами показа; ширина и высота не бывают отрицательными."""
        dw, dh = display_dims
        left = _clip(region.x, 0.0, dw)
        top = _clip(region.y, 0.0, dh)
        right = _clip(region.right, 0.0, dw)
        bottom = _clip(region.bottom, 0.0, dh)
        return CropRegion(x=left, y=top, width=max(0.0, right - left), height=max(0.0, bottom - top), unit="px")

    # ---- Resolve ----
    def resolve(self, region: CropRegion, source_dims: Dims, display_dims: Dims) -> PixelCrop:
        """Переводит выделение на экране в кроп в пикселях источника.

        Args:
            region: Выделение в `%` или экранных `px`.
            source_dims: Натуральный размер фото (ширина, высота).
            display_dims: Размер фото на экране.

        Returns:
            `PixelCrop` внутри границ источника. Выход за край обрезается, а не считается ошибкой.

        Raises:
            NotReadyError: если фото ещё не показано (нулевой экранный размер).
        """
        dw, dh = self._checked_dims(display_dims)
        sw, sh = source_dims

        px = self.to_pixels(region, (dw, dh))
        if not self.is_square(px):
            px = self.center_aspect_crop((dw, dh))
        px = self.clamp(px, (dw, dh))

        scale_x = sw / dw
        scale_y = sh / dh
        left = _clip(px.x * scale_x, 0.0, sw)
        top = _clip(px.y * scale_y, 0.0, sh)
        right = _clip(px.right * scale_x, 0.0, sw)
        bottom = _clip(px.bottom * scale_y, 0.0, sh)
        return PixelCrop(x=left, y=top, width=right - left, height=bottom - top)

    @staticmethod
    def _checked_dims(display_dims: Dims) -> Dims:
        dw, dh = display_dims
        if dw <= 0 or dh <= 0:
            raise NotReadyError(f"Изображение ещё не показано: {dw}x{dh}")
        return dw, dh
