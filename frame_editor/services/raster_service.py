"""Круглый растр из кропа исходного фото.

Принципы:
- SRP: сервис только режет, масштабирует и маскирует; координаты готовит `GeometryService`.
- Чистый код: маска считается векторно через numpy, без попиксельных циклов.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
from PIL import Image

from frame_editor.errors import NotReadyError
from frame_editor.models.crop_model import CircularRaster, PixelCrop
from frame_editor.models.image_model import SourceImage
from frame_editor.services.surface import DrawingSurface

logger = logging.getLogger(__name__)


class RasterService:
    # ---------- Вспомогательные функции ----------
    @staticmethod
    def circle_mask(width: int, height: int) -> Image.Image:
        """
        Бинарная маска (L, 0/255) круга по центру буфера.
        Радиус равен половине меньшей стороны; пиксель внутри, если внутри его центр.
        """
        cx = width / 2.0
        cy = height / 2.0
        radius = min(width, height) / 2.0
        yy, xx = np.ogrid[:height, :width]
        inside = (xx + 0.5 - cx) ** 2 + (yy + 0.5 - cy) ** 2 <= radius * radius
        return Image.fromarray(np.where(inside, 255, 0).astype(np.uint8))

    @staticmethod
    def output_size(crop_px: PixelCrop, pixel_density: float) -> tuple[int, int]:
        return math.floor(crop_px.width * pixel_density), math.floor(crop_px.height * pixel_density)

    # ---------- Растеризация ----------
    def rasterize(
        self,
        source: Optional[SourceImage],
        crop_px: Optional[PixelCrop],
        pixel_density: float = 1.0,
    ) -> CircularRaster:
        """Вырезает кроп, масштабирует под плотность экрана и накладывает круглую маску.

        1. Размер буфера: `floor(w * density) × floor(h * density)`.
        2. Весь бокс кропа пересэмплируется (Lanczos) на весь буфер.
        3. Пиксели вне круга полностью прозрачны: (0, 0, 0, 0).
        4. Неквадратный буфер (кроп обрезан краем фото) урезается до центрального квадрата.

        Raises:
            NotReadyError: нет фото, нет кропа или кроп пуст.
            DrawingSurfaceUnavailableError: не удалось создать буфер.
        """
        if source is None:
            raise NotReadyError("Фото не загружено")
        if crop_px is None or crop_px.is_empty:
            raise NotReadyError("Кроп не подтверждён")
        if pixel_density <= 0:
            raise ValueError(f"Плотность пикселей должна быть > 0: {pixel_density}")

        out_w, out_h = self.output_size(crop_px, pixel_density)
        if out_w < 1 or out_h < 1:
            raise NotReadyError(f"Кроп слишком мал: {crop_px.width:.2f}x{crop_px.height:.2f}")

        region = source.pil_image.resize((out_w, out_h), resample=Image.Resampling.LANCZOS, box=crop_px.box)
        mask = self.circle_mask(out_w, out_h)
        with DrawingSurface(out_w, out_h) as surface:
            surface.image.paste(region, (0, 0), mask)
            if out_w == out_h:
                result = surface.detach()
            else:
                side = min(out_w, out_h)
                left = (out_w - side) // 2
                top = (out_h - side) // 2
                result = surface.image.crop((left, top, left + side, top + side))

        logger.debug(
            "Rasterized crop (%.1f, %.1f, %.1f, %.1f) at density %.2f -> %dx%d",
            crop_px.x, crop_px.y, crop_px.width, crop_px.height, pixel_density, result.width, result.height,
        )
        return CircularRaster(
            pil_image=result,
            density=pixel_density,
            logical_size=min(crop_px.width, crop_px.height),
        )
