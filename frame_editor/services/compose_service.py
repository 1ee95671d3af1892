"""Компоновка шаблона: фон, декор, круглое фото, текстовые поля и логотип.

Принципы:
- SRP: сервис только рисует `TemplateModel`; откуда взялись растр и текст, ему неважно.
- Повторная входимость: каждый вызов рисует на новой поверхности, поэтому между
  вызовами не остаётся следов предыдущих рендеров.
- Масштаб: вся геометрия шаблона в логических пикселях и умножается на `scale`,
  так что превью (×1) и экспорт (×3) рисуются одним и тем же кодом.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageChops, ImageDraw, ImageFilter, ImageFont

from frame_editor.models.artifact_model import ComposedSurface
from frame_editor.models.template_model import (
    RGBA,
    Z_LOGO,
    Z_PHOTO,
    Z_TEXT,
    Box,
    PhotoSlot,
    Shape,
    TemplateLayout,
    TemplateModel,
    TextSlot,
    with_alpha,
)
from frame_editor.services.raster_service import RasterService
from frame_editor.services.surface import DrawingSurface

logger = logging.getLogger(__name__)

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont
Paint = Callable[[DrawingSurface, float], None]


@lru_cache(maxsize=64)
def _load_font(path: Optional[str], size: int) -> Font:
    if path:
        try:
            return ImageFont.truetype(path, size=size)
        except OSError as exc:
            logger.warning("Cannot load font %s (%s), using default", path, exc)
    return ImageFont.load_default(size=size)


def _scaled_box(box: Box, scale: float) -> Tuple[int, int, int, int]:
    """Бокс для ImageDraw: правая и нижняя границы включительно."""
    x0, y0, x1, y1 = box
    return round(x0 * scale), round(y0 * scale), round(x1 * scale) - 1, round(y1 * scale) - 1


def linear_gradient(width: int, height: int, stops: Sequence[RGBA], direction: str = "br") -> Image.Image:
    """
    Диагональный градиент RGBA. `direction="br"` — от левого верхнего угла к правому нижнему,
    `"tl"` — наоборот. Стопы распределены равномерно.
    """
    xs = (np.arange(width, dtype=np.float64) + 0.5) / width
    ys = (np.arange(height, dtype=np.float64) + 0.5) / height
    t = (xs[None, :] + ys[:, None]) / 2.0
    if direction == "tl":
        t = 1.0 - t
    positions = np.linspace(0.0, 1.0, num=len(stops))
    channels = [np.interp(t, positions, [float(stop[c]) for stop in stops]) for c in range(4)]
    arr = np.clip(np.rint(np.stack(channels, axis=-1)), 0, 255).astype(np.uint8)
    return Image.fromarray(arr)


class ComposeService:
    def __init__(
        self,
        font_path: Optional[str] = None,
        bold_font_path: Optional[str] = None,
        logo: Optional[Image.Image] = None,
    ) -> None:
        self._font_path = font_path
        self._bold_font_path = bold_font_path
        self._logo = logo.convert("RGBA") if logo is not None else None

    # ---- Public API ----
    def compose(self, template: TemplateModel) -> ComposedSurface:
        """Собирает поверхность фиксированного логического размера с превью в масштабе 1."""
        preview = self.render(template, 1.0)
        return ComposedSurface(template=template, size=template.layout.size, preview=preview, renderer=self.render)

    def render(self, template: TemplateModel, scale: float) -> Image.Image:
        """Рисует шаблон в масштабе `scale`; размер результата `round(size * scale)`.

        Raises:
            ValueError: если `scale <= 0`.
            DrawingSurfaceUnavailableError: если поверхность не создаётся.
        """
        if scale <= 0:
            raise ValueError(f"Масштаб должен быть > 0: {scale}")
        layout = template.layout
        width = round(layout.width * scale)
        height = round(layout.height * scale)

        with DrawingSurface(width, height) as surface:
            self._paint_background(surface, layout)
            for _z, _seq, paint in self._layers(template):
                paint(surface, scale)
            self._cut_corners(surface, layout, scale)
            return surface.detach()

    # ---- Layers ----
    def _layers(self, template: TemplateModel) -> List[Tuple[int, int, Paint]]:
        layout = template.layout
        layers: List[Tuple[int, Paint]] = [
            (shape.z, lambda s, k, shape=shape: self._paint_shape(s, shape, k)) for shape in layout.shapes
        ]
        layers.append((Z_PHOTO, lambda s, k: self._paint_photo(s, layout.photo, template, k)))
        layers.append((Z_TEXT, lambda s, k: self._paint_text(s, layout.name_text, template.display_name, k)))
        layers.append(
            (Z_TEXT, lambda s, k: self._paint_text(s, layout.designation_text, template.display_designation, k))
        )
        layers.append((Z_LOGO, lambda s, k: self._paint_logo(s, layout, k)))
        # stable: equal z keeps declaration order
        return sorted(((z, seq, paint) for seq, (z, paint) in enumerate(layers)), key=lambda item: item[:2])

    @staticmethod
    def _overlay(surface: DrawingSurface, paint: Callable[[ImageDraw.ImageDraw], None]) -> None:
        # ImageDraw пишет RGBA как есть, без смешивания, поэтому рисуем на отдельном слое
        layer = Image.new("RGBA", surface.image.size, (0, 0, 0, 0))
        paint(ImageDraw.Draw(layer))
        surface.image.alpha_composite(layer)

    def _paint_background(self, surface: DrawingSurface, layout: TemplateLayout) -> None:
        stops = [(*color, 255) for color in layout.background]
        gradient = linear_gradient(surface.width, surface.height, stops, "br")
        surface.image.alpha_composite(gradient)

    def _paint_shape(self, surface: DrawingSurface, shape: Shape, scale: float) -> None:
        box = _scaled_box(shape.box, scale)
        if shape.kind == "ring":
            stroke = max(1, round(shape.stroke * scale))
            self._overlay(surface, lambda d: d.ellipse(box, outline=shape.color, width=stroke))
        elif shape.kind == "disc":
            self._overlay(surface, lambda d: d.ellipse(box, fill=shape.color))
        elif shape.kind == "glow":
            x0, y0, x1, y1 = box
            r, g, b, a = shape.color
            glow = linear_gradient(x1 - x0 + 1, y1 - y0 + 1, [(r, g, b, a), (r, g, b, 0)], shape.direction)
            surface.image.alpha_composite(glow, dest=(x0, y0))
        else:
            raise ValueError(f"Неизвестная фигура: {shape.kind}")

    def _paint_photo(self, surface: DrawingSurface, slot: PhotoSlot, template: TemplateModel, scale: float) -> None:
        outer = _scaled_box((slot.x, slot.y, slot.x + slot.size, slot.y + slot.size), scale)

        # shadow-glow
        spread = round(4 * scale)
        glow_box = (outer[0] - spread, outer[1] - spread, outer[2] + spread, outer[3] + spread)
        glow = Image.new("RGBA", surface.image.size, (0, 0, 0, 0))
        ImageDraw.Draw(glow).ellipse(glow_box, fill=slot.glow_color)
        surface.image.alpha_composite(glow.filter(ImageFilter.GaussianBlur(radius=12 * scale)))

        ix0, iy0, ix1, iy1 = slot.inner_box
        left, top = round(ix0 * scale), round(iy0 * scale)
        inner = round(ix1 * scale) - left
        raster = template.raster
        if raster is not None:
            photo = raster.pil_image
            if photo.size != (inner, inner):
                photo = photo.resize((inner, inner), resample=Image.Resampling.LANCZOS)
            clipped = Image.new("RGBA", (inner, inner), (0, 0, 0, 0))
            clipped.paste(photo, (0, 0), RasterService.circle_mask(inner, inner))
            surface.image.alpha_composite(clipped, dest=(left, top))
        else:
            self._paint_placeholder(surface, slot, (left, top, left + inner - 1, top + inner - 1), scale)

        border = max(1, round(slot.border * scale))
        self._overlay(surface, lambda d: d.ellipse(outer, outline=(*slot.border_color, 255), width=border))

    def _paint_placeholder(self, surface: DrawingSurface, slot: PhotoSlot, box: Tuple[int, int, int, int], scale: float) -> None:
        font = _load_font(self._font_path, max(1, round(slot.placeholder_font_size * scale)))
        cx = (box[0] + box[2] + 1) / 2.0
        cy = (box[1] + box[3] + 1) / 2.0

        def paint(d: ImageDraw.ImageDraw) -> None:
            d.ellipse(box, fill=(*slot.placeholder_fill, 255))
            bbox = d.textbbox((0, 0), slot.placeholder_text, font=font)
            x = cx - (bbox[2] - bbox[0]) / 2.0 - bbox[0]
            y = cy - (bbox[3] - bbox[1]) / 2.0 - bbox[1]
            d.text((x, y), slot.placeholder_text, font=font, fill=(*slot.placeholder_color, 255))

        self._overlay(surface, paint)

    def _paint_text(self, surface: DrawingSurface, slot: TextSlot, text: str, scale: float) -> None:
        font, stroke, text = self._fit_text(surface.draw, slot, text, scale)
        color = (*slot.color, 255)

        def paint(d: ImageDraw.ImageDraw) -> None:
            bbox = d.textbbox((0, 0), text, font=font, stroke_width=stroke)
            x = slot.center_x * scale - (bbox[2] - bbox[0]) / 2.0 - bbox[0]
            d.text((x, slot.top * scale), text, font=font, fill=color, stroke_width=stroke, stroke_fill=color)

        self._overlay(surface, paint)

    def _fit_text(self, draw: ImageDraw.ImageDraw, slot: TextSlot, text: str, scale: float) -> Tuple[Font, int, str]:
        """
        Подбирает шрифт так, чтобы строка влезла в `max_width`: сначала уменьшает кегль
        до `min_font_size`, затем обрезает текст с многоточием.
        """
        path = self._bold_font_path if slot.bold and self._bold_font_path else self._font_path
        # без жирного TTF имитируем начертание обводкой
        stroke = max(1, round(0.5 * scale)) if slot.bold and not self._bold_font_path else 0
        max_width = slot.max_width * scale
        min_size = max(1, round(slot.min_font_size * scale))

        size = max(1, round(slot.font_size * scale))
        font = _load_font(path, size)
        while self._text_width(draw, text, font, stroke) > max_width and size > min_size:
            size = max(min_size, size - max(1, round(scale)))
            font = _load_font(path, size)

        if self._text_width(draw, text, font, stroke) > max_width:
            while len(text) > 1 and self._text_width(draw, text + "…", font, stroke) > max_width:
                text = text[:-1]
            text = text.rstrip() + "…"
        return font, stroke, text

    @staticmethod
    def _text_width(draw: ImageDraw.ImageDraw, text: str, font: Font, stroke: int) -> float:
        bbox = draw.textbbox((0, 0), text, font=font, stroke_width=stroke)
        return bbox[2] - bbox[0]

    def _paint_logo(self, surface: DrawingSurface, layout: TemplateLayout, scale: float) -> None:
        slot = layout.logo
        margin = round(slot.margin * scale)
        if self._logo is not None:
            height = max(1, round(slot.height * scale))
            width = max(1, round(self._logo.width * height / self._logo.height))
            logo = self._logo.resize((width, height), resample=Image.Resampling.LANCZOS)
            logo.putalpha(logo.getchannel("A").point(lambda a: round(a * slot.opacity)))
            surface.image.alpha_composite(logo, dest=(surface.width - margin - width, surface.height - margin - height))
            return

        font = _load_font(self._bold_font_path or self._font_path, max(1, round(12 * scale)))
        color = with_alpha(slot.color, slot.opacity)

        def paint(d: ImageDraw.ImageDraw) -> None:
            bbox = d.textbbox((0, 0), slot.wordmark, font=font)
            x = surface.width - margin - bbox[2]
            y = surface.height - margin - bbox[3]
            d.text((x, y), slot.wordmark, font=font, fill=color)

        self._overlay(surface, paint)

    @staticmethod
    def _cut_corners(surface: DrawingSurface, layout: TemplateLayout, scale: float) -> None:
        mask = Image.new("L", surface.image.size, 0)
        ImageDraw.Draw(mask).rounded_rectangle(
            (0, 0, surface.width - 1, surface.height - 1), radius=round(layout.corner_radius * scale), fill=255
        )
        surface.image.putalpha(ImageChops.multiply(surface.image.getchannel("A"), mask))
