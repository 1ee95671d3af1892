"""Модели шаблона рамки: раскладка варианта и пользовательские данные.

Принципы:
- SRP: раскладка (`TemplateLayout`) описывает только геометрию и цвета, модель
  (`TemplateModel`) — только то, что ввёл пользователь.
- Чистый код: все координаты заданы в логических пикселях; масштабирует компоновщик.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal, Optional, Tuple

from frame_editor.models.crop_model import CircularRaster

RGB = Tuple[int, int, int]
RGBA = Tuple[int, int, int, int]
Box = Tuple[float, float, float, float]

# z-порядок слоёв шаблона
Z_LOW_DECOR = 10
Z_PHOTO = 20
Z_TEXT = 30
Z_LOGO = 40
Z_HIGH_DECOR = 50


def with_alpha(color: RGB, opacity: float) -> RGBA:
    r, g, b = color
    return r, g, b, int(round(255 * max(0.0, min(1.0, opacity))))


def mix(base: RGB, overlay: RGB, opacity: float) -> RGB:
    """Цвет `overlay` с прозрачностью `opacity`, наложенный на непрозрачный `base`."""
    return tuple(int(round(b * (1.0 - opacity) + o * opacity)) for b, o in zip(base, overlay))  # type: ignore[return-value]


@dataclass(frozen=True)
class Palette:
    primary: RGB = (99, 102, 241)
    card: RGB = (255, 255, 255)
    secondary: RGB = (241, 245, 249)
    foreground: RGB = (15, 23, 42)
    muted: RGB = (226, 232, 240)
    muted_foreground: RGB = (100, 116, 139)


@dataclass(frozen=True)
class Shape:
    """Декоративная фигура.

    kind:
        "ring" — окружность с обводкой `stroke`;
        "disc" — закрашенный круг;
        "glow" — линейный градиент от `color` к прозрачному внутри `box`,
        направление `direction` ("br" — к правому нижнему углу, "tl" — к левому верхнему).
    """
    kind: Literal["ring", "disc", "glow"]
    box: Box
    color: RGBA
    z: int = Z_LOW_DECOR
    stroke: float = 0.0
    direction: Literal["br", "tl"] = "br"


@dataclass(frozen=True)
class PhotoSlot:
    x: float
    y: float
    size: float
    border: float
    border_color: RGB
    glow_color: RGBA
    placeholder_fill: RGB
    placeholder_color: RGB
    placeholder_text: str = "Photo"
    placeholder_font_size: float = 14.0

    @property
    def inner_box(self) -> Box:
        b = self.border
        return self.x + b, self.y + b, self.x + self.size - b, self.y + self.size - b


@dataclass(frozen=True)
class TextSlot:
    """Строка текста, центрированная по `center_x`; `top` — верх строки."""
    center_x: float
    top: float
    font_size: float
    color: RGB
    placeholder: str
    max_width: float
    bold: bool = False
    min_font_size: float = 10.0


@dataclass(frozen=True)
class LogoSlot:
    """Логотип, прижатый к правому нижнему углу с отступом `margin`."""
    margin: float
    height: float
    opacity: float
    wordmark: str
    color: RGB


@dataclass(frozen=True)
class TemplateLayout:
    name: str
    width: int
    height: int
    corner_radius: float
    background: Tuple[RGB, RGB, RGB]
    shapes: Tuple[Shape, ...]
    photo: PhotoSlot
    name_text: TextSlot
    designation_text: TextSlot
    logo: LogoSlot
    palette: Palette = field(default_factory=Palette)

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height


def classic_layout(palette: Optional[Palette] = None) -> TemplateLayout:
    """Единственный вариант шаблона: карточка 320×320 с фото по центру."""
    p = palette or Palette()
    size = 320
    photo_size = 160.0
    photo_y = 46.0
    return TemplateLayout(
        name="classic",
        width=size,
        height=size,
        corner_radius=16.0,
        background=(mix(p.card, p.primary, 0.10), p.card, p.secondary),
        shapes=(
            Shape("ring", (16, 16, 96, 96), with_alpha(p.primary, 0.05), stroke=2),
            Shape("ring", (size - 32 - 64, size - 32 - 64, size - 32, size - 32), with_alpha(p.primary, 0.05), stroke=2),
            Shape("disc", (size - 16 - 32, size / 2, size - 16, size / 2 + 32), with_alpha(p.primary, 0.05)),
            Shape("glow", (0, 0, 64, 64), with_alpha(p.primary, 0.20), z=Z_HIGH_DECOR, direction="br"),
            Shape("glow", (size - 96, size - 96, size, size), with_alpha(p.primary, 0.10), z=Z_HIGH_DECOR, direction="tl"),
        ),
        photo=PhotoSlot(
            x=(size - photo_size) / 2,
            y=photo_y,
            size=photo_size,
            border=4,
            border_color=p.primary,
            glow_color=with_alpha(p.primary, 0.35),
            placeholder_fill=p.muted,
            placeholder_color=p.muted_foreground,
        ),
        name_text=TextSlot(
            center_x=size / 2,
            top=photo_y + photo_size + 16,
            font_size=20,
            color=p.foreground,
            placeholder="Your Name",
            max_width=size - 48,
            bold=True,
        ),
        designation_text=TextSlot(
            center_x=size / 2,
            top=photo_y + photo_size + 16 + 28 + 4,
            font_size=14,
            color=p.primary,
            placeholder="Designation",
            max_width=size - 48,
        ),
        logo=LogoSlot(margin=16, height=32, opacity=0.8, wordmark="Pixelora Studio", color=p.primary),
        palette=p,
    )


@dataclass(frozen=True)
class TemplateModel:
    """Полное описание итоговой картинки: раскладка + имя, должность и круглое фото."""
    layout: TemplateLayout
    name: str = ""
    designation: str = ""
    raster: Optional[CircularRaster] = None

    @property
    def display_name(self) -> str:
        # строка из одних пробелов считается пустой, как и в имени файла
        return self.name.strip() or self.layout.name_text.placeholder

    @property
    def display_designation(self) -> str:
        return self.designation.strip() or self.layout.designation_text.placeholder

    def with_text(self, name: Optional[str] = None, designation: Optional[str] = None) -> "TemplateModel":
        return replace(
            self,
            name=self.name if name is None else name,
            designation=self.designation if designation is None else designation,
        )
