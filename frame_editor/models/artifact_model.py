"""Результаты компоновки и экспорта."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Tuple

from PIL import Image

from frame_editor.models.template_model import TemplateModel

Renderer = Callable[[TemplateModel, float], Image.Image]


@dataclass(frozen=True)
class ComposedSurface:
    """Собранная картинка: снимок модели, логический размер и превью в масштабе 1.

    Поверхность умеет перерисоваться в любом масштабе (`rasterize`), поэтому экспорт
    получает честные пиксели высокого разрешения, а не растянутое превью.
    """
    template: TemplateModel
    size: Tuple[int, int]
    preview: Image.Image
    renderer: Renderer = field(repr=False, compare=False)

    def rasterize(self, scale: float) -> Image.Image:
        return self.renderer(self.template, scale)


@dataclass(frozen=True)
class ExportArtifact:
    """Закодированный PNG и предлагаемое имя файла."""
    data: bytes
    file_name: str
    width: int
    height: int

    @property
    def size_bytes(self) -> int:
        return len(self.data)
