"""Временная поверхность для рисования с гарантированным освобождением."""
from __future__ import annotations

from types import TracebackType
from typing import Optional, Tuple, Type

from PIL import Image, ImageDraw

from frame_editor.errors import DrawingSurfaceUnavailableError


class DrawingSurface:
    """Контекстный менеджер вокруг `Image.new`.

    Внутри `with` доступны `image` и `draw`. Результат забирается через `detach()`;
    всё, что не забрали, закрывается на выходе, в том числе при исключении.
    """

    def __init__(self, width: int, height: int, mode: str = "RGBA", color: Tuple[int, ...] = (0, 0, 0, 0)) -> None:
        self.width = int(width)
        self.height = int(height)
        self.mode = mode
        self.color = color
        self._image: Optional[Image.Image] = None
        self._draw: Optional[ImageDraw.ImageDraw] = None

    def __enter__(self) -> "DrawingSurface":
        if self.width < 1 or self.height < 1:
            raise DrawingSurfaceUnavailableError(f"Недопустимый размер поверхности: {self.width}x{self.height}")
        try:
            self._image = Image.new(self.mode, (self.width, self.height), self.color)
        except (ValueError, MemoryError) as exc:
            raise DrawingSurfaceUnavailableError(
                f"Не удалось создать поверхность {self.width}x{self.height} ({self.mode})"
            ) from exc
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self._draw = None
        if self._image is not None:
            self._image.close()
            self._image = None

    @property
    def image(self) -> Image.Image:
        if self._image is None:
            raise DrawingSurfaceUnavailableError("Поверхность уже освобождена")
        return self._image

    @property
    def draw(self) -> ImageDraw.ImageDraw:
        if self._draw is None:
            self._draw = ImageDraw.Draw(self.image)
        return self._draw

    def detach(self) -> Image.Image:
        """Передаёт изображение вызывающему; поверхность после этого пуста."""
        image = self.image
        self._image = None
        self._draw = None
        return image
