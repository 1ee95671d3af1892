"""Модели данных для исходного фото и его экранного представления.

Принципы:
- SRP: только структура данных, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image


@dataclass(frozen=True)
class SourceImage:
    """Неизменяемое исходное изображение одного прогона конвейера.

    Fields:
        pil_image: Декодированное изображение PIL (всегда RGBA).
        width: Натуральная ширина, px.
        height: Натуральная высота, px.
        path: Путь к файлу, если фото загружено с диска.
        size_bytes: Размер исходных данных, если известен.
    """
    pil_image: Image.Image
    width: int
    height: int
    path: Optional[Path] = None
    size_bytes: Optional[int] = None

    @property
    def dims(self) -> Tuple[int, int]:
        return self.width, self.height


@dataclass(frozen=True)
class DisplayGeometry:
    """Размер фото на экране (после вписывания в область просмотра), логические px."""
    width: float
    height: float

    @property
    def dims(self) -> Tuple[float, float]:
        return self.width, self.height

    @property
    def shorter_side(self) -> float:
        return min(self.width, self.height)
