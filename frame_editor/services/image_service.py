"""Загрузка изображений с диска или из памяти и упаковка метаданных.

Принципы:
- SRP: класс отвечает только за декодирование и базовое извлечение свойств.
- OCP: новые источники (стрим, URL) можно добавить отдельными методами.
- LSP/ISP: возвращает `SourceImage` с предсказуемыми полями; интерфейс узкий и конкретный.
"""
from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from frame_editor.models.image_model import SourceImage

logger = logging.getLogger(__name__)


class ImageService:
    def load_image(self, file_path: str | Path) -> SourceImage:
        """Загружает изображение с диска.

        Args:
            file_path: Путь до файла изображения.

        Returns:
            `SourceImage` c `PIL.Image.Image` в режиме RGBA и размерами.

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
            ValueError: если файл не распознан как изображение.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"Файл не найден: {path}")

        data = path.read_bytes()
        source = self.decode_bytes(data, name=str(path))
        return SourceImage(
            pil_image=source.pil_image,
            width=source.width,
            height=source.height,
            path=path,
            size_bytes=len(data),
        )

    def decode_bytes(self, data: bytes, name: Optional[str] = None) -> SourceImage:
        """Декодирует байты PNG/JPEG/WEBP.

        Ориентация из EXIF применяется сразу, чтобы на экране и в растре были одни и те же пиксели.

        Raises:
            ValueError: если данные не распознаны как изображение.
        """
        label = name or "<память>"
        try:
            with Image.open(BytesIO(data)) as opened:
                upright = ImageOps.exif_transpose(opened)
                pil_image = upright.convert("RGBA")
        except UnidentifiedImageError as exc:
            raise ValueError(f"Данные не являются изображением: {label}") from exc

        width, height = pil_image.size
        logger.debug("Decoded %s: %dx%d", label, width, height)
        return SourceImage(pil_image=pil_image, width=width, height=height, size_bytes=len(data))
