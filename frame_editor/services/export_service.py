"""Экспорт собранной картинки в PNG и доставка файла.

Принципы:
- SRP: кодирование и имя файла; что рисовать, решает `ComposeService`.
- Ошибки кодирования не глотаются: наружу уходит `EncodingFailureError` с причиной.
"""
from __future__ import annotations

import logging
import re
from io import BytesIO
from pathlib import Path
from typing import Optional

from frame_editor.errors import DrawingSurfaceUnavailableError, EncodingFailureError, NotReadyError
from frame_editor.models.artifact_model import ComposedSurface, ExportArtifact

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


class ExportService:
    def __init__(self, default_stem: str = "photo", suffix: str = "-frame.png") -> None:
        self.default_stem = default_stem
        self.suffix = suffix

    def file_name_for(self, hint: Optional[str]) -> str:
        """`<hint>-frame.png`; пустая подсказка даёт `photo-frame.png`."""
        # строка из одних пробелов считается пустой, как и в подписи шаблона
        stem = _UNSAFE_CHARS.sub("_", (hint or "").strip())
        return f"{stem or self.default_stem}{self.suffix}"

    def export(
        self,
        surface: Optional[ComposedSurface],
        scale_factor: int = 3,
        file_name_hint: Optional[str] = None,
    ) -> ExportArtifact:
        """Перерисовывает поверхность в `scale_factor` раз крупнее и кодирует PNG без потерь.

        Args:
            surface: Результат `ComposeService.compose`.
            scale_factor: Целый множитель; размер PNG ровно `logical × scale_factor`.
            file_name_hint: Обычно поле «имя».

        Raises:
            NotReadyError: поверхности нет (экспорт вызван раньше компоновки).
            EncodingFailureError: растеризация или кодирование не удались.
        """
        if surface is None:
            raise NotReadyError("Нечего экспортировать: картинка ещё не собрана")
        if isinstance(scale_factor, bool) or not isinstance(scale_factor, int) or scale_factor < 1:
            raise ValueError(f"Множитель экспорта должен быть целым >= 1: {scale_factor!r}")

        width, height = surface.size[0] * scale_factor, surface.size[1] * scale_factor
        try:
            image = surface.rasterize(scale_factor)
        except DrawingSurfaceUnavailableError as exc:
            raise EncodingFailureError(f"Не удалось растеризовать {width}x{height}") from exc

        try:
            if image.size != (width, height):
                raise EncodingFailureError(f"Неожиданный размер растра {image.size}, ожидался {(width, height)}")
            buffer = BytesIO()
            try:
                image.save(buffer, format="PNG")
            except (OSError, ValueError) as exc:
                raise EncodingFailureError(f"Ошибка кодирования PNG: {exc}") from exc
        finally:
            image.close()

        artifact = ExportArtifact(
            data=buffer.getvalue(),
            file_name=self.file_name_for(file_name_hint),
            width=width,
            height=height,
        )
        logger.info("Exported %s (%dx%d, %d bytes)", artifact.file_name, width, height, artifact.size_bytes)
        return artifact

    def save(self, artifact: ExportArtifact, directory: str | Path, file_name: Optional[str] = None) -> Path:
        """Пишет PNG в каталог (под предложенным именем, если другое не задано) и возвращает путь."""
        target = Path(directory) / (file_name or artifact.file_name)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(artifact.data)
        logger.info("Saved %s", target)
        return target
