"""Исключения конвейера кадрирования и компоновки.

Все ошибки, которые сервисы поднимают наружу, наследуются от `FrameEditorError`,
чтобы контроллер мог ловить их одной веткой и показывать пользователю.
"""
from __future__ import annotations


class FrameEditorError(Exception):
    """Базовая ошибка приложения."""


class NotReadyError(FrameEditorError):
    """Операция вызвана раньше, чем появился нужный артефакт (нет фото, нет кропа и т.п.)."""


class DrawingSurfaceUnavailableError(FrameEditorError):
    """Не удалось получить поверхность для рисования (неверный размер, нехватка памяти)."""


class EncodingFailureError(FrameEditorError):
    """Растеризация или кодирование итогового PNG завершились ошибкой."""
