"""Контекст конечного автомата мастера: передаётся по значению между чистыми функциями."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from frame_editor.models.crop_model import CircularRaster, CropRegion, PixelCrop
from frame_editor.models.image_model import DisplayGeometry, SourceImage


class Step(Enum):
    UPLOADING = 1
    CROPPING = 2
    COMPOSING = 3


@dataclass(frozen=True)
class PipelineContext:
    """Всё состояние одного прогона конвейера.

    Fields:
        run_id: Монотонно растущий номер прогона; меняется при сбросе и новой загрузке.
        step: Текущий шаг мастера.
        source: Загруженное фото.
        display: Размер фото на экране в момент последнего выделения.
        crop_region: Текущее (ещё не подтверждённое) выделение.
        confirmed_crop: Кроп в пикселях источника, подтверждённый пользователем.
        raster: Круглый растр, полученный из `confirmed_crop`.
        name: Поле «имя».
        designation: Поле «должность».
    """
    run_id: int = 0
    step: Step = Step.UPLOADING
    source: Optional[SourceImage] = None
    display: Optional[DisplayGeometry] = None
    crop_region: Optional[CropRegion] = None
    confirmed_crop: Optional[PixelCrop] = None
    raster: Optional[CircularRaster] = None
    name: str = ""
    designation: str = ""
