"""Сессия мастера: текущий контекст и асинхронные шаги (декодирование, экспорт).

Принципы:
- DIP: сервисы передаются в конструктор, по умолчанию создаются из настроек.
- Отмена неявная: каждый прогон имеет `run_id`; результат асинхронного шага,
  чей прогон уже сменился (сброс, новая загрузка), отбрасывается.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Optional

from frame_editor.config import Settings
from frame_editor.controllers import pipeline
from frame_editor.errors import NotReadyError
from frame_editor.models.artifact_model import ComposedSurface, ExportArtifact
from frame_editor.models.crop_model import CropRegion
from frame_editor.models.image_model import DisplayGeometry
from frame_editor.models.pipeline_model import PipelineContext, Step
from frame_editor.models.template_model import TemplateLayout, classic_layout
from frame_editor.services.compose_service import ComposeService
from frame_editor.services.export_service import ExportService
from frame_editor.services.geometry_service import GeometryService
from frame_editor.services.image_service import ImageService
from frame_editor.services.raster_service import RasterService

logger = logging.getLogger(__name__)

Deliver = Callable[[ExportArtifact], None]


class FrameSession:
    def __init__(
        self,
        layout: Optional[TemplateLayout] = None,
        image_service: Optional[ImageService] = None,
        geometry_service: Optional[GeometryService] = None,
        raster_service: Optional[RasterService] = None,
        compose_service: Optional[ComposeService] = None,
        export_service: Optional[ExportService] = None,
        export_scale: int = 3,
        pixel_density: float = 1.0,
    ) -> None:
        self.layout = layout or classic_layout()
        self._images = image_service or ImageService()
        self._geometry = geometry_service or GeometryService()
        self._raster = raster_service or RasterService()
        self._composer = compose_service or ComposeService()
        self._exporter = export_service or ExportService()
        self.export_scale = export_scale
        self.pixel_density = pixel_density

        self._context = pipeline.initial_context()
        self._in_flight: Optional[int] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "FrameSession":
        logo = None
        if settings.logo_path is not None:
            logo = ImageService().load_image(settings.logo_path).pil_image
        return cls(
            geometry_service=GeometryService(crop_percent=settings.crop_percent),
            compose_service=ComposeService(
                font_path=settings.font_path, bold_font_path=settings.bold_font_path, logo=logo
            ),
            export_service=ExportService(default_stem=settings.default_file_stem, suffix=settings.file_suffix),
            export_scale=settings.export_scale,
            pixel_density=settings.pixel_density or 1.0,
        )

    @property
    def context(self) -> PipelineContext:
        return self._context

    @property
    def geometry(self) -> GeometryService:
        return self._geometry

    @property
    def exporter(self) -> ExportService:
        return self._exporter

    @property
    def busy(self) -> bool:
        return self._in_flight is not None and self._in_flight == self._context.run_id

    # ---- Async steps ----
    async def upload(self, data: bytes, name: Optional[str] = None) -> Optional[PipelineContext]:
        """Декодирует фото в рабочем потоке.

        Returns:
            Новый контекст или `None`, если пока шло декодирование, сессию сбросили
            или загрузили другое фото. Ошибка устаревшего прогона тоже даёт `None`.

        Raises:
            ValueError: данные не являются изображением (контекст остаётся прежним,
            но номер прогона уже новый).
        """
        previous = self._context
        started = pipeline.begin_upload(previous)
        run_id = started.run_id
        self._context = started
        self._in_flight = run_id
        try:
            source = await asyncio.to_thread(self._images.decode_bytes, data, name)
        except Exception as exc:
            if self._context.run_id != run_id:
                logger.info("Ignoring failed decode of stale run %d: %s", run_id, exc)
                return None
            if self._context is started:
                self._context = replace(previous, run_id=run_id)
            raise
        finally:
            if self._in_flight == run_id:
                self._in_flight = None

        if self._context.run_id != run_id:
            logger.info("Discarding stale decode of run %d (current run %d)", run_id, self._context.run_id)
            return None
        self._context = pipeline.attach_source(self._context, source)
        logger.info("Loaded %s: %dx%d", name or "image", source.width, source.height)
        return self._context

    async def export(self, deliver: Optional[Deliver] = None) -> Optional[ExportArtifact]:
        """Собирает и кодирует PNG; `deliver` вызывается только для актуального прогона.

        Raises:
            NotReadyError: шаг не «Компоновка» или экспорт этого прогона уже идёт.
            EncodingFailureError: ошибка кодирования актуального прогона (состояние не меняется).
        """
        ctx = self._context
        if ctx.step is not Step.COMPOSING or ctx.raster is None:
            raise NotReadyError("Экспорт доступен только после кадрирования")
        if self.busy:
            raise NotReadyError("Экспорт уже выполняется")

        surface = self.preview()
        run_id = ctx.run_id
        self._in_flight = run_id
        try:
            artifact = await asyncio.to_thread(self._exporter.export, surface, self.export_scale, ctx.name)
        except Exception as exc:
            if self._context.run_id != run_id:
                logger.info("Ignoring failed export of stale run %d: %s", run_id, exc)
                return None
            raise
        finally:
            if self._in_flight == run_id:
                self._in_flight = None

        if self._context.run_id != run_id:
            logger.info("Discarding stale export of run %d (current run %d)", run_id, self._context.run_id)
            return None
        if deliver is not None:
            deliver(artifact)
        return artifact

    # ---- Sync steps ----
    def crop(self, region: CropRegion, display: DisplayGeometry) -> PipelineContext:
        self._context = pipeline.update_crop(self._context, region, display)
        return self._context

    def confirm(self, pixel_density: Optional[float] = None) -> PipelineContext:
        """Строит растр и переходит к компоновке; при ошибке контекст не меняется."""
        density = pixel_density or self.pixel_density
        confirmed = pipeline.confirm_crop(self._context, self._geometry, self._raster, density)
        self._context = pipeline.advance(confirmed)
        return self._context

    def next(self) -> PipelineContext:
        self._context = pipeline.advance(self._context)
        return self._context

    def back(self) -> PipelineContext:
        self._context = pipeline.go_back(self._context)
        return self._context

    def set_text(self, name: Optional[str] = None, designation: Optional[str] = None) -> PipelineContext:
        self._context = pipeline.set_text(self._context, name=name, designation=designation)
        return self._context

    def reset(self) -> PipelineContext:
        self._context = pipeline.reset(self._context)
        self._in_flight = None
        logger.info("Session reset, run %d", self._context.run_id)
        return self._context

    def preview(self) -> ComposedSurface:
        return self._composer.compose(pipeline.template_for(self._context, self.layout))
