"""Переходы конечного автомата мастера: Загрузка → Кадрирование → Компоновка.

Каждая функция принимает `PipelineContext` и возвращает новый; исходный объект
не меняется. Если переход невозможен, поднимается `NotReadyError`, и у вызывающего
остаётся прежний контекст.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Optional

from frame_editor.errors import NotReadyError
from frame_editor.models.crop_model import CropRegion
from frame_editor.models.image_model import DisplayGeometry, SourceImage
from frame_editor.models.pipeline_model import PipelineContext, Step
from frame_editor.models.template_model import TemplateLayout, TemplateModel
from frame_editor.services.geometry_service import GeometryService
from frame_editor.services.raster_service import RasterService


def initial_context() -> PipelineContext:
    return PipelineContext()


def begin_upload(ctx: PipelineContext) -> PipelineContext:
    """Новый прогон: сбрасывает фото, выделение и растр, но не текстовые поля."""
    return replace(
        ctx,
        run_id=ctx.run_id + 1,
        step=Step.UPLOADING,
        source=None,
        display=None,
        crop_region=None,
        confirmed_crop=None,
        raster=None,
    )


def attach_source(ctx: PipelineContext, source: SourceImage) -> PipelineContext:
    """Фото декодировано: переходим к кадрированию."""
    return replace(ctx, source=source, step=Step.CROPPING)


def update_crop(ctx: PipelineContext, region: CropRegion, display: DisplayGeometry) -> PipelineContext:
    """Выделение изменилось (ещё не подтверждено)."""
    if ctx.source is None:
        raise NotReadyError("Выделение без загруженного фото")
    return replace(ctx, crop_region=region, display=display)


def confirm_crop(
    ctx: PipelineContext,
    geometry: GeometryService,
    rasterizer: RasterService,
    pixel_density: float = 1.0,
) -> PipelineContext:
    """Фиксирует выделение и строит круглый растр. Шаг не меняется."""
    if ctx.step is not Step.CROPPING:
        raise NotReadyError("Подтвердить выделение можно только на шаге кадрирования")
    if ctx.source is None:
        raise NotReadyError("Фото не загружено")
    if ctx.display is None:
        raise NotReadyError("Фото ещё не показано")
    region = ctx.crop_region or geometry.center_aspect_crop(ctx.display.dims)
    crop_px = geometry.resolve(region, ctx.source.dims, ctx.display.dims)
    raster = rasterizer.rasterize(ctx.source, crop_px, pixel_density)
    return replace(ctx, crop_region=region, confirmed_crop=crop_px, raster=raster)


def advance(ctx: PipelineContext) -> PipelineContext:
    if ctx.step is Step.UPLOADING:
        if ctx.source is None:
            raise NotReadyError("Сначала выберите фото")
        return replace(ctx, step=Step.CROPPING)
    if ctx.step is Step.CROPPING:
        if ctx.confirmed_crop is None or ctx.raster is None:
            raise NotReadyError("Сначала подтвердите кадрирование")
        return replace(ctx, step=Step.COMPOSING)
    return ctx


def go_back(ctx: PipelineContext) -> PipelineContext:
    """Шаг назад без потери артефактов: фото и выделение остаются для повторного кадрирования."""
    if ctx.step is Step.COMPOSING:
        return replace(ctx, step=Step.CROPPING)
    if ctx.step is Step.CROPPING:
        return replace(ctx, step=Step.UPLOADING)
    return ctx


def set_text(ctx: PipelineContext, name: Optional[str] = None, designation: Optional[str] = None) -> PipelineContext:
    return replace(
        ctx,
        name=ctx.name if name is None else name,
        designation=ctx.designation if designation is None else designation,
    )


def reset(ctx: PipelineContext) -> PipelineContext:
    """Полный сброс: всё, кроме номера прогона, который продолжает расти."""
    return PipelineContext(run_id=ctx.run_id + 1)


def template_for(ctx: PipelineContext, layout: TemplateLayout) -> TemplateModel:
    return TemplateModel(layout=layout, name=ctx.name, designation=ctx.designation, raster=ctx.raster)
