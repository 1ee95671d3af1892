import asyncio
import io
import threading

import pytest
from PIL import Image

from frame_editor.config import Settings
from frame_editor.controllers.session import FrameSession
from frame_editor.errors import EncodingFailureError, NotReadyError
from frame_editor.models.crop_model import CropRegion
from frame_editor.models.image_model import DisplayGeometry
from frame_editor.models.pipeline_model import Step
from frame_editor.services.export_service import ExportService
from frame_editor.services.image_service import ImageService

DISPLAY = DisplayGeometry(250, 200)


class GatedExportService(ExportService):
    """Экспорт, который ждёт разрешения теста, прежде чем вернуть результат."""

    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def export(self, surface, scale_factor=3, file_name_hint=None):
        self.started.set()
        self.release.wait(timeout=5)
        return super().export(surface, scale_factor, file_name_hint)


class GatedImageService(ImageService):
    def __init__(self):
        self.release = threading.Event()

    def decode_bytes(self, data, name=None):
        self.release.wait(timeout=5)
        return super().decode_bytes(data, name)


class FailingExportService(GatedExportService):
    def export(self, surface, scale_factor=3, file_name_hint=None):
        self.started.set()
        self.release.wait(timeout=5)
        raise EncodingFailureError("PNG encoder gave up")


async def _to_composing(session, png_bytes):
    await session.upload(png_bytes, name="gradient.png")
    session.crop(CropRegion(50, 50, 100, 100), DISPLAY)
    session.confirm(1.0)


def test_full_run_delivers_png(png_bytes):
    session = FrameSession(export_scale=2)
    delivered = []

    async def scenario():
        await _to_composing(session, png_bytes)
        assert session.context.step is Step.COMPOSING
        return await session.export(deliver=delivered.append)

    artifact = asyncio.run(scenario())
    assert delivered == [artifact]
    assert artifact.file_name == "photo-frame.png"
    assert Image.open(io.BytesIO(artifact.data)).size == (640, 640)


def test_name_drives_file_name(png_bytes):
    session = FrameSession(export_scale=1)

    async def scenario():
        await _to_composing(session, png_bytes)
        session.set_text(name="Ada", designation="Engineer")
        return await session.export()

    assert asyncio.run(scenario()).file_name == "Ada-frame.png"


def test_export_before_composing_is_not_ready(png_bytes):
    session = FrameSession()

    async def scenario():
        await session.upload(png_bytes)
        await session.export()

    with pytest.raises(NotReadyError):
        asyncio.run(scenario())
    assert session.context.step is Step.CROPPING


def test_reset_mid_export_discards_result(png_bytes):
    exporter = GatedExportService()
    session = FrameSession(export_service=exporter, export_scale=1)
    delivered = []

    async def scenario():
        await _to_composing(session, png_bytes)
        task = asyncio.create_task(session.export(deliver=delivered.append))
        await asyncio.to_thread(exporter.started.wait, 5)
        session.reset()
        exporter.release.set()
        return await task

    assert asyncio.run(scenario()) is None
    assert delivered == []
    assert session.context.step is Step.UPLOADING
    assert session.context.source is None


def test_second_export_while_first_in_flight_is_rejected(png_bytes):
    exporter = GatedExportService()
    session = FrameSession(export_service=exporter, export_scale=1)

    async def scenario():
        await _to_composing(session, png_bytes)
        task = asyncio.create_task(session.export())
        await asyncio.to_thread(exporter.started.wait, 5)
        assert session.busy
        with pytest.raises(NotReadyError):
            await session.export()
        exporter.release.set()
        return await task

    assert asyncio.run(scenario()) is not None
    assert not session.busy


def test_stale_upload_is_discarded(png_bytes):
    images = GatedImageService()
    session = FrameSession(image_service=images)

    async def scenario():
        task = asyncio.create_task(session.upload(png_bytes))
        await asyncio.sleep(0)
        session.reset()
        images.release.set()
        return await task

    assert asyncio.run(scenario()) is None
    assert session.context.source is None
    assert session.context.step is Step.UPLOADING


def test_failed_decode_after_reset_is_discarded():
    images = GatedImageService()
    session = FrameSession(image_service=images)

    async def scenario():
        task = asyncio.create_task(session.upload(b"garbage"))
        await asyncio.sleep(0)
        session.reset()
        images.release.set()
        return await task

    assert asyncio.run(scenario()) is None
    assert session.context.step is Step.UPLOADING
    assert session.context.source is None


def test_failed_export_after_reset_is_discarded(png_bytes):
    exporter = FailingExportService()
    session = FrameSession(export_service=exporter, export_scale=1)
    delivered = []

    async def scenario():
        await _to_composing(session, png_bytes)
        task = asyncio.create_task(session.export(deliver=delivered.append))
        await asyncio.to_thread(exporter.started.wait, 5)
        session.reset()
        exporter.release.set()
        return await task

    assert asyncio.run(scenario()) is None
    assert delivered == []


def test_failed_export_of_current_run_is_raised(png_bytes):
    exporter = FailingExportService()
    exporter.release.set()
    session = FrameSession(export_service=exporter, export_scale=1)

    async def scenario():
        await _to_composing(session, png_bytes)
        await session.export()

    with pytest.raises(EncodingFailureError):
        asyncio.run(scenario())
    assert session.context.step is Step.COMPOSING
    assert not session.busy


def test_newer_upload_wins(png_bytes):
    images = GatedImageService()
    session = FrameSession(image_service=images)
    other = io.BytesIO()
    Image.new("RGB", (50, 40), (10, 20, 30)).save(other, format="PNG")

    async def scenario():
        first = asyncio.create_task(session.upload(png_bytes, name="first"))
        await asyncio.sleep(0)
        second = asyncio.create_task(session.upload(other.getvalue(), name="second"))
        await asyncio.sleep(0)
        images.release.set()
        return await first, await second

    first, second = asyncio.run(scenario())
    assert first is None
    assert second.source.dims == (50, 40)
    assert session.context.source.dims == (50, 40)


def test_failed_upload_keeps_previous_photo(png_bytes):
    session = FrameSession()

    async def scenario():
        await session.upload(png_bytes)
        await session.upload(b"garbage")

    with pytest.raises(ValueError):
        asyncio.run(scenario())
    assert session.context.source is not None
    assert session.context.step is Step.CROPPING


def test_failed_confirm_keeps_context(png_bytes):
    session = FrameSession()
    asyncio.run(session.upload(png_bytes))
    before = session.context
    with pytest.raises(NotReadyError):
        session.confirm()  # nothing shown yet, so no display geometry
    assert session.context is before


def test_back_from_composing_preserves_selection(png_bytes):
    session = FrameSession()
    asyncio.run(_to_composing(session, png_bytes))
    region = session.context.crop_region
    session.back()
    assert session.context.step is Step.CROPPING
    assert session.context.crop_region == region
    assert session.context.source is not None


def test_preview_uses_placeholders(png_bytes):
    session = FrameSession()
    surface = session.preview()
    assert surface.template.display_name == "Your Name"
    assert surface.template.display_designation == "Designation"
    assert surface.template.raster is None


def test_from_settings_applies_export_options():
    settings = Settings(export_scale=2, default_file_stem="frame", pixel_density=2.0)
    session = FrameSession.from_settings(settings)
    assert session.export_scale == 2
    assert session.pixel_density == 2.0
    assert session.exporter.file_name_for("") == "frame-frame.png"


def test_confirm_after_going_back_to_upload_is_rejected(png_bytes):
    session = FrameSession()
    asyncio.run(session.upload(png_bytes))
    session.crop(CropRegion(50, 50, 100, 100), DISPLAY)
    session.back()
    before = session.context
    with pytest.raises(NotReadyError):
        session.confirm(1.0)
    assert session.context is before
    assert session.context.raster is None
