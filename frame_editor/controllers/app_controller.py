"""Контроллер приложения: оркестрация UI и сессии конвейера.

SOLID:
- SRP: класс управляет связями между UI и сессией (без логики обработки изображений).
- DIP: зависит от `FrameSession` как от роли; сервисы инкапсулированы внутри неё.
Clean Code:
- Обработчики компактны; асинхронные шаги (декодирование, экспорт) идут через
  event loop asyncio, который прокачивается из главного цикла Tk, поэтому всё состояние
  живёт в одном потоке.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from tkinter import filedialog, TclError
from typing import Any, Callable, Coroutine, Optional

import customtkinter as ctk

from frame_editor.config import Settings
from frame_editor.controllers.session import FrameSession
from frame_editor.errors import FrameEditorError, NotReadyError
from frame_editor.models.artifact_model import ExportArtifact
from frame_editor.models.crop_model import CropRegion
from frame_editor.models.image_model import DisplayGeometry
from frame_editor.models.pipeline_model import PipelineContext, Step
from frame_editor.ui.bottom_bar import BottomBar
from frame_editor.ui.crop_viewer import CropViewer
from frame_editor.ui.sidebar import Sidebar

logger = logging.getLogger(__name__)

_PUMP_MS = 20


@dataclass
class AppController:
    """Связывает элементы UI с сессией.

    Ответственности:
    - Инициализация и бинд событий (UI -> контроллер).
    - Запуск асинхронных шагов и доставка их результатов обратно в UI.
    - Показ ошибок в строке статуса; состояние сессии при ошибке не меняется.
    """
    viewer: CropViewer
    sidebar: Sidebar
    bottom: BottomBar
    window: ctk.CTk
    session: FrameSession
    settings: Settings

    _loop: asyncio.AbstractEventLoop = field(default_factory=asyncio.new_event_loop)
    _closed: bool = False

    def bind_events(self) -> None:
        """Регистрирует обработчики событий между UI-компонентами.

        Сохраняет слабую связность: компоненты UI ничего не знают друг о друге,
        общаются через контроллер.
        """
        self.sidebar.on_open_file = self._handle_open_file
        self.sidebar.on_text_change = self._handle_text_change
        self.viewer.on_crop_change = self._handle_crop_change

        self.bottom.on_back = self._handle_back
        self.bottom.on_next = self._handle_next
        self.bottom.on_download = self._handle_download
        self.bottom.on_start_over = self._handle_start_over

        self.window.protocol("WM_DELETE_WINDOW", self._handle_close)
        self.window.after(_PUMP_MS, self._pump)
        self._sync_ui()

    # ---- Handlers ----
    def _handle_open_file(self) -> None:
        try:
            file_path = filedialog.askopenfilename(
                title="Выберите фото",
                filetypes=(
                    ("Images", "*.png *.jpg *.jpeg *.webp"),
                    ("All files", "*.*"),
                ),
            )
        except TclError:
            # Silent fail if dialog cannot open
            return

        if not file_path:
            return

        path = Path(file_path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            self.bottom.set_status(f"Не удалось прочитать файл: {exc}", error=True)
            return

        # прежнее фото остаётся на экране, пока новое не декодировано
        self.bottom.set_status("Загрузка…")
        self._spawn(self.session.upload(data, name=str(path)), lambda ctx: self._on_uploaded(ctx, path))

    def _on_uploaded(self, ctx: Optional[PipelineContext], path: Path) -> None:
        if ctx is None:
            return  # stale: user started over or picked another photo
        source = ctx.source
        self.viewer.clear()
        self.sidebar.set_image_info(replace(source, path=path))
        self.viewer.set_image(source.pil_image)
        self.bottom.set_status("Перетащите рамку, чтобы выбрать область")
        self._sync_ui()

    def _handle_crop_change(self, region: CropRegion, display: DisplayGeometry) -> None:
        try:
            self.session.crop(region, display)
        except NotReadyError as exc:
            logger.debug("Crop ignored: %s", exc)

    def _handle_text_change(self, name: str, designation: str) -> None:
        self.session.set_text(name=name, designation=designation)
        if self.session.context.step is Step.COMPOSING:
            self._show_preview()

    def _handle_next(self) -> None:
        step = self.session.context.step
        try:
            if step is Step.CROPPING:
                self.session.confirm(self._pixel_density())
                self._show_preview()
                self.bottom.set_status("Введите имя и должность, затем скачайте PNG")
            else:
                self.session.next()
                self.viewer.show_crop()
        except FrameEditorError as exc:
            self.bottom.set_status(str(exc), error=True)
        self._sync_ui()

    def _handle_back(self) -> None:
        self.session.back()
        if self.session.context.step is Step.CROPPING:
            self.viewer.show_crop()
        self._sync_ui()

    def _handle_download(self) -> None:
        self.bottom.set_status("Экспорт…")
        self._spawn(self.session.export(deliver=self._deliver), self._on_exported)

    def _deliver(self, artifact: ExportArtifact) -> None:
        try:
            target = filedialog.asksaveasfilename(
                title="Сохранить рамку",
                initialdir=str(self.settings.output_dir),
                initialfile=artifact.file_name,
                defaultextension=".png",
                filetypes=(("PNG", "*.png"),),
            )
        except TclError:
            target = str(Path(self.settings.output_dir) / artifact.file_name)
        if not target:
            return
        path = Path(target)
        saved = self.session.exporter.save(artifact, path.parent, path.name)
        self.bottom.set_status(f"Сохранено: {saved}")

    def _on_exported(self, artifact: Optional[ExportArtifact]) -> None:
        if artifact is None:
            logger.info("Export result discarded")

    def _handle_start_over(self) -> None:
        self.session.reset()
        self.viewer.clear()
        self.sidebar.set_image_info(None)
        self.sidebar.set_fields("", "")
        self.bottom.set_status("Выберите фото, чтобы начать")
        self._sync_ui()

    def _handle_close(self) -> None:
        self._closed = True
        for task in asyncio.all_tasks(self._loop):
            task.cancel()
        self._run_loop_once()
        self._loop.close()
        self.window.destroy()

    # ---- Helpers ----
    def _show_preview(self) -> None:
        try:
            surface = self.session.preview()
        except FrameEditorError as exc:
            self.bottom.set_status(str(exc), error=True)
            return
        self.viewer.show_preview(surface.preview)

    def _sync_ui(self) -> None:
        ctx = self.session.context
        can_next = ctx.source is not None
        self.sidebar.set_step(ctx.step)
        self.bottom.set_step(ctx.step, can_next)

    def _restore_selection(self) -> None:
        """Возвращает в сессию выделение, которое сейчас видно на экране."""
        ctx = self.session.context
        if ctx.step is not Step.CROPPING or ctx.source is None:
            return
        region = self.viewer.selection_px()
        display = self.viewer.display_geometry()
        if region is not None and display is not None:
            self.session.crop(region, display)

    def _pixel_density(self) -> float:
        if self.settings.pixel_density:
            return self.settings.pixel_density
        try:
            return max(1.0, float(self.window.winfo_fpixels("1i")) / 96.0)
        except TclError:
            return 1.0

    def _spawn(self, coro: Coroutine[Any, Any, Any], on_result: Callable[[Any], None]) -> None:
        self.bottom.set_busy(True)
        task = self._loop.create_task(coro)
        task.add_done_callback(lambda t: self._finish(t, on_result))

    def _finish(self, task: asyncio.Task, on_result: Callable[[Any], None]) -> None:
        if self._closed or task.cancelled():
            return
        self.bottom.set_busy(False)
        exc = task.exception()
        if exc is not None:
            if isinstance(exc, (FrameEditorError, ValueError, OSError)):
                self.bottom.set_status(str(exc), error=True)
            else:
                logger.error("Background step failed", exc_info=exc)
                self.bottom.set_status(f"Ошибка: {exc}", error=True)
            self._restore_selection()
            self._sync_ui()
            return
        on_result(task.result())
        self._sync_ui()

    def _pump(self) -> None:
        if self._closed:
            return
        self._run_loop_once()
        self.window.after(_PUMP_MS, self._pump)

    def _run_loop_once(self) -> None:
        # one iteration: ready callbacks, including results from worker threads
        self._loop.call_soon(self._loop.stop)
        self._loop.run_forever()
