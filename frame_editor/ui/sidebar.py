"""Боковая панель: открытие фото, информация о нём и поля рамки (имя, должность).

Принципы:
- SRP: управляет только UI параметров, не содержит логики конвейера.
- ISP: выдаёт значения через компактные методы, события через `on_*`.
"""
from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

from frame_editor.models.image_model import SourceImage
from frame_editor.models.pipeline_model import Step

_STEP_TITLES = {
    Step.UPLOADING: "Шаг 1: загрузите фото",
    Step.CROPPING: "Шаг 2: выделите лицо",
    Step.COMPOSING: "Шаг 3: имя, должность и скачивание",
}


def _format_bytes(size: Optional[int]) -> str:
    if size is None:
        return "—"
    if size < 1024:
        return f"{size} Б"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} КБ"
    return f"{size / (1024 * 1024):.1f} МБ"


class Sidebar(ctk.CTkFrame):
    """Панель с блоками: шаг, файл, информация, данные рамки."""
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, width=280, **kwargs)

        self.grid_columnconfigure(0, weight=1)

        # Callbacks
        self.on_open_file: Optional[Callable[[], None]] = None
        self.on_text_change: Optional[Callable[[str, str], None]] = None

        self._title = ctk.CTkLabel(self, text="Редактор рамки", font=ctk.CTkFont(size=18, weight="bold"))
        self._title.grid(row=0, column=0, padx=8, pady=(8, 0), sticky="w")
        self._step_val = ctk.StringVar(value=_STEP_TITLES[Step.UPLOADING])
        self._step_label = ctk.CTkLabel(self, textvariable=self._step_val, anchor="w")
        self._step_label.grid(row=1, column=0, padx=8, pady=(0, 8), sticky="ew")

        self._open_btn = ctk.CTkButton(self, text="Выбрать фото…", command=self._emit_open_file)
        self._open_btn.grid(row=2, column=0, padx=8, pady=(0, 12), sticky="ew")

        # Info section
        self._info_title = ctk.CTkLabel(self, text="Фото", font=ctk.CTkFont(size=16, weight="bold"))
        self._info_title.grid(row=3, column=0, padx=8, pady=(8, 4), sticky="w")

        self._path_val = ctk.StringVar(value="—")
        self._dims_val = ctk.StringVar(value="—")
        self._size_val = ctk.StringVar(value="—")

        self._info_path = ctk.CTkLabel(self, textvariable=self._path_val, wraplength=250, anchor="w", justify="left")
        self._info_dims = ctk.CTkLabel(self, textvariable=self._dims_val, anchor="w", justify="left")
        self._info_size = ctk.CTkLabel(self, textvariable=self._size_val, anchor="w", justify="left")

        self._info_path.grid(row=4, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._info_dims.grid(row=5, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._info_size.grid(row=6, column=0, padx=8, pady=(0, 10), sticky="ew")

        # Frame details
        self._details_title = ctk.CTkLabel(self, text="Данные", font=ctk.CTkFont(size=16, weight="bold"))
        self._details_title.grid(row=7, column=0, padx=8, pady=(8, 4), sticky="w")

        self._name_val = ctk.StringVar(value="")
        self._designation_val = ctk.StringVar(value="")
        # CTkEntry не показывает placeholder_text при textvariable, поэтому подписи отдельно
        self._name_label = ctk.CTkLabel(self, text="Полное имя", anchor="w")
        self._name_entry = ctk.CTkEntry(self, textvariable=self._name_val)
        self._designation_label = ctk.CTkLabel(self, text="Должность", anchor="w")
        self._designation_entry = ctk.CTkEntry(self, textvariable=self._designation_val)
        self._name_label.grid(row=8, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._name_entry.grid(row=9, column=0, padx=8, pady=(0, 6), sticky="ew")
        self._designation_label.grid(row=10, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._designation_entry.grid(row=11, column=0, padx=8, pady=(0, 8), sticky="ew")
        self._suspend_trace = False
        self._name_val.trace_add("write", self._emit_text_change)
        self._designation_val.trace_add("write", self._emit_text_change)

        # filler
        self.grid_rowconfigure(99, weight=1)

    # ---- Public API ----
    def set_step(self, step: Step) -> None:
        self._step_val.set(_STEP_TITLES[step])
        state = "normal" if step is Step.COMPOSING else "disabled"
        self._name_entry.configure(state=state)
        self._designation_entry.configure(state=state)
        self._open_btn.configure(state="disabled" if step is Step.COMPOSING else "normal")

    def set_image_info(self, source: Optional[SourceImage]) -> None:
        if source is None:
            self._path_val.set("—")
            self._dims_val.set("—")
            self._size_val.set("—")
            return
        self._path_val.set(str(source.path) if source.path else "—")
        self._dims_val.set(f"{source.width} × {source.height} px")
        self._size_val.set(_format_bytes(source.size_bytes))

    def set_fields(self, name: str, designation: str) -> None:
        """Обновляет поля без генерации `on_text_change`."""
        self._suspend_trace = True
        try:
            self._name_val.set(name)
            self._designation_val.set(designation)
        finally:
            self._suspend_trace = False

    # ---- Events ----
    def _emit_open_file(self) -> None:
        if self.on_open_file:
            self.on_open_file()

    def _emit_text_change(self, *_args: object) -> None:
        if self._suspend_trace or self.on_text_change is None:
            return
        self.on_text_change(self._name_val.get(), self._designation_val.get())
