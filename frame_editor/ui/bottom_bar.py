from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

from frame_editor.models.pipeline_model import Step


class BottomBar(ctk.CTkFrame):
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, height=64, **kwargs)

        # callbacks
        self.on_back: Optional[Callable[[], None]] = None
        self.on_next: Optional[Callable[[], None]] = None
        self.on_download: Optional[Callable[[], None]] = None
        self.on_start_over: Optional[Callable[[], None]] = None

        # layout
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)  # status stretches

        self._status_val = ctk.StringVar(value="Выберите фото, чтобы начать")
        self._status = ctk.CTkLabel(self, textvariable=self._status_val, anchor="w")
        self._status.grid(row=0, column=0, padx=(10, 6), pady=8, sticky="ew")

        self._start_over_btn = ctk.CTkButton(
            self, text="Начать заново", width=120, fg_color="transparent", border_width=1, command=self._emit_start_over
        )
        self._start_over_btn.grid(row=0, column=1, padx=6, pady=8)

        self._back_btn = ctk.CTkButton(self, text="← Назад", width=100, command=self._emit_back)
        self._back_btn.grid(row=0, column=2, padx=6, pady=8)

        self._next_btn = ctk.CTkButton(self, text="Далее →", width=140, command=self._emit_next)
        self._next_btn.grid(row=0, column=3, padx=6, pady=8)

        self._download_btn = ctk.CTkButton(self, text="Скачать PNG", width=140, command=self._emit_download)
        self._download_btn.grid(row=0, column=4, padx=(6, 10), pady=8)

        self._busy = False
        self._step = Step.UPLOADING
        self._can_next = False
        self._refresh()

    # public API (sync from controller)
    def set_step(self, step: Step, can_next: bool) -> None:
        self._step = step
        self._can_next = can_next
        self._next_btn.configure(text="Кадрировать →" if step is Step.CROPPING else "Далее →")
        self._refresh()

    def set_busy(self, busy: bool) -> None:
        self._busy = busy
        self._refresh()

    def set_status(self, text: str, error: bool = False) -> None:
        self._status_val.set(text)
        self._status.configure(text_color=("#B91C1C", "#F87171") if error else ("gray10", "gray90"))

    # events
    def _emit_back(self) -> None:
        if self.on_back:
            self.on_back()

    def _emit_next(self) -> None:
        if self.on_next:
            self.on_next()

    def _emit_download(self) -> None:
        if self.on_download:
            self.on_download()

    def _emit_start_over(self) -> None:
        if self.on_start_over:
            self.on_start_over()

    # helpers
    def _refresh(self) -> None:
        def state(enabled: bool) -> str:
            return "normal" if enabled and not self._busy else "disabled"

        self._back_btn.configure(state=state(self._step is not Step.UPLOADING))
        self._next_btn.configure(state=state(self._step is not Step.COMPOSING and self._can_next))
        self._download_btn.configure(state=state(self._step is Step.COMPOSING))
        self._start_over_btn.configure(state="normal")
