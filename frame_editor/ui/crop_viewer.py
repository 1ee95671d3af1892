"""Виджет просмотра: фото с квадратным выделением под круглый кроп и превью готовой рамки.

Принципы:
- SRP: отвечает только за представление и интеракции с изображением.
- Чистый код: чёткое разделение публичного API и внутренних обработчиков событий.
"""
from __future__ import annotations

from typing import Callable, Optional, Tuple

import customtkinter as ctk
import tkinter as tk
from PIL import Image, ImageTk

from frame_editor.models.crop_model import CropRegion
from frame_editor.models.image_model import DisplayGeometry
from frame_editor.services.geometry_service import GeometryService

_MIN_SIDE = 8  # px экрана; меньше считаем случайным кликом


class CropViewer(ctk.CTkFrame):
    """Канва с двумя режимами: «кадрирование» (фото + выделение) и «превью» (собранная рамка)."""
    def __init__(self, master: ctk.CTk | tk.Misc, geometry: GeometryService, **kwargs) -> None:
        super().__init__(master, **kwargs)
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)

        self._canvas = tk.Canvas(self, highlightthickness=0, bg=self._get_canvas_bg())
        self._canvas.grid(row=0, column=0, sticky="nsew")

        self._geometry = geometry
        self._image: Optional[Image.Image] = None
        self._preview: Optional[Image.Image] = None
        self._tk_image: Optional[ImageTk.PhotoImage] = None

        self._scale_factor: float = 1.0
        self._image_top_left: Optional[Tuple[int, int]] = None
        # selection is kept in % so it survives canvas resizes
        self._selection: Optional[CropRegion] = None

        # drag state: "move" | "draw"
        self._drag_mode: Optional[str] = None
        self._drag_anchor: Optional[Tuple[float, float]] = None
        self._drag_origin: Optional[CropRegion] = None

        self.on_crop_change: Optional[Callable[[CropRegion, DisplayGeometry], None]] = None

        self._canvas.bind("<Configure>", self._on_canvas_resize)
        self._canvas.bind("<ButtonPress-1>", self._on_press)
        self._canvas.bind("<B1-Motion>", self._on_drag)
        self._canvas.bind("<ButtonRelease-1>", self._on_release)

    # ---- Public API ----
    def set_image(self, image: Image.Image) -> None:
        """Показывает новое фото и ставит начальное выделение по центру."""
        self._image = image
        self._preview = None
        self._selection = None
        self._render()
        display = self.display_geometry()
        if display is not None:
            self._set_selection_px(self._geometry.center_aspect_crop(display.dims))
            self._emit_crop_change()

    def show_crop(self) -> None:
        """Возвращает режим кадрирования с прежним выделением."""
        self._preview = None
        self._render()

    def show_preview(self, image: Image.Image) -> None:
        self._preview = image
        self._render()

    def clear(self) -> None:
        self._image = None
        self._preview = None
        self._selection = None
        self._tk_image = None
        self._canvas.delete("all")

    def display_geometry(self) -> Optional[DisplayGeometry]:
        if self._image is None:
            return None
        img_w, img_h = self._image.size
        return DisplayGeometry(width=img_w * self._scale_factor, height=img_h * self._scale_factor)

    def selection_px(self) -> Optional[CropRegion]:
        display = self.display_geometry()
        if self._selection is None or display is None:
            return None
        return self._geometry.to_pixels(self._selection, display.dims)

    # ---- Internals ----
    def _on_canvas_resize(self, _event: tk.Event) -> None:
        if self._image is None and self._preview is None:
            return
        self._render()
        if self._preview is None and self._selection is not None:
            self._emit_crop_change()

    def _render(self) -> None:
        self._canvas.delete("all")
        canvas_w = int(self._canvas.winfo_width())
        canvas_h = int(self._canvas.winfo_height())

        if self._preview is not None:
            self._tk_image = ImageTk.PhotoImage(self._preview)
            self._canvas.create_image(canvas_w // 2, canvas_h // 2, image=self._tk_image, anchor="center")
            return
        if self._image is None:
            return

        self._compute_fit_scale()
        img_w, img_h = self._image.size
        scaled_w = max(1, int(img_w * self._scale_factor))
        scaled_h = max(1, int(img_h * self._scale_factor))
        ox = (canvas_w - scaled_w) // 2
        oy = (canvas_h - scaled_h) // 2
        self._image_top_left = (ox, oy)

        resized = self._image.resize((scaled_w, scaled_h), Image.Resampling.LANCZOS)
        self._tk_image = ImageTk.PhotoImage(resized)
        self._canvas.create_image(ox, oy, image=self._tk_image, anchor="nw")

        sel = self.selection_px()
        if sel is None:
            return
        x0, y0 = ox + sel.x, oy + sel.y
        x1, y1 = x0 + sel.width, y0 + sel.height
        # dim everything outside the selection
        for box in ((ox, oy, ox + scaled_w, y0), (ox, y1, ox + scaled_w, oy + scaled_h),
                    (ox, y0, x0, y1), (x1, y0, ox + scaled_w, y1)):
            self._canvas.create_rectangle(*box, fill="black", stipple="gray50", width=0)
        self._canvas.create_rectangle(x0, y0, x1, y1, outline="white", dash=(4, 3))
        self._canvas.create_oval(x0, y0, x1, y1, outline="white", width=2)

    def _compute_fit_scale(self) -> None:
        if self._image is None:
            self._scale_factor = 1.0
            return
        canvas_w = max(1, int(self._canvas.winfo_width()))
        canvas_h = max(1, int(self._canvas.winfo_height()))
        img_w, img_h = self._image.size
        if img_w == 0 or img_h == 0:
            self._scale_factor = 1.0
            return
        # only scale down, never enlarge the photo
        self._scale_factor = max(0.01, min(1.0, canvas_w / img_w, canvas_h / img_h))

    def _canvas_to_display(self, cx: int, cy: int) -> Optional[Tuple[float, float]]:
        if self._image_top_left is None:
            return None
        ox, oy = self._image_top_left
        return float(cx - ox), float(cy - oy)

    def _set_selection_px(self, region: CropRegion) -> None:
        display = self.display_geometry()
        if display is None:
            return
        self._selection = self._geometry.to_percent(self._geometry.clamp(region, display.dims), display.dims)
        self._render()

    def _emit_crop_change(self) -> None:
        region = self.selection_px()
        display = self.display_geometry()
        if self.on_crop_change and region is not None and display is not None:
            self.on_crop_change(region, display)

    def _get_canvas_bg(self) -> str:
        # CTk does not expose canvas theme, so pick neutral
        return "#1f1f1f" if ctk.get_appearance_mode().lower() == "dark" else "#f2f2f2"

    # ---- Selection drag ----
    def _on_press(self, event: tk.Event) -> None:
        if self._preview is not None or self._image is None:
            return
        point = self._canvas_to_display(event.x, event.y)
        display = self.display_geometry()
        if point is None or display is None:
            return
        px, py = point
        if not (0 <= px <= display.width and 0 <= py <= display.height):
            return
        sel = self.selection_px()
        self._drag_anchor = (px, py)
        self._drag_origin = sel
        if sel is not None and sel.x <= px <= sel.right and sel.y <= py <= sel.bottom:
            self._drag_mode = "move"
        else:
            self._drag_mode = "draw"

    def _on_drag(self, event: tk.Event) -> None:
        if self._drag_mode is None or self._drag_anchor is None:
            return
        point = self._canvas_to_display(event.x, event.y)
        display = self.display_geometry()
        if point is None or display is None:
            return
        ax, ay = self._drag_anchor
        px, py = point

        if self._drag_mode == "move" and self._drag_origin is not None:
            orig = self._drag_origin
            x = max(0.0, min(display.width - orig.width, orig.x + px - ax))
            y = max(0.0, min(display.height - orig.height, orig.y + py - ay))
            self._set_selection_px(CropRegion(x, y, orig.width, orig.height))
            return

        # draw a new square from the anchor towards the cursor
        sx = 1 if px >= ax else -1
        sy = 1 if py >= ay else -1
        room_x = display.width - ax if sx > 0 else ax
        room_y = display.height - ay if sy > 0 else ay
        side = min(max(abs(px - ax), abs(py - ay)), room_x, room_y)
        if side < _MIN_SIDE:
            return
        x = ax if sx > 0 else ax - side
        y = ay if sy > 0 else ay - side
        self._set_selection_px(CropRegion(x, y, side, side))

    def _on_release(self, _event: tk.Event) -> None:
        if self._drag_mode is not None:
            self._emit_crop_change()
        self._drag_mode = None
        self._drag_anchor = None
        self._drag_origin = None
