import customtkinter as ctk

from frame_editor.config import Settings
from frame_editor.controllers.app_controller import AppController
from frame_editor.controllers.session import FrameSession
from frame_editor.ui.bottom_bar import BottomBar
from frame_editor.ui.crop_viewer import CropViewer
from frame_editor.ui.sidebar import Sidebar


class FrameEditorApp(ctk.CTk):
    def __init__(self, settings: Settings) -> None:
        super().__init__()
        ctk.set_appearance_mode("system")
        ctk.set_default_color_theme("blue")

        self.title("Frame Editor")
        self.minsize(900, 600)

        # root layout: left viewer, right sidebar
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=0)

        session = FrameSession.from_settings(settings)

        self._viewer = CropViewer(self, geometry=session.geometry)
        self._viewer.grid(row=0, column=0, sticky="nsew", padx=(12, 6), pady=(12, 6))

        self._sidebar = Sidebar(self)
        self._sidebar.grid(row=0, column=1, sticky="ns", padx=(6, 12), pady=(12, 6))

        self._bottom = BottomBar(self)
        self._bottom.grid(row=1, column=0, columnspan=2, sticky="ew", padx=12, pady=(0, 12))

        self._controller = AppController(
            viewer=self._viewer,
            sidebar=self._sidebar,
            bottom=self._bottom,
            window=self,
            session=session,
            settings=settings,
        )
        self._controller.bind_events()
