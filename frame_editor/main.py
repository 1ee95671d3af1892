"""Точка входа: окно мастера или, если передан путь к фото, рендер без GUI."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from frame_editor.config import Settings, get_settings
from frame_editor.controllers.session import FrameSession
from frame_editor.errors import FrameEditorError
from frame_editor.logging_config import configure_logging
from frame_editor.models.crop_model import CropRegion
from frame_editor.models.image_model import DisplayGeometry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="frame-editor", description="Круглое фото в декоративной рамке.")
    parser.add_argument("input", nargs="?", type=Path, help="Фото для рендера без GUI.")
    parser.add_argument("--crop", nargs=4, type=float, metavar=("X", "Y", "W", "H"),
                        help="Выделение в пикселях показа (по умолчанию — квадрат по центру).")
    parser.add_argument("--percent", action="store_true", help="Значения --crop в процентах показа.")
    parser.add_argument("--display", nargs=2, type=float, metavar=("W", "H"),
                        help="Размер показа, к которому относится --crop (по умолчанию натуральный).")
    parser.add_argument("--name", default="", help="Имя.")
    parser.add_argument("--designation", default="", help="Должность.")
    parser.add_argument("--scale", type=int, default=None, help="Множитель экспорта.")
    parser.add_argument("--density", type=float, default=None, help="Плотность пикселей кропа.")
    parser.add_argument("--out", type=Path, default=None, help="Каталог для PNG.")
    return parser


async def render_headless(args: argparse.Namespace, settings: Settings) -> Path:
    """Прогоняет конвейер целиком: загрузка → кроп → компоновка → экспорт → файл."""
    session = FrameSession.from_settings(settings)
    if args.scale is not None:
        session.export_scale = args.scale

    ctx = await session.upload(args.input.read_bytes(), name=str(args.input))
    if ctx is None or ctx.source is None:
        raise FrameEditorError("Загрузка отменена")

    display = DisplayGeometry(*(args.display or ctx.source.dims))
    if args.crop:
        region = CropRegion(*args.crop, unit="%" if args.percent else "px")
    else:
        region = session.geometry.center_aspect_crop(display.dims)
    session.crop(region, display)
    session.confirm(args.density or settings.pixel_density or 1.0)
    session.set_text(name=args.name, designation=args.designation)

    out_dir = args.out or settings.output_dir
    saved: list[Path] = []
    artifact = await session.export(deliver=lambda a: saved.append(session.exporter.save(a, out_dir)))
    if artifact is None or not saved:
        raise FrameEditorError("Экспорт отменён")
    return saved[0]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Разбирает аргументы и запускает GUI или рендер без GUI."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    if args.input is None:
        # GUI imports tkinter; keep headless runs free of it
        from frame_editor.app import FrameEditorApp

        app = FrameEditorApp(settings)
        app.mainloop()
        return 0

    try:
        path = asyncio.run(render_headless(args, settings))
    except (FrameEditorError, ValueError, OSError) as exc:
        logger.error("Render failed: %s", exc)
        return 1
    print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
