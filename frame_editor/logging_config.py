from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Настраивает корневой логгер. Вызывается только из точки входа."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=_FORMAT)
    # Pillow очень разговорчив на DEBUG при разборе PNG-чанков
    logging.getLogger("PIL").setLevel(max(level, logging.INFO))
