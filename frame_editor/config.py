"""Конфигурация приложения: переменные окружения с префиксом `FRAME_` или файл `.env`."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from a .env file if present (local dev only)
load_dotenv()


class Settings(BaseSettings):
    """Параметры конвейера, которые имеет смысл менять без правки кода."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="FRAME_", case_sensitive=False, extra="ignore")

    # Export
    export_scale: int = Field(3, ge=1, le=8, description="Множитель разрешения итогового PNG.")
    default_file_stem: str = Field("photo", description="Имя файла, если поле имени пустое.")
    file_suffix: str = Field("-frame.png", description="Суффикс имени экспортируемого файла.")
    output_dir: Path = Field(Path("."), description="Каталог по умолчанию для сохранения результата.")

    # Crop
    pixel_density: Optional[float] = Field(
        default=None, gt=0, description="Плотность пикселей экрана; None — взять у окна."
    )
    crop_percent: float = Field(90.0, gt=0, le=100, description="Размер начального кропа от короткой стороны, %.")

    # Template assets
    font_path: Optional[str] = Field(default=None, description="TTF для обычного текста.")
    bold_font_path: Optional[str] = Field(default=None, description="TTF для имени.")
    logo_path: Optional[Path] = Field(default=None, description="PNG логотипа; без него рисуется текстовый знак.")

    # Misc
    log_level: str = Field("INFO")


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()
