import pytest
from pydantic import ValidationError

from frame_editor.config import Settings, get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("FRAME_EXPORT_SCALE", raising=False)
    settings = Settings()
    assert settings.export_scale == 3
    assert settings.default_file_stem == "photo"
    assert settings.file_suffix == "-frame.png"
    assert settings.pixel_density is None


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("FRAME_EXPORT_SCALE", "2")
    monkeypatch.setenv("FRAME_DEFAULT_FILE_STEM", "avatar")
    settings = Settings()
    assert settings.export_scale == 2
    assert settings.default_file_stem == "avatar"


def test_rejects_zero_scale():
    with pytest.raises(ValidationError):
        Settings(export_scale=0)


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
