import io

import pytest
from PIL import Image

from frame_editor.errors import DrawingSurfaceUnavailableError, EncodingFailureError, NotReadyError
from frame_editor.models.artifact_model import ComposedSurface
from frame_editor.models.template_model import TemplateModel, classic_layout
from frame_editor.services.compose_service import ComposeService
from frame_editor.services.export_service import ExportService


@pytest.fixture
def surface():
    return ComposeService().compose(TemplateModel(layout=classic_layout(), name="Ada"))


@pytest.fixture
def exporter():
    return ExportService()


@pytest.mark.parametrize("scale", [1, 2, 3])
def test_exported_png_has_exact_scaled_size(exporter, surface, scale):
    artifact = exporter.export(surface, scale, "Ada")
    decoded = Image.open(io.BytesIO(artifact.data))
    assert decoded.format == "PNG"
    assert decoded.size == (320 * scale, 320 * scale)
    assert (artifact.width, artifact.height) == decoded.size


def test_export_at_scale_one_is_lossless(exporter, surface):
    artifact = exporter.export(surface, 1, "")
    decoded = Image.open(io.BytesIO(artifact.data)).convert("RGBA")
    assert decoded.tobytes() == surface.preview.tobytes()


def test_export_is_byte_identical_for_identical_input(exporter, surface):
    assert exporter.export(surface, 2, "Ada").data == exporter.export(surface, 2, "Ada").data


@pytest.mark.parametrize(
    "hint, expected",
    [
        ("", "photo-frame.png"),
        (None, "photo-frame.png"),
        ("   ", "photo-frame.png"),
        ("Jane Doe", "Jane Doe-frame.png"),
        ("a/b\\c", "a_b_c-frame.png"),
    ],
)
def test_file_name(exporter, hint, expected):
    assert exporter.file_name_for(hint) == expected


def test_custom_stem_and_suffix():
    assert ExportService(default_stem="frame", suffix=".png").file_name_for("") == "frame.png"


def test_missing_surface_is_not_ready(exporter):
    with pytest.raises(NotReadyError):
        exporter.export(None, 3, "x")


def test_bad_scale_is_rejected(exporter, surface):
    with pytest.raises(ValueError):
        exporter.export(surface, 0, "x")
    with pytest.raises(ValueError):
        exporter.export(surface, 1.5, "x")


def test_rasterize_failure_is_reported(exporter):
    def broken(_template, _scale):
        raise DrawingSurfaceUnavailableError("no surface")

    template = TemplateModel(layout=classic_layout())
    surface = ComposedSurface(template=template, size=(320, 320), preview=Image.new("RGBA", (320, 320)), renderer=broken)
    with pytest.raises(EncodingFailureError):
        exporter.export(surface, 3, "x")


def test_wrong_raster_size_is_reported(exporter):
    template = TemplateModel(layout=classic_layout())
    surface = ComposedSurface(
        template=template,
        size=(320, 320),
        preview=Image.new("RGBA", (320, 320)),
        renderer=lambda _t, _s: Image.new("RGBA", (10, 10)),
    )
    with pytest.raises(EncodingFailureError):
        exporter.export(surface, 2, "x")


def test_save_writes_complete_file(exporter, surface, tmp_path):
    artifact = exporter.export(surface, 1, "Ada")
    path = exporter.save(artifact, tmp_path / "out")
    assert path.name == "Ada-frame.png"
    assert path.read_bytes() == artifact.data


def test_save_with_explicit_name(exporter, surface, tmp_path):
    artifact = exporter.export(surface, 1, "Ada")
    path = exporter.save(artifact, tmp_path, "custom.png")
    assert path == tmp_path / "custom.png"
    assert path.exists()
