import numpy as np
import pytest
from PIL import Image

from frame_editor.errors import DrawingSurfaceUnavailableError
from frame_editor.models.crop_model import PixelCrop
from frame_editor.models.image_model import SourceImage
from frame_editor.models.template_model import TemplateModel, classic_layout
from frame_editor.services.compose_service import ComposeService, linear_gradient
from frame_editor.services.raster_service import RasterService


@pytest.fixture
def composer():
    return ComposeService()


@pytest.fixture
def layout():
    return classic_layout()


@pytest.fixture
def raster(source):
    return RasterService().rasterize(source, PixelCrop(200, 200, 400, 400), 1.0)


def _photo_center(layout, scale=1.0):
    slot = layout.photo
    c = slot.x + slot.size / 2
    return round(c * scale), round((slot.y + slot.size / 2) * scale)


def test_compose_has_fixed_logical_size(composer, layout):
    surface = composer.compose(TemplateModel(layout=layout))
    assert surface.size == (320, 320)
    assert surface.preview.size == (320, 320)
    assert surface.preview.mode == "RGBA"


def test_compose_is_idempotent(composer, layout, raster):
    model = TemplateModel(layout=layout, name="Ada Lovelace", designation="Engineer", raster=raster)
    first = composer.compose(model).preview.tobytes()
    second = composer.compose(model).preview.tobytes()
    assert first == second


def test_compose_reflects_latest_model_only(composer, layout):
    base = TemplateModel(layout=layout)
    edited = base.with_text(name="Grace Hopper")
    composer.compose(edited)
    again = composer.compose(base)
    assert again.preview.tobytes() == composer.compose(base).preview.tobytes()
    assert again.preview.tobytes() != composer.compose(edited).preview.tobytes()


def test_empty_fields_use_placeholders(layout):
    model = TemplateModel(layout=layout, name="  ", designation="")
    assert model.display_name == "Your Name"
    assert model.display_designation == "Designation"


def test_empty_fields_render_same_as_explicit_placeholders(composer, layout):
    empty = composer.compose(TemplateModel(layout=layout))
    explicit = composer.compose(TemplateModel(layout=layout, name="Your Name", designation="Designation"))
    assert empty.preview.tobytes() == explicit.preview.tobytes()


def test_placeholder_and_photo_occupy_same_slot(composer, layout, raster):
    without = composer.compose(TemplateModel(layout=layout)).preview
    with_photo = composer.compose(TemplateModel(layout=layout, raster=raster)).preview
    cx, cy = _photo_center(layout)
    assert without.getpixel((cx, cy)) != with_photo.getpixel((cx, cy))
    # outside the slot the layout is untouched by the photo
    assert without.getpixel((160, 300)) == with_photo.getpixel((160, 300))


def test_photo_pixels_come_from_raster(composer, layout):
    red = Image.new("RGBA", (400, 400), (255, 0, 0, 255))
    red_source = SourceImage(pil_image=red, width=400, height=400)
    raster = RasterService().rasterize(red_source, PixelCrop(0, 0, 400, 400), 1.0)
    preview = composer.compose(TemplateModel(layout=layout, raster=raster)).preview
    assert preview.getpixel(_photo_center(layout))[:3] == (255, 0, 0)


def test_rounded_corners_are_transparent(composer, layout):
    preview = composer.compose(TemplateModel(layout=layout)).preview
    assert preview.getpixel((0, 0))[3] == 0
    assert preview.getpixel((319, 319))[3] == 0
    assert preview.getpixel((160, 10))[3] == 255


def test_render_scales_exactly(composer, layout, raster):
    image = composer.render(TemplateModel(layout=layout, raster=raster), 3)
    assert image.size == (960, 960)


def test_long_names_are_fitted(composer, layout):
    model = TemplateModel(layout=layout, name="A" * 200)
    # must not raise and keeps the logical size
    assert composer.compose(model).preview.size == (320, 320)


def test_render_rejects_bad_scale(composer, layout):
    with pytest.raises(ValueError):
        composer.render(TemplateModel(layout=layout), 0)


def test_tiny_scale_cannot_get_a_surface(composer, layout):
    with pytest.raises(DrawingSurfaceUnavailableError):
        composer.render(TemplateModel(layout=layout), 0.001)


def test_logo_image_is_used(layout):
    logo = Image.new("RGBA", (64, 32), (0, 255, 0, 255))
    preview = ComposeService(logo=logo).compose(TemplateModel(layout=layout)).preview
    # logo sits 16px from the bottom-right corner, 32px tall
    r, g, b, _a = preview.getpixel((320 - 16 - 10, 320 - 16 - 10))
    assert g > r and g > b


def test_linear_gradient_runs_between_stops():
    grad = np.asarray(linear_gradient(100, 100, [(0, 0, 0, 255), (200, 200, 200, 255)], "br"))
    assert grad[0, 0, 0] < grad[50, 50, 0] < grad[99, 99, 0]
    flipped = np.asarray(linear_gradient(100, 100, [(0, 0, 0, 255), (200, 200, 200, 255)], "tl"))
    assert flipped[0, 0, 0] > flipped[99, 99, 0]


def test_whitespace_only_fields_show_placeholders():
    model = TemplateModel(layout=classic_layout(), name="   ", designation="\t")
    assert model.display_name == "Your Name"
    assert model.display_designation == "Designation"
