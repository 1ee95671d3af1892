import pytest

from frame_editor.errors import DrawingSurfaceUnavailableError
from frame_editor.services.surface import DrawingSurface


def test_detached_image_survives_exit():
    with DrawingSurface(10, 5) as surface:
        surface.draw.rectangle((0, 0, 4, 4), fill=(255, 0, 0, 255))
        image = surface.detach()
    assert image.size == (10, 5)
    assert image.getpixel((1, 1)) == (255, 0, 0, 255)


def test_surface_is_released_on_error():
    captured = {}
    with pytest.raises(RuntimeError):
        with DrawingSurface(4, 4) as surface:
            captured["surface"] = surface
            raise RuntimeError("boom")
    with pytest.raises(DrawingSurfaceUnavailableError):
        captured["surface"].image


@pytest.mark.parametrize("size", [(0, 10), (10, 0), (-1, -1)])
def test_invalid_size_is_unavailable(size):
    with pytest.raises(DrawingSurfaceUnavailableError):
        with DrawingSurface(*size):
            pass
