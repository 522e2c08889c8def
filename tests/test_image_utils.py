import numpy as np
import pytest

from irisfinder.core.iris_boundary import BoundaryType, IrisBoundary
from irisfinder.utils import image_utils


def test_to_bgr_from_gray_and_bgra():
    gray = np.full((20, 30), 50, dtype=np.uint8)
    assert image_utils.to_bgr(gray).shape == (20, 30, 3)

    bgra = np.zeros((20, 30, 4), dtype=np.uint8)
    assert image_utils.to_bgr(bgra).shape == (20, 30, 3)


def test_to_bgr_returns_copy():
    bgr = np.zeros((10, 10, 3), dtype=np.uint8)
    out = image_utils.to_bgr(bgr)
    out[0, 0] = 255
    assert bgr[0, 0, 0] == 0


def test_to_bgr_stretches_non_uint8():
    image = np.linspace(0, 1, 100, dtype=np.float32).reshape(10, 10)
    out = image_utils.to_bgr(image)
    assert out.dtype == np.uint8
    assert out.max() == 255


def test_draw_boundary():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    boundary = IrisBoundary(BoundaryType.PUPIL, 50, 50, 20, 20)
    image_utils.draw_boundary(image, boundary, image_utils.PUPIL_COLOR)
    # 원과 중심점이 그려진다
    assert tuple(image[50, 50]) == image_utils.PUPIL_COLOR
    assert image[50, 70, 2] > 0


def test_draw_boundary_skips_sentinel():
    image = np.zeros((50, 50, 3), dtype=np.uint8)
    image_utils.draw_boundary(image, IrisBoundary.not_found(BoundaryType.LIMBUS), image_utils.LIMBUS_COLOR)
    assert not image.any()


def test_draw_boundaries_keeps_input():
    gray = np.zeros((100, 100), dtype=np.uint8)
    pupil = IrisBoundary(BoundaryType.PUPIL, 50, 50, 10, 10)
    limbus = IrisBoundary(BoundaryType.LIMBUS, 50, 50, 40, 40)
    out = image_utils.draw_boundaries(gray, pupil, limbus)
    assert not gray.any()
    assert out[50, 90, 1] > 0
    assert out[50, 60, 2] > 0


@pytest.mark.parametrize("bad", ["not-an-image", np.zeros((0, 5)), np.zeros((2, 2, 2, 2))])
def test_validate_raises(bad):
    with pytest.raises(image_utils.ImageValidationError):
        image_utils.validate_eye_image(bad)
