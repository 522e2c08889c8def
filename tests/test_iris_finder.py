"""
Integration tests for IrisFinder
"""

import numpy as np
import pytest

from irisfinder.core import BoundaryType, FinderConfig, IrisBoundary, IrisFinder
from irisfinder.core.trace import MemoryTraceSink

from synthetic_eye import EYE_CENTER, EYE_LIMBUS_RADIUS, EYE_PUPIL_RADIUS


def test_boundaries_on_synthetic_eye(eye_image):
    pupil, limbus = IrisFinder(eye_image).boundaries()

    assert pupil.type == BoundaryType.PUPIL
    assert limbus.type == BoundaryType.LIMBUS
    assert np.isclose(pupil.x, EYE_CENTER[0], atol=3)
    assert np.isclose(pupil.y, EYE_CENTER[1], atol=3)
    assert np.isclose(pupil.a, EYE_PUPIL_RADIUS, atol=3)
    assert np.isclose(limbus.x, EYE_CENTER[0], atol=6)
    assert np.isclose((limbus.a + limbus.b) / 2, EYE_LIMBUS_RADIUS, atol=6)


def test_limbus_encloses_pupil(eye_image):
    pupil, limbus = IrisFinder(eye_image).boundaries()
    assert limbus.inside(pupil.x, pupil.y)
    assert min(limbus.a, limbus.b) > max(pupil.a, pupil.b)


def test_uniform_image_gives_two_sentinels(uniform_image):
    pupil, limbus = IrisFinder(uniform_image).boundaries()
    assert not pupil.found
    assert not limbus.found
    assert pupil.type == BoundaryType.PUPIL
    assert limbus.type == BoundaryType.LIMBUS


def test_no_image_raises():
    finder = IrisFinder()
    with pytest.raises(ValueError, match="No image set"):
        finder.boundaries()
    with pytest.raises(ValueError):
        finder.boundary_strength(IrisBoundary(BoundaryType.PUPIL, 10, 10, 20, 20))


def test_set_image_replaces_previous(uniform_image, pupil_image):
    finder = IrisFinder(uniform_image)
    assert not finder.pupil_boundary().found
    finder.set_image(pupil_image)
    assert finder.pupil_boundary().found


def test_boundary_strength_delegates_to_scorer(pupil_image):
    finder = IrisFinder(pupil_image)
    boundary = IrisBoundary(BoundaryType.PUPIL, 120, 120, 30, 30)
    assert finder.boundary_strength(boundary) == finder.scorer.strength(boundary)
    assert finder.boundary_strength(boundary) > 0


def test_custom_config_is_used(pupil_image):
    config = FinderConfig(min_pupil_radius=40)
    finder = IrisFinder(pupil_image, config)
    assert finder.boundary_strength(IrisBoundary(BoundaryType.PUPIL, 120, 120, 30, 30)) == 0


def test_trace_overlays(eye_image):
    trace = MemoryTraceSink()
    IrisFinder(eye_image, trace=trace).boundaries()

    for name in ("raw", "mask", "contrast", "hough_mask", "hough_lines", "hough"):
        assert name in trace.names
        overlay = trace.images[f"{name}_overlay"]
        assert overlay.shape == eye_image.shape + (3,)
    assert "limbus_profile" in trace.profiles


def test_disabled_trace_records_nothing(eye_image):
    finder = IrisFinder(eye_image)
    finder.boundaries()
    assert not finder.trace.enabled
    assert not hasattr(finder.trace, "images")
