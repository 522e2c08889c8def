"""
Unit tests for BoundaryScorer
"""

import pytest

from irisfinder.core.boundary_scorer import BoundaryScorer
from irisfinder.core.config import FinderConfig
from irisfinder.core.iris_boundary import BoundaryType, IrisBoundary
from irisfinder.core.preprocessor import Preprocessor

from synthetic_eye import EYE_CENTER, EYE_LIMBUS_RADIUS, PUPIL_CENTER, PUPIL_RADIUS, make_pupil_image


def scorer_for(image, config=None):
    config = config or FinderConfig()
    return BoundaryScorer(Preprocessor(config).process(image), config)


@pytest.fixture
def pupil_scorer(pupil_image):
    return scorer_for(pupil_image)


def pupil_at(x, y, a, b=None):
    return IrisBoundary(BoundaryType.PUPIL, x, y, a, a if b is None else b)


def test_true_pupil_scores_positive(pupil_scorer):
    assert pupil_scorer.strength(pupil_at(*PUPIL_CENTER, PUPIL_RADIUS)) > 0


def test_true_pupil_beats_displaced_fits(pupil_scorer):
    best = pupil_scorer.strength(pupil_at(*PUPIL_CENTER, PUPIL_RADIUS))
    cx, cy = PUPIL_CENTER
    assert best > pupil_scorer.strength(pupil_at(cx + 8, cy, PUPIL_RADIUS))
    assert best > pupil_scorer.strength(pupil_at(cx, cy - 8, PUPIL_RADIUS))
    assert best > pupil_scorer.strength(pupil_at(cx, cy, PUPIL_RADIUS + 15))
    assert best > pupil_scorer.strength(pupil_at(cx, cy, PUPIL_RADIUS - 12))


def test_below_minimum_pupil_radius_scores_zero(pupil_scorer):
    assert pupil_scorer.strength(pupil_at(*PUPIL_CENTER, 10)) == 0
    assert pupil_scorer.strength(pupil_at(*PUPIL_CENTER, 30, 10.9)) == 0


def test_below_minimum_limbus_radius_scores_zero(pupil_scorer):
    for boundary_type in (BoundaryType.LIMBUS, BoundaryType.LEFT_LIMBUS, BoundaryType.RIGHT_LIMBUS):
        boundary = IrisBoundary(boundary_type, *PUPIL_CENTER, PUPIL_RADIUS, PUPIL_RADIUS)
        assert pupil_scorer.strength(boundary) == 0


def test_uniform_image_scores_zero(uniform_image):
    scorer = scorer_for(uniform_image)
    assert scorer.strength(pupil_at(100, 100, 30)) == 0


def test_inward_gradient_scores_zero():
    # Bright disk on a dark background: the gradient points toward the center.
    image = make_pupil_image(background=20, pupil=200)
    scorer = scorer_for(image)
    assert scorer.strength(pupil_at(*PUPIL_CENTER, PUPIL_RADIUS)) == 0


def test_boundary_outside_image_scores_zero(pupil_scorer):
    assert pupil_scorer.strength(pupil_at(1000, 1000, 30)) == 0


def test_scores_are_non_negative(pupil_scorer):
    for radius in range(11, 80, 7):
        for dx in (-20, 0, 20):
            boundary = pupil_at(PUPIL_CENTER[0] + dx, PUPIL_CENTER[1], radius)
            assert pupil_scorer.strength(boundary) >= 0


def test_eccentric_fit_is_penalized(pupil_scorer):
    circle = pupil_scorer.strength(pupil_at(*PUPIL_CENTER, PUPIL_RADIUS))
    ellipse = pupil_scorer.strength(pupil_at(*PUPIL_CENTER, PUPIL_RADIUS, PUPIL_RADIUS + 6))
    assert circle > ellipse


def test_masked_samples_do_not_count(pupil_image):
    unmasked = scorer_for(pupil_image).strength(pupil_at(*PUPIL_CENTER, PUPIL_RADIUS))

    scorer = scorer_for(pupil_image)
    mask = scorer.preprocessed.mask.copy()
    mask[:, : PUPIL_CENTER[0]] = 0
    pre = scorer.preprocessed
    scorer.preprocessed = type(pre)(pre.raw, pre.image, mask, pre.grad_x, pre.grad_y, pre.grad_mag)
    assert 0 < scorer.strength(pupil_at(*PUPIL_CENTER, PUPIL_RADIUS)) < unmasked


def test_strict_angle_tolerance_scores_zero(pupil_image):
    # Every sample rejected once the tolerance is above any possible cosine.
    scorer = scorer_for(pupil_image)
    scorer.config = FinderConfig()
    scorer.config.angle_tolerance = 1.5
    assert scorer.strength(pupil_at(*PUPIL_CENTER, PUPIL_RADIUS)) == 0


def test_limbus_arcs_score_the_iris_edge(eye_image):
    scorer = scorer_for(eye_image)
    for boundary_type in (BoundaryType.LEFT_LIMBUS, BoundaryType.RIGHT_LIMBUS, BoundaryType.LIMBUS):
        on_edge = IrisBoundary(boundary_type, *EYE_CENTER, EYE_LIMBUS_RADIUS, EYE_LIMBUS_RADIUS)
        off_edge = IrisBoundary(boundary_type, *EYE_CENTER, EYE_LIMBUS_RADIUS + 20, EYE_LIMBUS_RADIUS + 20)
        assert scorer.strength(on_edge) > scorer.strength(off_edge)
        assert scorer.strength(off_edge) == 0


def test_callable_alias(pupil_scorer):
    boundary = pupil_at(*PUPIL_CENTER, PUPIL_RADIUS)
    assert pupil_scorer(boundary) == pupil_scorer.strength(boundary)
