"""
Boundary Scorer Module

A variation of Daugman's integro-differential operator: a boundary is strong
when many of its sample points sit on a gradient that points away from the
ellipse center.
"""

import logging
from typing import Optional

import numpy as np

from irisfinder.core.config import FinderConfig
from irisfinder.core.iris_boundary import BoundaryType, IrisBoundary
from irisfinder.core.preprocessor import PreprocessedImage

logger = logging.getLogger(__name__)

ECCENTRICITY_EXPONENT = 0.7
LENGTH_EXPONENT = 3.0


class BoundaryScorer:
    """
    Scores candidate boundaries against one preprocessed image.

    The score is ``sum * (min(a, b) / max(a, b)) ** 0.7 * num ** 3`` where
    ``num`` counts the usable sample points whose gradient direction lies within
    the angle tolerance of the ellipse normal and ``sum`` adds up their
    gradient magnitudes. The cubic length term makes contour coverage dominate
    raw gradient strength.
    """

    def __init__(self, preprocessed: PreprocessedImage, config: Optional[FinderConfig] = None) -> None:
        self.preprocessed = preprocessed
        self.config = config or FinderConfig()

    def min_radius(self, boundary_type: BoundaryType) -> int:
        if boundary_type == BoundaryType.PUPIL:
            return self.config.min_pupil_radius
        return self.config.min_limbus_radius

    def strength(self, boundary: IrisBoundary) -> float:
        if min(boundary.a, boundary.b) < self.min_radius(boundary.type):
            return 0.0

        pre = self.preprocessed
        points = boundary.points()
        px, py = points[:, 0], points[:, 1]

        # Inside the image and not near an LED.
        keep = pre.inside(px, py)
        px, py = px[keep], py[keep]
        keep = pre.mask[py, px] > 0
        px, py = px[keep], py[keep]

        mag = pre.grad_mag[py, px].astype(np.float64)
        nonzero = mag > 0
        px, py, mag = px[nonzero], py[nonzero], mag[nonzero]
        if mag.size == 0:
            return 0.0

        # Direction perpendicular to the tangent at each boundary point.
        theta_x = (px - boundary.x) / boundary.a
        theta_y = (py - boundary.y) / boundary.b

        # Cosine of the angle between gradient and normal.
        cos_diff = (pre.grad_x[py, px] * theta_x + pre.grad_y[py, px] * theta_y) / mag
        consistent = cos_diff >= self.config.angle_tolerance

        num = int(np.count_nonzero(consistent))
        if num == 0:
            return 0.0

        total = float(mag[consistent].sum())
        ratio = min(boundary.a, boundary.b) / max(boundary.a, boundary.b)
        return total * ratio**ECCENTRICITY_EXPONENT * num**LENGTH_EXPONENT

    __call__ = strength
