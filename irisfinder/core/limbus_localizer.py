"""
Limbus Localizer Module

Searches concentric annuli around the pupil for the iris/sclera boundary. The
left and right arcs are searched independently, since the limbus is often not
centered on the pupil.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from irisfinder.core.boundary_optimizer import BoundaryOptimizer
from irisfinder.core.boundary_scorer import BoundaryScorer
from irisfinder.core.config import FinderConfig
from irisfinder.core.iris_boundary import BoundaryType, IrisBoundary
from irisfinder.core.trace import TraceSink

logger = logging.getLogger(__name__)


@dataclass
class LimbusSearchProfile:
    """Scores of the left and right arcs at every searched radius."""

    radii: List[float] = field(default_factory=list)
    left: List[float] = field(default_factory=list)
    right: List[float] = field(default_factory=list)
    best_left: Optional[float] = None
    best_right: Optional[float] = None

    def as_arrays(self):
        return {"radii": np.asarray(self.radii), "left": np.asarray(self.left), "right": np.asarray(self.right)}


class LimbusLocalizer:
    def __init__(
        self,
        scorer: BoundaryScorer,
        optimizer: BoundaryOptimizer,
        config: Optional[FinderConfig] = None,
        trace: Optional[TraceSink] = None,
    ) -> None:
        self.scorer = scorer
        self.optimizer = optimizer
        self.config = config or FinderConfig()
        self.trace = trace or TraceSink()
        self.last_profile: Optional[LimbusSearchProfile] = None

    def start_radius(self, pupil: IrisBoundary) -> float:
        """Smallest possible limbus based on the pupil size."""
        return max(float(self.config.min_limbus_radius), pupil.a + self.config.min_annulus_thickness)

    def localize(self, pupil: IrisBoundary) -> IrisBoundary:
        self.last_profile = None

        # If pupil not found, limbus can't be found either.
        if not pupil.found:
            return IrisBoundary.not_found(BoundaryType.LIMBUS)

        radius = self.start_radius(pupil)

        # Stop if pupil radius is too big to work with.
        if radius > self.config.max_limbus_radius:
            logger.warning(
                f"Limbus not searched: start radius {radius:.1f} exceeds "
                f"max_limbus_radius {self.config.max_limbus_radius}"
            )
            return IrisBoundary.not_found(BoundaryType.LIMBUS)

        profile = self.search(pupil, radius)
        self.last_profile = profile

        if self.trace.enabled:
            self.trace.record_profile("limbus_profile", profile.as_arrays())

        # Shift the center toward the wider side, average the two radii.
        a_left, a_right = profile.best_left, profile.best_right
        limbus = IrisBoundary(
            BoundaryType.LIMBUS,
            pupil.x + (a_right - a_left) / 2,
            pupil.y,
            0.5 * (a_left + a_right),
            0.5 * (a_left + a_right),
        )
        logger.debug(f"Limbus candidate before refinement: {limbus} (left={a_left:.1f}, right={a_right:.1f})")

        return self.optimizer.optimize(limbus)

    def search(self, pupil: IrisBoundary, start: float) -> LimbusSearchProfile:
        """
        Grow concentric left/right arcs one pixel at a time up to max_limbus_radius.

        The first (smallest) radius reaching the best score wins on each side.
        """
        left = IrisBoundary(BoundaryType.LEFT_LIMBUS, pupil.x, pupil.y, start, start)
        right = IrisBoundary(BoundaryType.RIGHT_LIMBUS, pupil.x, pupil.y, start, start)

        profile = LimbusSearchProfile(best_left=start, best_right=start)
        max_left = max_right = -1.0

        while left.a <= self.config.max_limbus_radius:
            score_left = self.scorer.strength(left)
            if score_left > max_left:
                max_left, profile.best_left = score_left, left.a

            score_right = self.scorer.strength(right)
            if score_right > max_right:
                max_right, profile.best_right = score_right, right.a

            profile.radii.append(left.a)
            profile.left.append(score_left)
            profile.right.append(score_right)

            left.expand()
            right.expand()

        logger.debug(
            f"Limbus search over {len(profile.radii)} radii: "
            f"left={profile.best_left:.1f} ({max_left:.3g}), right={profile.best_right:.1f} ({max_right:.3g})"
        )
        return profile
