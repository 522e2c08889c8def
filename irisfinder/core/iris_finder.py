"""
Iris Finder

Localizes the pupil and limbus boundaries of one eye image:

    Preprocessor -> PupilLocalizer -> LimbusLocalizer
                         \\               /
                      BoundaryOptimizer (BoundaryScorer)
"""

import logging
from typing import Optional, Tuple

import numpy as np

from irisfinder.core.boundary_optimizer import BoundaryOptimizer
from irisfinder.core.boundary_scorer import BoundaryScorer
from irisfinder.core.config import FinderConfig
from irisfinder.core.iris_boundary import IrisBoundary
from irisfinder.core.limbus_localizer import LimbusLocalizer
from irisfinder.core.preprocessor import PreprocessedImage, Preprocessor
from irisfinder.core.pupil_localizer import PupilLocalizer
from irisfinder.core.trace import TraceSink
from irisfinder.utils.image_utils import draw_boundaries

logger = logging.getLogger(__name__)

# Intermediates that get a boundary overlay at the end of boundaries().
TRACE_IMAGES = ("raw", "mask", "contrast", "hough_mask", "hough_lines", "hough")


class IrisFinder:
    """
    Entry point of the localization core.

    Example:
        >>> finder = IrisFinder(cv2.imread("eye.png", cv2.IMREAD_UNCHANGED))
        >>> pupil, limbus = finder.boundaries()
        >>> if pupil.found:
        ...     print(pupil, limbus)
    """

    def __init__(
        self,
        image: Optional[np.ndarray] = None,
        config: Optional[FinderConfig] = None,
        trace: Optional[TraceSink] = None,
    ) -> None:
        self.config = config or FinderConfig()
        self.trace = trace or TraceSink()
        self.preprocessed: Optional[PreprocessedImage] = None
        self.scorer: Optional[BoundaryScorer] = None
        self.optimizer: Optional[BoundaryOptimizer] = None

        if image is not None:
            self.set_image(image)

    def set_image(self, image: np.ndarray) -> None:
        self.preprocessed = Preprocessor(self.config, self.trace).process(image)
        self.scorer = BoundaryScorer(self.preprocessed, self.config)
        self.optimizer = BoundaryOptimizer(self.scorer)

    def _require_image(self) -> None:
        if self.preprocessed is None:
            raise ValueError("No image set. Call set_image() first.")

    def boundaries(self) -> Tuple[IrisBoundary, IrisBoundary]:
        """Localize the pupil and then the limbus."""
        pupil = self.pupil_boundary()
        limbus = self.limbus_boundary(pupil)

        logger.info(f"{pupil} {limbus}")

        if self.trace.enabled:
            self._trace_overlays(pupil, limbus)

        return pupil, limbus

    def pupil_boundary(self) -> IrisBoundary:
        self._require_image()
        return PupilLocalizer(self.preprocessed, self.optimizer, self.config, self.trace).localize()

    def limbus_boundary(self, pupil: IrisBoundary) -> IrisBoundary:
        self._require_image()
        return LimbusLocalizer(self.scorer, self.optimizer, self.config, self.trace).localize(pupil)

    def boundary_strength(self, boundary: IrisBoundary) -> float:
        self._require_image()
        return self.scorer.strength(boundary)

    def _trace_overlays(self, pupil: IrisBoundary, limbus: IrisBoundary) -> None:
        images = getattr(self.trace, "images", {})
        for name in TRACE_IMAGES:
            if name in images:
                self.trace.record(f"{name}_overlay", draw_boundaries(images[name], pupil, limbus))

