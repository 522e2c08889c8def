"""
Pupil Localizer Module

Constrained circular Hough transform: every pupil boundary pixel votes only
along the ray given by its own gradient direction, instead of for every circle
passing through it.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import cv2
import numpy as np
from skimage import morphology

from irisfinder.core.boundary_optimizer import BoundaryOptimizer
from irisfinder.core.config import FinderConfig
from irisfinder.core.iris_boundary import BoundaryType, IrisBoundary
from irisfinder.core.preprocessor import PreprocessedImage, ellipse_kernel
from irisfinder.core.trace import TraceSink

logger = logging.getLogger(__name__)

# 3x3 spatial x 3 radius voting neighbourhood.
_OFFSET_Y, _OFFSET_X, _OFFSET_R = (o.ravel() for o in np.meshgrid([-1, 0, 1], [-1, 0, 1], [-1, 0, 1], indexing="ij"))
VOTE_PEAK = 4.0


@dataclass
class VotingResult:
    """
    Outcome of the accumulator vote.

    Only cells that received a vote are stored, as flat indices into the
    ``shape`` vote space.

    Attributes:
        shape: (rows, cols, radius buckets), padded by one bucket on each side
        cells: sorted flat indices of the voted cells
        totals: vote total of each cell in ``cells``
        max_score: best vote total, -1 if nothing voted
        best_cell: (x, y, bucket) of the first cell that reached max_score
        num_contours: contours long enough to vote
        num_points: contour points that voted
    """

    shape: Tuple[int, int, int]
    cells: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    totals: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float64))
    max_score: float = -1.0
    best_cell: Optional[Tuple[int, int, int]] = None
    num_contours: int = 0
    num_points: int = 0

    def total(self, x: int, y: int, bucket: int) -> float:
        index = np.ravel_multi_index((y, x, bucket), self.shape)
        pos = int(np.searchsorted(self.cells, index))
        if pos < self.cells.size and self.cells[pos] == index:
            return float(self.totals[pos])
        return 0.0

    def vote_map(self) -> np.ndarray:
        """Votes summed over radii, one value per pixel."""
        rows, cols, buckets = self.shape
        votes = np.bincount(self.cells // buckets, weights=self.totals, minlength=rows * cols)
        return votes.reshape(rows, cols)


class PupilLocalizer:
    def __init__(
        self,
        preprocessed: PreprocessedImage,
        optimizer: BoundaryOptimizer,
        config: Optional[FinderConfig] = None,
        trace: Optional[TraceSink] = None,
    ) -> None:
        self.preprocessed = preprocessed
        self.optimizer = optimizer
        self.config = config or FinderConfig()
        self.trace = trace or TraceSink()

    def localize(self) -> IrisBoundary:
        pupil = IrisBoundary.not_found(BoundaryType.PUPIL)

        hough_mask, no_led_nearby = self.candidate_mask()
        lines = self.skeletonize(hough_mask)
        contours = self.contours(lines)
        votes = self.vote(contours, lines, no_led_nearby)

        if self.trace.enabled:
            self.trace.record("hough_lines", lines)
            self.trace.record("hough", self.accumulator_image(votes))

        logger.debug(
            f"Pupil voting: {votes.num_contours} contours, {votes.num_points} points, "
            f"max score {votes.max_score:.1f}"
        )

        if votes.max_score <= -1:
            logger.warning("Pupil not found: no boundary point voted")
            return pupil

        x, y, bucket = votes.best_cell
        radius = bucket + self.config.min_pupil_radius
        pupil.set_params(x, y, radius, radius)
        logger.debug(f"Pupil candidate before refinement: {pupil}")

        # Fine tune the pupil fit.
        return self.optimizer.optimize(pupil)

    def candidate_mask(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Dark, high-gradient pixels away from any LED.

        Returns:
            (hough_mask, no_led_nearby) as 8-bit masks
        """
        pre = self.preprocessed
        cfg = self.config

        # Binarize by thresholding on the pixel intensity.
        _, pupil_mask = cv2.threshold(pre.image, cfg.max_pupil_intensity, 255, cv2.THRESH_BINARY_INV)

        # Binarize by thresholding on the gradient magnitude.
        grad_mask = np.where(pre.grad_mag >= cfg.min_boundary_gradient, 255, 0).astype(np.uint8)

        # Expand LED mask.
        no_led_nearby = cv2.erode(pre.mask, ellipse_kernel(cfg.min_led_neighbourhood))

        hough_mask = cv2.bitwise_and(cv2.bitwise_and(pupil_mask, grad_mask), no_led_nearby)

        if self.trace.enabled:
            blend = np.clip(0.3 * pupil_mask.astype(np.float32) + 0.6 * grad_mask, 0, 255).astype(np.uint8)
            self.trace.record("hough_mask", cv2.bitwise_and(blend, no_led_nearby))

        return hough_mask, no_led_nearby

    @staticmethod
    def skeletonize(mask: np.ndarray) -> np.ndarray:
        # Zhang-Suen thinning.
        skeleton = morphology.skeletonize(mask > 0, method="zhang")
        return skeleton.astype(np.uint8) * 255

    def contours(self, lines: np.ndarray) -> List[np.ndarray]:
        found, _ = cv2.findContours(lines.copy(), cv2.RETR_LIST, cv2.CHAIN_APPROX_NONE)
        keep = [c.reshape(-1, 2) for c in found if len(c) >= self.config.min_pupil_contour_length]
        logger.debug(f"Pupil contours: {len(found)} found, {len(keep)} long enough")
        return keep

    def vote(self, contours: List[np.ndarray], lines: np.ndarray, no_led_nearby: np.ndarray) -> VotingResult:
        pre = self.preprocessed
        cfg = self.config
        rows, cols = pre.shape

        result = VotingResult(shape=(rows, cols, cfg.num_radii + 2))
        cells, weights, owners = [], [], []

        # Walking onto another prospective pupil boundary stops the ray.
        stop = (lines > 0) & (no_led_nearby > 0)
        steps = np.arange(cfg.max_pupil_radius)

        for contour in contours:
            result.num_contours += 1
            for x0, y0 in contour:
                mag = pre.grad_mag[y0, x0]
                if mag <= 0:
                    continue

                # Walk from bright toward dark.
                cx = x0 - steps * (pre.grad_x[y0, x0] / mag)
                cy = y0 - steps * (pre.grad_y[y0, x0] / mag)
                ix = np.rint(cx).astype(np.int64)
                iy = np.rint(cy).astype(np.int64)

                end = self._walk_length(ix, iy, steps, stop)
                if end <= cfg.min_pupil_radius:
                    continue

                walk = slice(cfg.min_pupil_radius, end)
                point_cells, point_weights = self._cast_votes(
                    result.shape, cx[walk], cy[walk], ix[walk], iy[walk], steps[walk]
                )
                cells.append(point_cells)
                weights.append(point_weights)
                owners.append(np.full(point_cells.size, result.num_points, dtype=np.int64))
                result.num_points += 1

        if cells:
            self.tally(result, np.concatenate(cells), np.concatenate(weights), np.concatenate(owners))
        return result

    def _walk_length(self, ix: np.ndarray, iy: np.ndarray, steps: np.ndarray, stop: np.ndarray) -> int:
        """Number of steps taken before the ray leaves the image or hits another boundary."""
        inside = self.preprocessed.inside(ix, iy)
        hit = np.zeros_like(inside)
        hit[inside] = stop[iy[inside], ix[inside]]
        abort = ~inside | (hit & (steps > self.config.walk_abort_min_radius))
        return int(np.argmax(abort)) if abort.any() else len(steps)

    def _cast_votes(
        self,
        shape: Tuple[int, int, int],
        cx: np.ndarray,
        cy: np.ndarray,
        ix: np.ndarray,
        iy: np.ndarray,
        radii: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Flat cell indices and weights of one walk's votes, in casting order."""
        bucket = radii - self.config.min_pupil_radius

        xs = ix[:, None] + _OFFSET_X
        ys = iy[:, None] + _OFFSET_Y
        # Bucket index shifted by one for the padding bucket.
        rs = bucket[:, None] + _OFFSET_R + 1

        # Symmetric falloff peaking at the exact cell.
        weights = VOTE_PEAK - (np.abs(xs - cx[:, None]) + np.abs(ys - cy[:, None]) + np.abs(_OFFSET_R))

        cells = np.ravel_multi_index((ys.ravel(), xs.ravel(), rs.ravel()), shape)
        return cells, weights.ravel()

    @staticmethod
    def tally(result: VotingResult, cells: np.ndarray, weights: np.ndarray, owners: np.ndarray) -> None:
        """
        Sum the votes per cell and pick the best one.

        Args:
            result: receives cells, totals, max_score and best_cell
            cells: flat cell index of every vote, in casting order
            weights: weight of every vote
            owners: index of the contour point that cast every vote
        """
        result.cells, inverse = np.unique(cells, return_inverse=True)
        inverse = inverse.ravel()
        result.totals = np.bincount(inverse, weights=weights, minlength=result.cells.size)
        result.max_score = float(result.totals.max())

        # First maximum wins: among the tied cells, the one whose total was
        # complete at the earliest point, then the first touched by that point.
        tied = result.totals == result.max_score
        last_owner = np.full(result.cells.size, -1, dtype=np.int64)
        positive = weights > 0
        np.maximum.at(last_owner, inverse[positive], owners[positive])
        completing = tied[inverse] & (owners == last_owner[inverse])
        first = int(np.flatnonzero(completing)[0])

        y, x, bucket = np.unravel_index(result.cells[inverse[first]], result.shape)
        result.best_cell = (int(x), int(y), int(bucket))

    @staticmethod
    def accumulator_image(votes: VotingResult) -> np.ndarray:
        """Votes summed over radii, stretched to 8 bits."""
        hough = votes.vote_map().astype(np.float32)
        return cv2.normalize(hough, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
