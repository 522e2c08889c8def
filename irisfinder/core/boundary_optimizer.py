"""
Boundary Optimizer Module

Fine tunes a boundary fit with a downhill simplex (Nelder-Mead) search over
its center and semi-axes.
"""

import logging
from typing import Optional

import numpy as np
from scipy.optimize import minimize

from irisfinder.core.boundary_scorer import BoundaryScorer
from irisfinder.core.iris_boundary import IrisBoundary

logger = logging.getLogger(__name__)

NUM_PARAMS = 4  # x, y, a, b


class BoundaryOptimizer:
    def __init__(self, scorer: BoundaryScorer, initial_step: Optional[float] = None) -> None:
        self.scorer = scorer
        self.initial_step = initial_step if initial_step is not None else scorer.config.optimizer_initial_step

    def objective(self, params: np.ndarray, boundary_type) -> float:
        x, y, a, b = params
        return -self.scorer.strength(IrisBoundary(boundary_type, x, y, a, b))

    def initial_simplex(self, seed: np.ndarray) -> np.ndarray:
        simplex = np.tile(seed, (NUM_PARAMS + 1, 1))
        simplex[1:] += np.eye(NUM_PARAMS) * self.initial_step
        return simplex

    def optimize(self, boundary: IrisBoundary) -> IrisBoundary:
        """
        Refine ``boundary`` in place and return it.

        The boundary type is never altered. If the search cannot improve on
        the seed, the seed parameters are kept.
        """
        seed = boundary.params()
        seed_score = -self.objective(seed, boundary.type)

        result = minimize(
            self.objective,
            seed,
            args=(boundary.type,),
            method="Nelder-Mead",
            options={"initial_simplex": self.initial_simplex(seed)},
        )

        best_score = -float(result.fun)
        if best_score > seed_score:
            boundary.set_params(*result.x)
        else:
            best_score = seed_score

        logger.debug(
            f"Optimized {boundary.type.value}: score {seed_score:.3g} -> {best_score:.3g} "
            f"in {result.nit} iterations ({boundary})"
        )
        return boundary
