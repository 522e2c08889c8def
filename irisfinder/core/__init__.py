"""
Core Algorithm Modules

Contains the boundary localization components:
- Preprocessor: channel selection, LED mask, contrast stretch, gradients
- PupilLocalizer: gradient-ray accumulator voting for the pupil
- BoundaryScorer: integro-differential boundary strength
- LimbusLocalizer: left/right annulus search for the limbus
- BoundaryOptimizer: Nelder-Mead refinement of a boundary fit
- IrisFinder: facade tying the stages together
"""

from irisfinder.core.config import FinderConfig
from irisfinder.core.iris_boundary import BoundaryType, IrisBoundary
from irisfinder.core.iris_finder import IrisFinder

__all__ = [
    "BoundaryType",
    "FinderConfig",
    "IrisBoundary",
    "IrisFinder",
]
