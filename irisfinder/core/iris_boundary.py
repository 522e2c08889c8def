"""
Iris Boundary Module

Elliptical pupil/limbus boundary and the precomputed sample tables used to
score it.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

import numpy as np


class BoundaryType(str, Enum):
    PUPIL = "pupil"
    LEFT_LIMBUS = "left_limbus"
    RIGHT_LIMBUS = "right_limbus"
    LIMBUS = "limbus"


def _trig(start: float, end: float) -> np.ndarray:
    """Unit vectors (cos, sin) from start to end (exclusive) in 2 degree steps."""
    step = np.pi / 90
    angles = start + np.arange(int(round((end - start) / step))) * step
    table = np.stack([np.cos(angles), np.sin(angles)], axis=1)
    table.setflags(write=False)
    return table


# Precomputed trigonometric tables, shared read-only by every boundary.
PUPIL_POINTS = _trig(0, 2 * np.pi)
LEFT_LIMBUS_POINTS = _trig(0.8 * np.pi, 1.3 * np.pi)
RIGHT_LIMBUS_POINTS = _trig(-0.2 * np.pi, 0.3 * np.pi)
LIMBUS_POINTS = np.concatenate([LEFT_LIMBUS_POINTS, RIGHT_LIMBUS_POINTS])
LIMBUS_POINTS.setflags(write=False)

SAMPLE_TABLES = {
    BoundaryType.PUPIL: PUPIL_POINTS,
    BoundaryType.LEFT_LIMBUS: LEFT_LIMBUS_POINTS,
    BoundaryType.RIGHT_LIMBUS: RIGHT_LIMBUS_POINTS,
    BoundaryType.LIMBUS: LIMBUS_POINTS,
}

NOT_FOUND = -1.0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class IrisBoundary:
    """
    Axis-aligned elliptical boundary.

    A boundary with ``x == -1`` (the default) means "not found".

    Attributes:
        type: boundary type (fixed for the lifetime of the boundary)
        x: center x
        y: center y
        a: horizontal semi-axis
        b: vertical semi-axis
    """

    type: BoundaryType = BoundaryType.PUPIL
    x: float = NOT_FOUND
    y: float = NOT_FOUND
    a: float = NOT_FOUND
    b: float = NOT_FOUND

    @classmethod
    def not_found(cls, boundary_type: BoundaryType) -> "IrisBoundary":
        return cls(type=boundary_type)

    @property
    def found(self) -> bool:
        return not (self.x == NOT_FOUND or self.y == NOT_FOUND)

    def valid(self) -> bool:
        return not (self.x < 0 or self.y < 0 or self.a < 0 or self.b < 0)

    def points(self) -> np.ndarray:
        """
        Equidistant integer pixel coordinates along the boundary.

        Returns:
            (N, 2) int array of (x, y) rows, in table order.
        """
        table = SAMPLE_TABLES[self.type]
        px = np.floor(self.x + table[:, 0] * self.a + 0.5)
        py = np.floor(self.y + table[:, 1] * self.b + 0.5)
        return np.stack([px, py], axis=1).astype(np.int64)

    def inside(self, px: float, py: float) -> bool:
        if self.a == 0 or self.b == 0:
            return px == self.x and py == self.y
        return ((self.x - px) / self.a) ** 2 + ((self.y - py) / self.b) ** 2 <= 1

    def expand(self, size: float = 1) -> None:
        self.a += size
        self.b += size

    def eccentricity(self) -> float:
        """
        0 for a circle, in [0, 1) while both axes are positive.

        A degenerate boundary with one zero axis is a line segment and gives
        exactly 1; a point (both axes zero) gives 0.
        """
        major = max(self.a, self.b)
        if major <= 0:
            return 0.0
        ratio = min(self.a, self.b) / major
        return math.sqrt(1 - ratio**2)

    def center(self) -> Tuple[int, int]:
        return _round_half_up(self.x), _round_half_up(self.y)

    def size(self) -> Tuple[int, int]:
        return _round_half_up(self.a), _round_half_up(self.b)

    def set_params(self, x: float, y: float, a: float, b: float) -> None:
        self.x, self.y, self.a, self.b = float(x), float(y), float(a), float(b)

    def params(self) -> np.ndarray:
        return np.array([self.x, self.y, self.a, self.b], dtype=np.float64)

    def copy(self, boundary_type: BoundaryType = None) -> "IrisBoundary":
        return IrisBoundary(boundary_type or self.type, self.x, self.y, self.a, self.b)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "found": self.found,
            "x": float(self.x),
            "y": float(self.y),
            "a": float(self.a),
            "b": float(self.b),
        }

    def __str__(self) -> str:
        label = "Pupil:" if self.type == BoundaryType.PUPIL else "Limbus:"
        x, y = self.center()
        a, b = self.size()
        return f"{label} [{x} {y}] [{a} {b}]"
