"""
Image helpers: validation and boundary drawing.
"""

from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np

PUPIL_COLOR = (0, 0, 255)  # BGR: red
LIMBUS_COLOR = (0, 255, 0)  # BGR: green


class ImageValidationError(ValueError):
    """Invalid image array"""


def validate_eye_image(image: np.ndarray, name: str = "image") -> None:
    if not isinstance(image, np.ndarray):
        raise ImageValidationError(f"{name} must be numpy.ndarray")
    if image.size == 0:
        raise ImageValidationError(f"{name} is empty")
    if image.ndim not in (2, 3):
        raise ImageValidationError(f"{name} must be (H, W) or (H, W, C)")


def to_bgr(image: np.ndarray) -> np.ndarray:
    """8-bit BGR copy of a gray, BGR or BGRA image."""
    validate_eye_image(image)
    if image.dtype != np.uint8:
        image = cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image.copy()


def draw_boundary(
    image: np.ndarray,
    boundary,
    color: Tuple[int, int, int],
    thickness: int = 1,
    center_radius: int = 2,
) -> np.ndarray:
    """Draw an ellipse and a filled center dot in place; unusable boundaries are skipped."""
    if not (boundary.found and boundary.valid()):
        return image
    cv2.ellipse(image, boundary.center(), boundary.size(), 0, 0, 360, color, thickness, cv2.LINE_AA)
    cv2.circle(image, boundary.center(), center_radius, color, cv2.FILLED)
    return image


def draw_boundaries(
    image: np.ndarray,
    pupil,
    limbus,
    pupil_color: Tuple[int, int, int] = PUPIL_COLOR,
    limbus_color: Tuple[int, int, int] = LIMBUS_COLOR,
    thickness: int = 1,
) -> np.ndarray:
    """Color copy of ``image`` with the pupil and limbus overlaid."""
    out = to_bgr(image)
    draw_boundary(out, pupil, pupil_color, thickness)
    draw_boundary(out, limbus, limbus_color, thickness)
    return out
