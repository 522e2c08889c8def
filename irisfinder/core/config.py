"""
Finder Configuration

Tunable thresholds shared by every localization stage.
"""

import logging
import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Invalid finder configuration"""

    pass


@dataclass
class FinderConfig:
    """
    Localization parameters.

    Attributes:
        min_led_area: minimum area of an LED specular highlight
        max_led_area: maximum area of an LED specular highlight
        min_led_intensity: minimum pixel intensity to constitute an LED point
        led_dilation: kernel size used to erode/dilate the LED mask (connects neighbours)
        min_led_neighbourhood: min distance from an LED to ignore as possible boundary point
        eyelash_thickness: width of the horizontal closing (mitigates eyelash impact)
        min_pupil_radius: minimum pupil radius in pixels
        max_pupil_radius: maximum pupil radius in pixels
        max_pupil_intensity: maximum pixel intensity to constitute a pupil pixel
        min_pupil_contour_length: minimum length of a pupil boundary contour
        min_annulus_thickness: minimum pixel thickness of the annulus
        min_limbus_radius: minimum pixel radius of the limbus
        max_limbus_radius: maximum pixel radius of the limbus
        gradient_sigma: blur to apply prior to gradient computation
        min_boundary_gradient: minimum gradient to constitute a boundary
        angle_tolerance: cosine of the angle tolerance of gradient at boundary point
        walk_abort_min_radius: a voting walk stops on a boundary pixel beyond this radius
        optimizer_initial_step: initial simplex step for every boundary parameter
    """

    min_led_area: int = 10
    max_led_area: int = 3000
    min_led_intensity: int = 230
    led_dilation: int = 10
    min_led_neighbourhood: int = 20
    eyelash_thickness: int = 8
    min_pupil_radius: int = 11
    max_pupil_radius: int = 100
    max_pupil_intensity: int = 35
    min_pupil_contour_length: int = 13
    min_annulus_thickness: int = 36
    min_limbus_radius: int = 86
    max_limbus_radius: int = 200
    gradient_sigma: float = 2.4
    min_boundary_gradient: float = 4.1
    angle_tolerance: float = math.cos(math.pi / 10)
    walk_abort_min_radius: int = 1
    optimizer_initial_step: float = 10.0

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.min_pupil_radius < 1:
            raise ConfigError(f"min_pupil_radius must be positive, got {self.min_pupil_radius}")
        if self.max_pupil_radius <= self.min_pupil_radius:
            raise ConfigError(
                f"max_pupil_radius ({self.max_pupil_radius}) must exceed "
                f"min_pupil_radius ({self.min_pupil_radius})"
            )
        if self.max_limbus_radius < self.min_limbus_radius:
            raise ConfigError(
                f"max_limbus_radius ({self.max_limbus_radius}) must not be below "
                f"min_limbus_radius ({self.min_limbus_radius})"
            )
        if self.min_led_area > self.max_led_area:
            raise ConfigError(f"min_led_area ({self.min_led_area}) exceeds max_led_area ({self.max_led_area})")
        if not -1.0 <= self.angle_tolerance <= 1.0:
            raise ConfigError(f"angle_tolerance is a cosine, got {self.angle_tolerance}")
        if self.gradient_sigma <= 0:
            raise ConfigError(f"gradient_sigma must be positive, got {self.gradient_sigma}")

    @property
    def num_radii(self) -> int:
        return self.max_pupil_radius - self.min_pupil_radius

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "FinderConfig":
        """
        Build a config from a plain mapping (e.g. the ``finder`` section of a JSON file).

        Unknown keys are rejected so that typos do not silently fall back to defaults.
        """
        if not data:
            return cls()

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown finder parameters: {unknown}")

        config = cls(**dict(data))
        logger.debug(f"FinderConfig loaded with overrides: {sorted(data)}")
        return config

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
