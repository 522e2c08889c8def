"""
Boundary Visualizer

Overlays of localized boundaries, the pupil vote accumulator heat map and the
limbus search score profile.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import cv2
import matplotlib.pyplot as plt
import numpy as np

from irisfinder.core.iris_boundary import IrisBoundary
from irisfinder.utils.image_utils import draw_boundaries


@dataclass
class VisualizerConfig:
    """Visualizer configuration"""

    # Overlay
    line_thickness: int = 1
    pupil_color: Tuple[int, int, int] = (0, 0, 255)  # BGR: Red
    limbus_color: Tuple[int, int, int] = (0, 255, 0)  # BGR: Green
    show_label: bool = True
    label_font_scale: float = 0.5

    # Accumulator heat map
    heatmap_colormap: int = cv2.COLORMAP_JET

    # Profile chart
    profile_figure_size: Tuple[int, int] = (8, 4)
    profile_dpi: int = 100

    # Output
    output_quality: int = 95


class VisualizationError(Exception):
    """Base exception for visualization errors"""

    pass


class BoundaryVisualizer:
    def __init__(self, config: Optional[VisualizerConfig] = None):
        self.config = config or VisualizerConfig()

    def visualize_boundaries(self, image: np.ndarray, pupil: IrisBoundary, limbus: IrisBoundary) -> np.ndarray:
        """
        Draw pupil and limbus ellipses with their center points.

        Args:
            image: gray or BGR image
            pupil: pupil boundary (skipped if not found)
            limbus: limbus boundary (skipped if not found)

        Returns:
            Overlaid image (BGR, np.ndarray)
        """
        if not isinstance(image, np.ndarray):
            raise VisualizationError(f"Unsupported image type: {type(image)}")

        overlay = draw_boundaries(
            image,
            pupil,
            limbus,
            pupil_color=self.config.pupil_color,
            limbus_color=self.config.limbus_color,
            thickness=self.config.line_thickness,
        )

        if self.config.show_label:
            for row, boundary in enumerate((pupil, limbus)):
                text = str(boundary) if boundary.found else f"{boundary.type.value}: not found"
                cv2.putText(
                    overlay,
                    text,
                    (5, 15 + 18 * row),
                    cv2.FONT_HERSHEY_SIMPLEX,
                    self.config.label_font_scale,
                    self.config.pupil_color if row == 0 else self.config.limbus_color,
                    1,
                    cv2.LINE_AA,
                )

        return overlay

    def visualize_accumulator(self, hough: np.ndarray) -> np.ndarray:
        """Color-mapped pupil vote map (8-bit input, e.g. the ``hough`` trace image)."""
        if hough.dtype != np.uint8:
            hough = cv2.normalize(hough.astype(np.float32), None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
        return cv2.applyColorMap(hough, self.config.heatmap_colormap)

    def visualize_limbus_profile(self, profile: Dict[str, np.ndarray]) -> plt.Figure:
        """
        Left/right arc strength versus trial radius.

        Args:
            profile: ``radii``, ``left`` and ``right`` arrays (LimbusSearchProfile.as_arrays())
        """
        missing = {"radii", "left", "right"} - set(profile)
        if missing:
            raise VisualizationError(f"Limbus profile is missing {sorted(missing)}")

        fig, ax = plt.subplots(figsize=self.config.profile_figure_size, dpi=self.config.profile_dpi)
        radii = np.asarray(profile["radii"])
        for side, color in (("left", "tab:blue"), ("right", "tab:orange")):
            scores = np.asarray(profile[side])
            ax.plot(radii, scores, label=side, color=color)
            if scores.size:
                best = int(np.argmax(scores))
                ax.axvline(radii[best], color=color, linestyle="--", linewidth=0.8)

        ax.set_xlabel("radius (px)")
        ax.set_ylabel("boundary strength")
        ax.set_title("Limbus search")
        ax.legend()
        plt.tight_layout()
        return fig

    def save_visualization(self, image: Union[np.ndarray, plt.Figure], output_path: Path):
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if isinstance(image, np.ndarray):
            suffix = output_path.suffix.lower()
            if suffix == ".png":
                cv2.imwrite(str(output_path), image, [cv2.IMWRITE_PNG_COMPRESSION, 9 - self.config.output_quality // 10])
            elif suffix in (".jpg", ".jpeg"):
                cv2.imwrite(str(output_path), image, [cv2.IMWRITE_JPEG_QUALITY, self.config.output_quality])
            else:
                cv2.imwrite(str(output_path), image)

        elif isinstance(image, plt.Figure):
            image.savefig(output_path, dpi=self.config.profile_dpi, bbox_inches="tight")
            plt.close(image)

        else:
            raise VisualizationError(f"Unsupported image type: {type(image)}")
