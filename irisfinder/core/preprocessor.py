"""
Preprocessor Module

Turns a raw eye image into the contrast-stretched intensity image, the LED
(specular highlight) occlusion mask and the gradient field used by every
localization stage.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from irisfinder.core.config import FinderConfig
from irisfinder.core.trace import TraceSink

logger = logging.getLogger(__name__)

# Sobel derivative normalization (7x7 kernel).
SOBEL_KSIZE = 7
SOBEL_SCALE = 1 / 1280.0


def ellipse_kernel(size: int) -> np.ndarray:
    return cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (size, size))


@dataclass(frozen=True, eq=False)
class PreprocessedImage:
    """
    Per-image intermediates. Nothing writes to them once built.

    Attributes:
        raw: single-channel 8-bit image before enhancement
        image: contrast enhanced 8-bit image
        mask: 255 where the pixel is usable, 0 near an LED specular highlight
        grad_x: horizontal gradient (float32)
        grad_y: vertical gradient (float32)
        grad_mag: gradient magnitude (float32)
    """

    raw: np.ndarray
    image: np.ndarray
    mask: np.ndarray
    grad_x: np.ndarray
    grad_y: np.ndarray
    grad_mag: np.ndarray

    @property
    def shape(self):
        return self.image.shape

    def inside(self, x, y):
        """Interior test (one pixel margin); works on scalars and arrays."""
        rows, cols = self.image.shape
        return (x >= 1) & (y >= 1) & (x <= cols - 2) & (y <= rows - 2)


class Preprocessor:
    def __init__(self, config: Optional[FinderConfig] = None, trace: Optional[TraceSink] = None) -> None:
        self.config = config or FinderConfig()
        self.trace = trace or TraceSink()

    def process(self, image: np.ndarray) -> PreprocessedImage:
        if image is None:
            raise ValueError("Input image cannot be None.")
        if image.size == 0:
            raise ValueError("Input image is empty.")

        raw = self._to_single_channel(image)
        mask = self._led_mask(raw)

        # Horizontal closing, to help reduce noise introduced by eyelashes.
        kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (self.config.eyelash_thickness, 1))
        enhanced = cv2.morphologyEx(raw, cv2.MORPH_CLOSE, kernel)

        # Blur the image, to smooth out gradient directions.
        enhanced = cv2.GaussianBlur(enhanced, (0, 0), self.config.gradient_sigma)

        enhanced = self._contrast_stretch(enhanced, mask)

        grad_x = cv2.Sobel(enhanced, cv2.CV_32F, 1, 0, ksize=SOBEL_KSIZE, scale=SOBEL_SCALE)
        grad_y = cv2.Sobel(enhanced, cv2.CV_32F, 0, 1, ksize=SOBEL_KSIZE, scale=SOBEL_SCALE)
        grad_mag = cv2.magnitude(grad_x, grad_y)

        if self.trace.enabled:
            self.trace.record("raw", raw)
            self.trace.record("mask", mask)
            self.trace.record("contrast", cv2.bitwise_and(enhanced, mask))

        logger.debug(
            f"Preprocessed {raw.shape[1]}x{raw.shape[0]} image: "
            f"usable={np.count_nonzero(mask) / mask.size:.1%}, max gradient={float(grad_mag.max()):.2f}"
        )

        return PreprocessedImage(raw=raw, image=enhanced, mask=mask, grad_x=grad_x, grad_y=grad_y, grad_mag=grad_mag)

    def _to_single_channel(self, image: np.ndarray) -> np.ndarray:
        # If color image, utilize only the red channel (BGR order).
        if image.ndim == 3:
            image = image[:, :, 2] if image.shape[2] >= 3 else image[:, :, 0]

        if image.dtype != np.uint8:
            image = np.clip(np.rint(image), 0, 255).astype(np.uint8)
        return np.array(image, copy=True, order="C")

    def _led_mask(self, image: np.ndarray) -> np.ndarray:
        cfg = self.config

        # Identify extremely bright pixels in the image (0 = bright).
        _, mask = cv2.threshold(image, cfg.min_led_intensity - 1, 255, cv2.THRESH_BINARY_INV)

        # Erode the usable mask to connect neighbouring highlights, then dilate
        # it back to shrink the total LED area.
        kernel = ellipse_kernel(cfg.led_dilation)
        mask = cv2.erode(mask, kernel)
        mask = cv2.dilate(mask, kernel)

        # A highlight component only counts as an LED if its area is plausible.
        highlights = (mask == 0).astype(np.uint8)
        num_labels, labels, stats, _ = cv2.connectedComponentsWithStats(highlights)
        areas = stats[:, cv2.CC_STAT_AREA]
        untrusted = (areas < cfg.min_led_area) | (areas > cfg.max_led_area)
        untrusted[0] = False
        mask[untrusted[labels]] = 255

        logger.debug(f"LED components: {num_labels - 1} found, {int(np.count_nonzero(untrusted))} rejected by area")
        return mask

    def _contrast_stretch(self, image: np.ndarray, mask: np.ndarray) -> np.ndarray:
        if np.count_nonzero(mask) == 0:
            logger.warning("Every pixel is masked as LED highlight; contrast stretch skipped")
            return image

        min_val, max_val, _, _ = cv2.minMaxLoc(image, mask)
        if max_val <= min_val:
            logger.warning(f"Flat image (intensity {min_val:.0f}); contrast stretch skipped")
            return image

        stretched = (image.astype(np.float32) - min_val) * 255.0 / (max_val - min_val)
        return np.clip(np.rint(stretched), 0, 255).astype(np.uint8)
