"""
Trace Sinks

Optional observers for intermediate localization images (LED mask, contrast
image, hough mask, skeleton, accumulator map). The finder never keeps these
around itself; it hands them to whichever sink the caller injects.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from irisfinder.utils.file_io import FileIO

logger = logging.getLogger(__name__)


class TraceSink:
    """Base sink. Ignores everything."""

    enabled: bool = False

    def record(self, name: str, image: np.ndarray) -> None:
        pass

    def record_profile(self, name: str, values: Dict[str, np.ndarray]) -> None:
        pass


class MemoryTraceSink(TraceSink):
    """Keeps copies of every recorded intermediate, keyed by name."""

    enabled = True

    def __init__(self) -> None:
        self.images: Dict[str, np.ndarray] = {}
        self.profiles: Dict[str, Dict[str, np.ndarray]] = {}

    def record(self, name: str, image: np.ndarray) -> None:
        self.images[name] = np.array(image, copy=True)

    def record_profile(self, name: str, values: Dict[str, np.ndarray]) -> None:
        self.profiles[name] = {k: np.array(v, copy=True) for k, v in values.items()}

    @property
    def names(self) -> List[str]:
        return list(self.images)


class DirectoryTraceSink(MemoryTraceSink):
    """
    Writes each intermediate as ``<name>.png`` under a directory.

    Images are also kept in memory so that overlays can be drawn later.
    """

    def __init__(self, output_dir: Path, file_io: Optional[FileIO] = None) -> None:
        super().__init__()
        self.output_dir = Path(output_dir)
        self.file_io = file_io or FileIO()

    def record(self, name: str, image: np.ndarray) -> None:
        super().record(name, image)
        path = self.output_dir / f"{name}.png"
        self.file_io.save_image(path, _to_uint8(image))
        logger.debug(f"Trace image saved: {path}")


def _to_uint8(image: np.ndarray) -> np.ndarray:
    if image.dtype == np.uint8:
        return image
    if image.dtype == bool:
        return image.astype(np.uint8) * 255
    return np.clip(image, 0, 255).astype(np.uint8)
