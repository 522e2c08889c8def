"""
Localization Pipeline Module

Image file -> IrisFinder -> LocalizationResult, with optional dumps of the
intermediate images.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from irisfinder.core.config import FinderConfig
from irisfinder.core.iris_boundary import IrisBoundary
from irisfinder.core.iris_finder import IrisFinder
from irisfinder.core.trace import DirectoryTraceSink, MemoryTraceSink, TraceSink
from irisfinder.utils.file_io import FileIO, list_images

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Raised when an image cannot be fed to the finder"""

    pass


@dataclass
class LocalizationResult:
    """
    Result of localizing one image.

    Attributes:
        image_path: source image path
        pupil: pupil boundary (sentinel if not found)
        limbus: limbus boundary (sentinel if not found)
        processing_time_ms: wall time of preprocessing + localization
        timestamp: when processing started
        image: original image as loaded (for overlays)
        trace: intermediate images, if they were requested
    """

    image_path: Path
    pupil: IrisBoundary
    limbus: IrisBoundary
    processing_time_ms: float
    timestamp: datetime = field(default_factory=datetime.now)
    image: Optional[np.ndarray] = field(default=None, repr=False)
    trace: Optional[MemoryTraceSink] = field(default=None, repr=False)

    @property
    def found(self) -> bool:
        return self.pupil.found and self.limbus.found

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image_path": str(self.image_path),
            "timestamp": self.timestamp.isoformat(),
            "processing_time_ms": round(self.processing_time_ms, 2),
            "pupil": self.pupil.to_dict(),
            "limbus": self.limbus.to_dict(),
        }

    def summary_row(self) -> Dict[str, Any]:
        """Flat record for tabular (CSV) export, values rounded like the text export."""
        row: Dict[str, Any] = {"image": self.image_path.name}
        for name, boundary in (("pupil", self.pupil), ("limbus", self.limbus)):
            row[f"{name}_found"] = boundary.found
            x, y = boundary.center()
            a, b = boundary.size()
            row.update({f"{name}_x": x, f"{name}_y": y, f"{name}_a": a, f"{name}_b": b})
        row["time_ms"] = round(self.processing_time_ms, 1)
        return row


class LocalizationPipeline:
    def __init__(
        self,
        config: Optional[FinderConfig] = None,
        save_intermediates: bool = False,
        file_io: Optional[FileIO] = None,
    ):
        """
        Args:
            config: finder parameters (defaults if None)
            save_intermediates: keep the mask/contrast/hough images of each run
            file_io: image loader
        """
        self.config = config or FinderConfig()
        self.save_intermediates = save_intermediates
        self.file_io = file_io or FileIO()

        logger.info("LocalizationPipeline initialized")

    def process(self, image_path: Path, save_dir: Optional[Path] = None) -> LocalizationResult:
        """
        Localize the boundaries of one image file.

        Args:
            image_path: image to process
            save_dir: where intermediates are written when save_intermediates is set

        Raises:
            PipelineError: the image cannot be loaded
        """
        image_path = Path(image_path)
        image = self.file_io.load_image(image_path)
        if image is None or image.size == 0:
            raise PipelineError(f"Failed to load image: {image_path}")

        return self.process_image(image, image_path=image_path, save_dir=save_dir)

    def process_image(
        self, image: np.ndarray, image_path: Optional[Path] = None, save_dir: Optional[Path] = None
    ) -> LocalizationResult:
        image_path = Path(image_path) if image_path else Path("<memory>")
        start_time = datetime.now()

        trace = self._make_trace(image_path, save_dir)
        finder = IrisFinder(image, self.config, trace)
        pupil, limbus = finder.boundaries()

        processing_time = (datetime.now() - start_time).total_seconds() * 1000
        logger.info(f"Processed {image_path.name}: {pupil} {limbus} time={processing_time:.1f}ms")
        if not pupil.found:
            logger.warning(f"Pupil not found in {image_path.name}")

        return LocalizationResult(
            image_path=image_path,
            pupil=pupil,
            limbus=limbus,
            processing_time_ms=processing_time,
            timestamp=start_time,
            image=image,
            trace=trace if isinstance(trace, MemoryTraceSink) else None,
        )

    def process_batch(self, image_dir: Path, save_dir: Optional[Path] = None) -> List[LocalizationResult]:
        """Process every image in a directory. Unreadable files are logged and skipped."""
        results = []
        paths = list_images(Path(image_dir))
        logger.info(f"Batch processing {len(paths)} images from {image_dir}")

        for path in paths:
            try:
                results.append(self.process(path, save_dir=save_dir))
            except PipelineError as e:
                logger.error(f"Skipping {path.name}: {e}")

        found = sum(1 for r in results if r.found)
        logger.info(f"Batch complete: {found}/{len(results)} images with both boundaries")
        return results

    def _make_trace(self, image_path: Path, save_dir: Optional[Path]) -> TraceSink:
        if not self.save_intermediates:
            return TraceSink()
        if save_dir is not None:
            return DirectoryTraceSink(Path(save_dir) / image_path.stem, self.file_io)
        return MemoryTraceSink()
