import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

import cv2
import numpy as np
import pandas as pd

IMAGE_SUFFIXES = (".png", ".bmp", ".jpg", ".jpeg", ".tif", ".tiff", ".pgm")


class FileIO:
    def load_image(self, filepath: Path) -> np.ndarray:
        filepath = Path(filepath)
        if not filepath.exists():
            return None
        try:
            # np.fromfile + imdecode keeps non-ASCII paths working
            data = np.fromfile(str(filepath), dtype=np.uint8)
            if data.size == 0:
                return None
            # Keep every channel: the finder picks the red one itself.
            return cv2.imdecode(data, cv2.IMREAD_UNCHANGED)
        except (OSError, cv2.error):
            return None

    def save_image(self, filepath: Path, image: np.ndarray) -> None:
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        cv2.imwrite(str(filepath), image)


def list_images(path: Path, suffixes: Sequence[str] = IMAGE_SUFFIXES) -> List[Path]:
    return sorted(p for p in Path(path).iterdir() if p.is_file() and p.suffix.lower() in suffixes)


def read_json(filepath: Path) -> dict:
    filepath = Path(filepath)
    if filepath.exists():
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)
    return {}


def write_json(data: Any, filepath: Path):
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=4)


def write_csv(rows: List[Dict[str, Any]], filepath: Path) -> pd.DataFrame:
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(rows)
    df.to_csv(filepath, index=False)
    return df
