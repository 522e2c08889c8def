import json
from pathlib import Path

import cv2
import numpy as np
import pytest

from synthetic_eye import make_eye_image, make_pupil_image


@pytest.fixture
def tmp_json(tmp_path: Path):
    def _make(data, name="sample.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        return path

    return _make


@pytest.fixture
def pupil_image():
    # 240x240, dark disk r=30 at (120, 120)
    return make_pupil_image()


@pytest.fixture
def eye_image():
    # 320x320, pupil r=30 and limbus r=110 at (160, 160)
    return make_eye_image()


@pytest.fixture
def uniform_image():
    return np.full((200, 200), 128, dtype=np.uint8)


@pytest.fixture
def eye_image_file(tmp_path: Path, eye_image):
    path = tmp_path / "eye.png"
    cv2.imwrite(str(path), eye_image)
    return path
