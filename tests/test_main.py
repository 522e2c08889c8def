"""
CLI tests
"""

import json
import logging
from pathlib import Path

import cv2
import pandas as pd
import pytest

from irisfinder.main import build_parser, load_finder_config, main


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_parser_requires_a_source():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--image", "a.png", "--batch", "dir"])


def test_single_image(eye_image_file, tmp_path: Path, capsys):
    output = tmp_path / "out" / "result.json"
    overlay = tmp_path / "out" / "overlay.png"

    code = main(["--image", str(eye_image_file), "--output", str(output), "--overlay", str(overlay)])

    assert code == 0
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["pupil"]["found"] is True
    assert data["limbus"]["found"] is True
    assert cv2.imread(str(overlay)).shape[2] == 3
    assert "Localization Result" in capsys.readouterr().out


def test_single_image_with_intermediates(eye_image_file, tmp_path: Path):
    debug_dir = tmp_path / "debug"
    assert main(["--image", str(eye_image_file), "--save-intermediates", str(debug_dir)]) == 0
    assert (debug_dir / "eye" / "hough.png").exists()
    assert (debug_dir / "eye" / "limbus_profile.png").exists()
    heatmap = cv2.imread(str(debug_dir / "eye" / "hough_heatmap.png"))
    assert heatmap.shape == (320, 320, 3)


def test_missing_image_returns_error(tmp_path: Path):
    assert main(["--image", str(tmp_path / "missing.png")]) == 1


def test_batch_writes_summary(tmp_path: Path, eye_image, uniform_image):
    images = tmp_path / "images"
    images.mkdir()
    cv2.imwrite(str(images / "eye.png"), eye_image)
    cv2.imwrite(str(images / "blank.png"), uniform_image)
    output_dir = tmp_path / "results"

    code = main(["--batch", str(images), "--output-dir", str(output_dir), "--output", "1", "--overlay", "1"])

    assert code == 0
    summary = pd.read_csv(output_dir / "summary.csv")
    assert list(summary["image"]) == ["blank.png", "eye.png"]
    assert list(summary["pupil_found"]) == [False, True]
    assert (output_dir / "eye.json").exists()
    assert (output_dir / "eye_overlay.png").exists()


def test_unknown_config_key_returns_error(eye_image_file, tmp_json):
    config_path = tmp_json({"finder": {"min_pupil_radus": 5}})
    assert main(["--image", str(eye_image_file), "--config", str(config_path)]) == 1


def test_missing_config_returns_error(eye_image_file, tmp_path: Path):
    assert main(["--image", str(eye_image_file), "--config", str(tmp_path / "none.json")]) == 1


def test_load_finder_config(tmp_json):
    config = load_finder_config(str(tmp_json({"finder": {"max_pupil_radius": 80}, "other": {"x": 1}})))
    assert config.max_pupil_radius == 80
    assert config.min_pupil_radius == 11
    assert load_finder_config(None).max_pupil_radius == 100
