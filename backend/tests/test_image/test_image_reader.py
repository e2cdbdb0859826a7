"""Tests for Pillow image ingestion."""

import numpy as np
from PIL import Image

from image.reader import load_rgba, probe


def test_probe_reports_geometry(synthetic_image_path):
    info = probe(str(synthetic_image_path))
    assert info["ok"] is True
    assert info["width"] == 40
    assert info["height"] == 30
    assert info["format"] == "PNG"
    assert info["mode"] == "RGBA"


def test_probe_missing_file(tmp_path):
    info = probe(str(tmp_path / "nope.png"))
    assert info["ok"] is False
    assert "Failed to open image" in info["error"]


def test_probe_not_an_image(tmp_path):
    path = tmp_path / "fake.png"
    path.write_bytes(b"not a png at all")
    info = probe(str(path))
    assert info["ok"] is False


def test_load_rgba_shape_and_values(synthetic_image_path):
    frame = load_rgba(str(synthetic_image_path))
    assert frame.shape == (30, 40, 4)
    assert frame.dtype == np.uint8
    assert frame[0, 0, 0] == 255
    assert (frame[:, :, 3] == 255).all()


def test_load_rgb_gains_opaque_alpha(tmp_path):
    rgb = np.full((5, 6, 3), 100, dtype=np.uint8)
    path = tmp_path / "rgb.png"
    Image.fromarray(rgb).save(path)
    frame = load_rgba(str(path))
    assert frame.shape == (5, 6, 4)
    assert (frame[:, :, 3] == 255).all()
    assert (frame[:, :, :3] == 100).all()


def test_load_greyscale_expands_channels(tmp_path):
    grey = np.arange(12, dtype=np.uint8).reshape(3, 4)
    path = tmp_path / "grey.png"
    Image.fromarray(grey).save(path)
    frame = load_rgba(str(path))
    np.testing.assert_array_equal(frame[:, :, 0], grey)
    np.testing.assert_array_equal(frame[:, :, 2], grey)
