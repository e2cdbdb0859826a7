"""Tests for effect registry."""

import numpy as np
import pytest

from effects.registry import get, list_all, register, run


def test_registry_contains_pixelsort():
    info = get("fx.pixelsort")
    assert info is not None
    assert info["name"] == "Pixel Sort"
    assert info["category"] == "glitch"
    assert callable(info["fn"])


def test_list_all_has_correct_shape():
    effects = list_all()
    assert "fx.pixelsort" in [e["id"] for e in effects]
    for effect in effects:
        assert {"id", "name", "category", "params", "defaults"} <= set(effect)


def test_list_all_exposes_defaults():
    entry = next(e for e in list_all() if e["id"] == "fx.pixelsort")
    assert entry["defaults"]["descending"] is False
    assert entry["defaults"]["partition"] == "global"


def test_get_nonexistent_returns_none():
    assert get("fx.nonexistent") is None


def test_run_applies_effect():
    frame = np.zeros((2, 3, 4), dtype=np.uint8)
    frame[0, 0] = [9, 0, 0, 255]
    out = run("fx.pixelsort", frame, {"sort_by": "red", "descending": True})
    assert out.shape == frame.shape
    assert out[0, 0, 0] == 9


def test_run_passes_resolution_as_width_height():
    seen = {}

    def _probe(frame, params, state_in, *, frame_index, seed, resolution):
        seen["resolution"] = resolution
        return frame, None

    register("test.probe", _probe, {}, "Probe", "test")
    run("test.probe", np.zeros((5, 7, 4), dtype=np.uint8))
    assert seen["resolution"] == (7, 5)


def test_run_unknown_effect():
    with pytest.raises(KeyError):
        run("fx.nonexistent", np.zeros((1, 1, 4), dtype=np.uint8))
