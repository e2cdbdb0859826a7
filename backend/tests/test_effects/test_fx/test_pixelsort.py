"""Tests for fx.pixelsort — effect contract around the sort engine."""

import time

import numpy as np
import pytest

from effects.fx.pixelsort import EFFECT_ID, PARAMS, apply, defaults
from engine.config import PreconditionError

pytestmark = pytest.mark.smoke


def _frame(h=100, w=100):
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, (h, w, 4), dtype=np.uint8)


KW = {"frame_index": 0, "seed": 42, "resolution": (100, 100)}


def test_effect_id():
    assert EFFECT_ID == "fx.pixelsort"


def test_basic():
    frame = _frame()
    result, state = apply(frame, {}, None, **KW)
    assert result.shape == frame.shape
    assert result.dtype == np.uint8
    assert state is None


def test_defaults_cover_every_param():
    assert set(defaults()) == set(PARAMS)
    assert defaults()["sort_by"] == "rgba"
    assert defaults()["partition"] == "global"


def test_determinism():
    frame = _frame()
    params = {"sort_by": "hue", "partition": "column", "descending": True}
    r1, _ = apply(frame, params, None, **KW)
    r2, _ = apply(frame, params, None, **KW)
    np.testing.assert_array_equal(r1, r2)


def test_modifies_frame():
    frame = _frame()
    result, _ = apply(frame, {"sort_by": "red", "partition": "line"}, None, **KW)
    assert not np.array_equal(result, frame)


def test_does_not_mutate_input():
    frame = _frame()
    before = frame.copy()
    apply(frame, {"sort_by": "blue"}, None, **KW)
    np.testing.assert_array_equal(frame, before)


def test_pixels_stay_whole():
    frame = _frame(20, 20)
    result, _ = apply(frame, {"sort_by": "saturation"}, None, **KW)
    before = sorted(map(bytes, frame.reshape(-1, 4)))
    after = sorted(map(bytes, result.reshape(-1, 4)))
    assert before == after


def test_reverse_differs():
    frame = _frame()
    base = {"sort_by": "green", "partition": "line"}
    r_fwd, _ = apply(frame, {**base, "descending": False}, None, **KW)
    r_rev, _ = apply(frame, {**base, "descending": True}, None, **KW)
    assert not np.array_equal(r_fwd, r_rev)
    np.testing.assert_array_equal(r_fwd[:, :, 1], r_rev[:, ::-1, 1])


def test_alpha_key_sorts_alpha_channel():
    frame = _frame(10, 10)
    result, _ = apply(frame, {"sort_by": "alpha"}, None, **KW)
    alphas = result[:, :, 3].reshape(-1).astype(int)
    assert np.all(np.diff(alphas) >= 0)


def test_empty_frame():
    frame = np.zeros((0, 10, 4), dtype=np.uint8)
    result, _ = apply(frame, {}, None, **KW)
    assert result.shape == frame.shape


def test_unknown_choice_raises():
    with pytest.raises(PreconditionError):
        apply(_frame(), {"sort_by": "brightness"}, None, **KW)


def test_choices_match_params_schema():
    for name in ("sort_by", "partition"):
        assert PARAMS[name]["default"] in PARAMS[name]["choices"]
    assert "hue" in PARAMS["sort_by"]["choices"]
    assert "column" in PARAMS["partition"]["choices"]


def test_performance_1080p():
    """Column hue sort of a 1080p frame stays interactive."""
    frame = _frame(h=1080, w=1920)
    params = {"sort_by": "hue", "partition": "column"}
    kw = {"frame_index": 0, "seed": 42, "resolution": (1920, 1080)}

    apply(frame, params, None, **kw)

    t0 = time.monotonic()
    result, _ = apply(frame, params, None, **kw)
    elapsed_ms = (time.monotonic() - t0) * 1000

    assert result.shape == frame.shape
    assert elapsed_ms < 2000, f"pixelsort took {elapsed_ms:.0f}ms at 1080p"
