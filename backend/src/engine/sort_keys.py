"""Sort keys — pure functions from packed pixels to numeric keys.

Every function accepts a single packed pixel or a numpy array of them and
returns a value (or array) of the same shape. Channels sit at fixed bit
positions of the packed integer:

    red   = bits 24..31
    green = bits 16..23
    blue  = bits 8..15
    alpha = bits 0..7
"""

from typing import Callable

import numpy as np

from engine.config import SortKey

KeyFn = Callable[[np.ndarray], np.ndarray]


def _packed(p) -> np.ndarray:
    return np.asarray(p, dtype=np.uint32)


def rgba(p):
    """Raw packed value."""
    return _packed(p)[()]


def red(p):
    return (_packed(p) >> 24) & 0xFF


def green(p):
    return (_packed(p) >> 16) & 0xFF


def blue(p):
    return (_packed(p) >> 8) & 0xFF


def alpha(p):
    return _packed(p) & 0xFF


def _rgb_extrema(p) -> tuple[np.ndarray, ...]:
    """Return float (r, g, b, max, min) on the 0-255 scale."""
    r = red(p).astype(np.float64)
    g = green(p).astype(np.float64)
    b = blue(p).astype(np.float64)
    cmax = np.maximum(np.maximum(r, g), b)
    cmin = np.minimum(np.minimum(r, g), b)
    return r, g, b, cmax, cmin


def hue(p):
    """HSL hue in degrees, [0, 360). Achromatic pixels get 0.

    When two channels share the maximum, red wins over green and green over
    blue when picking the sector formula.
    """
    r, g, b, cmax, cmin = _rgb_extrema(p)
    chroma = cmax - cmin
    safe_chroma = np.where(chroma > 0, chroma, 1.0)

    sector = np.where(
        r == cmax,
        (g - b) / safe_chroma,
        np.where(g == cmax, (b - r) / safe_chroma + 2.0, (r - g) / safe_chroma + 4.0),
    )
    degrees = sector * 60.0
    degrees = np.where(degrees < 0, degrees + 360.0, degrees)
    return np.where(chroma > 0, degrees, 0.0)[()]


def lightness(p):
    """HSL lightness, (max + min) / 2 on channels normalized to [0, 1]."""
    _, _, _, cmax, cmin = _rgb_extrema(p)
    return ((cmax + cmin) / (2.0 * 255.0))[()]


def saturation(p):
    """HSL saturation in [0, 1]. Zero chroma gives 0."""
    _, _, _, cmax, cmin = _rgb_extrema(p)
    chroma = (cmax - cmin) / 255.0
    light = (cmax + cmin) / (2.0 * 255.0)
    denom = 1.0 - np.abs(2.0 * light - 1.0)
    safe_denom = np.where(chroma > 0, denom, 1.0)
    return np.where(chroma > 0, chroma / safe_denom, 0.0)[()]


KEY_FUNCTIONS: dict[SortKey, KeyFn] = {
    SortKey.RGBA: rgba,
    SortKey.RED: red,
    SortKey.GREEN: green,
    SortKey.BLUE: blue,
    SortKey.ALPHA: alpha,
    SortKey.HUE: hue,
    SortKey.SATURATION: saturation,
    SortKey.LIGHTNESS: lightness,
}


def key_for(sort_key: SortKey) -> KeyFn:
    """Look up the key function for a SortKey member."""
    return KEY_FUNCTIONS[sort_key]
