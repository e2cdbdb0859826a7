"""Comparator builder — turns a sort key and direction into an ordering."""

import numpy as np

from engine.sort_keys import KeyFn


class Comparator:
    """Two-argument ordering over packed pixels.

    Calling the comparator gives the classic -1/0/1 contract, so it plugs into
    ``functools.cmp_to_key``. ``order()`` is the vectorized equivalent used by
    the partitioners: one key evaluation and one argsort per call instead of a
    Python call per comparison.
    """

    def __init__(self, key: KeyFn, descending: bool = False):
        self.key = key
        self.descending = descending

    def __call__(self, a, b) -> int:
        ka = self.key(a)
        kb = self.key(b)
        if self.descending:
            ka, kb = kb, ka
        # Compare instead of subtracting: uint32 keys would wrap
        return int(ka > kb) - int(ka < kb)

    def order(self, values: np.ndarray, axis: int = -1) -> np.ndarray:
        """Indices that sort ``values`` along ``axis`` under this ordering."""
        # float64 holds every uint32 exactly, so negation is lossless
        keys = np.asarray(self.key(values), dtype=np.float64)
        if self.descending:
            keys = -keys
        return np.argsort(keys, axis=axis, kind="stable")

    def sort(self, values: np.ndarray, axis: int = -1) -> np.ndarray:
        """Return ``values`` reordered along ``axis``."""
        return np.take_along_axis(values, self.order(values, axis), axis=axis)


def build_comparator(key: KeyFn, descending: bool = False) -> Comparator:
    """Order pixels by ``key``; ``descending`` flips the sign of every comparison."""
    return Comparator(key, descending)
