"""Spatial partitioning — which runs of pixels get sorted independently.

All strategies work in place on a flat, row-major array of packed pixels of
length ``width * height``. Values never cross a partition boundary:

    global:  the whole array is one run
    line:    each row is a run
    column:  each column (stride = width) is a run
"""

from typing import Callable

import numpy as np

from engine.comparator import Comparator
from engine.config import Partition, PreconditionError

PartitionFn = Callable[[np.ndarray, int, int, Comparator], None]


def _grid(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """(height, width) view onto the flat pixel array."""
    if pixels.size != width * height:
        raise PreconditionError(
            f"{pixels.size} pixels do not fill a {width}x{height} grid"
        )
    return pixels.reshape(height, width)


def sort_global(
    pixels: np.ndarray, width: int, height: int, comparator: Comparator
) -> None:
    _grid(pixels, width, height)
    pixels[:] = comparator.sort(pixels)


def sort_lines(
    pixels: np.ndarray, width: int, height: int, comparator: Comparator
) -> None:
    grid = _grid(pixels, width, height)
    if grid.size == 0:
        return
    grid[:] = comparator.sort(grid, axis=1)


def sort_columns(
    pixels: np.ndarray, width: int, height: int, comparator: Comparator
) -> None:
    """Sort every column on its own.

    Sorting the row-major grid along axis 0 gathers the strided values
    ``x, x + width, x + 2 * width, ...`` for each column, orders them and
    scatters them back to the same positions.
    """
    grid = _grid(pixels, width, height)
    if grid.size == 0:
        return
    grid[:] = comparator.sort(grid, axis=0)


PARTITIONERS: dict[Partition, PartitionFn] = {
    Partition.GLOBAL: sort_global,
    Partition.LINE: sort_lines,
    Partition.COLUMN: sort_columns,
}


def apply_partition(
    pixels: np.ndarray,
    width: int,
    height: int,
    partition: Partition,
    comparator: Comparator,
) -> None:
    PARTITIONERS[partition](pixels, width, height, comparator)
