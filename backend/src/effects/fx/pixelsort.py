"""Pixel Sort effect — reorders whole pixels by a channel or HSL key.

The frame's memory is a row-major RGBA PixelBuffer, so the effect is a thin
wrapper over engine.sorter: params become a SortConfiguration, the sorted
buffer is reshaped back into a frame.
"""

import numpy as np

from engine.config import Partition, SortConfiguration, SortKey
from engine.sorter import sort_frame

EFFECT_ID = "fx.pixelsort"
EFFECT_NAME = "Pixel Sort"
EFFECT_CATEGORY = "glitch"

PARAMS: dict = {
    "sort_by": {
        "type": "choice",
        "choices": [k.value for k in SortKey],
        "default": SortKey.RGBA.value,
        "label": "Sort By",
    },
    "partition": {
        "type": "choice",
        "choices": [p.value for p in Partition],
        "default": Partition.GLOBAL.value,
        "label": "Partition",
        "description": "Sort the whole image, each line, or each column",
    },
    "descending": {
        "type": "bool",
        "default": False,
        "label": "Descending",
    },
    "little_endian": {
        "type": "bool",
        "default": False,
        "label": "Little Endian",
        "description": "Byte order of the packed value (affects 'rgba' only)",
    },
}


def defaults() -> dict:
    return {name: schema["default"] for name, schema in PARAMS.items()}


def apply(
    frame: np.ndarray,
    params: dict,
    state_in: dict | None = None,
    *,
    frame_index: int,
    seed: int,
    resolution: tuple[int, int],
) -> tuple[np.ndarray, dict | None]:
    """Sort the frame's pixels. Stateless and deterministic.

    Raises PreconditionError for unknown ``sort_by`` / ``partition`` values.
    """
    config = SortConfiguration.from_params({**defaults(), **params})
    if frame.size == 0:
        return frame.copy(), None
    return sort_frame(frame, config), None
