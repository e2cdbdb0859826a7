"""Pixel sort orchestration — codec -> key/comparator -> partition -> codec."""

import logging

import numpy as np

from engine.codec import BYTES_PER_PIXEL, as_byte_array, decode, encode
from engine.comparator import build_comparator
from engine.config import PreconditionError, SortConfiguration, SortKey
from engine.partition import apply_partition
from engine.sort_keys import key_for

logger = logging.getLogger(__name__)


def _check_dimension(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise PreconditionError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise PreconditionError(f"{name} must be non-negative, got {value}")
    return int(value)


def effective_byte_order(config: SortConfiguration) -> bool:
    """Byte order actually used for decoding under ``config``.

    Only the raw ``rgba`` key is affected by byte order. Channel and HSL keys
    always decode big-endian so that ``red`` names the first byte of every
    pixel regardless of the flag.
    """
    return config.little_endian if config.sort_by is SortKey.RGBA else False


def sort_pixels(buffer, width: int, height: int, config) -> bytes:
    """Reorder the pixels of ``buffer`` and return a buffer of the same length.

    Args:
        buffer: Row-major RGBA bytes (bytes, bytearray, memoryview or uint8
                ndarray), ``width * height * 4`` long.
        width:  Pixels per row.
        height: Number of rows.
        config: SortConfiguration, or a params dict accepted by
                ``SortConfiguration.from_params``.

    Raises:
        PreconditionError: On bad dimensions, a buffer whose length does not
            match them, or an unknown sort key / partition name.
    """
    if isinstance(config, dict):
        config = SortConfiguration.from_params(config)
    elif not isinstance(config, SortConfiguration):
        raise PreconditionError(
            f"config must be a SortConfiguration or params dict, got {type(config).__name__}"
        )

    width = _check_dimension("width", width)
    height = _check_dimension("height", height)
    raw = as_byte_array(buffer)
    expected = width * height * BYTES_PER_PIXEL
    if raw.size != expected:
        raise PreconditionError(
            f"buffer length {raw.size} does not match {width}x{height} "
            f"({expected} bytes)"
        )

    little_endian = effective_byte_order(config)
    if config.little_endian and not little_endian:
        logger.debug(
            "little_endian ignored for channel key %s", config.sort_by.value
        )
    logger.debug(
        "Sorting %dx%d by %s (%s, %s)",
        width,
        height,
        config.sort_by.value,
        config.partition.value,
        "descending" if config.descending else "ascending",
    )

    pixels = decode(raw, little_endian)
    comparator = build_comparator(key_for(config.sort_by), config.descending)
    apply_partition(pixels, width, height, config.partition, comparator)
    return encode(pixels, little_endian)


def sort_frame(frame: np.ndarray, config) -> np.ndarray:
    """Sort an (H, W, 4) uint8 frame and return a new frame of the same shape."""
    if frame.ndim != 3 or frame.shape[2] != BYTES_PER_PIXEL:
        raise PreconditionError(
            f"frame must have shape (H, W, 4), got {frame.shape}"
        )
    height, width = frame.shape[:2]
    out = sort_pixels(frame, width, height, config)
    return np.frombuffer(out, dtype=np.uint8).reshape(frame.shape).copy()
