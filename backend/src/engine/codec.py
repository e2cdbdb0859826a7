"""Pixel codec — 4-byte pixel groups <-> packed uint32 values.

The byte-order flag decides which end of the 32-bit integer the first byte of
each group lands in:

    little_endian=False:  bytes [r, g, b, a] -> 0xRRGGBBAA
    little_endian=True:   bytes [r, g, b, a] -> 0xAABBGGRR

Decoding then encoding with the same flag reproduces the input exactly.
"""

import numpy as np

from engine.config import PreconditionError

BYTES_PER_PIXEL = 4


def _packed_dtype(little_endian: bool) -> np.dtype:
    return np.dtype("<u4") if little_endian else np.dtype(">u4")


def as_byte_array(buffer) -> np.ndarray:
    """View any supported PixelBuffer as a flat contiguous uint8 array."""
    if isinstance(buffer, np.ndarray):
        if buffer.dtype != np.uint8:
            raise PreconditionError(
                f"pixel buffer must be uint8, got {buffer.dtype}"
            )
        return np.ascontiguousarray(buffer).reshape(-1)
    return np.frombuffer(buffer, dtype=np.uint8)


def decode(buffer, little_endian: bool = False) -> np.ndarray:
    """Decode a PixelBuffer into a writable array of packed uint32 pixels."""
    raw = as_byte_array(buffer)
    if raw.size % BYTES_PER_PIXEL:
        raise PreconditionError(
            f"buffer length {raw.size} is not a multiple of {BYTES_PER_PIXEL}"
        )
    # astype() copies into native order, so callers may sort in place
    return raw.view(_packed_dtype(little_endian)).astype(np.uint32)


def encode(pixels, little_endian: bool = False) -> bytes:
    """Encode packed uint32 pixels back into 4-byte groups."""
    packed = np.asarray(pixels, dtype=np.uint32).reshape(-1)
    return packed.astype(_packed_dtype(little_endian)).tobytes()
