"""PNG encoding/decoding for returning sorted frames to the host."""

import io

import numpy as np
from PIL import Image

DEFAULT_MAX_BYTES = 32 * 1024 * 1024  # 32MB


def encode_png(frame: np.ndarray, compress_level: int = 1) -> bytes:
    """Encode an RGBA frame to PNG bytes. Lossless, alpha kept."""
    img = Image.fromarray(np.ascontiguousarray(frame, dtype=np.uint8))
    buf = io.BytesIO()
    img.save(buf, format="PNG", compress_level=compress_level)
    return buf.getvalue()


def encode_png_fit(
    frame: np.ndarray, max_bytes: int = DEFAULT_MAX_BYTES
) -> bytes:
    """Encode with maximum compression if the fast level overflows max_bytes.

    Raises ValueError if the frame still exceeds max_bytes.
    """
    data = encode_png(frame)
    if len(data) <= max_bytes:
        return data
    data = encode_png(frame, compress_level=9)
    if len(data) > max_bytes:
        raise ValueError(
            f"PNG frame ({len(data)} bytes) exceeds {max_bytes} bytes"
        )
    return data


def decode_png(data: bytes) -> np.ndarray:
    """Decode PNG bytes back to an (H, W, 4) uint8 array."""
    img = Image.open(io.BytesIO(data)).convert("RGBA")
    return np.array(img)
