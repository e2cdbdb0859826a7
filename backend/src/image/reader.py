"""Image decoding via Pillow — the host-side source of pixel buffers."""

import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


def probe(path: str) -> dict:
    """Probe an image file for metadata. Reads only the header."""
    try:
        with Image.open(path) as img:
            return {
                "ok": True,
                "width": img.width,
                "height": img.height,
                "mode": img.mode,
                "format": img.format,
                "frame_count": getattr(img, "n_frames", 1),
            }
    except (FileNotFoundError, UnidentifiedImageError, OSError) as e:
        logger.exception("Probe failed for %s", path)
        return {"ok": False, "error": f"Failed to open image: {type(e).__name__}"}


def load_rgba(path: str) -> np.ndarray:
    """Decode the first frame of an image to an (H, W, 4) uint8 RGBA array.

    Any source mode (palette, greyscale, RGB, CMYK, ...) is converted to RGBA,
    so the returned memory is always a 4-bytes-per-pixel row-major buffer.
    """
    with Image.open(path) as img:
        img.seek(0)
        rgba = img.convert("RGBA")
    return np.array(rgba, dtype=np.uint8)
