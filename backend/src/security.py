"""Security validation gates for the pixel sort sidecar."""

import json
import os
import re
from pathlib import Path

# SEC-1: Image upload validation
MAX_UPLOAD_SIZE = 100 * 1024 * 1024  # 100 MB
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".tif", ".tiff"}

# SEC-2: Geometry caps (64 MP total, 16K per side)
MAX_PIXELS = 64 * 1024 * 1024
MAX_DIMENSION = 16_384


def validate_upload(path: str) -> list[str]:
    """Validate an image file path. Returns list of errors (empty = valid).

    Checks (SEC-1):
    - Resolved path is under the user home
    - File exists and is not a symlink
    - Extension in whitelist
    - File size <= MAX_UPLOAD_SIZE
    - Filename is safe (no path traversal)
    """
    errors: list[str] = []
    p = Path(path)

    resolved = str(p.resolve())
    if not resolved.startswith(str(Path.home())):
        errors.append("Path must be within user home directory")
        return errors

    if not p.exists():
        errors.append(f"File not found: {path}")
        return errors

    if p.is_symlink():
        errors.append("Symlinks are not allowed")
        return errors

    ext = p.suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        errors.append(
            f"Extension '{ext}' not allowed. Allowed: {sorted(ALLOWED_EXTENSIONS)}"
        )

    size = p.stat().st_size
    if size > MAX_UPLOAD_SIZE:
        size_mb = size / (1024 * 1024)
        errors.append(
            f"File too large: {size_mb:.1f} MB (max {MAX_UPLOAD_SIZE // (1024 * 1024)} MB)"
        )

    name = p.name
    if ".." in name or "/" in name or "\\" in name or "\x00" in name:
        errors.append(f"Unsafe filename: {name}")

    return errors


def validate_dimensions(width, height) -> list[str]:
    """Validate image geometry against SEC-2 caps. Returns list of errors.

    Zero-sized images are legal; they sort to an empty buffer.
    """
    errors: list[str] = []
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f"{name} must be an integer")
        elif value < 0:
            errors.append(f"{name} must be non-negative")
        elif value > MAX_DIMENSION:
            errors.append(f"{name} {value} exceeds maximum {MAX_DIMENSION} (SEC-2)")
    if errors:
        return errors
    if width * height > MAX_PIXELS:
        errors.append(
            f"Pixel count {width * height} exceeds maximum {MAX_PIXELS} (SEC-2)"
        )
    return errors


def validate_buffer_length(length: int, width: int, height: int) -> list[str]:
    """Check a raw buffer length against width * height * 4."""
    errors: list[str] = []
    expected = width * height * 4
    if length != expected:
        errors.append(
            f"Buffer length {length} does not match {width}x{height} RGBA ({expected})"
        )
    return errors


# --- PII stripping for Sentry and crash dumps ---

_HOME = os.path.expanduser("~")
_USERNAME = os.path.basename(_HOME)
_PATH_PATTERN = re.compile(r"/Users/[^/\s]+|/home/[^/\s]+|C:\\Users\\[^\\\s]+")
_SENSITIVE_KEYS = {"_token", "token", "auth", "key", "secret", "password", "dsn"}


def _scrub_dict(d: dict):
    """Redact values for keys that look sensitive."""
    for key in list(d.keys()):
        if any(s in key.lower() for s in _SENSITIVE_KEYS):
            d[key] = "<REDACTED>"


def strip_pii(event: dict, hint: dict) -> dict:
    """Sentry before_send hook. Strips file paths and auth tokens.

    Also usable for crash dump sanitization.
    """
    event_str = json.dumps(event)
    event_str = event_str.replace(_HOME, "<HOME>")
    event_str = event_str.replace(_USERNAME, "<USER>")
    event_str = _PATH_PATTERN.sub("<REDACTED_PATH>", event_str)
    event = json.loads(event_str)

    _scrub_dict(event.get("extra", {}))
    for ctx in event.get("contexts", {}).values():
        if isinstance(ctx, dict):
            _scrub_dict(ctx)
    return event
