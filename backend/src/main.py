"""Sidecar entry point — telemetry, diagnostics, limits, then the ZMQ loop.

The host spawns this process and reads the handshake lines printed on
stdout (ZMQ_PORT, ZMQ_PING_PORT, ZMQ_TOKEN) before sending any request.
"""

import logging
import os
import platform
import sys
from pathlib import Path

import sentry_sdk

from _version import __version__
from diagnostics import APP_DIR, init_diagnostics
from security import strip_pii
from zmq_server import ZMQServer

logger = logging.getLogger(__name__)

CONSENT_FILE = "telemetry_consent"

# Address-space cap for the sidecar process
MAX_MEMORY_BYTES = 4 * 1024 * 1024 * 1024


def telemetry_dsn(consent_path: str | None = None) -> str:
    """Sentry DSN to use, or "" when the user has not opted in."""
    path = Path(consent_path or os.path.expanduser(f"{APP_DIR}/{CONSENT_FILE}"))
    try:
        consented = path.read_text().strip() == "yes"
    except OSError:
        consented = False
    return os.environ.get("SENTRY_DSN", "") if consented else ""


def init_telemetry(consent_path: str | None = None) -> bool:
    dsn = telemetry_dsn(consent_path)
    sentry_sdk.init(
        dsn=dsn,
        release=f"pixelsort@{__version__}",
        environment=os.environ.get("SENTRY_ENV", "development"),
        traces_sample_rate=0.1,
        before_send=strip_pii,
        max_breadcrumbs=50,
    )
    return bool(dsn)


def apply_memory_limit(limit: int = MAX_MEMORY_BYTES) -> bool:
    """Cap the address space. Returns False where the cap can't be applied."""
    if platform.system() == "Windows":
        return False
    try:
        import resource

        _, hard = resource.getrlimit(resource.RLIMIT_AS)
        if hard != resource.RLIM_INFINITY:
            limit = min(limit, hard)
        resource.setrlimit(resource.RLIMIT_AS, (limit, hard))
    except (ImportError, ValueError, OSError) as e:
        logger.warning("Memory limit not applied: %s", e)
        return False
    return True


def main():
    telemetry = init_telemetry()
    log_dir = init_diagnostics()
    limited = apply_memory_limit()

    server = ZMQServer()
    logger.info(
        "pixelsort sidecar %s: ports=%d/%d telemetry=%s memory_cap=%s logs=%s",
        __version__,
        server.port,
        server.ping_port,
        "on" if telemetry else "off",
        "on" if limited else "off",
        log_dir,
    )
    # Handshake read by the host, one KEY=VALUE per line
    for key, value in (
        ("ZMQ_PORT", server.port),
        ("ZMQ_PING_PORT", server.ping_port),
        ("ZMQ_TOKEN", server.token),
    ):
        print(f"{key}={value}", flush=True)
    server.run()
    logger.info("pixelsort sidecar stopped")


if __name__ == "__main__":
    sys.exit(main())
