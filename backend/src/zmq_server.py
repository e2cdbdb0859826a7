import base64
import binascii
import collections
import json
import logging
import os
import time
import uuid

import numpy as np
import sentry_sdk
import zmq

from effects import registry
from engine.config import PreconditionError, SortConfiguration
from engine.sorter import sort_pixels
from engine.transport import encode_png_fit
from image.reader import load_rgba, probe
from security import (
    validate_buffer_length,
    validate_dimensions,
    validate_upload,
)

logger = logging.getLogger(__name__)

# Raw RGBA buffers travel base64-encoded inside JSON
MAX_MESSAGE_BYTES = 64 * 1024 * 1024


class ZMQServer:
    def __init__(self):
        self.context = zmq.Context()
        self.socket = self.context.socket(zmq.REP)
        self.socket.setsockopt(zmq.MAXMSGSIZE, MAX_MESSAGE_BYTES)
        self.port = self.socket.bind_to_random_port("tcp://127.0.0.1")
        # Dedicated ping socket, never blocked by a long sort
        self.ping_socket = self.context.socket(zmq.REP)
        self.ping_socket.setsockopt(zmq.MAXMSGSIZE, 4096)
        self.ping_port = self.ping_socket.bind_to_random_port("tcp://127.0.0.1")
        # Auth token: rejects other local processes
        self.token = str(uuid.uuid4())
        self.start_time = time.time()
        self.running = False
        # Decoded source images, keyed by (path, mtime), LRU eviction
        self.frames: collections.OrderedDict[tuple[str, float], np.ndarray] = (
            collections.OrderedDict()
        )
        self._max_frames = 4
        self.last_sort_ms = 0.0

    def reset_state(self):
        """Clear accumulated state without closing sockets/context.

        Used by session-scoped test fixtures between tests.
        """
        self.frames.clear()
        self.last_sort_ms = 0.0

    def _validate_token(self, message: dict) -> str | None:
        """Validate auth token. Returns error message or None if valid."""
        msg_token = message.get("_token")
        if msg_token != self.token:
            return "invalid or missing auth token"
        return None

    def _make_ping_response(self, msg_id: str | None) -> dict:
        return {
            "id": msg_id,
            "status": "alive",
            "uptime_s": round(time.time() - self.start_time, 1),
            "last_sort_ms": self.last_sort_ms,
        }

    def handle_message(self, message: dict) -> dict:
        cmd = message.get("cmd")
        msg_id = message.get("id")

        token_err = self._validate_token(message)
        if token_err:
            return {"id": msg_id, "ok": False, "error": token_err}

        if cmd == "ping":
            return self._make_ping_response(msg_id)
        elif cmd == "shutdown":
            self.running = False
            return {"id": msg_id, "ok": True}
        elif cmd == "list_effects":
            return {"id": msg_id, "ok": True, "effects": registry.list_all()}
        elif cmd == "sort_pixels":
            return self._handle_sort_pixels(message, msg_id)
        elif cmd == "probe_image":
            return self._handle_probe_image(message, msg_id)
        elif cmd == "sort_image":
            return self._handle_sort_image(message, msg_id)
        else:
            return {"id": msg_id, "ok": False, "error": f"unknown: {cmd}"}

    def _handle_sort_pixels(self, message: dict, msg_id: str | None) -> dict:
        data = message.get("data")
        width = message.get("width")
        height = message.get("height")
        params = message.get("params", {})
        if data is None:
            return {"id": msg_id, "ok": False, "error": "missing data"}

        errors = validate_dimensions(width, height)
        if errors:
            return {"id": msg_id, "ok": False, "error": "; ".join(errors)}

        try:
            buffer = base64.b64decode(data, validate=True)
        except (binascii.Error, TypeError, ValueError):
            return {"id": msg_id, "ok": False, "error": "invalid base64 data"}

        errors = validate_buffer_length(len(buffer), width, height)
        if errors:
            return {"id": msg_id, "ok": False, "error": "; ".join(errors)}

        if not isinstance(params, dict):
            return {"id": msg_id, "ok": False, "error": "params must be an object"}

        try:
            config = SortConfiguration.from_params(params)
            t0 = time.monotonic()
            out = sort_pixels(buffer, width, height, config)
            self.last_sort_ms = round((time.monotonic() - t0) * 1000, 2)
        except PreconditionError as e:
            return {"id": msg_id, "ok": False, "error": str(e)}
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.error("Sort pixels handler error: %s", type(e).__name__)
            return {"id": msg_id, "ok": False, "error": "Internal processing error"}

        return {
            "id": msg_id,
            "ok": True,
            "data": base64.b64encode(out).decode("ascii"),
            "width": width,
            "height": height,
            "params": config.to_params(),
        }

    def _handle_probe_image(self, message: dict, msg_id: str | None) -> dict:
        path = message.get("path")
        if not path:
            return {"id": msg_id, "ok": False, "error": "missing path"}

        errors = validate_upload(path)
        if errors:
            return {"id": msg_id, "ok": False, "error": "; ".join(errors)}

        result = probe(path)
        result["id"] = msg_id
        if result.get("ok"):
            errors = validate_dimensions(result["width"], result["height"])
            if errors:
                return {"id": msg_id, "ok": False, "error": "; ".join(errors)}
        return result

    def _handle_sort_image(self, message: dict, msg_id: str | None) -> dict:
        path = message.get("path")
        params = message.get("params", {})
        effect_id = message.get("effect_id", "fx.pixelsort")
        if not path:
            return {"id": msg_id, "ok": False, "error": "missing path"}

        errors = validate_upload(path)
        if errors:
            return {"id": msg_id, "ok": False, "error": "; ".join(errors)}

        if registry.get(effect_id) is None:
            return {"id": msg_id, "ok": False, "error": f"unknown effect: {effect_id}"}

        if not isinstance(params, dict):
            return {"id": msg_id, "ok": False, "error": "params must be an object"}

        try:
            info = probe(path)
            if not info.get("ok"):
                return {"id": msg_id, "ok": False, "error": info["error"]}
            errors = validate_dimensions(info["width"], info["height"])
            if errors:
                return {"id": msg_id, "ok": False, "error": "; ".join(errors)}

            frame = self._get_frame(path)
            t0 = time.monotonic()
            output = registry.run(effect_id, frame, params)
            self.last_sort_ms = round((time.monotonic() - t0) * 1000, 2)
            png = encode_png_fit(output)
        except PreconditionError as e:
            return {"id": msg_id, "ok": False, "error": str(e)}
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.error("Sort image handler error: %s", type(e).__name__)
            return {"id": msg_id, "ok": False, "error": "Internal processing error"}

        return {
            "id": msg_id,
            "ok": True,
            "frame_data": base64.b64encode(png).decode("ascii"),
            "width": int(output.shape[1]),
            "height": int(output.shape[0]),
        }

    def _get_frame(self, path: str) -> np.ndarray:
        key = (path, os.path.getmtime(path))
        if key in self.frames:
            self.frames.move_to_end(key)
            return self.frames[key]
        while len(self.frames) >= self._max_frames:
            self.frames.popitem(last=False)
        frame = load_rgba(path)
        self.frames[key] = frame
        return frame

    def _handle_ping(self, message: dict) -> dict:
        """Ping socket: token check and liveness only, no other commands."""
        msg_id = message.get("id")
        token_err = self._validate_token(message)
        if token_err:
            return {"id": msg_id, "ok": False, "error": token_err}
        return self._make_ping_response(msg_id)

    @staticmethod
    def _parse_request(raw: bytes) -> dict | None:
        """Decode one frame. None unless it is a JSON object."""
        try:
            message = json.loads(raw)
        except ValueError:
            return None
        return message if isinstance(message, dict) else None

    def _serve_one(self, sock: zmq.Socket, handler) -> None:
        # REP sockets must reply to every recv, whatever arrived
        message = self._parse_request(sock.recv())
        if message is None:
            response = {"ok": False, "error": "Invalid message format"}
        else:
            try:
                response = handler(message)
            except Exception as e:
                sentry_sdk.capture_exception(e)
                logger.error("Unhandled handler error: %s", type(e).__name__)
                response = {
                    "id": message.get("id"),
                    "ok": False,
                    "error": "Internal processing error",
                }
        sock.send_json(response)

    def run(self):
        """Serve until a shutdown command or a socket failure, then close."""
        self.running = True
        poller = zmq.Poller()
        # Ping is served first so liveness checks never queue behind a sort
        routes = (
            (self.ping_socket, self._handle_ping),
            (self.socket, self.handle_message),
        )
        for sock, _ in routes:
            poller.register(sock, zmq.POLLIN)
        logger.info("Sidecar serving on ports %d/%d", self.port, self.ping_port)
        try:
            while self.running:
                events = dict(poller.poll(timeout=500))
                for sock, handler in routes:
                    if sock in events:
                        self._serve_one(sock, handler)
        except zmq.ZMQError as e:
            logger.error("ZMQ error, stopping sidecar: %s", e)
        finally:
            self.close()

    def close(self):
        self.frames.clear()
        self.ping_socket.close()
        self.socket.close()
        self.context.term()
