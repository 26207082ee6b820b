"""Lightweight HTTP health-check endpoint reporting the last scheduler tick."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any

logger = logging.getLogger(__name__)

StatusProvider = Callable[[], dict[str, Any]]


def _make_handler(health_path: str, status: StatusProvider) -> type[BaseHTTPRequestHandler]:
    """Create a handler class serving ``status()`` as JSON on the health path."""

    class _HealthHandler(BaseHTTPRequestHandler):
        """Responds 200 to the health path, 404 to everything else."""

        def do_GET(self) -> None:  # noqa: N802 — BaseHTTPRequestHandler convention
            if self.path != health_path:
                self.send_response(404)
                self.end_headers()
                return

            body = json.dumps({"status": "ok", **status()}).encode("utf-8")
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: object) -> None:  # noqa: A002
            """Suppress default stderr logging — use our logger instead."""
            logger.debug("Health check: %s", format % args)

    return _HealthHandler


def start_health_check(
    status: StatusProvider | None = None,
    port: int = 10000,
    path: str = "/health",
) -> tuple[HTTPServer, threading.Thread]:
    """Start a health-check HTTP server on a daemon thread.

    Args:
        status: Returns extra JSON fields for the response body.
        port: Port to listen on (``0`` picks a free one).
        path: URL path for the health endpoint.

    Returns:
        Tuple of (server, thread) for shutdown control.
    """
    handler = _make_handler(path, status or dict)
    server = HTTPServer(("0.0.0.0", port), handler)

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    logger.info("Health check listening on port %d at %s", server.server_address[1], path)
    return server, thread
