"""HTTP transport: JSON-RPC, REST, SSE and health endpoints.

Routes
------
- ``POST /message``: one JSON-RPC request, JSON-RPC response
- ``POST /api/woocommerce``: ``{method, params}`` -> ``{success, data}``
- ``GET /api/poll/<orders|products>?since=<iso>``: recent changes
- ``GET /events/<channel>``: Server-Sent Events stream
- ``GET /health``, ``GET /ready``: liveness and readiness
- ``OPTIONS *``: CORS preflight

Each connection is served on its own thread. Successful dispatches of
methods carrying a broadcast event are published to the matching SSE
channel.
"""

from __future__ import annotations

import json
import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qs, unquote, urlsplit

from ..core.config import DEFAULT_MAX_BODY_BYTES
from ..core.exceptions import BaseAPIError
from ..core.logging_config import get_logger
from ..monitoring.health import HealthChecker
from .events import EventBroadcaster, iter_sse, utc_timestamp
from .handlers import JsonRpcHandler

__all__ = ["GatewayHTTPServer", "start_http_server"]

DEFAULT_KEEPALIVE_SEC = 15.0
_SERVE_POLL_SEC = 0.5
_JOIN_TIMEOUT_SEC = 5.0

# Resource name -> list method used by the polling endpoint
POLL_RESOURCES = {
    "orders": "get_orders",
    "products": "get_products",
}

_LOGGER = get_logger("mcp.http")


class _RequestHandler(BaseHTTPRequestHandler):
    server: "GatewayHTTPServer"
    server_version = "WooCommerceMCP/1.0"

    # -- Plumbing ------------------------------------------------------------

    def log_message(self, format: str, *args: Any) -> None:
        _LOGGER.debug(format % args, extra={"client": self.client_address[0]})

    def _cors_headers(self) -> None:
        self.send_header("Access-Control-Allow-Origin", self.server.cors_origin)
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type, Cache-Control, Authorization")

    def _send_json(self, status: int, payload: Any) -> None:
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self._cors_headers()
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_empty(self, status: int) -> None:
        self.send_response(status)
        self._cors_headers()
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _read_body(self) -> Optional[bytes]:
        """Return the request body, or ``None`` after answering 413."""
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            length = 0
        if length > self.server.max_body_bytes:
            self._send_json(HTTPStatus.REQUEST_ENTITY_TOO_LARGE, {"error": "Request body too large"})
            return None
        return self.rfile.read(length) if length > 0 else b""

    def _route(self) -> Tuple[str, Dict[str, list]]:
        parts = urlsplit(self.path)
        return parts.path.rstrip("/") or "/", parse_qs(parts.query)

    # -- Verbs ---------------------------------------------------------------

    def do_OPTIONS(self) -> None:
        self._send_empty(HTTPStatus.NO_CONTENT)

    def do_GET(self) -> None:
        path, query = self._route()
        if path == "/health":
            self._send_json(HTTPStatus.OK, self.server.health.get_health_status())
        elif path == "/ready":
            status = self.server.health.get_readiness_status()
            self._send_json(HTTPStatus.OK if status["ready"] else HTTPStatus.SERVICE_UNAVAILABLE, status)
        elif path.startswith("/events/") and len(path) > len("/events/"):
            self._stream_events(unquote(path[len("/events/"):]))
        elif path.startswith("/api/poll/"):
            self._poll(unquote(path[len("/api/poll/"):]), query)
        else:
            self._send_json(HTTPStatus.NOT_FOUND, {"error": "Not found"})

    def do_POST(self) -> None:
        path, _query = self._route()
        if path == "/message":
            self._message()
        elif path == "/api/woocommerce":
            self._rest_call()
        else:
            self._send_json(HTTPStatus.NOT_FOUND, {"error": "Not found"})

    # -- Endpoints -----------------------------------------------------------

    def _message(self) -> None:
        body = self._read_body()
        if body is None:
            return
        response = self.server.rpc.handle_raw(body)
        if response is None:
            self._send_empty(HTTPStatus.ACCEPTED)
        else:
            self._send_json(HTTPStatus.OK, response)

    def _rest_call(self) -> None:
        body = self._read_body()
        if body is None:
            return
        try:
            request = json.loads(body or b"{}")
        except ValueError as e:
            self._send_json(HTTPStatus.BAD_REQUEST, {"success": False, "error": f"Invalid JSON body: {e}"})
            return
        if not isinstance(request, dict):
            self._send_json(HTTPStatus.BAD_REQUEST, {"success": False, "error": "Request body must be an object"})
            return
        self._dispatch_rest(request.get("method"), request.get("params") or {})

    def _poll(self, resource: str, query: Dict[str, list]) -> None:
        method = POLL_RESOURCES.get(resource)
        if method is None:
            self._send_json(HTTPStatus.NOT_FOUND, {"success": False, "error": f"Unknown resource: {resource}"})
            return
        since = (query.get("since") or [""])[0]
        params = {
            "perPage": 10,
            "page": 1,
            "filters": {"modified_after": since} if since else {},
        }
        self._dispatch_rest(method, params, include_timestamp=True)

    def _dispatch_rest(self, method: Any, params: Any, include_timestamp: bool = False) -> None:
        try:
            result = self.server.rpc.dispatcher.dispatch(method, params)
        except BaseAPIError as e:
            _LOGGER.warning("REST dispatch failed", extra={"method": method, "error_code": e.error_code})
            self._send_json(HTTPStatus.INTERNAL_SERVER_ERROR, {"success": False, "error": e.message})
            return
        except Exception as e:
            _LOGGER.exception("Unexpected REST dispatch failure", extra={"method": method})
            self._send_json(HTTPStatus.INTERNAL_SERVER_ERROR, {"success": False, "error": str(e)})
            return

        payload: Dict[str, Any] = {"success": True, "data": result}
        if include_timestamp:
            payload["timestamp"] = utc_timestamp()
        self._send_json(HTTPStatus.OK, payload)

    def _stream_events(self, channel: str) -> None:
        broadcaster = self.server.broadcaster
        q = broadcaster.subscribe(channel)
        try:
            self.send_response(HTTPStatus.OK)
            self._cors_headers()
            self.send_header("Content-Type", "text/event-stream")
            self.send_header("Cache-Control", "no-cache")
            self.send_header("Connection", "keep-alive")
            self.end_headers()
            for chunk in iter_sse(q, self.server.keepalive_seconds):
                self.wfile.write(chunk.encode("utf-8"))
                self.wfile.flush()
        except (BrokenPipeError, ConnectionResetError):
            _LOGGER.debug("SSE client went away", extra={"channel": channel})
        finally:
            broadcaster.unsubscribe(channel, q)
        self.close_connection = True


class GatewayHTTPServer(ThreadingHTTPServer):
    """Threaded HTTP server wired to the JSON-RPC handler and SSE broadcaster."""

    daemon_threads = True
    allow_reuse_address = True

    def __init__(
        self,
        address: Tuple[str, int],
        rpc: JsonRpcHandler,
        health: HealthChecker,
        broadcaster: Optional[EventBroadcaster] = None,
        cors_origin: str = "*",
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
        keepalive_seconds: float = DEFAULT_KEEPALIVE_SEC,
    ) -> None:
        super().__init__(address, _RequestHandler)
        self.rpc = rpc
        self.health = health
        self.broadcaster = broadcaster or EventBroadcaster()
        self.cors_origin = cors_origin
        self.max_body_bytes = max_body_bytes
        self.keepalive_seconds = keepalive_seconds
        self._thread: Optional[threading.Thread] = None
        rpc.dispatcher.add_listener(self.broadcaster.on_dispatch)

    @property
    def port(self) -> int:
        return self.server_address[1]

    def start(self) -> None:
        """Serve on a background thread."""
        t = threading.Thread(
            target=self.serve_forever,
            kwargs={"poll_interval": _SERVE_POLL_SEC},
            name="mcp-http",
            daemon=True,
        )
        t.start()
        self._thread = t
        _LOGGER.info(
            "HTTP server listening",
            extra={"host": self.server_address[0], "port": self.port},
        )

    def stop(self) -> None:
        """Close SSE streams, stop accepting requests and release the socket."""
        self.broadcaster.close()
        if self._thread is not None:
            self.shutdown()
            self._thread.join(timeout=_JOIN_TIMEOUT_SEC)
            self._thread = None
        self.server_close()
        _LOGGER.info("HTTP server stopped")


def start_http_server(
    host: str,
    port: int,
    rpc: JsonRpcHandler,
    health: HealthChecker,
    **kwargs: Any,
) -> GatewayHTTPServer:
    """Create a ``GatewayHTTPServer`` and start it on a background thread.

    ``port=0`` binds an ephemeral port; read it back from ``server.port``.
    """
    server = GatewayHTTPServer((host, port), rpc, health, **kwargs)
    server.start()
    return server
