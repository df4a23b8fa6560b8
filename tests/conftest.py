"""Shared pytest fixtures: a recording stub of the WordPress/WooCommerce REST API."""

from __future__ import annotations

import json
import logging
import socket
import threading
import time
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, List, Tuple
from urllib.parse import parse_qs, urlsplit

import pytest
import requests

from woocommerce_mcp.mcp.handlers import JsonRpcHandler
from woocommerce_mcp.woocommerce.credentials import CredentialDefaults
from woocommerce_mcp.woocommerce.dispatcher import Dispatcher


@dataclass
class RecordedRequest:
    method: str
    path: str
    query: Dict[str, Any]
    headers: Dict[str, str]
    body: Any = None


@dataclass
class _Route:
    status: int = 200
    body: Any = field(default_factory=lambda: {"ok": True})
    delay: float = 0.0


class StubUpstream:
    """Records every request and answers from a ``(method, path)`` route table.

    Unrouted requests get ``200 {"ok": true}``. A route body of ``None`` sends
    an empty response, a ``str`` body is sent as plain text.
    """

    def __init__(self) -> None:
        self.requests: List[RecordedRequest] = []
        self.site_url = ""
        self._routes: Dict[Tuple[str, str], _Route] = {}
        self._lock = threading.Lock()

    def route(self, method: str, path: str, status: int = 200, body: Any = None, delay: float = 0.0) -> None:
        self._routes[(method.upper(), path)] = _Route(status, body, delay)

    def lookup(self, method: str, path: str) -> _Route:
        return self._routes.get((method, path)) or _Route()

    def record(self, request: RecordedRequest) -> None:
        with self._lock:
            self.requests.append(request)

    @property
    def last(self) -> RecordedRequest:
        assert self.requests, "no upstream request was made"
        return self.requests[-1]


def _make_handler(stub: StubUpstream):
    class _Handler(BaseHTTPRequestHandler):
        server_version = "StubStore/1.0"

        def log_message(self, fmt, *args):  # silence test server logs
            return

        def _handle(self):
            parts = urlsplit(self.path)
            query = {k: v[0] if len(v) == 1 else v for k, v in parse_qs(parts.query).items()}
            length = int(self.headers.get("Content-Length") or 0)
            raw = self.rfile.read(length) if length else b""
            body = json.loads(raw) if raw else None
            stub.record(RecordedRequest(self.command, parts.path, query, dict(self.headers), body))

            route = stub.lookup(self.command, parts.path)
            if route.delay:
                time.sleep(route.delay)
            if route.body is None:
                payload, content_type = b"", "application/json"
            elif isinstance(route.body, str):
                payload, content_type = route.body.encode("utf-8"), "text/plain"
            else:
                payload, content_type = json.dumps(route.body).encode("utf-8"), "application/json"
            self.send_response(route.status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        do_GET = _handle
        do_POST = _handle
        do_PUT = _handle
        do_DELETE = _handle

    return _Handler


@pytest.fixture
def upstream():
    stub = StubUpstream()
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _make_handler(stub))
    httpd.daemon_threads = True
    stub.site_url = f"http://127.0.0.1:{httpd.server_address[1]}"
    t = threading.Thread(target=httpd.serve_forever, daemon=True)
    t.start()
    try:
        yield stub
    finally:
        httpd.shutdown()
        httpd.server_close()
        t.join(timeout=2)


@pytest.fixture
def unused_site_url() -> str:
    """URL of a local port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return f"http://127.0.0.1:{port}"


def _local_session() -> requests.Session:
    # Ignore proxy settings from the environment for loopback traffic
    session = requests.Session()
    session.trust_env = False
    return session


@pytest.fixture
def defaults(upstream: StubUpstream) -> CredentialDefaults:
    return CredentialDefaults(
        site_url=upstream.site_url,
        consumer_key="ck_test",
        consumer_secret="cs_test",
        username="editor",
        password="app-pass",
    )


@pytest.fixture
def dispatcher(defaults: CredentialDefaults) -> Dispatcher:
    return Dispatcher(defaults, timeout=5.0, session_factory=_local_session)


@pytest.fixture
def rpc(dispatcher: Dispatcher) -> JsonRpcHandler:
    return JsonRpcHandler(dispatcher)


@pytest.fixture
def restore_logging():
    """Put the root logger back the way the test found it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    try:
        yield root
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)


@pytest.fixture
def session_factory():
    """Session factory for dispatchers and clients built inside a test."""
    return _local_session
