"""Tests for the line-delimited stdio transport."""

from __future__ import annotations

import io
import json
import threading
import time

import pytest

from woocommerce_mcp.mcp.handlers import JsonRpcHandler
from woocommerce_mcp.mcp.stdio_server import BACKLOG_PER_WORKER, StdioServer


class _EchoDispatcher:
    """Stand-in dispatcher that echoes the call back."""

    def dispatch(self, method, params):
        return {"method": method, "params": dict(params)}


class _CountingReader(io.StringIO):
    def __init__(self, text):
        super().__init__(text)
        self.lines_read = 0

    def readline(self, *args):
        line = super().readline(*args)
        if line:
            self.lines_read += 1
        return line


def _serve(lines, handler=None, workers=4):
    reader = io.StringIO("".join(line + "\n" for line in lines))
    writer = io.StringIO()
    server = StdioServer(handler or JsonRpcHandler(_EchoDispatcher()), reader=reader, writer=writer, max_workers=workers)
    server.serve_forever()
    return [json.loads(line) for line in writer.getvalue().splitlines()]


class TestStdioServer:
    def test_one_response_per_request_line(self):
        responses = _serve([
            '{"jsonrpc": "2.0", "id": 1, "method": "ping"}',
            "",
            "   ",
            '{"jsonrpc": "2.0", "method": "notifications/initialized"}',
            '{"jsonrpc": "2.0", "id": 2, "method": "get_data", "params": {"x": 1}}',
        ])

        by_id = {r["id"]: r for r in responses}
        assert len(responses) == 2
        assert by_id[1]["result"] == {}
        assert by_id[2]["result"] == {"method": "get_data", "params": {"x": 1}}

    def test_malformed_line_does_not_stop_the_loop(self):
        responses = _serve([
            "{broken",
            '{"jsonrpc": "2.0", "id": 5, "method": "ping"}',
        ])
        errors = [r for r in responses if "error" in r]
        assert len(errors) == 1
        assert errors[0]["id"] is None
        assert errors[0]["error"]["code"] == -32700
        assert any(r.get("id") == 5 for r in responses)

    def test_many_concurrent_requests(self):
        lines = [json.dumps({"jsonrpc": "2.0", "id": i, "method": "get_data"}) for i in range(50)]
        responses = _serve(lines, workers=8)
        assert sorted(r["id"] for r in responses) == list(range(50))

    def test_each_response_is_one_line(self):
        reader = io.StringIO('{"jsonrpc": "2.0", "id": 1, "method": "tools/list"}\n')
        writer = io.StringIO()
        StdioServer(JsonRpcHandler(_EchoDispatcher()), reader=reader, writer=writer).serve_forever()
        output = writer.getvalue()
        assert output.endswith("\n")
        assert output.count("\n") == 1

    def test_worker_crash_is_raised_after_eof(self):
        class _Crashing:
            def handle_raw(self, line):
                raise RuntimeError("handler bug")

        with pytest.raises(RuntimeError, match="handler bug"):
            _serve(['{"jsonrpc": "2.0", "id": 1, "method": "ping"}'], handler=_Crashing())

    def test_reader_waits_when_backlog_is_full(self):
        release = threading.Event()

        class _Blocking:
            def dispatch(self, method, params):
                release.wait(5)
                return {}

        lines = [json.dumps({"jsonrpc": "2.0", "id": i, "method": "get_data"}) for i in range(20)]
        reader = _CountingReader("".join(line + "\n" for line in lines))
        writer = io.StringIO()
        server = StdioServer(JsonRpcHandler(_Blocking()), reader=reader, writer=writer, max_workers=1)
        thread = threading.Thread(target=server.serve_forever)
        thread.start()

        # One slot per queued request, plus the line read while waiting for a slot
        deadline = time.monotonic() + 5
        while reader.lines_read < BACKLOG_PER_WORKER + 1 and time.monotonic() < deadline:
            time.sleep(0.01)
        time.sleep(0.1)
        assert reader.lines_read == BACKLOG_PER_WORKER + 1

        release.set()
        thread.join(5)
        assert not thread.is_alive()
        assert len(writer.getvalue().splitlines()) == 20
