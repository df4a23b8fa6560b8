"""Line-delimited JSON-RPC over stdin/stdout.

Each non-blank input line is one request. Lines are read on the calling
thread and handled on a fixed-size worker pool, so a slow upstream call does
not hold up later requests. At most ``BACKLOG_PER_WORKER`` requests per worker
may be waiting or running; past that the reader stops pulling lines until a
worker frees up. Responses are written as soon as they are ready and may
therefore arrive out of order (clients correlate by ``id``). Writes to stdout
are serialized with a lock so lines never interleave.

Stdout carries protocol traffic only; logging must be routed to stderr
before the server starts.
"""

from __future__ import annotations

import json
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import IO, Any, Dict, Optional

from ..core.logging_config import get_logger
from .handlers import JsonRpcHandler

__all__ = ["StdioServer"]

DEFAULT_WORKERS = 8
BACKLOG_PER_WORKER = 4


class StdioServer:
    """Serve JSON-RPC requests from a text reader until EOF."""

    def __init__(
        self,
        handler: JsonRpcHandler,
        *,
        reader: Optional[IO[str]] = None,
        writer: Optional[IO[str]] = None,
        max_workers: int = DEFAULT_WORKERS,
    ) -> None:
        self.handler = handler
        self._reader = reader or sys.stdin
        self._writer = writer or sys.stdout
        self.max_workers = max_workers
        self._slots = threading.BoundedSemaphore(max_workers * BACKLOG_PER_WORKER)
        self._write_lock = threading.Lock()
        self._fatal: Optional[BaseException] = None
        self.logger = get_logger("mcp.stdio")

    def serve_forever(self) -> None:
        """Read until EOF, then wait for in-flight requests to finish.

        Raises the first exception that escaped a worker thread.
        """
        self.logger.info("stdio server started", extra={"workers": self.max_workers})
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="mcp-stdio") as pool:
            for line in iter(self._reader.readline, ""):
                if self._fatal is not None:
                    break
                line = line.strip()
                if not line:
                    continue
                self._slots.acquire()
                future = pool.submit(self._handle_line, line)
                future.add_done_callback(self._check_worker)

        self.logger.info("stdio server stopped")
        if self._fatal is not None:
            raise self._fatal

    def _handle_line(self, line: str) -> None:
        response = self.handler.handle_raw(line)
        if response is not None:
            self._write(response)

    def _write(self, response: Dict[str, Any]) -> None:
        text = json.dumps(response, ensure_ascii=False)
        with self._write_lock:
            self._writer.write(text + "\n")
            self._writer.flush()

    def _check_worker(self, future: Future) -> None:
        self._slots.release()
        exc = future.exception()
        if exc is None:
            return
        self.logger.critical(
            "Uncaught exception in stdio worker",
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        if self._fatal is None:
            self._fatal = exc
