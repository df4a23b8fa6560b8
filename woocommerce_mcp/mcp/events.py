"""Server-Sent Events broadcasting.

Channels are created on first subscription. Each subscriber owns a bounded
queue; publishing never blocks, and a subscriber whose queue is full misses
that event. The channel map is shared between HTTP worker threads and is
guarded by a lock.

Example:
    broadcaster = EventBroadcaster()
    q = broadcaster.subscribe("orders")
    broadcaster.publish("orders", {"type": "order_created", "data": {...}})
    for chunk in iter_sse(q, keepalive_seconds=15):
        wfile.write(chunk.encode())
"""

from __future__ import annotations

import json
import queue
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List

from ..core.logging_config import get_logger
from ..woocommerce.descriptors import MethodDescriptor

__all__ = ["EventBroadcaster", "iter_sse", "format_sse", "utc_timestamp"]

DEFAULT_QUEUE_SIZE = 100
KEEPALIVE_COMMENT = ": keep-alive\n\n"

# Placed on subscriber queues when the broadcaster shuts down
_CLOSED = object()


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def format_sse(payload: Any) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class EventBroadcaster:
    """Fan out JSON payloads to every subscriber of a named channel."""

    def __init__(self, max_queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self.max_queue_size = max_queue_size
        self._lock = threading.Lock()
        self._channels: Dict[str, List[queue.Queue]] = {}
        self._closed = False
        self.logger = get_logger("mcp.events")

    def subscribe(self, channel: str) -> queue.Queue:
        """Open a subscription; the first queued event is ``connected``."""
        q: queue.Queue = queue.Queue(maxsize=self.max_queue_size)
        q.put_nowait({"type": "connected", "channel": channel, "timestamp": utc_timestamp()})
        with self._lock:
            if self._closed:
                q.put_nowait(_CLOSED)
                return q
            self._channels.setdefault(channel, []).append(q)
            count = len(self._channels[channel])
        self.logger.info("SSE subscriber connected", extra={"channel": channel, "subscribers": count})
        return q

    def unsubscribe(self, channel: str, q: queue.Queue) -> None:
        with self._lock:
            subscribers = self._channels.get(channel)
            if not subscribers or q not in subscribers:
                return
            subscribers.remove(q)
            if not subscribers:
                del self._channels[channel]
            count = len(subscribers)
        self.logger.info("SSE subscriber disconnected", extra={"channel": channel, "subscribers": count})

    def publish(self, channel: str, payload: Dict[str, Any]) -> int:
        """Queue ``payload`` for every subscriber; return how many received it."""
        with self._lock:
            subscribers = list(self._channels.get(channel, ()))

        delivered = 0
        for q in subscribers:
            try:
                q.put_nowait(payload)
                delivered += 1
            except queue.Full:
                self.logger.warning("SSE subscriber queue full, event dropped", extra={"channel": channel})
        self.logger.debug("Event published", extra={"channel": channel, "delivered": delivered})
        return delivered

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._channels.get(channel, ()))

    def on_dispatch(self, descriptor: MethodDescriptor, result: Any) -> None:
        """Dispatcher listener: publish mutations that declare a broadcast event."""
        if descriptor.broadcast is None:
            return
        self.publish(
            descriptor.broadcast.channel,
            {"type": descriptor.broadcast.event, "data": result, "timestamp": utc_timestamp()},
        )

    def close(self) -> None:
        """Release every open stream."""
        with self._lock:
            self._closed = True
            subscribers = [q for qs in self._channels.values() for q in qs]
            self._channels.clear()
        for q in subscribers:
            try:
                q.put_nowait(_CLOSED)
            except queue.Full:
                # Make room for the sentinel; the stream is ending anyway
                try:
                    q.get_nowait()
                except queue.Empty:
                    pass
                q.put_nowait(_CLOSED)


def iter_sse(q: queue.Queue, keepalive_seconds: float = 15.0) -> Iterator[str]:
    """Yield SSE frames from a subscription queue until the broadcaster closes."""
    while True:
        try:
            item = q.get(timeout=keepalive_seconds)
        except queue.Empty:
            yield KEEPALIVE_COMMENT
            continue
        if item is _CLOSED:
            return
        yield format_sse(item)
