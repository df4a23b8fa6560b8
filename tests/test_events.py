"""Tests for the SSE broadcaster."""

from __future__ import annotations

import json
import threading

from woocommerce_mcp.mcp.events import KEEPALIVE_COMMENT, EventBroadcaster, format_sse, iter_sse
from woocommerce_mcp.woocommerce.descriptors import get_descriptor


def _drain(q):
    items = []
    while not q.empty():
        items.append(q.get_nowait())
    return items


class TestSubscriptions:
    def test_first_event_is_connected(self):
        broadcaster = EventBroadcaster()
        q = broadcaster.subscribe("orders")
        first = q.get_nowait()
        assert first["type"] == "connected"
        assert first["channel"] == "orders"
        assert first["timestamp"].endswith("Z")

    def test_publish_reaches_channel_subscribers_only(self):
        broadcaster = EventBroadcaster()
        orders_a = broadcaster.subscribe("orders")
        orders_b = broadcaster.subscribe("orders")
        products = broadcaster.subscribe("products")

        delivered = broadcaster.publish("orders", {"type": "order_created", "data": {"id": 1}})

        assert delivered == 2
        assert _drain(orders_a)[-1]["type"] == "order_created"
        assert _drain(orders_b)[-1]["data"] == {"id": 1}
        assert [e["type"] for e in _drain(products)] == ["connected"]

    def test_unsubscribe(self):
        broadcaster = EventBroadcaster()
        q = broadcaster.subscribe("orders")
        assert broadcaster.subscriber_count("orders") == 1
        broadcaster.unsubscribe("orders", q)
        broadcaster.unsubscribe("orders", q)
        assert broadcaster.subscriber_count("orders") == 0
        assert broadcaster.publish("orders", {"type": "x"}) == 0

    def test_full_queue_drops_event(self):
        broadcaster = EventBroadcaster(max_queue_size=1)
        broadcaster.subscribe("orders")  # queue already holds "connected"
        assert broadcaster.publish("orders", {"type": "order_created"}) == 0

    def test_concurrent_subscribe_and_publish(self):
        broadcaster = EventBroadcaster(max_queue_size=1000)
        queues = []

        def subscribe():
            queues.append(broadcaster.subscribe("products"))

        threads = [threading.Thread(target=subscribe) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert broadcaster.subscriber_count("products") == 20
        assert broadcaster.publish("products", {"type": "product_updated"}) == 20


class TestDispatchEvents:
    def test_broadcasting_descriptor_publishes(self):
        broadcaster = EventBroadcaster()
        q = broadcaster.subscribe("products")
        broadcaster.on_dispatch(get_descriptor("create_product"), {"id": 42})

        event = _drain(q)[-1]
        assert event["type"] == "product_created"
        assert event["data"] == {"id": 42}
        assert "timestamp" in event

    def test_other_descriptors_are_silent(self):
        broadcaster = EventBroadcaster()
        q = broadcaster.subscribe("products")
        broadcaster.on_dispatch(get_descriptor("get_product"), {"id": 42})
        assert len(_drain(q)) == 1


class TestStreaming:
    def test_format_sse(self):
        assert format_sse({"a": 1}) == 'data: {"a": 1}\n\n'

    def test_keepalive_when_idle(self):
        broadcaster = EventBroadcaster()
        stream = iter_sse(broadcaster.subscribe("orders"), keepalive_seconds=0.01)
        assert json.loads(next(stream)[len("data: "):])["type"] == "connected"
        assert next(stream) == KEEPALIVE_COMMENT

    def test_close_ends_streams(self):
        broadcaster = EventBroadcaster(max_queue_size=1)
        q = broadcaster.subscribe("orders")
        broadcaster.close()
        assert list(iter_sse(q, keepalive_seconds=0.01)) == []
        assert broadcaster.subscriber_count("orders") == 0

    def test_subscribe_after_close(self):
        broadcaster = EventBroadcaster()
        broadcaster.close()
        frames = list(iter_sse(broadcaster.subscribe("orders"), keepalive_seconds=0.01))
        assert len(frames) == 1
        assert '"connected"' in frames[0]
