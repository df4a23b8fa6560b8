"""Tests for StoreClient against a local stub of the REST API."""

from __future__ import annotations

import base64

import pytest

from woocommerce_mcp.core.exceptions import ErrorCodes, UpstreamError
from woocommerce_mcp.woocommerce.client import StoreClient, encode_query_value
from woocommerce_mcp.woocommerce.credentials import Credentials
from woocommerce_mcp.woocommerce.descriptors import ApiFamily


@pytest.fixture
def store_creds(upstream):
    return Credentials(site_url=upstream.site_url, consumer_key="ck_live", consumer_secret="cs_live")


@pytest.fixture
def store_client(store_creds, session_factory):
    with StoreClient(store_creds, ApiFamily.WOOCOMMERCE, timeout=5.0, session=session_factory()) as client:
        yield client


class TestAuthentication:
    def test_store_api_uses_query_credentials(self, upstream, store_client):
        store_client.request("GET", "/products")

        req = upstream.last
        assert req.path == "/wp-json/wc/v3/products"
        assert req.query["consumer_key"] == "ck_live"
        assert req.query["consumer_secret"] == "cs_live"
        assert "Authorization" not in req.headers

    def test_content_api_uses_basic_auth(self, upstream, session_factory):
        creds = Credentials(site_url=upstream.site_url, username="editor", password="app pass")
        with StoreClient(creds, ApiFamily.WORDPRESS, session=session_factory()) as client:
            client.request("GET", "/posts")

        req = upstream.last
        assert req.path == "/wp-json/wp/v2/posts"
        expected = base64.b64encode(b"editor:app pass").decode("ascii")
        assert req.headers["Authorization"] == f"Basic {expected}"
        assert "consumer_key" not in req.query

    def test_query_cannot_override_auth(self, upstream, store_client):
        store_client.request("GET", "/products", {"consumer_key": "forged", "search": "mug"})
        assert upstream.last.query["consumer_key"] == "ck_live"
        assert upstream.last.query["search"] == "mug"

    def test_trailing_slash_in_site_url(self, upstream, session_factory):
        creds = Credentials(site_url=upstream.site_url + "/", consumer_key="k", consumer_secret="s")
        client = StoreClient(creds, ApiFamily.WOOCOMMERCE, session=session_factory())
        assert client.build_url("orders") == f"{upstream.site_url}/wp-json/wc/v3/orders"
        client.close()


class TestRequestEncoding:
    def test_json_body_and_headers(self, upstream, store_client):
        store_client.request("POST", "/products", body={"name": "Mug", "regular_price": "9.99"})
        req = upstream.last
        assert req.method == "POST"
        assert req.body == {"name": "Mug", "regular_price": "9.99"}
        assert req.headers["Content-Type"] == "application/json"

    def test_booleans_and_none_in_query(self, upstream, store_client):
        store_client.request("DELETE", "/products/3", {"force": True, "reassign": None})
        assert upstream.last.query["force"] == "true"
        assert "reassign" not in upstream.last.query

    def test_encode_query_value(self):
        assert encode_query_value(False) == "false"
        assert encode_query_value([True, 2]) == ["true", 2]
        assert encode_query_value("x") == "x"


class TestResponses:
    def test_json_body_returned(self, upstream, store_client):
        upstream.route("GET", "/wp-json/wc/v3/products/5", body={"id": 5, "name": "Mug"})
        assert store_client.request("GET", "/products/5") == {"id": 5, "name": "Mug"}

    def test_empty_body_returns_none(self, upstream, store_client):
        upstream.route("DELETE", "/wp-json/wc/v3/coupons/1", status=204, body=None)
        assert store_client.request("DELETE", "/coupons/1") is None

    def test_text_body_returned_as_text(self, upstream, store_client):
        upstream.route("GET", "/wp-json/wc/v3/system_status", body="all good")
        assert store_client.request("GET", "/system_status") == "all good"


class TestErrors:
    def test_upstream_message_is_used(self, upstream, store_client):
        upstream.route(
            "GET",
            "/wp-json/wc/v3/products/999",
            status=404,
            body={"code": "woocommerce_rest_product_invalid_id", "message": "Invalid ID.", "data": {"status": 404}},
        )
        with pytest.raises(UpstreamError) as exc:
            store_client.request("GET", "/products/999")

        err = exc.value
        assert err.message == "API error: Invalid ID."
        assert err.status_code == 404
        assert err.upstream_code == "woocommerce_rest_product_invalid_id"
        assert err.endpoint == f"{upstream.site_url}/wp-json/wc/v3/products/999"

    def test_status_fallback_message(self, upstream, store_client):
        upstream.route("GET", "/wp-json/wc/v3/orders", status=500, body="<html>fatal</html>")
        with pytest.raises(UpstreamError) as exc:
            store_client.request("GET", "/orders")
        assert exc.value.message == "API error: Request failed with status code 500"
        assert exc.value.upstream_code is None

    def test_timeout(self, upstream, store_creds, session_factory):
        upstream.route("GET", "/wp-json/wc/v3/reports/sales", body={}, delay=1.0)
        with StoreClient(store_creds, ApiFamily.WOOCOMMERCE, timeout=0.2, session=session_factory()) as client:
            with pytest.raises(UpstreamError) as exc:
                client.request("GET", "/reports/sales")
        assert exc.value.error_code == ErrorCodes.UPSTREAM_TIMEOUT
        assert exc.value.status_code == 0

    def test_connection_failure_redacts_secrets(self, unused_site_url, session_factory):
        creds = Credentials(site_url=unused_site_url, consumer_key="ck_live", consumer_secret="cs_live")
        with StoreClient(creds, ApiFamily.WOOCOMMERCE, timeout=2.0, session=session_factory()) as client:
            with pytest.raises(UpstreamError) as exc:
                client.request("GET", "/products")

        err = exc.value
        assert err.error_code == ErrorCodes.UPSTREAM_ERROR
        assert err.message.startswith("API error: ")
        assert "cs_live" not in err.message
        assert "ck_live" not in err.message
