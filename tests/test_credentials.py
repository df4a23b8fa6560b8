"""Tests for per-request credential resolution."""

from __future__ import annotations

import pytest

from woocommerce_mcp.core.exceptions import (
    MissingContentCredentialsError,
    MissingSiteUrlError,
    MissingStoreCredentialsError,
)
from woocommerce_mcp.woocommerce.credentials import CredentialDefaults, resolve_credentials
from woocommerce_mcp.woocommerce.descriptors import ApiFamily

DEFAULTS = CredentialDefaults(
    site_url="https://default.example.com",
    consumer_key="ck_default",
    consumer_secret="cs_default",
    username="default-user",
    password="default-pass",
)


class TestResolution:
    def test_defaults_used_when_request_is_empty(self):
        creds = resolve_credentials({}, DEFAULTS, ApiFamily.WOOCOMMERCE)
        assert creds.site_url == "https://default.example.com"
        assert creds.consumer_key == "ck_default"
        assert creds.password == "default-pass"

    def test_request_values_win_per_field(self):
        creds = resolve_credentials(
            {"siteUrl": "https://other.example.com", "consumerSecret": "cs_request"},
            DEFAULTS,
            ApiFamily.WOOCOMMERCE,
        )
        assert creds.site_url == "https://other.example.com"
        assert creds.consumer_key == "ck_default"
        assert creds.consumer_secret == "cs_request"

    def test_blank_request_values_fall_back(self):
        creds = resolve_credentials({"siteUrl": "   ", "username": ""}, DEFAULTS)
        assert creds.site_url == "https://default.example.com"
        assert creds.username == "default-user"

    def test_request_values_are_stripped(self):
        creds = resolve_credentials({"siteUrl": " https://x.example.com "}, CredentialDefaults())
        assert creds.site_url == "https://x.example.com"

    def test_none_params(self):
        assert resolve_credentials(None, DEFAULTS).site_url == "https://default.example.com"

    def test_request_only_credentials(self):
        creds = resolve_credentials(
            {"siteUrl": "https://blog.example.com", "username": "u", "password": "p"},
            CredentialDefaults(),
            ApiFamily.WORDPRESS,
        )
        assert creds.has_content_auth
        assert not creds.has_store_auth


class TestMissingCredentials:
    def test_missing_site_url(self):
        with pytest.raises(MissingSiteUrlError) as exc:
            resolve_credentials({}, CredentialDefaults())
        assert "site URL not provided" in exc.value.message

    def test_site_url_checked_before_family_credentials(self):
        with pytest.raises(MissingSiteUrlError):
            resolve_credentials({}, CredentialDefaults(), ApiFamily.WOOCOMMERCE)

    def test_store_method_needs_key_and_secret(self):
        defaults = CredentialDefaults(site_url="https://s.example.com", consumer_key="ck")
        with pytest.raises(MissingStoreCredentialsError):
            resolve_credentials({}, defaults, ApiFamily.WOOCOMMERCE)

    def test_content_method_needs_username_and_password(self):
        defaults = CredentialDefaults(site_url="https://s.example.com", consumer_key="ck", consumer_secret="cs")
        with pytest.raises(MissingContentCredentialsError):
            resolve_credentials({}, defaults, ApiFamily.WORDPRESS)

    def test_store_method_ignores_missing_content_credentials(self):
        defaults = CredentialDefaults(site_url="https://s.example.com", consumer_key="ck", consumer_secret="cs")
        creds = resolve_credentials({}, defaults, ApiFamily.WOOCOMMERCE)
        assert creds.has_store_auth


class TestSecrets:
    def test_secrets_hidden_from_repr(self):
        creds = resolve_credentials({}, DEFAULTS)
        text = repr(creds) + repr(DEFAULTS)
        for secret in ("ck_default", "cs_default", "default-pass"):
            assert secret not in text

    def test_secrets_lists_non_empty_values(self):
        creds = resolve_credentials({}, CredentialDefaults(site_url="https://s", consumer_key="ck"))
        assert creds.secrets() == ("ck",)

    def test_configured_reports_booleans_only(self):
        assert DEFAULTS.configured() == {
            "site_url": True,
            "store_credentials": True,
            "content_credentials": True,
        }
        assert CredentialDefaults(site_url="https://s", username="u").configured() == {
            "site_url": True,
            "store_credentials": False,
            "content_credentials": False,
        }
