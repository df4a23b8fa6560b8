"""Per-request credential resolution.

Every request may carry its own ``siteUrl``, ``consumerKey``,
``consumerSecret``, ``username`` and ``password``. A request value wins over
the process-wide default when it is present and non-empty; otherwise the
default is used. Which fields are mandatory depends on the upstream family
of the method being dispatched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..core.exceptions import (
    MissingContentCredentialsError,
    MissingSiteUrlError,
    MissingStoreCredentialsError,
)
from .descriptors import ApiFamily

# Request parameter names carrying credentials, mapped to dataclass fields
CREDENTIAL_PARAMS = {
    "siteUrl": "site_url",
    "consumerKey": "consumer_key",
    "consumerSecret": "consumer_secret",
    "username": "username",
    "password": "password",
}


@dataclass(frozen=True)
class CredentialDefaults:
    """Process-wide defaults, loaded once at startup and never mutated."""

    site_url: str = ""
    consumer_key: str = field(default="", repr=False)
    consumer_secret: str = field(default="", repr=False)
    username: str = ""
    password: str = field(default="", repr=False)

    def configured(self) -> dict:
        """Report which defaults are set without exposing their values."""
        return {
            "site_url": bool(self.site_url),
            "store_credentials": bool(self.consumer_key and self.consumer_secret),
            "content_credentials": bool(self.username and self.password),
        }


@dataclass(frozen=True)
class Credentials:
    """Credentials resolved for a single request."""

    site_url: str
    consumer_key: str = field(default="", repr=False)
    consumer_secret: str = field(default="", repr=False)
    username: str = ""
    password: str = field(default="", repr=False)

    @property
    def has_store_auth(self) -> bool:
        return bool(self.consumer_key and self.consumer_secret)

    @property
    def has_content_auth(self) -> bool:
        return bool(self.username and self.password)

    def secrets(self) -> tuple:
        """Values that must never appear in logs or error messages."""
        return tuple(s for s in (self.consumer_key, self.consumer_secret, self.password) if s)


def _pick(params: Mapping[str, Any], name: str, default: str) -> str:
    value = params.get(name)
    if value is not None:
        text = str(value).strip()
        if text:
            return text
    return default or ""


def resolve_credentials(
    params: Optional[Mapping[str, Any]],
    defaults: CredentialDefaults,
    family: Any = None,
) -> Credentials:
    """Resolve the credentials for one request.

    Parameters
    ----------
    params:
        The request's ``params`` object; may be empty or partial.
    defaults:
        Process-wide defaults.
    family:
        ``ApiFamily`` of the method being dispatched. ``None`` skips the
        family-specific checks and only requires the site URL.

    Raises
    ------
    MissingSiteUrlError
        No site URL in the request nor in the defaults.
    MissingStoreCredentialsError
        Store-API method without consumer key/secret.
    MissingContentCredentialsError
        Content-API method without username/password.
    """
    params = params or {}
    resolved = Credentials(
        **{
            attr: _pick(params, param, getattr(defaults, attr))
            for param, attr in CREDENTIAL_PARAMS.items()
        }
    )

    if not resolved.site_url:
        raise MissingSiteUrlError()

    if family is ApiFamily.WOOCOMMERCE and not resolved.has_store_auth:
        raise MissingStoreCredentialsError()
    if family is ApiFamily.WORDPRESS and not resolved.has_content_auth:
        raise MissingContentCredentialsError()

    return resolved
