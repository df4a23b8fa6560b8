"""HTTP client for the WooCommerce and WordPress REST APIs.

One ``StoreClient`` serves one dispatch: it is bound to the credentials and
API family resolved for that request and owns its own ``requests.Session``.

Authentication
--------------
- WooCommerce (``/wp-json/wc/v3``): ``consumer_key``/``consumer_secret``
  query parameters on every call.
- WordPress (``/wp-json/wp/v2``): ``Authorization: Basic`` header built from
  ``username:password``.

Notes
-----
- Every call carries a bounded timeout. Nothing is retried.
- Failures surface as ``UpstreamError``. Secrets are scrubbed from error
  text and never appear in log records.
"""

from __future__ import annotations

import base64
import logging
import time
from typing import Any, Dict, Mapping, Optional

import requests

from ..core.exceptions import ErrorCodes, UpstreamError
from ..core.logging_config import get_logger
from .credentials import Credentials
from .descriptors import ApiFamily

DEFAULT_TIMEOUT_SEC = 30.0
_REDACTED = "***"

_LOGGER: logging.Logger = get_logger("woocommerce.client")


def encode_query_value(value: Any) -> Any:
    """Render booleans the way the REST API expects them."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return [encode_query_value(v) for v in value]
    return value


class StoreClient:
    """Authenticated client for one upstream API family.

    Parameters
    ----------
    credentials:
        Credentials resolved for the current request.
    family:
        Which REST API to talk to.
    timeout:
        Per-call deadline in seconds.
    session:
        Optional pre-built session (tests inject one); a fresh session is
        created otherwise.
    """

    def __init__(
        self,
        credentials: Credentials,
        family: ApiFamily,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.family = family
        self.base_url: str = f"{credentials.site_url.rstrip('/')}/wp-json/{family.api_prefix}"
        self.timeout = timeout
        self._secrets = credentials.secrets()
        self._session: requests.Session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
        self._auth_params: Dict[str, str] = {}

        if family is ApiFamily.WORDPRESS:
            self._session.headers.update(self._basic_auth_header(credentials))
        else:
            self._auth_params = {
                "consumer_key": credentials.consumer_key,
                "consumer_secret": credentials.consumer_secret,
            }
        self._logger = _LOGGER

    @staticmethod
    def _basic_auth_header(credentials: Credentials) -> Dict[str, str]:
        raw = f"{credentials.username}:{credentials.password}".encode("utf-8")
        return {"Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}"}

    def __enter__(self) -> "StoreClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def build_url(self, path: str) -> str:
        return f"{self.base_url}{path if path.startswith('/') else '/' + path}"

    def _redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, _REDACTED)
        return text

    def _query(self, query: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        for key, value in (query or {}).items():
            if value is None:
                continue
            params[key] = encode_query_value(value)
        # Auth last so filters cannot override it
        params.update(self._auth_params)
        return params

    def request(
        self,
        verb: str,
        path: str,
        query: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        """Send one request and return the decoded response body.

        Returns
        -------
        Any
            The upstream JSON body. An empty body yields ``None``; a
            non-JSON body is returned as text.

        Raises
        ------
        UpstreamError
            On transport failures, timeouts and any HTTP status >= 400.
        """
        url = self.build_url(path)
        start = time.perf_counter()
        self._logger.debug("Upstream request start", extra={"verb": verb, "url": url})

        try:
            resp = self._session.request(
                verb,
                url,
                params=self._query(query),
                json=body,
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            duration_ms = int((time.perf_counter() - start) * 1000)
            message = self._redact(str(exc))
            self._logger.error(
                "Upstream request timed out",
                extra={"verb": verb, "url": url, "duration_ms": duration_ms, "timeout_s": self.timeout},
            )
            raise UpstreamError(message, endpoint=url, error_code=ErrorCodes.UPSTREAM_TIMEOUT) from None
        except requests.RequestException as exc:
            duration_ms = int((time.perf_counter() - start) * 1000)
            message = self._redact(str(exc))
            self._logger.error(
                "Upstream request failed",
                extra={"verb": verb, "url": url, "error": message, "duration_ms": duration_ms},
            )
            raise UpstreamError(message, endpoint=url) from None

        duration_ms = int((time.perf_counter() - start) * 1000)
        status = resp.status_code

        if status >= 400:
            message, upstream_code = self._error_message(resp)
            self._logger.warning(
                "Upstream error response",
                extra={"verb": verb, "url": url, "status_code": status, "duration_ms": duration_ms},
            )
            raise UpstreamError(
                self._redact(message),
                endpoint=url,
                status_code=status,
                upstream_code=upstream_code,
            )

        self._logger.debug(
            "Upstream request completed",
            extra={"verb": verb, "url": url, "status_code": status, "duration_ms": duration_ms},
        )
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    @staticmethod
    def _error_message(resp: requests.Response) -> tuple:
        """Prefer the body's ``message``; fall back to the status line."""
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and payload.get("message"):
            code = payload.get("code")
            return str(payload["message"]), str(code) if code else None
        return f"Request failed with status code {resp.status_code}", None
