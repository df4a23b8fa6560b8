"""Method dispatcher.

Turns ``(method, params)`` into one upstream REST call (two for meta-data
writes) and returns the upstream body.

Steps per dispatch:
1. Look up the method descriptor (``UnknownMethodError``)
2. Resolve credentials for the descriptor's family
3. Check required parameters in declared order (``MissingParameterError``)
4. Build the upstream request and execute it
5. For meta operations, read the parent entity, rewrite ``meta_data`` and
   write the whole sequence back

Meta writes are not transactional: an external update landing between the
GET and the PUT is overwritten (last write wins).

Example:
    >>> dispatcher = Dispatcher(CredentialDefaults(site_url="https://shop.example.com",
    ...                                            consumer_key="ck", consumer_secret="cs"))
    >>> dispatcher.dispatch("get_products", {"perPage": 5})
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import quote

import requests

from ..core.exceptions import MissingParameterError
from ..core.logging_config import PerformanceLogger, get_logger
from .client import DEFAULT_TIMEOUT_SEC, StoreClient
from .credentials import CredentialDefaults, resolve_credentials
from .descriptors import (
    ALLOW_EMPTY_PARAMS,
    DEFAULT_PAGE,
    DEFAULT_PER_PAGE,
    MetaOperation,
    MethodDescriptor,
    get_descriptor,
)
from .meta import filter_meta, remove_meta, upsert_meta

__all__ = ["Dispatcher", "UpstreamRequest", "build_request", "expand_path"]

_PLACEHOLDER = re.compile(r"{(\w+)}")

DispatchListener = Callable[[MethodDescriptor, Any], None]


@dataclass(frozen=True)
class UpstreamRequest:
    """Verb, path, query and body of one upstream call (auth not included)."""

    verb: str
    path: str
    query: Dict[str, Any] = field(default_factory=dict)
    body: Any = None


def expand_path(template: str, params: Mapping[str, Any]) -> str:
    """Substitute ``{name}`` placeholders with URL-quoted parameter values."""
    return _PLACEHOLDER.sub(lambda m: quote(str(params[m.group(1)]), safe=""), template)


def _given(value: Any) -> bool:
    return value is not None and value != ""


def build_request(descriptor: MethodDescriptor, params: Mapping[str, Any]) -> UpstreamRequest:
    """Build the upstream request for a non-meta descriptor."""
    path = expand_path(descriptor.path_template(params), params)

    query: Dict[str, Any] = {}
    if descriptor.paginated:
        per_page = params.get("perPage")
        page = params.get("page")
        query["per_page"] = per_page if _given(per_page) else DEFAULT_PER_PAGE
        query["page"] = page if _given(page) else DEFAULT_PAGE

    for spec in descriptor.query_fields:
        value = params.get(spec.param)
        if value is None:
            value = spec.default
        if value is not None:
            query[spec.target] = value

    filters = params.get("filters")
    if descriptor.filters and isinstance(filters, Mapping):
        query.update(filters)

    body: Any = None
    if descriptor.body:
        body = params[descriptor.body]
    elif descriptor.body_fields:
        body = {}
        for spec in descriptor.body_fields:
            value = params.get(spec.param)
            if spec.param in ALLOW_EMPTY_PARAMS and spec.param in params:
                body[spec.target] = value
                continue
            if value is None:
                value = spec.default
            if value is not None:
                body[spec.target] = value

    return UpstreamRequest(descriptor.verb, path, query, body)


class Dispatcher:
    """Dispatch method calls to the upstream store.

    Holds only immutable configuration; every call builds its own client and
    session, so one instance is safe to share between threads.

    Parameters
    ----------
    defaults:
        Process-wide credential defaults.
    timeout:
        Per-call upstream deadline in seconds.
    session_factory:
        Builds the ``requests.Session`` used by each dispatch.
    """

    def __init__(
        self,
        defaults: CredentialDefaults,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self.defaults = defaults
        self.timeout = timeout
        self._session_factory = session_factory
        self._listeners: List[DispatchListener] = []
        self._logger = get_logger("woocommerce.dispatcher")

    def add_listener(self, listener: DispatchListener) -> None:
        """Register a callback run after every successful dispatch."""
        self._listeners.append(listener)

    def dispatch(self, method: Optional[str], params: Optional[Mapping[str, Any]] = None) -> Any:
        """Execute ``method`` with ``params`` and return the upstream result.

        Raises:
            UnknownMethodError: ``method`` is not in the descriptor table
            CredentialError: Required credentials are unavailable
            MissingParameterError: A required parameter is absent or empty
            UpstreamError: The upstream call failed
        """
        params = params if isinstance(params, Mapping) else {}
        descriptor = get_descriptor(method)
        credentials = resolve_credentials(params, self.defaults, descriptor.family)

        missing = descriptor.missing_required(params)
        if missing is not None:
            raise MissingParameterError(missing, descriptor.name)

        with PerformanceLogger(self._logger, f"dispatch {descriptor.name}",
                               method=descriptor.name, family=descriptor.family.value):
            with StoreClient(credentials, descriptor.family, self.timeout, self._session_factory()) as client:
                if descriptor.is_meta:
                    result = self._dispatch_meta(client, descriptor, params)
                else:
                    request = build_request(descriptor, params)
                    result = client.request(request.verb, request.path, request.query, request.body)

        self._notify(descriptor, result)
        return result

    def _dispatch_meta(self, client: StoreClient, descriptor: MethodDescriptor, params: Mapping[str, Any]) -> Any:
        entity_path = expand_path(descriptor.path, params)
        entity = client.request("GET", entity_path)
        current = entity.get("meta_data") if isinstance(entity, dict) else None

        if descriptor.meta is MetaOperation.GET:
            return filter_meta(current, params.get("metaKey"))

        if descriptor.meta is MetaOperation.UPSERT:
            updated = upsert_meta(current, params["metaKey"], params["metaValue"])
        else:
            updated = remove_meta(current, params["metaKey"])

        written = client.request(descriptor.verb, entity_path, body={"meta_data": updated})
        if isinstance(written, dict) and isinstance(written.get("meta_data"), list):
            return written["meta_data"]
        return updated

    def _notify(self, descriptor: MethodDescriptor, result: Any) -> None:
        for listener in self._listeners:
            try:
                listener(descriptor, result)
            except Exception:
                # The upstream write already happened; report and keep the result
                self._logger.exception("Dispatch listener failed", extra={"method": descriptor.name})
