"""JSON-RPC 2.0 request/response handling.

Transport-independent: the stdio and HTTP servers hand raw payloads to
``JsonRpcHandler.handle_raw`` and write back whatever it returns. Every
failure is converted into a JSON-RPC error object here; no exception crosses
this boundary.

Protocol methods answered locally:
- ``initialize``: protocol version, capabilities (one entry per method), server info
- ``tools/list``: the descriptor table flattened to name/description/inputSchema
- ``tools/call``: dispatch ``params.name`` with ``params.arguments``
- ``ping``: empty result
- ``notifications/*``: accepted silently, no response

Everything else is handed to the dispatcher as a method name.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from ..core.config import McpConfig
from ..core.exceptions import (
    JSONRPC_SERVER_ERROR,
    BaseAPIError,
    DispatchError,
    ErrorSeverity,
    ParseError,
)
from ..core.logging_config import get_logger
from ..woocommerce.descriptors import iter_descriptors
from ..woocommerce.dispatcher import Dispatcher

__all__ = ["JsonRpcHandler"]

JSONRPC_VERSION = "2.0"

_SEVERITY_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
}


def _success(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def _failure(request_id: Any, error: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


class JsonRpcHandler:
    """Frame dispatcher calls as JSON-RPC 2.0 responses.

    Args:
        dispatcher: Executes non-protocol methods
        server: Identity reported by ``initialize``
    """

    def __init__(self, dispatcher: Dispatcher, server: Optional[McpConfig] = None) -> None:
        self.dispatcher = dispatcher
        self.server = server or McpConfig()
        self.logger = get_logger("mcp.handlers")

    # -- Entry points ------------------------------------------------------

    def handle_raw(self, payload: Union[str, bytes]) -> Optional[Dict[str, Any]]:
        """Parse one raw JSON-RPC payload and return the response, if any."""
        try:
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8")
            message = json.loads(payload)
        except (UnicodeDecodeError, ValueError) as e:
            return self._parse_failure(ParseError(str(e)))
        return self.handle_message(message)

    def handle_message(self, message: Any) -> Optional[Dict[str, Any]]:
        """Handle one decoded JSON-RPC message.

        Returns ``None`` for notifications, which get no response.
        """
        if not isinstance(message, dict):
            return self._parse_failure(ParseError("Request must be a JSON object"))
        if message.get("jsonrpc") != JSONRPC_VERSION:
            return self._parse_failure(ParseError("Invalid JSON-RPC version"))

        request_id = message.get("id")
        method = message.get("method")
        params = message.get("params")
        if not isinstance(params, Mapping):
            params = {}

        if isinstance(method, str) and method.startswith("notifications/"):
            self.logger.debug("Notification received", extra={"method": method})
            return None

        try:
            result = self._call(method, params)
        except BaseAPIError as e:
            self._log_error(method, e)
            return _failure(request_id, e.to_jsonrpc_error())
        except Exception as e:
            self.logger.exception("Unexpected error handling request", extra={"method": method})
            return _failure(request_id, {"code": JSONRPC_SERVER_ERROR, "message": str(e)})

        return _success(request_id, result)

    # -- Protocol methods --------------------------------------------------

    def _call(self, method: Any, params: Mapping[str, Any]) -> Any:
        if method == "initialize":
            return self.initialize()
        if method == "tools/list":
            return self.list_tools()
        if method == "tools/call":
            return self.call_tool(params)
        if method == "ping":
            return {}
        return self.dispatcher.dispatch(method, params)

    def initialize(self) -> Dict[str, Any]:
        tools = {
            d.name: {"description": d.description, "inputSchema": d.input_schema()}
            for d in iter_descriptors()
        }
        return {
            "protocolVersion": self.server.protocol_version,
            "capabilities": {
                "experimental": {},
                "prompts": {},
                "resources": {},
                "tools": tools,
            },
            "serverInfo": {"name": self.server.name, "version": self.server.version},
        }

    def list_tools(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "tools": [
                {"name": d.name, "description": d.description, "inputSchema": d.input_schema()}
                for d in iter_descriptors()
            ]
        }

    def call_tool(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """MCP ``tools/call``: dispatch failures become ``isError`` results."""
        name = params.get("name")
        arguments = params.get("arguments")
        if not isinstance(arguments, Mapping):
            arguments = {}

        try:
            result = self.dispatcher.dispatch(name, arguments)
        except DispatchError as e:
            self._log_error(name, e)
            return {"content": [{"type": "text", "text": e.message}], "isError": True}

        return {"content": [{"type": "text", "text": json.dumps(result, ensure_ascii=False)}]}

    # -- Helpers -----------------------------------------------------------

    def _parse_failure(self, error: ParseError) -> Dict[str, Any]:
        self.logger.info("Rejected malformed request", extra={"reason": error.reason})
        return _failure(None, error.to_jsonrpc_error())

    def _log_error(self, method: Any, error: BaseAPIError) -> None:
        self.logger.log(
            _SEVERITY_LEVELS.get(error.severity, logging.WARNING),
            f"Request failed: {error.message}",
            extra={"method": method, "error_code": error.error_code, "request_id": error.request_id},
        )
