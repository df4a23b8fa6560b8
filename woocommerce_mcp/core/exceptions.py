"""
Standardized error handling framework for the WooCommerce MCP gateway.

Every failure a request can hit is represented by a subclass of
``BaseAPIError``. The JSON-RPC layer never inspects exception types beyond
this base class: each error knows its own JSON-RPC code and how to render
itself as a JSON-RPC error object.

Error Categories:
- BaseAPIError: Base class for all API errors
- ParseError: Malformed JSON-RPC envelope (-32700)
- DispatchError: Base for every failure raised while dispatching (-32000)
  - UnknownMethodError: Method name not in the descriptor table
  - MissingParameterError: Required request parameter absent
  - CredentialError: Credential resolution failures
    - MissingSiteUrlError
    - MissingStoreCredentialsError
    - MissingContentCredentialsError
  - UpstreamError: WordPress/WooCommerce REST call failed
- ConfigurationError: Invalid process configuration at startup

Example usage:
    from woocommerce_mcp.core.exceptions import UpstreamError

    try:
        client.request("GET", "/products/5")
    except UpstreamError as e:
        response = {"jsonrpc": "2.0", "id": 1, "error": e.to_jsonrpc_error()}
"""

import json
import uuid
from enum import Enum
from typing import Any, Dict, Optional


# JSON-RPC 2.0 error codes used by the gateway
JSONRPC_PARSE_ERROR = -32700
JSONRPC_SERVER_ERROR = -32000


class ErrorSeverity(Enum):
    """
    Error severity levels for categorizing error impact.

    Used to pick the log level when an error is reported.
    """
    LOW = "low"          # Caller mistakes, nothing wrong server-side
    MEDIUM = "medium"    # Request could not be served
    HIGH = "high"        # Upstream store or configuration is broken


class ErrorCodes:
    """Standardized machine-readable error codes."""

    # Protocol
    PARSE_ERROR = "PARSE_ERROR"
    UNKNOWN_METHOD = "UNKNOWN_METHOD"

    # Validation
    MISSING_REQUIRED_PARAMETER = "MISSING_REQUIRED_PARAMETER"

    # Credentials
    MISSING_SITE_URL = "MISSING_SITE_URL"
    MISSING_STORE_CREDENTIALS = "MISSING_STORE_CREDENTIALS"
    MISSING_CONTENT_CREDENTIALS = "MISSING_CONTENT_CREDENTIALS"

    # Upstream
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"

    # System
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


def generate_request_id(prefix: str = "req") -> str:
    """
    Generate a unique request ID for log correlation.

    Args:
        prefix: Prefix for request ID (default: "req")

    Returns:
        Unique request ID string with format: prefix-uuid4

    Example:
        >>> generate_request_id("rpc")
        'rpc-87654321-4321-8765-dcba-098765432109'
    """
    return f"{prefix}-{uuid.uuid4()}"


class BaseAPIError(Exception):
    """
    Base exception class for gateway errors with structured metadata.

    Attributes:
        message: Error message returned to the caller
        error_code: Machine-readable error code (see ``ErrorCodes``)
        request_id: Unique identifier for log correlation
        details: Additional structured error context
        severity: Error severity level
    """

    jsonrpc_code: int = JSONRPC_SERVER_ERROR

    def __init__(
        self,
        message: str,
        error_code: str,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.request_id = request_id or generate_request_id()
        self.details = details or {}
        self.severity = severity

    def to_jsonrpc_error(self) -> Dict[str, Any]:
        """
        Render the error as a JSON-RPC 2.0 error object.

        Returns:
            Dictionary with ``code``, ``message`` and ``data``. ``data`` holds the
            machine-readable error code and any JSON-serializable details.
        """
        data: Dict[str, Any] = {"error_code": self.error_code}
        if self.details:
            try:
                json.dumps(self.details)
                data.update(self.details)
            except (TypeError, ValueError):
                data["details"] = "Details contain non-serializable data"
        return {
            "code": self.jsonrpc_code,
            "message": self.message,
            "data": data,
        }


class ParseError(BaseAPIError):
    """
    Malformed JSON-RPC envelope.

    Raised when the payload is not valid JSON, is not an object, or does not
    declare ``"jsonrpc": "2.0"``. The caller-facing message is always
    ``Parse error``; the reason travels in ``data``.
    """

    jsonrpc_code = JSONRPC_PARSE_ERROR

    def __init__(self, reason: str, request_id: Optional[str] = None):
        super().__init__(
            message="Parse error",
            error_code=ErrorCodes.PARSE_ERROR,
            request_id=request_id,
            severity=ErrorSeverity.LOW,
        )
        self.reason = reason

    def to_jsonrpc_error(self) -> Dict[str, Any]:
        return {
            "code": self.jsonrpc_code,
            "message": self.message,
            "data": self.reason,
        }


class DispatchError(BaseAPIError):
    """Base class for every failure raised by the method dispatcher."""


class UnknownMethodError(DispatchError):
    """The requested method is not in the descriptor table."""

    def __init__(self, method: Optional[str], request_id: Optional[str] = None):
        super().__init__(
            message=f"Unknown method: {method}",
            error_code=ErrorCodes.UNKNOWN_METHOD,
            request_id=request_id,
            details={"method": method},
            severity=ErrorSeverity.LOW,
        )
        self.method = method


class MissingParameterError(DispatchError):
    """A parameter the descriptor declares as required was not supplied."""

    def __init__(self, parameter: str, method: str, request_id: Optional[str] = None):
        super().__init__(
            message=f"{parameter} is required for {method}",
            error_code=ErrorCodes.MISSING_REQUIRED_PARAMETER,
            request_id=request_id,
            details={"parameter": parameter, "method": method},
            severity=ErrorSeverity.LOW,
        )
        self.parameter = parameter
        self.method = method


class CredentialError(DispatchError):
    """Base class for credential resolution failures."""

    def __init__(self, message: str, error_code: str, request_id: Optional[str] = None):
        super().__init__(
            message=message,
            error_code=error_code,
            request_id=request_id,
            severity=ErrorSeverity.MEDIUM,
        )


class MissingSiteUrlError(CredentialError):
    """No site URL in the request parameters nor in the process defaults."""

    def __init__(self, request_id: Optional[str] = None):
        super().__init__(
            "WordPress site URL not provided in environment variables or request parameters",
            ErrorCodes.MISSING_SITE_URL,
            request_id=request_id,
        )


class MissingStoreCredentialsError(CredentialError):
    """WooCommerce consumer key/secret unavailable for a store-API method."""

    def __init__(self, request_id: Optional[str] = None):
        super().__init__(
            "WooCommerce API credentials not provided in environment variables or request parameters",
            ErrorCodes.MISSING_STORE_CREDENTIALS,
            request_id=request_id,
        )


class MissingContentCredentialsError(CredentialError):
    """WordPress username/password unavailable for a content-API method."""

    def __init__(self, request_id: Optional[str] = None):
        super().__init__(
            "WordPress credentials not provided in environment variables or request parameters",
            ErrorCodes.MISSING_CONTENT_CREDENTIALS,
            request_id=request_id,
        )


class UpstreamError(DispatchError):
    """
    WordPress/WooCommerce REST call failed.

    Represents both HTTP error responses and transport failures. The message
    is the upstream body's ``message`` field when present, otherwise the
    transport error text, always prefixed with ``API error:``.

    Attributes:
        endpoint: Absolute upstream URL without query string
        status_code: Upstream HTTP status, 0 for transport failures
        upstream_code: Upstream body's ``code`` field when present
    """

    def __init__(
        self,
        message: str,
        endpoint: str,
        status_code: int = 0,
        upstream_code: Optional[str] = None,
        error_code: str = ErrorCodes.UPSTREAM_ERROR,
        request_id: Optional[str] = None,
    ):
        details: Dict[str, Any] = {"endpoint": endpoint, "status_code": status_code}
        if upstream_code:
            details["upstream_code"] = upstream_code
        super().__init__(
            message=f"API error: {message}",
            error_code=error_code,
            request_id=request_id,
            details=details,
            severity=ErrorSeverity.HIGH if status_code == 0 or status_code >= 500 else ErrorSeverity.MEDIUM,
        )
        self.endpoint = endpoint
        self.status_code = status_code
        self.upstream_code = upstream_code


class ConfigurationError(BaseAPIError):
    """Invalid process configuration detected at startup."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCodes.CONFIGURATION_ERROR,
            details=details,
            severity=ErrorSeverity.HIGH,
        )
