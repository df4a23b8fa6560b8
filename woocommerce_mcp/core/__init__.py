"""Core functionality package for the WooCommerce MCP gateway.

``config`` is imported from its own module: it depends on the credential
types in ``woocommerce_mcp.woocommerce``, which in turn use this package.
"""

from .exceptions import (
    BaseAPIError,
    ParseError,
    DispatchError,
    UnknownMethodError,
    MissingParameterError,
    CredentialError,
    MissingSiteUrlError,
    MissingStoreCredentialsError,
    MissingContentCredentialsError,
    UpstreamError,
    ConfigurationError,
)
from .logging_config import (
    setup_logging,
    get_logger,
    LogLevel,
    PerformanceLogger
)

__all__ = [
    "BaseAPIError",
    "ParseError",
    "DispatchError",
    "UnknownMethodError",
    "MissingParameterError",
    "CredentialError",
    "MissingSiteUrlError",
    "MissingStoreCredentialsError",
    "MissingContentCredentialsError",
    "UpstreamError",
    "ConfigurationError",
    "setup_logging",
    "get_logger",
    "LogLevel",
    "PerformanceLogger"
]
