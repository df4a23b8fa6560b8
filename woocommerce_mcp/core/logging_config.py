"""
Structured JSON logging for the WooCommerce MCP gateway.

Every log line is a single JSON object with timestamp, level, component and
message fields, plus whatever was passed through ``extra=``.

Stream routing depends on the transport:
- HTTP mode: INFO/WARNING go to stdout, ERROR/CRITICAL to stderr
- stdio mode: everything goes to stderr, because stdout carries the
  JSON-RPC protocol stream and must never contain log lines

Example usage:
    from woocommerce_mcp.core.logging_config import setup_logging, get_logger, LogLevel

    setup_logging(level=LogLevel.INFO, stdout_allowed=False)
    logger = get_logger("woocommerce.client")
    logger.info("Upstream call completed", extra={"status_code": 200, "duration_ms": 87})
"""

import json
import logging
import sys
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union


class LogLevel(Enum):
    """Log level enumeration mapped onto the stdlib logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def from_string(cls, level_str: str) -> 'LogLevel':
        """
        Convert string to LogLevel enum.

        Args:
            level_str: Log level as string (case-insensitive)

        Raises:
            ValueError: If level_str is not a valid log level
        """
        try:
            return cls(level_str.strip().upper())
        except ValueError:
            valid_levels = [level.value for level in cls]
            raise ValueError(f"Invalid log level '{level_str}'. Valid levels: {valid_levels}")

    def to_logging_level(self) -> int:
        return getattr(logging, self.value)


class SafeJSONEncoder(json.JSONEncoder):
    """JSON encoder that degrades to ``str()`` instead of failing a log call."""

    def default(self, obj: Any) -> Union[str, Dict[str, Any], list]:
        try:
            if isinstance(obj, (set, frozenset, tuple)):
                return list(obj)
            if isinstance(obj, datetime):
                return obj.isoformat()
            if isinstance(obj, Enum):
                return obj.value
            if hasattr(obj, '__dict__'):
                return {'_type': obj.__class__.__name__, '_repr': str(obj)}
            return str(obj)
        except Exception:
            return f"<unserializable: {type(obj).__name__}>"


class JSONFormatter(logging.Formatter):
    """
    Render log records as one-line JSON objects.

    Output format:
    {
        "timestamp": "2025-09-13T10:00:00Z",
        "level": "INFO",
        "component": "woocommerce.dispatcher",
        "message": "Completed dispatch get_products",
        "duration_ms": 87
    }
    """

    # Attributes every LogRecord carries; anything else came in through extra=
    EXCLUDED_FIELDS = frozenset(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'asctime'}

    def __init__(self, include_source_location: bool = False):
        super().__init__()
        self.include_source_location = include_source_location
        self.json_encoder = SafeJSONEncoder(separators=(',', ':'), ensure_ascii=False)

    def format(self, record: logging.LogRecord) -> str:
        try:
            log_data: Dict[str, Any] = {
                "timestamp": self._format_timestamp(record.created),
                "level": record.levelname,
                "component": record.name,
                "message": self._safe_get_message(record),
            }

            if self.include_source_location:
                log_data.update({
                    "file": record.filename,
                    "line": record.lineno,
                    "function": record.funcName,
                })

            for key, value in record.__dict__.items():
                if key not in self.EXCLUDED_FIELDS and key not in log_data:
                    log_data[key] = value

            if record.exc_info:
                log_data["exception"] = self.formatException(record.exc_info)

            return self.json_encoder.encode(log_data)

        except Exception as e:
            # Never let a formatting problem swallow the log line
            timestamp = self._format_timestamp(record.created)
            return (f"{timestamp} {record.levelname} {record.name} "
                    f"{self._safe_get_message(record)} [JSON_FORMAT_ERROR: {e}]")

    @staticmethod
    def _format_timestamp(created: float) -> str:
        dt = datetime.fromtimestamp(created, tz=timezone.utc)
        return dt.isoformat().replace('+00:00', 'Z')

    @staticmethod
    def _safe_get_message(record: logging.LogRecord) -> str:
        try:
            return record.getMessage()
        except Exception:
            return f"<message formatting failed: {record.msg}>"


class LoggingFilter:
    """Pass only records strictly below ``max_level``."""

    def __init__(self, max_level: int):
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.max_level


def setup_logging(
    level: LogLevel = LogLevel.INFO,
    include_source_location: bool = False,
    format_json: bool = True,
    stdout_allowed: bool = True,
) -> None:
    """
    Configure root logging for the gateway.

    Args:
        level: Minimum log level to output (default: INFO)
        include_source_location: Include file/line info in logs
        format_json: Use JSON formatting; plain text otherwise
        stdout_allowed: Route INFO/WARNING to stdout. Must be False when the
            stdio transport owns stdout.

    Example:
        setup_logging(LogLevel.DEBUG, stdout_allowed=False)
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level.to_logging_level())

    if format_json:
        formatter: logging.Formatter = JSONFormatter(include_source_location=include_source_location)
    else:
        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%dT%H:%M:%S%z'
        )

    if stdout_allowed:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setLevel(level.to_logging_level())
        stdout_handler.addFilter(LoggingFilter(logging.ERROR))
        stdout_handler.setFormatter(formatter)
        root_logger.addHandler(stdout_handler)

        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(max(logging.ERROR, level.to_logging_level()))
    else:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(level.to_logging_level())
    stderr_handler.setFormatter(formatter)
    root_logger.addHandler(stderr_handler)

    # urllib3 logs full request URLs, which carry WooCommerce query credentials
    for noisy in ('urllib3', 'urllib3.connectionpool', 'requests'):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def configure_from_config(logging_config: Any, stdout_allowed: bool = True) -> None:
    """
    Configure logging from the ``logging`` section of the process config.

    Falls back to INFO when the configured level is not recognised.
    """
    try:
        level = LogLevel.from_string(getattr(logging_config, "level", "INFO"))
    except ValueError:
        level = LogLevel.INFO

    setup_logging(
        level=level,
        include_source_location=bool(getattr(logging_config, "include_source_location", False)),
        format_json=bool(getattr(logging_config, "format_json", True)),
        stdout_allowed=stdout_allowed,
    )


def get_logger(component: str, extra_context: Optional[Dict[str, Any]] = None) -> Union[logging.Logger, logging.LoggerAdapter]:
    """
    Get a logger for a component, optionally bound to default context.

    Args:
        component: Hierarchical component name (e.g. 'woocommerce.client')
        extra_context: Fields added to every record emitted through the logger

    Example:
        logger = get_logger("mcp.http", {"transport": "http"})
        logger.info("Request handled", extra={"path": "/message"})
    """
    logger = logging.getLogger(component)

    if extra_context:
        class ContextAdapter(logging.LoggerAdapter):
            def process(self, msg, kwargs):
                kwargs['extra'] = {**extra_context, **(kwargs.get('extra') or {})}
                return msg, kwargs

        return ContextAdapter(logger, extra_context)

    return logger


class PerformanceLogger:
    """
    Context manager that times an operation and logs its outcome.

    Completion is logged at INFO; a failure is logged at WARNING with the
    exception type. Exceptions are never suppressed.
    """

    def __init__(self, logger: Union[logging.Logger, logging.LoggerAdapter], operation: str, **context: Any):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[int] = None

    def __enter__(self) -> 'PerformanceLogger':
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is None:
            return
        self.duration_ms = int((time.perf_counter() - self.start_time) * 1000)
        log_context = {
            **self.context,
            "duration_ms": self.duration_ms,
            "operation": self.operation,
        }
        if exc_type is None:
            self.logger.info(f"Completed {self.operation}", extra=log_context)
        else:
            log_context["error_type"] = exc_type.__name__
            log_context["error_message"] = str(exc_val)
            self.logger.warning(f"Failed {self.operation}", extra=log_context)
