#!/usr/bin/env python3
"""
WooCommerce MCP Gateway - Entry Point

Loads configuration, sets up logging and runs one transport:

- ``stdio``: JSON-RPC lines on stdin/stdout until EOF
- ``http``: ``POST /message`` plus REST, SSE and health endpoints until
  SIGINT/SIGTERM
- ``hybrid``: HTTP when stdin is a terminal, stdio when it is piped

Exit status is 0 on a clean shutdown and 1 when startup fails or an
uncaught exception reaches the top level.
"""

import argparse
import signal
import sys
import threading
from typing import IO, List, Optional

from . import __version__
from .core.config import Config, ConfigManager
from .core.exceptions import ConfigurationError
from .core.logging_config import LogLevel, configure_from_config, get_logger, setup_logging
from .mcp.handlers import JsonRpcHandler
from .mcp.http_server import start_http_server
from .mcp.stdio_server import StdioServer
from .monitoring.health import HealthChecker
from .woocommerce.dispatcher import Dispatcher

logger = get_logger("woocommerce_mcp.main")

_STOP_POLL_SEC = 0.5


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='woocommerce-mcp',
        description='WooCommerce MCP Gateway - JSON-RPC/MCP to WooCommerce and WordPress REST',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to a YAML configuration file (environment variables apply on top)'
    )
    parser.add_argument(
        '--mode',
        choices=['stdio', 'http', 'hybrid'],
        default=None,
        help='Transport mode (overrides server.mode / SERVER_MODE)'
    )
    parser.add_argument('--host', type=str, default=None, help='HTTP bind address')
    parser.add_argument('--port', type=int, default=None, help='HTTP port')
    parser.add_argument(
        '--log-level',
        choices=[level.value for level in LogLevel],
        default=None,
        help='Logging level (overrides logging.level / LOG_LEVEL)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )
    return parser


def apply_cli_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Return a copy of ``config`` with command line values applied."""
    server_updates = {
        key: value
        for key, value in (("mode", args.mode), ("host", args.host), ("port", args.port))
        if value is not None
    }
    level = "DEBUG" if args.verbose else args.log_level
    updates = {}
    if server_updates:
        updates["server"] = config.server.model_copy(update=server_updates)
    if level:
        updates["logging"] = config.logging.model_copy(update={"level": level})
    return config.model_copy(update=updates) if updates else config


def resolve_mode(mode: str, stdin: Optional[IO[str]] = None) -> str:
    """Collapse ``hybrid`` into a concrete transport."""
    if mode != "hybrid":
        return mode
    stream = stdin if stdin is not None else sys.stdin
    try:
        interactive = stream.isatty()
    except (AttributeError, ValueError):
        interactive = False
    return "http" if interactive else "stdio"


def build_handler(config: Config) -> JsonRpcHandler:
    dispatcher = Dispatcher(
        config.credential_defaults(),
        timeout=config.upstream.timeout_seconds,
    )
    return JsonRpcHandler(dispatcher, config.mcp)


def run_stdio(config: Config, handler: JsonRpcHandler) -> int:
    StdioServer(handler, max_workers=config.server.stdio_workers).serve_forever()
    return 0


def run_http(config: Config, handler: JsonRpcHandler, stop_event: Optional[threading.Event] = None) -> int:
    """Serve HTTP until ``stop_event`` is set or a termination signal arrives."""
    stop = stop_event or threading.Event()

    def _handle_signal(signum, _frame):
        logger.info("Shutdown signal received", extra={"signal": signal.Signals(signum).name})
        stop.set()

    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)

    server = start_http_server(
        config.server.host,
        config.server.port,
        handler,
        HealthChecker(config),
        cors_origin=config.server.cors_origin,
        max_body_bytes=config.server.max_body_bytes,
    )
    try:
        while not stop.wait(_STOP_POLL_SEC):
            pass
    finally:
        server.stop()
    return 0


def _log_thread_exception(args: threading.ExceptHookArgs) -> None:
    logger.critical(
        "Uncaught exception in thread",
        exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        extra={"thread_name": args.thread.name if args.thread else None},
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the WooCommerce MCP gateway.

    Args:
        argv: Command line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1

    # stderr only until the transport is known
    setup_logging(LogLevel.INFO, stdout_allowed=False)
    threading.excepthook = _log_thread_exception

    try:
        config = apply_cli_overrides(ConfigManager().load_config(args.config), args)
    except (FileNotFoundError, ConfigurationError) as e:
        logger.critical(f"Failed to load configuration: {e}")
        return 1

    mode = resolve_mode(config.server.mode)
    configure_from_config(config.logging, stdout_allowed=(mode == "http"))
    logger.info("Starting WooCommerce MCP gateway", extra={"mode": mode, "version": __version__})

    try:
        handler = build_handler(config)
        if mode == "http":
            return run_http(config, handler)
        return run_stdio(config, handler)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return 0
    except Exception:
        logger.critical("Fatal error, exiting", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
