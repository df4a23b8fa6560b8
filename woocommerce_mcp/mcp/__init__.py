"""JSON-RPC envelope handling and the stdio/HTTP transports."""

from .handlers import JsonRpcHandler
from .events import EventBroadcaster
from .stdio_server import StdioServer
from .http_server import GatewayHTTPServer, start_http_server

__all__ = [
    "JsonRpcHandler",
    "EventBroadcaster",
    "StdioServer",
    "GatewayHTTPServer",
    "start_http_server",
]
