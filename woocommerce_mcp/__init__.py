"""WooCommerce MCP gateway.

Translates JSON-RPC 2.0 / MCP requests into WooCommerce and WordPress REST
calls, over stdio or HTTP.
"""

__version__ = "1.0.0"
