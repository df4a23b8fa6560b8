"""
Health check module for the WooCommerce MCP gateway.

Backs the ``GET /health`` and ``GET /ready`` HTTP endpoints. Checks are
local only: the gateway never calls the upstream store to decide whether it
is healthy, because every request may target a different store.

Example usage:
    from woocommerce_mcp.core.config import ConfigManager
    from woocommerce_mcp.monitoring.health import HealthChecker

    checker = HealthChecker(ConfigManager().load_config())
    checker.get_health_status()
    checker.get_readiness_status()
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict

from ..core.logging_config import get_logger
from ..woocommerce.descriptors import DESCRIPTORS

# Health status constants
HEALTH_STATUS_HEALTHY = "healthy"


class HealthChecker:
    """
    Health and readiness reporting for the gateway process.

    Readiness only reflects local state; missing credential defaults do not
    make the gateway unready, since callers may pass credentials per request.
    """

    def __init__(self, config):
        """
        Initialize health checker with configuration.

        Args:
            config: Loaded ``Config`` object
        """
        self.config = config
        self.start_time = time.time()
        self.logger = get_logger("health.checker")

    def get_health_status(self) -> Dict[str, Any]:
        """
        Liveness information.

        Returns:
            {
                "status": "healthy",
                "server": "woocommerce-mcp-server",
                "version": "1.0.0",
                "uptime_seconds": 12.5,
                "timestamp": "2025-09-13T10:00:00Z"
            }
        """
        current_time = time.time()
        return {
            "status": HEALTH_STATUS_HEALTHY,
            "server": self.config.mcp.name,
            "version": self.config.mcp.version,
            "uptime_seconds": round(current_time - self.start_time, 2),
            "timestamp": datetime.fromtimestamp(current_time, tz=timezone.utc).isoformat().replace('+00:00', 'Z'),
        }

    def get_readiness_status(self) -> Dict[str, Any]:
        """
        Readiness with per-check results.

        ``defaults`` tells operators which credential defaults are configured
        (booleans only, never the values).
        """
        checks = {
            "config_loaded": self._check_config_loaded(),
            "descriptors_loaded": self._check_descriptors_loaded(),
        }
        ready = all(checks.values())
        if not ready:
            self.logger.warning("Readiness check failed", extra={"checks": checks})

        return {
            "ready": ready,
            "checks": checks,
            "defaults": self.config.credential_defaults().configured(),
        }

    def _check_config_loaded(self) -> bool:
        for section in ("server", "mcp", "upstream", "wordpress", "woocommerce"):
            if not hasattr(self.config, section):
                self.logger.warning(f"Missing config section: {section}")
                return False
        return bool(self.config.mcp.version)

    def _check_descriptors_loaded(self) -> bool:
        return len(DESCRIPTORS) > 0
