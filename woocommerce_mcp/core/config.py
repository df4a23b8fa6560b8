"""
Configuration management for the WooCommerce MCP gateway.

Configuration is loaded once at process start from an optional YAML file,
then environment variables are applied on top. The resulting ``Config`` is
immutable: every section model is frozen, so nothing can change the
process-wide credential defaults after startup.

Example usage:
    >>> config = ConfigManager().load_config()            # env only
    >>> config = ConfigManager().load_config("config.yaml")
    >>> config.credential_defaults().site_url

Environment variable overrides:
    - WORDPRESS_SITE_URL: Overrides wordpress.site_url
    - WORDPRESS_USERNAME: Overrides wordpress.username
    - WORDPRESS_PASSWORD: Overrides wordpress.password
    - WOOCOMMERCE_CONSUMER_KEY: Overrides woocommerce.consumer_key
    - WOOCOMMERCE_CONSUMER_SECRET: Overrides woocommerce.consumer_secret
    - SERVER_MODE: Overrides server.mode (stdio, http, hybrid; "mcp" means stdio)
    - HOST: Overrides server.host
    - PORT / HTTP_PORT: Overrides server.port (PORT wins)
    - CORS_ORIGIN: Overrides server.cors_origin
    - LOG_LEVEL: Overrides logging.level
    - UPSTREAM_TIMEOUT: Overrides upstream.timeout_seconds
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError
from ..woocommerce.credentials import CredentialDefaults


DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_UPSTREAM_TIMEOUT_SEC = 30.0
DEFAULT_PROTOCOL_VERSION = "2024-11-05"
DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class ServerConfig(_Section):
    """Transport settings.

    Attributes:
        host: Bind address for the HTTP transport.
        port: Listen port for the HTTP transport.
        mode: ``stdio`` reads JSON-RPC lines from stdin, ``http`` serves
              ``POST /message`` plus SSE, ``hybrid`` picks HTTP when stdin is a
              terminal and stdio otherwise.
        cors_origin: Value of ``Access-Control-Allow-Origin``.
        stdio_workers: Worker threads dispatching stdio requests concurrently.
        max_body_bytes: Largest accepted HTTP request body.
    """
    host: str = Field(default=DEFAULT_HOST, description="Server bind address")
    port: int = Field(default=DEFAULT_PORT, description="Server port number", ge=0, le=65535)
    mode: Literal["stdio", "http", "hybrid"] = Field(default="http", description="Transport mode")
    cors_origin: str = Field(default="*", description="Allowed CORS origin")
    stdio_workers: int = Field(default=8, description="Concurrent stdio dispatch workers", ge=1)
    max_body_bytes: int = Field(default=DEFAULT_MAX_BODY_BYTES, gt=0)


class LoggingConfig(_Section):
    """Logging level and output format."""
    level: str = Field(default="INFO", description="Logging level")
    format_json: bool = Field(default=True, description="Emit JSON log lines")
    include_source_location: bool = Field(default=False)


class WordPressConfig(_Section):
    """Default WordPress site and content-API credentials.

    Keep ``password`` secure and never log it.
    """
    site_url: str = Field(default="", description="Base URL of the WordPress site")
    username: str = Field(default="", description="WordPress username")
    password: str = Field(default="", description="WordPress application password")


class WooCommerceConfig(_Section):
    """Default WooCommerce REST API credentials.

    Keep ``consumer_secret`` secure and never log it.
    """
    consumer_key: str = Field(default="", description="WooCommerce consumer key")
    consumer_secret: str = Field(default="", description="WooCommerce consumer secret")


class UpstreamConfig(_Section):
    """Outbound HTTP settings."""
    timeout_seconds: float = Field(
        default=DEFAULT_UPSTREAM_TIMEOUT_SEC,
        description="Deadline for each upstream HTTP call",
        gt=0,
    )


class McpConfig(_Section):
    """Server identity reported by ``initialize``."""
    name: str = Field(default="woocommerce-mcp-server", description="MCP server name identifier")
    version: str = Field(default="1.0.0", description="Server version")
    protocol_version: str = Field(default=DEFAULT_PROTOCOL_VERSION, description="MCP protocol version")


class Config(_Section):
    """Root configuration container.

    Example:
        >>> config = Config(wordpress={"site_url": "https://shop.example.com"})
        >>> config.wordpress.site_url
        'https://shop.example.com'
    """
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    wordpress: WordPressConfig = Field(default_factory=WordPressConfig)
    woocommerce: WooCommerceConfig = Field(default_factory=WooCommerceConfig)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    mcp: McpConfig = Field(default_factory=McpConfig)

    def credential_defaults(self) -> CredentialDefaults:
        """Process-wide credential defaults handed to the credential resolver."""
        return CredentialDefaults(
            site_url=self.wordpress.site_url,
            consumer_key=self.woocommerce.consumer_key,
            consumer_secret=self.woocommerce.consumer_secret,
            username=self.wordpress.username,
            password=self.wordpress.password,
        )


# "mcp" is the historical name of the stdio transport
_MODE_ALIASES = {"mcp": "stdio"}

# (env var, section, field, converter)
_ENV_OVERRIDES = (
    ("WORDPRESS_SITE_URL", "wordpress", "site_url", str),
    ("WORDPRESS_USERNAME", "wordpress", "username", str),
    ("WORDPRESS_PASSWORD", "wordpress", "password", str),
    ("WOOCOMMERCE_CONSUMER_KEY", "woocommerce", "consumer_key", str),
    ("WOOCOMMERCE_CONSUMER_SECRET", "woocommerce", "consumer_secret", str),
    ("SERVER_MODE", "server", "mode", lambda v: _MODE_ALIASES.get(v.strip().lower(), v.strip().lower())),
    ("HOST", "server", "host", str),
    ("HTTP_PORT", "server", "port", int),
    ("PORT", "server", "port", int),
    ("CORS_ORIGIN", "server", "cors_origin", str),
    ("LOG_LEVEL", "logging", "level", str),
    ("UPSTREAM_TIMEOUT", "upstream", "timeout_seconds", float),
)


class ConfigManager:
    """Load the process configuration from YAML and the environment.

    Example:
        >>> manager = ConfigManager()
        >>> config = manager.load_config("config.yaml")
        >>> config.server.port
        3000
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._environ = environ

    def load_config(self, config_path: Optional[str] = None) -> Config:
        """
        Load configuration, applying environment variable overrides.

        Args:
            config_path: Optional path to a YAML configuration file. When
                omitted, defaults plus environment variables are used.

        Returns:
            Config: Immutable configuration object

        Raises:
            FileNotFoundError: If ``config_path`` is given but does not exist
            ConfigurationError: If YAML parsing or validation fails
        """
        yaml_data: Dict[str, Any] = {}
        if config_path:
            yaml_data = self._read_yaml(config_path)

        self.logger.debug("Applying environment variable overrides")
        data = self._apply_env_overrides(yaml_data)

        try:
            config = Config(**data)
        except ValidationError as e:
            self.logger.error(f"Configuration validation failed: {e}")
            raise ConfigurationError(
                f"Configuration validation failed: {e}",
                details={"errors": e.errors(include_url=False, include_input=False)},
            ) from e

        self.logger.info(
            "Configuration loaded",
            extra={
                "mode": config.server.mode,
                "site_url_configured": bool(config.wordpress.site_url),
                "store_credentials_configured": bool(
                    config.woocommerce.consumer_key and config.woocommerce.consumer_secret
                ),
            },
        )
        return config

    def _read_yaml(self, config_path: str) -> Dict[str, Any]:
        self.logger.info(f"Loading configuration from: {config_path}")
        config_file = Path(config_path)
        if not config_file.exists():
            self.logger.error(f"Configuration file not found: {config_path}")
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.logger.error(f"Invalid YAML format in {config_path}: {e}")
            raise ConfigurationError(f"Invalid YAML format in {config_path}: {e}") from e

        if yaml_data is None:
            self.logger.warning("YAML file is empty, using default configuration")
            return {}
        if not isinstance(yaml_data, dict):
            raise ConfigurationError(f"Top level of {config_path} must be a mapping")
        return yaml_data

    def _apply_env_overrides(self, yaml_data: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of ``yaml_data`` with environment overrides applied."""
        environ = os.environ if self._environ is None else self._environ
        data: Dict[str, Any] = {
            key: dict(value) if isinstance(value, dict) else value
            for key, value in yaml_data.items()
        }

        for env_name, section, field, convert in _ENV_OVERRIDES:
            raw = environ.get(env_name)
            if raw is None or raw == "":
                continue
            try:
                value = convert(raw)  # type: ignore[operator]
            except ValueError:
                self.logger.warning(
                    "Ignoring invalid environment override",
                    extra={"variable": env_name},
                )
                continue
            section_data = data.get(section)
            if not isinstance(section_data, dict):
                section_data = {}
                data[section] = section_data
            section_data[field] = value

        return data
