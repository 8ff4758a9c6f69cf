"""Application configuration.

AppConfig is a frozen dataclass, validated once when it is created.
"""

from dataclasses import dataclass

from sprig.errors import ConfigurationError

_LOG_LEVELS = ("critical", "error", "warning", "info", "debug")
_LOG_FORMATS = ("text", "json")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(port=3000, max_conns_per_ip=1)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    keep_alive_timeout: float = 5.0

    # Limits
    max_content_length: int = 4 * 1024 * 1024  # 4 MB
    max_conns_per_ip: int = 0  # 0 = unlimited
    max_connections: int = 0  # 0 = no server-wide ceiling

    # Client address resolution for ctx.ips()
    proxy_header: str = "X-Forwarded-For"

    # Logging
    log_level: str = "info"
    log_format: str = "text"

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 65535:
            msg = f"port must be between 0 and 65535, got {self.port}"
            raise ConfigurationError(msg)
        for name in ("max_content_length", "max_conns_per_ip", "max_connections"):
            if getattr(self, name) < 0:
                msg = f"{name} must not be negative, got {getattr(self, name)}"
                raise ConfigurationError(msg)
        if self.log_level not in _LOG_LEVELS:
            msg = f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level!r}"
            raise ConfigurationError(msg)
        if self.log_format not in _LOG_FORMATS:
            msg = f"log_format must be 'text' or 'json', got {self.log_format!r}"
            raise ConfigurationError(msg)
