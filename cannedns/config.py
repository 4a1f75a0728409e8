"""Server configuration with environment variable defaults."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import ConfigurationError

DEFAULT_PORT = 53
INBUF_SIZE = 4096
CONN_BACKLOG = 5


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    tcp_timeout: Optional[float] = None  # None waits forever on a stalled TCP peer
    inbuf_size: int = INBUF_SIZE
    backlog: int = CONN_BACKLOG
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """Build a config from ``CANNEDNS_*`` environment variables.

        Raises:
            ConfigurationError: a variable holds a value of the wrong type
        """
        env = os.environ if environ is None else environ
        config = cls()
        config.host = env.get("CANNEDNS_HOST", config.host)
        config.log_level = env.get("CANNEDNS_LOG_LEVEL", config.log_level).upper()
        try:
            if "CANNEDNS_PORT" in env:
                config.port = int(env["CANNEDNS_PORT"])
            if env.get("CANNEDNS_TCP_TIMEOUT"):
                config.tcp_timeout = float(env["CANNEDNS_TCP_TIMEOUT"])
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment setting: {e}") from e
        return config

    def validate(self) -> None:
        if not 0 <= self.port <= 65535:
            raise ConfigurationError(
                f"Invalid port {self.port}, use a number.", {"port": self.port}
            )
        if self.tcp_timeout is not None and self.tcp_timeout <= 0:
            raise ConfigurationError(
                "TCP timeout must be positive", {"tcp_timeout": self.tcp_timeout}
            )
        if self.inbuf_size <= 0:
            raise ConfigurationError(
                "Inbound buffer size must be positive", {"inbuf_size": self.inbuf_size}
            )
