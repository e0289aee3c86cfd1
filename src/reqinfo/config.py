"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the request info server.

=============================================================================
FIXED CONFIGURATION
=============================================================================

This service has exactly one deployment shape:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    PRODUCTION LISTENING ENDPOINT                    │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Address:   [::]:80          IPv6 wildcard, dual-stack             │
    │   Backlog:   1024             pending connections                   │
    │                                                                      │
    │   IPv6 clients  ──►  2001:db8::10                                   │
    │   IPv4 clients  ──►  ::ffff:192.0.2.10  (IPv4-mapped)               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There are no command-line flags and no environment variables. The
dataclass defaults ARE the production configuration. Tests build their
own instance (port 0, loopback host) to run on an ephemeral port.

=============================================================================
"""

from dataclasses import dataclass

from . import __version__


@dataclass
class ServerConfig:
    """
    Configuration for the request info server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    HTTP SETTINGS
    - keep_alive, keep_alive_timeout, max_request_size

    THREADING SETTINGS
    - min_workers, max_workers, queue_size

    LOGGING
    - log_level, server_name

    =========================================================================
    """

    # =========================================================================
    # NETWORK SETTINGS
    # =========================================================================

    host: str = "::"
    """
    The address to bind to.

    "::" is the IPv6 wildcard. With IPV6_V6ONLY disabled it also accepts
    IPv4 connections, so one socket serves both families.
    """

    port: int = 80
    """
    The port number to listen on (80 requires root or CAP_NET_BIND_SERVICE).
    """

    backlog: int = 1024
    """
    Maximum number of queued, not yet accepted connections.
    """

    buffer_size: int = 8192
    """
    Size of each recv() call in bytes.
    """

    timeout: float = 30.0
    """
    Socket timeout in seconds for reading the first request.
    """

    # =========================================================================
    # HTTP SETTINGS
    # =========================================================================

    keep_alive: bool = True
    """
    Allow several requests on the same TCP connection.
    """

    keep_alive_timeout: float = 5.0
    """
    Idle time in seconds before a keep-alive connection is closed.
    """

    max_request_size: int = 64 * 1024  # 64 KB
    """
    Maximum request size in bytes. Every route is a GET without a body,
    so a small limit is plenty.
    """

    # =========================================================================
    # THREADING SETTINGS
    # =========================================================================

    min_workers: int = 4
    max_workers: int = 32
    queue_size: int = 256

    # =========================================================================
    # LOGGING
    # =========================================================================

    log_level: str = "INFO"
    server_name: str = f"reqinfo/{__version__}"

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once when the server is created so that a broken config
        fails before any socket is touched.

        Raises:
            ValueError: If any value is out of range.
        """
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Invalid port: {self.port}")

        if self.backlog < 1:
            raise ValueError(f"Backlog must be positive: {self.backlog}")

        if self.buffer_size < 1024:
            raise ValueError(f"Buffer size too small: {self.buffer_size}")

        if self.timeout <= 0:
            raise ValueError(f"Timeout must be positive: {self.timeout}")

        if self.keep_alive_timeout <= 0:
            raise ValueError(
                f"Keep-alive timeout must be positive: {self.keep_alive_timeout}"
            )

        if self.min_workers < 1:
            raise ValueError(f"min_workers must be at least 1: {self.min_workers}")

        if self.max_workers < self.min_workers:
            raise ValueError(
                f"max_workers ({self.max_workers}) must be >= "
                f"min_workers ({self.min_workers})"
            )

        if self.queue_size < 1:
            raise ValueError(f"queue_size must be at least 1: {self.queue_size}")

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {self.log_level}")

    @property
    def display_address(self) -> str:
        """Address in URL form, e.g. "[::]:80" or "127.0.0.1:8080"."""
        return format_address(self.host, self.port)


def format_address(host: str, port: int) -> str:
    """Format host and port, bracketing IPv6 literals."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
