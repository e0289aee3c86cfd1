"""
=============================================================================
DUAL-STACK TCP SOCKET SERVER
=============================================================================

This module owns the one listening socket of the service. It accepts
IPv4 AND IPv6 clients on the same port, without a second listener.

=============================================================================
HOW ONE SOCKET SERVES TWO ADDRESS FAMILIES
=============================================================================

An AF_INET6 socket bound to the IPv6 wildcard "::" can also receive
IPv4 connections. The kernel presents them as IPv4-mapped IPv6
addresses (RFC 4291, section 2.5.5.2):

    IPv4 client 192.0.2.10  ──►  seen as  ::ffff:192.0.2.10
    IPv6 client 2001:db8::1 ──►  seen as  2001:db8::1

Whether this happens is controlled by the IPV6_V6ONLY socket option,
whose default depends on the OS (net.ipv6.bindv6only on Linux, on by
default on Windows and some BSDs). We always set it to 0 explicitly:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       Socket Setup Steps                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. CREATE   socket(AF_INET6, SOCK_STREAM)                          │
    │               setsockopt(SOL_SOCKET,   SO_REUSEADDR, 1)              │
    │               setsockopt(IPPROTO_IPV6, IPV6_V6ONLY,  0)  ◄── key    │
    │               setsockopt(IPPROTO_TCP,  TCP_NODELAY,  1)              │
    │                                                                      │
    │   2. BIND     bind(("::", 80))                                       │
    │                                                                      │
    │   3. LISTEN   listen(1024)                                           │
    │                                                                      │
    │   Any step fails → StartupError(step) → process exits non-zero      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no retry and no fallback: no second attempt on another port,
no IPv4-only socket when IPv6 is missing. A half-configured listener is
closed before the error propagates.

=============================================================================
SIGNAL HANDLING FOR GRACEFUL SHUTDOWN
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (docker stop, systemd) stop the accept
loop. Connections already handed to workers finish normally. Signal
handlers can only be installed from the main thread, so a server
running in a background thread (as in the tests) skips this step and
is stopped with shutdown().

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig, format_address
from ..errors import StartupError
from .connection import Connection


logger = logging.getLogger(__name__)


def create_dual_stack_socket() -> socket.socket:
    """
    Create a TCP socket that accepts both IPv4 and IPv6 connections.

    Returns:
        An unbound AF_INET6 stream socket with IPV6_V6ONLY disabled.

    Raises:
        OSError: If IPv6 is unavailable or an option cannot be set.
    """
    if not socket.has_ipv6:
        raise OSError("IPv6 is not supported on this platform")

    sock = socket.socket(socket.AF_INET6, socket.SOCK_STREAM)

    try:
        # Immediate restart without "Address already in use" from
        # connections lingering in TIME_WAIT. Does not allow two live
        # listeners on one port (that would be SO_REUSEPORT).
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)

        # Responses are small; send them without Nagle delay
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    except OSError:
        sock.close()
        raise

    return sock


def peer_address(client_address: Tuple) -> Tuple[str, int]:
    """
    (ip, port) of an accepted peer.

    AF_INET6 peers come as (host, port, flowinfo, scope_id), and a
    link-local host carries its zone ("fe80::1%eth0"). The zone is
    dropped so the host is a plain IP literal.
    """
    host = client_address[0].split("%", 1)[0]
    return host, client_address[1]


class SocketServer:
    """
    Dual-stack TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    bind()            Create, bind and listen (StartupError on fail) │
    │        │                                                             │
    │        ▼                                                             │
    │    serve(handler)    Accept loop (blocks until shutdown)            │
    │        │                                                             │
    │        └──► while running:                                           │
    │                accept()        Wait for a client (1s poll)          │
    │                Connection()    Wrap client socket                   │
    │                handler(conn)   Hand off to the HTTP server          │
    │                                                                      │
    │    shutdown()        Stop the accept loop (any thread)              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        server = SocketServer(config)
        server.bind()                  # Raises StartupError on failure
        server.serve(handle_connection)
    """

    # accept() wakes up this often to notice shutdown()
    POLL_INTERVAL = 1.0

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._shutdown_event = threading.Event()
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_bound(self) -> bool:
        return self._socket is not None

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        After bind() this is the real address, so a config with port 0
        reports the port the OS picked.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    def bind(self) -> None:
        """
        Create the dual-stack socket, bind it and start listening.

        Raises:
            StartupError: With step "create", "bind" or "listen".
        """
        if self._socket is not None:
            return

        display = format_address(self.config.host, self.config.port)

        try:
            sock = create_dual_stack_socket()
        except OSError as e:
            logger.error(f"Failed to create dual-stack socket: {e}")
            raise StartupError("create", display, e) from e

        logger.info(f"Listening on dual-stack address: {display}")

        try:
            sock.bind((self.config.host, self.config.port))
        except OSError as e:
            sock.close()
            logger.error(f"Failed to bind to {display}: {e}")
            raise StartupError("bind", display, e) from e

        try:
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            logger.error(f"Failed to listen on {display}: {e}")
            raise StartupError("listen", display, e) from e

        # Periodic wake-up so the loop can see shutdown()
        sock.settimeout(self.POLL_INTERVAL)

        self._socket = sock
        logger.info(f"Dual-stack server running on {format_address(*self.address)}")

    def serve(self, connection_handler: Callable[[Connection], None]) -> None:
        """
        Accept connections until shutdown() is called.

        Binds first if bind() has not been called yet.

        Args:
            connection_handler: Receives each accepted Connection.
        """
        self.bind()

        self._running = True
        self._shutdown_event.clear()
        self._setup_signals()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            host, port = peer_address(client_address)
            logger.debug(f"Accepted connection from {format_address(host, port)}")

            conn = Connection(
                socket=client_socket,
                address=(host, port),
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                keep_alive_timeout=self.config.keep_alive_timeout,
                max_request_size=self.config.max_request_size,
            )

            connection_handler(conn)

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers when running on the main thread."""
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def shutdown(self):
        """
        Stop the accept loop.

        Safe to call from a signal handler or another thread, and more
        than once.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False
        self._shutdown_event.set()

    def close(self):
        """Close the listening socket (also done when serve() returns)."""
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

    def _cleanup(self):
        self._restore_signals()
        self.close()
        self._running = False
        logger.info("Socket server stopped")

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until shutdown() has been called.

        Returns:
            True if shutdown happened, False on timeout.
        """
        return self._shutdown_event.wait(timeout)
