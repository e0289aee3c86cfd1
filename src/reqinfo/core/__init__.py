"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the HTTP layer.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • One AF_INET6 socket, IPV6_V6ONLY off: IPv4 + IPv6 on one port    │
    │  • create / bind / listen, each failure a StartupError              │
    │  • accept() loop on the main thread, SIGTERM/SIGINT shutdown        │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ Hands off new connections
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          THREAD POOL                                 │
    │  • Bounded queue, min/max worker threads                            │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ Worker processes connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  • Buffered reading of one request at a time, keep-alive            │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer, create_dual_stack_socket, peer_address
from .connection import Connection, ConnectionState, RequestTooLarge
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "create_dual_stack_socket",
    "peer_address",
    "Connection",
    "ConnectionState",
    "RequestTooLarge",
    "ThreadPool",
]
