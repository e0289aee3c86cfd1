"""
=============================================================================
REQINFO - How Does The Server See Me?
=============================================================================

A small HTTP service that reports back what it knows about the request
it received: the client's IP address and port, the request method and
a handful of request headers.

    $ curl http://example.net/
    2001:db8::7

    $ curl -4 http://example.net/ua
    curl/8.5.0

    $ curl http://example.net/all.json
    {"ip_addr":"::ffff:192.0.2.7","remote_host":"unavailable",...}

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      REQINFO ARCHITECTURE                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. DUAL-STACK SOCKET (core/socket_server.py)                      │
    │      - One AF_INET6 socket on [::]:80, IPV6_V6ONLY disabled         │
    │      - IPv4 and IPv6 clients on the same listener                   │
    │      - create / bind / listen failures are fatal                    │
    │                                                                      │
    │   2. HTTP/1.1 LAYER (http/, core/connection.py)                     │
    │      - Request parsing, routing, response building                  │
    │      - Keep-alive, thread pool                                      │
    │                                                                      │
    │   3. REQUEST INFO (info.py, handlers/info.py)                       │
    │      - Pure extraction of an immutable RequestInfo                  │
    │      - Plain text and JSON renderings                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    reqinfo/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # Entry point (python -m reqinfo)
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # StartupError
    ├── info.py              # RequestInfo + extract_request_info
    ├── server.py            # HTTPServer orchestrator
    ├── core/
    │   ├── socket_server.py # Dual-stack listening socket
    │   ├── connection.py    # Client connection wrapper
    │   └── thread_pool.py   # Worker threads
    ├── http/
    │   ├── headers.py       # Case-insensitive header lookup
    │   ├── request.py       # HTTP request parsing
    │   ├── response.py      # HTTP response building
    │   ├── router.py        # URL routing
    │   └── status_codes.py  # HTTP status enum
    ├── middleware/
    │   ├── base.py          # Middleware pipeline
    │   └── logging.py       # Access logging
    └── handlers/
        └── info.py          # The endpoints

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .errors import StartupError
from .info import HeaderSource, RequestInfo, extract_request_info
from .server import HTTPServer

__all__ = [
    "HTTPServer",
    "ServerConfig",
    "StartupError",
    "HeaderSource",
    "RequestInfo",
    "extract_request_info",
    "__version__",
]
