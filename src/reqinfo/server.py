"""
=============================================================================
REQUEST INFO HTTP SERVER
=============================================================================

The orchestrator that ties the socket server, the thread pool, the
HTTP layer and the endpoints together.

=============================================================================
REQUEST FLOW
=============================================================================

    client ──TCP──► SocketServer (dual-stack [::]:80)
                         │ accept()
                         ▼
                    ThreadPool.submit(_process_connection)
                         │
                         ▼
                    Connection.read_request()        raw bytes
                         │
                         ▼
                    RequestParser.parse()            HTTPRequest
                         │
                         ▼
                    LoggingMiddleware ─► Router      HTTPResponse
                         │                  │
                         │                  └─► handler ─► extract_request_info()
                         ▼
                    Connection.send_response()       raw bytes
                         │
                         └─► keep-alive? read the next request : close

=============================================================================
"""

import logging
from typing import Callable, Optional

from .config import ServerConfig
from .core import Connection, RequestTooLarge, SocketServer, ThreadPool
from .handlers import register_routes
from .http import (
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    RequestParser,
    ResponseBuilder,
    Router,
    internal_error,
)
from .middleware import LoggingMiddleware, Middleware, MiddlewarePipeline


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Request info HTTP/1.1 server.

    Usage:
        server = HTTPServer()          # [::]:80, all endpoints
        server.run()                   # Blocks until SIGINT/SIGTERM

    Or, to surface startup failure before serving:
        server = HTTPServer(config)
        server.bind()                  # May raise StartupError
        server.serve()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._router = Router()
        self._middleware = MiddlewarePipeline()
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._running = False

        register_routes(self._router)

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self):
        """Bound (host, port); the real port once bind() has run."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Add middleware (first added = outermost)."""
        self._middleware.add(middleware)
        return self

    def get(self, path: str, name: Optional[str] = None):
        """Register a GET route."""
        return self._router.get(path, name)

    def bind(self) -> None:
        """
        Set up the dual-stack listening socket.

        Raises:
            StartupError: If create, bind or listen fails.
        """
        self._socket_server.bind()

    def serve(self) -> None:
        """
        Serve requests until shutdown() (blocking).

        Binds first if bind() has not been called.
        """
        self.bind()

        self._handler = self._middleware.wrap(self._router.handle)
        self._thread_pool.start()
        self._running = True

        logger.debug("Registered routes:\n" + self._router.describe_routes())

        try:
            self._socket_server.serve(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def run(self) -> None:
        """Configure logging, add access logging, bind and serve (blocking)."""
        self._setup_logging()
        self.use(LoggingMiddleware())
        self.serve()

    def shutdown(self) -> None:
        """Stop accepting connections; serve() returns shortly after."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("reqinfo").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._socket_server.close()
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    def _handle_connection(self, conn: Connection):
        """
        Queue an accepted connection on the thread pool.

        A full queue, or a connection left waiting in it longer than
        config.timeout, is answered with 503 and closed.
        """
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            timeout=self.config.timeout,
            on_expire=lambda: self._reject(conn, "waited too long in queue"),
        )

        if not submitted:
            self._reject(conn, "thread pool full")

    def _reject(self, conn: Connection, reason: str):
        logger.warning(f"[{conn.id}] Rejecting connection: {reason}")
        self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
        conn.close()

    def _process_connection(self, conn: Connection):
        """
        Serve one connection (runs in a worker thread).

        Reads, parses, dispatches and answers requests until the client
        closes, keep-alive ends, or an error forces the connection shut.
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except RequestTooLarge as e:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                    break
                except OSError as e:
                    logger.debug(f"[{conn.id}] Read failed: {e}")
                    break

                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    logger.debug(f"[{conn.id}] Parse error: {e}")
                    self._send_error(conn, HTTPStatus(e.status_code), str(e))
                    break

                conn.state = conn.state.PROCESSING
                response = self._dispatch(conn, request)

                keep_alive = request.is_keep_alive and self.config.keep_alive
                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                response_bytes = response.to_bytes(
                    self.config.server_name,
                    include_body=request.method != "HEAD",
                )

                if not conn.send_response(response_bytes) or not keep_alive:
                    break

                conn.set_keep_alive()

    def _dispatch(self, conn: Connection, request: HTTPRequest) -> HTTPResponse:
        """Run the middleware chain; a crashing handler becomes a 500."""
        try:
            return self._handler(request)
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")
            return internal_error()

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        """Answer with a JSON error and Connection: close."""
        response = (ResponseBuilder()
            .status(status)
            .json({"error": message})
            .close_connection()
            .build())
        conn.send_response(response.to_bytes(self.config.server_name))
