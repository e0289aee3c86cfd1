"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) to a handler function.

    GET /            → ip_handler
    GET /ua          → ua_handler
    GET /all.json    → all_json_handler
    GET /nope        → 404 Not Found
    GET /ua/         → 404 Not Found
    POST /ua         → 405 Method Not Allowed (Allow: GET, HEAD)

Every route of this service is a static path, so matching is an exact
string comparison: "/ua/" and "//ua" are different paths from "/ua".
HEAD requests are served by the GET route for the same path; the
server drops the body.

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, List, Optional
import logging

from .request import HTTPRequest
from .response import HTTPResponse, method_not_allowed, not_found


logger = logging.getLogger(__name__)


Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """
    A registered route.

        Route(
            path="/ua",             # Exact path
            method="GET",           # HTTP method (None = any)
            handler=ua_handler,     # Handler function
            name="ua",              # Optional name
        )
    """

    path: str
    method: Optional[str]
    handler: Handler
    name: Optional[str] = None

    def accepts(self, method: str) -> bool:
        """Check if this route serves the method (HEAD rides on GET)."""
        if self.method is None:
            return True
        return self.method == method or (method == "HEAD" and self.method == "GET")


class Router:
    """
    HTTP request router.

    Routes are registered with decorators:

        router = Router()

        @router.get("/ip")
        def ip_handler(request):
            return ok(f"{request.client_ip}\\n")
    """

    def __init__(self):
        self._routes: List[Route] = []

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Route:
        """
        Register a route.

        Args:
            path: Exact URL path (e.g., /all.json)
            handler: Function taking a request and returning a response
            method: HTTP method (None for any method)
            name: Optional route name

        Returns:
            The registered Route object
        """
        if not path.startswith("/"):
            raise ValueError(f"Route path must start with '/': {path!r}")

        route = Route(
            path=path,
            method=method.upper() if method else None,
            handler=handler,
            name=name,
        )
        self._routes.append(route)
        logger.debug(f"Registered route {route.method or '*'} {route.path}")
        return route

    def match(self, method: str, path: str) -> Optional[Route]:
        """
        Find the route for a method and path.

        First registered, first matched.
        """
        method = method.upper()

        for route in self._routes:
            if route.path == path and route.accepts(method):
                return route

        return None

    def get_allowed_methods(self, path: str) -> List[str]:
        """
        Methods accepted at a path, for the Allow header of a 405.

        A GET route also allows HEAD.
        """
        methods = set()

        for route in self._routes:
            if route.path != path:
                continue
            if route.method is None:
                return ["DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT"]
            methods.add(route.method)
            if route.method == "GET":
                methods.add("HEAD")

        return sorted(methods)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route a request to its handler.

        Returns the handler's response, or 405/404 when nothing matches.
        """
        route = self.match(request.method, request.path)

        if route:
            return route.handler(request)

        allowed = self.get_allowed_methods(request.path)
        if allowed:
            return method_not_allowed(allowed)

        return not_found(f"No route matches {request.path}")

    def route(
        self,
        path: str,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator for registering routes."""

        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name)
            return handler

        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Register a GET route (also answers HEAD)."""
        return self.route(path, "GET", name)

    def routes(self) -> List[Route]:
        """All registered routes, in registration order."""
        return list(self._routes)

    def describe_routes(self) -> str:
        """
        Route table as text, for the startup log.

              GET      /
              GET      /ip
              ...
        """
        return "\n".join(
            f"  {route.method or '*':<8} {route.path}" for route in self._routes
        )
