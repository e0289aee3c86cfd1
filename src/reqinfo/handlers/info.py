"""
=============================================================================
REQUEST INFO ENDPOINTS
=============================================================================

Every endpoint builds a fresh RequestInfo from the request it is
answering and renders part of it.

    ┌────────────┬──────────────────────────────┬────────────────────────┐
    │ Route      │ Body                         │ Missing header         │
    ├────────────┼──────────────────────────────┼────────────────────────┤
    │ /, /ip     │ client IP                    │ (always present)       │
    │ /ua        │ User-Agent                   │ "unknown"              │
    │ /lang      │ Accept-Language              │ "unknown"              │
    │ /encoding  │ Accept-Encoding              │ "unknown"              │
    │ /mime      │ Accept                       │ "unknown"              │
    │ /forwarded │ Forwarded                    │ "unknown"              │
    │ /all       │ "name: value" per field      │ "" (empty value)       │
    │ /all.json  │ JSON object                  │ null                   │
    └────────────┴──────────────────────────────┴────────────────────────┘

Single-field bodies end with exactly one "\n".

=============================================================================
"""

from typing import Optional

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from ..http.router import Router
from ..info import RequestInfo, extract_request_info


UNKNOWN = "unknown"


def request_info(request: HTTPRequest) -> RequestInfo:
    """Build the RequestInfo for a parsed request."""
    return extract_request_info(request.client_address, request.method, request.headers)


def text_line(value: Optional[str], default: str = UNKNOWN) -> HTTPResponse:
    """A text/plain response holding one value and a newline."""
    return ResponseBuilder().text(f"{default if value is None else value}\n").build()


def ip_handler(request: HTTPRequest) -> HTTPResponse:
    """Client IP address only."""
    return text_line(request_info(request).ip_addr)


def ua_handler(request: HTTPRequest) -> HTTPResponse:
    return text_line(request_info(request).user_agent)


def lang_handler(request: HTTPRequest) -> HTTPResponse:
    return text_line(request_info(request).language)


def encoding_handler(request: HTTPRequest) -> HTTPResponse:
    return text_line(request_info(request).encoding)


def mime_handler(request: HTTPRequest) -> HTTPResponse:
    return text_line(request_info(request).mime)


def forwarded_handler(request: HTTPRequest) -> HTTPResponse:
    return text_line(request_info(request).forwarded)


def all_handler(request: HTTPRequest) -> HTTPResponse:
    """Every field as plain text; missing headers render as empty values."""
    return ResponseBuilder().text(request_info(request).to_text()).build()


def all_json_handler(request: HTTPRequest) -> HTTPResponse:
    """Every field as JSON; missing headers render as null."""
    return ResponseBuilder().json(request_info(request).to_dict()).build()


ROUTES = (
    ("/", ip_handler, "index"),
    ("/ip", ip_handler, "ip"),
    ("/ua", ua_handler, "ua"),
    ("/lang", lang_handler, "lang"),
    ("/encoding", encoding_handler, "encoding"),
    ("/mime", mime_handler, "mime"),
    ("/forwarded", forwarded_handler, "forwarded"),
    ("/all", all_handler, "all"),
    ("/all.json", all_json_handler, "all_json"),
)


def register_routes(router: Router) -> Router:
    """Register every request info endpoint as a GET route."""
    for path, handler, name in ROUTES:
        router.add_route(path, handler, method="GET", name=name)
    return router
