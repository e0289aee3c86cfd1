"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

The HTTP/1.1 layer that sits between the socket server and the endpoint
handlers: raw bytes in, HTTPRequest out; HTTPResponse in, raw bytes out.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ headers.py       Case-insensitive, first-match header lookup        │
    │ request.py       Raw bytes → HTTPRequest                            │
    │ response.py      HTTPResponse / ResponseBuilder → raw bytes         │
    │ router.py        (method, path) → handler                           │
    │ status_codes.py  HTTPStatus enum with reason phrases                │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .headers import Headers, decode_header_value
from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    bad_request,
    not_found,
    method_not_allowed,
    internal_error,
)
from .router import Router, Route
from .status_codes import HTTPStatus

__all__ = [
    # Headers
    "Headers",
    "decode_header_value",

    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "bad_request",
    "not_found",
    "method_not_allowed",
    "internal_error",

    # Routing
    "Router",
    "Route",

    # Status codes
    "HTTPStatus",
]
