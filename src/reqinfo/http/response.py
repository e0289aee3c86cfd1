"""
=============================================================================
HTTP RESPONSE BUILDING
=============================================================================

Responses are plain data (HTTPResponse) plus a fluent builder
(ResponseBuilder) and a handful of one-call helpers.

=============================================================================
HTTP RESPONSE FORMAT (RFC 7230)
=============================================================================

    HTTP/1.1 200 OK\r\n                           ← Status line
    Content-Type: text/plain; charset=utf-8\r\n   ← Headers
    Content-Length: 10\r\n
    Date: Mon, 19 Oct 2026 10:00:00 GMT\r\n
    Server: reqinfo/1.0.0\r\n
    \r\n                                          ← Empty line
    192.0.2.7\n                                   ← Body

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Union
import json

from .status_codes import HTTPStatus


TEXT_PLAIN = "text/plain; charset=utf-8"
APPLICATION_JSON = "application/json"


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    Use ResponseBuilder for a more convenient way to construct responses.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """Status line, e.g. "HTTP/1.1 200 OK"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 (handy in tests and logs)."""
        return self.body.decode("utf-8")

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "reqinfo", include_body: bool = True) -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        Content-Length, Date and Server are added unless already set.
        Content-Length always describes the full body, even when
        include_body is False (HEAD requests).

        Args:
            server_name: Value for the Server header.
            include_body: False to send headers only.

        Returns:
            Complete HTTP response ready for socket.sendall().
        """
        response_headers = dict(self.headers)

        response_headers.setdefault("Content-Length", str(len(self.body)))
        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("latin-1") + b"\r\n"

        if include_body:
            return header_bytes + self.body
        return header_bytes


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

    Each method returns `self`, so calls chain:

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text("hello\\n")
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set a raw body. Strings are encoded as UTF-8."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = TEXT_PLAIN) -> "ResponseBuilder":
        """Set a plain text body."""
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        """
        Set a JSON body.

        Compact separators, key order kept, None becomes null.
        ensure_ascii=False so header values are echoed as sent.
        """
        self._body = json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = APPLICATION_JSON
        return self

    def close_connection(self) -> "ResponseBuilder":
        """Set Connection: close."""
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Example: Mon, 19 Oct 2026 10:00:00 GMT

    HTTP dates are always GMT. Day and month names are spelled out
    here rather than taken from strftime, which follows the locale.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def ok(body: Union[str, dict, list] = "") -> HTTPResponse:
    """
    Create a 200 OK response.

    dict/list → JSON, str → text/plain.
    """
    builder = ResponseBuilder().status(HTTPStatus.OK)
    if isinstance(body, (dict, list)):
        builder.json(body)
    else:
        builder.text(body)
    return builder.build()


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """JSON error body: {"error": message}."""
    return ResponseBuilder().status(status).json({"error": message}).build()


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    return error_response(HTTPStatus.BAD_REQUEST, message)


def not_found(message: str = "Not Found") -> HTTPResponse:
    return error_response(HTTPStatus.NOT_FOUND, message)


def method_not_allowed(allowed: Optional[Iterable[str]] = None) -> HTTPResponse:
    """
    Create a 405 Method Not Allowed response.

    The Allow header lists the methods the path does accept.
    """
    response = error_response(HTTPStatus.METHOD_NOT_ALLOWED, "Method Not Allowed")
    if allowed:
        response.headers["Allow"] = ", ".join(allowed)
    return response


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)
