"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes read from a connection into an HTTPRequest.

=============================================================================
HTTP REQUEST FORMAT (RFC 7230)
=============================================================================

    GET /all.json HTTP/1.1\r\n                 ← Request line
    Host: example.net\r\n                      ← Headers
    User-Agent: curl/8.5.0\r\n
    Accept: */*\r\n
    \r\n                                       ← Empty line (separator)
    [body, Content-Length bytes]

Key points:
- Lines end with CRLF (\r\n)
- Header names are case-insensitive ("Accept" = "accept")
- Header VALUES are handed to Headers as raw bytes; decoding (and the
  decision that a value is not valid text) happens on lookup

=============================================================================
PARSING ALGORITHM
=============================================================================

    Raw Request Bytes
          │
          ▼
    1. Size check ─────────────── too large? → HTTPParseError(413)
          │
    2. Find \r\n\r\n ──────────── not found? → HTTPParseError(400)
          │
    3. Request line ───────────── bad syntax? → 400
          │                       unknown method? → 405
          │                       unknown version? → 505
    4. Header lines ───────────── "Name: Value" → Headers.add()
          │
    5. Body ───────────────────── Content-Length bytes
          │
          ▼
    HTTPRequest

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qs, unquote
import re

from .headers import Headers


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the HTTP status code to answer with:
        400 Bad Request                 - Malformed request syntax
        405 Method Not Allowed          - Unknown method
        413 Payload Too Large           - Request exceeds size limit
        505 HTTP Version Not Supported  - Unknown HTTP version
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    Represents a parsed HTTP request.

    Attributes:
        method:         HTTP method (GET, HEAD, ...)
        path:           Request path without query string
        version:        "HTTP/1.1" or "HTTP/1.0"
        headers:        Headers collection (case-insensitive, first match)
        query_params:   Parsed query string, dict of lists
        body:           Raw body bytes
        client_address: (ip, port) of the peer, from the transport
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    headers: Headers = field(default_factory=Headers)
    query_params: Dict[str, List[str]] = field(default_factory=dict)
    body: bytes = b""
    client_address: Tuple[str, int] = ("", 0)

    @property
    def client_ip(self) -> str:
        return self.client_address[0]

    @property
    def client_port(self) -> int:
        return self.client_address[1]

    @property
    def user_agent(self) -> Optional[str]:
        return self.headers.get("user-agent")

    @property
    def content_length(self) -> int:
        """Content-Length as int, 0 if missing or invalid."""
        try:
            return int(self.headers.get("content-length") or 0)
        except ValueError:
            return 0

    @property
    def is_keep_alive(self) -> bool:
        """
        Check if this connection should be kept alive.

            HTTP/1.1: keep alive unless "Connection: close"
            HTTP/1.0: close unless "Connection: keep-alive"
        """
        connection = (self.headers.get("connection") or "").lower()

        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self.headers.get(name, default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a query parameter."""
        values = self.query_params.get(name, [])
        return values[0] if values else default


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    Usage:
        parser = RequestParser(max_request_size=64 * 1024)
        request = parser.parse(raw_bytes, ("::1", 51234))
    """

    VALID_METHODS = {
        "GET",
        "HEAD",
        "POST",
        "PUT",
        "DELETE",
        "PATCH",
        "OPTIONS",
        "TRACE",
        "CONNECT",
    }

    VALID_VERSIONS = ("HTTP/1.0", "HTTP/1.1")

    # METHOD SP REQUEST-URI SP HTTP-VERSION
    REQUEST_LINE_PATTERN = re.compile(rb"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")

    # field-name ":" OWS field-value OWS
    HEADER_PATTERN = re.compile(rb"^([!#$%&'*+\-.^_`|~0-9A-Za-z]+):[ \t]*(.*?)[ \t]*$")

    def __init__(self, max_request_size: int = 64 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: Tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw HTTP request bytes from the connection.
            client_address: Peer (ip, port), copied onto the request.

        Returns:
            Parsed HTTPRequest.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        lines = data[:header_end].split(b"\r\n")
        body = data[header_end + 4:]

        method, path, query_params, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        # Body length MUST match Content-Length
        try:
            content_length = int(headers.get("content-length") or 0)
        except ValueError:
            raise HTTPParseError("Invalid Content-Length")

        if content_length < 0:
            raise HTTPParseError("Invalid Content-Length")

        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            query_params=query_params,
            body=body[:content_length],
            client_address=(client_address[0], client_address[1]),
        )

    def _parse_request_line(
        self,
        line: bytes,
    ) -> Tuple[str, str, Dict[str, List[str]], str]:
        """
        Parse "GET /path?query HTTP/1.1".

        Returns:
            Tuple of (method, path, query_params, version)

        Raises:
            HTTPParseError: If the line is malformed.
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, uri, version = (part.decode("ascii", errors="replace") for part in match.groups())

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in self.VALID_VERSIONS:
            raise HTTPParseError(f"Unsupported HTTP version: {version}", status_code=505)

        # Origin-form only: the path is taken as sent, so "//ip" stays "//ip"
        raw_path, _, query = uri.partition("?")
        path = unquote(raw_path)
        query_params = parse_qs(query, keep_blank_values=True)

        # Path traversal: "GET /../../etc/passwd HTTP/1.1"
        if ".." in path:
            raise HTTPParseError("Invalid path: contains ..", status_code=400)

        return method, path, query_params, version

    def _parse_headers(self, lines: List[bytes]) -> Headers:
        """
        Parse header lines into a Headers collection.

        Repeated headers are all kept in arrival order; Headers.get()
        returns the first one. Obsolete line folding (a line starting
        with SP or HTAB) is rejected, as RFC 7230 allows a server to do.
        Other malformed lines are skipped.
        """
        headers = Headers()

        for line in lines:
            if not line:
                continue

            if line[:1] in (b" ", b"\t"):
                raise HTTPParseError("Obsolete header line folding")

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            headers.add(name.decode("ascii"), value)

        return headers


def parse_request(
    data: bytes,
    client_address: Tuple[str, int] = ("", 0),
    max_size: int = 64 * 1024,
) -> HTTPRequest:
    """Parse an HTTP request in one call."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
