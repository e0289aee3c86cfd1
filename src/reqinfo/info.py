"""
=============================================================================
REQUEST INFO EXTRACTION
=============================================================================

This module turns "who is asking" into data. It is the single source of
truth for every endpoint: handlers never read headers themselves, they
build a RequestInfo and render part of it.

=============================================================================
DATA FLOW
=============================================================================

    ┌──────────────────┐   ┌────────┐   ┌────────────────────────┐
    │ remote address   │   │ method │   │ HeaderSource           │
    │ ("::1", 51234)   │   │ "GET"  │   │ get(name) → str | None │
    └────────┬─────────┘   └───┬────┘   └───────────┬────────────┘
             │                 │                    │
             └─────────────────┼────────────────────┘
                               ▼
                  extract_request_info(...)
                               │
                               ▼
                 ┌───────────────────────────┐
                 │ RequestInfo (frozen)      │
                 │   ip_addr      "::1"      │
                 │   port         51234      │
                 │   user_agent   "curl/8"   │
                 │   referer      None       │
                 │   ...                     │
                 └─────────────┬─────────────┘
                               │
           ┌───────────────────┼────────────────────┐
           ▼                   ▼                    ▼
      /ua, /lang ...        /all                /all.json
      None → "unknown"      None → ""           None → null

=============================================================================
WHY "None" AND NOT ""?
=============================================================================

A missing header and an empty header are different facts. The record
keeps them apart; each renderer then decides how to show "missing":

    single-field endpoints   "unknown"
    aggregate text           ""          (line reads "referer: ")
    aggregate JSON           null

=============================================================================
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Sequence


# Reverse DNS is never performed.
REMOTE_HOST_UNAVAILABLE = "unavailable"


class HeaderSource(Protocol):
    """
    Anything that can look up a request header by name.

    Lookups are case-insensitive and return the first value of a
    repeated header, or None when the header is missing or is not
    valid text. reqinfo.http.headers.Headers is the server's
    implementation; tests can use a plain class over a dict.
    """

    def get(self, name: str) -> Optional[str]:
        ...


@dataclass(frozen=True)
class RequestInfo:
    """
    Everything the server reports about one request.

    Built once per request by extract_request_info() and discarded when
    the response is sent. Field order is the JSON key order of /all.json.
    """

    ip_addr: str
    remote_host: str
    user_agent: Optional[str]
    port: int
    method: str
    encoding: Optional[str]
    mime: Optional[str]
    language: Optional[str]
    referer: Optional[str]
    connection: Optional[str]
    keep_alive: Optional[str]
    charset: Optional[str]
    via: Optional[str]
    forwarded: Optional[str]

    # Line order of the /all plain text dump
    TEXT_FIELDS = (
        "ip_addr",
        "remote_host",
        "user_agent",
        "port",
        "language",
        "referer",
        "connection",
        "keep_alive",
        "method",
        "encoding",
        "mime",
        "charset",
        "via",
        "forwarded",
    )

    def to_dict(self) -> Dict[str, Any]:
        """Field name → value, absent headers as None."""
        return {
            "ip_addr": self.ip_addr,
            "remote_host": self.remote_host,
            "user_agent": self.user_agent,
            "port": self.port,
            "method": self.method,
            "encoding": self.encoding,
            "mime": self.mime,
            "language": self.language,
            "referer": self.referer,
            "connection": self.connection,
            "keep_alive": self.keep_alive,
            "charset": self.charset,
            "via": self.via,
            "forwarded": self.forwarded,
        }

    def to_text(self) -> str:
        """
        Render the aggregate plain text form.

        One "name: value" line per field, absent headers as an empty
        value:

            ip_addr: ::1
            remote_host: unavailable
            user_agent: TestBot/1.0
            port: 51234
            language:
            ...
        """
        lines = []
        for name in self.TEXT_FIELDS:
            value = getattr(self, name)
            lines.append(f"{name}: {'' if value is None else value}\n")
        return "".join(lines)


# Header name for each optional field
HEADER_FIELDS = {
    "user_agent": "user-agent",
    "encoding": "accept-encoding",
    "mime": "accept",
    "language": "accept-language",
    "referer": "referer",
    "connection": "connection",
    "keep_alive": "keep-alive",
    "charset": "accept-charset",
    "via": "via",
    "forwarded": "forwarded",
}


def extract_request_info(
    remote_address: Sequence[Any],
    method: str,
    headers: HeaderSource,
) -> RequestInfo:
    """
    Build the RequestInfo for one request.

    Pure and reentrant: no I/O, no shared state, safe to call from any
    number of worker threads at once. Never raises because of header
    content; a missing or undecodable header simply becomes None.

    Args:
        remote_address: The peer address from the transport, (host, port)
                        or the 4-tuple of an AF_INET6 socket. Always an IP
                        literal, never a DNS name.
        method: The request method from the request line.
        headers: Case-insensitive, first-match header lookup.

    Returns:
        A fully populated, immutable RequestInfo.
    """
    host, port = remote_address[0], remote_address[1]

    optional = {field: headers.get(name) for field, name in HEADER_FIELDS.items()}

    return RequestInfo(
        ip_addr=str(host),
        remote_host=REMOTE_HOST_UNAVAILABLE,
        port=int(port),
        method=method,
        **optional,
    )
