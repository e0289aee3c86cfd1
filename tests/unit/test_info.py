"""
Unit tests for request info extraction.
"""

import json
from dataclasses import FrozenInstanceError
from typing import Dict, Optional

import pytest

from reqinfo.info import (
    HEADER_FIELDS,
    REMOTE_HOST_UNAVAILABLE,
    RequestInfo,
    extract_request_info,
)
from reqinfo.http.headers import Headers


class FakeHeaders:
    """In-memory HeaderSource over a dict, case-insensitive."""

    def __init__(self, values: Optional[Dict[str, str]] = None):
        self._values = {name.lower(): value for name, value in (values or {}).items()}

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name.lower())


ALL_HEADERS = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64)",
    "Accept-Encoding": "gzip, deflate, br",
    "Accept": "text/html,application/xhtml+xml;q=0.9",
    "Accept-Language": "de-CH, fr;q=0.8",
    "Referer": "https://example.org/Some/Path?Q=1",
    "Connection": "Keep-Alive",
    "Keep-Alive": "timeout=5, max=1000",
    "Accept-Charset": "utf-8, iso-8859-1;q=0.5",
    "Via": "1.1 proxy.example.net",
    "Forwarded": "for=192.0.2.60;proto=http;by=203.0.113.43",
}


class TestExtractRequestInfo:
    """Tests for extract_request_info()."""

    def test_address_and_method(self):
        info = extract_request_info(("2001:db8::1", 443), "GET", FakeHeaders())

        assert info.ip_addr == "2001:db8::1"
        assert info.port == 443
        assert info.method == "GET"
        assert info.remote_host == REMOTE_HOST_UNAVAILABLE == "unavailable"

    def test_ipv4_mapped_address_reported_verbatim(self):
        info = extract_request_info(("::ffff:192.0.2.10", 50000), "GET", FakeHeaders())

        assert info.ip_addr == "::ffff:192.0.2.10"

    def test_ipv6_socket_address_tuple(self):
        """The 4-tuple of an AF_INET6 peer: flowinfo and scope_id are ignored."""
        info = extract_request_info(("fe80::1", 8080, 0, 2), "HEAD", FakeHeaders())

        assert info.ip_addr == "fe80::1"
        assert info.port == 8080
        assert info.method == "HEAD"

    def test_no_headers_all_optional_fields_none(self):
        info = extract_request_info(("192.0.2.1", 1), "GET", FakeHeaders())

        for field_name in HEADER_FIELDS:
            assert getattr(info, field_name) is None

    def test_every_header_mapped_verbatim(self):
        info = extract_request_info(("192.0.2.1", 1), "GET", FakeHeaders(ALL_HEADERS))

        assert info.user_agent == ALL_HEADERS["User-Agent"]
        assert info.encoding == ALL_HEADERS["Accept-Encoding"]
        assert info.mime == ALL_HEADERS["Accept"]
        assert info.language == ALL_HEADERS["Accept-Language"]
        assert info.referer == ALL_HEADERS["Referer"]
        assert info.connection == ALL_HEADERS["Connection"]
        assert info.keep_alive == ALL_HEADERS["Keep-Alive"]
        assert info.charset == ALL_HEADERS["Accept-Charset"]
        assert info.via == ALL_HEADERS["Via"]
        assert info.forwarded == ALL_HEADERS["Forwarded"]

    def test_empty_header_stays_empty_not_none(self):
        info = extract_request_info(("192.0.2.1", 1), "GET", FakeHeaders({"Referer": ""}))

        assert info.referer == ""
        assert info.via is None

    def test_with_server_headers(self):
        """The HTTP layer's Headers works as a HeaderSource."""
        headers = Headers([
            ("ACCEPT", b"text/html"),
            ("Accept", b"text/plain"),
            ("Via", b"1.1 caf\xc3\xa9"),
        ])

        info = extract_request_info(("192.0.2.1", 1), "GET", headers)

        assert info.mime == "text/html"   # First value wins
        assert info.via is None           # Not valid header text

    def test_deterministic(self):
        headers = FakeHeaders(ALL_HEADERS)

        first = extract_request_info(("192.0.2.1", 1), "GET", headers)
        second = extract_request_info(("192.0.2.1", 1), "GET", headers)

        assert first == second
        assert first is not second

    def test_immutable(self):
        info = extract_request_info(("192.0.2.1", 1), "GET", FakeHeaders())

        with pytest.raises(FrozenInstanceError):
            info.ip_addr = "203.0.113.1"


class TestRequestInfoRendering:
    """Tests for RequestInfo.to_dict() and to_text()."""

    def test_to_dict_key_order(self):
        info = extract_request_info(("192.0.2.1", 1), "GET", FakeHeaders())

        assert list(info.to_dict()) == [
            "ip_addr", "remote_host", "user_agent", "port", "method",
            "encoding", "mime", "language", "referer", "connection",
            "keep_alive", "charset", "via", "forwarded",
        ]

    def test_to_dict_absent_is_none(self):
        info = extract_request_info(
            ("192.0.2.1", 1), "GET",
            FakeHeaders({"Accept-Language": "en-US", "Accept": "text/html"}),
        )

        data = info.to_dict()
        assert data["language"] == "en-US"
        assert data["mime"] == "text/html"
        assert data["referer"] is None
        assert '"referer":null' in json.dumps(data, separators=(",", ":"))

    def test_to_text_scenario(self):
        info = extract_request_info(
            ("192.0.2.1", 40000), "GET", FakeHeaders({"User-Agent": "TestBot/1.0"})
        )

        assert info.to_text() == (
            "ip_addr: 192.0.2.1\n"
            "remote_host: unavailable\n"
            "user_agent: TestBot/1.0\n"
            "port: 40000\n"
            "language: \n"
            "referer: \n"
            "connection: \n"
            "keep_alive: \n"
            "method: GET\n"
            "encoding: \n"
            "mime: \n"
            "charset: \n"
            "via: \n"
            "forwarded: \n"
        )

    def test_to_text_has_one_line_per_field(self):
        info = extract_request_info(("192.0.2.1", 1), "GET", FakeHeaders(ALL_HEADERS))
        lines = info.to_text().splitlines()

        assert len(lines) == 14
        assert [line.split(":", 1)[0] for line in lines] == list(RequestInfo.TEXT_FIELDS)
        assert "referer: https://example.org/Some/Path?Q=1" in lines
