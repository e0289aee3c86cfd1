"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Callable, Generator, Optional

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reqinfo import HTTPServer, ServerConfig, StartupError


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /all.json?pretty=1 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Accept-Language: en-US,en;q=0.9\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def config() -> ServerConfig:
    """Test server configuration: dual-stack wildcard, ephemeral port."""
    return ServerConfig(
        host="::",
        port=0,
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        keep_alive_timeout=1.0,
        log_level="WARNING",
    )


@pytest.fixture
def ipv6_loopback() -> str:
    """The IPv6 loopback address; skips the test if the host has none."""
    try:
        with socket.socket(socket.AF_INET6, socket.SOCK_STREAM) as s:
            s.bind(("::1", 0))
    except (OSError, AttributeError):
        pytest.skip("IPv6 loopback not available")
    return "::1"


def send_request(
    host: str,
    port: int,
    path: str,
    headers: Optional[dict] = None,
    method: str = "GET",
    raw_headers: bytes = b"",
) -> tuple:
    """
    Send one request over a raw socket and read the whole response.

    Returns:
        (status_code, headers dict with lowercase names, body bytes)
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET

    lines = [f"{method} {path} HTTP/1.1", "Host: test", "Connection: close"]
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    raw = ("\r\n".join(lines) + "\r\n").encode("latin-1") + raw_headers + b"\r\n"

    with socket.socket(family, socket.SOCK_STREAM) as s:
        s.settimeout(5.0)
        s.connect((host, port))
        s.sendall(raw)

        data = b""
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            data += chunk

    head, _, body = data.partition(b"\r\n\r\n")
    head_lines = head.decode("latin-1").split("\r\n")
    status = int(head_lines[0].split(" ")[1])

    response_headers = {}
    for line in head_lines[1:]:
        name, _, value = line.partition(":")
        response_headers[name.strip().lower()] = value.strip()

    return status, response_headers, body


@pytest.fixture
def http_get() -> Callable[..., tuple]:
    """Raw-socket HTTP client: http_get(host, port, path, headers=None, ...)."""
    return send_request


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Bind on the calling thread, then serve in a background thread."""
        self.server.bind()

        self._thread = threading.Thread(target=self.server.serve, daemon=True)
        self._thread.start()

        for _ in range(50):  # 5 seconds max
            if self.server.is_running:
                return
            time.sleep(0.1)

        raise RuntimeError("Server failed to start")

    def get(self, path: str, headers: Optional[dict] = None, host: str = "127.0.0.1", **kwargs) -> tuple:
        return send_request(host, self.port, path, headers, **kwargs)

    def stop(self):
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def test_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """A real server on [::]:<ephemeral> with every endpoint registered."""
    test_srv = TestServer(HTTPServer(config))

    try:
        test_srv.start()
    except StartupError as e:
        pytest.skip(f"Dual-stack socket not available: {e}")

    yield test_srv

    test_srv.stop()


@pytest.fixture
def start_server() -> Generator[Callable[[HTTPServer], TestServer], None, None]:
    """Start a custom HTTPServer in the background; stopped at teardown."""
    started = []

    def start(server: HTTPServer) -> TestServer:
        test_srv = TestServer(server)
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield start

    for test_srv in started:
        test_srv.stop()
