"""
Unit tests for the dual-stack socket server.
"""

import errno
import logging
import socket

import pytest

from reqinfo.config import ServerConfig
from reqinfo.core import socket_server
from reqinfo.core.socket_server import SocketServer, create_dual_stack_socket, peer_address
from reqinfo.errors import StartupError


def dual_stack_or_skip() -> socket.socket:
    try:
        return create_dual_stack_socket()
    except OSError as e:
        pytest.skip(f"IPv6 not available: {e}")


@pytest.fixture
def occupied_port():
    """A port held by another live dual-stack listener."""
    holder = dual_stack_or_skip()
    holder.bind(("::", 0))
    holder.listen(1)

    yield holder.getsockname()[1]

    holder.close()


class TestCreateDualStackSocket:

    def test_options(self):
        sock = dual_stack_or_skip()

        try:
            assert sock.family == socket.AF_INET6
            assert sock.type == socket.SOCK_STREAM
            assert sock.getsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY) == 0
            assert sock.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR) != 0
        finally:
            sock.close()


class TestSocketServer:

    def test_bind_reports_real_port(self):
        dual_stack_or_skip().close()
        server = SocketServer(ServerConfig(port=0))

        server.bind()
        try:
            host, port = server.address
            assert host == "::"
            assert port > 0
            assert server.is_bound
            assert not server.is_running
        finally:
            server.close()

        assert not server.is_bound

    def test_bind_twice_is_noop(self):
        dual_stack_or_skip().close()
        server = SocketServer(ServerConfig(port=0))

        server.bind()
        try:
            first = server.address
            server.bind()
            assert server.address == first
        finally:
            server.close()

    def test_accepts_ipv4_client(self):
        dual_stack_or_skip().close()
        server = SocketServer(ServerConfig(port=0))
        server.bind()

        try:
            with socket.create_connection(("127.0.0.1", server.address[1]), timeout=5):
                client, address = server._socket.accept()
                client.close()
            assert address[0] == "::ffff:127.0.0.1"
        finally:
            server.close()

    def test_address_in_use(self, occupied_port):
        server = SocketServer(ServerConfig(port=occupied_port))

        with pytest.raises(StartupError) as exc_info:
            server.bind()

        error = exc_info.value
        assert error.step == "bind"
        assert error.address == f"[::]:{occupied_port}"
        assert "failed to bind dual-stack socket" in str(error)
        assert isinstance(error.__cause__, OSError)
        assert not server.is_bound

    def test_shutdown_before_serve(self):
        server = SocketServer(ServerConfig(port=0))

        server.shutdown()

        assert server.wait_for_shutdown(timeout=0.1)
        assert not server.is_running


class TestStartupSteps:
    """Each setup step fails with its own StartupError and log lines."""

    LOGGER = "reqinfo.core.socket_server"

    def test_create_failure(self, monkeypatch):
        def no_ipv6():
            raise OSError(errno.EAFNOSUPPORT, "Address family not supported by protocol")

        monkeypatch.setattr(socket_server, "create_dual_stack_socket", no_ipv6)
        server = SocketServer(ServerConfig(port=0))

        with pytest.raises(StartupError) as exc_info:
            server.bind()

        assert exc_info.value.step == "create"
        assert exc_info.value.errno == errno.EAFNOSUPPORT
        assert str(exc_info.value).startswith("failed to create dual-stack socket on [::]:0: ")
        assert not server.is_bound

    def test_listen_failure_closes_socket(self, monkeypatch):
        created = []

        def tracking_create():
            sock = dual_stack_or_skip()
            created.append(sock)
            return sock

        def refuse(self, backlog):
            raise OSError(errno.EOPNOTSUPP, "Operation not supported")

        monkeypatch.setattr(socket_server, "create_dual_stack_socket", tracking_create)
        monkeypatch.setattr(socket.socket, "listen", refuse)
        server = SocketServer(ServerConfig(port=0))

        with pytest.raises(StartupError) as exc_info:
            server.bind()

        assert exc_info.value.step == "listen"
        assert len(created) == 1
        assert created[0].fileno() == -1
        assert not server.is_bound

    def test_bind_failure_closes_socket(self, monkeypatch, occupied_port):
        created = []

        def tracking_create():
            sock = create_dual_stack_socket()
            created.append(sock)
            return sock

        monkeypatch.setattr(socket_server, "create_dual_stack_socket", tracking_create)

        with pytest.raises(StartupError):
            SocketServer(ServerConfig(port=occupied_port)).bind()

        assert created[0].fileno() == -1

    def test_log_lines_around_bind_and_listen(self, caplog):
        dual_stack_or_skip().close()
        server = SocketServer(ServerConfig(port=0))

        with caplog.at_level(logging.INFO, logger=self.LOGGER):
            server.bind()
        server.close()

        messages = [r.getMessage() for r in caplog.records if r.name == self.LOGGER]
        listening = [m for m in messages if m.startswith("Listening on dual-stack address: [::]:0")]
        running = [m for m in messages if m.startswith("Dual-stack server running on [::]:")]
        assert len(listening) == 1
        assert len(running) == 1
        assert messages.index(listening[0]) < messages.index(running[0])

    def test_bind_failure_logs_no_running_line(self, caplog, occupied_port):
        server = SocketServer(ServerConfig(port=occupied_port))

        with caplog.at_level(logging.INFO, logger=self.LOGGER):
            with pytest.raises(StartupError):
                server.bind()

        messages = [r.getMessage() for r in caplog.records if r.name == self.LOGGER]
        assert any(m.startswith("Listening on dual-stack address") for m in messages)
        assert not any(m.startswith("Dual-stack server running") for m in messages)


class TestPeerAddress:

    def test_ipv4_mapped(self):
        assert peer_address(("::ffff:192.0.2.10", 50000, 0, 0)) == ("::ffff:192.0.2.10", 50000)

    def test_link_local_zone_dropped(self):
        assert peer_address(("fe80::1%eth0", 8080, 0, 2)) == ("fe80::1", 8080)

    def test_two_tuple(self):
        assert peer_address(("192.0.2.1", 1)) == ("192.0.2.1", 1)
