"""
Unit tests for connection establishment.
"""

import socket

import pytest

from tasmota.core.connection import Connection, ConnectionState, Connector, open_connection
from tasmota.errors import ConnectError, SendError


@pytest.fixture
def listener():
    """A listening socket on a free local port."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(1)
    yield sock
    sock.close()


@pytest.fixture
def closed_port() -> int:
    """A local port nobody listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class TestConnector:
    """Tests for Connector class."""

    def test_connect(self, listener):
        """Test a successful connect."""
        port = listener.getsockname()[1]

        with Connector(timeout=2.0).connect("127.0.0.1", port) as conn:
            assert conn.state == ConnectionState.CONNECTED
            assert conn.host == "127.0.0.1"
            assert conn.port == port
            assert len(conn.id) == 8

        assert conn.is_closed

    def test_connection_refused(self, closed_port):
        """Test that a refused connect raises ConnectError."""
        with pytest.raises(ConnectError) as exc_info:
            open_connection("127.0.0.1", closed_port, timeout=2.0)

        assert exc_info.value.port == closed_port

    def test_resolution_failure(self, monkeypatch):
        """Test that resolver errors become ConnectError."""
        def fail(*args, **kwargs):
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        monkeypatch.setattr(socket, "getaddrinfo", fail)

        with pytest.raises(ConnectError, match="resolve"):
            Connector().connect("tasmota-994e5a-3674", 80)

    def test_no_candidates(self, monkeypatch):
        """Test that an empty resolver answer is a ConnectError."""
        monkeypatch.setattr(socket, "getaddrinfo", lambda *args, **kwargs: [])

        with pytest.raises(ConnectError, match="No addresses"):
            Connector().connect("plug", 80)

    def test_tries_next_candidate(self, listener, closed_port, monkeypatch):
        """Test that a failed candidate is skipped."""
        port = listener.getsockname()[1]
        candidates = [
            (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("127.0.0.1", closed_port)),
            (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("127.0.0.1", port)),
        ]
        monkeypatch.setattr(socket, "getaddrinfo", lambda *args, **kwargs: candidates)

        with Connector(timeout=2.0).connect("plug", port) as conn:
            assert conn.socket.getpeername() == ("127.0.0.1", port)


class TestConnection:
    """Tests for Connection class."""

    def test_send_request(self):
        """Test that the whole request is written."""
        client, device = socket.socketpair()
        with device, Connection(socket=client, host="plug", port=80) as conn:
            conn.send_request(b"GET / HTTP/1.1\r\n\r\n")

            assert conn.state == ConnectionState.RECEIVING
            assert device.recv(1024) == b"GET / HTTP/1.1\r\n\r\n"

    def test_send_after_close(self):
        """Test that a closed connection refuses to send."""
        client, device = socket.socketpair()
        device.close()
        conn = Connection(socket=client, host="plug", port=80)
        conn.close()

        with pytest.raises(SendError, match="closed"):
            conn.send_request(b"x")

    def test_send_failure(self):
        """Test that a socket error while sending is a SendError."""
        client, device = socket.socketpair()
        client.close()
        conn = Connection(socket=client, host="plug", port=80)

        with pytest.raises(SendError):
            conn.send_request(b"GET / HTTP/1.1\r\n\r\n")
        device.close()

    def test_close_idempotent(self):
        """Test that close() can be called twice."""
        client, device = socket.socketpair()
        conn = Connection(socket=client, host="plug", port=80)

        conn.close()
        conn.close()

        assert conn.is_closed
        assert client.fileno() == -1
        device.close()

    def test_context_manager_closes_on_error(self):
        """Test that leaving the with block by exception closes the socket."""
        client, device = socket.socketpair()

        with pytest.raises(RuntimeError):
            with Connection(socket=client, host="plug", port=80):
                raise RuntimeError("boom")

        assert client.fileno() == -1
        device.close()
