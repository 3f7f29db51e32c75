"""
=============================================================================
CONNECTION ESTABLISHMENT
=============================================================================

Opens the one TCP connection an exchange with a device needs.

    ┌──────────────────────────────────────────────────────────────────────┐
    │                      Connector.connect() Flow                        │
    ├──────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   getaddrinfo("tasmota-994e5a-3674", 80)                             │
    │        │                                                             │
    │        ├── fe80::1%eth0   connect() ──► refused, close, next         │
    │        ├── 192.168.1.50   connect() ──► OK ──► Connection            │
    │        └── ...            (not tried)                                │
    │                                                                      │
    │   No candidates, or every connect() failed ──► ConnectError          │
    │                                                                      │
    └──────────────────────────────────────────────────────────────────────┘

Every socket that didn't make it is closed before the next candidate is
tried, so a failed connect leaves nothing open behind.

=============================================================================
CONNECTION LIFETIME
=============================================================================

A Connection lives for exactly one request/response exchange. There is no
pooling or reuse: devices close idle sockets quickly and a fresh TCP
handshake on a LAN costs next to nothing. Use it as a context manager so
the socket is closed on every path out, exceptions included:

    with connector.connect(host, port) as conn:
        conn.send_request(data)
        result = receiver.receive(conn.socket)

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..errors import ConnectError, SendError


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Where an exchange currently is."""
    CONNECTED = "connected"
    SENDING = "sending"
    RECEIVING = "receiving"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    An open TCP connection to a device.

    Attributes:
        socket: The connected stream socket (owned).
        host: Host name the connection was opened for.
        port: Remote port.
        id: Short identifier used as log prefix.
        state: Current connection state.
        created_at: Timestamp of the successful connect.
    """
    socket: socket.socket
    host: str
    port: int
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.CONNECTED
    created_at: float = field(default_factory=time.time)
    logger: logging.Logger = field(default=logger, repr=False)

    @property
    def age(self) -> float:
        """Seconds since the connection was established."""
        return time.time() - self.created_at

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    def send_request(self, data: bytes) -> None:
        """
        Send the complete request.

        sendall() either writes every byte or raises, so a short write
        can't go unnoticed.

        Raises:
            SendError: Write failed or the connection is already closed.
        """
        if self.is_closed:
            raise SendError(f"[{self.id}] Connection already closed")

        self.state = ConnectionState.SENDING
        try:
            self.socket.sendall(data)
        except OSError as e:
            self.logger.warning(f"[{self.id}] Send to {self.host}:{self.port} failed: {e}")
            raise SendError(f"Failed to send request to {self.host}:{self.port}: {e}") from e

        self.state = ConnectionState.RECEIVING
        self.logger.debug(f"[{self.id}] Sent {len(data)} bytes")

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self.is_closed:
            return

        try:
            self.socket.close()
        except OSError:
            pass  # Nothing left to release

        self.state = ConnectionState.CLOSED
        self.logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions


class Connector:
    """Resolves a host and connects to the first address that accepts."""

    def __init__(self, timeout: Optional[float] = None, logger: Optional[logging.Logger] = None):
        """
        Args:
            timeout: Per-attempt connect timeout in seconds, None to block.
            logger: Logger for this component; defaults to the module logger.
        """
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self, host: str, port: int) -> list:
        """
        All candidate addresses for host:port, in resolver order.

        Raises:
            ConnectError: Resolution failed or returned nothing.
        """
        try:
            candidates = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as e:
            raise ConnectError(f"Cannot resolve {host}: {e}", host=host, port=port) from e

        if not candidates:
            raise ConnectError(f"No addresses found for {host}", host=host, port=port)
        return candidates

    def connect(self, host: str, port: int) -> Connection:
        """
        Open a connection to host:port.

        Raises:
            ConnectError: No candidate address accepted the connection.
        """
        last_error: Optional[OSError] = None

        for family, sock_type, proto, _, address in self.resolve(host, port):
            sock = None
            try:
                sock = socket.socket(family, sock_type, proto)
                sock.settimeout(self.timeout)
                sock.connect(address)
            except OSError as e:
                last_error = e
                self.logger.debug(f"Connect to {address} failed: {e}")
                if sock is not None:
                    sock.close()
                continue

            conn = Connection(socket=sock, host=host, port=port, logger=self.logger)
            self.logger.debug(f"[{conn.id}] Connected to {host}:{port} via {address[0]}")
            return conn

        raise ConnectError(
            f"Connecting to {host}:{port} failed: {last_error}",
            host=host,
            port=port,
        )


def open_connection(
    host: str,
    port: int,
    timeout: Optional[float] = None,
    logger: Optional[logging.Logger] = None,
) -> Connection:
    """Convenience function: connect with a one-off Connector."""
    return Connector(timeout=timeout, logger=logger).connect(host, port)
