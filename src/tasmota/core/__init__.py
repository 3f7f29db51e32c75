"""
=============================================================================
CORE TRANSPORT COMPONENTS
=============================================================================

The socket-level half of the client.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   Connector ──► Connection ──► send_request() ──► ResponseReceiver  │
    │   (resolve,     (one socket,                      (poll/recv loop,  │
    │    connect)      one exchange)                     bounded buffer)  │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Single-threaded and synchronous. Nothing here is shared between calls:
each exchange owns its socket and its buffer.

=============================================================================
"""

from .connection import Connection, ConnectionState, Connector, open_connection
from .receiver import (
    ReceiveBuffer,
    ReceiveResult,
    ReceiveState,
    ResponseAssembler,
    ResponseReceiver,
)

__all__ = [
    "Connection",
    "ConnectionState",
    "Connector",
    "open_connection",
    "ReceiveBuffer",
    "ReceiveResult",
    "ReceiveState",
    "ResponseAssembler",
    "ResponseReceiver",
]
