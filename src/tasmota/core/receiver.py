"""
=============================================================================
RESPONSE RECEIVE LOOP
=============================================================================

Reads a complete HTTP response from a socket, one poll() at a time.

TCP delivers bytes in arbitrary pieces. A device may send the header in
one segment and each chunk of the body in its own, or everything at once.
The loop below keeps reading into a bounded buffer until the framing says
the response is complete.

    ┌──────────────────────────────────────────────────────────────────────┐
    │                        RECEIVE STATE MACHINE                         │
    ├──────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   AWAITING_DATA ──recv──► HEADER_INCOMPLETE                          │
    │                                 │                                    │
    │                     \r\n\r\n found, framing decided                  │
    │                     ┌───────────┴───────────┐                        │
    │                     ▼                       ▼                        │
    │          FIXED_LENGTH_PENDING        CHUNKED_PENDING                 │
    │          total >= offset + len       terminal chunk walked           │
    │                     └───────────┬───────────┘                        │
    │                                 ▼                                    │
    │                             COMPLETE                                 │
    │                                                                      │
    │   Any state ──timeout / poll error / hang-up / deadline──► FAILED    │
    │                                                                      │
    └──────────────────────────────────────────────────────────────────────┘

=============================================================================
FAILURE MODES
=============================================================================

    Nothing received, then timeout/error/hang-up ──► ReceiveError
    Some bytes received, then timeout/error/hang-up ──► partial result,
                                                        complete=False
    Buffer full before completion ──► MalformedResponseError
    Garbage header / chunk ──► MalformedResponseError

The split between the state machine (ResponseAssembler) and the socket
loop (ResponseReceiver) lets the framing logic be fed byte by byte in
tests without any socket at all.

=============================================================================
"""

import logging
import select
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..errors import MalformedResponseError, ReceiveError
from ..http.chunked import is_chunked_complete
from ..http.framing import ResponseHead, inspect_head


logger = logging.getLogger(__name__)


class ReceiveState(Enum):
    AWAITING_DATA = "awaiting_data"
    HEADER_INCOMPLETE = "header_incomplete"
    FIXED_LENGTH_PENDING = "fixed_length_pending"
    CHUNKED_PENDING = "chunked_pending"
    COMPLETE = "complete"
    FAILED = "failed"


class ReceiveBuffer:
    """
    Append-only byte buffer with a fixed capacity.

    It never grows past its capacity: a response that doesn't fit is an
    error, not a reason to allocate more.
    """

    def __init__(self, capacity: int = 4096):
        self.capacity = capacity
        self.data = bytearray()
        self.head: Optional[ResponseHead] = None

    @property
    def total_received(self) -> int:
        return len(self.data)

    @property
    def remaining(self) -> int:
        return self.capacity - len(self.data)

    @property
    def header_complete(self) -> bool:
        return self.head is not None

    @property
    def content_offset(self) -> Optional[int]:
        return self.head.content_offset if self.head else None

    def append(self, chunk: bytes) -> None:
        if len(chunk) > self.remaining:
            raise MalformedResponseError(
                f"Response exceeds receive buffer capacity of {self.capacity} bytes",
                bytes_received=len(self.data) + len(chunk),
            )
        self.data += chunk


@dataclass
class ReceiveResult:
    """Bytes handed over by the receive loop."""
    data: bytes
    complete: bool
    state: ReceiveState
    head: Optional[ResponseHead] = None

    @property
    def total_received(self) -> int:
        return len(self.data)


class ResponseAssembler:
    """
    Framing state machine, fed with whatever recv() returned.

    Usage:
        assembler = ResponseAssembler(capacity=4096)
        while not assembler.complete:
            assembler.feed(sock.recv(assembler.buffer.remaining))
        result = assembler.result()
    """

    def __init__(self, capacity: int = 4096):
        self.buffer = ReceiveBuffer(capacity)
        self.state = ReceiveState.AWAITING_DATA

    @property
    def complete(self) -> bool:
        return self.state == ReceiveState.COMPLETE

    def feed(self, chunk: bytes) -> bool:
        """
        Append received bytes and re-evaluate the framing.

        Returns:
            True once the response is complete.

        Raises:
            MalformedResponseError: Overflow, or the bytes can't be a
                valid response. The assembler is FAILED afterwards.
        """
        if self.state in (ReceiveState.COMPLETE, ReceiveState.FAILED):
            raise RuntimeError(f"Cannot feed an assembler in state {self.state.value}")

        try:
            self.buffer.append(chunk)
            self._advance()
        except MalformedResponseError:
            self.state = ReceiveState.FAILED
            raise

        return self.complete

    def _advance(self) -> None:
        buffer = self.buffer

        # ─────────────────────────────────────────────────────────────────
        # HEADER: look for \r\n\r\n, decide framing once
        # ─────────────────────────────────────────────────────────────────
        if buffer.head is None:
            buffer.head = inspect_head(buffer.data)
            if buffer.head is None:
                self.state = ReceiveState.HEADER_INCOMPLETE
                self._check_capacity("Header terminator not found")
                return

            if buffer.head.is_chunked:
                self.state = ReceiveState.CHUNKED_PENDING
            else:
                self.state = ReceiveState.FIXED_LENGTH_PENDING

        # ─────────────────────────────────────────────────────────────────
        # BODY: complete yet?
        # ─────────────────────────────────────────────────────────────────
        if self.state == ReceiveState.FIXED_LENGTH_PENDING:
            done = buffer.total_received >= buffer.head.expected_size
        else:
            # Re-walk every chunk from the start; cheap for device-sized bodies
            done = is_chunked_complete(buffer.data, buffer.head.content_offset)

        if done:
            self.state = ReceiveState.COMPLETE
        else:
            self._check_capacity("Response body incomplete")

    def _check_capacity(self, what: str) -> None:
        if self.buffer.remaining <= 0:
            raise MalformedResponseError(
                f"{what} within {self.buffer.capacity} bytes",
                bytes_received=self.buffer.total_received,
            )

    def result(self, complete: Optional[bool] = None) -> ReceiveResult:
        return ReceiveResult(
            data=bytes(self.buffer.data),
            complete=self.complete if complete is None else complete,
            state=self.state,
            head=self.buffer.head,
        )


class ResponseReceiver:
    """
    Drives the poll()/recv() loop for one response.

    =========================================================================
    LOOP BODY
    =========================================================================

        1. poll() for readability, at most poll_timeout per iteration
           (and never past the overall deadline)
        2. readable → one recv() bounded by the remaining buffer capacity
        3. feed the bytes to the ResponseAssembler
        4. stop on COMPLETE; stop on error, invalid handle or hang-up

    =========================================================================
    """

    def __init__(
        self,
        poll_timeout: float = 5.0,
        deadline: Optional[float] = 30.0,
        buffer_size: int = 4096,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            poll_timeout: Seconds one poll() may wait.
            deadline: Seconds the whole loop may take, None for no limit.
            buffer_size: Receive buffer capacity in bytes.
            logger: Logger for this component; defaults to the module logger.
            clock: Monotonic time source (replaceable in tests).
        """
        self.poll_timeout = poll_timeout
        self.deadline = deadline
        self.buffer_size = buffer_size
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock

    def receive(self, sock, conn_id: str = "-") -> ReceiveResult:
        """
        Receive one complete response from a connected socket.

        Returns:
            ReceiveResult; complete=False if the transport ended early
            after some bytes had arrived.

        Raises:
            ReceiveError: The transport ended before any byte arrived.
            MalformedResponseError: Overflow or invalid framing.
        """
        assembler = ResponseAssembler(self.buffer_size)
        poller = select.poll()
        poller.register(sock, select.POLLIN | select.POLLPRI)
        started = self.clock()

        while not assembler.complete:
            timeout_ms = self._poll_timeout_ms(started)
            if timeout_ms is None:
                return self._fail(assembler, "receive deadline exceeded", conn_id)

            try:
                events = poller.poll(timeout_ms)
            except OSError as e:
                return self._fail(assembler, f"poll failure: {e}", conn_id)

            if not events:
                return self._fail(assembler, "poll timeout", conn_id)

            revents = events[0][1]

            if revents & select.POLLNVAL:
                return self._fail(assembler, "invalid socket handle", conn_id)

            if revents & (select.POLLIN | select.POLLPRI):
                try:
                    chunk = sock.recv(assembler.buffer.remaining)
                except OSError as e:
                    return self._fail(assembler, f"recv failure: {e}", conn_id)

                if not chunk:
                    return self._fail(assembler, "connection closed by peer", conn_id)

                assembler.feed(chunk)
                self.logger.debug(
                    f"[{conn_id}] recv {len(chunk)} bytes, "
                    f"total {assembler.buffer.total_received}, state {assembler.state.value}"
                )
                # Readable data comes first; a pending hang-up shows up as an
                # empty recv() on the next round
                continue

            if revents & select.POLLERR:
                return self._fail(assembler, "socket error", conn_id)

            if revents & select.POLLHUP:
                return self._fail(assembler, "hang-up", conn_id)

        return assembler.result()

    def _poll_timeout_ms(self, started: float) -> Optional[int]:
        """Milliseconds for the next poll(), None once the deadline has passed."""
        timeout_ms = max(1, int(self.poll_timeout * 1000))
        if self.deadline is not None:
            left = self.deadline - (self.clock() - started)
            if left <= 0:
                return None
            timeout_ms = min(timeout_ms, max(1, int(left * 1000)))
        return timeout_ms

    def _fail(self, assembler: ResponseAssembler, reason: str, conn_id: str) -> ReceiveResult:
        received = assembler.buffer.total_received
        assembler.state = ReceiveState.FAILED

        if received == 0:
            self.logger.warning(f"[{conn_id}] Receive failed: {reason}")
            raise ReceiveError(f"No response received: {reason}")

        self.logger.warning(f"[{conn_id}] Receive ended early ({reason}) after {received} bytes")
        return assembler.result(complete=False)
