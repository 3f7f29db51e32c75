"""
=============================================================================
RESPONSE FRAMING
=============================================================================

Decides where an HTTP response ends.

An HTTP/1.1 response body is delimited in one of two ways:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  FIXED LENGTH                                                       │
    │                                                                     │
    │    HTTP/1.1 200 OK\r\n                                              │
    │    Content-Length: 14\r\n                                           │
    │    \r\n                       ← content_offset points after this    │
    │    {"Power":"ON"}             ← exactly 14 bytes                    │
    │                                                                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │  CHUNKED                                                            │
    │                                                                     │
    │    HTTP/1.1 200 OK\r\n                                              │
    │    Transfer-Encoding: chunked\r\n                                   │
    │    \r\n                                                             │
    │    e\r\n{"Power":"ON"}\r\n    ← hex length, data, CRLF             │
    │    0\r\n\r\n                  ← zero-length chunk ends the body     │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

The receive loop asks these helpers the same questions after every recv():
"is the header complete yet?", "what is the status?", "how is the body
framed?". They are pure functions over the bytes received so far.

PRECEDENCE: chunked detection is checked on its own and wins over
Content-Length. HTTP forbids sending both, but a device firmware is not
going to be validated by us first.

=============================================================================
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

from ..errors import MalformedResponseError


HEADER_TERMINATOR = b"\r\n\r\n"

# Compiled once. Header names are case-insensitive per RFC 7230; Tasmota
# sends them capitalized, other stacks don't always.
STATUS_PATTERN = re.compile(rb"HTTP/1\.1 [ \t]*(\d+)")
CONTENT_LENGTH_PATTERN = re.compile(rb"\r\nContent-Length:[ \t]*(\d+)", re.IGNORECASE)
CHUNKED_PATTERN = re.compile(rb"\r\nTransfer-Encoding:[ \t]*chunked", re.IGNORECASE)


@dataclass(frozen=True)
class FixedLength:
    """Body is exactly `length` bytes after the header terminator."""
    length: int


@dataclass(frozen=True)
class Chunked:
    """Body is a sequence of chunks ending with a zero-length chunk."""


FramingDecision = Union[FixedLength, Chunked]


@dataclass(frozen=True)
class ResponseHead:
    """
    Everything known once the header block is complete.

    Frozen: the framing decision for an exchange never changes after it
    has been made.
    """
    status_code: int
    content_offset: int
    framing: FramingDecision

    @property
    def is_chunked(self) -> bool:
        return isinstance(self.framing, Chunked)

    @property
    def expected_size(self) -> Optional[int]:
        """Total response size for fixed-length bodies, None when chunked."""
        if isinstance(self.framing, FixedLength):
            return self.content_offset + self.framing.length
        return None


# =============================================================================
# FIELD EXTRACTION
# =============================================================================

def get_content_offset(buffer: bytes) -> Optional[int]:
    """
    Offset of the first content byte, right after the first \\r\\n\\r\\n.

    Returns None while the header block is still incomplete.
    """
    index = buffer.find(HEADER_TERMINATOR)
    if index == -1:
        return None
    return index + len(HEADER_TERMINATOR)


def get_status_code(header: bytes) -> Optional[int]:
    """Integer following the "HTTP/1.1 " token, or None if there is none."""
    match = STATUS_PATTERN.search(header)
    if match is None:
        return None
    return int(match.group(1))


def get_content_length(header: bytes) -> Optional[int]:
    """Value of the Content-Length header, or None if absent or unparsable."""
    match = CONTENT_LENGTH_PATTERN.search(header)
    if match is None:
        return None
    return int(match.group(1))


def is_chunked_encoding(header: bytes) -> bool:
    """True if the header block announces chunked transfer encoding."""
    return CHUNKED_PATTERN.search(header) is not None


# =============================================================================
# FRAMING DECISION
# =============================================================================

def decide_framing(header: bytes, bytes_received: Optional[int] = None) -> FramingDecision:
    """
    Choose the framing discipline for a complete header block.

    Args:
        header: The header block, terminator included.
        bytes_received: Total bytes received so far, for the error;
            defaults to the header length.

    Raises:
        MalformedResponseError: Neither chunked nor Content-Length present.
    """
    # Chunked first, independently of Content-Length
    if is_chunked_encoding(header):
        return Chunked()

    content_length = get_content_length(header)
    if content_length is None:
        raise MalformedResponseError(
            "Response has neither Content-Length nor chunked encoding",
            bytes_received=len(header) if bytes_received is None else bytes_received,
        )
    return FixedLength(content_length)


def inspect_head(buffer: bytes) -> Optional[ResponseHead]:
    """
    Inspect the buffer received so far.

    Returns:
        ResponseHead once the header terminator has arrived, None before.

    Raises:
        MalformedResponseError: Header complete but without a usable status
            line or framing information.
    """
    content_offset = get_content_offset(buffer)
    if content_offset is None:
        return None

    header = bytes(buffer[:content_offset])

    status_code = get_status_code(header)
    if status_code is None:
        raise MalformedResponseError(
            "Missing or unparsable HTTP/1.1 status line",
            bytes_received=len(buffer),
        )

    return ResponseHead(
        status_code=status_code,
        content_offset=content_offset,
        framing=decide_framing(header, bytes_received=len(buffer)),
    )
