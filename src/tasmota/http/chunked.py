"""
=============================================================================
CHUNKED TRANSFER ENCODING
=============================================================================

Walks and decodes a chunked body held in a receive buffer.

    ┌──────────────────────────────────────────────────────────────────────┐
    │                      ONE CHUNK ON THE WIRE                           │
    ├──────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │     1a;ext=1\r\n   <data: 0x1a bytes>   \r\n                         │
    │     ────┬──────    ────────┬─────────   ─┬──                         │
    │         │                  │             └── mandatory CRLF          │
    │         │                  └── exactly "length" bytes                │
    │         └── hex length, optional extension after ';' (ignored)       │
    │                                                                      │
    │     0\r\n          ← terminal chunk. Trailers are ignored: once the  │
    │                      zero-length line is buffered, the body is done. │
    │                                                                      │
    └──────────────────────────────────────────────────────────────────────┘

The walk is restarted from the content offset every time new bytes arrive.
That re-scans chunks already seen, which is fine for device responses of
a few kilobytes. In exchange no parsing state has to survive between
recv() calls.

Every step yields one of three outcomes:
    - a complete chunk (advance to its next_offset)
    - the terminal chunk (body complete)
    - None: need more data. This is a normal progress state, not an error.

Bytes that can never become a valid chunk raise MalformedResponseError.

=============================================================================
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from ..errors import MalformedResponseError


CRLF = b"\r\n"
HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")


@dataclass(frozen=True)
class ChunkSpan:
    """
    Location of one fully buffered chunk.

    Attributes:
        size: Decoded data length (0 for the terminal chunk).
        data_start: Offset of the first data byte.
        next_offset: Offset of the next chunk's length line.
    """
    size: int
    data_start: int
    next_offset: int

    @property
    def is_terminal(self) -> bool:
        return self.size == 0

    @property
    def data_end(self) -> int:
        return self.data_start + self.size


@dataclass
class ChunkCursor:
    """Transient state of one walk over the buffer."""
    offset: int
    chunks: int = 0
    terminal: bool = False


def _parse_length_line(line: bytes, offset: int) -> int:
    size_field = line.split(b";", 1)[0].strip(b" \t")
    if not size_field or any(byte not in HEX_DIGITS for byte in size_field):
        raise MalformedResponseError(f"Invalid chunk length line at offset {offset}: {line!r}")
    return int(size_field, 16)


def parse_chunk(buffer: bytes, offset: int) -> Optional[ChunkSpan]:
    """
    Parse the chunk starting at `offset`.

    Returns:
        ChunkSpan if the chunk is fully buffered (for the terminal chunk:
        its length line), None if more data is needed.

    Raises:
        MalformedResponseError: The length line is not hex, or the data is
            not followed by CRLF.
    """
    line_end = buffer.find(CRLF, offset)
    if line_end == -1:
        return None

    size = _parse_length_line(bytes(buffer[offset:line_end]), offset)
    data_start = line_end + len(CRLF)

    if size == 0:
        return ChunkSpan(size=0, data_start=data_start, next_offset=data_start)

    data_end = data_start + size
    if data_end + len(CRLF) > len(buffer):
        return None

    if buffer[data_end:data_end + len(CRLF)] != CRLF:
        raise MalformedResponseError(f"Chunk at offset {offset} is not terminated by CRLF")

    return ChunkSpan(size=size, data_start=data_start, next_offset=data_end + len(CRLF))


def iter_chunks(buffer: bytes, offset: int) -> Iterator[ChunkSpan]:
    """
    Yield every fully buffered chunk from `offset` on.

    Stops after the terminal chunk, or silently when the buffer runs out.
    """
    while True:
        span = parse_chunk(buffer, offset)
        if span is None:
            return
        yield span
        if span.is_terminal:
            return
        offset = span.next_offset


def walk_chunks(buffer: bytes, content_offset: int) -> ChunkCursor:
    """Walk all buffered chunks and report how far the walk got."""
    cursor = ChunkCursor(offset=content_offset)
    for span in iter_chunks(buffer, content_offset):
        if span.is_terminal:
            cursor.terminal = True
            break
        cursor.chunks += 1
        cursor.offset = span.next_offset
    return cursor


def is_chunked_complete(buffer: bytes, content_offset: int) -> bool:
    """True once the terminal zero-length chunk has been buffered."""
    return walk_chunks(buffer, content_offset).terminal


def decode_chunked(buffer: bytes, content_offset: int, require_terminal: bool = True) -> bytes:
    """
    Concatenate the data of every chunk into one contiguous body.

    Length lines, chunk CRLFs and the terminal chunk are not part of the
    output.

    Args:
        buffer: Raw response bytes.
        content_offset: Offset of the first chunk's length line.
        require_terminal: When False (truncated receive), return the data of
            the chunks that were fully buffered instead of raising.

    Raises:
        MalformedResponseError: The terminal chunk is missing and
            require_terminal is set.
    """
    body = bytearray()
    for span in iter_chunks(buffer, content_offset):
        if span.is_terminal:
            return bytes(body)
        body += buffer[span.data_start:span.data_end]

    if not require_terminal:
        return bytes(body)

    raise MalformedResponseError(
        "Chunked body ended before the terminal chunk",
        bytes_received=len(buffer),
    )
