"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION (client side)
=============================================================================

Pure protocol code: no sockets in here. Everything works on the bytes the
receive loop has collected so far, which keeps it easy to test.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP Request-Response Cycle                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   CLIENT (us)                                    DEVICE             │
    │      │                                              │               │
    │      │   request.py: RequestBuilder                 │               │
    │      │  ─────────────────────────────────────────►  │               │
    │      │   GET /cm?cmnd=Power HTTP/1.1                │               │
    │      │                                              │               │
    │      │  ◄─────────────────────────────────────────  │               │
    │      │   framing.py: where does it end?             │               │
    │      │   chunked.py: walk / decode chunks           │               │
    │      │   response.py: status, header, content       │               │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Key points:
- Lines end with CRLF (\r\n), not just \n
- Headers and body separated by empty line (\r\n\r\n)
- Body length from Content-Length, or chunked transfer encoding

=============================================================================
"""

from .request import HTTPMethod, RequestBuilder, build_request
from .framing import (
    Chunked,
    FixedLength,
    FramingDecision,
    ResponseHead,
    decide_framing,
    inspect_head,
)
from .chunked import ChunkCursor, ChunkSpan, decode_chunked, is_chunked_complete, walk_chunks
from .response import HTTPResponse, ResponseParser, parse_response
from .status_codes import HTTPStatus
from .url import Url, build_command_url

__all__ = [
    # Requests
    "HTTPMethod",
    "RequestBuilder",
    "build_request",

    # Framing
    "Chunked",
    "FixedLength",
    "FramingDecision",
    "ResponseHead",
    "decide_framing",
    "inspect_head",

    # Chunked encoding
    "ChunkCursor",
    "ChunkSpan",
    "decode_chunked",
    "is_chunked_complete",
    "walk_chunks",

    # Responses
    "HTTPResponse",
    "ResponseParser",
    "parse_response",
    "HTTPStatus",

    # URLs
    "Url",
    "build_command_url",
]
