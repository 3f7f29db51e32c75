"""
=============================================================================
HTTP RESPONSE PARSING
=============================================================================

Turns the raw bytes collected by the receive loop into an HTTPResponse.

    raw bytes                      HTTPResponse
    ─────────                      ────────────
    HTTP/1.1 200 OK\r\n     ┐
    Transfer-Encoding: ...  ├──►   header       (verbatim, incl. blank line)
    \r\n                    ┘
    7\r\n{"Modul\r\n        ┐
    e\r\nes":{"0":"Gen...   ├──►   content      (dechunked)
    0\r\n\r\n               ┘
                                   status_code  200
                                   complete     True

For fixed-length bodies the content is every byte received after the
header. The receive loop stops as soon as Content-Length bytes are in, so
anything past that only shows up when it arrived in the same segment.

=============================================================================
TRUNCATED RESPONSES
=============================================================================

If the connection dropped after some bytes arrived, the receive loop still
hands them over, flagged complete=False. The parser then returns what it
can (short fixed-length slice, or the fully buffered chunks) and keeps the
flag on the result. Callers decide whether a truncated body is usable; the
device API does not use it.

=============================================================================
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..errors import MalformedResponseError
from .chunked import decode_chunked
from .framing import FixedLength, ResponseHead, inspect_head
from .status_codes import HTTPStatus, reason_phrase


@dataclass
class HTTPResponse:
    """
    A response received from a device.

    Attributes:
        status_code: Integer status from the status line.
        header: Header text up to and including the empty line.
        content: Body bytes, already dechunked.
        complete: False if the transport ended before framing said so.
    """

    status_code: int
    header: str = ""
    content: bytes = b""
    complete: bool = True

    _headers: Optional[Dict[str, str]] = field(default=None, repr=False, compare=False)

    @property
    def reason(self) -> str:
        return reason_phrase(self.status_code)

    @property
    def ok(self) -> bool:
        """True for a complete 200 OK response."""
        return self.complete and self.status_code == HTTPStatus.OK

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @property
    def headers(self) -> Dict[str, str]:
        """
        Header fields with lowercase names.

        Parsed lazily from the header text. Repeated fields are joined with
        ", " as RFC 7230 allows.
        """
        if self._headers is None:
            headers: Dict[str, str] = {}
            for line in self.header.split("\r\n")[1:]:
                name, sep, value = line.partition(":")
                if not sep:
                    continue
                name = name.strip().lower()
                value = value.strip()
                if name in headers:
                    headers[name] += ", " + value
                else:
                    headers[name] = value
            self._headers = headers
        return self._headers

    def json(self) -> Any:
        """
        Decode the content as JSON with the standard library.

        Raises:
            MalformedResponseError: Content is not valid JSON.
        """
        try:
            return json.loads(self.content.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedResponseError(f"Invalid JSON content: {e}") from e


class ResponseParser:
    """Splits raw response bytes into status, header text and content."""

    def parse(self, data: bytes, complete: bool = True) -> HTTPResponse:
        """
        Parse a received response.

        Args:
            data: Raw bytes as accumulated by the receive loop.
            complete: Whether the receive loop saw the end of the framing.

        Returns:
            The parsed HTTPResponse.

        Raises:
            MalformedResponseError: No header terminator, no status line,
                no framing information, or undecodable chunks.
        """
        head = inspect_head(data)
        if head is None:
            raise MalformedResponseError(
                "Header terminator not found in response",
                bytes_received=len(data),
            )

        content = self._extract_content(data, head, complete)

        # A short fixed-length body is truncated whatever the caller claims
        if isinstance(head.framing, FixedLength) and len(content) < head.framing.length:
            complete = False

        return HTTPResponse(
            status_code=head.status_code,
            header=bytes(data[:head.content_offset]).decode("iso-8859-1"),
            content=content,
            complete=complete,
        )

    def _extract_content(self, data: bytes, head: ResponseHead, complete: bool) -> bytes:
        if isinstance(head.framing, FixedLength):
            return bytes(data[head.content_offset:])

        return decode_chunked(data, head.content_offset, require_terminal=complete)


def parse_response(data: bytes, complete: bool = True) -> HTTPResponse:
    """Convenience function: parse with a fresh ResponseParser."""
    return ResponseParser().parse(data, complete)
