"""
=============================================================================
CLIENT ERRORS
=============================================================================

Exception hierarchy for the HTTP engine.

    HTTPClientError
    ├── ConnectError            - no candidate address accepted a connection
    ├── SendError               - request could not be written completely
    ├── ReceiveError            - nothing at all came back
    └── MalformedResponseError  - bytes came back, but not a usable response

HTTP status codes in the 4xx/5xx range are NOT errors at this layer. A 404
is a perfectly well-framed response; the caller inspects the status code.

None of these are retried. Every failure is reported once, to the caller
that issued the request.

=============================================================================
"""

from typing import Optional


class HTTPClientError(Exception):
    """
    Base class for all transport and framing failures.

    Carries the number of bytes received before the failure so logs can
    distinguish "device never answered" from "device answered garbage".
    """

    def __init__(self, message: str, bytes_received: int = 0):
        super().__init__(message)
        self.bytes_received = bytes_received


class ConnectError(HTTPClientError):
    """Address resolution or connect failed for every candidate address."""

    def __init__(self, message: str, host: str = "", port: Optional[int] = None):
        super().__init__(message)
        self.host = host
        self.port = port


class SendError(HTTPClientError):
    """Partial or failed write of the assembled request."""


class ReceiveError(HTTPClientError):
    """Poll timeout, poll error or hang-up before any byte arrived."""


class MalformedResponseError(HTTPClientError):
    """
    The received bytes do not form a valid HTTP response.

    Raised when the header terminator never shows up within the receive
    buffer, the status line is missing, no framing information is present,
    or a chunk cannot be parsed. There is no partial recovery.
    """
