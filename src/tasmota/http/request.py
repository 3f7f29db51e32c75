"""
=============================================================================
HTTP REQUEST BUILDING
=============================================================================

Assembles the bytes of a request to a device.

    GET /cm?cmnd=Power HTTP/1.1\r\n          ← request line
    Host: tasmota-994e5a-3674\r\n
    User-Agent: pytasmota/1.0\r\n
    Accept: application/json\r\n
    Accept-Language: de,en-US;q=0.7,en;q=0.3\r\n
    Connection: keep-alive\r\n
    \r\n                                     ← end of headers, no body

The header set is fixed. A PUT carries no body either: the device API
encodes the write in the query string (cmnd=Power%20ON), not in a payload.

=============================================================================
"""

from enum import Enum


USER_AGENT = "pytasmota/1.0"
ACCEPT_LANGUAGE = "de,en-US;q=0.7,en;q=0.3"


class HTTPMethod(str, Enum):
    """The only two methods the device API needs."""
    GET = "GET"
    PUT = "PUT"


class RequestBuilder:
    """
    Builds a complete HTTP/1.1 request head.

    Usage:
        data = RequestBuilder(HTTPMethod.GET, "/cm?cmnd=Power", "plug").build()
        sock.sendall(data)
    """

    def __init__(self, method: str, target: str, host: str):
        """
        Args:
            method: "GET" or "PUT" (or the HTTPMethod member).
            target: Request target, path + query, already percent-encoded.
            host: Value of the Host header.

        Raises:
            ValueError: Unsupported method, or CR/LF inside target or host.
        """
        try:
            self.method = HTTPMethod(method)
        except ValueError:
            raise ValueError(f"Unsupported method: {method!r} (GET or PUT only)") from None

        for name, value in (("target", target), ("host", host)):
            if "\r" in value or "\n" in value:
                raise ValueError(f"Invalid {name}: contains CR or LF")

        self.target = target or "/"
        self.host = host

    @property
    def request_line(self) -> str:
        return f"{self.method.value} {self.target} HTTP/1.1"

    def build(self) -> bytes:
        lines = [
            self.request_line,
            f"Host: {self.host}",
            f"User-Agent: {USER_AGENT}",
            "Accept: application/json",
            f"Accept-Language: {ACCEPT_LANGUAGE}",
            "Connection: keep-alive",
            "",
            "",
        ]
        return "\r\n".join(lines).encode("ascii")


def build_request(method: str, target: str, host: str) -> bytes:
    """Convenience wrapper around RequestBuilder."""
    return RequestBuilder(method, target, host).build()
