"""
=============================================================================
HTTP CLIENT
=============================================================================

One call, one exchange:

    ┌──────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   Url.parse(url)                                                     │
    │       │                                                              │
    │   Connector.connect(host, port)          ── ConnectError             │
    │       │                                                              │
    │   RequestBuilder(...).build() → send     ── SendError                │
    │       │                                                              │
    │   ResponseReceiver.receive(socket)       ── ReceiveError             │
    │       │                                  ── MalformedResponseError   │
    │   ResponseParser.parse(bytes)            ── MalformedResponseError   │
    │       │                                                              │
    │   close socket (always, also on error)                               │
    │       │                                                              │
    │   HTTPResponse(status_code, header, content, complete)               │
    │                                                                      │
    └──────────────────────────────────────────────────────────────────────┘

No retries, no redirects, no connection reuse. A 404 or 500 comes back as
a normal HTTPResponse.

=============================================================================
"""

import logging
import time
import uuid
from typing import Optional

from .config import ClientConfig
from .core import Connector, ResponseReceiver
from .errors import HTTPClientError
from .http.request import HTTPMethod, build_request
from .http.response import HTTPResponse, ResponseParser
from .http.url import Url
from .log import ExchangeLog, ExchangeLogger


class HTTPClient:
    """
    Minimal synchronous HTTP/1.1 client for device command APIs.

    Usage:
        client = HTTPClient()
        response = client.get("http://192.168.1.50/cm?cmnd=Power")
        if response.ok:
            print(response.text)
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        logger: Optional[logging.Logger] = None,
        exchange_logger: Optional[ExchangeLogger] = None,
    ):
        """
        Args:
            config: Client configuration. Sensible defaults if not provided.
            logger: Logger handed to every component of the exchange.
            exchange_logger: Sink for one structured entry per exchange.
        """
        self.config = config or ClientConfig()
        self.config.validate()  # Fail fast on invalid config

        self.logger = logger or logging.getLogger(__name__)
        self.exchange_logger = exchange_logger or ExchangeLogger(self.config.log_format)

        self._connector = Connector(timeout=self.config.connect_timeout, logger=self.logger)
        self._receiver = ResponseReceiver(
            poll_timeout=self.config.poll_timeout,
            deadline=self.config.receive_deadline,
            buffer_size=self.config.buffer_size,
            logger=self.logger,
        )
        self._parser = ResponseParser()

    def get(self, url: str) -> HTTPResponse:
        """Send a GET request."""
        return self.request(HTTPMethod.GET, url)

    def put(self, url: str) -> HTTPResponse:
        """Send a PUT request (no body; the write lives in the query)."""
        return self.request(HTTPMethod.PUT, url)

    def request(self, method: str, url: str) -> HTTPResponse:
        """
        Perform one complete exchange.

        Raises:
            ValueError: Invalid URL or method.
            HTTPClientError: Any transport or framing failure.
        """
        parsed = Url.parse(url)
        data = build_request(method, parsed.request_target, parsed.host_header)

        exchange_id = str(uuid.uuid4())[:8]
        start_time = time.time()
        bytes_received = 0

        try:
            with self._connector.connect(parsed.host, parsed.port) as conn:
                exchange_id = conn.id
                conn.send_request(data)
                result = self._receiver.receive(conn.socket, conn_id=conn.id)
                bytes_received = result.total_received

            # Socket is closed here; parsing needs only the bytes
            response = self._parser.parse(result.data, complete=result.complete)

        except HTTPClientError as e:
            self._log_exchange(
                exchange_id, method, url, start_time,
                bytes_received=bytes_received or e.bytes_received,
                error=type(e).__name__,
            )
            raise

        self._log_exchange(
            exchange_id, method, url, start_time,
            bytes_received=bytes_received,
            response=response,
        )
        return response

    def _log_exchange(
        self,
        exchange_id: str,
        method: str,
        url: str,
        start_time: float,
        bytes_received: int,
        response: Optional[HTTPResponse] = None,
        error: Optional[str] = None,
    ) -> None:
        self.exchange_logger.emit(ExchangeLog(
            exchange_id=exchange_id,
            method=HTTPMethod(method).value,
            url=url,
            status_code=response.status_code if response else None,
            bytes_received=bytes_received,
            content_length=len(response.content) if response else 0,
            complete=response.complete if response else False,
            duration_ms=(time.time() - start_time) * 1000,
            error=error,
        ))
