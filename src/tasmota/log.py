"""
=============================================================================
EXCHANGE LOGGING
=============================================================================

One structured log entry per request/response exchange, in the spirit of an
access log, plus the basicConfig setup used by the CLI.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  text:  GET http://plug/cm?cmnd=Power 200 15B 12.41ms               │
    │  json:  {"exchange_id": "3f2a9c1e", "method": "GET", ...}           │
    └─────────────────────────────────────────────────────────────────────┘

There is no process-wide log sink. Components take a logging.Logger when
they are constructed and fall back to their module logger; tests can hand
in their own logger and inspect it with caplog.

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass, asdict
from typing import Optional

from .config import ClientConfig


# ═══════════════════════════════════════════════════════════════════════════
# LOGGER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════
# Namespaced so exchanges can be routed separately:
#   logging.getLogger("tasmota.exchange").addHandler(file_handler)
# ═══════════════════════════════════════════════════════════════════════════
exchange_logger = logging.getLogger("tasmota.exchange")


@dataclass
class ExchangeLog:
    """
    Structured log entry for one exchange.

    status_code is None when the exchange failed below HTTP (connect, send,
    receive or framing); error then holds the exception class name.
    """

    exchange_id: str
    method: str
    url: str
    status_code: Optional[int]
    bytes_received: int
    content_length: int
    complete: bool
    duration_ms: float
    error: Optional[str] = None
    timestamp: str = ""

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        status = self.status_code if self.status_code is not None else "-"
        text = (
            f"{self.method} {self.url} {status} "
            f"{self.content_length}B {self.duration_ms:.2f}ms"
        )
        if not self.complete:
            text += " (truncated)"
        if self.error:
            text += f" error={self.error}"
        return text


class ExchangeLogger:
    """Emits ExchangeLog entries in text or JSON format."""

    def __init__(
        self,
        log_format: str = "text",
        logger: Optional[logging.Logger] = None,
        log_level: int = logging.INFO,
    ):
        self.log_format = log_format
        self.logger = logger or exchange_logger
        self.log_level = log_level

    def emit(self, entry: ExchangeLog) -> None:
        if not entry.timestamp:
            entry.timestamp = time.strftime("%d/%b/%Y:%H:%M:%S %z")

        level = logging.WARNING if entry.error else self.log_level
        if self.log_format == "json":
            self.logger.log(level, json.dumps(entry.to_dict()))
        else:
            self.logger.log(level, entry.to_text())


def setup_logging(config: ClientConfig) -> None:
    """Configure logging based on config (CLI use; libraries don't call this)."""
    level = getattr(logging, config.log_level.upper(), logging.WARNING)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("tasmota").setLevel(level)
