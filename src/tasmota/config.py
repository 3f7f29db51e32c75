"""
=============================================================================
CLIENT CONFIGURATION
=============================================================================

Centralized configuration for the device client.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── python -m tasmota --poll-timeout 2 http://plug get Power   │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── TASMOTA_POLL_TIMEOUT=2 python -m tasmota ...               │
    │                                                                     │
    │   3. Default values (in this dataclass)                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

The HTTP header set is deliberately NOT configurable; only transport
limits and logging are.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional


LOG_FORMATS = ("text", "json")


def _optional_float(value: Optional[str], default: Optional[float]) -> Optional[float]:
    # "" / "none" / "0" switch a limit off
    if value is None:
        return default
    if value.strip().lower() in ("", "none", "0"):
        return None
    return float(value)


@dataclass
class ClientConfig:
    """
    Configuration for the device HTTP client.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    TRANSPORT
    - poll_timeout, receive_deadline, connect_timeout, buffer_size

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # TRANSPORT
    # ─────────────────────────────────────────────────────────────────────

    poll_timeout: float = 5.0
    """
    Seconds to wait for readability in ONE iteration of the receive loop.
    If nothing arrives within this time the exchange ends.
    """

    receive_deadline: Optional[float] = 30.0
    """
    Seconds the whole receive loop may take.
    A device trickling a byte every few seconds would otherwise keep the
    call blocked forever. None = bounded by poll_timeout only.
    """

    connect_timeout: Optional[float] = 5.0
    """
    Timeout for each connect() attempt. None = OS default (blocking).
    """

    buffer_size: int = 4096
    """
    Capacity of the receive buffer in bytes. A response that doesn't fit
    is a framing error, the buffer never grows. Device answers are small;
    a full "Status 0" is around 2 KB.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "WARNING"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    DEBUG shows every recv() and framing decision.
    """

    log_format: str = "text"
    """
    Exchange log format: 'json' or 'text'.
    """

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        TASMOTA_POLL_TIMEOUT      Per-poll timeout in seconds (default: 5)
        TASMOTA_RECEIVE_DEADLINE  Whole receive loop, seconds (default: 30)
        TASMOTA_CONNECT_TIMEOUT   Connect timeout in seconds (default: 5)
        TASMOTA_BUFFER_SIZE       Receive buffer bytes (default: 4096)
        TASMOTA_LOG_LEVEL         Logging level (default: WARNING)
        TASMOTA_LOG_FORMAT        text or json (default: text)

        =====================================================================
        """
        return cls(
            poll_timeout=float(os.getenv("TASMOTA_POLL_TIMEOUT", "5")),
            receive_deadline=_optional_float(os.getenv("TASMOTA_RECEIVE_DEADLINE"), 30.0),
            connect_timeout=_optional_float(os.getenv("TASMOTA_CONNECT_TIMEOUT"), 5.0),
            buffer_size=int(os.getenv("TASMOTA_BUFFER_SIZE", "4096")),
            log_level=os.getenv("TASMOTA_LOG_LEVEL", "WARNING"),
            log_format=os.getenv("TASMOTA_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Fail fast at construction time rather than in the middle of an
        exchange with a device.
        """
        if self.poll_timeout <= 0:
            raise ValueError("poll_timeout must be > 0")

        if self.receive_deadline is not None and self.receive_deadline <= 0:
            raise ValueError("receive_deadline must be > 0 or None")

        if self.connect_timeout is not None and self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be > 0 or None")

        if self.buffer_size < 256:
            raise ValueError("buffer_size must be >= 256")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Invalid log_level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")
