"""
=============================================================================
PYTASMOTA - Raw-Socket HTTP Client for Tasmota Smart Plugs
=============================================================================

Queries and switches Tasmota-style plugs and relays over their plain HTTP
command API. The HTTP/1.1 engine underneath is written directly on top of
sockets and poll(): no urllib, no requests.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        PYTASMOTA LAYERS                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   TasmotaAPI          get_value / get_value_from_path /             │
    │       │               get_modules / get_power / set_value           │
    │       ▼                                                             │
    │   HTTPClient          connect → send → receive → parse → close      │
    │       │                                                             │
    │       ├── core/       Connector, ResponseReceiver (poll loop)       │
    │       └── http/       request, framing, chunked, response, url      │
    │                                                                     │
    │   jsontree            owned JSON tree with explicit release         │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    tasmota/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m tasmota)
    ├── api.py               # TasmotaAPI device command layer
    ├── client.py            # HTTPClient exchange glue
    ├── config.py            # ClientConfig dataclass
    ├── errors.py            # HTTPClientError hierarchy
    ├── jsontree.py          # JsonDocument / JsonNode
    ├── log.py               # Exchange logging
    ├── core/                # Socket-level components
    │   ├── connection.py    # Connector and Connection
    │   └── receiver.py      # Receive buffer and poll loop
    └── http/                # Protocol components
        ├── request.py       # Request head builder
        ├── framing.py       # Header boundary and framing decision
        ├── chunked.py       # Chunk walk and decode
        ├── response.py      # Response parser
        ├── status_codes.py  # HTTP status enum
        └── url.py           # URL split and command URLs

=============================================================================
QUICK START
=============================================================================

    from tasmota import TasmotaAPI

    api = TasmotaAPI("http://tasmota-994e5a-3674/")

    api.get_value("Power")                           # "ON"
    api.get_value_from_path("StatusSNS:ENERGY:Power")  # "12"
    api.get_modules()                                # {"0": "Generic", ...}
    api.set_value("Power", "OFF")                    # "OFF"

=============================================================================
"""

__version__ = "1.0.0"

from .api import INVALID, NOT_FOUND, TasmotaAPI
from .client import HTTPClient
from .config import ClientConfig
from .errors import (
    ConnectError,
    HTTPClientError,
    MalformedResponseError,
    ReceiveError,
    SendError,
)
from .http.response import HTTPResponse
from .jsontree import JsonDocument, JsonNode, JsonType, parse_json

__all__ = [
    "TasmotaAPI",
    "INVALID",
    "NOT_FOUND",
    "HTTPClient",
    "HTTPResponse",
    "ClientConfig",
    "HTTPClientError",
    "ConnectError",
    "SendError",
    "ReceiveError",
    "MalformedResponseError",
    "JsonDocument",
    "JsonNode",
    "JsonType",
    "parse_json",
    "__version__",
]
