"""
=============================================================================
URL HANDLING
=============================================================================

Splits device URLs into the parts the client needs and builds command URLs.

    http://admin@tasmota-994e5a-3674:8080/cm?cmnd=Status%200#top
    ─┬──   ──┬──  ────────┬─────────  ─┬─  ─┬─ ──────┬───────  ─┬─
     │       │            │            │    │        │          │
   scheme userinfo       host         port path    query    fragment

Only plain http is supported. A URL without scheme ("192.168.1.50") is
taken as http. The fragment is kept for reassembly but never sent.

=============================================================================
COMMAND URLS
=============================================================================

A Tasmota device has a single command endpoint, /cm, taking the command in
the cmnd query parameter. A write is the command name, a space, and the
value:

    build_command_url("http://plug/", "Power")        → http://plug/cm?cmnd=Power
    build_command_url("http://plug/", "Power", "ON")  → http://plug/cm?cmnd=Power%20ON
    build_command_url("http://plug",  "Status 0")     → http://plug/cm?cmnd=Status%200

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, urlsplit


DEFAULT_PORT = 80
COMMAND_PATH = "cm"


@dataclass
class Url:
    """A decomposed http URL."""

    host: str
    port: int = DEFAULT_PORT
    path: str = "/"
    query: str = ""
    fragment: str = ""
    scheme: str = "http"
    userinfo: str = ""

    @classmethod
    def parse(cls, text: str) -> "Url":
        """
        Split a URL into its components.

        Raises:
            ValueError: Unsupported scheme, missing host or invalid port.
        """
        text = text.strip()
        if "://" not in text:
            text = "http://" + text

        parts = urlsplit(text)
        if parts.scheme.lower() != "http":
            raise ValueError(f"Unsupported URL scheme: {parts.scheme!r} (plain http only)")

        # .port raises ValueError itself for non-numeric or out of range ports
        port = parts.port
        host = parts.hostname
        if not host:
            raise ValueError(f"URL has no host: {text!r}")

        userinfo = ""
        if "@" in parts.netloc:
            userinfo = parts.netloc.rsplit("@", 1)[0]

        return cls(
            host=host,
            port=port if port is not None else DEFAULT_PORT,
            path=parts.path or "/",
            query=parts.query,
            fragment=parts.fragment,
            scheme="http",
            userinfo=userinfo,
        )

    @property
    def netloc(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port != DEFAULT_PORT:
            host = f"{host}:{self.port}"
        return host

    @property
    def host_header(self) -> str:
        """Value for the Host header: host, plus port if not 80."""
        return self.netloc

    @property
    def request_target(self) -> str:
        """Path and query as sent on the request line."""
        target = self.path or "/"
        if self.query:
            target = f"{target}?{self.query}"
        return target

    def __str__(self) -> str:
        authority = self.netloc
        if self.userinfo:
            authority = f"{self.userinfo}@{authority}"
        url = f"{self.scheme}://{authority}{self.request_target}"
        if self.fragment:
            url = f"{url}#{self.fragment}"
        return url


def normalize_base_url(base_url: str) -> str:
    """Append the trailing slash command URLs are built against."""
    if base_url and not base_url.endswith("/"):
        return base_url + "/"
    return base_url


def build_command_url(base_url: str, command: str, value: Optional[str] = None) -> str:
    """
    Build the URL that sends `command` (with an optional value) to a device.

    The command text is percent-encoded here; pass it raw ("Status 0").
    """
    text = command if value is None else f"{command} {value}"
    return f"{normalize_base_url(base_url)}{COMMAND_PATH}?cmnd={quote(text, safe='')}"
