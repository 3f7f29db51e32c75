"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import List, Optional, Sequence, Union
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tasmota import ClientConfig, HTTPClient, TasmotaAPI


def chunk(data: bytes) -> bytes:
    """Encode one chunk of a chunked body."""
    return f"{len(data):x}\r\n".encode() + data + b"\r\n"


def chunked_body(*pieces: bytes) -> bytes:
    """Encode pieces as a complete chunked body, terminal chunk included."""
    return b"".join(chunk(piece) for piece in pieces) + b"0\r\n\r\n"


def fixed_response(body: bytes, status: str = "200 OK") -> bytes:
    return (
        f"HTTP/1.1 {status}\r\n"
        "Content-Type: application/json\r\n"
        f"Content-Length: {len(body)}\r\n"
        "Connection: close\r\n"
        "\r\n"
    ).encode() + body


def chunked_response(*pieces: bytes, status: str = "200 OK") -> bytes:
    return (
        f"HTTP/1.1 {status}\r\n"
        "Content-Type: application/json\r\n"
        "Transfer-Encoding: chunked\r\n"
        "\r\n"
    ).encode() + chunked_body(*pieces)


@pytest.fixture
def power_response() -> bytes:
    """Fixed-length answer to cm?cmnd=Power."""
    return fixed_response(b'{"POWER":"ON"}')


@pytest.fixture
def modules_response() -> bytes:
    """Three-chunk answer to cm?cmnd=Modules."""
    return chunked_response(b'{"Modules":', b'{"0":"Generic",', b'"1":"Sonoff"}}')


@pytest.fixture
def status_body() -> bytes:
    """Abbreviated answer to cm?cmnd=Status%200."""
    return (
        b'{"Status":{"Module":1,"DeviceName":"Plug","FriendlyName":["Plug","Aux"],"Power":1},'
        b'"StatusSNS":{"Time":"2024-01-01T12:00:00",'
        b'"Energy1":{"Total":12.5,"Power":42,"Voltage":229,"Current":[0.182,0.0],"Standby":null}}}'
    )


@pytest.fixture
def config() -> ClientConfig:
    """Short timeouts so failing tests fail fast."""
    return ClientConfig(poll_timeout=1.0, receive_deadline=5.0, connect_timeout=2.0)


class StubDevice:
    """
    One-shot TCP server that answers every connection with canned bytes.

    Responses are sent as given: a list of byte strings is sent piece by
    piece with `delay` seconds in between, to exercise the receive loop
    across several poll() rounds.
    """

    def __init__(
        self,
        responses: Sequence[Union[bytes, List[bytes]]],
        delay: float = 0.0,
        close_after: bool = True,
    ):
        self.responses = list(responses)
        self.delay = delay
        self.close_after = close_after
        self.requests: List[bytes] = []

        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(5)
        self._sock.settimeout(5.0)
        self.port = self._sock.getsockname()[1]
        self._thread: Optional[threading.Thread] = None

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}/"

    def start(self) -> "StubDevice":
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()
        return self

    def stop(self):
        if self._thread:
            self._thread.join(timeout=5.0)
        self._sock.close()

    def _serve(self):
        for response in self.responses:
            try:
                client, _ = self._sock.accept()
            except OSError:
                return

            with client:
                self.requests.append(self._read_request(client))
                pieces = response if isinstance(response, list) else [response]
                for piece in pieces:
                    client.sendall(piece)
                    if self.delay:
                        time.sleep(self.delay)
                if not self.close_after:
                    # Hold the connection open until the client gives up
                    client.settimeout(5.0)
                    try:
                        client.recv(1)
                    except OSError:
                        pass

    @staticmethod
    def _read_request(client: socket.socket) -> bytes:
        data = b""
        while b"\r\n\r\n" not in data:
            piece = client.recv(1024)
            if not piece:
                break
            data += piece
        return data

    def __enter__(self) -> "StubDevice":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False


@pytest.fixture
def stub_device():
    """Factory: stub_device(responses, delay=0.0) → running StubDevice."""
    devices: List[StubDevice] = []

    def factory(responses, delay: float = 0.0, close_after: bool = True) -> StubDevice:
        device = StubDevice(responses, delay=delay, close_after=close_after).start()
        devices.append(device)
        return device

    yield factory

    for device in devices:
        device.stop()


class ClosedPort:
    """Address of a local port nobody listens on."""

    def __init__(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 0))
            self.port = s.getsockname()[1]

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}/"


@pytest.fixture
def closed_port_device() -> ClosedPort:
    """A 'device' that refuses every connection."""
    return ClosedPort()


@pytest.fixture
def make_api(config):
    """Factory: make_api(device) → TasmotaAPI talking to a StubDevice."""
    def factory(device: StubDevice) -> TasmotaAPI:
        return TasmotaAPI(device.url, client=HTTPClient(config))
    return factory
