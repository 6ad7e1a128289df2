"""Pytest configuration and shared fixtures for rover-link tests."""

import sys
from pathlib import Path

import httpx
import pytest

# Add project root and scripts/ to path for imports
root_path = Path(__file__).parent.parent
sys.path.insert(0, str(root_path))
sys.path.insert(0, str(root_path / "scripts"))

from rover_link.transport import RobotTransportClient, TransportHandlers  # noqa: E402


class FakeChannel:
    """LiveChannel stand-in; tests fire socket events by hand."""

    def __init__(self, url: str):
        self.url = url
        self.on_open = None
        self.on_message = None
        self.on_close = None
        self.on_error = None
        self.started = False
        self.closed = False
        self.detached = False
        self.sent = []
        self.fail_send = False
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open and not self.closed

    def start(self):
        self.started = True

    async def send(self, text: str):
        if not self.is_open or self.fail_send:
            raise ConnectionError("fake channel not writable")
        self.sent.append(text)

    def close(self):
        self.closed = True

    def detach(self):
        self.detached = True
        self.on_open = None
        self.on_message = None
        self.on_close = None
        self.on_error = None

    # ---- simulated socket events ----

    def emit_open(self):
        self._open = True
        if self.on_open:
            self.on_open()

    def emit_message(self, text: str):
        if self.on_message:
            self.on_message(text)

    def emit_close(self):
        self._open = False
        if self.on_close:
            self.on_close()

    def emit_error(self, exc: Exception = None):
        self._open = False
        if self.on_error:
            self.on_error(exc or ConnectionRefusedError("refused"))


class ChannelFactory:
    """Records every channel the client creates."""

    def __init__(self):
        self.channels = []

    def __call__(self, url: str) -> FakeChannel:
        channel = FakeChannel(url)
        self.channels.append(channel)
        return channel

    @property
    def last(self) -> FakeChannel:
        return self.channels[-1]


class Recorder:
    """Collects everything the client reports."""

    def __init__(self):
        self.statuses = []
        self.messages = []
        self.telemetry = []
        self.logs = []

    def handlers(self) -> TransportHandlers:
        return TransportHandlers(
            on_status_change=lambda state, alert: self.statuses.append((state, alert)),
            on_message=self.messages.append,
            on_telemetry=self.telemetry.append,
            on_log=self.logs.append,
        )

    def total(self) -> int:
        return len(self.statuses) + len(self.messages) + len(self.telemetry) + len(self.logs)


class HttpRecorder:
    """httpx.MockTransport handler that records requests."""

    def __init__(self, status_code: int = 200, error: Exception = None):
        self.status_code = status_code
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json={"status": "ok"})


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def channels():
    return ChannelFactory()


@pytest.fixture
def http_recorder():
    return HttpRecorder()


@pytest.fixture
def make_client(recorder, channels, http_recorder):
    """Build a client wired to the fake channel and a mock HTTP transport."""
    created = []

    def factory(**kwargs):
        kwargs.setdefault("ws_url", "ws://pi.local:9000/ws")
        kwargs.setdefault("handlers", recorder.handlers())
        kwargs.setdefault("channel_factory", channels)
        kwargs.setdefault(
            "http_client",
            httpx.AsyncClient(transport=httpx.MockTransport(http_recorder)),
        )
        client = RobotTransportClient(**kwargs)
        created.append(client)
        return client

    yield factory

    for client in created:
        client.disconnect()
