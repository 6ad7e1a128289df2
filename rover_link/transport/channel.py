"""
Live channel to the robot.

The transport client talks to the channel through four callback slots
(on_open, on_message, on_close, on_error), the same shape a browser
WebSocket exposes. WebSocketChannel drives those slots from a reader task
running on the current asyncio loop.
"""

import asyncio
from typing import Any, Callable, Optional, Protocol

import websockets
from loguru import logger


class LiveChannel(Protocol):
    """Full-duplex channel the transport client binds to."""

    on_open: Optional[Callable[[], None]]
    on_message: Optional[Callable[[str], None]]
    on_close: Optional[Callable[[], None]]
    on_error: Optional[Callable[[Exception], None]]

    @property
    def is_open(self) -> bool: ...

    def start(self) -> None: ...

    async def send(self, text: str) -> None: ...

    def close(self) -> None: ...

    def detach(self) -> None: ...


class WebSocketChannel:
    """
    LiveChannel backed by the websockets library.

    Event mapping:
    - handshake completes -> on_open()
    - text/binary frame -> on_message(text)   (binary decoded as UTF-8)
    - closed after open -> on_close()
    - failed before open, or socket error after open -> on_error(exc)
    """

    def __init__(self, url: str, open_timeout: float = 10.0):
        """
        Args:
            url: ws:// or wss:// URL of the robot
            open_timeout: Seconds to wait for the opening handshake
        """
        self.url = url
        self.open_timeout = open_timeout

        self.on_open: Optional[Callable[[], None]] = None
        self.on_message: Optional[Callable[[str], None]] = None
        self.on_close: Optional[Callable[[], None]] = None
        self.on_error: Optional[Callable[[Exception], None]] = None

        self._ws: Optional[Any] = None
        self._task: Optional[asyncio.Task] = None
        self._closing = False

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._closing

    def start(self):
        """Open the connection in a background task. Needs a running loop."""
        if self._task is not None:
            raise RuntimeError("Live channel already started")
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name=f"live-channel:{self.url}")

    async def _run(self):
        opened = False
        error: Optional[Exception] = None
        try:
            async with websockets.connect(self.url, open_timeout=self.open_timeout) as websocket:
                self._ws = websocket
                opened = True
                self._fire(self.on_open)
                async for message in websocket:
                    if isinstance(message, bytes):
                        message = message.decode("utf-8", errors="replace")
                    self._fire(self.on_message, message)
        except websockets.exceptions.ConnectionClosed as e:
            logger.debug(f"Live channel closed ({self.url}): {e}")
            if not opened:
                error = e
        except (OSError, asyncio.TimeoutError, TimeoutError, websockets.exceptions.WebSocketException) as e:
            error = e
        finally:
            self._ws = None

        if error is not None:
            logger.debug(f"Live channel error ({self.url}): {error!r}")
            self._fire(self.on_error, error)
        else:
            self._fire(self.on_close)

    def _fire(self, callback, *args):
        if callback is not None:
            callback(*args)

    async def send(self, text: str):
        """
        Write one text frame.

        Raises:
            ConnectionError: If the socket is not open or closes mid-write
        """
        websocket = self._ws
        if websocket is None or self._closing:
            raise ConnectionError("Live channel is not open")
        try:
            await websocket.send(text)
        except websockets.exceptions.ConnectionClosed as e:
            raise ConnectionError(f"Live channel closed during send: {e}") from e

    def detach(self):
        """Unregister all event callbacks."""
        self.on_open = None
        self.on_message = None
        self.on_close = None
        self.on_error = None

    def close(self):
        """Close the connection. Pending events are dropped once detached."""
        self._closing = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
