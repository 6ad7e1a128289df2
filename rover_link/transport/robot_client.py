"""
Robot transport client - live WebSocket channel with HTTP fallback.

Manages:
- Connection lifecycle of the live channel (connect / disconnect)
- Outbound commands (live channel first, HTTP POST fallback)
- Inbound messages (raw passthrough + telemetry extraction)
- Status and activity-log events for the dashboard
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import httpx
from loguru import logger

from ..config import WS_URL_ENV
from .channel import LiveChannel, WebSocketChannel
from .exceptions import FallbackDeliveryError, TransportUnavailableError
from .models import (
    ConnectionState,
    LogEvent,
    LogLevel,
    LogScope,
    TelemetrySnapshot,
    TransportKind,
    now_ms,
    parse_telemetry,
)
from .urls import derive_fallback_url


@dataclass
class TransportHandlers:
    """Optional callbacks; any slot left as None is skipped."""
    on_status_change: Optional[Callable[[ConnectionState, Optional[str]], None]] = None
    on_message: Optional[Callable[[str], None]] = None
    on_telemetry: Optional[Callable[[TelemetrySnapshot], None]] = None
    on_log: Optional[Callable[[LogEvent], None]] = None


class RobotTransportClient:
    """
    Command/telemetry client for the robot.

    Usage:
        client = RobotTransportClient(
            ws_url="ws://pi.local:9000/ws",
            handlers=TransportHandlers(on_telemetry=print),
        )
        client.connect()
        transport = await client.send({"type": "ping"})
        client.disconnect()

    connect() and disconnect() are synchronous; the live channel opens in the
    background and its progress is reported through on_status_change.
    Connectivity problems are never raised. Only send() fails, and only when
    a command could not be delivered on either transport.
    """

    def __init__(
        self,
        *,
        ws_url: Optional[str] = None,
        http_url: Optional[str] = None,
        handlers: Optional[TransportHandlers] = None,
        channel_factory: Callable[[str], LiveChannel] = WebSocketChannel,
        http_client: Optional[httpx.AsyncClient] = None,
        http_timeout: float = 10.0,
    ):
        """
        Initialize the client.

        Args:
            ws_url: Live channel URL (ws:// or wss://)
            http_url: Explicit fallback URL; derived from ws_url if omitted
            handlers: Status/message/telemetry/log callbacks
            channel_factory: Builds the live channel for a URL
            http_client: Shared httpx client for fallback requests (not closed by us)
            http_timeout: Timeout for fallback requests when no client is given
        """
        self.ws_url = ws_url or None
        self.http_url = http_url or derive_fallback_url(self.ws_url)
        self.handlers = handlers or TransportHandlers()
        self._channel_factory = channel_factory
        self._http_client = http_client
        self.http_timeout = http_timeout

        self._channel: Optional[LiveChannel] = None
        self._state = ConnectionState.DISCONNECTED
        self._alert: Optional[str] = None

    async def __aenter__(self):
        self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def alert(self) -> Optional[str]:
        """Human-readable explanation of the last state change, if any."""
        return self._alert

    def is_connected(self) -> bool:
        """Check if the live channel can carry commands right now."""
        return (
            self._channel is not None
            and self._state is ConnectionState.CONNECTED
            and self._channel.is_open
        )

    # ========== Lifecycle ==========

    def connect(self):
        """Open the live channel, replacing any existing one."""
        if self._channel is not None:
            self.disconnect()

        if not self.ws_url:
            self._set_state(
                ConnectionState.DISCONNECTED,
                "WebSocket URL is missing. Commands will attempt HTTP fallback if available.",
            )
            self._emit_log(
                LogScope.SYSTEM,
                LogLevel.ERROR,
                "Missing WebSocket URL",
                f"Set {WS_URL_ENV} to enable live telemetry.",
            )
            logger.error(f"❌ No live channel URL configured ({WS_URL_ENV})")
            return

        logger.info(f"🔌 Connecting to robot at {self.ws_url}...")
        self._set_state(ConnectionState.CONNECTING)

        channel = self._channel_factory(self.ws_url)
        self._channel = channel
        channel.on_open = lambda: self._handle_open(channel)
        channel.on_message = lambda message: self._handle_message(channel, message)
        channel.on_close = lambda: self._handle_close(channel)
        channel.on_error = lambda exc: self._handle_error(channel, exc)
        try:
            channel.start()
        except RuntimeError as e:
            # No running event loop; the channel never started
            self._channel = None
            channel.detach()
            logger.error(f"❌ Could not start live channel: {e}")
            self._set_state(
                ConnectionState.DISCONNECTED,
                "WebSocket could not start (no running event loop). Commands will use HTTP fallback",
            )
            raise

    def disconnect(self):
        """Close the live channel. No callbacks fire for it afterwards."""
        channel = self._channel
        if channel is None:
            return

        self._channel = None
        channel.detach()
        channel.close()
        self._state = ConnectionState.DISCONNECTED
        logger.info("🔌 Disconnected from robot")

    # ========== Live channel events ==========

    def _handle_open(self, channel: LiveChannel):
        if channel is not self._channel:
            return
        logger.info(f"✓ Live channel connected: {self.ws_url}")
        self._set_state(ConnectionState.CONNECTED)
        self._emit_log(LogScope.SESSION, LogLevel.SUCCESS, "WebSocket connected", self.ws_url)

    def _handle_close(self, channel: LiveChannel):
        if channel is not self._channel:
            return
        logger.warning("⚠️  Live channel closed, commands will use HTTP fallback")
        self._set_state(
            ConnectionState.DISCONNECTED,
            "WebSocket disconnected. Commands will use HTTP fallback",
        )
        self._emit_log(
            LogScope.SESSION,
            LogLevel.INFO,
            "WebSocket disconnected",
            "Falling back to HTTP until WS resumes.",
        )

    def _handle_error(self, channel: LiveChannel, exc: Exception):
        if channel is not self._channel:
            return
        logger.error(f"❌ Live channel error: {exc}")
        self._set_state(
            ConnectionState.DISCONNECTED,
            f"WebSocket connection failed. Using HTTP fallback; verify {WS_URL_ENV}.",
        )
        self._emit_log(
            LogScope.SESSION,
            LogLevel.ERROR,
            "WebSocket error",
            "Connection failed; using HTTP fallback.",
        )

    def _handle_message(self, channel: LiveChannel, message: str):
        if channel is not self._channel:
            return
        self._call(self.handlers.on_message, message)

        snapshot = parse_telemetry(message, received_at=now_ms())
        if snapshot is None:
            logger.trace(f"No telemetry in message: {message[:80]}")
            return
        self._call(self.handlers.on_telemetry, snapshot)

    # ========== Commands ==========

    async def send(self, command: Mapping[str, Any]) -> TransportKind:
        """
        Deliver a command to the robot.

        Args:
            command: JSON-serializable mapping, e.g. {"type": "drive", "throttle": 1, "steer": 0}

        Returns:
            TransportKind.LIVE or TransportKind.HTTP

        Raises:
            TransportUnavailableError: Live channel down and no fallback URL
            FallbackDeliveryError: Fallback request failed or returned non-2xx
        """
        payload = json.dumps(dict(command))

        channel = self._channel
        if channel is not None and self.is_connected():
            try:
                await channel.send(payload)
                logger.debug(f"📡 Sent via live channel: {payload}")
                return TransportKind.LIVE
            except ConnectionError as e:
                logger.warning(f"Live channel write failed, trying HTTP fallback: {e}")

        return await self._send_fallback(payload)

    async def _send_fallback(self, payload: str) -> TransportKind:
        url = self.http_url
        if not url:
            raise TransportUnavailableError(f"HTTP fallback unavailable; check {WS_URL_ENV}.")

        headers = {"Content-Type": "application/json"}
        try:
            if self._http_client is not None:
                response = await self._http_client.post(url, content=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.http_timeout) as client:
                    response = await client.post(url, content=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"❌ HTTP fallback request to {url} failed: {e}")
            raise FallbackDeliveryError(f"HTTP fallback request failed: {e}") from e

        if not response.is_success:
            logger.error(f"❌ HTTP fallback returned {response.status_code}")
            raise FallbackDeliveryError(
                f"HTTP fallback failed with status {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug(f"📮 Sent via HTTP fallback: {payload}")
        return TransportKind.HTTP

    # ========== Callback helpers ==========

    def _set_state(self, state: ConnectionState, alert: Optional[str] = None):
        self._state = state
        self._alert = alert
        self._call(self.handlers.on_status_change, state, alert)

    def _emit_log(self, scope: LogScope, level: LogLevel, title: str, detail: Optional[str] = None):
        event = LogEvent(ts=now_ms(), scope=scope, level=level, title=title, detail=detail)
        self._call(self.handlers.on_log, event)

    def _call(self, callback, *args):
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.exception(f"❌ Error in transport handler {getattr(callback, '__name__', callback)}: {e}")
