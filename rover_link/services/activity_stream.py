"""
Activity event stream - server-sent events into the ActivityLog.

The robot-side detector publishes activity entries (detections, session
notes) as SSE. Each `data:` payload is one JSON ActivityLogEntry.
"""

import asyncio
import json
from typing import Callable, List, Optional

import httpx
from loguru import logger

from .activity_log import ActivityLog, ActivityLogEntry


class SSEParser:
    """Line-oriented server-sent-events parser (data and retry fields only)."""

    def __init__(self):
        self._data: List[str] = []
        self.retry_ms: Optional[int] = None

    def feed_line(self, line: str) -> Optional[str]:
        """
        Feed one line without its terminator.

        Returns:
            The event's data when a blank line completes an event, else None
        """
        if line == "":
            if not self._data:
                return None
            data = "\n".join(self._data)
            self._data = []
            return data

        if line.startswith(":"):
            return None

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "data":
            self._data.append(value)
        elif name == "retry" and value.isdigit():
            self.retry_ms = int(value)
        return None


class ActivityStream:
    """
    Keeps an SSE connection open and feeds entries into an ActivityLog.

    Usage:
        stream = ActivityStream(activity_log, url="http://pi.local:5000/events")
        stream.start()
        ...
        await stream.stop()
    """

    def __init__(
        self,
        activity_log: ActivityLog,
        url: Optional[str] = None,
        *,
        retry_delay: float = 3.0,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
        on_open: Optional[Callable[[], None]] = None,
        on_entry: Optional[Callable[[ActivityLogEntry], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        """
        Args:
            activity_log: Feed that receives parsed entries
            url: SSE endpoint; without it run() returns immediately
            retry_delay: Seconds before reconnecting (the server's retry field overrides)
            timeout: Connect/write timeout; reads wait indefinitely
            http_client: Shared httpx client (not closed by us)
            on_open: Called each time the stream connects
            on_entry: Called for each new entry only. An id already in the
                log is skipped without a call, unlike the dashboard's
                browser hook, which notified on duplicates too.
            on_error: Called with connection errors
        """
        self.activity_log = activity_log
        self.url = url or None
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._http_client = http_client
        self.on_open = on_open
        self.on_entry = on_entry
        self.on_error = on_error

        self._stopped = False
        self._task: Optional[asyncio.Task] = None

    def start(self) -> Optional[asyncio.Task]:
        """Run the stream in a background task."""
        if not self.url:
            logger.warning("SSE URL not configured. Set ACTIVITY_SSE_URL environment variable.")
            return None
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run(), name="activity-stream")
        return self._task

    async def stop(self):
        """Stop reconnecting and close the current stream."""
        self._stopped = True
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("📴 Activity stream stopped")

    async def run(self):
        """Consume the stream until stop(), reconnecting after errors."""
        if not self.url:
            logger.warning("SSE URL not configured. Set ACTIVITY_SSE_URL environment variable.")
            return

        self._stopped = False
        while not self._stopped:
            try:
                await self._consume()
            except httpx.HTTPError as e:
                logger.error(f"SSE connection error: {e}")
                self._call(self.on_error, e)

            if self._stopped:
                break
            logger.debug(f"🔄 Reconnecting activity stream in {self.retry_delay}s")
            await asyncio.sleep(self.retry_delay)

    async def _consume(self):
        if self._http_client is not None:
            await self._read_stream(self._http_client)
        else:
            timeout = httpx.Timeout(self.timeout, read=None)
            async with httpx.AsyncClient(timeout=timeout) as client:
                await self._read_stream(client)

    async def _read_stream(self, client: httpx.AsyncClient):
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        async with client.stream("GET", self.url, headers=headers) as response:
            response.raise_for_status()
            logger.info(f"📡 Activity stream connected: {self.url}")
            self._call(self.on_open)

            parser = SSEParser()
            async for line in response.aiter_lines():
                data = parser.feed_line(line.rstrip("\r"))
                if parser.retry_ms is not None:
                    self.retry_delay = parser.retry_ms / 1000
                if data is not None:
                    self.handle_data(data)
                if self._stopped:
                    return
        logger.info("Activity stream ended")

    def handle_data(self, data: str) -> Optional[ActivityLogEntry]:
        """
        Parse one event payload and add it to the log.

        Returns:
            The entry if it was new, else None (duplicate or unparseable)
        """
        try:
            entry = ActivityLogEntry.from_dict(json.loads(data))
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to parse SSE message: {e}")
            return None

        if not self.activity_log.add(entry):
            return None
        self._call(self.on_entry, entry)
        return entry

    def _call(self, callback, *args):
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.exception(f"❌ Error in activity stream handler: {e}")
