#!/usr/bin/env python3
"""
Check the command/telemetry link to the robot.

Opens the live channel, waits for it (or gives up and relies on the HTTP
fallback), sends one command and reports which transport delivered it.
With --sse-url the activity event stream is followed for the same run.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

# Allow running from a checkout without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from rover_link.config import get_fresh_config
from rover_link.services import ActivityLog, ActivityStream
from rover_link.transport import (
    ConnectionState,
    RobotTransportClient,
    RobotTransportError,
    TransportHandlers,
    WebSocketChannel,
)

COMMANDS = {
    "ping": {"type": "ping"},
    "stop": {"type": "stop"},
}


async def check_link(
    ws_url,
    http_url=None,
    command: str = "ping",
    timeout: float = 10.0,
    channel_factory=WebSocketChannel,
    sse_url: Optional[str] = None,
    sse_retry_delay: float = 3.0,
    activity_log: Optional[ActivityLog] = None,
) -> bool:
    """
    Connect, send one command, disconnect.

    Transport log events and, with sse_url, streamed activity entries are
    collected in activity_log.

    Returns:
        True if the command was delivered on either transport
    """
    logger.info("=" * 60)
    logger.info("🧪 Checking robot link")
    logger.info("=" * 60)
    logger.info(f"Live channel: {ws_url or '(not set)'}")

    if activity_log is None:
        activity_log = ActivityLog()
    settled = asyncio.Event()

    def on_status(state, alert):
        logger.info(f"🔗 Status: {state.value}" + (f" ({alert})" if alert else ""))
        if state is not ConnectionState.CONNECTING:
            settled.set()

    def on_log(event):
        log = logger.error if event.level.value == "error" else logger.info
        log(f"[{event.scope.value}] {event.title}" + (f": {event.detail}" if event.detail else ""))
        activity_log.push(event)

    def on_telemetry(snapshot):
        logger.info(f"📊 Telemetry: {snapshot.to_dict()}")

    def on_entry(entry):
        logger.info(f"📝 Activity [{entry.scope.value}] {entry.title}")

    stream = None
    if sse_url:
        stream = ActivityStream(
            activity_log,
            sse_url,
            retry_delay=sse_retry_delay,
            timeout=timeout,
            on_entry=on_entry,
        )
        stream.start()

    client = RobotTransportClient(
        ws_url=ws_url,
        http_url=http_url,
        handlers=TransportHandlers(
            on_status_change=on_status,
            on_message=lambda message: logger.debug(f"📡 {message}"),
            on_telemetry=on_telemetry,
            on_log=on_log,
        ),
        channel_factory=channel_factory,
        http_timeout=timeout,
    )

    try:
        client.connect()

        logger.info("⏳ Waiting for live channel...")
        try:
            await asyncio.wait_for(settled.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("⚠️  Live channel did not settle, trying anyway")

        logger.info(f"📤 Sending {command}...")
        try:
            transport = await client.send(COMMANDS[command])
        except RobotTransportError as e:
            logger.error(f"❌ Send failed: {e}")
            return False

        logger.info(f"✅ Delivered via {transport.value}")
        return True
    finally:
        logger.info("🧹 Disconnecting...")
        client.disconnect()
        if stream is not None:
            await stream.stop()
        logger.info(f"✓ Check complete ({len(activity_log)} activity entries)")


def main(argv=None) -> int:
    settings = get_fresh_config()

    parser = argparse.ArgumentParser(description="Check the robot command/telemetry link")
    parser.add_argument("--ws-url", default=settings["ws_url"], help="Live channel URL (default: ROBOT_WS_URL)")
    parser.add_argument("--http-url", default=settings["http_url"], help="Explicit HTTP fallback URL")
    parser.add_argument("--sse-url", default=settings["sse_url"], help="Activity event stream (default: ACTIVITY_SSE_URL)")
    parser.add_argument("--timeout", type=float, default=settings["http_timeout"], help="Seconds to wait (default: HTTP_TIMEOUT)")
    parser.add_argument("--command", choices=sorted(COMMANDS), default="ping", help="Command to send")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.debug else "INFO")

    activity_log = ActivityLog(max_items=settings["activity_log_size"])
    try:
        ok = asyncio.run(check_link(
            args.ws_url,
            args.http_url,
            args.command,
            args.timeout,
            sse_url=args.sse_url,
            sse_retry_delay=settings["sse_retry_delay"],
            activity_log=activity_log,
        ))
    except KeyboardInterrupt:
        logger.info("🛑 Interrupted by user")
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
