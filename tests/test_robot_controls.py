"""Tests for RobotControls command helpers."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from rover_link.services import DRIVE_PRESETS, RobotControls
from rover_link.transport import (
    FallbackDeliveryError,
    TransportKind,
    TransportUnavailableError,
)


def _make_client(result=TransportKind.LIVE) -> MagicMock:
    """Build a mock transport client whose send() returns result."""
    client = MagicMock()
    if isinstance(result, Exception):
        client.send = AsyncMock(side_effect=result)
    else:
        client.send = AsyncMock(return_value=result)
    return client


@pytest.mark.asyncio
async def test_drive_payload():
    client = _make_client()
    controls = RobotControls(client)

    await controls.drive(0.5, -1)

    client.send.assert_awaited_once_with({"type": "drive", "throttle": 0.5, "steer": -1})


@pytest.mark.asyncio
@pytest.mark.parametrize("name", sorted(DRIVE_PRESETS))
async def test_presets(name):
    client = _make_client()
    controls = RobotControls(client)

    await controls.preset(name)

    throttle, steer = DRIVE_PRESETS[name]
    client.send.assert_awaited_once_with({"type": "drive", "throttle": throttle, "steer": steer})


@pytest.mark.asyncio
async def test_unknown_preset():
    controls = RobotControls(_make_client())

    with pytest.raises(ValueError):
        await controls.preset("sideways")


@pytest.mark.asyncio
async def test_stop_and_ping_payloads():
    client = _make_client()
    controls = RobotControls(client)

    await controls.stop()
    await controls.ping()

    assert [call.args[0] for call in client.send.await_args_list] == [{"type": "stop"}, {"type": "ping"}]


@pytest.mark.asyncio
async def test_feedback_live():
    controls = RobotControls(_make_client(TransportKind.LIVE))

    assert await controls.ping() == "Sent via WebSocket"
    assert controls.last_feedback == "Sent via WebSocket"


@pytest.mark.asyncio
async def test_feedback_http():
    controls = RobotControls(_make_client(TransportKind.HTTP))

    assert await controls.stop() == "Sent via HTTP fallback"


@pytest.mark.asyncio
@pytest.mark.parametrize("error, message", [
    (FallbackDeliveryError("HTTP fallback failed with status 500", status_code=500), "status 500"),
    (TransportUnavailableError("HTTP fallback unavailable; check ROBOT_WS_URL."), "unavailable"),
])
async def test_feedback_failure(error, message):
    controls = RobotControls(_make_client(error))

    feedback = await controls.stop()

    assert feedback.startswith("Send failed: ")
    assert message in feedback


@pytest.mark.asyncio
async def test_no_client():
    controls = RobotControls(None)

    assert await controls.ping() == "Send failed: WebSocket client unavailable"
