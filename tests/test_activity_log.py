"""Tests for the ActivityLog feed."""

import re

import pytest

from rover_link.services import ActivityLog, ActivityLogEntry
from rover_link.services.activity_log import make_entry_id
from rover_link.transport import LogEvent, LogLevel, LogScope


def _event(title: str, ts: int = 1_700_000_000_000) -> LogEvent:
    return LogEvent(ts=ts, scope=LogScope.SESSION, level=LogLevel.INFO, title=title)


def test_entry_id_format():
    entry_id = make_entry_id(1_700_000_000_000)

    assert re.fullmatch(r"[0-9a-z]+-[0-9a-z]{6}", entry_id)
    assert entry_id.startswith("loyw3v28-")


def test_push_is_newest_first():
    log = ActivityLog()
    log.push(_event("first"))
    log.push(_event("second"))

    assert [entry.title for entry in log.entries()] == ["second", "first"]


def test_push_keeps_event_fields():
    log = ActivityLog()
    entry = log.push(LogEvent(ts=5, scope=LogScope.SYSTEM, level=LogLevel.ERROR, title="t", detail="d"))

    assert entry.ts == 5
    assert entry.scope is LogScope.SYSTEM
    assert entry.level is LogLevel.ERROR
    assert entry.detail == "d"
    assert entry.id


def test_capacity_drops_oldest():
    log = ActivityLog(max_items=3)
    for i in range(5):
        log.push(_event(f"event {i}"))

    assert len(log) == 3
    assert [entry.title for entry in log.entries()] == ["event 4", "event 3", "event 2"]


def test_entries_limit():
    log = ActivityLog()
    for i in range(4):
        log.push(_event(f"event {i}"))

    assert len(log.entries(limit=2)) == 2


def test_add_ignores_duplicate_ids():
    log = ActivityLog()
    entry = ActivityLogEntry(id="abc", ts=1, scope=LogScope.DETECTION, level=LogLevel.INFO, title="person")

    assert log.add(entry) is True
    assert log.add(entry) is False
    assert len(log) == 1


def test_clear():
    log = ActivityLog()
    log.push(_event("x"))
    log.clear()

    assert log.entries() == []


def test_invalid_capacity():
    with pytest.raises(ValueError):
        ActivityLog(max_items=0)


def test_entry_dict_roundtrip_shape():
    data = {"id": "k1", "ts": 10, "scope": "detection", "level": "success", "title": "cat", "detail": "0.91"}
    entry = ActivityLogEntry.from_dict(data)

    assert entry.scope is LogScope.DETECTION
    assert entry.to_dict() == data


@pytest.mark.parametrize("data", [
    {"ts": 1, "scope": "session", "level": "info", "title": "no id"},
    {"id": "a", "ts": "soon", "scope": "session", "level": "info", "title": "t"},
    {"id": "a", "ts": 1, "scope": "galaxy", "level": "info", "title": "t"},
    {"id": "a", "ts": 1, "scope": "session", "level": "warning", "title": "t"},
])
def test_entry_from_invalid_dict(data):
    with pytest.raises((KeyError, ValueError)):
        ActivityLogEntry.from_dict(data)
