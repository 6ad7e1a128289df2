"""Activity feed shared between the transport, the event stream and the UI."""

import random
import string
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger

from ..transport.models import LogEvent, LogLevel, LogScope

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def make_entry_id(ts: int) -> str:
    """Entry id: base36 timestamp plus six random base36 characters."""
    suffix = "".join(random.choices(_BASE36, k=6))
    return f"{_to_base36(ts)}-{suffix}"


@dataclass(frozen=True)
class ActivityLogEntry:
    """A LogEvent with a feed id."""
    id: str
    ts: int
    scope: LogScope
    level: LogLevel
    title: str
    detail: Optional[str] = None

    @classmethod
    def from_event(cls, event: LogEvent, entry_id: Optional[str] = None) -> "ActivityLogEntry":
        return cls(
            id=entry_id or make_entry_id(event.ts),
            ts=event.ts,
            scope=event.scope,
            level=event.level,
            title=event.title,
            detail=event.detail,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ActivityLogEntry":
        """
        Build an entry from its JSON shape.

        Raises:
            KeyError: Missing id/ts/scope/level/title
            ValueError: Unknown scope or level, or non-integer ts
        """
        ts = data["ts"]
        if isinstance(ts, bool) or not isinstance(ts, (int, float)):
            raise ValueError(f"Invalid ts: {ts!r}")
        detail = data.get("detail")
        return cls(
            id=str(data["id"]),
            ts=int(ts),
            scope=LogScope(data["scope"]),
            level=LogLevel(data["level"]),
            title=str(data["title"]),
            detail=None if detail is None else str(detail),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "ts": self.ts,
            "scope": self.scope.value,
            "level": self.level.value,
            "title": self.title,
        }
        if self.detail is not None:
            data["detail"] = self.detail
        return data


@dataclass
class ActivityLog:
    """Thread-safe, bounded, newest-first activity feed."""
    max_items: int = 40
    _entries: deque = field(init=False, repr=False, default_factory=deque)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self):
        if self.max_items < 1:
            raise ValueError("max_items must be at least 1")
        self._entries = deque(maxlen=self.max_items)

    def push(self, event: LogEvent) -> ActivityLogEntry:
        """Add a transport/log event; usable directly as TransportHandlers.on_log."""
        entry = ActivityLogEntry.from_event(event)
        with self.lock:
            self._entries.appendleft(entry)
        logger.debug(f"📝 [{entry.scope.value}] {entry.title}")
        return entry

    def add(self, entry: ActivityLogEntry) -> bool:
        """
        Add an entry that already carries an id.

        Returns:
            False if an entry with the same id is already in the feed
        """
        with self.lock:
            if any(existing.id == entry.id for existing in self._entries):
                return False
            self._entries.appendleft(entry)
        return True

    def entries(self, limit: Optional[int] = None) -> List[ActivityLogEntry]:
        """Get entries, newest first."""
        with self.lock:
            items = list(self._entries)
        return items if limit is None else items[:limit]

    def clear(self):
        with self.lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self._entries)
