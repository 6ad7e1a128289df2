"""Live channel → HTTP fallback URL mapping."""

from typing import Optional

_SCHEME_MAP = {
    "ws": "http",
    "wss": "https",
}


def derive_fallback_url(ws_url: Optional[str]) -> Optional[str]:
    """
    Derive the HTTP fallback endpoint from a WebSocket URL.

    Examples:
        wss://robot.example/ws -> https://robot.example/ws
        ws://pi.local:9000/ws  -> http://pi.local:9000/ws

    Args:
        ws_url: Live channel URL

    Returns:
        Fallback URL, or None when ws_url is empty or not a ws/wss URL
    """
    if not ws_url:
        return None

    scheme, sep, rest = ws_url.partition(":")
    mapped = _SCHEME_MAP.get(scheme.lower())
    if not sep or mapped is None:
        return None
    return f"{mapped}:{rest}"
