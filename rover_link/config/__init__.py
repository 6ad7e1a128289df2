"""Configuration and constants for the robot link."""

import os
from dotenv import load_dotenv

# Load environment variables from .env.local first, then .env
load_dotenv('.env.local')
load_dotenv()  # Also load from .env if .env.local doesn't exist

# Name of the variable operators are pointed at when the live channel is misconfigured
WS_URL_ENV = "ROBOT_WS_URL"

DEFAULT_WS_URL = "ws://pi.local:9000/ws"


def get_fresh_config() -> dict:
    """
    Read link settings from the environment.

    Read at call time rather than import time so entry points pick up
    variables set after import (tests, wrapper scripts).

    Returns:
        Dict with ws_url, http_url, sse_url, http_timeout, sse_retry_delay
        and activity_log_size
    """
    return {
        "ws_url": os.getenv(WS_URL_ENV, DEFAULT_WS_URL) or None,
        "http_url": os.getenv("ROBOT_HTTP_URL") or None,
        "sse_url": os.getenv("ACTIVITY_SSE_URL") or None,
        "http_timeout": float(os.getenv("HTTP_TIMEOUT", "10.0")),
        "sse_retry_delay": float(os.getenv("SSE_RETRY_DELAY", "3.0")),
        "activity_log_size": int(os.getenv("ACTIVITY_LOG_SIZE", "40")),
    }
