"""
Application-wide configuration constants and helper utilities.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

import streamlit as st
from streamlit.errors import StreamlitAPIException


@dataclass(frozen=True)
class TabConfig:
    key: str
    label: str


# Ordered tab definitions for the dashboard
TABS: List[TabConfig] = [
    TabConfig("timeline", "Timeline"),
    TabConfig("tasks", "Tasks"),
    TabConfig("feed_health", "Feed Health"),
]

APP_TITLE = "PiggerTimeline"

FEED_URL_KEY = "CSV_URL"
DEFAULT_REFRESH_INTERVAL_SECONDS = 60
DEFAULT_FEED_TIMEOUT_SECONDS = 15.0
DATE_PADDING_DAYS = 7


def get_secret(name: str, default: Optional[str] = None) -> Optional[str]:
    """Try env first, then st.secrets (if available)."""
    val = os.getenv(name)
    if val:
        return val
    try:
        sec = getattr(st, "secrets", None)
        if sec:
            v = sec.get(name)  # type: ignore[index]
            return str(v) if v is not None else default
    except (FileNotFoundError, StreamlitAPIException):
        pass
    return default


def _positive_number(name: str, default: float) -> float:
    raw = get_secret(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def refresh_interval_seconds() -> int:
    return int(_positive_number("REFRESH_INTERVAL_SECONDS", DEFAULT_REFRESH_INTERVAL_SECONDS))


def feed_timeout_seconds() -> float:
    return _positive_number("FEED_TIMEOUT_SECONDS", DEFAULT_FEED_TIMEOUT_SECONDS)
