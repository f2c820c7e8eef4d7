"""
Utility helpers for formatting counts, timestamps, ages and date windows.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional


def format_number(value: Optional[float], decimals: int = 0) -> str:
    if value is None:
        return "–"
    try:
        return f"{value:,.{decimals}f}"
    except (TypeError, ValueError):
        return "–"


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return "never"
    if value.tzinfo is not None:
        return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    return value.strftime("%Y-%m-%d %H:%M:%S")


def format_age(delta: Optional[timedelta]) -> str:
    if delta is None:
        return "–"
    seconds = int(delta.total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60} min ago"
    if seconds < 86400:
        return f"{seconds // 3600} h ago"
    return f"{seconds // 86400} d ago"


def format_date_window(start: date, end: date) -> str:
    if start == end:
        return start.isoformat()
    return f"{start.isoformat()} → {end.isoformat()}"
