"""
Color tables and the per-row color resolution strategies.
"""

from __future__ import annotations

import enum
import re
from typing import Dict, Mapping, Optional

from pigger_timeline.config import get_secret

HEX_COLOR_RE = re.compile(r"^#([0-9A-Fa-f]{3}){1,2}$")

FALLBACK_COLOR = "#607d8b"
MILESTONE_COLOR = "#d32f2f"

# Recommended swatches shown in the sidebar; users paste these into the Color column.
PALETTE: Dict[str, str] = {
    "blue": "#2196f3",
    "green": "#4caf50",
    "yellow": "#ffeb3b",
    "orange": "#ff9800",
    "red": "#f44336",
    "purple": "#9c27b0",
    "cyan": "#00bcd4",
    "gray": "#607d8b",
    "dark": "#263238",
}

PERSON_COLORS: Dict[str, str] = {
    "RD": "#4caf50",
    "UI": "#2196f3",
    "PM": "#ff9800",
}

# A Color cell may also name a palette entry or a person key.
COLOR_ALIASES: Dict[str, str] = {**PALETTE, **PERSON_COLORS}

STATUS_COLORS: Dict[str, str] = {
    "未開始": "#607d8b",
    "進行中": "#2196f3",
    "已完成": "#4caf50",
    "延遲": "#ff9800",
    "暫停": "#263238",
    "重要會議": "#9c27b0",
}


class ColoringPolicy(str, enum.Enum):
    BY_PERSON = "person"
    BY_STATUS = "status"


DEFAULT_COLORING_POLICY = ColoringPolicy.BY_PERSON


def coloring_policy_from_env() -> ColoringPolicy:
    raw = (get_secret("COLORING_POLICY") or "").strip().lower()
    try:
        return ColoringPolicy(raw)
    except ValueError:
        return DEFAULT_COLORING_POLICY


def is_hex_color(value: Optional[str]) -> bool:
    return bool(value) and HEX_COLOR_RE.match(value) is not None


def color_by_person(
    row: Mapping[str, str],
    aliases: Mapping[str, str] = COLOR_ALIASES,
    person_colors: Mapping[str, str] = PERSON_COLORS,
) -> str:
    """Explicit hex, then alias key, then the person's default, then gray."""
    color = row.get("Color") or ""
    if is_hex_color(color):
        return color
    if color and color in aliases:
        return aliases[color]
    return person_colors.get(row.get("Person") or "", FALLBACK_COLOR)


def color_by_status(
    row: Mapping[str, str],
    status_colors: Mapping[str, str] = STATUS_COLORS,
) -> str:
    """Milestones are always red; everything else follows its status."""
    if row.get("Type") == "Milestone":
        return MILESTONE_COLOR
    return status_colors.get(row.get("Status") or "", FALLBACK_COLOR)


def get_color(row: Mapping[str, str], policy: ColoringPolicy = DEFAULT_COLORING_POLICY) -> str:
    if policy is ColoringPolicy.BY_STATUS:
        return color_by_status(row)
    return color_by_person(row)
