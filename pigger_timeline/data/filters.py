"""
Filter utilities that apply the sidebar selections to the feed rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import pandas as pd

MILESTONE_TYPE = "Milestone"


@dataclass(frozen=True)
class FilterState:
    person: Optional[str] = None
    status: Optional[str] = None
    show_milestones: bool = True


DEFAULT_FILTERS = FilterState()


def apply_filters(df: pd.DataFrame, filters: FilterState) -> pd.DataFrame:
    """
    Return the rows passing every active filter, in feed order.

    An empty person/status selection means "all"; milestones are dropped only
    when the milestone toggle is off.
    """
    if df.empty:
        return df.copy()
    mask = pd.Series(True, index=df.index)
    if not filters.show_milestones:
        mask &= df["Type"] != MILESTONE_TYPE
    if filters.person:
        mask &= df["Person"] == filters.person
    if filters.status:
        mask &= df["Status"] == filters.status
    return df[mask].copy()


def serialize_filters(filters: FilterState) -> Dict[str, Any]:
    """
    Convert the FilterState dataclass to a JSON-serialisable dictionary to be
    stored in session_state or used for logging/debugging.
    """
    return {
        "person": filters.person,
        "status": filters.status,
        "show_milestones": filters.show_milestones,
    }
