"""
View-model building: turn feed rows plus the current FilterState into the
display-ready projection consumed by the timeline, table and health pages.

`build` is pure. Given the same rows, filters, policy and `today` it returns
the same DerivedView; the input frame is never modified.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from pigger_timeline.config import DATE_PADDING_DAYS
from pigger_timeline.data.colors import (
    DEFAULT_COLORING_POLICY,
    MILESTONE_COLOR,
    ColoringPolicy,
    get_color,
)
from pigger_timeline.data.filters import DEFAULT_FILTERS, MILESTONE_TYPE, FilterState, apply_filters
from pigger_timeline.data.loader import FEED_COLUMNS

DATE_PATTERNS: List[str] = [
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%m/%d/%Y",
    "%d.%m.%Y",
]
LINK_PREFIX = "http"
_WHITESPACE_RE = re.compile(r"\s")
_UTC_OFFSET_RE = re.compile(
    r"(\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?)\s*(?:Z|UTC|GMT|[+-]\d{2}(?::?\d{2})?)$", re.IGNORECASE
)


@dataclass(frozen=True)
class DateWindow:
    start: date
    end: date


@dataclass(frozen=True)
class LinkTarget:
    value: str
    actionable: bool


@dataclass
class DerivedView:
    visible_rows: pd.DataFrame
    person_facets: List[str]
    status_facets: List[str]
    date_window: DateWindow
    entries: List[Dict[str, Any]] = field(default_factory=list)
    resources: List[Dict[str, str]] = field(default_factory=list)
    markers: List[Dict[str, Any]] = field(default_factory=list)
    coloring_policy: ColoringPolicy = DEFAULT_COLORING_POLICY

    @property
    def coerced_count(self) -> int:
        if self.visible_rows.empty:
            return 0
        return int(self.visible_rows["date_coerced"].sum())

    def entry(self, entry_id: str) -> Optional[Dict[str, Any]]:
        return next((e for e in self.entries if e["id"] == entry_id), None)


def distinct_values(series: pd.Series) -> List[str]:
    """Distinct non-blank values in first-seen order."""
    return [v for v in dict.fromkeys(series.astype(str)) if v.strip()]


def extract_facets(df: pd.DataFrame) -> Tuple[List[str], List[str]]:
    if df.empty:
        return [], []
    return distinct_values(df["Person"]), distinct_values(df["Status"])


def facets_changed(df: pd.DataFrame, person_facets: List[str], status_facets: List[str]) -> bool:
    """True when `df` yields different facet lists than the ones the sidebar was built from."""
    return extract_facets(df) != (list(person_facets), list(status_facets))


def _strip_utc_offset(raw: pd.Series) -> pd.Series:
    # "2024-01-05T23:00:00-05:00" -> "2024-01-05T23:00:00": keep the wall-clock date
    return raw.str.replace(_UTC_OFFSET_RE, r"\1", regex=True)


def _parse_loose(value: str) -> pd.Timestamp:
    parsed = pd.to_datetime(value, format="mixed", errors="coerce")
    if pd.notna(parsed) and parsed.tzinfo is not None:
        parsed = parsed.tz_localize(None)
    return parsed


def parse_dates(series: pd.Series) -> Tuple[pd.Series, pd.Series]:
    """Parse feed date strings; return (naive timestamps or NaT, failure reasons).

    ISO 8601 first, then the explicit `DATE_PATTERNS`, then a free-form pass
    (dateutil) for values such as "Jan 5, 2024". A UTC offset is dropped
    rather than converted, so each value keeps its own calendar date.
    """
    raw = series.astype(str).str.strip()
    text = _strip_utc_offset(raw)
    parsed = pd.to_datetime(text, errors="coerce", format="ISO8601")
    remaining_mask = parsed.isna() & raw.ne("")
    reasons = pd.Series([None] * len(raw), index=raw.index, dtype=object)

    for fmt in DATE_PATTERNS:
        if not remaining_mask.any():
            break
        attempt = pd.to_datetime(text[remaining_mask], format=fmt, errors="coerce")
        success_mask = attempt.notna()
        parsed.loc[success_mask.index[success_mask]] = attempt[success_mask]
        remaining_mask = parsed.isna() & raw.ne("")

    if remaining_mask.any():
        attempt = pd.to_datetime(text[remaining_mask].map(_parse_loose), errors="coerce")
        success_mask = attempt.notna()
        parsed.loc[success_mask.index[success_mask]] = attempt[success_mask]
        remaining_mask = parsed.isna() & raw.ne("")

    reasons[raw.eq("")] = "blank"
    reasons[remaining_mask] = "unparsed_format"
    return parsed, reasons


def resolve_dates(df: pd.DataFrame, today: date) -> pd.DataFrame:
    """Attach effective `start_date`/`end_date` columns.

    Blank or unparseable Start falls back to today and End to today + 1; the
    row stays visible and is flagged through `date_coerced` / `date_issue`.
    """
    out = df.copy()
    start, start_issue = parse_dates(out["Start"])
    end, end_issue = parse_dates(out["End"])
    fallback_end = today + timedelta(days=1)

    out["start_date"] = [ts.date() if pd.notna(ts) else today for ts in start]
    out["end_date"] = [ts.date() if pd.notna(ts) else fallback_end for ts in end]
    out["date_coerced"] = (start.isna() | end.isna()).astype(bool)
    out["date_issue"] = [
        "; ".join(f"{label}: {reason}" for label, reason in (("Start", s), ("End", e)) if reason)
        for s, e in zip(start_issue, end_issue)
    ]
    return out


def compute_date_window(df: pd.DataFrame, today: date, padding_days: int = DATE_PADDING_DAYS) -> DateWindow:
    """Span of the effective dates of `df`, padded both sides; today when empty."""
    if df.empty:
        return DateWindow(today, today)
    dates = list(df["start_date"]) + list(df["end_date"])
    pad = timedelta(days=padding_days)
    return DateWindow(min(dates) - pad, max(dates) + pad)


def resolve_link(row: Mapping[str, Any]) -> LinkTarget:
    """URL if present, else Note; only values starting with 'http' are navigable."""
    value = row.get("URL") or row.get("Note") or ""
    return LinkTarget(value=value, actionable=value.startswith(LINK_PREFIX))


def status_class(status: str) -> str:
    return _WHITESPACE_RE.sub("", status or "")


def entry_key(row: Mapping[str, Any]) -> str:
    return f"{row.get('Person', '')}|{row.get('Task', '')}|{row.get('Start', '')}"


def _source_columns(df: pd.DataFrame) -> List[str]:
    derived = {"start_date", "end_date", "date_coerced", "date_issue"}
    return [c for c in df.columns if c not in derived]


def build_entries(df: pd.DataFrame, policy: ColoringPolicy) -> List[Dict[str, Any]]:
    columns = _source_columns(df)
    entries = []
    for idx, row in enumerate(df.to_dict("records")):
        link = resolve_link(row)
        props = {col: row[col] for col in columns}
        props.update(
            date_coerced=bool(row["date_coerced"]),
            date_issue=row["date_issue"],
            link=link.value,
            link_actionable=link.actionable,
            key=entry_key(row),
        )
        entries.append(
            {
                "id": str(idx),
                "resourceId": row["Person"],
                "title": row["Task"],
                "start": row["start_date"].isoformat(),
                "end": row["end_date"].isoformat(),
                "backgroundColor": get_color(row, policy),
                "classNames": [status_class(row["Status"])],
                "extendedProps": props,
            }
        )
    return entries


def build_markers(df: pd.DataFrame) -> List[Dict[str, Any]]:
    milestones = df[df["Type"] == MILESTONE_TYPE] if not df.empty else df
    return [
        {
            "id": f"m-{idx}",
            "resourceId": row["Person"],
            "start": row["start_date"].isoformat(),
            "display": "background",
            "backgroundColor": MILESTONE_COLOR,
            "borderColor": MILESTONE_COLOR,
        }
        for idx, row in enumerate(milestones.to_dict("records"))
    ]


def build_resources(df: pd.DataFrame, person_facets: List[str]) -> List[Dict[str, str]]:
    """People owning a visible milestone first, then everyone else from the feed."""
    milestone_people = distinct_values(df.loc[df["Type"] == MILESTONE_TYPE, "Person"]) if not df.empty else []
    ordered = milestone_people + [p for p in person_facets if p not in milestone_people]
    return [{"id": p, "title": p} for p in ordered]


def _empty_rows() -> pd.DataFrame:
    return pd.DataFrame({col: pd.Series(dtype=object) for col in FEED_COLUMNS})


def build(
    rows: pd.DataFrame,
    filters: FilterState = DEFAULT_FILTERS,
    policy: ColoringPolicy = DEFAULT_COLORING_POLICY,
    today: Optional[date] = None,
    padding_days: int = DATE_PADDING_DAYS,
) -> DerivedView:
    today = today or date.today()
    if rows is None or rows.columns.empty:
        rows = _empty_rows()

    person_facets, status_facets = extract_facets(rows)
    visible = resolve_dates(apply_filters(rows, filters), today)

    return DerivedView(
        visible_rows=visible,
        person_facets=person_facets,
        status_facets=status_facets,
        date_window=compute_date_window(visible, today, padding_days),
        entries=build_entries(visible, policy),
        resources=build_resources(visible, person_facets),
        markers=build_markers(visible),
        coloring_policy=policy,
    )
