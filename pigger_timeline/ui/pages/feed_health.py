from __future__ import annotations

import pandas as pd
import streamlit as st

from pigger_timeline.data.filters import MILESTONE_TYPE, FilterState, serialize_filters
from pigger_timeline.data.refresh import FeedState
from pigger_timeline.ui.components.formatting import format_age, format_timestamp
from pigger_timeline.ui.components.kpi import KpiCard, render_kpi_cards
from pigger_timeline.ui.components.tables import render_table
from pigger_timeline.ui.pages.context import PageContext


def _compute_feed_metrics(state: FeedState, context: PageContext) -> list[KpiCard]:
    rows = state.rows
    visible = context.view.visible_rows
    milestones = int((rows["Type"] == MILESTONE_TYPE).sum()) if not rows.empty else 0
    return [
        KpiCard(label="Rows in Feed", value=len(rows)),
        KpiCard(label="Visible Entries", value=len(visible)),
        KpiCard(label="Milestones", value=milestones),
        KpiCard(
            label="Defaulted Dates",
            value=context.view.coerced_count,
            help_text="Visible rows whose Start or End was blank or unreadable.",
        ),
    ]


def _diagnostics_items(state: FeedState, filters: FilterState) -> dict:
    """Feed diagnostics from the loader plus the filters applied to this view."""
    items = dict(state.rows.attrs.get("diagnostics", {}))
    if items:
        items["active_filters"] = serialize_filters(filters)
    return items


def render(context: PageContext) -> None:
    st.subheader("Feed Health")
    state = context.feed_state
    monitor = context.monitor

    render_kpi_cards(_compute_feed_metrics(state, context), columns=4)

    st.markdown("#### Refresh Status")
    now = monitor.clock()
    last_success = state.last_success_at
    st.write(f"- **Last successful refresh**: {format_timestamp(last_success)}"
             f" ({format_age(now - last_success) if last_success else '–'})")
    st.write(f"- **Successful refreshes this session**: {state.refresh_count}")
    st.write(f"- **Auto refresh**: {'on' if monitor.active else 'off'}"
             f", every {int(monitor.interval.total_seconds())} s")
    if state.error is not None:
        st.error(f"Last attempt at {format_timestamp(state.last_error_at)} failed: {state.error}")

    st.markdown("#### Diagnostics Summary")
    diagnostics = _diagnostics_items(state, context.filters)
    if diagnostics:
        for key, value in diagnostics.items():
            st.write(f"- **{key.replace('_', ' ').title()}**: {value}")
    else:
        st.info("No diagnostics metadata available.")

    st.markdown("#### Rows With Defaulted Dates")
    visible = context.view.visible_rows
    coerced = visible[visible["date_coerced"]] if not visible.empty else pd.DataFrame()
    if coerced.empty:
        st.success("Every visible row has readable Start and End dates.")
    else:
        render_table(
            coerced[["Person", "Task", "Start", "End", "date_issue", "start_date", "end_date"]],
            height=240,
            export_file_name="defaulted_dates.csv",
        )

    st.markdown("#### Feed Format")
    st.write(
        """
        - **Header**: `Person,Task,Start,End,Type,Status,Progress,Color,Note,URL` (`URL` optional).
        - **Type**: `Task` or `Milestone`; milestones also get a red band on their start date.
        - **Color**: a hex code such as `#2196f3`, a palette name, or blank for the person's default.
        - **Link**: `URL`, or `Note` when `URL` is blank; only values starting with `http` are clickable.
        - **Dates**: ISO (`2024-01-05`), `2024/01/05`, `01/05/2024` or written out (`Jan 5, 2024`); blank or unreadable Start shows from today, End until tomorrow.
        """
    )
