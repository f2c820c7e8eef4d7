from __future__ import annotations

import streamlit as st

from pigger_timeline.ui.components.charts import render_plotly, selected_entry_ids, timeline_figure
from pigger_timeline.ui.components.formatting import format_date_window
from pigger_timeline.ui.pages.context import PageContext


def _render_selected_entry(context: PageContext, entry_id: str) -> None:
    entry = context.view.entry(entry_id)
    if entry is None:
        return
    props = entry["extendedProps"]
    st.markdown(f"**{entry['title']}** · {entry['resourceId']} · {entry['start']} → {entry['end']}")
    if props.get("Status"):
        st.caption(f"Status: {props['Status']}")
    if props["link_actionable"]:
        st.link_button("Open link 🔗", props["link"])
    elif props["link"]:
        st.caption(props["link"])
    if props["date_coerced"]:
        st.warning(f"Dates defaulted to today ({props['date_issue']}). Fix the row in the feed.")


def render(context: PageContext) -> None:
    view = context.view
    st.subheader("Timeline")
    st.caption(f"Visible range: {format_date_window(view.date_window.start, view.date_window.end)}")
    if not view.entries:
        st.info("No tasks match the current filters.")

    fig = timeline_figure(view, today=context.today)
    event = render_plotly(fig, key="tl_timeline_chart")
    st.caption("Click a bar to see its details; bars with a link can be opened from there.")

    selected = selected_entry_ids(event)
    if selected:
        _render_selected_entry(context, selected[0])
