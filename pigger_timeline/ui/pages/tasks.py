from __future__ import annotations

import streamlit as st

from pigger_timeline.ui.components.tables import render_table, task_table
from pigger_timeline.ui.pages.context import PageContext


def render(context: PageContext) -> None:
    st.subheader("Tasks")
    table = task_table(context.view)
    column_config = {
        "Link": st.column_config.LinkColumn("Link", display_text="open 🔗"),
        "Color": st.column_config.TextColumn("Color", help="Resolved bar color"),
    }
    render_table(table, column_config=column_config, height=480, export_file_name="timeline_tasks.csv")
    if context.view.coerced_count:
        st.caption(
            f"{context.view.coerced_count} row(s) had a blank or unreadable date and are shown from today."
        )
