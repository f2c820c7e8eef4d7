"""
Reusable helpers for rendering data tables with consistent configuration.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import pandas as pd
import streamlit as st

from pigger_timeline.data.view_model import DerivedView

COERCED_FLAG = "⚠ date defaulted"


def task_table(view: DerivedView) -> pd.DataFrame:
    """One line per visible entry, with the resolved color and navigable link."""
    columns = ["Person", "Task", "Start", "End", "Type", "Status", "Progress", "Color", "Link", "Note", "Flag"]
    records = []
    for entry in view.entries:
        props = entry["extendedProps"]
        records.append(
            {
                "Person": entry["resourceId"],
                "Task": entry["title"],
                "Start": entry["start"],
                "End": entry["end"],
                "Type": props.get("Type", ""),
                "Status": props.get("Status", ""),
                "Progress": props.get("Progress", ""),
                "Color": entry["backgroundColor"],
                "Link": props["link"] if props.get("link_actionable") else None,
                "Note": props.get("Note", ""),
                "Flag": COERCED_FLAG if props.get("date_coerced") else "",
            }
        )
    return pd.DataFrame(records, columns=columns)


def render_table(
    df: pd.DataFrame,
    column_config: Optional[Dict[str, Any]] = None,
    height: int = 400,
    show_index: bool = False,
    export_file_name: str = "export.csv",
) -> None:
    if df.empty:
        st.info("No rows to display.")
        return

    st.dataframe(
        df,
        use_container_width=True,
        height=height,
        hide_index=not show_index,
        column_config=column_config,
    )

    csv_bytes = df.to_csv(index=show_index).encode("utf-8")
    st.download_button(
        "Download CSV",
        data=csv_bytes,
        file_name=export_file_name,
        mime="text/csv",
    )
