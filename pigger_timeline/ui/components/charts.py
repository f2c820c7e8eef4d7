"""
Plotly timeline figure built from the view-model entries, with consistent
styling for the dashboard.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, List, Mapping, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from pigger_timeline.data.view_model import DerivedView

DEFAULT_TEMPLATE = "plotly_white"
NOW_LINE_COLOR = "#26a269"
MARKER_OPACITY = 0.18
BAR_OPACITY = 0.85
ROW_HEIGHT = 48
MIN_HEIGHT = 260


def _configure_layout(fig: go.Figure, view: DerivedView, resource_ids: List[str]) -> go.Figure:
    window = view.date_window
    fig.update_layout(
        template=DEFAULT_TEMPLATE,
        showlegend=False,
        hovermode="closest",
        height=max(MIN_HEIGHT, ROW_HEIGHT * max(len(resource_ids), 1) + 120),
        margin=dict(l=40, r=20, t=40, b=40),
        clickmode="event+select",
    )
    fig.update_xaxes(
        type="date",
        range=[window.start.isoformat(), (window.end + timedelta(days=1)).isoformat()],
        dtick=86400000,
        tickformat="%m/%d",
        showgrid=True,
    )
    fig.update_yaxes(
        title=None,
        categoryorder="array",
        categoryarray=resource_ids,
        autorange="reversed",
    )
    return fig


def entries_frame(view: DerivedView) -> pd.DataFrame:
    """Flatten timeline entries for plotting; bar ends are exclusive, so End + 1 day."""
    records = []
    for entry in view.entries:
        props = entry["extendedProps"]
        records.append(
            {
                "id": entry["id"],
                "resourceId": entry["resourceId"],
                "title": entry["title"],
                "start": entry["start"],
                "finish": (date.fromisoformat(entry["end"]) + timedelta(days=1)).isoformat(),
                "color": entry["backgroundColor"],
                "Status": props.get("Status", ""),
                "Type": props.get("Type", ""),
                "link": props.get("link", "") if props.get("link_actionable") else "",
            }
        )
    return pd.DataFrame(
        records,
        columns=["id", "resourceId", "title", "start", "finish", "color", "Status", "Type", "link"],
    )


def timeline_figure(view: DerivedView, today: Optional[date] = None) -> go.Figure:
    today = today or date.today()
    resource_ids = [r["id"] for r in view.resources]
    frame = entries_frame(view)

    if frame.empty:
        fig = go.Figure()
    else:
        fig = px.timeline(
            frame,
            x_start="start",
            x_end="finish",
            y="resourceId",
            color="color",
            color_discrete_map="identity",
            text="title",
            custom_data=["id"],
            hover_data={"title": True, "Status": True, "Type": True, "link": True, "color": False},
        )
        fig.update_traces(opacity=BAR_OPACITY, textposition="inside", insidetextanchor="start")

    for marker in view.markers:
        start = date.fromisoformat(marker["start"])
        fig.add_vrect(
            x0=start.isoformat(),
            x1=(start + timedelta(days=1)).isoformat(),
            fillcolor=marker["backgroundColor"],
            opacity=MARKER_OPACITY,
            line_width=0,
            layer="below",
        )

    fig.add_shape(
        type="line",
        x0=today.isoformat(),
        x1=today.isoformat(),
        y0=0,
        y1=1,
        yref="paper",
        line=dict(color=NOW_LINE_COLOR, dash="dash", width=2),
    )
    return _configure_layout(fig, view, resource_ids)


def selected_entry_ids(event: Optional[Mapping[str, Any]]) -> List[str]:
    """Entry ids of the points clicked in a plotly_chart selection event."""
    if not event:
        return []
    points = (event.get("selection") or {}).get("points") or []
    ids = []
    for point in points:
        custom = point.get("customdata") or []
        if custom:
            ids.append(str(custom[0]))
    return ids


def render_plotly(fig: go.Figure, key: Optional[str] = None):
    """Render the figure; clicking a bar reruns the script with a selection event."""
    return st.plotly_chart(
        fig,
        use_container_width=True,
        config={"displayModeBar": False},
        key=key,
        on_select="rerun",
        selection_mode="points",
    )
