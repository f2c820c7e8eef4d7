"""
Layout helpers for the Streamlit application (page setup, sidebar controls).
"""

from __future__ import annotations

from datetime import timedelta
from typing import List, Optional, Tuple

import streamlit as st

from pigger_timeline.config import APP_TITLE
from pigger_timeline.data.colors import PALETTE
from pigger_timeline.data.filters import DEFAULT_FILTERS, FilterState

ALL_OPTION = "All"
STATE_PREFIX = "tl_"


def setup_page() -> None:
    """Set Streamlit page configuration and top-level styling."""
    st.set_page_config(
        page_title=APP_TITLE,
        layout="wide",
        page_icon=":calendar:",
    )
    # Inject a small CSS override for PRIMARY buttons in the sidebar to appear as "danger" (red)
    _inject_sidebar_primary_button_red()


def _facet_select(label: str, key: str, options: List[str], help_text: str) -> Optional[str]:
    choices = [ALL_OPTION] + options
    # A refresh can drop the value selected earlier; fall back to All
    if st.session_state.get(key) not in choices:
        st.session_state[key] = ALL_OPTION
    choice = st.sidebar.selectbox(label, options=choices, key=key, help=help_text)
    return None if choice == ALL_OPTION else choice


def sidebar_filters_ui(
    person_facets: List[str],
    status_facets: List[str],
    defaults: FilterState = DEFAULT_FILTERS,
) -> FilterState:
    """
    Render the sidebar filter controls and return the selected values.
    """
    st.sidebar.header("Filters")

    person = _facet_select(
        "Person",
        key="tl_person",
        options=person_facets,
        help_text="Show only the tasks owned by one person.",
    )
    status = _facet_select(
        "Status",
        key="tl_status",
        options=status_facets,
        help_text="Show only tasks in one status.",
    )
    show_milestones = st.sidebar.checkbox(
        "Show milestones",
        value=defaults.show_milestones,
        key="tl_show_milestones",
    )

    if st.sidebar.button("Reset Filters", key="tl_reset_filters", type="primary"):
        _clear_state_keys(["tl_person", "tl_status", "tl_show_milestones"])
        st.rerun()

    return FilterState(person=person, status=status, show_milestones=show_milestones)


def sidebar_refresh_controls(interval: timedelta) -> Tuple[bool, bool]:
    """Return (refresh requested now, auto refresh enabled)."""
    st.sidebar.divider()
    refresh = st.sidebar.button("🔄 Refresh Data", key="tl_refresh_now")
    auto_refresh = st.sidebar.toggle(
        f"Auto refresh every {int(interval.total_seconds())} s",
        value=True,
        key="tl_auto_refresh",
    )
    return refresh, auto_refresh


def sidebar_palette() -> None:
    """Recommended swatches; paste a hex code into the feed's Color column."""
    with st.sidebar.expander("Recommended colors", expanded=False):
        swatches = "".join(
            f'<div title="{hex_code}" style="background:{hex_code};width:22px;height:22px;'
            f'border-radius:3px;border:1px solid #aaa"></div>'
            for hex_code in PALETTE.values()
        )
        st.markdown(
            f'<div style="display:flex;gap:4px;flex-wrap:wrap">{swatches}</div>',
            unsafe_allow_html=True,
        )
        st.caption(", ".join(f"`{name}` {hex_code}" for name, hex_code in PALETTE.items()))


def _clear_state_keys(keys: List[str]) -> None:
    for key in keys:
        if key.startswith(STATE_PREFIX) and key in st.session_state:
            del st.session_state[key]


def _inject_sidebar_primary_button_red() -> None:
    """Style PRIMARY buttons in the sidebar as red so reset actions stand out."""
    st.sidebar.markdown(
        """
        <style>
        div[data-testid="stSidebar"] button[kind="primary"],
        div[data-testid="stSidebar"] button[data-testid="baseButton-primary"] {
            background-color: #e53935 !important; /* red 600 */
            border-color: #e53935 !important;
            color: #ffffff !important;
        }
        div[data-testid="stSidebar"] button[kind="primary"]:hover,
        div[data-testid="stSidebar"] button[data-testid="baseButton-primary"]:hover {
            background-color: #c62828 !important; /* red 800 */
            border-color: #c62828 !important;
            color: #ffffff !important;
        }
        </style>
        """,
        unsafe_allow_html=True,
    )
