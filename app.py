import pigger_timeline.bootstrap_env  # must be first to set env/secrets

from datetime import date, timedelta
from typing import List, Tuple

import streamlit as st

from pigger_timeline.config import APP_TITLE, TABS, refresh_interval_seconds
from pigger_timeline.data.colors import ColoringPolicy, coloring_policy_from_env
from pigger_timeline.data.filters import FilterState
from pigger_timeline.data.refresh import FeedMonitor, FeedState
from pigger_timeline.data.view_model import build, extract_facets, facets_changed
from pigger_timeline.ui.components.formatting import format_number, format_timestamp
from pigger_timeline.ui.layout import (
    setup_page,
    sidebar_filters_ui,
    sidebar_palette,
    sidebar_refresh_controls,
)
from pigger_timeline.ui.pages import feed_health, tasks, timeline
from pigger_timeline.ui.pages.context import PageContext


PAGE_RENDERERS = {
    "timeline": timeline.render,
    "tasks": tasks.render,
    "feed_health": feed_health.render,
}


def _get_monitor() -> FeedMonitor:
    monitor = st.session_state.get("tl_feed_monitor")
    if monitor is None:
        monitor = FeedMonitor(interval=timedelta(seconds=refresh_interval_seconds()))
        st.session_state["tl_feed_monitor"] = monitor
    return monitor


def _active_filter_summary(filters: FilterState, total_entries: int) -> None:
    badges = []
    if filters.person:
        badges.append(f"Person: {filters.person}")
    if filters.status:
        badges.append(f"Status: {filters.status}")
    if not filters.show_milestones:
        badges.append("Milestones hidden")

    summary_text = "Active Filters: " + " | ".join(badges) if badges else "Active Filters: All tasks"
    st.markdown(f"**{summary_text}**")
    st.caption(f"Showing {format_number(total_entries, 0)} entries after filters.")


def _feed_status_banner(state: FeedState) -> None:
    if not state.is_stale:
        return
    if state.has_data:
        st.warning(
            f"Showing stale data: the last refresh failed ({state.error}). "
            f"Last successful refresh at {format_timestamp(state.last_success_at)}."
        )
    else:
        st.error(f"Could not load the timeline feed: {state.error}")


def _render_views(
    monitor: FeedMonitor,
    filters: FilterState,
    policy: ColoringPolicy,
    sidebar_facets: Tuple[List[str], List[str]],
) -> None:
    previous_count = monitor.state.refresh_count
    state = monitor.ensure_fresh()
    if previous_count and state.refresh_count != previous_count:
        message = f"Timeline refreshed at {format_timestamp(state.last_success_at)}"
        if facets_changed(state.rows, *sidebar_facets):
            # Sidebar options are built outside the fragment; rebuild the whole page
            st.session_state["tl_pending_toast"] = message
            st.rerun()
        st.toast(message, icon="🔄")

    today = date.today()
    view = build(state.rows, filters, policy=policy, today=today)

    _feed_status_banner(state)
    _active_filter_summary(filters, len(view.entries))

    context = PageContext(monitor=monitor, filters=filters, view=view, today=today)

    tab_labels = [tab.label for tab in TABS]
    streamlit_tabs = st.tabs(tab_labels)

    for streamlit_tab, tab_config in zip(streamlit_tabs, TABS):
        renderer = PAGE_RENDERERS.get(tab_config.key)
        if renderer is None:
            continue
        with streamlit_tab:
            renderer(context)


def main() -> None:
    setup_page()
    st.title(APP_TITLE)
    pending_toast = st.session_state.pop("tl_pending_toast", None)
    if pending_toast:
        st.toast(pending_toast, icon="🔄")

    monitor = _get_monitor()
    refresh_now, auto_refresh = sidebar_refresh_controls(monitor.interval)
    if auto_refresh:
        monitor.start()
    else:
        monitor.stop()
    if refresh_now:
        monitor.refresh()

    state = monitor.ensure_fresh()
    person_facets, status_facets = extract_facets(state.rows)
    filters = sidebar_filters_ui(person_facets, status_facets)
    sidebar_palette()

    # The fragment timer lives as long as the session and stops when auto refresh is off
    run_every = monitor.interval if auto_refresh else None
    st.fragment(run_every=run_every)(_render_views)(
        monitor, filters, coloring_policy_from_env(), (person_facets, status_facets)
    )


if __name__ == "__main__":
    main()
