"""Quick validation script for the configured timeline feed.

Run with `python scripts/validate_feed.py [endpoint]` to fetch the feed
(CSV_URL when no endpoint is given), build the default view and print the
diagnostics the dashboard shows on its Feed Health tab.
"""

from __future__ import annotations

import sys

import pigger_timeline.bootstrap_env  # noqa: F401  loads .env and secrets

from pigger_timeline.data.colors import coloring_policy_from_env
from pigger_timeline.data.loader import FeedError, load, resolve_endpoint
from pigger_timeline.data.view_model import build


def main() -> None:
    try:
        endpoint = sys.argv[1] if len(sys.argv) > 1 else resolve_endpoint()
        rows = load(endpoint)
    except FeedError as exc:
        raise SystemExit(f"Feed check failed: {exc}")

    view = build(rows, policy=coloring_policy_from_env())
    for key, value in rows.attrs.get("diagnostics", {}).items():
        print(f"{key}: {value}")
    print("people:", ", ".join(view.person_facets) or "-")
    print("statuses:", ", ".join(view.status_facets) or "-")
    print(f"window: {view.date_window.start} -> {view.date_window.end}")
    print(f"entries: {len(view.entries)}, milestone markers: {len(view.markers)}, defaulted dates: {view.coerced_count}")


if __name__ == "__main__":
    main()
