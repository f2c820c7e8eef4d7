from datetime import date

import pandas as pd
import pytest

from pigger_timeline.data.colors import FALLBACK_COLOR, MILESTONE_COLOR, ColoringPolicy
from pigger_timeline.data.filters import FilterState
from pigger_timeline.data.loader import parse_feed
from pigger_timeline.data.view_model import (
    DateWindow,
    build,
    compute_date_window,
    distinct_values,
    entry_key,
    extract_facets,
    facets_changed,
    parse_dates,
    resolve_dates,
    resolve_link,
    status_class,
)

HEADER = "Person,Task,Start,End,Type,Status,Progress,Color,Note,URL\n"


def feed(*lines):
    return parse_feed(HEADER + "\n".join(lines) + "\n")


def test_facets_are_distinct_non_blank_first_seen():
    rows = feed(
        "UI,a,2024-01-01,2024-01-02,Task,doing,,,,",
        ",b,2024-01-01,2024-01-02,Task,,,,,",
        "RD,c,2024-01-01,2024-01-02,Task,done,,,,",
        "UI,d,2024-01-01,2024-01-02,Task,doing,,,,",
        "  ,e,2024-01-01,2024-01-02,Task,  ,,,,",
    )
    persons, statuses = extract_facets(rows)
    assert persons == ["UI", "RD"]
    assert statuses == ["doing", "done"]


def test_facets_come_from_unfiltered_rows(rows, today):
    view = build(rows, FilterState(person="PM"), today=today)
    assert view.person_facets == ["RD", "UI", "PM"]
    assert view.status_facets == ["進行中", "重要會議", "未開始"]
    assert list(view.visible_rows["Person"]) == ["PM"]


def test_facets_changed_detects_new_people_and_statuses(rows):
    persons, statuses = extract_facets(rows)
    assert not facets_changed(rows, persons, statuses)
    assert facets_changed(rows, persons[:-1], statuses)
    assert facets_changed(rows, persons, statuses + ["延遲"])
    assert facets_changed(pd.DataFrame(), persons, statuses)
    assert not facets_changed(pd.DataFrame(), [], [])


def test_distinct_values_never_contains_blank_or_duplicates():
    values = distinct_values(pd.Series(["a", "", "b", "a", " ", "b"]))
    assert values == ["a", "b"]


def test_date_window_pads_seven_days(today):
    rows = feed(
        "RD,a,2024-01-10,2024-01-12,Task,doing,,,,",
        "UI,b,2024-01-15,2024-01-20,Task,doing,,,,",
    )
    view = build(rows, today=today)
    assert view.date_window == DateWindow(date(2024, 1, 3), date(2024, 1, 27))


def test_date_window_follows_visible_rows(today):
    rows = feed(
        "RD,a,2024-01-10,2024-01-12,Task,doing,,,,",
        "UI,b,2024-02-15,2024-02-20,Task,doing,,,,",
    )
    view = build(rows, FilterState(person="RD"), today=today)
    assert view.date_window == DateWindow(date(2024, 1, 3), date(2024, 1, 19))


def test_date_window_collapses_to_today_without_visible_rows(rows, today):
    view = build(rows, FilterState(person="nobody"), today=today)
    assert view.visible_rows.empty
    assert view.date_window == DateWindow(today, today)


def test_compute_date_window_custom_padding(today):
    visible = resolve_dates(feed("RD,a,2024-01-10,2024-01-12,Task,doing,,,,"), today)
    assert compute_date_window(visible, today, padding_days=1) == DateWindow(date(2024, 1, 9), date(2024, 1, 13))


def test_malformed_dates_are_coerced_not_dropped(today):
    rows = feed('RD,a,,not-a-date,Task,doing,,,,')
    view = build(rows, today=today)
    assert len(view.visible_rows) == 1
    row = view.visible_rows.iloc[0]
    assert row["start_date"] == today
    assert row["end_date"] == date(2024, 3, 2)
    assert bool(row["date_coerced"])
    assert row["date_issue"] == "Start: blank; End: unparsed_format"
    assert view.entries[0]["start"] == "2024-03-01"
    assert view.entries[0]["end"] == "2024-03-02"
    assert view.coerced_count == 1


def test_valid_dates_are_not_flagged(rows, today):
    view = build(rows, today=today)
    assert view.coerced_count == 0
    assert set(view.visible_rows["date_issue"]) == {""}


def test_reversed_range_passes_through(today):
    view = build(feed("RD,a,2024-01-20,2024-01-10,Task,doing,,,,"), today=today)
    assert view.entries[0]["start"] == "2024-01-20"
    assert view.entries[0]["end"] == "2024-01-10"


def test_parse_dates_accepts_common_formats():
    parsed, reasons = parse_dates(pd.Series(["2024-01-10", "2024/01/11", "01/12/2024", "2024-01-13T09:30:00", "soon", ""]))
    assert [ts.date() if pd.notna(ts) else None for ts in parsed] == [
        date(2024, 1, 10),
        date(2024, 1, 11),
        date(2024, 1, 12),
        date(2024, 1, 13),
        None,
        None,
    ]
    assert list(reasons) == [None, None, None, None, "unparsed_format", "blank"]


@pytest.mark.parametrize("value", ["Jan 5, 2024", "5 Jan 2024", "January 5 2024"])
def test_parse_dates_accepts_written_out_dates(value):
    parsed, reasons = parse_dates(pd.Series([value]))
    assert parsed.iloc[0].date() == date(2024, 1, 5)
    assert reasons.iloc[0] is None


def test_parse_dates_keeps_the_calendar_date_of_offset_values():
    parsed, reasons = parse_dates(
        pd.Series(["2024-01-05T23:00:00-05:00", "2024-01-05T01:00:00+09:00", "2024-01-05T23:30:00Z"])
    )
    assert [ts.date() for ts in parsed] == [date(2024, 1, 5)] * 3
    assert parsed.dt.tz is None
    assert list(reasons) == [None, None, None]


def test_written_out_dates_are_not_coerced(today):
    view = build(feed('RD,a,"Jan 5, 2024",5 Jan 2024,Task,doing,,,,'), today=today)
    assert view.coerced_count == 0
    assert view.entries[0]["start"] == "2024-01-05"
    assert view.entries[0]["end"] == "2024-01-05"


@pytest.mark.parametrize(
    "row, value, actionable",
    [
        ({"URL": "https://x", "Note": ""}, "https://x", True),
        ({"URL": "", "Note": "see https://y"}, "see https://y", False),
        ({"URL": "ftp://z", "Note": "https://ignored"}, "ftp://z", False),
        ({"URL": "", "Note": "http://plain.example.com"}, "http://plain.example.com", True),
        ({"URL": "HTTPS://x", "Note": ""}, "HTTPS://x", False),
        ({"URL": "", "Note": ""}, "", False),
    ],
)
def test_resolve_link(row, value, actionable):
    link = resolve_link(row)
    assert link.value == value
    assert link.actionable is actionable


def test_status_class_strips_whitespace():
    assert status_class("In  progress\tnow") == "Inprogressnow"
    assert status_class("") == ""


def test_entries_follow_widget_schema(rows, today):
    view = build(rows, today=today)
    first = view.entries[0]
    assert first["id"] == "0"
    assert first["resourceId"] == "RD"
    assert first["title"] == "Build API"
    assert first["start"] == "2024-01-10"
    assert first["end"] == "2024-01-15"
    assert first["backgroundColor"] == "#4caf50"
    assert first["classNames"] == ["進行中"]
    props = first["extendedProps"]
    assert props["Person"] == "RD"
    assert props["URL"] == "https://example.com/api"
    assert props["link"] == "https://example.com/api"
    assert props["link_actionable"] is True
    assert props["date_coerced"] is False
    assert props["key"] == entry_key({"Person": "RD", "Task": "Build API", "Start": "2024-01-10"})


def test_entry_ids_are_positional_within_visible_rows(rows, today):
    view = build(rows, FilterState(show_milestones=False), today=today)
    assert [e["id"] for e in view.entries] == ["0", "1", "2"]
    assert view.entry("1")["title"] == "Plan sprint"
    assert view.entry("9") is None


def test_entry_colors_by_person_policy(rows, today):
    view = build(rows, today=today)
    assert [e["backgroundColor"] for e in view.entries] == ["#4caf50", "#2196f3", "#ABC", "#2196f3"]


def test_entry_colors_by_status_policy(rows, today):
    view = build(rows, policy=ColoringPolicy.BY_STATUS, today=today)
    assert [e["backgroundColor"] for e in view.entries] == ["#2196f3", MILESTONE_COLOR, "#607d8b", "#2196f3"]
    assert view.coloring_policy is ColoringPolicy.BY_STATUS


def test_milestones_get_background_markers(rows, today):
    view = build(rows, today=today)
    assert view.markers == [
        {
            "id": "m-0",
            "resourceId": "UI",
            "start": "2024-01-12",
            "display": "background",
            "backgroundColor": MILESTONE_COLOR,
            "borderColor": MILESTONE_COLOR,
        }
    ]


def test_resources_put_milestone_owners_first(rows, today):
    view = build(rows, today=today)
    assert view.resources == [
        {"id": "UI", "title": "UI"},
        {"id": "RD", "title": "RD"},
        {"id": "PM", "title": "PM"},
    ]


def test_build_is_deterministic_and_idempotent(rows, today):
    filters = FilterState(status="進行中")
    first = build(rows, filters, today=today)
    second = build(rows, filters, today=today)
    pd.testing.assert_frame_equal(first.visible_rows, second.visible_rows)
    assert first.entries == second.entries
    assert first.markers == second.markers
    assert first.resources == second.resources
    assert first.date_window == second.date_window
    assert (first.person_facets, first.status_facets) == (second.person_facets, second.status_facets)


def test_build_does_not_modify_rows(rows, today):
    before = rows.copy()
    build(rows, FilterState(person="RD"), today=today)
    pd.testing.assert_frame_equal(rows, before)


def test_build_without_rows(today):
    view = build(pd.DataFrame(), today=today)
    assert view.entries == []
    assert view.markers == []
    assert view.resources == []
    assert view.person_facets == []
    assert view.date_window == DateWindow(today, today)
    assert view.coerced_count == 0


def test_fallback_color_for_unassigned_rows(today):
    view = build(feed(",a,2024-01-10,2024-01-12,Task,doing,,,,"), today=today)
    assert view.entries[0]["backgroundColor"] == FALLBACK_COLOR
    assert view.resources == []


def test_end_to_end_milestones_hidden(today):
    rows = feed(
        "RD,Build,2024-01-10,2024-01-12,Task,進行中,,,,",
        "UI,Kickoff,2024-01-11,2024-01-11,Milestone,重要會議,,,,",
    )
    view = build(rows, FilterState(show_milestones=False), today=today)
    assert list(view.visible_rows["Person"]) == ["RD"]
    assert view.markers == []
    assert [e["resourceId"] for e in view.entries] == ["RD"]

    shown = build(rows, today=today)
    assert len(shown.entries) == 2
    assert len(shown.markers) == 1
