from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from catalog.schemas.cultivar import Cultivar
from catalog.schemas.history import HistoryEntry
from catalog.services.audit_log import (
    SEED_DISPLAY,
    UNKNOWN_DISPLAY,
    LogFilter,
    filter_logs,
    flatten_logs,
    list_logs,
    paginate,
    resolve_user_display,
    sort_logs,
)
from catalog.services.mapper import map_to_entity


def _entry(timestamp: Any, event: Any, user_id: str | None = None, **details: Any) -> dict[str, Any]:
    record: dict[str, Any] = {"timestamp": timestamp, "event": event, "details": details}
    if user_id is not None:
        record["userId"] = user_id
    return record


def _cultivar(doc_id: str, name: str, history: list[dict[str, Any]]) -> Cultivar:
    return map_to_entity({"name": name, "history": history}, doc_id)


@pytest.fixture
def catalog() -> list[Cultivar]:
    return [
        _cultivar(
            "c1",
            "Cosmic Haze",
            [
                _entry("2024-03-01T09:00:00+00:00", "Cultivar Seeded", seededBy="system"),
                _entry("2024-03-05T12:00:00+00:00", "Status changed from recentlyAdded to verified", "u1", userEmail="ed@test.local"),
                _entry("2024-03-06T12:00:00+00:00", ""),
            ],
        ),
        _cultivar(
            "c2",
            "Indica Dream",
            [
                _entry("2024-03-02T09:00:00+00:00", "Cultivar Submitted by User", userSource="Anonymous or System"),
                _entry("2024-03-07T23:59:59+00:00", "Cultivar Details Updated", "u2", userName="Robin"),
                _entry("garbage", "Cultivar Details Updated", "u2"),
            ],
        ),
    ]


def test_user_display_priority() -> None:
    seeded = HistoryEntry(event="x", user_id="u1", details={"seededBy": "system", "userEmail": "a@b.c"})
    by_email = HistoryEntry(event="x", user_id="u1", details={"userEmail": "a@b.c", "userName": "A"})
    by_name = HistoryEntry(event="x", user_id="u1", details={"userName": "A"})
    by_id = HistoryEntry(event="x", user_id="u1")
    by_source = HistoryEntry(event="x", details={"userSource": "Anonymous or System"})

    assert resolve_user_display(seeded) == SEED_DISPLAY
    assert resolve_user_display(by_email) == "a@b.c"
    assert resolve_user_display(by_name) == "A"
    assert resolve_user_display(by_id) == "u1"
    assert resolve_user_display(by_source) == "Anonymous or System"
    assert resolve_user_display(HistoryEntry(event="x")) == UNKNOWN_DISPLAY


def test_flatten_attaches_cultivar_context(catalog: list[Cultivar]) -> None:
    logs = flatten_logs(catalog)

    assert len(logs) == 6
    assert logs[0].cultivar_id == "c1"
    assert logs[0].cultivar_name == "Cosmic Haze"
    assert logs[0].user_display == SEED_DISPLAY


def test_blank_events_and_bad_timestamps_are_dropped(catalog: list[Cultivar]) -> None:
    first_only = filter_logs(flatten_logs(catalog[:1]))
    assert len(first_only) == 2

    everything = filter_logs(flatten_logs(catalog))
    assert len(everything) == 4
    assert all(entry.timestamp != "garbage" for entry in everything)


def test_filter_by_cultivar_name_and_user(catalog: list[Cultivar]) -> None:
    by_name = list_logs(catalog, LogFilter(cultivar_name="indica"))
    assert {entry.cultivar_name for entry in by_name} == {"Indica Dream"}

    by_display = list_logs(catalog, LogFilter(user="ED@TEST"))
    assert [entry.user_id for entry in by_display] == ["u1"]

    by_user_id = list_logs(catalog, LogFilter(user="u2"))
    assert [entry.user_display for entry in by_user_id] == ["Robin"]


def test_filter_by_event_type_prefix(catalog: list[Cultivar]) -> None:
    logs = list_logs(catalog, LogFilter(event_types=["Status changed", "Cultivar Seeded"]))
    assert sorted(entry.event for entry in logs) == [
        "Cultivar Seeded",
        "Status changed from recentlyAdded to verified",
    ]


def test_date_range_is_inclusive_by_day(catalog: list[Cultivar]) -> None:
    logs = list_logs(catalog, LogFilter(date_from=date(2024, 3, 5), date_to=date(2024, 3, 7)))
    assert [entry.event for entry in logs] == [
        "Cultivar Details Updated",
        "Status changed from recentlyAdded to verified",
    ]

    assert list_logs(catalog, LogFilter(date_from=date(2024, 4, 1))) == []
    assert list_logs(catalog, LogFilter(date_from=date(2024, 3, 8), date_to=date(2024, 3, 1))) == []


def test_sort_descending_by_default(catalog: list[Cultivar]) -> None:
    timestamps = [entry.timestamp for entry in list_logs(catalog)]
    assert timestamps == sorted(timestamps, reverse=True)

    ascending = [entry.timestamp for entry in list_logs(catalog, ascending=True)]
    assert ascending == sorted(timestamps)


def test_sort_is_stable_for_equal_timestamps() -> None:
    same = "2024-03-01T00:00:00+00:00"
    cultivar = _cultivar("c1", "A", [_entry(same, "first"), _entry(same, "second"), _entry(same, "third")])
    entries = flatten_logs([cultivar])

    assert [entry.event for entry in sort_logs(entries)] == ["first", "second", "third"]
    assert [entry.event for entry in sort_logs(entries, ascending=True)] == ["first", "second", "third"]


def test_pagination() -> None:
    history = [_entry(f"2024-01-01T00:00:{second:02d}+00:00", f"event {second}") for second in range(45)]
    entries = list_logs([_cultivar("c1", "A", history)])

    page = paginate(entries, page=3, page_size=20)
    assert page.total == 45
    assert page.total_pages == 3
    assert len(page.items) == 5

    assert paginate(entries, page=4, page_size=20).items == []
    assert paginate(entries, page=0, page_size=20).items == []


def test_pagination_of_empty_log() -> None:
    page = paginate([], page=1, page_size=20)
    assert page.items == []
    assert page.total == 0
    assert page.total_pages == 0
