from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest
from dateutil import tz

from fitelier.calendar_grid import (
    MonthView,
    build_grid,
    event_date_key,
    events_for_date,
    grid_weeks,
    leading_blanks,
    month_bounds,
    month_summary,
    parse_month,
    set_completed,
    shift_month,
)
from fitelier.errors import InvalidMonthError
from fitelier.model import CustomSession, ScheduledEvent

_BA_TZ = tz.gettz("America/Argentina/Buenos_Aires")


def _event(
    day: date,
    name: str,
    kind: str = "strength",
    completed: bool = False,
) -> ScheduledEvent:
    return ScheduledEvent(
        day=day,
        kind=kind,
        session=CustomSession(name=name, kind=kind, duration_minutes=45),
        start_time=time(7, 0),
        completed=completed,
        completed_at=datetime(2025, 10, 27, 8, 0) if completed else None,
    )


OCTOBER_EVENTS = [
    _event(date(2025, 10, 27), "Morning Strength Training", completed=True),
    _event(date(2025, 10, 27), "Evening Cardio", kind="cardio"),
    _event(date(2025, 10, 28), "Yoga & Stretching", kind="flexibility"),
    _event(date(2025, 10, 29), "Upper Body Strength"),
    _event(date(2025, 10, 29), "HIIT Cardio", kind="cardio"),
    _event(date(2025, 10, 30), "Recovery & Mobility", kind="flexibility"),
    _event(date(2025, 10, 31), "Full Body Workout"),
]


def test_october_2025_grid() -> None:
    cells = build_grid("2025-10", [])
    assert leading_blanks(date(2025, 10, 1)) == 3
    assert len(cells) == 35
    assert all(c.is_blank for c in cells[:3])
    assert cells[3].day == date(2025, 10, 1)
    assert cells[33].day == date(2025, 10, 31)
    assert cells[34].day is None
    assert cells[34].events == ()


def test_month_starting_on_sunday_has_no_blanks() -> None:
    cells = build_grid((2026, 2), [])
    assert len(cells) == 28
    assert cells[0].day == date(2026, 2, 1)
    assert cells[-1].day == date(2026, 2, 28)


@pytest.mark.parametrize("year", [2024, 2025, 2026])
def test_grid_is_whole_weeks_for_every_month(year: int) -> None:
    for month in range(1, 13):
        cells = build_grid((year, month), [])
        offset = leading_blanks(date(year, month, 1))
        assert len(cells) % 7 == 0
        assert all(c.day is None for c in cells[:offset])
        assert cells[offset].day == date(year, month, 1)
        days = [c.day for c in cells if c.day is not None]
        assert days == sorted(days)
        assert len(cells) - offset - len(days) < 7


def test_grid_attaches_events_in_input_order() -> None:
    cells = build_grid(date(2025, 10, 15), OCTOBER_EVENTS)
    by_day = {c.day: c.events for c in cells if c.day is not None}
    names = [e.session.name for e in by_day[date(2025, 10, 27)]]
    assert names == ["Morning Strength Training", "Evening Cardio"]
    assert by_day[date(2025, 10, 1)] == ()


def test_grid_ignores_events_outside_month() -> None:
    other = _event(date(2025, 11, 1), "November")
    cells = build_grid("2025-10", [other])
    assert all(not c.events for c in cells)


def test_build_grid_is_idempotent() -> None:
    assert build_grid("2025-10", OCTOBER_EVENTS) == build_grid("2025-10", OCTOBER_EVENTS)


def test_grid_weeks_rows_of_seven() -> None:
    weeks = grid_weeks(build_grid("2025-10", []))
    assert len(weeks) == 5
    assert all(len(w) == 7 for w in weeks)


@pytest.mark.parametrize(
    "value",
    ["2025-13", "2025-00", "October", "", (2025, 0), (2025, "10"), 202510, None],
)
def test_parse_month_invalid(value: object) -> None:
    with pytest.raises(InvalidMonthError):
        parse_month(value)


def test_invalid_month_is_value_error() -> None:
    with pytest.raises(ValueError):
        build_grid("not-a-month", [])


def test_parse_month_accepts_supported_forms() -> None:
    assert parse_month("2025-10") == date(2025, 10, 1)
    assert parse_month(" 2025-3 ") == date(2025, 3, 1)
    assert parse_month((2025, 10)) == date(2025, 10, 1)
    assert parse_month(date(2025, 10, 27)) == date(2025, 10, 1)
    assert parse_month(datetime(2025, 10, 27, 23, 59)) == date(2025, 10, 1)


def test_month_bounds_and_shift() -> None:
    assert month_bounds("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds("2025-12") == (date(2025, 12, 1), date(2025, 12, 31))
    assert shift_month("2025-01", -1) == date(2024, 12, 1)
    assert shift_month(date(2025, 1, 31), 1) == date(2025, 2, 1)


def test_events_for_date_exact_match_in_order() -> None:
    out = events_for_date(OCTOBER_EVENTS, date(2025, 10, 29))
    assert [e.session.name for e in out] == ["Upper Body Strength", "HIIT Cardio"]
    assert events_for_date(OCTOBER_EVENTS, date(2025, 10, 1)) == []


def test_events_for_date_normalizes_aware_datetime() -> None:
    # 02:00 UTC on the 28th is still the 27th in Buenos Aires (UTC-3).
    moment = datetime(2025, 10, 28, 2, 0, tzinfo=timezone.utc)
    assert event_date_key(moment, _BA_TZ) == date(2025, 10, 27)
    out = events_for_date(OCTOBER_EVENTS, moment, _BA_TZ)
    assert len(out) == 2


def test_event_date_key_naive_datetime_is_local() -> None:
    assert event_date_key(datetime(2025, 10, 28, 23, 30)) == date(2025, 10, 28)
    assert event_date_key(date(2025, 10, 28)) == date(2025, 10, 28)


def test_month_summary_counts() -> None:
    out = month_summary(OCTOBER_EVENTS)
    assert out.total == 7
    assert out.completed == 1
    assert out.active_day_count == 5
    assert out.completion_percent == 14


def test_month_summary_empty_is_zero() -> None:
    out = month_summary([])
    assert (out.total, out.completed, out.active_day_count) == (0, 0, 0)
    assert out.completion_percent == 0


def test_month_summary_rounds_half_up() -> None:
    events = [_event(date(2025, 10, d), f"w{d}") for d in range(1, 8)]
    events.append(_event(date(2025, 10, 8), "done", completed=True))
    assert month_summary(events).completion_percent == 13


def test_set_completed_keeps_invariant() -> None:
    now = datetime(2025, 10, 28, 9, 0)
    pending = OCTOBER_EVENTS[1]
    done = set_completed(pending, True, now=now)
    assert done.completed is True
    assert done.completed_at == now
    undone = set_completed(done, False, now=now)
    assert undone.completed is False
    assert undone.completed_at is None
    assert pending.completed is False


class _FakeStore:
    def __init__(self, events: list[ScheduledEvent]) -> None:
        self.events = events
        self.calls: list[tuple[str, date | None, date | None]] = []

    def list_scheduled(
        self, user_id: str, *, start: date | None = None, end: date | None = None
    ) -> list[ScheduledEvent]:
        self.calls.append((user_id, start, end))
        return [
            e
            for e in self.events
            if (start is None or e.day >= start) and (end is None or e.day <= end)
        ]


def test_month_view_refetches_after_invalidation() -> None:
    store = _FakeStore(list(OCTOBER_EVENTS))
    view = MonthView("user-1", "2025-10")
    assert view.is_stale
    with pytest.raises(RuntimeError):
        _ = view.events

    view.refresh(store)
    assert store.calls == [("user-1", date(2025, 10, 1), date(2025, 10, 31))]
    assert view.summary().total == 7
    assert len(view.grid()) == 35

    view.set_month("2025-10")
    assert not view.is_stale

    view.set_month("2025-11")
    assert view.is_stale
    view.refresh(store)
    assert store.calls[-1] == ("user-1", date(2025, 11, 1), date(2025, 11, 30))
    assert view.events == []

    view.set_user("user-2")
    assert view.is_stale
