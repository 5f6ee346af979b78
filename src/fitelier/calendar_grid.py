"""Grilla mensual de la agenda (semanas completas desde domingo) y resumen."""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import date, datetime, tzinfo
from typing import Protocol

import pandas as pd
from dateutil import tz
from dateutil.relativedelta import relativedelta

from fitelier.errors import InvalidMonthError
from fitelier.model import ScheduledEvent

WEEKDAY_LABELS: tuple[str, ...] = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


@dataclass(frozen=True)
class GridCell:
    """One grid position; blank cells have no day and no events."""

    day: date | None
    events: tuple[ScheduledEvent, ...] = ()

    @property
    def is_blank(self) -> bool:
        return self.day is None


@dataclass(frozen=True)
class MonthSummary:
    """Counters shown below the calendar."""

    total: int
    completed: int
    active_day_count: int
    completion_percent: int


def parse_month(value: object) -> date:
    """Resolve a reference month to the first day of that month.

    Args:
        value: ``date``/``datetime`` (day ignored), ``(year, month)`` tuple or
            ``"YYYY-MM"`` string.

    Returns:
        First calendar day of the month.

    Raises:
        InvalidMonthError: If the value does not name a valid month.
    """
    if isinstance(value, datetime):
        return value.date().replace(day=1)
    if isinstance(value, date):
        return value.replace(day=1)
    if isinstance(value, tuple) and len(value) == 2:
        year, month = value
    elif isinstance(value, str):
        match = _MONTH_RE.match(value.strip())
        if not match:
            raise InvalidMonthError(f"Expected YYYY-MM, got {value!r}")
        year, month = int(match.group(1)), int(match.group(2))
    else:
        raise InvalidMonthError(f"Unsupported month value: {value!r}")

    if not isinstance(year, int) or not isinstance(month, int):
        raise InvalidMonthError(f"Year and month must be integers: {value!r}")
    if isinstance(year, bool) or isinstance(month, bool):
        raise InvalidMonthError(f"Year and month must be integers: {value!r}")
    try:
        return date(year, month, 1)
    except ValueError as exc:
        raise InvalidMonthError(str(exc)) from exc


def month_bounds(month: object) -> tuple[date, date]:
    """Return first and last day of the month (inclusive range)."""
    start = parse_month(month)
    end = start + relativedelta(months=1, days=-1)
    return start, end


def shift_month(month: object, delta: int) -> date:
    """Move ``delta`` months forward (negative for backwards)."""
    return parse_month(month) + relativedelta(months=delta)


def leading_blanks(month_start: date) -> int:
    """Weekday offset of the first day, 0=Sunday ... 6=Saturday."""
    return (month_start.weekday() + 1) % 7


def event_date_key(value: date | datetime, local_tz: tzinfo | None = None) -> date:
    """Calendar date of a date or datetime in the local zone.

    Naive datetimes are taken as local; aware ones are converted first.
    """
    if isinstance(value, datetime):
        zone = local_tz or tz.tzlocal()
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(zone).date()
    return value


def events_for_date(
    events: Sequence[ScheduledEvent],
    day: date | datetime,
    local_tz: tzinfo | None = None,
) -> list[ScheduledEvent]:
    """All events on ``day``, in input order."""
    key = event_date_key(day, local_tz)
    return [e for e in events if e.day == key]


def build_grid(
    reference_month: object, events: Sequence[ScheduledEvent]
) -> list[GridCell]:
    """Build the week-aligned cells of a month.

    Args:
        reference_month: Month accepted by ``parse_month``.
        events: Scheduled events; only those inside the month are attached.

    Returns:
        Cells, length a multiple of 7, blanks before day 1 and after the last.

    Raises:
        InvalidMonthError: If the month cannot be resolved.
    """
    month_start, month_end = month_bounds(reference_month)
    days = pd.date_range(start=month_start, end=month_end, freq="D").date
    offset = leading_blanks(month_start)
    total_cells = math.ceil((offset + len(days)) / 7) * 7

    by_day: dict[date, list[ScheduledEvent]] = {}
    for event in events:
        by_day.setdefault(event.day, []).append(event)

    cells: list[GridCell] = []
    for index in range(total_cells):
        day_index = index - offset
        if 0 <= day_index < len(days):
            day = days[day_index]
            cells.append(GridCell(day=day, events=tuple(by_day.get(day, ()))))
        else:
            cells.append(GridCell(day=None))
    return cells


def grid_weeks(cells: Sequence[GridCell]) -> list[list[GridCell]]:
    """Split grid cells in rows of 7."""
    return [list(cells[i : i + 7]) for i in range(0, len(cells), 7)]


def month_summary(events: Sequence[ScheduledEvent]) -> MonthSummary:
    """Count total, completed and active days; percent is 0 for no events."""
    total = len(events)
    completed = sum(1 for e in events if e.completed)
    active_days = len({e.day for e in events})
    percent = math.floor(completed / total * 100 + 0.5) if total else 0
    return MonthSummary(
        total=total,
        completed=completed,
        active_day_count=active_days,
        completion_percent=percent,
    )


def set_completed(
    event: ScheduledEvent, completed: bool, *, now: datetime
) -> ScheduledEvent:
    """Return a copy with completion toggled and ``completed_at`` consistent."""
    return replace(
        event,
        completed=completed,
        completed_at=now if completed else None,
    )


class ScheduleSource(Protocol):
    """Store capable of listing a user's scheduled events in a date range."""

    def list_scheduled(
        self, user_id: str, *, start: date | None = None, end: date | None = None
    ) -> list[ScheduledEvent]: ...


class MonthView:
    """Snapshot of one user's month, refetched wholesale when invalidated."""

    def __init__(self, user_id: str, month: object) -> None:
        self._user_id = user_id
        self._month = parse_month(month)
        self._events: list[ScheduledEvent] | None = None

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def month(self) -> date:
        return self._month

    @property
    def is_stale(self) -> bool:
        return self._events is None

    @property
    def events(self) -> list[ScheduledEvent]:
        if self._events is None:
            raise RuntimeError("Month view is stale; call refresh() first")
        return list(self._events)

    def invalidate(self) -> None:
        """Drop the snapshot so the next refresh refetches the month."""
        self._events = None

    def set_month(self, month: object) -> None:
        new_month = parse_month(month)
        if new_month != self._month:
            self._month = new_month
            self.invalidate()

    def set_user(self, user_id: str) -> None:
        if user_id != self._user_id:
            self._user_id = user_id
            self.invalidate()

    def refresh(self, store: ScheduleSource) -> list[ScheduledEvent]:
        """Fetch the whole month and replace the snapshot."""
        start, end = month_bounds(self._month)
        self._events = list(store.list_scheduled(self._user_id, start=start, end=end))
        return self.events

    def grid(self) -> list[GridCell]:
        return build_grid(self._month, self.events)

    def summary(self) -> MonthSummary:
        return month_summary(self.events)
