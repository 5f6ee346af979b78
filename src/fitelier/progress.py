"""Agregación de series de progreso (orden cronológico, resumen y períodos)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

import pandas as pd

from fitelier.errors import DivisionByZeroError, EmptySeriesError
from fitelier.model import DatedObservation

MONTH_LABELS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

_PERIOD_FREQ: dict[str, str] = {
    "daily": "D",
    "weekly": "W-SAT",
    "monthly": "M",
}


@dataclass(frozen=True)
class ChartPoint:
    """One chart-ready point of a series."""

    label: str
    value: float
    original_date: date


@dataclass(frozen=True)
class SeriesSummary:
    """Fixed summary of a tracking series."""

    latest: float
    best: float
    average: float
    percent_change_from_first: float | None


def _chronological(series: Sequence[DatedObservation]) -> list[DatedObservation]:
    # sorted() is stable: same-day entries keep insertion order.
    return sorted(series, key=lambda o: o.day)


def short_date_label(day: date) -> str:
    """Format a date as a short chart label, e.g. ``Oct 20``."""
    return f"{MONTH_LABELS[day.month - 1]} {day.day}"


def sorted_projection(series: Sequence[DatedObservation]) -> list[ChartPoint]:
    """Project observations to chart points ordered ascending by date."""
    return [
        ChartPoint(label=short_date_label(o.day), value=o.value, original_date=o.day)
        for o in _chronological(series)
    ]


def percent_change(series: Sequence[DatedObservation]) -> float | None:
    """Percent change from the chronologically first to the last value.

    Args:
        series: Observations in any order.

    Returns:
        ``(last - first) / first * 100`` or None with fewer than 2 entries.

    Raises:
        DivisionByZeroError: If the first value is zero.
    """
    ordered = _chronological(series)
    if len(ordered) < 2:
        return None
    first = ordered[0].value
    last = ordered[-1].value
    if first == 0:
        raise DivisionByZeroError(
            f"Percent change undefined: baseline on {ordered[0].day} is 0"
        )
    return (last - first) / first * 100


def _require_values(series: Sequence[DatedObservation], what: str) -> list[float]:
    if not series:
        raise EmptySeriesError(f"No {what} for an empty series")
    return [o.value for o in series]


def latest_value(series: Sequence[DatedObservation]) -> float:
    """Value of the chronologically last entry."""
    _require_values(series, "latest value")
    return _chronological(series)[-1].value


def best_value(
    series: Sequence[DatedObservation], *, lower_is_better: bool = False
) -> float:
    """Numeric maximum, or minimum when the plan says lower is better."""
    values = _require_values(series, "best value")
    return min(values) if lower_is_better else max(values)


def average_value(series: Sequence[DatedObservation]) -> float:
    """Arithmetic mean (sum / count)."""
    values = _require_values(series, "average")
    return sum(values) / len(values)


def summarize(
    series: Sequence[DatedObservation], *, lower_is_better: bool = False
) -> SeriesSummary:
    """Compute latest, best, average and percent change of a series.

    ``best`` is the numeric maximum unless the plan declares that lower values
    are better.

    Args:
        series: Observations in any order.
        lower_is_better: Category metadata flag; selects min for ``best``.

    Returns:
        Summary record.

    Raises:
        EmptySeriesError: If the series has no observations.
        DivisionByZeroError: If the first value is zero and there are 2+ entries.
    """
    ordered = _chronological(series)
    return SeriesSummary(
        latest=latest_value(ordered),
        best=best_value(ordered, lower_is_better=lower_is_better),
        average=average_value(ordered),
        percent_change_from_first=percent_change(ordered),
    )


def add_observation(
    series: Sequence[DatedObservation], observation: DatedObservation
) -> tuple[DatedObservation, ...]:
    """Return a new chronologically sorted series including ``observation``."""
    return tuple(_chronological([*series, observation]))


def target_progress(
    series: Sequence[DatedObservation], target_value: float | None
) -> float | None:
    """Distance from the latest value to the plan target (latest - target)."""
    if target_value is None:
        return None
    return latest_value(series) - target_value


def observations_to_frame(series: Sequence[DatedObservation]) -> pd.DataFrame:
    """Convert observations to a DataFrame sorted by date (stable)."""
    rows = [{"date": o.day, "value": o.value, "note": o.note} for o in series]
    df = pd.DataFrame(rows, columns=["date", "value", "note"])
    if df.empty:
        return df
    return df.sort_values("date", kind="mergesort").reset_index(drop=True)


def period_summary(series: Sequence[DatedObservation], period: str) -> pd.DataFrame:
    """Aggregate a series by day, week (Sunday start) or month.

    Args:
        series: Observations in any order.
        period: ``daily``, ``weekly`` or ``monthly``.

    Returns:
        DataFrame with period_start, count, min, max, avg (avg rounded to 2).

    Raises:
        ValueError: If the period is unknown.
    """
    freq = _PERIOD_FREQ.get(period)
    if freq is None:
        raise ValueError(f"Unknown period: {period}")

    columns = ["period_start", "count", "min", "max", "avg"]
    df = observations_to_frame(series)
    if df.empty:
        return pd.DataFrame(columns=columns)

    periods = pd.to_datetime(df["date"]).dt.to_period(freq)
    df["period_start"] = periods.dt.start_time.dt.date
    g = df.groupby("period_start", as_index=False).agg(
        count=("value", "count"),
        min=("value", "min"),
        max=("value", "max"),
        avg=("value", "mean"),
    )
    g["avg"] = g["avg"].round(2)
    return g[columns].sort_values("period_start").reset_index(drop=True)
