"""Filtros de la biblioteca de rutinas."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from fitelier.model import WORKOUT_KINDS, Workout


def filter_workouts(
    workouts: Sequence[Workout],
    *,
    query: str = "",
    kind: str = "all",
    difficulty: str | None = None,
) -> list[Workout]:
    """Filter library workouts keeping the input order.

    Args:
        workouts: Workouts as returned by the store.
        query: Case-insensitive substring matched against name or description.
        kind: Workout kind, or ``all``.
        difficulty: Difficulty to keep, or None for any.

    Returns:
        Matching workouts.
    """
    needle = query.strip().lower()
    out: list[Workout] = []
    for w in workouts:
        if kind != "all" and w.kind != kind:
            continue
        if difficulty and w.difficulty != difficulty:
            continue
        if needle and needle not in w.name.lower():
            if not w.description or needle not in w.description.lower():
                continue
        out.append(w)
    return out


def count_by_kind(workouts: Sequence[Workout]) -> dict[str, int]:
    """Counts per kind for the tab badges; known kinds always present."""
    counts = Counter(w.kind for w in workouts)
    out = {"all": len(workouts)}
    out.update({k: counts.get(k, 0) for k in WORKOUT_KINDS})
    for k, n in counts.items():
        out.setdefault(k, n)
    return out
