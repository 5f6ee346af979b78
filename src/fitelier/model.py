"""Modelos tipados para seguimiento de progreso, agenda y biblioteca de rutinas."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time

WORKOUT_KINDS: tuple[str, ...] = ("strength", "cardio", "flexibility")
DIFFICULTIES: tuple[str, ...] = ("beginner", "intermediate", "advanced")
PLAN_CATEGORIES: tuple[str, ...] = ("weight", "strength", "measurement", "other")
UNITS: tuple[str, ...] = (
    "kg",
    "lbs",
    "cm",
    "inches",
    "reps",
    "sets",
    "minutes",
    "hours",
    "%",
)


@dataclass(frozen=True)
class DatedObservation:
    """One numeric progress entry (date-based)."""

    day: date
    value: float
    note: str | None = None
    entry_id: str | None = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.value):
            raise ValueError(f"Observation value must be finite: {self.value!r}")


@dataclass(frozen=True)
class LibrarySession:
    """Scheduled session that points at a workout of the library."""

    workout_id: str


@dataclass(frozen=True)
class CustomSession:
    """Scheduled session described inline by the user."""

    name: str
    kind: str
    duration_minutes: int | None = None
    description: str | None = None


Session = LibrarySession | CustomSession


@dataclass(frozen=True)
class ScheduledEvent:
    """One workout placed on the calendar."""

    day: date
    kind: str
    session: Session
    start_time: time | None = None
    completed: bool = False
    completed_at: datetime | None = None
    event_id: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.completed != (self.completed_at is not None):
            raise ValueError("completed_at must be set if and only if completed")
        if isinstance(self.session, CustomSession) and self.session.kind != self.kind:
            raise ValueError(
                f"Custom session kind {self.session.kind!r} does not match "
                f"event kind {self.kind!r}"
            )


@dataclass(frozen=True)
class SessionDetails:
    """Display fields of a scheduled session after resolving its variant."""

    name: str
    kind: str
    duration_minutes: int | None
    description: str | None


@dataclass(frozen=True)
class TrackingPlan:
    """A user-defined metric tracked over time."""

    plan_id: str
    user_id: str
    title: str
    unit: str
    category: str
    target_value: float | None = None
    description: str | None = None
    is_active: bool = True
    lower_is_better: bool = False


@dataclass(frozen=True)
class Profile:
    """User profile."""

    user_id: str
    email: str
    full_name: str | None = None
    age: int | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    fitness_goal: str | None = None
    activity_level: str | None = None


@dataclass(frozen=True)
class Workout:
    """Workout of the browsable library."""

    workout_id: str
    name: str
    kind: str
    difficulty: str
    duration_minutes: int
    description: str | None = None
    estimated_calories: int | None = None
    exercise_count: int | None = None
    is_public: bool = True
    created_by: str | None = None


@dataclass(frozen=True)
class Exercise:
    """Single exercise referenced by workouts."""

    exercise_id: str
    name: str
    kind: str
    difficulty: str | None = None
    description: str | None = None
    muscle_groups: list[str] = field(default_factory=list)
    equipment: list[str] = field(default_factory=list)
    instructions: list[str] = field(default_factory=list)


def resolve_session(
    event: ScheduledEvent, library: dict[str, Workout]
) -> SessionDetails:
    """Return the display fields of a scheduled event.

    Args:
        event: Scheduled event to describe.
        library: Workouts indexed by id.

    Returns:
        Name, kind, duration and description of the session.

    Raises:
        KeyError: If a library session points at an unknown workout.
        TypeError: If the session is not a known variant.
    """
    session = event.session
    if isinstance(session, CustomSession):
        return SessionDetails(
            name=session.name,
            kind=session.kind,
            duration_minutes=session.duration_minutes,
            description=session.description,
        )
    if isinstance(session, LibrarySession):
        workout = library[session.workout_id]
        return SessionDetails(
            name=workout.name,
            kind=workout.kind,
            duration_minutes=workout.duration_minutes,
            description=workout.description,
        )
    raise TypeError(f"Unknown session variant: {type(session).__name__}")
