from __future__ import annotations

import sqlite3
from datetime import date, datetime, time, timezone
from pathlib import Path

import pytest

from fitelier.model import (
    CustomSession,
    DatedObservation,
    Exercise,
    LibrarySession,
    ScheduledEvent,
    Workout,
)
from fitelier.storage import DEFAULT_CONFIG, AppConfig, SQLiteStore


@pytest.fixture
def store(tmp_path: Path) -> SQLiteStore:
    return SQLiteStore(tmp_path / "nested" / "app.sqlite3")


def _workout(name: str = "Upper Body Blast") -> Workout:
    return Workout(
        workout_id="",
        name=name,
        kind="strength",
        difficulty="intermediate",
        duration_minutes=50,
        description="Push and pull",
    )


def test_config_defaults_and_roundtrip(store: SQLiteStore) -> None:
    assert store.load_config() == DEFAULT_CONFIG
    config = AppConfig(
        timezone="America/Argentina/Buenos_Aires",
        chat_model="gemini-2.5-pro",
        chat_temperature=0.3,
        export_dir="/data/out",
    )
    store.save_config(config)
    assert store.load_config() == config


def test_profile_create_and_update(store: SQLiteStore) -> None:
    created = store.create_profile("u1", "ana@example.com", "Ana")
    assert created.full_name == "Ana"
    updated = store.update_profile("u1", age=31, weight_kg=62.5)
    assert updated.age == 31
    assert store.get_profile("u1").weight_kg == 62.5
    with pytest.raises(KeyError):
        store.get_profile("missing")
    with pytest.raises(ValueError):
        store.update_profile("u1", shoe_size=38)
    with pytest.raises(ValueError):
        store.create_profile("u2", "  ")


def test_workouts_filters_and_crud(store: SQLiteStore) -> None:
    first = store.create_workout(_workout("First"))
    second = store.create_workout(
        Workout(
            workout_id="",
            name="Tempo Run",
            kind="cardio",
            difficulty="beginner",
            duration_minutes=30,
            is_public=False,
        )
    )
    assert first.workout_id
    assert [w.name for w in store.list_workouts()] == ["Tempo Run", "First"]
    assert [w.name for w in store.list_workouts(kind="strength")] == ["First"]
    assert [w.name for w in store.list_workouts(is_public=True)] == ["First"]

    renamed = store.update_workout(second.workout_id, name="Long Run")
    assert store.get_workout(second.workout_id) == renamed

    with pytest.raises(ValueError, match="difficulty"):
        store.create_workout(
            Workout(
                workout_id="", name="x", kind="cardio", difficulty="easy", duration_minutes=5
            )
        )

    store.delete_workout(first.workout_id)
    with pytest.raises(KeyError):
        store.get_workout(first.workout_id)
    with pytest.raises(KeyError):
        store.delete_workout(first.workout_id)


def test_exercises_sorted_by_name(store: SQLiteStore) -> None:
    store.create_exercise(
        Exercise(exercise_id="", name="Squat", kind="strength", muscle_groups=["legs"])
    )
    store.create_exercise(Exercise(exercise_id="", name="Plank", kind="strength"))
    out = store.list_exercises()
    assert [e.name for e in out] == ["Plank", "Squat"]
    assert out[1].muscle_groups == ["legs"]


def test_scheduled_range_and_variants(store: SQLiteStore) -> None:
    workout = store.create_workout(_workout())
    store.create_scheduled(
        "u1",
        ScheduledEvent(
            day=date(2025, 10, 27),
            kind="cardio",
            session=CustomSession(name="Evening Cardio", kind="cardio", duration_minutes=30),
            start_time=time(18, 0),
        ),
    )
    store.create_scheduled(
        "u1",
        ScheduledEvent(
            day=date(2025, 10, 27),
            kind="strength",
            session=LibrarySession(workout.workout_id),
            start_time=time(7, 0),
        ),
    )
    store.create_scheduled(
        "u1",
        ScheduledEvent(
            day=date(2025, 11, 3),
            kind="flexibility",
            session=CustomSession(name="Yoga", kind="flexibility"),
        ),
    )
    store.create_scheduled(
        "u2",
        ScheduledEvent(
            day=date(2025, 10, 27),
            kind="cardio",
            session=CustomSession(name="Other user", kind="cardio"),
        ),
    )

    october = store.list_scheduled(
        "u1", start=date(2025, 10, 1), end=date(2025, 10, 31)
    )
    assert len(october) == 2
    assert october[0].session == LibrarySession(workout.workout_id)
    assert october[0].start_time == time(7, 0)
    assert isinstance(october[1].session, CustomSession)
    assert october[1].session.name == "Evening Cardio"
    assert october[1].session.duration_minutes == 30
    assert len(store.list_scheduled("u1")) == 3


def test_custom_session_kind_roundtrips(store: SQLiteStore) -> None:
    with pytest.raises(ValueError, match="does not match"):
        ScheduledEvent(
            day=date(2025, 10, 27),
            kind="strength",
            session=CustomSession(name="Run", kind="cardio"),
        )

    created = store.create_scheduled(
        "u1",
        ScheduledEvent(
            day=date(2025, 10, 27),
            kind="cardio",
            session=CustomSession(name="Run", kind="cardio"),
        ),
    )
    loaded = store.get_scheduled(created.event_id or "")
    assert isinstance(loaded.session, CustomSession)
    assert loaded.session.kind == "cardio"
    assert loaded.kind == "cardio"

    with pytest.raises(ValueError, match="does not match"):
        store.update_scheduled(created.event_id or "", kind="strength")
    retyped = store.update_scheduled(
        created.event_id or "",
        kind="strength",
        session=CustomSession(name="Run", kind="strength"),
    )
    assert retyped.session == CustomSession(name="Run", kind="strength")


def test_complete_scheduled_keeps_completed_at_consistent(store: SQLiteStore) -> None:
    event = store.create_scheduled(
        "u1",
        ScheduledEvent(
            day=date(2025, 10, 28),
            kind="flexibility",
            session=CustomSession(name="Yoga", kind="flexibility"),
        ),
    )
    assert event.event_id
    now = datetime(2025, 10, 28, 8, 30, tzinfo=timezone.utc)
    done = store.complete_scheduled(event.event_id, now=now)
    assert done.completed is True
    assert done.completed_at == now

    undone = store.complete_scheduled(event.event_id, completed=False)
    assert undone.completed is False
    assert undone.completed_at is None

    with pytest.raises(ValueError, match="complete_scheduled"):
        store.update_scheduled(event.event_id, completed=True)

    moved = store.update_scheduled(event.event_id, day=date(2025, 10, 30), notes="moved")
    assert moved.day == date(2025, 10, 30)
    assert moved.notes == "moved"

    store.delete_scheduled(event.event_id)
    with pytest.raises(KeyError):
        store.get_scheduled(event.event_id)


def test_plans_and_entries(store: SQLiteStore) -> None:
    weight = store.create_plan("u1", title="Body Weight", unit="kg", category="weight")
    bench = store.create_plan(
        "u1", title="Bench Press 1RM", unit="kg", category="strength", target_value=100
    )
    assert [p.title for p in store.list_plans("u1")] == ["Bench Press 1RM", "Body Weight"]
    assert store.list_plans("u2") == []

    for day, value in [("2025-10-24", 75.0), ("2025-10-20", 75.5), ("2025-10-22", 75.2)]:
        store.create_entry(
            weight.plan_id, DatedObservation(day=date.fromisoformat(day), value=value)
        )
    entries = store.list_entries(weight.plan_id)
    assert [e.value for e in entries] == [75.5, 75.2, 75.0]
    assert len(store.list_entries(weight.plan_id, limit=2)) == 2

    edited = store.update_entry(entries[0].entry_id or "", value=75.4, note="after trip")
    assert edited.value == 75.4
    assert store.get_entry(edited.entry_id or "").note == "after trip"
    with pytest.raises(ValueError):
        store.update_entry(edited.entry_id or "", value=float("nan"))

    store.update_plan(bench.plan_id, is_active=False)
    assert [p.title for p in store.list_plans("u1")] == ["Body Weight"]

    store.delete_plan(weight.plan_id)
    assert store.list_entries(weight.plan_id) == []
    with pytest.raises(KeyError):
        store.create_entry(
            weight.plan_id, DatedObservation(day=date(2025, 10, 30), value=74.0)
        )


def test_create_plan_validation(store: SQLiteStore) -> None:
    with pytest.raises(ValueError, match="title"):
        store.create_plan("u1", title="  ", unit="kg", category="weight")
    with pytest.raises(ValueError, match="unit"):
        store.create_plan("u1", title="x", unit="stone", category="weight")
    with pytest.raises(ValueError, match="category"):
        store.create_plan("u1", title="x", unit="kg", category="mood")


def test_migration_adds_lower_is_better(tmp_path: Path) -> None:
    db_path = tmp_path / "old.sqlite3"
    conn = sqlite3.connect(db_path)
    conn.execute(
        """
        CREATE TABLE tracking_plans (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            unit TEXT NOT NULL,
            category TEXT NOT NULL,
            target_value REAL,
            description TEXT,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        "INSERT INTO tracking_plans VALUES "
        "('p1', 'u1', '5k time', 'minutes', 'other', NULL, NULL, 1, 'x', 'x')"
    )
    conn.commit()
    conn.close()

    store = SQLiteStore(db_path)
    plan = store.get_plan("p1")
    assert plan.lower_is_better is False
    assert store.update_plan("p1", lower_is_better=True).lower_is_better is True
    assert store.get_plan("p1").lower_is_better is True
