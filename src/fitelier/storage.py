"""Persistencia SQLite para perfiles, rutinas, agenda, seguimiento y configuración."""

from __future__ import annotations

import json
import logging
import math
import sqlite3
import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

from fitelier.model import (
    DIFFICULTIES,
    PLAN_CATEGORIES,
    UNITS,
    CustomSession,
    DatedObservation,
    Exercise,
    LibrarySession,
    Profile,
    ScheduledEvent,
    TrackingPlan,
    Workout,
)

LOGGER = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS profiles (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL,
    full_name TEXT,
    age INTEGER,
    height_cm REAL,
    weight_kg REAL,
    fitness_goal TEXT,
    activity_level TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS workouts (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    difficulty TEXT NOT NULL,
    duration_minutes INTEGER NOT NULL,
    description TEXT,
    estimated_calories INTEGER,
    exercise_count INTEGER,
    is_public INTEGER NOT NULL DEFAULT 1,
    created_by TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS exercises (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    difficulty TEXT,
    description TEXT,
    muscle_groups TEXT,
    equipment TEXT,
    instructions TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS scheduled_workouts (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    workout_id TEXT,
    workout_type TEXT,
    custom_name TEXT,
    custom_description TEXT,
    duration_minutes INTEGER,
    scheduled_date TEXT NOT NULL,
    scheduled_time TEXT,
    completed INTEGER NOT NULL DEFAULT 0,
    completed_at TEXT,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(workout_id) REFERENCES workouts(id)
);

CREATE TABLE IF NOT EXISTS tracking_plans (
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
);

CREATE TABLE IF NOT EXISTS tracking_entries (
    id TEXT PRIMARY KEY,
    tracking_plan_id TEXT NOT NULL,
    entry_date TEXT NOT NULL,
    value REAL NOT NULL,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(tracking_plan_id) REFERENCES tracking_plans(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_scheduled_user_date
ON scheduled_workouts(user_id, scheduled_date);

CREATE INDEX IF NOT EXISTS idx_entries_plan_date
ON tracking_entries(tracking_plan_id, entry_date);
"""

_SCHEDULED_SELECT = """
SELECT
    s.id, s.workout_id, s.custom_name, s.custom_description,
    s.duration_minutes, s.scheduled_date, s.scheduled_time, s.completed,
    s.completed_at, s.notes,
    COALESCE(s.workout_type, w.type, 'strength') AS kind
FROM scheduled_workouts s
LEFT JOIN workouts w ON w.id = s.workout_id
"""


@dataclass(frozen=True)
class AppConfig:
    """Configuracion persistida de la app."""

    timezone: str
    chat_model: str
    chat_temperature: float
    export_dir: str


DEFAULT_CONFIG = AppConfig(
    timezone="",
    chat_model="gemini-2.5-flash",
    chat_temperature=0.7,
    export_dir="",
)


class SQLiteStore:
    """Repositorio SQLite para la app."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            self._migrate(conn)
            conn.commit()
        LOGGER.debug("Schema ready at %s", self._db_path)

    def _migrate(self, conn: sqlite3.Connection) -> None:
        """Apply lightweight schema migrations."""
        cols = {
            row["name"] for row in conn.execute("PRAGMA table_info(tracking_plans)")
        }
        if "lower_is_better" not in cols:
            LOGGER.info("Adding tracking_plans.lower_is_better column")
            conn.execute(
                "ALTER TABLE tracking_plans "
                "ADD COLUMN lower_is_better INTEGER NOT NULL DEFAULT 0"
            )

    # -- config ---------------------------------------------------------

    def load_config(self) -> AppConfig:
        """Devuelve configuracion guardada o defaults."""
        defaults = {
            "timezone": DEFAULT_CONFIG.timezone,
            "chat_model": DEFAULT_CONFIG.chat_model,
            "chat_temperature": str(DEFAULT_CONFIG.chat_temperature),
            "export_dir": DEFAULT_CONFIG.export_dir,
        }
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM app_config").fetchall()
        values = {row["key"]: row["value"] for row in rows}
        merged = {**defaults, **values}
        return AppConfig(
            timezone=merged["timezone"],
            chat_model=merged["chat_model"] or DEFAULT_CONFIG.chat_model,
            chat_temperature=_parse_temperature(merged["chat_temperature"]),
            export_dir=merged["export_dir"],
        )

    def save_config(self, config: AppConfig) -> None:
        """Guarda la configuracion en tabla key/value."""
        payload = {
            "timezone": config.timezone,
            "chat_model": config.chat_model,
            "chat_temperature": str(config.chat_temperature),
            "export_dir": config.export_dir,
        }
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                payload.items(),
            )
            conn.commit()

    # -- profiles -------------------------------------------------------

    def get_profile(self, user_id: str) -> Profile:
        """Return the profile of ``user_id``.

        Raises:
            KeyError: If the profile does not exist.
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM profiles WHERE id = ?", (user_id,)
            ).fetchone()
        if row is None:
            raise KeyError(f"profile {user_id}")
        return _row_to_profile(row)

    def create_profile(
        self, user_id: str, email: str, full_name: str | None = None
    ) -> Profile:
        """Create the profile row that accompanies a new account."""
        if not email.strip():
            raise ValueError("email is required")
        now = _now_iso()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO profiles(id, email, full_name, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user_id, email.strip(), full_name, now, now),
            )
            conn.commit()
        LOGGER.debug("Created profile %s", user_id)
        return self.get_profile(user_id)

    def update_profile(self, user_id: str, **changes: Any) -> Profile:
        """Update profile fields (email, full_name, age, height_cm, ...)."""
        changes.pop("user_id", None)
        updated = _apply_changes(self.get_profile(user_id), changes)
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE profiles SET
                    email = ?, full_name = ?, age = ?, height_cm = ?,
                    weight_kg = ?, fitness_goal = ?, activity_level = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    updated.email,
                    updated.full_name,
                    updated.age,
                    updated.height_cm,
                    updated.weight_kg,
                    updated.fitness_goal,
                    updated.activity_level,
                    _now_iso(),
                    user_id,
                ),
            )
            conn.commit()
        return updated

    # -- workouts -------------------------------------------------------

    def list_workouts(
        self,
        *,
        kind: str | None = None,
        difficulty: str | None = None,
        is_public: bool | None = None,
    ) -> list[Workout]:
        """Return library workouts, newest first, with optional filters."""
        clauses: list[str] = []
        params: list[object] = []
        if kind:
            clauses.append("type = ?")
            params.append(kind)
        if difficulty:
            clauses.append("difficulty = ?")
            params.append(difficulty)
        if is_public is not None:
            clauses.append("is_public = ?")
            params.append(int(is_public))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM workouts {where} ORDER BY created_at DESC, rowid DESC",
                tuple(params),
            ).fetchall()
        return [_row_to_workout(row) for row in rows]

    def get_workout(self, workout_id: str) -> Workout:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM workouts WHERE id = ?", (workout_id,)
            ).fetchone()
        if row is None:
            raise KeyError(f"workout {workout_id}")
        return _row_to_workout(row)

    def create_workout(self, workout: Workout) -> Workout:
        """Insert a workout; an empty ``workout_id`` gets a generated id."""
        _validate_difficulty(workout.difficulty)
        created = replace(workout, workout_id=workout.workout_id or _new_id())
        now = _now_iso()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO workouts(
                    id, name, type, difficulty, duration_minutes, description,
                    estimated_calories, exercise_count, is_public, created_by,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (*_workout_params(created), now, now),
            )
            conn.commit()
        LOGGER.debug("Created workout %s", created.workout_id)
        return created

    def update_workout(self, workout_id: str, **changes: Any) -> Workout:
        changes.pop("workout_id", None)
        updated = _apply_changes(self.get_workout(workout_id), changes)
        _validate_difficulty(updated.difficulty)
        params = _workout_params(updated)
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE workouts SET
                    name = ?, type = ?, difficulty = ?, duration_minutes = ?,
                    description = ?, estimated_calories = ?, exercise_count = ?,
                    is_public = ?, created_by = ?, updated_at = ?
                WHERE id = ?
                """,
                (*params[1:], _now_iso(), workout_id),
            )
            conn.commit()
        return updated

    def delete_workout(self, workout_id: str) -> None:
        self._delete("workouts", workout_id)

    # -- exercises ------------------------------------------------------

    def list_exercises(
        self, *, kind: str | None = None, difficulty: str | None = None
    ) -> list[Exercise]:
        """Return exercises ordered by name, with optional filters."""
        clauses: list[str] = []
        params: list[object] = []
        if kind:
            clauses.append("type = ?")
            params.append(kind)
        if difficulty:
            clauses.append("difficulty = ?")
            params.append(difficulty)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM exercises {where} ORDER BY name", tuple(params)
            ).fetchall()
        return [_row_to_exercise(row) for row in rows]

    def create_exercise(self, exercise: Exercise) -> Exercise:
        created = replace(exercise, exercise_id=exercise.exercise_id or _new_id())
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO exercises(
                    id, name, type, difficulty, description, muscle_groups,
                    equipment, instructions, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    created.exercise_id,
                    created.name,
                    created.kind,
                    created.difficulty,
                    created.description,
                    json.dumps(created.muscle_groups),
                    json.dumps(created.equipment),
                    json.dumps(created.instructions),
                    _now_iso(),
                ),
            )
            conn.commit()
        return created

    # -- scheduled workouts ---------------------------------------------

    def list_scheduled(
        self,
        user_id: str,
        *,
        start: date | None = None,
        end: date | None = None,
    ) -> list[ScheduledEvent]:
        """Return a user's scheduled events in ``[start, end]`` (inclusive).

        Ordered by date, then time (untimed first), then insertion.
        """
        clauses = ["s.user_id = ?"]
        params: list[object] = [user_id]
        if start is not None:
            clauses.append("s.scheduled_date >= ?")
            params.append(start.isoformat())
        if end is not None:
            clauses.append("s.scheduled_date <= ?")
            params.append(end.isoformat())
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                {_SCHEDULED_SELECT}
                WHERE {' AND '.join(clauses)}
                ORDER BY s.scheduled_date, s.scheduled_time, s.rowid
                """,
                tuple(params),
            ).fetchall()
        return [_row_to_event(row) for row in rows]

    def get_scheduled(self, event_id: str) -> ScheduledEvent:
        with self._connect() as conn:
            row = conn.execute(
                f"{_SCHEDULED_SELECT} WHERE s.id = ?", (event_id,)
            ).fetchone()
        if row is None:
            raise KeyError(f"scheduled workout {event_id}")
        return _row_to_event(row)

    def create_scheduled(self, user_id: str, event: ScheduledEvent) -> ScheduledEvent:
        """Schedule a workout for ``user_id``; returns the stored event."""
        created = replace(event, event_id=event.event_id or _new_id())
        now = _now_iso()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO scheduled_workouts(
                    id, user_id, workout_id, workout_type, custom_name,
                    custom_description, duration_minutes, scheduled_date,
                    scheduled_time, completed, completed_at, notes,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (created.event_id, user_id, *_event_params(created), now, now),
            )
            conn.commit()
        LOGGER.debug(
            "Scheduled %s for %s on %s", created.event_id, user_id, created.day
        )
        return self.get_scheduled(str(created.event_id))

    def update_scheduled(self, event_id: str, **changes: Any) -> ScheduledEvent:
        """Update day, start_time, kind, session or notes of an event.

        Completion changes go through ``complete_scheduled``.
        """
        if {"completed", "completed_at"} & changes.keys():
            raise ValueError("Use complete_scheduled to change completion")
        changes.pop("event_id", None)
        updated = _apply_changes(self.get_scheduled(event_id), changes)
        self._write_event(event_id, updated)
        return self.get_scheduled(event_id)

    def complete_scheduled(
        self,
        event_id: str,
        completed: bool = True,
        *,
        now: datetime | None = None,
    ) -> ScheduledEvent:
        """Mark an event (not) completed keeping ``completed_at`` consistent."""
        current = self.get_scheduled(event_id)
        stamp = now or datetime.now().astimezone()
        updated = replace(
            current,
            completed=completed,
            completed_at=stamp if completed else None,
        )
        self._write_event(event_id, updated)
        return self.get_scheduled(event_id)

    def delete_scheduled(self, event_id: str) -> None:
        self._delete("scheduled_workouts", event_id)

    def _write_event(self, event_id: str, event: ScheduledEvent) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE scheduled_workouts SET
                    workout_id = ?, workout_type = ?, custom_name = ?,
                    custom_description = ?, duration_minutes = ?,
                    scheduled_date = ?, scheduled_time = ?, completed = ?,
                    completed_at = ?, notes = ?, updated_at = ?
                WHERE id = ?
                """,
                (*_event_params(event), _now_iso(), event_id),
            )
            conn.commit()

    # -- tracking plans -------------------------------------------------

    def list_plans(self, user_id: str) -> list[TrackingPlan]:
        """Active tracking plans of a user, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM tracking_plans
                WHERE user_id = ? AND is_active = 1
                ORDER BY created_at DESC, rowid DESC
                """,
                (user_id,),
            ).fetchall()
        return [_row_to_plan(row) for row in rows]

    def get_plan(self, plan_id: str) -> TrackingPlan:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM tracking_plans WHERE id = ?", (plan_id,)
            ).fetchone()
        if row is None:
            raise KeyError(f"tracking plan {plan_id}")
        return _row_to_plan(row)

    def create_plan(
        self,
        user_id: str,
        *,
        title: str,
        unit: str,
        category: str,
        target_value: float | None = None,
        description: str | None = None,
        lower_is_better: bool = False,
    ) -> TrackingPlan:
        """Create a tracking plan for ``user_id``.

        Raises:
            ValueError: If title is blank or unit/category are unknown.
        """
        plan = TrackingPlan(
            plan_id=_new_id(),
            user_id=user_id,
            title=title.strip(),
            unit=unit,
            category=category,
            target_value=target_value,
            description=description,
            lower_is_better=lower_is_better,
        )
        _validate_plan(plan)
        now = _now_iso()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO tracking_plans(
                    id, user_id, title, unit, category, target_value,
                    description, is_active, lower_is_better, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (*_plan_params(plan), now, now),
            )
            conn.commit()
        LOGGER.debug("Created tracking plan %s for %s", plan.plan_id, user_id)
        return plan

    def update_plan(self, plan_id: str, **changes: Any) -> TrackingPlan:
        changes.pop("plan_id", None)
        changes.pop("user_id", None)
        updated = _apply_changes(self.get_plan(plan_id), changes)
        _validate_plan(updated)
        params = _plan_params(updated)
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE tracking_plans SET
                    title = ?, unit = ?, category = ?, target_value = ?,
                    description = ?, is_active = ?, lower_is_better = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (*params[2:], _now_iso(), plan_id),
            )
            conn.commit()
        return updated

    def delete_plan(self, plan_id: str) -> None:
        """Delete a plan together with its entries."""
        self._delete("tracking_plans", plan_id)

    # -- tracking entries -----------------------------------------------

    def list_entries(
        self, plan_id: str, limit: int | None = None
    ) -> list[DatedObservation]:
        """Entries of a plan ascending by date (insertion order for ties)."""
        sql = """
            SELECT * FROM tracking_entries
            WHERE tracking_plan_id = ?
            ORDER BY entry_date, rowid
        """
        params: tuple[object, ...] = (plan_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (plan_id, int(limit))
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_row_to_observation(row) for row in rows]

    def get_entry(self, entry_id: str) -> DatedObservation:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM tracking_entries WHERE id = ?", (entry_id,)
            ).fetchone()
        if row is None:
            raise KeyError(f"tracking entry {entry_id}")
        return _row_to_observation(row)

    def create_entry(
        self, plan_id: str, observation: DatedObservation
    ) -> DatedObservation:
        """Add an observation to a plan.

        Raises:
            KeyError: If the plan does not exist.
        """
        self.get_plan(plan_id)
        created = replace(observation, entry_id=observation.entry_id or _new_id())
        now = _now_iso()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO tracking_entries(
                    id, tracking_plan_id, entry_date, value, notes,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    created.entry_id,
                    plan_id,
                    created.day.isoformat(),
                    created.value,
                    created.note,
                    now,
                    now,
                ),
            )
            conn.commit()
        return created

    def update_entry(self, entry_id: str, **changes: Any) -> DatedObservation:
        changes.pop("entry_id", None)
        updated = _apply_changes(self.get_entry(entry_id), changes)
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE tracking_entries SET
                    entry_date = ?, value = ?, notes = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    updated.day.isoformat(),
                    updated.value,
                    updated.note,
                    _now_iso(),
                    entry_id,
                ),
            )
            conn.commit()
        return updated

    def delete_entry(self, entry_id: str) -> None:
        self._delete("tracking_entries", entry_id)

    def _delete(self, table: str, record_id: str) -> None:
        with self._connect() as conn:
            cur = conn.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
            conn.commit()
        if cur.rowcount == 0:
            raise KeyError(f"{table} {record_id}")
        LOGGER.debug("Deleted %s from %s", record_id, table)


def _new_id() -> str:
    return uuid.uuid4().hex


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat(timespec="microseconds")


def _parse_temperature(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_CONFIG.chat_temperature
    if not math.isfinite(value):
        return DEFAULT_CONFIG.chat_temperature
    return value


def _apply_changes(record: Any, changes: dict[str, Any]) -> Any:
    """Devuelve una copia con los cambios; campos desconocidos -> ValueError."""
    try:
        return replace(record, **changes)
    except TypeError as exc:
        raise ValueError(f"Invalid update fields {sorted(changes)}: {exc}") from exc


def _validate_difficulty(difficulty: str) -> None:
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty: {difficulty}")


def _validate_plan(plan: TrackingPlan) -> None:
    if not plan.title:
        raise ValueError("title is required")
    if plan.unit not in UNITS:
        raise ValueError(f"Unknown unit: {plan.unit}")
    if plan.category not in PLAN_CATEGORIES:
        raise ValueError(f"Unknown category: {plan.category}")


def _parse_json_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        parsed: Any = json.loads(raw)
    except json.JSONDecodeError:
        return []
    if not isinstance(parsed, list):
        return []
    return [str(item) for item in parsed]


def _optional_datetime(raw: str | None) -> datetime | None:
    return datetime.fromisoformat(raw) if raw else None


def _optional_time(raw: str | None) -> time | None:
    return time.fromisoformat(raw) if raw else None


def _row_to_profile(row: sqlite3.Row) -> Profile:
    return Profile(
        user_id=row["id"],
        email=row["email"],
        full_name=row["full_name"],
        age=row["age"],
        height_cm=row["height_cm"],
        weight_kg=row["weight_kg"],
        fitness_goal=row["fitness_goal"],
        activity_level=row["activity_level"],
    )


def _workout_params(workout: Workout) -> tuple[object, ...]:
    return (
        workout.workout_id,
        workout.name,
        workout.kind,
        workout.difficulty,
        workout.duration_minutes,
        workout.description,
        workout.estimated_calories,
        workout.exercise_count,
        int(workout.is_public),
        workout.created_by,
    )


def _row_to_workout(row: sqlite3.Row) -> Workout:
    return Workout(
        workout_id=row["id"],
        name=row["name"],
        kind=row["type"],
        difficulty=row["difficulty"],
        duration_minutes=row["duration_minutes"],
        description=row["description"],
        estimated_calories=row["estimated_calories"],
        exercise_count=row["exercise_count"],
        is_public=bool(row["is_public"]),
        created_by=row["created_by"],
    )


def _row_to_exercise(row: sqlite3.Row) -> Exercise:
    return Exercise(
        exercise_id=row["id"],
        name=row["name"],
        kind=row["type"],
        difficulty=row["difficulty"],
        description=row["description"],
        muscle_groups=_parse_json_list(row["muscle_groups"]),
        equipment=_parse_json_list(row["equipment"]),
        instructions=_parse_json_list(row["instructions"]),
    )


def _event_params(event: ScheduledEvent) -> tuple[object, ...]:
    session = event.session
    if isinstance(session, LibrarySession):
        workout_id = session.workout_id
        custom = (None, None, None)
    elif isinstance(session, CustomSession):
        workout_id = None
        custom = (session.name, session.description, session.duration_minutes)
    else:
        raise TypeError(f"Unknown session variant: {type(session).__name__}")
    return (
        workout_id,
        event.kind,
        *custom,
        event.day.isoformat(),
        event.start_time.isoformat(timespec="minutes") if event.start_time else None,
        int(event.completed),
        event.completed_at.isoformat() if event.completed_at else None,
        event.notes,
    )


def _row_to_event(row: sqlite3.Row) -> ScheduledEvent:
    session: LibrarySession | CustomSession
    if row["workout_id"]:
        session = LibrarySession(workout_id=row["workout_id"])
    else:
        session = CustomSession(
            name=row["custom_name"] or "",
            kind=row["kind"],
            duration_minutes=row["duration_minutes"],
            description=row["custom_description"],
        )
    return ScheduledEvent(
        day=date.fromisoformat(row["scheduled_date"]),
        kind=row["kind"],
        session=session,
        start_time=_optional_time(row["scheduled_time"]),
        completed=bool(row["completed"]),
        completed_at=_optional_datetime(row["completed_at"]),
        event_id=row["id"],
        notes=row["notes"],
    )


def _plan_params(plan: TrackingPlan) -> tuple[object, ...]:
    return (
        plan.plan_id,
        plan.user_id,
        plan.title,
        plan.unit,
        plan.category,
        plan.target_value,
        plan.description,
        int(plan.is_active),
        int(plan.lower_is_better),
    )


def _row_to_plan(row: sqlite3.Row) -> TrackingPlan:
    return TrackingPlan(
        plan_id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        unit=row["unit"],
        category=row["category"],
        target_value=row["target_value"],
        description=row["description"],
        is_active=bool(row["is_active"]),
        lower_is_better=bool(row["lower_is_better"]),
    )


def _row_to_observation(row: sqlite3.Row) -> DatedObservation:
    return DatedObservation(
        day=date.fromisoformat(row["entry_date"]),
        value=float(row["value"]),
        note=row["notes"],
        entry_id=row["id"],
    )
