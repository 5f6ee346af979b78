"""CLI de Fitelier: agenda, seguimiento, biblioteca, perfil, asistente y Excel."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from datetime import date, datetime, time, tzinfo
from pathlib import Path

from dateutil import tz
from dotenv import load_dotenv

from fitelier.calendar_grid import (
    WEEKDAY_LABELS,
    GridCell,
    MonthView,
    grid_weeks,
    parse_month,
)
from fitelier.chat import ChatProxy
from fitelier.errors import ChatError, DivisionByZeroError, EmptySeriesError
from fitelier.excel_writer import ExcelLayout, write_progress_xlsx
from fitelier.library import count_by_kind, filter_workouts
from fitelier.model import (
    DIFFICULTIES,
    PLAN_CATEGORIES,
    UNITS,
    WORKOUT_KINDS,
    CustomSession,
    DatedObservation,
    LibrarySession,
    ScheduledEvent,
    resolve_session,
)
from fitelier.progress import period_summary, sorted_projection, summarize
from fitelier.storage import AppConfig, SQLiteStore

LOGGER = logging.getLogger(__name__)

_DEFAULT_DB = Path.home() / ".fitelier" / "fitelier.sqlite3"

_PROFILE_FIELDS = {
    "email": "email",
    "name": "full_name",
    "age": "age",
    "height": "height_cm",
    "weight": "weight_kg",
    "goal": "fitness_goal",
    "activity": "activity_level",
}


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Fitelier: workout calendar, progress tracking and AI assistant."
    )
    parser.add_argument(
        "--db",
        default=str(_DEFAULT_DB),
        help="SQLite database (default: ~/.fitelier/fitelier.sqlite3).",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    cal = sub.add_parser("calendar", help="Show a month of scheduled workouts.")
    cal.add_argument("--user", required=True)
    cal.add_argument("--month", default=None, help="YYYY-MM (default: current).")

    sched = sub.add_parser("schedule", help="Put a workout on the calendar.")
    sched.add_argument("--user", required=True)
    sched.add_argument("--date", required=True, help="YYYY-MM-DD.")
    sched.add_argument("--time", default=None, help="HH:MM.")
    source = sched.add_mutually_exclusive_group(required=True)
    source.add_argument("--workout", default=None, help="Library workout id.")
    source.add_argument("--name", default=None, help="Custom session name.")
    sched.add_argument("--kind", choices=WORKOUT_KINDS, default="strength")
    sched.add_argument("--duration", type=int, default=None, help="Minutes.")
    sched.add_argument("--description", default=None)
    sched.add_argument("--notes", default=None)

    unsched = sub.add_parser("unschedule", help="Remove a scheduled workout.")
    unsched.add_argument("--event", required=True)

    done = sub.add_parser("complete", help="Mark a scheduled workout completed.")
    done.add_argument("--event", required=True)
    done.add_argument("--undo", action="store_true", help="Mark as not completed.")

    lib = sub.add_parser("workouts", help="Browse the workout library.")
    lib.add_argument("--query", default="", help="Search name and description.")
    lib.add_argument("--kind", choices=("all", *WORKOUT_KINDS), default="all")
    lib.add_argument("--difficulty", choices=DIFFICULTIES, default=None)

    plan = sub.add_parser("plan-add", help="Create a tracking plan.")
    plan.add_argument("--user", required=True)
    plan.add_argument("--title", required=True)
    plan.add_argument("--unit", choices=UNITS, required=True)
    plan.add_argument("--category", choices=PLAN_CATEGORIES, required=True)
    plan.add_argument("--target", type=float, default=None)
    plan.add_argument("--description", default=None)
    plan.add_argument(
        "--lower-is-better",
        action="store_true",
        help="Best value is the minimum (e.g. run times).",
    )

    prog = sub.add_parser("progress", help="Summarize active tracking plans.")
    prog.add_argument("--user", required=True)
    prog.add_argument(
        "--period",
        choices=["daily", "weekly", "monthly"],
        default=None,
        help="Also print per-period aggregates.",
    )
    prog.add_argument(
        "--points", action="store_true", help="Also print the chart points."
    )

    entry = sub.add_parser("add-entry", help="Log a value for a tracking plan.")
    entry.add_argument("--plan", required=True)
    entry.add_argument("--value", type=float, required=True)
    entry.add_argument("--date", default=None, help="YYYY-MM-DD (default: today).")
    entry.add_argument("--note", default=None)

    prof = sub.add_parser("profile", help="Show, create or edit a profile.")
    prof.add_argument("--user", required=True)
    prof.add_argument("--email", default=None)
    prof.add_argument("--name", default=None)
    prof.add_argument("--age", type=int, default=None)
    prof.add_argument("--height", type=float, default=None, help="Centimetres.")
    prof.add_argument("--weight", type=float, default=None, help="Kilograms.")
    prof.add_argument("--goal", default=None)
    prof.add_argument("--activity", default=None)

    chat = sub.add_parser("chat", help="Ask the fitness assistant.")
    chat.add_argument("--message", required=True)

    export = sub.add_parser("export", help="Write the progress workbook.")
    export.add_argument("--user", required=True)
    export.add_argument("--out", default=None, help="Output directory.")
    return parser.parse_args(argv)


def _local_tz(config: AppConfig) -> tzinfo | None:
    return tz.gettz(config.timezone) if config.timezone else tz.tzlocal()


def _today(config: AppConfig) -> date:
    return datetime.now(tz=_local_tz(config)).date()


def render_grid(cells: Sequence[GridCell]) -> str:
    """Render the month grid as text; ``*`` marks days with workouts."""
    lines = [" ".join(f"{label:>4}" for label in WEEKDAY_LABELS)]
    for week in grid_weeks(cells):
        parts = []
        for cell in week:
            if cell.day is None:
                parts.append("    ")
                continue
            marker = "*" if cell.events else " "
            parts.append(f"{cell.day.day:>3}{marker}")
        lines.append(" ".join(parts))
    return "\n".join(lines)


def _cmd_calendar(
    store: SQLiteStore, config: AppConfig, ns: argparse.Namespace
) -> int:
    month = parse_month(ns.month) if ns.month else parse_month(_today(config))
    view = MonthView(ns.user, month)
    view.refresh(store)
    summary = view.summary()
    print(f"{month:%B %Y}")
    print(render_grid(view.grid()))
    print(
        f"Total: {summary.total}  Completed: {summary.completed}  "
        f"Active days: {summary.active_day_count}  "
        f"Completion: {summary.completion_percent}%"
    )
    library = {w.workout_id: w for w in store.list_workouts()}
    for event in view.events:
        details = resolve_session(event, library)
        hhmm = event.start_time.strftime("%H:%M") if event.start_time else "--:--"
        mark = "x" if event.completed else " "
        print(
            f"[{mark}] {event.day.isoformat()} {hhmm}  {details.name} "
            f"({details.kind})  {event.event_id}"
        )
    return 0


def _cmd_schedule(store: SQLiteStore, ns: argparse.Namespace) -> int:
    day = date.fromisoformat(ns.date)
    start = time.fromisoformat(ns.time) if ns.time else None
    if ns.workout:
        workout = store.get_workout(ns.workout)
        event = ScheduledEvent(
            day=day,
            kind=workout.kind,
            session=LibrarySession(workout.workout_id),
            start_time=start,
            notes=ns.notes,
        )
    else:
        if not ns.name.strip():
            raise ValueError("--name must not be blank")
        event = ScheduledEvent(
            day=day,
            kind=ns.kind,
            session=CustomSession(
                name=ns.name.strip(),
                kind=ns.kind,
                duration_minutes=ns.duration,
                description=ns.description,
            ),
            start_time=start,
            notes=ns.notes,
        )
    created = store.create_scheduled(ns.user, event)
    print(f"OK: scheduled {created.event_id} on {created.day.isoformat()}")
    return 0


def _cmd_unschedule(store: SQLiteStore, ns: argparse.Namespace) -> int:
    store.delete_scheduled(ns.event)
    print(f"OK: {ns.event} removed")
    return 0


def _cmd_workouts(store: SQLiteStore, ns: argparse.Namespace) -> int:
    workouts = store.list_workouts()
    counts = count_by_kind(workouts)
    print("  ".join(f"{kind}: {n}" for kind, n in counts.items()))
    found = filter_workouts(
        workouts, query=ns.query, kind=ns.kind, difficulty=ns.difficulty
    )
    if not found:
        print("No workouts found.")
        return 0
    for w in found:
        print(
            f"{w.workout_id}  {w.name}  {w.kind}/{w.difficulty}  "
            f"{w.duration_minutes} min"
        )
    return 0


def _cmd_plan_add(store: SQLiteStore, ns: argparse.Namespace) -> int:
    plan = store.create_plan(
        ns.user,
        title=ns.title,
        unit=ns.unit,
        category=ns.category,
        target_value=ns.target,
        description=ns.description,
        lower_is_better=ns.lower_is_better,
    )
    print(f"OK: plan {plan.plan_id} {plan.title} ({plan.unit})")
    return 0


def format_summary(
    title: str, unit: str, series: Sequence[DatedObservation], lower_is_better: bool
) -> str:
    """One line per plan; errors are reported in place of the numbers."""
    try:
        summary = summarize(series, lower_is_better=lower_is_better)
    except EmptySeriesError:
        return f"{title}: no entries yet"
    except DivisionByZeroError:
        return f"{title}: change undefined (first value is 0), {len(series)} entries"
    change = summary.percent_change_from_first
    change_txt = f"{change:+.1f}%" if change is not None else "n/a"
    return (
        f"{title}: latest {summary.latest:g} {unit}, best {summary.best:g} {unit}, "
        f"avg {summary.average:.1f} {unit}, change {change_txt}"
    )


def _cmd_progress(store: SQLiteStore, ns: argparse.Namespace) -> int:
    plans = store.list_plans(ns.user)
    if not plans:
        print("No active tracking plans.")
        return 0
    for plan in plans:
        series = store.list_entries(plan.plan_id)
        print(format_summary(plan.title, plan.unit, series, plan.lower_is_better))
        if ns.points:
            for point in sorted_projection(series):
                print(f"  {point.label}: {point.value:g}")
        if ns.period and series:
            print(period_summary(series, ns.period).to_string(index=False))
    return 0


def _cmd_add_entry(
    store: SQLiteStore, config: AppConfig, ns: argparse.Namespace
) -> int:
    day = date.fromisoformat(ns.date) if ns.date else _today(config)
    created = store.create_entry(
        ns.plan, DatedObservation(day=day, value=ns.value, note=ns.note)
    )
    print(f"OK: entry {created.entry_id} on {created.day.isoformat()}")
    return 0


def _cmd_complete(store: SQLiteStore, ns: argparse.Namespace) -> int:
    event = store.complete_scheduled(ns.event, completed=not ns.undo)
    state = "completed" if event.completed else "pending"
    print(f"OK: {ns.event} {state}")
    return 0


def _cmd_profile(store: SQLiteStore, ns: argparse.Namespace) -> int:
    changes = {
        field: getattr(ns, arg)
        for arg, field in _PROFILE_FIELDS.items()
        if getattr(ns, arg) is not None
    }
    try:
        profile = store.get_profile(ns.user)
    except KeyError:
        if "email" not in changes:
            raise ValueError("--email is required to create a profile") from None
        email = changes.pop("email")
        profile = store.create_profile(ns.user, email, changes.pop("full_name", None))
        print(f"OK: profile {ns.user} created")
    if changes:
        profile = store.update_profile(ns.user, **changes)
        print(f"OK: profile {ns.user} updated")
    for arg, field in _PROFILE_FIELDS.items():
        value = getattr(profile, field)
        print(f"{arg}: {value if value is not None else '-'}")
    return 0


def _cmd_chat(config: AppConfig, ns: argparse.Namespace) -> int:
    proxy = ChatProxy(model=config.chat_model, temperature=config.chat_temperature)
    try:
        reply = proxy.reply([], ns.message)
    except ChatError as exc:
        print(f"Error: {exc.message}")
        return 1
    print(reply.text)
    return 0


def _cmd_export(
    store: SQLiteStore, config: AppConfig, ns: argparse.Namespace
) -> int:
    plans = store.list_plans(ns.user)
    pairs = [(plan, store.list_entries(plan.plan_id)) for plan in plans]
    if ns.out:
        out_dir = Path(ns.out).expanduser()
    elif config.export_dir:
        out_dir = Path(config.export_dir).expanduser()
    else:
        out_dir = Path.cwd() / "exports"
    ts = datetime.now(tz=_local_tz(config)).strftime("%Y-%m-%d_%H-%M-%S")
    out_path = out_dir / f"fitelier_progress_{ts}.xlsx"
    write_progress_xlsx(pairs, out_path, ExcelLayout())
    print(f"OK: Plans exported: {len(pairs)}")
    print(f"OK: Output: {out_path}")
    return 0


def _dispatch(store: SQLiteStore, config: AppConfig, ns: argparse.Namespace) -> int:
    if ns.command == "calendar":
        return _cmd_calendar(store, config, ns)
    if ns.command == "schedule":
        return _cmd_schedule(store, ns)
    if ns.command == "unschedule":
        return _cmd_unschedule(store, ns)
    if ns.command == "complete":
        return _cmd_complete(store, ns)
    if ns.command == "workouts":
        return _cmd_workouts(store, ns)
    if ns.command == "plan-add":
        return _cmd_plan_add(store, ns)
    if ns.command == "progress":
        return _cmd_progress(store, ns)
    if ns.command == "add-entry":
        return _cmd_add_entry(store, config, ns)
    if ns.command == "profile":
        return _cmd_profile(store, ns)
    if ns.command == "chat":
        return _cmd_chat(config, ns)
    if ns.command == "export":
        return _cmd_export(store, config, ns)
    raise ValueError(f"Unknown command: {ns.command}")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code (0 on success, 1 on invalid input or unknown ids).
    """
    load_dotenv()
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    store = SQLiteStore(Path(ns.db).expanduser())
    config = store.load_config()
    LOGGER.debug("Running %s with %s", ns.command, ns.db)

    try:
        return _dispatch(store, config, ns)
    except KeyError as exc:
        LOGGER.debug("Lookup failed", exc_info=True)
        print(f"Error: not found: {exc.args[0] if exc.args else exc}")
        return 1
    except ValueError as exc:
        LOGGER.debug("Invalid input", exc_info=True)
        print(f"Error: {exc}")
        return 1
