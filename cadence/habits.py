import uuid

from fncli import UsageError, cli

from . import db
from . import store as records
from .advance import advance_overdue
from .core.errors import NotFoundError, ValidationError
from .core.models import Habit, NewHabit
from .core.types import ScheduleType
from .db import Store
from .lib import ansi, clock, dates
from .lib.converters import hydrate_habit
from .lib.dates import DateLike
from .lib.fuzzy import find_in_pool

__all__ = [
    "clear_all",
    "create_habit",
    "delete_habit",
    "find_habit",
    "get_habit",
    "list_habits",
    "update_habit",
    "validate_new_habit",
]


# ── domain ───────────────────────────────────────────────────────────────────


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("habit name cannot be empty")
    return cleaned


def _clean_days(days: list[int]) -> list[int]:
    for day in days:
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            raise ValidationError(f"weekday must be 0 (Sunday) to 6 (Saturday), got {day!r}")
    return sorted(set(days))


def _clean_interval(interval_days: int | None) -> int:
    if isinstance(interval_days, bool) or not isinstance(interval_days, int) or interval_days < 1:
        raise ValidationError("interval habits need a positive interval_days")
    return interval_days


def validate_new_habit(new: NewHabit) -> NewHabit:
    """Normalize a creation request or raise ValidationError. Performs no writes."""
    name = _clean_name(new.name)
    try:
        schedule_type = ScheduleType(new.schedule_type)
    except ValueError:
        raise ValidationError(f"unknown schedule type '{new.schedule_type}'") from None

    if schedule_type == ScheduleType.DAILY:
        if new.interval_days is not None:
            raise ValidationError("interval_days is only valid for interval habits")
        return NewHabit(name=name, schedule_type=schedule_type)

    if schedule_type == ScheduleType.CUSTOM:
        if new.interval_days is not None:
            raise ValidationError("interval_days is only valid for interval habits")
        days = _clean_days(list(new.days))
        if new.one_time_date is not None:
            if days:
                raise ValidationError("a one-time habit cannot also repeat on weekdays")
            return NewHabit(
                name=name,
                schedule_type=schedule_type,
                one_time_date=dates.format_date(new.one_time_date),
            )
        if not days:
            raise ValidationError("custom habits need at least one weekday or a one-time date")
        return NewHabit(name=name, schedule_type=schedule_type, days=days)

    interval_days = _clean_interval(new.interval_days)
    start = dates.format_date(new.start_date) if new.start_date else dates.format_date(clock.today())
    return NewHabit(
        name=name,
        schedule_type=schedule_type,
        interval_days=interval_days,
        start_date=start,
        reschedule_if_missed=bool(new.reschedule_if_missed),
    )


def create_habit(store: Store, new: NewHabit) -> Habit:
    spec = validate_new_habit(new)
    habit_id = str(uuid.uuid4())
    created_at = clock.now().isoformat()
    with store.transaction() as conn:
        records.insert_habit(
            conn,
            habit_id,
            spec.name,
            spec.schedule_type.value,
            spec.interval_days,
            spec.one_time_date,
            created_at,
        )
        if spec.schedule_type == ScheduleType.CUSTOM and spec.days:
            records.replace_days(conn, habit_id, spec.days)
        if spec.schedule_type == ScheduleType.INTERVAL and spec.start_date:
            records.insert_interval_state(
                conn, habit_id, spec.start_date, spec.reschedule_if_missed
            )
        return _load(conn, habit_id)


def _load(conn, habit_id: str) -> Habit:
    habit = records.require_habit(conn, habit_id)
    days = records.list_days(conn, habit_id) if habit.schedule_type == ScheduleType.CUSTOM else []
    state = (
        records.get_interval_state(conn, habit_id)
        if habit.schedule_type == ScheduleType.INTERVAL
        else None
    )
    return hydrate_habit(habit, days, state)


def get_habit(store: Store, habit_id: str) -> Habit:
    with store.transaction() as conn:
        return _load(conn, habit_id)


def list_habits(
    store: Store,
    schedule_type: ScheduleType | str | None = None,
    reference_date: DateLike | None = None,
) -> list[Habit]:
    """All habits, or one schedule type, oldest first.

    The custom listing covers weekday habits only; one-time habits appear in the
    unfiltered listing. Listing interval habits advances overdue ones first.
    """
    with store.transaction() as conn:
        if schedule_type is None:
            habits = records.list_habits(conn)
        else:
            kind = ScheduleType(schedule_type)
            if kind == ScheduleType.INTERVAL:
                advance_overdue(store, reference_date or clock.today())
            where = "h.schedule_type = ?"
            if kind == ScheduleType.CUSTOM:
                where += " AND h.one_time_date IS NULL"
            habits = records.list_habits(conn, where, (kind.value,))
        days_map = records.load_days_for_habits(conn, [h.id for h in habits])
        states = records.list_interval_states(conn)
        return [hydrate_habit(h, days_map.get(h.id), states.get(h.id)) for h in habits]


def update_habit(
    store: Store,
    habit_id: str,
    name: str | None = None,
    days: list[int] | None = None,
    interval_days: int | None = None,
) -> Habit:
    """Rename a habit, or change its weekdays (custom) or interval length (interval)."""
    fields: dict[str, object] = {}
    if name is not None:
        fields["name"] = _clean_name(name)

    with store.transaction() as conn:
        habit = records.require_habit(conn, habit_id)
        if days is not None:
            if habit.schedule_type != ScheduleType.CUSTOM or habit.one_time_date is not None:
                raise ValidationError("only weekday habits have days to edit")
            cleaned = _clean_days(list(days))
            if not cleaned:
                raise ValidationError("custom habits need at least one weekday")
            records.replace_days(conn, habit_id, cleaned)
        if interval_days is not None:
            if habit.schedule_type != ScheduleType.INTERVAL:
                raise ValidationError("interval_days is only valid for interval habits")
            fields["interval_days"] = _clean_interval(interval_days)
        records.update_habit(conn, habit_id, clock.now().isoformat(), **fields)
        return _load(conn, habit_id)


def delete_habit(store: Store, habit_id: str) -> None:
    """Delete a habit along with its weekdays, completions and interval state."""
    with store.transaction() as conn:
        if not records.delete_habit(conn, habit_id):
            raise NotFoundError(f"no habit with id '{habit_id}'")


def clear_all(store: Store) -> None:
    with store.transaction() as conn:
        records.clear_all(conn)


def find_habit(store: Store, ref: str) -> Habit:
    habit = find_in_pool(ref, list_habits(store))
    if habit is None:
        raise NotFoundError(f"no habit found: '{ref}'")
    return habit


def describe_schedule(habit: Habit) -> str:
    if habit.schedule_type == ScheduleType.DAILY:
        return "daily"
    if habit.schedule_type == ScheduleType.INTERVAL:
        state = habit.interval_state
        due = f", next {state.next_due}" if state else ""
        carry = ", carries over" if state and state.reschedule_if_missed else ""
        return f"every {habit.interval_days}d{due}{carry}"
    if habit.one_time_date:
        return f"once on {habit.one_time_date}"
    return ",".join(dates.WEEKDAYS[d] for d in habit.days)


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("cadence")
def add(
    name: str,
    days: str | None = None,
    today: bool = False,
    every: int | None = None,
    start: str | None = None,
    reschedule: bool = False,
) -> None:
    """Add a habit (daily unless --days, --today or --every is given)"""
    chosen = [opt for opt in (days, today, every is not None) if opt]
    if len(chosen) > 1:
        raise UsageError("use only one of --days, --today, --every")

    if every is not None:
        new = NewHabit(
            name=name,
            schedule_type=ScheduleType.INTERVAL,
            interval_days=every,
            start_date=dates.parse_date_arg(start) if start else None,
            reschedule_if_missed=reschedule,
        )
    elif days:
        parsed = [dates.parse_weekday(tok) for tok in days.split(",") if tok.strip()]
        new = NewHabit(name=name, schedule_type=ScheduleType.CUSTOM, days=parsed)
    elif today:
        new = NewHabit(
            name=name,
            schedule_type=ScheduleType.CUSTOM,
            one_time_date=dates.format_date(clock.today()),
        )
    else:
        new = NewHabit(name=name)

    with db.open_store() as store:
        habit = create_habit(store, new)
    print(f"added {habit.name}  {ansi.dim(describe_schedule(habit))}  [{habit.id[:8]}]")


@cli("cadence")
def rm(ref: str) -> None:
    """Delete a habit and its history"""
    with db.open_store() as store:
        habit = find_habit(store, ref)
        delete_habit(store, habit.id)
    print(f"removed {habit.name}")


@cli("cadence")
def rename(ref: str, name: str) -> None:
    """Rename a habit"""
    with db.open_store() as store:
        habit = find_habit(store, ref)
        if habit.name == name.strip():
            raise ValidationError(f"cannot rename '{habit.name}' to itself")
        updated = update_habit(store, habit.id, name=name)
    print(f"→ {updated.name}")


@cli("cadence")
def habits() -> None:
    """List every habit with its schedule"""
    with db.open_store() as store:
        items = list_habits(store)
    if not items:
        print("no habits yet")
        return
    for h in items:
        print(f"[{h.id[:8]}] {h.name}  {ansi.dim(describe_schedule(h))}")
