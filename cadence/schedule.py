from . import store as records
from .advance import advance_overdue
from .core.models import DueHabit, Habit, IntervalState
from .core.types import ScheduleType
from .db import Store
from .lib import dates
from .lib.converters import hydrate_habit
from .lib.dates import DateLike

__all__ = [
    "due_habits_for_date",
    "habits_for_weekday",
    "is_due",
    "is_interval_due",
    "pending_habits",
]


def is_interval_due(state: IntervalState | None, ds: str, completed: bool) -> bool:
    if completed:
        return True
    if state is None:
        return False
    if state.next_due == ds:
        return True
    if state.reschedule_if_missed:
        if state.next_due < ds:
            return True
        # completed late: keep the occurrence visible across the span it covered
        return (
            state.last_due is not None
            and state.last_completed is not None
            and state.last_due <= ds < state.last_completed
        )
    # missed and auto-advanced: surface the skipped occurrence once, on its own day
    return state.last_due == ds and state.last_completed != state.last_due


def is_due(habit: Habit, ds: str, completed: bool = False) -> bool:
    """Whether a hydrated habit is scheduled on ds ("YYYY-MM-DD")."""
    if habit.schedule_type == ScheduleType.DAILY:
        return True
    if habit.schedule_type == ScheduleType.CUSTOM:
        if habit.one_time_date is not None:
            return habit.one_time_date == ds
        return dates.weekday_index(ds) in habit.days
    return is_interval_due(habit.interval_state, ds, completed)


def _hydrated_habits(conn) -> list[Habit]:
    habits = records.list_habits(conn)
    days_map = records.load_days_for_habits(conn, [h.id for h in habits])
    states = records.list_interval_states(conn)
    return [hydrate_habit(h, days_map.get(h.id), states.get(h.id)) for h in habits]


def due_habits_for_date(store: Store, date: DateLike) -> list[DueHabit]:
    """Habits due on date with their completion flag, oldest habit first.

    Overdue interval habits are advanced to `date` first, so the answer reflects
    the same logical "now" that is being asked about.
    """
    ds = dates.format_date(date)
    with store.transaction() as conn:
        advance_overdue(store, ds)
        done = records.completed_habit_ids(conn, ds)
        return [
            DueHabit(habit=h, completed=h.id in done)
            for h in _hydrated_habits(conn)
            if is_due(h, ds, completed=h.id in done)
        ]


def pending_habits(store: Store, date: DateLike) -> list[Habit]:
    return [d.habit for d in due_habits_for_date(store, date) if not d.completed]


def habits_for_weekday(store: Store, dow: int, date: DateLike) -> list[DueHabit]:
    """Weekly view: daily habits plus recurring custom habits on weekday dow.

    Interval and one-time habits are left out; they are not tied to a weekday.
    """
    ds = dates.format_date(date)
    with store.transaction() as conn:
        done = records.completed_habit_ids(conn, ds)
        result = []
        for h in _hydrated_habits(conn):
            if h.schedule_type == ScheduleType.DAILY or (
                h.schedule_type == ScheduleType.CUSTOM and h.one_time_date is None and dow in h.days
            ):
                result.append(DueHabit(habit=h, completed=h.id in done))
        return result
