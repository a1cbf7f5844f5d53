import logging

from . import store as records
from .core.types import ScheduleType
from .db import Store
from .lib import dates
from .lib.dates import DateLike

__all__ = [
    "complete",
    "completions_between",
    "is_completed",
    "toggle",
    "total_completions",
    "uncomplete",
    "week_progress",
]

logger = logging.getLogger(__name__)


def complete(store: Store, habit_id: str, date: DateLike) -> None:
    """Mark habit done on date. Repeating a completion is a no-op for the record.

    Interval habits re-anchor on the completion date: the due date being tracked
    becomes last_due and the next occurrence is date + interval_days.
    """
    ds = dates.format_date(date)
    with store.transaction() as conn:
        habit = records.require_habit(conn, habit_id)
        records.insert_completion(conn, habit_id, ds)

        if habit.schedule_type != ScheduleType.INTERVAL or not habit.interval_days:
            return
        state = records.get_interval_state(conn, habit_id)
        last_due = state.next_due if state else ds
        next_due = dates.add_days(ds, habit.interval_days)
        if state is None:
            records.insert_interval_state(conn, habit_id, next_due, reschedule_if_missed=False)
        records.update_interval_state(
            conn, habit_id, last_completed=ds, last_due=last_due, next_due=next_due
        )
        logger.debug("completed %s on %s, next due %s", habit_id, ds, next_due)


def uncomplete(store: Store, habit_id: str, date: DateLike) -> bool:
    """Remove the completion for date. Interval scheduling state is left as is."""
    ds = dates.format_date(date)
    with store.transaction() as conn:
        records.require_habit(conn, habit_id)
        return records.delete_completion(conn, habit_id, ds)


def is_completed(store: Store, habit_id: str, date: DateLike) -> bool:
    ds = dates.format_date(date)
    with store.transaction() as conn:
        return records.has_completion(conn, habit_id, ds)


def toggle(store: Store, habit_id: str, date: DateLike) -> bool:
    """Flip completion for date. Returns the new completed flag."""
    with store.transaction():
        if is_completed(store, habit_id, date):
            uncomplete(store, habit_id, date)
            return False
        complete(store, habit_id, date)
        return True


def completions_between(
    store: Store, habit_id: str, start: DateLike | None = None, end: DateLike | None = None
) -> list[str]:
    lo = dates.format_date(start) if start is not None else None
    hi = dates.format_date(end) if end is not None else None
    with store.transaction() as conn:
        return records.completion_dates(conn, habit_id, lo, hi)


def total_completions(store: Store) -> int:
    with store.transaction() as conn:
        return records.count_completions(conn)


def week_progress(store: Store, habit_id: str, week_start: DateLike) -> list[bool]:
    """Seven flags, one per day starting at week_start."""
    week = dates.week_dates(week_start)
    with store.transaction() as conn:
        records.require_habit(conn, habit_id)
        done = set(records.completion_dates(conn, habit_id, week[0], week[-1]))
    return [ds in done for ds in week]
