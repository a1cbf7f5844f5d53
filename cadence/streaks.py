from datetime import date

from . import store as records
from .db import Store
from .lib import clock, dates
from .lib.dates import DateLike
from .schedule import due_habits_for_date

__all__ = ["daily_completion_streak", "habit_streak", "is_complete_day"]


def habit_streak(store: Store, habit_id: str, today: date | None = None) -> int:
    """Consecutive completed days ending today, or yesterday if today is still open."""
    today_ds = dates.format_date(today or clock.today())
    with store.transaction() as conn:
        records.require_habit(conn, habit_id)
        done = set(records.completion_dates(conn, habit_id, end=today_ds))

    cursor = today_ds
    if cursor not in done:
        cursor = dates.add_days(cursor, -1)
    streak = 0
    while cursor in done:
        streak += 1
        cursor = dates.add_days(cursor, -1)
    return streak


def is_complete_day(store: Store, day: DateLike) -> bool:
    """A day counts only when something was due and all of it was done."""
    due = due_habits_for_date(store, day)
    return bool(due) and all(d.completed for d in due)


def daily_completion_streak(store: Store, start_date: DateLike) -> int:
    cursor = dates.format_date(start_date)
    if not is_complete_day(store, cursor):
        cursor = dates.add_days(cursor, -1)

    streak = 0
    while is_complete_day(store, cursor):
        streak += 1
        cursor = dates.add_days(cursor, -1)
    return streak
