import dataclasses
from datetime import date, datetime
from typing import cast

from cadence.core.models import Habit, IntervalState
from cadence.core.types import ScheduleType

HabitRow = tuple[object, ...]
IntervalStateRow = tuple[object, ...]


def _parse_datetime(val) -> datetime:
    """Parse a timestamp column that may hold ISO text or sqlite's 'YYYY-MM-DD HH:MM:SS'."""
    if isinstance(val, (int, float)):
        return datetime.fromtimestamp(val)
    if isinstance(val, str) and val:
        try:
            return datetime.fromisoformat(val)
        except ValueError:
            return datetime.combine(date.fromisoformat(val[:10]), datetime.min.time())
    return datetime.min


def row_to_habit(row: HabitRow) -> Habit:
    """
    Converts a raw database row from the habits table into a Habit object.
    Expected row format: (id, name, schedule_type, interval_days, one_time_date, created_at, updated_at)
    """
    return Habit(
        id=cast(str, row[0]),
        name=cast(str, row[1]),
        schedule_type=ScheduleType(row[2]),
        interval_days=cast(int, row[3]) if row[3] is not None else None,
        one_time_date=cast(str, row[4]) if row[4] else None,
        created_at=_parse_datetime(row[5]),
        updated_at=_parse_datetime(row[6]),
    )


def row_to_interval_state(row: IntervalStateRow) -> IntervalState:
    """
    Expected row format: (habit_id, last_completed, last_due, next_due, reschedule_if_missed)
    """
    return IntervalState(
        habit_id=cast(str, row[0]),
        last_completed=cast(str, row[1]) if row[1] else None,
        last_due=cast(str, row[2]) if row[2] else None,
        next_due=cast(str, row[3]),
        reschedule_if_missed=bool(row[4]),
    )


def hydrate_habit(
    habit: Habit, days: list[int] | None = None, state: IntervalState | None = None
) -> Habit:
    return dataclasses.replace(habit, days=sorted(days or []), interval_state=state)
