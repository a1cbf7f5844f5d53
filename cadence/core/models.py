import dataclasses
from datetime import datetime

from .types import ScheduleType


@dataclasses.dataclass(frozen=True)
class IntervalState:
    habit_id: str
    next_due: str
    last_completed: str | None = None
    last_due: str | None = None
    reschedule_if_missed: bool = False


@dataclasses.dataclass(frozen=True)
class Habit:
    id: str
    name: str
    schedule_type: ScheduleType
    created_at: datetime
    updated_at: datetime
    interval_days: int | None = None
    one_time_date: str | None = None
    days: list[int] = dataclasses.field(default_factory=list, hash=False)
    interval_state: IntervalState | None = dataclasses.field(default=None, hash=False)

    @property
    def is_one_time(self) -> bool:
        return self.schedule_type == ScheduleType.CUSTOM and self.one_time_date is not None


@dataclasses.dataclass(frozen=True)
class DueHabit:
    habit: Habit
    completed: bool


@dataclasses.dataclass(frozen=True)
class NewHabit:
    """Creation request. Which fields matter depends on schedule_type."""

    name: str
    schedule_type: ScheduleType = ScheduleType.DAILY
    days: list[int] = dataclasses.field(default_factory=list)
    one_time_date: str | None = None
    interval_days: int | None = None
    start_date: str | None = None
    reschedule_if_missed: bool = False
