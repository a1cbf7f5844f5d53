"""Core type definitions."""

from enum import StrEnum


class ScheduleType(StrEnum):
    DAILY = "daily"
    CUSTOM = "custom"
    INTERVAL = "interval"


WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")
