from datetime import datetime

import pytest

from cadence.core.errors import AmbiguousError
from cadence.core.models import Habit
from cadence.core.types import ScheduleType
from cadence.lib.fuzzy import find_in_pool


def _habit(habit_id: str, name: str) -> Habit:
    ts = datetime(2024, 1, 1)
    return Habit(id=habit_id, name=name, schedule_type=ScheduleType.DAILY, created_at=ts, updated_at=ts)


POOL = [
    _habit("a1b2c3d4-0000", "Morning run"),
    _habit("a1b2ffff-0000", "Read"),
    _habit("e5f6a7b8-0000", "Evening stretch"),
]


def test_empty_pool():
    assert find_in_pool("run", []) is None


def test_uuid_prefix():
    assert find_in_pool("e5f6", POOL).name == "Evening stretch"


def test_ambiguous_uuid_prefix():
    with pytest.raises(AmbiguousError):
        find_in_pool("a1b2", POOL)


def test_exact_name_case_insensitive():
    assert find_in_pool("read", POOL).id == "a1b2ffff-0000"


def test_substring():
    assert find_in_pool("stretch", POOL).name == "Evening stretch"


def test_fuzzy():
    assert find_in_pool("mornin run", POOL).name == "Morning run"


def test_no_match():
    assert find_in_pool("swim", POOL) is None
