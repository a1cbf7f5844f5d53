import sqlite3
from datetime import date

import pytest

from cadence import store as records
from cadence.completions import (
    complete,
    completions_between,
    is_completed,
    toggle,
    total_completions,
    uncomplete,
    week_progress,
)
from cadence.core.errors import NotFoundError, StorageError, ValidationError
from cadence.core.models import NewHabit
from cadence.core.types import ScheduleType
from cadence.habits import create_habit
from cadence.schedule import due_habits_for_date


@pytest.fixture
def daily(store):
    return create_habit(store, NewHabit(name="Stretch"))


@pytest.fixture
def interval(store):
    return create_habit(
        store,
        NewHabit(name="Water", schedule_type=ScheduleType.INTERVAL, interval_days=3, start_date="2024-01-01"),
    )


def test_complete_is_idempotent(store, daily):
    complete(store, daily.id, "2024-01-01")
    complete(store, daily.id, date(2024, 1, 1))
    assert total_completions(store) == 1
    assert is_completed(store, daily.id, "2024-01-01")


def test_uncomplete_removes_record(store, daily):
    complete(store, daily.id, "2024-01-01")
    assert uncomplete(store, daily.id, "2024-01-01") is True
    assert not is_completed(store, daily.id, "2024-01-01")
    assert uncomplete(store, daily.id, "2024-01-01") is False


def test_uncomplete_leaves_interval_state(store, interval):
    complete(store, interval.id, "2024-01-02")
    after_complete = records.get_interval_state(store.conn, interval.id)
    uncomplete(store, interval.id, "2024-01-02")
    after_uncomplete = records.get_interval_state(store.conn, interval.id)

    assert not is_completed(store, interval.id, "2024-01-02")
    assert after_uncomplete == after_complete
    assert after_uncomplete.next_due == "2024-01-05"
    assert after_uncomplete.last_completed == "2024-01-02"
    assert after_uncomplete.last_due == "2024-01-01"


def test_repeat_completion_still_reanchors(store, interval):
    complete(store, interval.id, "2024-01-01")
    complete(store, interval.id, "2024-01-01")
    state = records.get_interval_state(store.conn, interval.id)
    assert state.next_due == "2024-01-04"
    assert state.last_due == "2024-01-04"


def test_complete_unknown_habit(store):
    with pytest.raises(NotFoundError):
        complete(store, "missing", "2024-01-01")
    assert total_completions(store) == 0


def test_uncomplete_unknown_habit(store):
    with pytest.raises(NotFoundError):
        uncomplete(store, "missing", "2024-01-01")


def test_complete_is_atomic(store, interval, monkeypatch):
    def boom(*args, **kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(records, "update_interval_state", boom)
    with pytest.raises(StorageError):
        complete(store, interval.id, "2024-01-01")
    assert total_completions(store) == 0
    assert records.get_interval_state(store.conn, interval.id).next_due == "2024-01-01"


def test_toggle(store, daily):
    assert toggle(store, daily.id, "2024-01-01") is True
    assert is_completed(store, daily.id, "2024-01-01")
    assert toggle(store, daily.id, "2024-01-01") is False
    assert not is_completed(store, daily.id, "2024-01-01")


def test_completions_between(store, daily):
    for ds in ("2024-01-01", "2024-01-03", "2024-01-05", "2024-01-09"):
        complete(store, daily.id, ds)
    assert completions_between(store, daily.id, "2024-01-02", "2024-01-05") == ["2024-01-05", "2024-01-03"]
    assert completions_between(store, daily.id) == ["2024-01-09", "2024-01-05", "2024-01-03", "2024-01-01"]


def test_total_completions_counts_all_habits(store, daily, interval):
    complete(store, daily.id, "2024-01-01")
    complete(store, daily.id, "2024-01-02")
    complete(store, interval.id, "2024-01-01")
    assert total_completions(store) == 3


def test_week_progress(store, daily):
    complete(store, daily.id, "2024-01-07")
    complete(store, daily.id, "2024-01-09")
    complete(store, daily.id, "2024-01-14")
    assert week_progress(store, daily.id, "2024-01-07") == [True, False, True, False, False, False, False]


def test_week_progress_across_month(store, daily):
    complete(store, daily.id, "2024-02-01")
    assert week_progress(store, daily.id, "2024-01-29") == [False, False, False, True, False, False, False]


def test_week_progress_unknown_habit(store):
    with pytest.raises(NotFoundError):
        week_progress(store, "missing", "2024-01-07")


@pytest.mark.parametrize("bad", ["2024-1-5", "05/01/2024", "2024-02-30", ""])
def test_complete_rejects_malformed_date(store, interval, bad):
    with pytest.raises(ValidationError):
        complete(store, interval.id, bad)
    assert total_completions(store) == 0
    with store.transaction() as conn:
        state = records.get_interval_state(conn, interval.id)
    assert state.next_due == "2024-01-01"
    assert state.last_completed is None


def test_uncomplete_rejects_malformed_date(store, daily):
    complete(store, daily.id, "2024-01-05")
    with pytest.raises(ValidationError):
        uncomplete(store, daily.id, "2024-1-5")
    assert is_completed(store, daily.id, "2024-01-05")


def test_due_rejects_malformed_date_without_advancing(store, interval):
    with pytest.raises(ValidationError):
        due_habits_for_date(store, "2024-1-20")
    with store.transaction() as conn:
        assert records.get_interval_state(conn, interval.id).next_due == "2024-01-01"
