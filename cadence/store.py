"""Record-level access to the four habit tables.

Every function takes an open connection and leaves transaction control to the
caller (normally `Store.transaction()`).
"""

import sqlite3
from collections import defaultdict

from .core.errors import NotFoundError
from .core.models import Habit, IntervalState
from .lib.converters import row_to_habit, row_to_interval_state

__all__ = [
    "clear_all",
    "completed_habit_ids",
    "completion_dates",
    "count_completions",
    "delete_completion",
    "delete_habit",
    "get_habit",
    "get_interval_state",
    "has_completion",
    "insert_completion",
    "insert_habit",
    "insert_interval_state",
    "list_days",
    "list_habits",
    "list_interval_states",
    "list_overdue_interval_states",
    "load_days_for_habits",
    "replace_days",
    "require_habit",
    "update_habit",
    "update_interval_state",
]

HABIT_COLS = "h.id, h.name, h.schedule_type, h.interval_days, h.one_time_date, h.created_at, h.updated_at"
_STATE_COLS = "habit_id, last_completed, last_due, next_due, reschedule_if_missed"


# ── habits ───────────────────────────────────────────────────────────────────


def insert_habit(
    conn: sqlite3.Connection,
    habit_id: str,
    name: str,
    schedule_type: str,
    interval_days: int | None,
    one_time_date: str | None,
    created_at: str,
) -> None:
    conn.execute(
        "INSERT INTO habits (id, name, schedule_type, interval_days, one_time_date, created_at, updated_at) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        (habit_id, name, schedule_type, interval_days, one_time_date, created_at, created_at),
    )


def get_habit(conn: sqlite3.Connection, habit_id: str) -> Habit | None:
    row = conn.execute(
        f"SELECT {HABIT_COLS} FROM habits h WHERE h.id = ?",  # noqa: S608
        (habit_id,),
    ).fetchone()
    return row_to_habit(row) if row else None


def require_habit(conn: sqlite3.Connection, habit_id: str) -> Habit:
    habit = get_habit(conn, habit_id)
    if habit is None:
        raise NotFoundError(f"no habit with id '{habit_id}'")
    return habit


def list_habits(
    conn: sqlite3.Connection, where: str = "1 = 1", params: tuple[object, ...] = ()
) -> list[Habit]:
    """Habits matching a WHERE clause, oldest first."""
    rows = conn.execute(
        f"SELECT {HABIT_COLS} FROM habits h WHERE {where} ORDER BY h.created_at ASC, h.rowid ASC",  # noqa: S608
        params,
    ).fetchall()
    return [row_to_habit(row) for row in rows]


def update_habit(conn: sqlite3.Connection, habit_id: str, updated_at: str, **fields: object) -> None:
    allowed = {"name", "interval_days"}
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"cannot update habit fields: {sorted(unknown)}")
    assignments = ", ".join(f"{name} = ?" for name in fields)
    sep = ", " if assignments else ""
    conn.execute(
        f"UPDATE habits SET {assignments}{sep}updated_at = ? WHERE id = ?",  # noqa: S608
        (*fields.values(), updated_at, habit_id),
    )


def delete_habit(conn: sqlite3.Connection, habit_id: str) -> bool:
    cursor = conn.execute("DELETE FROM habits WHERE id = ?", (habit_id,))
    return cursor.rowcount > 0


def clear_all(conn: sqlite3.Connection) -> None:
    conn.execute("DELETE FROM habit_completions")
    conn.execute("DELETE FROM habit_days")
    conn.execute("DELETE FROM interval_habit_state")
    conn.execute("DELETE FROM habits")


# ── weekdays ─────────────────────────────────────────────────────────────────


def replace_days(conn: sqlite3.Connection, habit_id: str, days: list[int]) -> None:
    conn.execute("DELETE FROM habit_days WHERE habit_id = ?", (habit_id,))
    conn.executemany(
        "INSERT OR IGNORE INTO habit_days (habit_id, day_of_week) VALUES (?, ?)",
        [(habit_id, day) for day in days],
    )


def list_days(conn: sqlite3.Connection, habit_id: str) -> list[int]:
    rows = conn.execute(
        "SELECT day_of_week FROM habit_days WHERE habit_id = ? ORDER BY day_of_week",
        (habit_id,),
    ).fetchall()
    return [row[0] for row in rows]


def load_days_for_habits(conn: sqlite3.Connection, habit_ids: list[str]) -> dict[str, list[int]]:
    """Batch load weekday sets. Returns habit_id -> sorted day indices."""
    if not habit_ids:
        return {}
    placeholders = ",".join("?" * len(habit_ids))
    rows = conn.execute(
        f"SELECT habit_id, day_of_week FROM habit_days WHERE habit_id IN ({placeholders}) "  # noqa: S608
        "ORDER BY day_of_week",
        habit_ids,
    ).fetchall()
    result: dict[str, list[int]] = defaultdict(list)
    for habit_id, day in rows:
        result[habit_id].append(day)
    return dict(result)


# ── completions ──────────────────────────────────────────────────────────────


def insert_completion(conn: sqlite3.Connection, habit_id: str, ds: str) -> bool:
    """Insert if absent. Returns False when the completion already existed."""
    cursor = conn.execute(
        "INSERT OR IGNORE INTO habit_completions (habit_id, completed_date) VALUES (?, ?)",
        (habit_id, ds),
    )
    return cursor.rowcount > 0


def delete_completion(conn: sqlite3.Connection, habit_id: str, ds: str) -> bool:
    cursor = conn.execute(
        "DELETE FROM habit_completions WHERE habit_id = ? AND completed_date = ?",
        (habit_id, ds),
    )
    return cursor.rowcount > 0


def has_completion(conn: sqlite3.Connection, habit_id: str, ds: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM habit_completions WHERE habit_id = ? AND completed_date = ?",
        (habit_id, ds),
    ).fetchone()
    return row is not None


def completion_dates(
    conn: sqlite3.Connection, habit_id: str, start: str | None = None, end: str | None = None
) -> list[str]:
    """Completed dates for a habit within [start, end], newest first."""
    clauses = ["habit_id = ?"]
    params: list[object] = [habit_id]
    if start is not None:
        clauses.append("completed_date >= ?")
        params.append(start)
    if end is not None:
        clauses.append("completed_date <= ?")
        params.append(end)
    rows = conn.execute(
        f"SELECT completed_date FROM habit_completions WHERE {' AND '.join(clauses)} "  # noqa: S608
        "ORDER BY completed_date DESC",
        params,
    ).fetchall()
    return [row[0] for row in rows]


def completed_habit_ids(conn: sqlite3.Connection, ds: str) -> set[str]:
    rows = conn.execute(
        "SELECT habit_id FROM habit_completions WHERE completed_date = ?", (ds,)
    ).fetchall()
    return {row[0] for row in rows}


def count_completions(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM habit_completions").fetchone()[0]


# ── interval state ───────────────────────────────────────────────────────────


def insert_interval_state(
    conn: sqlite3.Connection, habit_id: str, next_due: str, reschedule_if_missed: bool
) -> None:
    conn.execute(
        "INSERT INTO interval_habit_state (habit_id, next_due, reschedule_if_missed) VALUES (?, ?, ?)",
        (habit_id, next_due, int(reschedule_if_missed)),
    )


def get_interval_state(conn: sqlite3.Connection, habit_id: str) -> IntervalState | None:
    row = conn.execute(
        f"SELECT {_STATE_COLS} FROM interval_habit_state WHERE habit_id = ?",  # noqa: S608
        (habit_id,),
    ).fetchone()
    return row_to_interval_state(row) if row else None


def update_interval_state(conn: sqlite3.Connection, habit_id: str, **fields: str | None) -> None:
    allowed = {"last_completed", "last_due", "next_due"}
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"cannot update interval state fields: {sorted(unknown)}")
    if not fields:
        return
    assignments = ", ".join(f"{name} = ?" for name in fields)
    conn.execute(
        f"UPDATE interval_habit_state SET {assignments} WHERE habit_id = ?",  # noqa: S608
        (*fields.values(), habit_id),
    )


def list_interval_states(conn: sqlite3.Connection) -> dict[str, IntervalState]:
    rows = conn.execute(f"SELECT {_STATE_COLS} FROM interval_habit_state").fetchall()  # noqa: S608
    return {row[0]: row_to_interval_state(row) for row in rows}


def list_overdue_interval_states(
    conn: sqlite3.Connection, ds: str
) -> list[tuple[IntervalState, int]]:
    """Non-rescheduling interval states whose next_due precedes ds, with interval_days."""
    rows = conn.execute(
        """
        SELECT ihs.habit_id, ihs.last_completed, ihs.last_due, ihs.next_due,
               ihs.reschedule_if_missed, h.interval_days
        FROM interval_habit_state ihs
        JOIN habits h ON h.id = ihs.habit_id
        WHERE ihs.reschedule_if_missed = 0 AND ihs.next_due < ? AND h.interval_days > 0
        ORDER BY ihs.habit_id
        """,
        (ds,),
    ).fetchall()
    return [(row_to_interval_state(row[:5]), row[5]) for row in rows]
