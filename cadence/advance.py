import logging
import math

from . import store as records
from .core.models import IntervalState
from .db import Store
from .lib import dates
from .lib.dates import DateLike

__all__ = ["advance_overdue", "advance_state"]

logger = logging.getLogger(__name__)


def advance_state(state: IntervalState, interval_days: int, reference: str) -> tuple[str, str] | None:
    """Return (next_due, last_due) after skipping missed occurrences, or None if not overdue.

    Habits that reschedule when missed are never advanced; they stay overdue until done.
    """
    if state.reschedule_if_missed or state.next_due >= reference:
        return None
    days_passed = dates.days_between(state.next_due, reference)
    intervals = math.ceil(days_passed / interval_days)
    next_due = dates.add_days(state.next_due, intervals * interval_days)
    last_due = dates.add_days(next_due, -interval_days)
    return next_due, last_due


def advance_overdue(store: Store, reference_date: DateLike) -> int:
    """Roll overdue non-rescheduling interval habits forward to their next occurrence
    on or after reference_date. Idempotent for a given reference date.
    """
    ds = dates.format_date(reference_date)
    advanced = 0
    with store.transaction() as conn:
        for state, interval_days in records.list_overdue_interval_states(conn, ds):
            result = advance_state(state, interval_days, ds)
            if result is None:
                continue
            next_due, last_due = result
            logger.debug(
                "advancing %s from %s to %s (every %sd)",
                state.habit_id,
                state.next_due,
                next_due,
                interval_days,
            )
            records.update_interval_state(conn, state.habit_id, next_due=next_due, last_due=last_due)
            advanced += 1
    return advanced
