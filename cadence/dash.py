from fncli import cli

from . import config, db
from .completions import complete, total_completions, uncomplete, week_progress
from .habits import find_habit
from .lib import ansi, clock, dates
from .render import render_day, render_week
from .schedule import due_habits_for_date, pending_habits
from .streaks import daily_completion_streak, habit_streak


@cli("cadence")
def today(on: str | None = None) -> None:
    """Show habits due today (or --on DATE)"""
    ds = dates.parse_date_arg(on)
    with db.open_store() as store:
        due = due_habits_for_date(store, ds)
        streak = daily_completion_streak(store, ds)
    print(render_day(ds, due, streak))


@cli("cadence")
def done(ref: str, on: str | None = None) -> None:
    """Mark a habit done (today unless --on DATE)"""
    ds = dates.parse_date_arg(on)
    with db.open_store() as store:
        habit = find_habit(store, ref)
        complete(store, habit.id, ds)
        streak = habit_streak(store, habit.id, dates.to_date(ds))
    suffix = f"  {ansi.gold(f'{streak}d')}" if streak > 1 else ""
    print(f"{ansi.green('✓')} {habit.name}{suffix}")


@cli("cadence")
def undo(ref: str, on: str | None = None) -> None:
    """Remove a completion (today unless --on DATE)"""
    ds = dates.parse_date_arg(on)
    with db.open_store() as store:
        habit = find_habit(store, ref)
        removed = uncomplete(store, habit.id, ds)
    print(f"unchecked {habit.name}" if removed else f"{habit.name} was not done on {ds}")


@cli("cadence")
def streak(ref: str | None = None) -> None:
    """Show a habit's streak, or the all-done streak without a ref"""
    with db.open_store() as store:
        if ref:
            habit = find_habit(store, ref)
            count = habit_streak(store, habit.id)
            label = habit.name
        else:
            count = daily_completion_streak(store, clock.today())
            label = "all habits"
    print(f"{label}: {count}d")


@cli("cadence")
def week(ref: str, start: str | None = None) -> None:
    """Show the 7-day progress row for a habit"""
    if start:
        week_start = dates.parse_date_arg(start)
    else:
        week_start = dates.week_start_for(clock.today(), config.get_week_start())
    with db.open_store() as store:
        habit = find_habit(store, ref)
        progress = week_progress(store, habit.id, week_start)
    print(render_week(habit.name, week_start, progress))


@cli("cadence")
def stats() -> None:
    """Total completions and current all-done streak"""
    with db.open_store() as store:
        total = total_completions(store)
        count = daily_completion_streak(store, clock.today())
    print(f"completions: {total}")
    print(f"daily streak: {count}d")


@cli("cadence")
def remind() -> None:
    """Print the reminder if anything due today is still open"""
    with db.open_store() as store:
        pending = pending_habits(store, clock.today())
    if pending:
        print(config.get_reminder_text())
        for h in pending:
            print(f"  {h.name}")
