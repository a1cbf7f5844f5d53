from .core.models import DueHabit
from .core.types import WEEKDAYS
from .habits import describe_schedule
from .lib import ansi, dates

CHECK = "✓"
OPEN = "□"


def render_day(ds: str, due: list[DueHabit], streak: int | None = None) -> str:
    weekday = WEEKDAYS[dates.weekday_index(ds)]
    header = f"{ansi.bold(ds)} {ansi.gray(weekday)}"
    if due:
        done = sum(1 for d in due if d.completed)
        tally = f"{done}/{len(due)}"
        header += f"  {ansi.green(tally) if done == len(due) else ansi.yellow(tally)}"
    if streak:
        header += f"  {ansi.gold(f'{streak}d streak')}"
    if not due:
        return f"{header}\n  {ansi.dim('nothing due')}"

    lines = [header]
    for item in due:
        h = item.habit
        key = ansi.dim(f"[{h.id[:8]}]")
        if item.completed:
            lines.append(f"  {ansi.green(CHECK)} {ansi.dim(h.name)}  {key}")
        else:
            lines.append(f"  {OPEN} {h.name}  {ansi.gray(describe_schedule(h))}  {key}")
    return "\n".join(lines)


def render_week(name: str, week_start: str, progress: list[bool]) -> str:
    days = dates.week_dates(week_start)
    labels = " ".join(WEEKDAYS[dates.weekday_index(ds)][:2] for ds in days)
    marks = "  ".join(ansi.green(CHECK) if done else ansi.dim("·") for done in progress)
    return f"{name}  {ansi.gray(f'week of {week_start}')}\n{labels}\n{marks}  {sum(progress)}/7"
