"""
campaign_calendar.py — Month grid for the Campaign › Calendar pane

Six rows of seven days, weeks starting on Sunday. The grid is padded with
the trailing days of the previous month and the leading days of the next.
Event days repeat every month and are only marked inside the shown month;
a day past the end of a short month (31 in April) is simply not marked.
"""

import calendar
from datetime import date

MONTH_NAMES = ("January", "February", "March", "April", "May", "June", "July",
               "August", "September", "October", "November", "December")
WEEKDAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
GRID_CELLS = 42
MIN_YEAR, MAX_YEAR = 1900, 2100


class CalendarError(ValueError):
    pass


def shift_month(year: int, month: int, delta: int):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _cell(day: date, other_month: bool, today: date, event_days) -> dict:
    return {
        "day": day.day,
        "date": day.isoformat(),
        "otherMonth": other_month,
        "today": not other_month and day == today,
        "hasEvent": not other_month and day.day in event_days,
    }


def month_grid(year: int, month: int, today: date = None, event_days=()) -> dict:
    """The 42-cell grid for one month plus prev/next navigation targets."""
    if not MIN_YEAR <= year <= MAX_YEAR or not 1 <= month <= 12:
        raise CalendarError(f"No calendar for {year}-{month:02d}")
    today = today or date.today()
    event_days = set(event_days)

    # date.weekday() is Monday=0; the grid starts on Sunday.
    lead = (date(year, month, 1).weekday() + 1) % 7
    days_in_month = calendar.monthrange(year, month)[1]
    prev_year, prev_month = shift_month(year, month, -1)
    next_year, next_month = shift_month(year, month, 1)
    days_in_prev = calendar.monthrange(prev_year, prev_month)[1]

    cells = [_cell(date(prev_year, prev_month, d), True, today, event_days)
             for d in range(days_in_prev - lead + 1, days_in_prev + 1)]
    cells += [_cell(date(year, month, d), False, today, event_days)
              for d in range(1, days_in_month + 1)]
    cells += [_cell(date(next_year, next_month, d), True, today, event_days)
              for d in range(1, GRID_CELLS - len(cells) + 1)]

    return {
        "year": year,
        "month": month,
        "title": f"{MONTH_NAMES[month - 1]} {year}",
        "weekdays": list(WEEKDAYS),
        "days": cells,
        "prev": {"year": prev_year, "month": prev_month},
        "next": {"year": next_year, "month": next_month},
    }
