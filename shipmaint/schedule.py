"""Calendar ranges for the job calendar.

Weeks start on Sunday. The month view always covers whole weeks, so it may
begin in the previous month and end in the next one.
"""

import calendar
from datetime import date, timedelta
from typing import Dict, Any, List, Optional

from .jobs import get_jobs
from .store import DocumentStore

VIEWS = ("month", "week")


def _sunday_offset(d: date) -> int:
    # date.weekday() is Monday=0; shift so Sunday=0
    return (d.weekday() + 1) % 7


def start_of_week(d: date) -> date:
    return d - timedelta(days=_sunday_offset(d))


def month_days(ref: date) -> List[date]:
    first = ref.replace(day=1)
    last = ref.replace(day=calendar.monthrange(ref.year, ref.month)[1])
    start = start_of_week(first)
    end = last + timedelta(days=6 - _sunday_offset(last))
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def week_days(ref: date) -> List[date]:
    start = start_of_week(ref)
    return [start + timedelta(days=i) for i in range(7)]


def add_months(d: date, months: int) -> date:
    idx = d.month - 1 + months
    year, month = d.year + idx // 12, idx % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def shift(ref: date, view: str, step: int) -> date:
    """Move the calendar ``step`` pages back (negative) or forward."""
    if view == "month":
        return add_months(ref, step)
    return ref + timedelta(days=7 * step)


def period_label(ref: date, view: str) -> str:
    if view == "month":
        return f"{calendar.month_name[ref.month]} {ref.year}"
    start = start_of_week(ref)
    end = start + timedelta(days=6)
    if start.month == end.month:
        return f"{calendar.month_name[start.month]} {start.day} - {end.day}, {start.year}"
    if start.year == end.year:
        return f"{calendar.month_abbr[start.month]} {start.day} - {calendar.month_abbr[end.month]} {end.day}, {start.year}"
    return (
        f"{calendar.month_abbr[start.month]} {start.day}, {start.year} - "
        f"{calendar.month_abbr[end.month]} {end.day}, {end.year}"
    )


def calendar_view(store: DocumentStore, ref: date, view: str = "month", today: Optional[date] = None) -> Dict[str, Any]:
    if view not in VIEWS:
        raise ValueError(f"Unknown calendar view: {view}")
    today = today or date.today()
    days = month_days(ref) if view == "month" else week_days(ref)

    by_date: Dict[str, List[Dict[str, Any]]] = {}
    for j in get_jobs(store):
        by_date.setdefault(j.get("scheduledDate"), []).append(j)

    return {
        "view": view,
        "date": ref.isoformat(),
        "label": period_label(ref, view),
        "previous": shift(ref, view, -1).isoformat(),
        "next": shift(ref, view, 1).isoformat(),
        "days": [
            {
                "date": d.isoformat(),
                "inMonth": d.month == ref.month,
                "isToday": d == today,
                "jobs": by_date.get(d.isoformat(), []),
            }
            for d in days
        ],
    }
