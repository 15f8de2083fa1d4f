from datetime import date
from typing import Dict, Any, Optional

from .entities import get_ships, get_components
from .jobs import get_jobs, JOB_STATUSES, COMPLETED, IN_PROGRESS
from .store import DocumentStore
from .utils import parse_date

OVERDUE_AFTER_MONTHS = 6


def months_since(last: Any, today: date) -> Optional[int]:
    """Whole calendar months between two dates; the day of month is ignored."""
    d = parse_date(last)
    if d is None:
        return None
    return (today.year - d.year) * 12 + (today.month - d.month)


def is_overdue(component: Dict[str, Any], today: date) -> bool:
    months = months_since(component.get("lastMaintenanceDate"), today)
    return months is not None and months > OVERDUE_AFTER_MONTHS


def get_ship_count(store: DocumentStore) -> int:
    return len(get_ships(store))


def get_overdue_maintenance_count(store: DocumentStore, today: Optional[date] = None) -> int:
    today = today or date.today()
    return sum(1 for c in get_components(store) if is_overdue(c, today))


def get_jobs_in_progress_count(store: DocumentStore) -> int:
    return sum(1 for j in get_jobs(store) if j.get("status") == IN_PROGRESS)


def get_completed_jobs_count(store: DocumentStore) -> int:
    return sum(1 for j in get_jobs(store) if j.get("status") == COMPLETED)


def get_job_counts_by_status(store: DocumentStore) -> Dict[str, int]:
    counts = {s: 0 for s in JOB_STATUSES}
    for j in get_jobs(store):
        status = j.get("status")
        counts[status] = counts.get(status, 0) + 1
    return counts


def get_kpis(store: DocumentStore, today: Optional[date] = None) -> Dict[str, int]:
    return {
        "totalShips": get_ship_count(store),
        "overdueMaintenance": get_overdue_maintenance_count(store, today),
        "jobsInProgress": get_jobs_in_progress_count(store),
        "jobsCompleted": get_completed_jobs_count(store),
    }
