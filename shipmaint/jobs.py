"""Job lifecycle.

Creating a job emits a ``JobCreated`` notification. Changing a job's status
emits ``JobUpdated`` or ``JobCompleted``; completion also stamps today's date
on the component's ``lastMaintenanceDate``. When the component or ship a job
points at cannot be found, the notification (and the component stamp) is
skipped and the job operation still succeeds.
"""

from typing import Dict, Any, List, Optional

from .entities import (
    add_notification,
    build_notification,
    get_component_by_id,
    get_ship_by_id,
    update_component,
)
from .logger import get_logger
from .store import DocumentStore
from .utils import new_id, find_by_id, now_iso, today_iso, diff_rows

logger = get_logger()

JOB_TYPES = ("Inspection", "Repair", "Replacement", "Overhaul")
JOB_PRIORITIES = ("Low", "Medium", "High", "Critical")
JOB_STATUSES = ("Open", "In Progress", "Completed", "Cancelled")

COMPLETED = "Completed"
IN_PROGRESS = "In Progress"


def created_message(job: Dict[str, Any], component: Dict[str, Any], ship: Dict[str, Any]) -> str:
    return f"New {str(job.get('type', '')).lower()} job created for {component.get('name')} on {ship.get('name')}"


def status_message(job: Dict[str, Any], component: Dict[str, Any], ship: Dict[str, Any]) -> str:
    if job.get("status") == COMPLETED:
        return f"{job.get('type')} job for {component.get('name')} on {ship.get('name')} has been completed"
    return f"{job.get('type')} job for {component.get('name')} on {ship.get('name')} status updated to {job.get('status')}"


# ---------------------- Queries ----------------------

def get_jobs(store: DocumentStore) -> List[Dict[str, Any]]:
    return store.load()["jobs"]


def get_jobs_by_ship_id(store: DocumentStore, ship_id: str) -> List[Dict[str, Any]]:
    return [j for j in get_jobs(store) if j.get("shipId") == ship_id]


def get_jobs_by_component_id(store: DocumentStore, component_id: str) -> List[Dict[str, Any]]:
    return [j for j in get_jobs(store) if j.get("componentId") == component_id]


def get_job_by_id(store: DocumentStore, job_id: str) -> Optional[Dict[str, Any]]:
    return find_by_id(get_jobs(store), job_id)


def get_jobs_for_date(store: DocumentStore, day: str) -> List[Dict[str, Any]]:
    return [j for j in get_jobs(store) if j.get("scheduledDate") == day]


# ---------------------- Mutations ----------------------

def add_job(store: DocumentStore, job: Dict[str, Any]) -> Dict[str, Any]:
    # job and its notification go out in a single write
    with store.transaction() as data:
        new_job = {**{k: v for k, v in job.items() if k != "id"}, "id": new_id("j", data["jobs"])}
        data["jobs"].append(new_job)

        component = find_by_id(data["components"], new_job.get("componentId"))
        ship = find_by_id(data["ships"], new_job.get("shipId"))
        if component and ship:
            build_notification(data, {
                "type": "JobCreated",
                "message": created_message(new_job, component, ship),
                "timestamp": now_iso(),
                "read": False,
                "jobId": new_job["id"],
            })
        else:
            logger.warning(
                "Job %s references missing component %s or ship %s; no notification",
                new_job["id"], new_job.get("componentId"), new_job.get("shipId"),
            )

    logger.info("Job %s created (%s, %s)", new_job["id"], new_job.get("type"), new_job.get("status"))
    return new_job


def update_job(store: DocumentStore, job: Dict[str, Any]) -> Dict[str, Any]:
    """Replace the stored job in full and derive status-change side effects.

    An id that is not stored leaves the collection unchanged; the input is
    returned as-is with no side effects.
    """
    with store.transaction() as data:
        old_job = find_by_id(data["jobs"], job.get("id"))
        data["jobs"] = [job if j.get("id") == job.get("id") else j for j in data["jobs"]]

    if old_job is None:
        return job
    logger.info("Job %s updated: %s", job.get("id"), sorted(diff_rows(old_job, job)))
    if old_job.get("status") == job.get("status"):
        return job

    component = get_component_by_id(store, job.get("componentId"))
    ship = get_ship_by_id(store, job.get("shipId"))
    if not (component and ship):
        logger.warning(
            "Job %s status changed but component %s or ship %s is missing; no notification",
            job.get("id"), job.get("componentId"), job.get("shipId"),
        )
        return job

    add_notification(store, {
        "type": "JobCompleted" if job.get("status") == COMPLETED else "JobUpdated",
        "message": status_message(job, component, ship),
        "timestamp": now_iso(),
        "read": False,
        "jobId": job.get("id"),
    })

    if job.get("status") == COMPLETED:
        update_component(store, {**component, "lastMaintenanceDate": today_iso()})
    return job


def delete_job(store: DocumentStore, job_id: str) -> None:
    # notifications pointing at this job are left in place
    with store.transaction() as data:
        data["jobs"] = [j for j in data["jobs"] if j.get("id") != job_id]
    logger.info("Job %s deleted", job_id)
