"""
Tests for the job lifecycle: notifications, completion stamping, orphaning.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from shipmaint import entities, jobs
from shipmaint.store import DocumentStore


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _new_job(**overrides) -> dict:
    job = {
        "componentId": "c2",
        "shipId": "s2",
        "type": "Overhaul",
        "priority": "Critical",
        "status": "Open",
        "assignedEngineerId": "3",
        "scheduledDate": "2025-05-20",
    }
    job.update(overrides)
    return job


def test_add_job_emits_created_notification(store: DocumentStore) -> None:
    before = entities.get_notifications(store)
    job = jobs.add_job(store, _new_job())
    after = entities.get_notifications(store)
    assert len(after) == len(before) + 1
    n = after[-1]
    assert n["type"] == "JobCreated"
    assert n["jobId"] == job["id"]
    assert n["read"] is False
    assert n["message"] == "New overhaul job created for Radar on Maersk Alabama"
    assert jobs.get_job_by_id(store, job["id"])["type"] == "Overhaul"


def test_add_job_with_missing_component_skips_notification(store: DocumentStore) -> None:
    job = jobs.add_job(store, _new_job(componentId="c404"))
    assert jobs.get_job_by_id(store, job["id"]) is not None
    assert len(entities.get_notifications(store)) == 1


def test_add_job_with_missing_ship_skips_notification(store: DocumentStore) -> None:
    jobs.add_job(store, _new_job(shipId="s404"))
    assert len(jobs.get_jobs(store)) == 2
    assert len(entities.get_notifications(store)) == 1


def test_update_without_status_change_is_silent(store: DocumentStore) -> None:
    job = {**jobs.get_job_by_id(store, "j1"), "priority": "Low", "notes": "moved"}
    jobs.update_job(store, job)
    assert jobs.get_job_by_id(store, "j1")["notes"] == "moved"
    assert len(entities.get_notifications(store)) == 1
    assert entities.get_component_by_id(store, "c1")["lastMaintenanceDate"] == "2024-03-12"


def test_update_to_in_progress_emits_job_updated(store: DocumentStore) -> None:
    jobs.update_job(store, {**jobs.get_job_by_id(store, "j1"), "status": "In Progress"})
    notes = entities.get_notifications(store)
    assert len(notes) == 2
    assert notes[-1]["type"] == "JobUpdated"
    assert notes[-1]["message"] == "Inspection job for Main Engine on Ever Given status updated to In Progress"
    assert entities.get_component_by_id(store, "c1")["lastMaintenanceDate"] == "2024-03-12"


def test_update_to_cancelled_leaves_maintenance_date(store: DocumentStore) -> None:
    jobs.update_job(store, {**jobs.get_job_by_id(store, "j1"), "status": "Cancelled"})
    assert entities.get_notifications(store)[-1]["type"] == "JobUpdated"
    assert entities.get_component_by_id(store, "c1")["lastMaintenanceDate"] == "2024-03-12"


def test_update_is_full_replacement(store: DocumentStore) -> None:
    job = {k: v for k, v in jobs.get_job_by_id(store, "j1").items() if k != "priority"}
    jobs.update_job(store, job)
    assert "priority" not in jobs.get_job_by_id(store, "j1")


def test_update_unknown_job_returns_input_unchanged(store: DocumentStore) -> None:
    ghost = _new_job(id="j404", status="Completed")
    assert jobs.update_job(store, ghost) == ghost
    assert [j["id"] for j in jobs.get_jobs(store)] == ["j1"]
    assert len(entities.get_notifications(store)) == 1


def test_status_change_with_missing_component_skips_side_effects(store: DocumentStore) -> None:
    job = {**jobs.get_job_by_id(store, "j1"), "componentId": "c404", "status": "Completed"}
    jobs.update_job(store, job)
    assert jobs.get_job_by_id(store, "j1")["status"] == "Completed"
    assert len(entities.get_notifications(store)) == 1
    assert entities.get_component_by_id(store, "c1")["lastMaintenanceDate"] == "2024-03-12"


def test_complete_then_delete_leaves_orphan_notifications(store: DocumentStore) -> None:
    """Completing j1 notifies and stamps c1; deleting j1 keeps both notifications."""
    job = {**jobs.get_job_by_id(store, "j1"), "status": "Completed"}
    jobs.update_job(store, job)

    all_jobs = jobs.get_jobs(store)
    assert len(all_jobs) == 1
    assert all_jobs[0]["status"] == "Completed"
    notes = entities.get_notifications(store)
    assert len(notes) == 2
    assert notes[-1]["type"] == "JobCompleted"
    assert notes[-1]["message"] == "Inspection job for Main Engine on Ever Given has been completed"
    assert entities.get_component_by_id(store, "c1")["lastMaintenanceDate"] == _today()

    jobs.delete_job(store, "j1")
    assert jobs.get_jobs(store) == []
    notes = entities.get_notifications(store)
    assert len(notes) == 2
    assert all(n["jobId"] == "j1" for n in notes)


def test_job_queries(store: DocumentStore) -> None:
    extra = jobs.add_job(store, _new_job())
    assert [j["id"] for j in jobs.get_jobs_by_ship_id(store, "s2")] == [extra["id"]]
    assert [j["id"] for j in jobs.get_jobs_by_component_id(store, "c1")] == ["j1"]
    assert [j["id"] for j in jobs.get_jobs_for_date(store, "2025-05-05")] == ["j1"]
    assert jobs.get_jobs_for_date(store, "2025-05-06") == []


def test_concurrent_creates_are_all_kept(store: DocumentStore) -> None:
    """Parallel writers each land their job and its notification."""
    with ThreadPoolExecutor(max_workers=8) as pool:
        created = list(pool.map(lambda i: jobs.add_job(store, _new_job(notes=f"run {i}")), range(40)))
    stored = jobs.get_jobs(store)
    assert len(stored) == 41
    assert len({j["id"] for j in stored}) == 41
    assert {j["id"] for j in created} <= {j["id"] for j in stored}
    created_notes = [n for n in entities.get_notifications(store) if n["type"] == "JobCreated"]
    assert len(created_notes) == 41


def test_concurrent_updates_and_creates_lose_nothing(store: DocumentStore) -> None:
    def work(i: int) -> None:
        if i % 2:
            jobs.add_job(store, _new_job())
        else:
            entities.add_ship(store, {"name": f"Ship {i}", "imo": str(i), "flag": "Panama", "status": "Active"})

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(work, range(20)))
    assert len(jobs.get_jobs(store)) == 11
    assert len(entities.get_ships(store)) == 12
