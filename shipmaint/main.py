import os
import time
from contextlib import contextmanager
import datetime
from typing import Optional, Dict, Any

from fastapi import FastAPI, HTTPException, Depends, Response, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from . import analytics, entities, jobs, reports
from .auth import (
    AuthenticationError,
    login as login_user,
    delete_session,
    get_store,
    require_permission,
    require_user,
)
from .entities import public_user
from .logger import setup_logger
from .permissions import get_user_permissions, format_role_name
from .schedule import calendar_view, VIEWS
from .schemas import LoginRequest, ShipIn, ComponentIn, JobIn
from .store import DocumentStore, StorageError
from .utils import parse_date

logger = setup_logger()

API_SIMULATED_DELAY_MS = int(os.getenv("API_SIMULATED_DELAY_MS", "0"))

app = FastAPI(title="Ship Maintenance Dashboard")

# CORS configured through environment variables
def _parse_csv_env(s: str) -> list[str]:
    parts = [p.strip() for p in (s or "").split(",")]
    return [p for p in parts if p]

_origins_env = os.getenv("ALLOWED_ORIGINS", "*")
_methods_env = os.getenv("CORS_ALLOW_METHODS", "*")
_headers_env = os.getenv("CORS_ALLOW_HEADERS", "*")
_creds_env = os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() in ("1", "true", "yes")

_allow_origins = ["*"] if _origins_env.strip() == "*" else _parse_csv_env(_origins_env)
_allow_methods = ["*"] if _methods_env.strip() == "*" else _parse_csv_env(_methods_env)
_allow_headers = ["*"] if _headers_env.strip() == "*" else _parse_csv_env(_headers_env)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allow_origins,
    allow_credentials=_creds_env,
    allow_methods=_allow_methods,
    allow_headers=_allow_headers,
)


@app.on_event("startup")
def startup():
    if getattr(app.state, "store", None) is None:
        app.state.store = DocumentStore()
    seeded = app.state.store.initialize()
    logger.info("Store ready at %s (seeded=%s)", app.state.store.db_path, seeded)


@app.exception_handler(StorageError)
def storage_error_handler(request: Request, exc: StorageError):
    logger.error("Unhandled storage failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Failed to load data"})


@contextmanager
def storage_failure(action: str, entity: str):
    try:
        yield
    except StorageError as e:
        logger.exception("Failed to %s %s: %s", action, entity, e)
        raise HTTPException(status_code=500, detail=f"Failed to {action} {entity}")


def simulate_latency() -> None:
    if API_SIMULATED_DELAY_MS > 0:
        time.sleep(API_SIMULATED_DELAY_MS / 1000.0)


def _found(record: Optional[Dict[str, Any]], entity: str) -> Dict[str, Any]:
    if record is None:
        raise HTTPException(status_code=404, detail=f"{entity} not found")
    return record


# ---------------------- Auth ----------------------

@app.post("/auth/login")
def login(payload: LoginRequest, response: Response, store: DocumentStore = Depends(get_store)):
    simulate_latency()
    try:
        with storage_failure("load", "users"):
            result = login_user(store, payload.email, payload.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))
    cookie_params = {"httponly": True, "samesite": "lax", "path": "/"}
    if os.getenv("COOKIE_SECURE", "false").lower() in ("1", "true", "yes"):
        cookie_params["secure"] = True
    response.set_cookie(key="session", value=result["token"], **cookie_params)
    return result


@app.post("/auth/logout")
def logout(response: Response, current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    delete_session(store, current_user["session_token"])
    response.delete_cookie("session", path="/")
    return {"ok": True}


@app.get("/auth/session")
def session(current_user: Dict[str, Any] = Depends(require_user)):
    return {
        "active": True,
        "user": public_user(current_user),
        "roleName": format_role_name(current_user.get("role") or ""),
        "expires_at": current_user["session_expires_at"],
    }


@app.get("/me/permissions")
def my_permissions(current_user: Dict[str, Any] = Depends(require_user)):
    return get_user_permissions(current_user)


# ---------------------- Ships ----------------------

@app.get("/ships")
def list_ships(current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "ships"):
        return entities.get_ships(store)


@app.get("/ships/{ship_id}")
def get_ship(ship_id: str, current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "ships"):
        return _found(entities.get_ship_by_id(store, ship_id), "Ship")


@app.post("/ships")
def create_ship(payload: ShipIn, current_user: Dict[str, Any] = Depends(require_permission("canCreateShip")), store: DocumentStore = Depends(get_store)):
    simulate_latency()
    with storage_failure("add", "ship"):
        return entities.add_ship(store, payload.model_dump())


@app.put("/ships/{ship_id}")
def update_ship(ship_id: str, payload: ShipIn, current_user: Dict[str, Any] = Depends(require_permission("canEditShip")), store: DocumentStore = Depends(get_store)):
    simulate_latency()
    with storage_failure("update", "ship"):
        return entities.update_ship(store, {**payload.model_dump(), "id": ship_id})


@app.delete("/ships/{ship_id}")
def delete_ship(ship_id: str, current_user: Dict[str, Any] = Depends(require_permission("canDeleteShip")), store: DocumentStore = Depends(get_store)):
    simulate_latency()
    with storage_failure("delete", "ship"):
        entities.delete_ship(store, ship_id)
    return {"ok": True}


@app.get("/ships/{ship_id}/components")
def list_ship_components(ship_id: str, current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "components"):
        return entities.get_components_by_ship_id(store, ship_id)


@app.get("/ships/{ship_id}/jobs")
def list_ship_jobs(ship_id: str, current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "jobs"):
        return jobs.get_jobs_by_ship_id(store, ship_id)


# ---------------------- Components ----------------------

@app.get("/components")
def list_components(current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "components"):
        return entities.get_components(store)


@app.get("/components/{component_id}")
def get_component(component_id: str, current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "components"):
        return _found(entities.get_component_by_id(store, component_id), "Component")


@app.post("/components")
def create_component(payload: ComponentIn, current_user: Dict[str, Any] = Depends(require_permission("canCreateComponent")), store: DocumentStore = Depends(get_store)):
    simulate_latency()
    with storage_failure("add", "component"):
        return entities.add_component(store, payload.model_dump())


@app.put("/components/{component_id}")
def update_component(component_id: str, payload: ComponentIn, current_user: Dict[str, Any] = Depends(require_permission("canEditComponent")), store: DocumentStore = Depends(get_store)):
    simulate_latency()
    with storage_failure("update", "component"):
        return entities.update_component(store, {**payload.model_dump(), "id": component_id})


@app.delete("/components/{component_id}")
def delete_component(component_id: str, current_user: Dict[str, Any] = Depends(require_permission("canDeleteComponent")), store: DocumentStore = Depends(get_store)):
    simulate_latency()
    with storage_failure("delete", "component"):
        entities.delete_component(store, component_id)
    return {"ok": True}


@app.get("/components/{component_id}/jobs")
def list_component_jobs(component_id: str, current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "jobs"):
        return jobs.get_jobs_by_component_id(store, component_id)


# ---------------------- Jobs ----------------------

@app.get("/jobs")
def list_jobs(
    shipId: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    date: Optional[str] = None,
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
):
    with storage_failure("load", "jobs"):
        rows = jobs.get_jobs_for_date(store, date) if date else jobs.get_jobs(store)
    if shipId:
        rows = [j for j in rows if j.get("shipId") == shipId]
    if status:
        rows = [j for j in rows if j.get("status") == status]
    if priority:
        rows = [j for j in rows if j.get("priority") == priority]
    return rows


@app.get("/jobs/{job_id}")
def get_job(job_id: str, current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "jobs"):
        return _found(jobs.get_job_by_id(store, job_id), "Job")


@app.post("/jobs")
def create_job(payload: JobIn, current_user: Dict[str, Any] = Depends(require_permission("canCreateJob")), store: DocumentStore = Depends(get_store)):
    simulate_latency()
    with storage_failure("add", "job"):
        return jobs.add_job(store, payload.model_dump(exclude_none=True))


@app.put("/jobs/{job_id}")
def update_job(job_id: str, payload: JobIn, current_user: Dict[str, Any] = Depends(require_permission("canEditJob")), store: DocumentStore = Depends(get_store)):
    simulate_latency()
    with storage_failure("update", "job"):
        return jobs.update_job(store, {**payload.model_dump(exclude_none=True), "id": job_id})


@app.delete("/jobs/{job_id}")
def delete_job(job_id: str, current_user: Dict[str, Any] = Depends(require_permission("canDeleteJob")), store: DocumentStore = Depends(get_store)):
    simulate_latency()
    with storage_failure("delete", "job"):
        jobs.delete_job(store, job_id)
    return {"ok": True}


# ---------------------- Notifications ----------------------

@app.get("/notifications")
def list_notifications(current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "notifications"):
        rows = entities.get_notifications(store)
    return {"notifications": rows, "unreadCount": sum(1 for n in rows if not n.get("read"))}


@app.post("/notifications/read-all")
def read_all_notifications(current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("update", "notifications"):
        entities.mark_all_notifications_as_read(store)
        return {"unreadCount": entities.get_unread_notifications_count(store)}


@app.post("/notifications/{notification_id}/read")
def read_notification(notification_id: str, current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("update", "notification"):
        entities.mark_notification_as_read(store, notification_id)
        return {"unreadCount": entities.get_unread_notifications_count(store)}


@app.delete("/notifications/{notification_id}")
def delete_notification(notification_id: str, current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("delete", "notification"):
        entities.delete_notification(store, notification_id)
        return {"unreadCount": entities.get_unread_notifications_count(store)}


# ---------------------- Dashboard & calendar ----------------------

@app.get("/dashboard/kpis")
def dashboard_kpis(current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "dashboard"):
        return analytics.get_kpis(store)


@app.get("/dashboard/job-status")
def dashboard_job_status(current_user: Dict[str, Any] = Depends(require_user), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "jobs"):
        return analytics.get_job_counts_by_status(store)


@app.get("/calendar")
def job_calendar(
    view: str = "month",
    date: Optional[str] = None,
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
):
    if view not in VIEWS:
        raise HTTPException(status_code=400, detail=f"view must be one of: {', '.join(VIEWS)}")
    ref = parse_date(date) if date else None
    if date and ref is None:
        raise HTTPException(status_code=400, detail="date must be YYYY-MM-DD")
    with storage_failure("load", "jobs"):
        return calendar_view(store, ref or datetime.date.today(), view)


# ---------------------- Reports ----------------------

@app.get("/reports/jobs")
def jobs_report(current_user: Dict[str, Any] = Depends(require_permission("canViewReports")), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "jobs"):
        return reports.to_records(reports.jobs_report(store))


@app.get("/reports/jobs.csv", response_class=PlainTextResponse)
def jobs_report_csv(current_user: Dict[str, Any] = Depends(require_permission("canViewReports")), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "jobs"):
        csv_text = reports.to_csv(reports.jobs_report(store))
    return PlainTextResponse(
        csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="jobs.csv"'},
    )


@app.get("/reports/components")
def components_report(current_user: Dict[str, Any] = Depends(require_permission("canViewReports")), store: DocumentStore = Depends(get_store)):
    with storage_failure("load", "components"):
        return reports.to_records(reports.components_report(store))


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
