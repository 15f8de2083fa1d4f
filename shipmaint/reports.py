from datetime import date
from typing import Optional

import pandas as pd

from .analytics import months_since, OVERDUE_AFTER_MONTHS
from .store import DocumentStore

JOB_REPORT_COLS = [
    "Job ID", "Ship", "Component", "Type", "Priority", "Status",
    "Assigned Engineer", "Scheduled Date", "Completed Date", "Notes",
]

COMPONENT_REPORT_COLS = [
    "Component ID", "Ship", "Component", "Serial Number", "Install Date",
    "Last Maintenance Date", "Months Since Maintenance", "Overdue",
]


def jobs_report(store: DocumentStore) -> pd.DataFrame:
    data = store.load()
    ships = {s["id"]: s.get("name") or "" for s in data["ships"]}
    components = {c["id"]: c.get("name") or "" for c in data["components"]}
    users = {u["id"]: u.get("email") or "" for u in data["users"]}
    rows = [
        {
            "Job ID": j.get("id"),
            "Ship": ships.get(j.get("shipId"), ""),
            "Component": components.get(j.get("componentId"), ""),
            "Type": j.get("type"),
            "Priority": j.get("priority"),
            "Status": j.get("status"),
            "Assigned Engineer": users.get(j.get("assignedEngineerId"), ""),
            "Scheduled Date": j.get("scheduledDate"),
            "Completed Date": j.get("completedDate") or "",
            "Notes": j.get("notes") or "",
        }
        for j in data["jobs"]
    ]
    return pd.DataFrame(rows, columns=JOB_REPORT_COLS)


def components_report(store: DocumentStore, today: Optional[date] = None) -> pd.DataFrame:
    today = today or date.today()
    data = store.load()
    ships = {s["id"]: s.get("name") or "" for s in data["ships"]}
    rows = []
    for c in data["components"]:
        months = months_since(c.get("lastMaintenanceDate"), today)
        rows.append({
            "Component ID": c.get("id"),
            "Ship": ships.get(c.get("shipId"), ""),
            "Component": c.get("name"),
            "Serial Number": c.get("serialNumber"),
            "Install Date": c.get("installDate"),
            "Last Maintenance Date": c.get("lastMaintenanceDate"),
            "Months Since Maintenance": months,
            "Overdue": months is not None and months > OVERDUE_AFTER_MONTHS,
        })
    return pd.DataFrame(rows, columns=COMPONENT_REPORT_COLS)


def to_records(df: pd.DataFrame) -> list:
    # NaN is not valid JSON
    return df.astype(object).where(pd.notna(df), None).to_dict(orient="records")


def to_csv(df: pd.DataFrame) -> str:
    return df.to_csv(index=False)
