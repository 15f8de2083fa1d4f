import time
from datetime import datetime, date, timezone
from typing import Optional, Dict, Any, Iterable

import pandas as pd


def now_iso() -> str:
    # same shape as JavaScript's Date.toISOString(): millisecond precision, Z suffix
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def new_id(prefix: str, existing: Iterable[Dict[str, Any]]) -> str:
    taken = {str(r.get("id")) for r in existing}
    stamp = int(time.time() * 1000)
    while f"{prefix}{stamp}" in taken:
        stamp += 1
    return f"{prefix}{stamp}"


def parse_date(x: Any) -> Optional[date]:
    if x is None or str(x).strip() == "":
        return None
    if isinstance(x, datetime):
        return x.date()
    if isinstance(x, date):
        return x
    try:
        ts = pd.to_datetime(str(x).strip(), errors="coerce")
    except Exception:
        return None
    if pd.isna(ts):
        return None
    return ts.date()


def to_date_iso(x: Any) -> Optional[str]:
    d = parse_date(x)
    return d.isoformat() if d else None


def find_by_id(rows: Iterable[Dict[str, Any]], record_id: Any) -> Optional[Dict[str, Any]]:
    for r in rows:
        if r.get("id") == record_id:
            return r
    return None


def diff_rows(before: Dict[str, Any], after: Dict[str, Any]) -> Dict[str, Any]:
    changed = {}
    keys = set(before.keys()) | set(after.keys())
    for k in keys:
        if before.get(k) != after.get(k):
            changed[k] = {"from": before.get(k), "to": after.get(k)}
    return changed
