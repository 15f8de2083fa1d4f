"""Users, ships, components and notifications.

Each mutating call is one locked read-mutate-write of the whole document
(``DocumentStore.transaction``). Deleting a ship or a component cascades to
its dependents inside the same write.
Notifications are never cleaned up when the job they point at disappears.
"""

from typing import Dict, Any, List, Optional

from .logger import get_logger
from .store import DocumentStore
from .utils import new_id, find_by_id, diff_rows

logger = get_logger()


def _strip_id(record: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in record.items() if k != "id"}


def _replace_by_id(rows: List[Dict[str, Any]], updated: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [updated if r.get("id") == updated.get("id") else r for r in rows]


# ---------------------- Users ----------------------

def get_users(store: DocumentStore) -> List[Dict[str, Any]]:
    return store.load()["users"]


def get_user_by_id(store: DocumentStore, user_id: str) -> Optional[Dict[str, Any]]:
    return find_by_id(get_users(store), user_id)


def authenticate_user(store: DocumentStore, email: str, password: str) -> Optional[Dict[str, Any]]:
    # plaintext, case-sensitive match on both fields
    for u in get_users(store):
        if u.get("email") == email and u.get("password") == password:
            return u
    return None


def public_user(user: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not user:
        return {}
    return {"id": user.get("id"), "role": user.get("role"), "email": user.get("email")}


# ---------------------- Ships ----------------------

def get_ships(store: DocumentStore) -> List[Dict[str, Any]]:
    return store.load()["ships"]


def get_ship_by_id(store: DocumentStore, ship_id: str) -> Optional[Dict[str, Any]]:
    return find_by_id(get_ships(store), ship_id)


def add_ship(store: DocumentStore, ship: Dict[str, Any]) -> Dict[str, Any]:
    with store.transaction() as data:
        new_ship = {**_strip_id(ship), "id": new_id("s", data["ships"])}
        data["ships"].append(new_ship)
    logger.info("Ship %s created (%s)", new_ship["id"], new_ship.get("name"))
    return new_ship


def update_ship(store: DocumentStore, ship: Dict[str, Any]) -> Dict[str, Any]:
    with store.transaction() as data:
        before = find_by_id(data["ships"], ship.get("id"))
        data["ships"] = _replace_by_id(data["ships"], ship)
    if before is not None:
        logger.info("Ship %s updated: %s", ship.get("id"), sorted(diff_rows(before, ship)))
    return ship


def delete_ship(store: DocumentStore, ship_id: str) -> None:
    with store.transaction() as data:
        data["ships"] = [s for s in data["ships"] if s.get("id") != ship_id]
        n_components = len(data["components"])
        n_jobs = len(data["jobs"])
        data["components"] = [c for c in data["components"] if c.get("shipId") != ship_id]
        data["jobs"] = [j for j in data["jobs"] if j.get("shipId") != ship_id]
    logger.info(
        "Ship %s deleted with %d components and %d jobs",
        ship_id,
        n_components - len(data["components"]),
        n_jobs - len(data["jobs"]),
    )


# ---------------------- Components ----------------------

def get_components(store: DocumentStore) -> List[Dict[str, Any]]:
    return store.load()["components"]


def get_components_by_ship_id(store: DocumentStore, ship_id: str) -> List[Dict[str, Any]]:
    return [c for c in get_components(store) if c.get("shipId") == ship_id]


def get_component_by_id(store: DocumentStore, component_id: str) -> Optional[Dict[str, Any]]:
    return find_by_id(get_components(store), component_id)


def add_component(store: DocumentStore, component: Dict[str, Any]) -> Dict[str, Any]:
    with store.transaction() as data:
        new_component = {**_strip_id(component), "id": new_id("c", data["components"])}
        data["components"].append(new_component)
    logger.info("Component %s created on ship %s", new_component["id"], new_component.get("shipId"))
    return new_component


def update_component(store: DocumentStore, component: Dict[str, Any]) -> Dict[str, Any]:
    with store.transaction() as data:
        before = find_by_id(data["components"], component.get("id"))
        data["components"] = _replace_by_id(data["components"], component)
    if before is not None:
        logger.info("Component %s updated: %s", component.get("id"), sorted(diff_rows(before, component)))
    return component


def delete_component(store: DocumentStore, component_id: str) -> None:
    with store.transaction() as data:
        data["components"] = [c for c in data["components"] if c.get("id") != component_id]
        n_jobs = len(data["jobs"])
        data["jobs"] = [j for j in data["jobs"] if j.get("componentId") != component_id]
    logger.info("Component %s deleted with %d jobs", component_id, n_jobs - len(data["jobs"]))


# ---------------------- Notifications ----------------------

def get_notifications(store: DocumentStore) -> List[Dict[str, Any]]:
    return store.load()["notifications"]


def get_unread_notifications_count(store: DocumentStore) -> int:
    return sum(1 for n in get_notifications(store) if not n.get("read"))


def build_notification(data: Dict[str, Any], notification: Dict[str, Any]) -> Dict[str, Any]:
    """Give a notification an id against ``data`` and append it there (no persist)."""
    new_notification = {**_strip_id(notification), "id": new_id("n", data["notifications"])}
    new_notification.setdefault("read", False)
    data["notifications"].append(new_notification)
    return new_notification


def add_notification(store: DocumentStore, notification: Dict[str, Any]) -> Dict[str, Any]:
    with store.transaction() as data:
        new_notification = build_notification(data, notification)
    logger.info("Notification %s (%s) for job %s", new_notification["id"], new_notification.get("type"), new_notification.get("jobId"))
    return new_notification


def mark_notification_as_read(store: DocumentStore, notification_id: str) -> None:
    with store.transaction() as data:
        data["notifications"] = [
            {**n, "read": True} if n.get("id") == notification_id else n for n in data["notifications"]
        ]


def mark_all_notifications_as_read(store: DocumentStore) -> None:
    with store.transaction() as data:
        data["notifications"] = [{**n, "read": True} for n in data["notifications"]]


def delete_notification(store: DocumentStore, notification_id: str) -> None:
    with store.transaction() as data:
        data["notifications"] = [n for n in data["notifications"] if n.get("id") != notification_id]
