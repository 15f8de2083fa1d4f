import os
import secrets
from datetime import datetime, timedelta
from typing import Dict, Any, Optional, Callable

from fastapi import HTTPException, Header, Depends, Cookie, Request

from .entities import authenticate_user, get_user_by_id, public_user
from .logger import get_logger
from .permissions import has_permission
from .store import DocumentStore

SESSION_DURATION_SECONDS = int(os.getenv("SESSION_DURATION_SECONDS", "28800"))

INVALID_CREDENTIALS = "Invalid email or password"

logger = get_logger()


class AuthenticationError(Exception):
    """No user matches the given email and password."""

    def __init__(self, message: str = INVALID_CREDENTIALS):
        super().__init__(message)


def login(store: DocumentStore, email: str, password: str) -> Dict[str, Any]:
    user = authenticate_user(store, email, password)
    if not user:
        logger.info("Failed login for %s", email)
        raise AuthenticationError()
    session = create_session(store, user["id"])
    logger.info("User %s logged in", user["id"])
    return {"token": session["token"], "expires_at": session["expires_at"], "user": public_user(user)}


def create_session(store: DocumentStore, user_id: str) -> Dict[str, str]:
    token = secrets.token_hex(32)
    expires_at = (datetime.utcnow() + timedelta(seconds=SESSION_DURATION_SECONDS)).isoformat()
    with store.connect() as con:
        con.execute(
            "INSERT INTO user_session(token, user_id, expires_at) VALUES (?,?,?)",
            (token, user_id, expires_at),
        )
        con.commit()
    return {"token": token, "expires_at": expires_at}


def delete_session(store: DocumentStore, token: str) -> None:
    with store.connect() as con:
        con.execute("DELETE FROM user_session WHERE token=?", (token,))
        con.commit()


def resolve_session(store: DocumentStore, token: str) -> Optional[Dict[str, Any]]:
    """Return the session user, dropping sessions that expired or whose user is gone."""
    with store.connect() as con:
        row = con.execute(
            "SELECT token, user_id, expires_at FROM user_session WHERE token=?",
            (token,),
        ).fetchone()
    if not row:
        return None
    try:
        expires_at = datetime.fromisoformat(row["expires_at"])
    except ValueError:
        expires_at = datetime.utcnow() - timedelta(seconds=1)
    if expires_at < datetime.utcnow():
        delete_session(store, token)
        return None
    user = get_user_by_id(store, row["user_id"])
    if not user:
        delete_session(store, token)
        return None
    return {**user, "session_token": row["token"], "session_expires_at": row["expires_at"]}


# ---------------------- FastAPI dependencies ----------------------

def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def _extract_token(authorization: Optional[str], cookie_token: Optional[str] = None) -> str:
    if not authorization:
        if cookie_token:
            return cookie_token
        raise HTTPException(status_code=401, detail="Token required")
    prefix = "Bearer "
    if not authorization.startswith(prefix):
        raise HTTPException(status_code=401, detail="Invalid token format")
    token = authorization[len(prefix):].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Token required")
    return token


def get_current_user(
    authorization: Optional[str] = Header(None),
    session: Optional[str] = Cookie(default=None),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    token = _extract_token(authorization, session)
    user = resolve_session(store, token)
    if not user:
        raise HTTPException(status_code=401, detail="Session is not valid")
    return user


def require_user(user=Depends(get_current_user)) -> Dict[str, Any]:
    return user


def require_permission(permission: str) -> Callable:
    def dependency(user=Depends(get_current_user)) -> Dict[str, Any]:
        if not has_permission(user, permission):
            raise HTTPException(status_code=403, detail="You do not have permission for this operation")
        return user

    return dependency
