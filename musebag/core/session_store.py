"""
In-memory visitor session store. Keyed by the session token carried in the session cookie.

A session holds the visitor's profile (guest until login) and the list of query
items uploaded since the last query was composed.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

from musebag.core.config import GUEST_ID, GUEST_SETTINGS, SESSION_TTL
from musebag.schemas.upload import UploadItem

logger = logging.getLogger(__name__)

# Wire attribute name -> SessionProfile field
_PROFILE_FIELDS: dict[str, str] = {
    "ID": "id",
    "Settings": "settings",
    "QueryCounter": "query_counter",
    "Email": "email",
    "extSessionId": "ext_session_id",
    "query": "query",
    "items": "items",
}


@dataclass
class SessionProfile:
    """Profile of the visitor: the guest defaults or the user record returned at login."""

    id: str | int = GUEST_ID
    settings: str = GUEST_SETTINGS
    query_counter: int = 0
    email: str | None = None
    ext_session_id: str | None = None
    query: dict[str, Any] | None = None
    items: list[Any] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_user(cls, user: dict[str, Any]) -> "SessionProfile":
        """Build a profile from the user object returned by the authentication service."""
        profile = cls(id=user.get("ID", GUEST_ID))
        for name, value in user.items():
            if name == "ID":
                continue
            profile.set_attribute(name, value)
        if profile.settings is None:
            profile.settings = GUEST_SETTINGS
        profile.query_counter = int(profile.query_counter or 0)
        return profile

    def get_attribute(self, name: str) -> Any:
        """Return a profile attribute by its wire name, or None if it is not set."""
        attr = _PROFILE_FIELDS.get(name)
        if attr is not None:
            return getattr(self, attr)
        return self.extra.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        attr = _PROFILE_FIELDS.get(name)
        if attr is not None:
            setattr(self, attr, value)
        else:
            self.extra[name] = value

    def to_dict(self) -> dict[str, Any]:
        """Wire representation (attribute names as the front-end knows them)."""
        out = dict(self.extra)
        for name, attr in _PROFILE_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                out[name] = value
        return out


@dataclass
class Session:
    """Server-side state of one visitor session."""

    token: str
    profile: SessionProfile | None = None
    query_items: list[UploadItem] = field(default_factory=list)
    last_access: float = field(default_factory=time.monotonic)

    def is_expired(self, now: float) -> bool:
        return now - self.last_access > SESSION_TTL


_sessions: dict[str, Session] = {}
_lock = threading.Lock()


def new_token() -> str:
    """Return a fresh 64 hex character session token."""
    return uuid.uuid4().hex + uuid.uuid4().hex


def _evict_expired(now: float) -> None:
    """Drop idle sessions. Caller holds _lock."""
    expired = [token for token, session in _sessions.items() if session.is_expired(now)]
    for token in expired:
        del _sessions[token]
    if expired:
        logger.info("[session_store:evict] expired=%d remaining=%d", len(expired), len(_sessions))


def create_session() -> Session:
    """Issue a new session under a server-generated token."""
    with _lock:
        _evict_expired(time.monotonic())
        session = Session(token=new_token())
        _sessions[session.token] = session
    logger.info("[session_store:create_session] created session=%s", session.token[-8:])
    return session


def lookup_session(token: str | None) -> Session | None:
    """Return the live session for token, or None if it is unknown or has expired."""
    if not token:
        return None
    now = time.monotonic()
    with _lock:
        session = _sessions.get(token)
        if session is None:
            return None
        if session.is_expired(now):
            del _sessions[token]
            logger.info("[session_store:lookup_session] expired session=%s", token[-8:])
            return None
        session.last_access = now
    return session


def rotate_session(session: Session) -> Session:
    """Move the session to a fresh token (e.g. on login); the old token stops working."""
    with _lock:
        _sessions.pop(session.token, None)
        old = session.token
        session.token = new_token()
        _sessions[session.token] = session
    logger.info("[session_store:rotate_session] session=%s -> %s", old[-8:], session.token[-8:])
    return session


def destroy_session(token: str) -> bool:
    """Forget the session. Returns False if it did not exist."""
    with _lock:
        removed = _sessions.pop(token, None)
    logger.info("[session_store:destroy_session] session=%s existed=%s", token[-8:], removed is not None)
    return removed is not None


def append_query_items(session: Session, items: list[UploadItem]) -> None:
    """Append distributed items to the session's in-flight query item list."""
    if not items:
        return
    with _lock:
        session.query_items.extend(items)
    logger.info("[session_store:append_query_items] session=%s added=%d total=%d", session.token[-8:], len(items), len(session.query_items))


def clear_query_items(session: Session) -> None:
    with _lock:
        session.query_items.clear()
