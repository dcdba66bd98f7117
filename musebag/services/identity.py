"""
Visitor identity: guest vs. authenticated profile and the external session id.
"""

import logging

from musebag.core.config import GUEST_ID
from musebag.core.session_store import Session, SessionProfile

logger = logging.getLogger(__name__)


def get_session_profile(session: Session) -> SessionProfile:
    """Return the session's profile, attaching a guest profile on first access."""
    if session.profile is None:
        session.profile = SessionProfile()
        logger.info("[identity:get_session_profile] guest profile for session=%s", session.token[-8:])
    return session.profile


def get_external_session_id(session: Session) -> str:
    """
    Return the id shared with external services, assigning it on first use.

    Derived from the last 32 characters of the session token and the query counter
    at assignment time; stable for the lifetime of the profile.
    """
    profile = get_session_profile(session)
    if not profile.ext_session_id:
        profile.ext_session_id = f"{session.token[-32:]}-{profile.query_counter}"
        logger.info("[identity:get_external_session_id] assigned %s", profile.ext_session_id)
    return profile.ext_session_id


def is_guest(session: Session) -> bool:
    return get_session_profile(session).id == GUEST_ID
