"""
Session cookie handling: every request is bound to a visitor session.

The middleware resolves the cookie to a live session (or creates one); routes get
the Session through the current_session dependency. Only tokens the store itself
issued are honoured, so a client cannot pick its own session id.
"""

from fastapi import Request

from musebag.core.config import SESSION_COOKIE
from musebag.core.session_store import Session, create_session, lookup_session


async def session_middleware(request: Request, call_next):
    """Attach the session to request.state; set or clear the cookie on the response."""
    presented = request.cookies.get(SESSION_COOKIE)
    session = lookup_session(presented)
    if session is None:
        session = create_session()
    request.state.session = session
    request.state.session_destroyed = False

    response = await call_next(request)

    if request.state.session_destroyed:
        response.delete_cookie(SESSION_COOKIE)
    elif session.token != presented:
        # new session, or the token was rotated during the request
        response.set_cookie(SESSION_COOKIE, session.token, httponly=True, samesite="lax")
    return response


def current_session(request: Request) -> Session:
    return request.state.session


def end_session(request: Request) -> None:
    """Mark the request's session as destroyed so the cookie is dropped."""
    request.state.session_destroyed = True
