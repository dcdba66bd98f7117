"""
API route aggregator: register endpoints; no logic, only delegate to handlers.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, File, Form, Request, UploadFile

from musebag.api.handlers import (
    handle_get_profile,
    handle_login,
    handle_logout,
    handle_query,
    handle_query_item,
    handle_set_profile,
    handle_update_history,
)
from musebag.api.session import current_session, end_session
from musebag.core.session_store import Session
from musebag.schemas.profile import HistoryUpdateRequest, LoginRequest, ProfileSetRequest
from musebag.schemas.query import QueryRequest

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "MuseBag query gateway running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Login ---

@router.post("/login", tags=["user"], summary="Log in with the authentication service")
async def login(body: LoginRequest, session: Session = Depends(current_session)) -> dict[str, Any]:
    logger.info("[api:login] IN  email=%s", body.email)
    return await handle_login(session, body)


@router.post("/logout", tags=["user"], summary="End the visitor session")
def logout(request: Request, session: Session = Depends(current_session)) -> dict[str, Any]:
    end_session(request)
    return handle_logout(session)


# --- Profile ---

@router.get(
    "/profile/{attrib}",
    tags=["profile"],
    summary="Read a profile attribute",
    description="Returns {attrib: value} from the session profile (guest defaults if not logged in).",
)
def get_profile(attrib: str, session: Session = Depends(current_session)) -> dict[str, Any]:
    return handle_get_profile(session, attrib)


@router.post(
    "/profile/history",
    tags=["profile"],
    summary="Store the last query and its result items in the search history",
)
async def update_history(
    body: HistoryUpdateRequest | None = Body(None),
    session: Session = Depends(current_session),
) -> dict[str, Any]:
    return await handle_update_history(session, body)


@router.post(
    "/profile/{attrib}",
    tags=["profile"],
    summary="Set a profile attribute",
    description="Settings are merged as JSON. Logged in users get the value stored in their APC profile; guests keep it in the session.",
)
async def set_profile(
    attrib: str,
    body: ProfileSetRequest,
    session: Session = Depends(current_session),
) -> dict[str, Any]:
    logger.info("[api:set_profile] IN  attrib=%s", attrib)
    return await handle_set_profile(session, attrib, body)


# --- Query ---

@router.post(
    "/query",
    tags=["query"],
    summary="Compose and submit a multimodal query",
    description="Builds the RUCoD query (and RWML context when a datetime is given) and submits it to the query formulator.",
)
async def post_query(
    body: QueryRequest | None = Body(None),
    session: Session = Depends(current_session),
) -> Any:
    return await handle_query(session, body)


@router.post(
    "/query/item",
    tags=["query"],
    summary="Upload a query item (file and/or sketch)",
    description="Relays an uploaded file and/or a base64 PNG sketch to the query formulator and returns the rewritten item(s).",
)
async def post_query_item(
    files: UploadFile | None = File(None, description="Media file used as query item."),
    canvas: str | None = Form(None, description="Sketch as base64 PNG data URL."),
    name: str | None = Form(None, description="File name of the sketch."),
    subtype: str | None = Form(None),
    session: Session = Depends(current_session),
) -> dict[str, Any]:
    return await handle_query_item(session, files, canvas, name, subtype)
