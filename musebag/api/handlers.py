"""
API handlers: read request data (e.g. UploadFile), call services, shape the JSON envelopes.

Responsibility: Bridge HTTP types and services. Service errors are MuseBagError
subclasses and are turned into {"error": message} by the app's exception handler.
"""

import asyncio
import json
import logging
import math
from typing import Any

from fastapi import UploadFile

from musebag.core.config import MQF_URL
from musebag.core.errors import InputError, MuseBagError
from musebag.core.session_store import (
    Session,
    SessionProfile,
    append_query_items,
    clear_query_items,
    destroy_session,
    rotate_session,
)
from musebag.schemas.profile import HistoryUpdateRequest, LoginRequest, ProfileSetRequest
from musebag.schemas.query import QueryRequest
from musebag.schemas.upload import UploadItem
from musebag.services.composer import compose_query
from musebag.services.distributor import distribute_file, save_upload, write_sketch
from musebag.services.identity import get_external_session_id, get_session_profile, is_guest
from musebag.services.profile_service import store_profile_data, update_search_history, validate_user
from musebag.services.query_formulator import store_item_params, submit_query

logger = logging.getLogger(__name__)

# Attributes managed by this server; clients cannot overwrite them
_READONLY_ATTRIBUTES = frozenset({"ID", "QueryCounter", "extSessionId", "query", "items"})

DEFAULT_SKETCH_NAME = "sketch.png"


def _is_number(value: Any) -> bool:
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


# --- Login / logout ---

async def handle_login(session: Session, body: LoginRequest) -> dict[str, Any]:
    """Validate credentials with the APC and make the returned user the session profile."""
    user = await validate_user(body.email, body.pw)
    session.profile = SessionProfile.from_user(user)
    # fresh token on privilege change; the pre-login cookie stops working
    rotate_session(session)
    logger.info("[handlers:login] session=%s user=%s", session.token[-8:], session.profile.id)
    return user


def handle_logout(session: Session) -> dict[str, Any]:
    destroy_session(session.token)
    return {"msg": True}


# --- Profile ---

def handle_get_profile(session: Session, attrib: str) -> dict[str, Any]:
    value = get_session_profile(session).get_attribute(attrib)
    if value is None:
        raise InputError("The requested user profile attribute is not available!")
    return {attrib: value}


def _merge_settings(current: str, data: str) -> tuple[str, bool]:
    """Merge a JSON settings update into the stored JSON settings. Returns (settings, changed)."""
    try:
        new_settings = json.loads(data)
        settings = json.loads(current)
    except ValueError as e:
        raise InputError("malformed") from e
    if not isinstance(new_settings, dict) or not isinstance(settings, dict):
        raise InputError("malformed")
    changed = False
    for key, value in new_settings.items():
        if key not in settings or settings[key] != value:
            settings[key] = value
            changed = True
    return json.dumps(settings), changed


async def handle_set_profile(session: Session, attrib: str, body: ProfileSetRequest) -> dict[str, Any]:
    """
    Set a profile attribute. Settings (JSON) are merged for everyone; other
    attributes only change for logged in users. Guests keep changes in the session
    only; for users the new value is stored in the APC profile.
    """
    profile = get_session_profile(session)
    current = profile.get_attribute(attrib)
    if attrib in _READONLY_ATTRIBUTES or current is None or not body.data:
        raise InputError("unknown parameter to set")

    changed = False
    if attrib == "Settings":
        profile.settings, changed = _merge_settings(profile.settings, body.data)
    elif not is_guest(session) and current != body.data:
        profile.set_attribute(attrib, body.data)
        changed = True

    if not changed:
        raise InputError("nochange")
    if is_guest(session):
        return {"info": "guest"}
    return await store_profile_data(profile.id, profile.get_attribute(attrib))


async def handle_update_history(session: Session, body: HistoryUpdateRequest | None) -> dict[str, Any]:
    """Store the last query with its picked result items in the user's search history."""
    profile = get_session_profile(session)
    if body is not None and body.items:
        profile.items = body.items + (profile.items or [])
    if not (_is_number(profile.id) and profile.query and profile.items):
        raise InputError("History data cannot be saved because of insufficient data.")
    await update_search_history(profile.id, profile.query, profile.items)
    profile.query = None
    profile.items = None
    return {"success": "History entry saved."}


# --- Query ---

async def handle_query(session: Session, body: QueryRequest | None) -> Any:
    """Compose the query documents, submit them to the MQF and advance the query counter."""
    ext_session_id = get_external_session_id(session)
    profile = get_session_profile(session)
    composed = await compose_query(body, ext_session_id, profile)
    rucod = composed.rucod.render()
    rwml = composed.rwml.render() if composed.rwml is not None else None

    profile.query = {"id": ext_session_id, "rucod": rucod}
    clear_query_items(session)

    result = await submit_query(rucod, rwml, ext_session_id, profile.settings)
    profile.query_counter += 1
    logger.info("[handlers:query] session=%s counter=%d", ext_session_id, profile.query_counter)
    return result


async def _relay_upload(upload: UploadFile, params: dict[str, str]) -> UploadItem:
    content = await upload.read()
    item = await save_upload(upload.filename or "", content, upload.content_type)
    return await distribute_file(MQF_URL, params, item)


async def _relay_sketch(canvas: str, name: str | None, subtype: str | None, params: dict[str, str]) -> UploadItem:
    item = await write_sketch(canvas, name or DEFAULT_SKETCH_NAME, subtype)
    return await distribute_file(MQF_URL, params, item)


async def handle_query_item(
    session: Session,
    upload: UploadFile | None,
    canvas: str | None,
    name: str | None,
    subtype: str | None,
) -> dict[str, Any]:
    """
    Relay an uploaded file and/or a drawn sketch to the MQF.

    Both producers run independently; each successful item is added to the
    session's query items in file-then-sketch order. With a single producer the
    item (or its error) is the response; with both, {"items": [...]} holds one
    envelope per producer.
    """
    if upload is None and not canvas:
        raise InputError("No query item given.")
    params = store_item_params(get_external_session_id(session))

    producers = []
    if upload is not None:
        producers.append(_relay_upload(upload, params))
    if canvas:
        producers.append(_relay_sketch(canvas, name, subtype, params))
    results = await asyncio.gather(*producers, return_exceptions=True)

    for result in results:
        if isinstance(result, BaseException) and not isinstance(result, MuseBagError):
            raise result
    append_query_items(session, [r for r in results if isinstance(r, UploadItem)])

    if len(results) == 1:
        if isinstance(results[0], MuseBagError):
            raise results[0]
        return results[0].model_dump(by_alias=True)

    envelopes: list[dict[str, Any]] = []
    for result in results:
        if isinstance(result, MuseBagError):
            logger.warning("[handlers:query_item] producer failed: %s", result.message)
            envelopes.append({"error": result.message})
        else:
            envelopes.append(result.model_dump(by_alias=True))
    return {"items": envelopes}
