"""
Client for the authentication / personalisation component (APC).

Responsibility: validate credentials, store profile data and search history.
Every call is one request; an error answer or transport failure raises
ExternalServiceError.
"""

import json
import logging
from typing import Any

import httpx

from musebag.core.config import APC_URL, HTTP_TIMEOUT
from musebag.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)


async def _call(method: str, params: dict[str, Any] | None = None, data: dict[str, Any] | None = None) -> dict[str, Any]:
    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
            response = await client.request(method, APC_URL, params=params, data=data)
    except httpx.TimeoutException as e:
        raise ExternalServiceError("Profile service request timed out.") from e
    except httpx.HTTPError as e:
        raise ExternalServiceError(f"Profile service unreachable: {e!s}") from e
    try:
        body = response.json()
    except ValueError as e:
        raise ExternalServiceError(f"Invalid response from profile service (status {response.status_code})") from e
    if not isinstance(body, dict):
        raise ExternalServiceError("Invalid response from profile service")
    return body


async def validate_user(email: str, pw: str) -> dict[str, Any]:
    """Return the user record for valid credentials."""
    logger.info("[profile_service:validate_user] email=%s", email)
    body = await _call("GET", params={"f": "validateUser", "email": email, "pw": pw})
    user = body.get("user")
    if not user:
        raise ExternalServiceError(str(body.get("error") or "Login failed."))
    return user


async def store_profile_data(userid: str | int, data: Any) -> dict[str, Any]:
    """Persist a profile attribute value for a logged in user; returns the service answer."""
    logger.info("[profile_service:store_profile_data] userid=%s", userid)
    body = await _call("POST", params={"f": "profileData"}, data={"userid": str(userid), "data": str(data)})
    if not body.get("success"):
        raise ExternalServiceError(str(body.get("error") or "Profile data could not be stored."))
    return body


async def update_search_history(userid: str | int, query: dict[str, Any], items: list[Any]) -> dict[str, Any]:
    logger.info("[profile_service:update_search_history] userid=%s items=%d", userid, len(items))
    body = await _call(
        "POST",
        data={
            "f": "updateSearchHistory",
            "userid": str(userid),
            "query": json.dumps(query),
            "items": json.dumps(items),
        },
    )
    if body.get("error"):
        raise ExternalServiceError(str(body["error"]))
    return body
