"""
Client for the multimodal query formulator (MQF): query submission.

Query items are relayed by services.distributor with f=storeQueryItem.
"""

import logging
from typing import Any

import httpx

from musebag.core.config import HTTP_TIMEOUT, MQF_URL
from musebag.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)

STORE_QUERY_ITEM = "storeQueryItem"


def store_item_params(session_id: str) -> dict[str, str]:
    """Extra multipart fields for relaying a query item of this session."""
    return {"f": STORE_QUERY_ITEM, "session": session_id}


async def submit_query(rucod: str, rwml: str | None, session_id: str, options: str) -> Any:
    """
    Submit the query documents; returns the formulator's result.

    rwml None is sent as "false" (no real-world context).
    """
    data = {
        "f": "submitQuery",
        "rucod": rucod,
        "rwml": rwml if rwml is not None else "false",
        "session": session_id,
        "options": options,
    }
    logger.info("[query_formulator:submit_query] IN  session=%s rucod_len=%d rwml=%s", session_id, len(rucod), rwml is not None)
    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
            response = await client.post(MQF_URL, data=data)
    except httpx.TimeoutException as e:
        raise ExternalServiceError("Query submission timed out.") from e
    except httpx.HTTPError as e:
        raise ExternalServiceError(f"Query formulator unreachable: {e!s}") from e
    try:
        body = response.json()
    except ValueError as e:
        raise ExternalServiceError(f"Invalid response from query formulator (status {response.status_code})") from e
    if not isinstance(body, dict):
        raise ExternalServiceError("Invalid response from query formulator")
    if body.get("error"):
        raise ExternalServiceError(str(body["error"]))
    logger.info("[query_formulator:submit_query] OUT session=%s", session_id)
    return body.get("result")
