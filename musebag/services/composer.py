"""
Query composition: build the RUCoD query document and its RWML companion.

Responsibility: Turn a QueryRequest into documents for the query formulator.
Weather enrichment is best-effort; a failed lookup leaves the weather out.
No network submission here.
"""

import logging
from dataclasses import dataclass

from musebag.core.errors import QueryCompositionError, WeatherUnavailableError
from musebag.core.session_store import SessionProfile
from musebag.schemas.query import QueryRequest
from musebag.services import weather
from musebag.services.documents import (
    EmotionEntry,
    Header,
    LocationFragment,
    MediaContent,
    QueryDocument,
    RealWorldDocument,
    TextContent,
    WeatherFragment,
)

logger = logging.getLogger(__name__)

GUEST_CREATOR = "Guest"


@dataclass
class ComposedQuery:
    """Query document plus real-world document (None when the request has no datetime)."""

    rucod: QueryDocument
    rwml: RealWorldDocument | None = None


def build_query_document(request: QueryRequest, session_id: str, profile: SessionProfile | None) -> QueryDocument:
    """Build the RUCoD document: one content entry per file item, in request order."""
    creator = (profile.email if profile else None) or GUEST_CREATOR
    doc = QueryDocument(header=Header(name=f"UserQuery-{session_id}", session_id=session_id, creator=creator))
    for item in request.file_items:
        if item.is_text:
            doc.contents.append(TextContent(text=item.content))
        else:
            doc.contents.append(MediaContent(type=item.type, real_type=item.real_type, name=item.name, uri=item.content))
    if request.tags:
        doc.tags.extend(request.tags)
    if request.emotion is not None:
        doc.emotion = EmotionEntry(name=request.emotion.name, intensity=request.emotion.intensity)
    return doc


async def build_real_world_document(request: QueryRequest, session_id: str) -> RealWorldDocument | None:
    """
    Build the RWML document for a request carrying a datetime, else return None.

    With a location, weather is looked up for the position; on failure the
    document is emitted without weather.
    """
    if not request.datetime:
        return None
    rwml = RealWorldDocument(datetime=request.datetime)
    if not request.location:
        return rwml

    rwml.location = LocationFragment(position=request.location)
    try:
        position = weather.weather_position(request.location)
        data = await weather.fetch_weather(request.datetime, position)
    except (ValueError, WeatherUnavailableError) as e:
        logger.warning("No weather data found for query with id %s: %s", session_id, e)
        return rwml
    rwml.weather = WeatherFragment(
        condition=data.condition,
        temperature=data.temperature,
        wind=data.wind,
        humidity=data.humidity,
    )
    return rwml


async def compose_query(
    request: QueryRequest | None,
    session_id: str,
    profile: SessionProfile | None,
) -> ComposedQuery:
    """
    Compose the documents for a query.

    Raises:
        QueryCompositionError: If request is missing. Raised before any lookup starts.
    """
    if request is None:
        raise QueryCompositionError("No query")
    logger.info(
        "[composer:compose_query] IN  session=%s items=%d tags=%d emotion=%s datetime=%s location=%s",
        session_id, len(request.file_items), len(request.tags or []), request.emotion is not None,
        bool(request.datetime), bool(request.location),
    )
    rucod = build_query_document(request, session_id, profile)
    rwml = await build_real_world_document(request, session_id)
    logger.info("[composer:compose_query] OUT contents=%d rwml=%s", len(rucod.contents), rwml is not None)
    return ComposedQuery(rucod=rucod, rwml=rwml)
