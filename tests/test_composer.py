"""
Unit tests for query composition. Weather lookups are mocked.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from musebag.core.errors import QueryCompositionError, WeatherUnavailableError
from musebag.core.session_store import SessionProfile
from musebag.schemas.query import QueryRequest
from musebag.services.composer import compose_query
from musebag.services.documents import MediaContent, TextContent
from musebag.services.weather import WeatherData

SESSION_ID = "0123456789abcdef0123456789abcdef-0"
DATETIME = "2011-06-24T13:45:00.000Z"


def _compose(payload: dict | None, profile: SessionProfile | None = None):
    request = QueryRequest.model_validate(payload) if payload is not None else None
    return asyncio.run(compose_query(request, SESSION_ID, profile or SessionProfile()))


def test_missing_request_fails_before_lookup() -> None:
    with patch("musebag.services.weather.fetch_weather", new=AsyncMock()) as mock_fetch:
        with pytest.raises(QueryCompositionError, match="No query"):
            _compose(None)
    mock_fetch.assert_not_called()


def test_one_content_entry_per_item_in_order() -> None:
    composed = _compose({
        "fileItems": [
            {"Type": "ImageType", "RealType": "image/jpeg", "name": "x.jpg", "Content": "abc123.jpg"},
            {"Type": "Text", "Content": "cat"},
            {"Type": "Text", "Content": "cat"},
        ]
    })
    contents = composed.rucod.contents
    assert len(contents) == 3
    assert contents[0] == MediaContent(type="ImageType", real_type="image/jpeg", name="x.jpg", uri="abc123.jpg")
    assert contents[1] == TextContent(text="cat")
    assert contents[2] == TextContent(text="cat")
    assert composed.rucod.tags == []
    assert composed.rucod.emotion is None
    assert composed.rwml is None


def test_text_and_tag_without_datetime() -> None:
    composed = _compose({"fileItems": [{"Type": "Text", "Content": "cat"}], "tags": ["animal"], "datetime": None})
    assert composed.rucod.contents == [TextContent(text="cat")]
    assert composed.rucod.tags == ["animal"]
    assert composed.rwml is None
    xml = composed.rucod.render()
    assert xml.count("<FreeText>cat</FreeText>") == 1
    assert xml.count('name="TagRecommendation"') == 1


def test_header_guest_and_email() -> None:
    guest = _compose({"fileItems": []})
    assert guest.rucod.header.creator == "Guest"
    assert guest.rucod.header.name == f"UserQuery-{SESSION_ID}"
    assert guest.rucod.header.session_id == SESSION_ID

    user = _compose({"fileItems": []}, SessionProfile(id=7, email="ann@example.org"))
    assert user.rucod.header.creator == "ann@example.org"


def test_emotion_entry() -> None:
    composed = _compose({"fileItems": [], "emotion": {"name": "happy", "intensity": 0.5}})
    assert composed.rucod.emotion is not None
    assert composed.rucod.emotion.name == "happy"
    assert composed.rucod.emotion.intensity == 0.5


def test_datetime_without_location_has_no_lookup() -> None:
    with patch("musebag.services.weather.fetch_weather", new=AsyncMock()) as mock_fetch:
        composed = _compose({"fileItems": [], "datetime": DATETIME})
    mock_fetch.assert_not_called()
    assert composed.rwml is not None
    assert composed.rwml.datetime == DATETIME
    assert composed.rwml.location is None
    assert composed.rwml.weather is None


def test_datetime_and_location_with_weather() -> None:
    data = WeatherData(condition="Overcast", temperature=18.2, wind=11.5, humidity=71)
    with patch("musebag.services.weather.fetch_weather", new=AsyncMock(return_value=data)) as mock_fetch:
        composed = _compose({"fileItems": [], "datetime": DATETIME, "location": "50.97 11.03 230 5"})
    mock_fetch.assert_awaited_once_with(DATETIME, [50.97, 11.03, 0.0, 0.0])
    assert composed.rwml.location.position == "50.97 11.03 230 5"
    weather = composed.rwml.weather
    assert (weather.condition, weather.temperature, weather.wind, weather.humidity) == ("Overcast", 18.2, 11.5, 71)


def test_weather_failure_keeps_document() -> None:
    failing = AsyncMock(side_effect=WeatherUnavailableError("no data"))
    with patch("musebag.services.weather.fetch_weather", new=failing):
        composed = _compose({"fileItems": [], "datetime": DATETIME, "location": "50.97 11.03"})
    assert composed.rwml is not None
    assert composed.rwml.location is not None
    assert composed.rwml.weather is None
    assert "<Weather>" not in composed.rwml.render()


def test_unparseable_location_keeps_location_fragment() -> None:
    with patch("musebag.services.weather.fetch_weather", new=AsyncMock()) as mock_fetch:
        composed = _compose({"fileItems": [], "datetime": DATETIME, "location": "somewhere"})
    mock_fetch.assert_not_called()
    assert composed.rwml.location.position == "somewhere"
    assert composed.rwml.weather is None


def test_unexpected_weather_payload_keeps_document(monkeypatch: pytest.MonkeyPatch) -> None:
    real_client = httpx.AsyncClient

    def list_answering_client(**kwargs) -> httpx.AsyncClient:
        return real_client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", list_answering_client)
    composed = _compose({"fileItems": [], "datetime": DATETIME, "location": "50.97 11.03"})
    assert composed.rwml is not None
    assert composed.rwml.location.position == "50.97 11.03"
    assert composed.rwml.weather is None
