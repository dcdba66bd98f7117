"""
Tests for the APC and MQF clients against an httpx.MockTransport.
"""

import asyncio
import json
from urllib.parse import parse_qs

import httpx
import pytest

from musebag.core.config import APC_URL, MQF_URL
from musebag.core.errors import ExternalServiceError
from musebag.services import profile_service, query_formulator

_RealAsyncClient = httpx.AsyncClient


@pytest.fixture
def mock_http(monkeypatch: pytest.MonkeyPatch):
    """Route every AsyncClient to a handler; returns the list of seen requests."""
    state: dict = {"responses": [], "requests": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return state["responses"].pop(0)

    def factory(**kwargs):
        return _RealAsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", factory)
    return state


def _form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


def test_submit_query_posts_documents(mock_http) -> None:
    mock_http["responses"].append(httpx.Response(200, json={"result": {"hits": 3}}))
    result = asyncio.run(query_formulator.submit_query("<RUCoD/>", None, "sid-0", '{"maxResults": 10}'))
    assert result == {"hits": 3}
    request = mock_http["requests"][0]
    assert str(request.url) == MQF_URL
    assert _form(request) == {
        "f": "submitQuery",
        "rucod": "<RUCoD/>",
        "rwml": "false",
        "session": "sid-0",
        "options": '{"maxResults": 10}',
    }


def test_submit_query_error_answer(mock_http) -> None:
    mock_http["responses"].append(httpx.Response(200, json={"error": "invalid rucod"}))
    with pytest.raises(ExternalServiceError, match="invalid rucod"):
        asyncio.run(query_formulator.submit_query("<RUCoD/>", "<RWML/>", "sid-0", "{}"))


def test_validate_user(mock_http) -> None:
    mock_http["responses"].append(httpx.Response(200, json={"user": {"ID": 42}}))
    assert asyncio.run(profile_service.validate_user("ann@example.org", "secret")) == {"ID": 42}
    request = mock_http["requests"][0]
    assert request.method == "GET"
    assert str(request.url).startswith(APC_URL)
    assert request.url.params["f"] == "validateUser"
    assert request.url.params["email"] == "ann@example.org"


def test_validate_user_rejected(mock_http) -> None:
    mock_http["responses"].append(httpx.Response(200, json={"error": "Unknown user"}))
    with pytest.raises(ExternalServiceError, match="Unknown user"):
        asyncio.run(profile_service.validate_user("ann@example.org", "nope"))


def test_store_profile_data_requires_success(mock_http) -> None:
    mock_http["responses"].append(httpx.Response(200, json={"error": "denied"}))
    with pytest.raises(ExternalServiceError, match="denied"):
        asyncio.run(profile_service.store_profile_data(42, "x"))
    assert mock_http["requests"][0].url.params["f"] == "profileData"
    assert _form(mock_http["requests"][0]) == {"userid": "42", "data": "x"}


def test_update_search_history_encodes_json(mock_http) -> None:
    mock_http["responses"].append(httpx.Response(200, json={"success": True}))
    asyncio.run(profile_service.update_search_history(42, {"id": "sid-0"}, [{"id": "r1"}]))
    form = _form(mock_http["requests"][0])
    assert form["f"] == "updateSearchHistory"
    assert json.loads(form["query"]) == {"id": "sid-0"}
    assert json.loads(form["items"]) == [{"id": "r1"}]


def test_unreachable_service(mock_http, monkeypatch: pytest.MonkeyPatch) -> None:
    def refusing(**kwargs):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        return _RealAsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", refusing)
    with pytest.raises(ExternalServiceError, match="unreachable"):
        asyncio.run(query_formulator.submit_query("<RUCoD/>", None, "sid-0", "{}"))
