# tests/adapters/test_midos_adapter.py
import json

import httpx
import pytest
import respx

from race_relay.adapters.midos_adapter import MidosAdapter
from race_relay.core.exceptions import EventNotFoundError, FetchAuthError, TransientFetchError

from tests.conftest import graphql_response, make_race

GRAPHQL_URL = MidosAdapter.BASE_URL


@pytest.fixture
async def midos_adapter():
    adapter = MidosAdapter(api_key="secret-key")
    async with httpx.AsyncClient() as client:
        adapter.http_client = client
        yield adapter


@pytest.mark.asyncio
@respx.mock
async def test_fetch_event_races_parses_races(midos_adapter):
    route = respx.post(GRAPHQL_URL).mock(
        return_value=httpx.Response(
            200,
            json=graphql_response(
                [
                    make_race("r1", "2024-06-01T23:30:00Z", consent=False),
                    make_race("r2", "2024-06-02T01:00:00Z"),
                ]
            ),
        )
    )

    races = await midos_adapter.fetch_event_races("s", "8")

    assert route.called
    request = route.calls.last.request
    assert request.headers["X-API-Key"] == "secret-key"
    body = json.loads(request.content)
    assert body["variables"] == {"series": "s", "event": "8"}
    assert "restreamConsent" in body["query"]

    assert [race.id for race in races] == ["r1", "r2"]
    assert races[0].restream_consent is False
    assert races[1].restream_consent is None
    assert races[0].teams[0].first_member_name == "Alice"
    assert races[0].start.tzinfo is not None


@pytest.mark.parametrize(
    "payload",
    [
        {"data": {"series": None}},
        {"data": {"series": {"event": None}}},
        {"data": None, "errors": [{"message": "unknown series"}]},
        [],
    ],
)
@pytest.mark.asyncio
@respx.mock
async def test_missing_or_malformed_data_is_not_found(midos_adapter, payload):
    respx.post(GRAPHQL_URL).mock(return_value=httpx.Response(200, json=payload))

    with pytest.raises(EventNotFoundError):
        await midos_adapter.fetch_event_races("s", "8")


@pytest.mark.asyncio
@respx.mock
async def test_unscheduled_race_has_no_start(midos_adapter):
    respx.post(GRAPHQL_URL).mock(
        return_value=httpx.Response(200, json={"data": {"series": {"event": {"races": [{"id": "r1", "start": None}]}}}})
    )

    races = await midos_adapter.fetch_event_races("s", "8")

    assert [race.id for race in races] == ["r1"]
    assert races[0].start is None


@pytest.mark.asyncio
@respx.mock
async def test_malformed_race_is_dropped_and_others_kept(midos_adapter):
    respx.post(GRAPHQL_URL).mock(
        return_value=httpx.Response(
            200,
            json=graphql_response(
                [
                    {"id": "bad", "start": "not a date"},
                    {"start": "2024-06-01T23:30:00Z"},
                    make_race("good", "2024-06-01T23:30:00Z"),
                ]
            ),
        )
    )

    races = await midos_adapter.fetch_event_races("s", "8")

    assert [race.id for race in races] == ["good"]


@pytest.mark.asyncio
@respx.mock
async def test_non_json_response_is_not_found(midos_adapter):
    respx.post(GRAPHQL_URL).mock(return_value=httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(EventNotFoundError):
        await midos_adapter.fetch_event_races("s", "8")


@pytest.mark.asyncio
@respx.mock
async def test_server_error_is_transient(midos_adapter):
    respx.post(GRAPHQL_URL).mock(return_value=httpx.Response(502))

    with pytest.raises(TransientFetchError) as exc_info:
        await midos_adapter.fetch_event_races("s", "8")

    assert exc_info.value.status_code == 502
    assert exc_info.value.event_key == "s/8"


@pytest.mark.asyncio
@respx.mock
async def test_unauthorized_is_auth_error(midos_adapter):
    respx.post(GRAPHQL_URL).mock(return_value=httpx.Response(401))

    with pytest.raises(FetchAuthError):
        await midos_adapter.fetch_event_races("s", "8")


@pytest.mark.asyncio
@respx.mock
async def test_connection_error_is_transient(midos_adapter):
    respx.post(GRAPHQL_URL).mock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(TransientFetchError):
        await midos_adapter.fetch_event_races("s", "8")
