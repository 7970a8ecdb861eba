"""Unit tests for InnebandyClient against an httpx.MockTransport.

No real HTTP requests are made: every test routes requests through a
handler function that fakes the startkit and v2 API endpoints.
"""

import asyncio
import logging

import httpx
import pytest
from tenacity import RetryCallState

from innebandy_stats.config import StatsConfig
from innebandy_stats.exceptions import AuthError, EnrichmentMiss, NotFound, RemoteApiError
from innebandy_stats.http_client import InnebandyClient

TOKEN_PATH = "/StatsAppApi/api/startkit"
API = "/v2/api"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_config(**overrides) -> StatsConfig:
    """Create a config with no retry waits for testing."""
    defaults = {
        "max_retries": 1,
        "retry_initial_wait": 0.0,
        "retry_max_wait": 0.0,
        "retry_jitter": 0.0,
    }
    defaults.update(overrides)
    return StatsConfig(**defaults)


class FakeApi:
    """Route table for MockTransport; records every request it sees."""

    def __init__(self, routes: dict | None = None, token_response=None):
        self.routes = routes or {}
        self.token_response = token_response or httpx.Response(
            200, json={"accessToken": "tok-123"}
        )
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == TOKEN_PATH:
            return self.token_response
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404)
        if callable(route):
            return route(request)
        return route

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def _make_client(api: FakeApi, **overrides) -> InnebandyClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(api))
    return InnebandyClient(_make_config(**overrides), http=http)


# ---------------------------------------------------------------------------
# Token bootstrap
# ---------------------------------------------------------------------------

class TestEnsureToken:
    """Tests for InnebandyClient.ensure_token()."""

    @pytest.mark.asyncio
    async def test_token_fetched_once_and_sent_as_bearer(self):
        api = FakeApi({
            f"{API}/competitions/1/matches": httpx.Response(200, json=[]),
        })
        client = _make_client(api)

        await client.get_matches(1)
        await client.get_matches(1)

        assert api.paths().count(TOKEN_PATH) == 1
        assert "authorization" not in api.requests[0].headers
        for request in api.requests[1:]:
            assert request.headers["authorization"] == "Bearer tok-123"

    @pytest.mark.asyncio
    async def test_idempotent(self):
        api = FakeApi()
        client = _make_client(api)
        await client.ensure_token()
        await client.ensure_token()
        assert client.has_token
        assert api.paths() == [TOKEN_PATH]

    @pytest.mark.asyncio
    async def test_concurrent_first_callers_share_one_request(self):
        api = FakeApi()
        client = _make_client(api)
        await asyncio.gather(*[client.ensure_token() for _ in range(5)])
        assert api.paths() == [TOKEN_PATH]

    @pytest.mark.asyncio
    async def test_missing_field_raises_auth_error(self):
        api = FakeApi(token_response=httpx.Response(200, json={"token": "x"}))
        client = _make_client(api)
        with pytest.raises(AuthError, match="accessToken"):
            await client.ensure_token()
        assert not client.has_token

    @pytest.mark.asyncio
    async def test_null_token_raises_auth_error(self):
        api = FakeApi(token_response=httpx.Response(200, json={"accessToken": None}))
        client = _make_client(api)
        with pytest.raises(AuthError):
            await client.ensure_token()

    @pytest.mark.asyncio
    async def test_http_failure_raises_auth_error(self):
        api = FakeApi(token_response=httpx.Response(503))
        client = _make_client(api)
        with pytest.raises(AuthError) as exc_info:
            await client.ensure_token()
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_non_json_raises_auth_error(self):
        api = FakeApi(token_response=httpx.Response(200, text="<html>"))
        client = _make_client(api)
        with pytest.raises(AuthError):
            await client.ensure_token()

    @pytest.mark.asyncio
    async def test_auth_error_aborts_data_call(self):
        api = FakeApi(token_response=httpx.Response(500))
        client = _make_client(api)
        with pytest.raises(AuthError):
            await client.get_matches(1)
        assert api.paths() == [TOKEN_PATH]


# ---------------------------------------------------------------------------
# Required endpoints
# ---------------------------------------------------------------------------

class TestMatches:
    """Tests for get_matches() and get_match_details()."""

    @pytest.mark.asyncio
    async def test_get_matches_decodes_list(self):
        api = FakeApi({
            f"{API}/competitions/40123/matches": httpx.Response(200, json=[
                {"matchID": 1, "matchStatus": 4, "competitionName": "Div 1"},
                {"matchID": 2, "matchStatus": 1},
            ]),
        })
        client = _make_client(api)
        matches = await client.get_matches(40123)
        assert [m.match_id for m in matches] == [1, 2]
        assert matches[0].is_completed

    @pytest.mark.asyncio
    async def test_get_matches_empty_body(self):
        api = FakeApi({f"{API}/competitions/1/matches": httpx.Response(200, content=b"")})
        client = _make_client(api)
        assert await client.get_matches(1) == []

    @pytest.mark.asyncio
    async def test_get_matches_failure_is_fatal(self):
        api = FakeApi({f"{API}/competitions/1/matches": httpx.Response(500)})
        client = _make_client(api)
        with pytest.raises(RemoteApiError) as exc_info:
            await client.get_matches(1)
        assert exc_info.value.status_code == 500
        assert exc_info.value.url.endswith("/competitions/1/matches")

    @pytest.mark.asyncio
    async def test_get_matches_invalid_json(self):
        api = FakeApi({f"{API}/competitions/1/matches": httpx.Response(200, text="{not json")})
        client = _make_client(api)
        with pytest.raises(RemoteApiError, match="Invalid JSON"):
            await client.get_matches(1)

    @pytest.mark.asyncio
    async def test_get_matches_unexpected_shape(self):
        api = FakeApi({f"{API}/competitions/1/matches": httpx.Response(200, json={"oops": 1})})
        client = _make_client(api)
        with pytest.raises(RemoteApiError, match="Unexpected payload"):
            await client.get_matches(1)

    @pytest.mark.asyncio
    async def test_get_match_details_with_events(self):
        api = FakeApi({
            f"{API}/matches/501": httpx.Response(200, json={
                "matchID": 501,
                "events": [{"matchEventTypeID": 1, "playerID": 101}],
            }),
        })
        client = _make_client(api)
        match = await client.get_match_details(501)
        assert match.match_id == 501
        assert match.events[0].player_id == 101

    @pytest.mark.asyncio
    async def test_get_match_details_not_found_is_none(self):
        client = _make_client(FakeApi())
        assert await client.get_match_details(404404) is None

    @pytest.mark.asyncio
    async def test_get_match_details_server_error_raises(self):
        api = FakeApi({f"{API}/matches/501": httpx.Response(502)})
        client = _make_client(api)
        with pytest.raises(RemoteApiError) as exc_info:
            await client.get_match_details(501)
        assert not isinstance(exc_info.value, NotFound)


class TestCompetitions:
    """Tests for get_competitions()."""

    @pytest.mark.asyncio
    async def test_decodes_in_api_order(self):
        api = FakeApi({
            f"{API}/seasons/43/federations/8/competitions": httpx.Response(200, json=[
                {"competitionID": 2, "name": "Damer"},
                {"competitionID": 1, "name": "Herrar"},
            ]),
        })
        client = _make_client(api)
        comps = await client.get_competitions(43, 8)
        assert [c.name for c in comps] == ["Damer", "Herrar"]

    @pytest.mark.asyncio
    async def test_failure_is_fatal(self):
        api = FakeApi({f"{API}/seasons/43/federations/8/competitions": httpx.Response(500)})
        client = _make_client(api)
        with pytest.raises(RemoteApiError):
            await client.get_competitions(43, 8)


# ---------------------------------------------------------------------------
# Best-effort endpoints
# ---------------------------------------------------------------------------

class TestEnrichment:
    """Tests for get_lineup() and get_player()."""

    @pytest.mark.asyncio
    async def test_get_lineup(self):
        api = FakeApi({
            f"{API}/matches/501/lineups": httpx.Response(200, json={
                "matchID": 501,
                "homeTeam": "IBK Dalen",
                "homeTeamPlayers": [{"playerID": 101, "name": "Anna Berg"}],
                "awayTeamPlayers": [],
            }),
        })
        client = _make_client(api)
        lineup = await client.get_lineup(501)
        assert lineup.home_team_players[0].player_id == 101

    @pytest.mark.asyncio
    async def test_lineup_failure_returns_none_and_warns(self, caplog):
        api = FakeApi({f"{API}/matches/501/lineups": httpx.Response(500)})
        client = _make_client(api)
        with caplog.at_level(logging.WARNING, logger="innebandy_stats.http_client"):
            assert await client.get_lineup(501) is None
        assert "lineup for match 501" in caplog.text

    @pytest.mark.asyncio
    async def test_lineup_empty_body_returns_none(self):
        api = FakeApi({f"{API}/matches/501/lineups": httpx.Response(200, content=b"")})
        client = _make_client(api)
        assert await client.get_lineup(501) is None

    @pytest.mark.asyncio
    async def test_get_player(self):
        api = FakeApi({
            f"{API}/players/101": httpx.Response(200, json={
                "playerID": 101, "name": "Anna Berg", "birthYear": 2005,
            }),
        })
        client = _make_client(api)
        player = await client.get_player(101)
        assert player.birth_year == 2005

    @pytest.mark.asyncio
    async def test_player_not_found_returns_none(self):
        client = _make_client(FakeApi())
        assert await client.get_player(999) is None

    @pytest.mark.asyncio
    async def test_enrichment_miss_raised_internally(self):
        api = FakeApi({f"{API}/players/101": httpx.Response(403)})
        client = _make_client(api)
        from innebandy_stats.models import Player

        with pytest.raises(EnrichmentMiss) as exc_info:
            await client._get_enrichment(Player, f"https://api.innebandy.se{API}/players/101")
        assert exc_info.value.status_code == 403


# ---------------------------------------------------------------------------
# Transport retries
# ---------------------------------------------------------------------------

class TestTransportRetries:
    """Transport errors are retried; HTTP status errors are not."""

    @pytest.mark.asyncio
    async def test_connect_error_retried_then_succeeds(self):
        attempts = {"n": 0}

        def flaky(request: httpx.Request) -> httpx.Response:
            attempts["n"] += 1
            if attempts["n"] < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json=[])

        api = FakeApi({f"{API}/competitions/1/matches": flaky})
        client = _make_client(api, max_retries=3)
        assert await client.get_matches(1) == []
        assert attempts["n"] == 3

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_remote_api_error(self):
        def down(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        api = FakeApi({f"{API}/competitions/1/matches": down})
        client = _make_client(api, max_retries=2)
        with pytest.raises(RemoteApiError, match="timed out"):
            await client.get_matches(1)

    @pytest.mark.asyncio
    async def test_exhausted_retries_on_lineup_return_none(self):
        def down(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        api = FakeApi({f"{API}/matches/7/lineups": down})
        client = _make_client(api)
        assert await client.get_lineup(7) is None

    @pytest.mark.asyncio
    async def test_status_errors_not_retried(self):
        api = FakeApi({f"{API}/competitions/1/matches": httpx.Response(500)})
        client = _make_client(api, max_retries=3)
        with pytest.raises(RemoteApiError):
            await client.get_matches(1)
        assert api.paths().count(f"{API}/competitions/1/matches") == 1

    @pytest.mark.asyncio
    async def test_retry_count_is_per_client(self):
        attempts = {"a": 0, "b": 0}

        def down(key):
            def handler(request: httpx.Request) -> httpx.Response:
                attempts[key] += 1
                raise httpx.ConnectError("connection refused", request=request)
            return handler

        first = _make_client(FakeApi({f"{API}/competitions/1/matches": down("a")}), max_retries=4)
        second = _make_client(FakeApi({f"{API}/competitions/1/matches": down("b")}), max_retries=1)

        with pytest.raises(RemoteApiError):
            await first.get_matches(1)
        with pytest.raises(RemoteApiError):
            await second.get_matches(1)
        assert attempts == {"a": 4, "b": 1}

    def test_backoff_uses_config_waits(self):
        client = _make_client(
            FakeApi(), retry_initial_wait=1.0, retry_max_wait=3.0, retry_jitter=0.25,
        )
        policy = client._send.retry
        state = RetryCallState(retry_object=policy, fn=None, args=(), kwargs={})

        state.attempt_number = 1
        assert 1.0 <= policy.wait(state) <= 1.25
        state.attempt_number = 2
        assert 2.0 <= policy.wait(state) <= 2.25
        state.attempt_number = 5
        assert 3.0 <= policy.wait(state) <= 3.25


# ---------------------------------------------------------------------------
# Lifecycle and counters
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_stats_count_requests_and_failures():
    api = FakeApi({f"{API}/competitions/1/matches": httpx.Response(500)})
    client = _make_client(api)
    with pytest.raises(RemoteApiError):
        await client.get_matches(1)
    stats = client.stats
    assert stats["requests"] == 2  # token + matches
    assert stats["failures"] == 1
    assert stats["has_token"] is True


@pytest.mark.asyncio
async def test_injected_http_client_left_open():
    http = httpx.AsyncClient(transport=httpx.MockTransport(FakeApi()))
    async with InnebandyClient(_make_config(), http=http):
        pass
    assert not http.is_closed
    await http.aclose()


@pytest.mark.asyncio
async def test_owned_http_client_closed():
    client = InnebandyClient(_make_config())
    await client.close()
    assert client._http.is_closed
