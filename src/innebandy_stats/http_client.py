"""Innebandy API client using httpx.

Performs authenticated GET requests against the federation's statistics
API and decodes the JSON bodies into the pydantic models in
``innebandy_stats.models``.

Authentication is a single bearer token fetched lazily from the
``startkit`` endpoint and reused for the lifetime of the client; there is
no refresh. Transport failures (connect errors, timeouts) are retried with
tenacity. HTTP status failures are never retried: the match list and the
competition list fail hard, match details map 404 to ``None``, and the
best-effort lookups (lineup, player profile) log a warning and return
``None``.
"""

import asyncio
import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from innebandy_stats.config import StatsConfig
from innebandy_stats.exceptions import (
    AuthError,
    EnrichmentMiss,
    NotFound,
    RemoteApiError,
)
from innebandy_stats.models import Competition, Lineup, Match, Player

logger = logging.getLogger(__name__)

_MATCH_LIST = TypeAdapter(list[Match])
_COMPETITION_LIST = TypeAdapter(list[Competition])


class InnebandyClient:
    """Async client for the innebandy statistics API.

    Owns an ``httpx.AsyncClient`` unless one is passed in, in which case the
    caller keeps ownership and ``close()`` leaves it open.

    Usage:
        async with InnebandyClient() as client:
            matches = await client.get_matches(40123)
            lineup = await client.get_lineup(matches[0].match_id)
    """

    def __init__(
        self,
        config: StatsConfig | None = None,
        http: httpx.AsyncClient | None = None,
    ):
        if config is None:
            config = StatsConfig()

        self._config = config
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=config.http_timeout)
        self._token: str | None = None
        self._token_lock = asyncio.Lock()

        # Request counters
        self._request_count = 0
        self._failure_count = 0

        # Transport retries, configured per instance
        self._send = self._build_retry()(self._send_once)

    @property
    def has_token(self) -> bool:
        return self._token is not None

    async def ensure_token(self) -> None:
        """Fetch the bearer token from the startkit endpoint if not held yet.

        Idempotent: once a token is held this is a no-op. Concurrent first
        callers wait on a lock so only one bootstrap request is sent.

        Raises:
            AuthError: If the request fails or the body has no usable
                ``accessToken``.
        """
        if self._token:
            return

        async with self._token_lock:
            if self._token:
                return

            url = self._config.token_url
            logger.info("Fetching access token from startkit API...")
            try:
                response = await self._send(url)
            except httpx.TransportError as exc:
                raise AuthError(f"Token request to {url} failed: {exc}", url=url) from exc

            if not response.is_success:
                raise AuthError(
                    f"Token request to {url} returned HTTP {response.status_code}",
                    url=url,
                    status_code=response.status_code,
                )

            try:
                body = response.json()
            except ValueError as exc:
                raise AuthError(f"Token response from {url} is not JSON", url=url) from exc

            if not isinstance(body, dict) or "accessToken" not in body:
                raise AuthError("Could not find accessToken in startkit response.", url=url)
            token = body["accessToken"]
            if not isinstance(token, str) or not token:
                raise AuthError("accessToken was null in startkit response.", url=url)

            self._token = token
            logger.info("Access token acquired.")

    async def get_matches(self, competition_id: int) -> list[Match]:
        """All matches (played and scheduled) of a competition.

        Raises:
            RemoteApiError: On a non-2xx response or an unreadable body.
        """
        url = f"{self._config.base_url}/competitions/{competition_id}/matches"
        data = await self._get_json(url)
        if data is None:
            return []
        return _parse(_MATCH_LIST, data, url)

    async def get_match_details(self, match_id: int) -> Match | None:
        """A single match including its events, or ``None`` if not found.

        Raises:
            RemoteApiError: On any non-2xx response other than 404.
        """
        url = f"{self._config.base_url}/matches/{match_id}"
        try:
            data = await self._get_json(url)
        except NotFound:
            logger.warning("Match %d not found", match_id)
            return None
        if data is None:
            return None
        return _parse(Match, data, url)

    async def get_lineup(self, match_id: int) -> Lineup | None:
        """Both rosters for a match, or ``None`` if the lookup fails."""
        url = f"{self._config.base_url}/matches/{match_id}/lineups"
        try:
            return await self._get_enrichment(Lineup, url)
        except EnrichmentMiss as exc:
            logger.warning("Could not fetch lineup for match %d: %s", match_id, exc)
            return None

    async def get_player(self, player_id: int) -> Player | None:
        """A player's profile, or ``None`` if the lookup fails."""
        url = f"{self._config.base_url}/players/{player_id}"
        try:
            return await self._get_enrichment(Player, url)
        except EnrichmentMiss as exc:
            logger.warning("Could not fetch player %d: %s", player_id, exc)
            return None

    async def get_competitions(
        self, season_id: int, federation_id: int
    ) -> list[Competition]:
        """Competitions for a season and federation, in API order.

        Raises:
            RemoteApiError: On a non-2xx response or an unreadable body.
        """
        url = (
            f"{self._config.base_url}/seasons/{season_id}"
            f"/federations/{federation_id}/competitions"
        )
        data = await self._get_json(url)
        if data is None:
            return []
        return _parse(_COMPETITION_LIST, data, url)

    async def _get_enrichment(self, model: type, url: str) -> Any:
        """GET and decode a best-effort record, raising EnrichmentMiss on failure."""
        try:
            data = await self._get_json(url)
            if data is None:
                raise EnrichmentMiss(f"Empty response from {url}", url=url)
            return _parse(model, data, url)
        except EnrichmentMiss:
            raise
        except RemoteApiError as exc:
            raise EnrichmentMiss(
                str(exc), url=exc.url, status_code=exc.status_code
            ) from exc

    async def _get_json(self, url: str) -> Any:
        """Authorized GET returning the decoded JSON body (``None`` if empty).

        Raises:
            AuthError: If the token cannot be obtained.
            NotFound: On HTTP 404.
            RemoteApiError: On any other non-2xx status, transport failure
                after retries, or a body that is not JSON.
        """
        await self.ensure_token()
        headers = {"Authorization": f"Bearer {self._token}"}

        try:
            response = await self._send(url, headers=headers)
        except httpx.TransportError as exc:
            self._failure_count += 1
            raise RemoteApiError(f"Request to {url} failed: {exc}", url=url) from exc

        if response.status_code == 404:
            self._failure_count += 1
            raise NotFound(f"Not found: {url}", url=url, status_code=404)
        if not response.is_success:
            self._failure_count += 1
            raise RemoteApiError(
                f"HTTP {response.status_code} from {url}",
                url=url,
                status_code=response.status_code,
            )

        if not response.content.strip():
            return None
        try:
            return response.json()
        except ValueError as exc:
            self._failure_count += 1
            raise RemoteApiError(f"Invalid JSON from {url}", url=url) from exc

    async def _send_once(
        self, url: str, headers: dict[str, str] | None = None
    ) -> httpx.Response:
        """Single GET; status codes are not checked here.

        Called through ``self._send``, which adds transport-level retries.
        """
        self._request_count += 1
        response = await self._http.get(url, headers=headers)
        logger.debug("GET %s -> %d", url, response.status_code)
        return response

    async def close(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "InnebandyClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    def stats(self) -> dict:
        """Return current client statistics."""
        return {
            "requests": self._request_count,
            "failures": self._failure_count,
            "has_token": self.has_token,
        }

    def _build_retry(self):
        """tenacity decorator for transport errors, using config values."""
        return retry(
            retry=retry_if_exception_type(httpx.TransportError),
            wait=(
                wait_exponential(
                    multiplier=self._config.retry_initial_wait,
                    max=self._config.retry_max_wait,
                )
                + wait_random(0, self._config.retry_jitter)
            ),
            stop=stop_after_attempt(self._config.max_retries),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )


def _parse(model: Any, data: Any, url: str) -> Any:
    """Validate *data* against a model class or TypeAdapter."""
    try:
        if isinstance(model, TypeAdapter):
            return model.validate_python(data)
        return model.model_validate(data)
    except ValidationError as exc:
        raise RemoteApiError(f"Unexpected payload from {url}: {exc}", url=url) from exc
