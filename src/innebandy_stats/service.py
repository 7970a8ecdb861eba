"""Standings aggregation service.

Coordinates the remote client, the bounded batch fetcher, the fold
operations and the TTL cache. This is what a front-end calls:

* ``compute_standings(competition_id)`` -- per-player table for a
  competition, cached for ``standings_ttl`` seconds.
* ``get_competition_name(competition_id)`` -- cached display name.
* ``get_competitions(season_id, federation_id)`` -- cached, name-sorted
  competition listing.

Fatal errors (``AuthError``, ``RemoteApiError`` from the match list or the
competition list) propagate to the caller. Missing details, lineups and
profiles are dropped with a warning and only make the table less complete.
"""

import asyncio
import logging

from innebandy_stats.aggregation import StandingsTable, build_table
from innebandy_stats.batching import run_in_batches
from innebandy_stats.cache import TTLCache
from innebandy_stats.config import StatsConfig
from innebandy_stats.exceptions import AuthError
from innebandy_stats.http_client import InnebandyClient
from innebandy_stats.models import Competition, Lineup, Match, PlayerStanding

logger = logging.getLogger(__name__)


def standings_key(competition_id: int) -> str:
    return f"standings:{competition_id}"


def competition_name_key(competition_id: int) -> str:
    return f"competition-name:{competition_id}"


def competitions_key(season_id: int, federation_id: int) -> str:
    return f"competitions:{season_id}:{federation_id}"


class StandingsService:
    """Builds and caches competition standings from the innebandy API.

    The client and the cache are injected so several services (or tests)
    can share or replace them.

    Usage::

        async with InnebandyClient(config) as client:
            service = StandingsService(client, TTLCache(), config)
            standings = await service.compute_standings(40123)
    """

    def __init__(
        self,
        client: InnebandyClient,
        cache: TTLCache | None = None,
        config: StatsConfig | None = None,
    ):
        if config is None:
            config = StatsConfig()
        if cache is None:
            cache = TTLCache()

        self._client = client
        self._cache = cache
        self._config = config
        # One lock per cache key so concurrent callers compute once.
        # Dropped when its last user leaves.
        self._key_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self.last_run_stats: dict = {}

    def _acquire_lock_ref(self, key: str) -> asyncio.Lock:
        lock = self._key_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._key_locks[key] = lock
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        return lock

    def _release_lock_ref(self, key: str) -> None:
        users = self._lock_users[key] - 1
        if users:
            self._lock_users[key] = users
        else:
            del self._lock_users[key]
            del self._key_locks[key]

    async def compute_standings(self, competition_id: int) -> list[PlayerStanding]:
        """Per-player statistics for all completed matches of a competition.

        Returns the cached table when one is live. Otherwise fetches the
        match list, details and lineups (batched), folds them, backfills
        identities from player profiles (batched) and caches the result.

        Returns:
            Unsorted standings in order of first appearance. Empty if the
            competition has no matches.

        Raises:
            AuthError: If no API token can be obtained.
            RemoteApiError: If the match list cannot be fetched.
        """
        key = standings_key(competition_id)
        cached = self._cache.get(key)
        if cached is not None:
            logger.info("Standings for competition %d served from cache", competition_id)
            return cached

        lock = self._acquire_lock_ref(key)
        try:
            async with lock:
                cached = self._cache.get(key)
                if cached is not None:
                    logger.info("Standings for competition %d served from cache", competition_id)
                    return cached
                return await self._build_standings(competition_id, key)
        finally:
            self._release_lock_ref(key)

    async def _build_standings(self, competition_id: int, key: str) -> list[PlayerStanding]:
        stats = {
            "competition_id": competition_id,
            "matches": 0,
            "completed": 0,
            "details": 0,
            "details_dropped": 0,
            "lineups": 0,
            "lineups_dropped": 0,
            "players": 0,
            "profiles": 0,
            "profiles_missed": 0,
        }
        self.last_run_stats = stats

        # 1. Match list
        logger.info("Fetching matches for competition %d...", competition_id)
        matches = await self._client.get_matches(competition_id)
        stats["matches"] = len(matches)
        if not matches:
            logger.info("Competition %d has no matches", competition_id)
            return []

        # 2. Details + lineups for completed matches
        completed = [m for m in matches if m.is_completed]
        stats["completed"] = len(completed)
        logger.info(
            "Fetching details and lineups for %d completed matches...", len(completed)
        )
        details, lineups = await self._fetch_match_data(completed, stats)

        # 3-4. Fold lineups, then events
        table = build_table(lineups, details)

        # 5. Backfill from player profiles
        await self._backfill_profiles(table, stats)

        standings = table.standings()
        stats["players"] = len(standings)
        self._cache.set(key, standings, self._config.standings_ttl)
        logger.info(
            "Standings cached for competition %d (%d players, %d/%d details, "
            "%d/%d lineups, %d profile misses)",
            competition_id,
            len(standings),
            stats["details"],
            stats["completed"],
            stats["lineups"],
            stats["completed"],
            stats["profiles_missed"],
        )
        return standings

    async def _fetch_match_data(
        self, completed: list[Match], stats: dict
    ) -> tuple[list[Match], list[Lineup]]:
        """Fetch details and lineup for each match, batch by batch."""

        async def _fetch_pair(match: Match) -> list:
            return await asyncio.gather(
                self._client.get_match_details(match.match_id),
                self._client.get_lineup(match.match_id),
                return_exceptions=True,
            )

        pairs = await run_in_batches(
            completed, _fetch_pair, self._config.match_batch_size
        )

        details: list[Match] = []
        lineups: list[Lineup] = []
        for match, pair in zip(completed, pairs):
            if isinstance(pair, Exception):
                _raise_if_fatal(pair)
                logger.warning("Dropping match %d: %s", match.match_id, pair)
                stats["details_dropped"] += 1
                stats["lineups_dropped"] += 1
                continue

            detail, lineup = pair
            if isinstance(detail, BaseException):
                _raise_if_fatal(detail)
                logger.warning(
                    "Dropping details for match %d: %s", match.match_id, detail
                )
                stats["details_dropped"] += 1
            elif detail is None:
                stats["details_dropped"] += 1
            else:
                details.append(detail)

            if isinstance(lineup, BaseException):
                _raise_if_fatal(lineup)
                logger.warning(
                    "Dropping lineup for match %d: %s", match.match_id, lineup
                )
                stats["lineups_dropped"] += 1
            elif lineup is None:
                stats["lineups_dropped"] += 1
            else:
                lineups.append(lineup)

        stats["details"] = len(details)
        stats["lineups"] = len(lineups)
        return details, lineups

    async def _backfill_profiles(self, table: StandingsTable, stats: dict) -> None:
        """Fetch every known player's profile and apply it, batch by batch."""
        player_ids = table.player_ids()
        logger.info("Fetching player details for %d players...", len(player_ids))

        profiles = await run_in_batches(
            player_ids, self._client.get_player, self._config.profile_batch_size
        )
        for player_id, profile in zip(player_ids, profiles):
            if isinstance(profile, Exception):
                _raise_if_fatal(profile)
                logger.warning("Dropping profile for player %d: %s", player_id, profile)
                stats["profiles_missed"] += 1
            elif profile is None:
                stats["profiles_missed"] += 1
            elif table.apply_profile(profile):
                stats["profiles"] += 1

    async def get_competition_name(self, competition_id: int) -> str:
        """Display name of a competition, taken from its first match.

        Returns ``""`` when the competition has no matches.
        """
        key = competition_name_key(competition_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        matches = await self._client.get_matches(competition_id)
        name = matches[0].competition_name.strip() if matches else ""
        self._cache.set(key, name, self._config.competition_name_ttl)
        return name

    async def get_competitions(
        self,
        season_id: int | None = None,
        federation_id: int | None = None,
    ) -> list[Competition]:
        """Competitions for a season and federation, sorted by name.

        Defaults to the configured season (43) and federation (8).
        """
        if season_id is None:
            season_id = self._config.default_season_id
        if federation_id is None:
            federation_id = self._config.default_federation_id

        key = competitions_key(season_id, federation_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        competitions = await self._client.get_competitions(season_id, federation_id)
        competitions = sorted(competitions, key=lambda c: c.name)
        self._cache.set(key, competitions, self._config.competitions_ttl)
        logger.info(
            "Cached %d competitions for season %d, federation %d",
            len(competitions), season_id, federation_id,
        )
        return competitions


def _raise_if_fatal(exc: BaseException) -> None:
    """Re-raise errors that must abort the run instead of being dropped."""
    if isinstance(exc, AuthError) or not isinstance(exc, Exception):
        raise exc
