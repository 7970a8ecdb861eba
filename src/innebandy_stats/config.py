"""Configuration for the innebandy statistics client and aggregation."""

from dataclasses import dataclass

INNEBANDY_API_URL = "https://api.innebandy.se/v2/api"
INNEBANDY_TOKEN_URL = "https://api.innebandy.se/StatsAppApi/api/startkit"


@dataclass
class StatsConfig:
    """Configuration for the innebandy stats service.

    All timing values are in seconds.
    """

    # Remote API
    base_url: str = INNEBANDY_API_URL
    token_url: str = INNEBANDY_TOKEN_URL

    # httpx timeout applied to every request
    http_timeout: float = 30.0

    # tenacity stop_after_attempt for transport errors (connect/read).
    # HTTP status failures are never retried.
    max_retries: int = 3
    retry_initial_wait: float = 0.5
    retry_max_wait: float = 5.0
    # Random extra wait added to each backoff step
    retry_jitter: float = 0.5

    # Matches per batch; details + lineup for each are fetched together,
    # so one batch issues twice this many requests.
    match_batch_size: int = 5

    # Player profiles per batch during backfill
    profile_batch_size: int = 10

    # Cache lifetimes
    standings_ttl: float = 600.0
    competition_name_ttl: float = 600.0
    competitions_ttl: float = 1800.0

    # Competition picker defaults (season 2024/25, Svenska Innebandyförbundet)
    default_season_id: int = 43
    default_federation_id: int = 8

    # Log directory root
    data_dir: str = "data"
