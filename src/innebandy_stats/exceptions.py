"""Custom exception hierarchy for the innebandy stats client.

Exception tree:
    InnebandyStatsError
    +-- AuthError            (token bootstrap failed or malformed)
    +-- RemoteApiError       (required call returned non-2xx / bad payload)
        +-- NotFound         (HTTP 404)
        +-- EnrichmentMiss   (lineup/profile lookup failed, non-fatal)
"""

from typing import Optional


class InnebandyStatsError(Exception):
    """Base exception for all innebandy stats errors."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class AuthError(InnebandyStatsError):
    """The startkit token could not be obtained.

    Fatal -- no other endpoint can be called without a token.
    """

    pass


class RemoteApiError(InnebandyStatsError):
    """A remote call returned a non-success status or an unreadable body.

    Fatal for the match list and the competitions list. Per-match detail
    failures are caught by the aggregation and the match is dropped.
    """

    pass


class NotFound(RemoteApiError):
    """HTTP 404 -- the requested resource does not exist.

    Distinct from RemoteApiError so match details can map it to ``None``.
    """

    pass


class EnrichmentMiss(RemoteApiError):
    """A best-effort lookup (lineup, player profile) failed.

    Never escapes the client's public methods: they log a warning and
    return ``None`` instead.
    """

    pass
