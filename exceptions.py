"""Exception hierarchy for hydrant compass."""

from __future__ import annotations


class HydrantCompassError(Exception):
    """Base exception for all hydrant compass errors."""


class CandidateFetchError(HydrantCompassError):
    """A candidate source could not produce results for this cycle.

    Raised by fetch collaborators; tracking treats it as a transient miss
    and retries on the next observation.
    """


class HydrantLookupError(CandidateFetchError):
    """HTTP-level or payload failure from the hydrant feature service."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)
