from __future__ import annotations

import logging
from threading import Lock
from typing import Callable

from schemas import Coordinate, Measurement
from tracking_session import FetchCandidates, TrackingSession

logger = logging.getLogger(__name__)


class PositionFeed:
    """Serializes position fixes into a tracking session.

    Only one ``observe`` cycle runs at a time. A fix that arrives while a
    cycle is in flight replaces any fix already waiting and is applied once
    the running cycle finishes, so at most one coordinate is ever queued.
    """

    def __init__(
        self,
        session: TrackingSession,
        fetch_candidates: FetchCandidates,
        *,
        on_update: Callable[[Measurement | None], None] | None = None,
    ) -> None:
        self.session = session
        self._fetch_candidates = fetch_candidates
        self._on_update = on_update
        self._lock = Lock()
        self._pending: Coordinate | None = None
        self._busy = False
        self.coalesced_count = 0
        self.dropped_count = 0

    @property
    def latest(self) -> Measurement | None:
        return self.session.latest

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._busy

    def push(self, origin: Coordinate) -> bool:
        """Offer a new fix. Returns False when it was queued behind a running cycle."""
        with self._lock:
            if self._pending is not None:
                self.coalesced_count += 1
            self._pending = origin
            if self._busy:
                logger.debug("Cycle in flight, queued fix %s", origin)
                return False
            self._busy = True

        self._drain()
        return True

    def report_error(self, error: Exception | str) -> None:
        """Hook for the positioning source to report a fix it could not obtain.

        Failed fixes never reach the session. The HTTP layer exposes this as
        ``POST /sessions/{id}/position-errors``.
        """
        logger.warning("Ignoring failed position fix: %s", error)

    def _drain(self) -> None:
        while True:
            with self._lock:
                origin = self._pending
                self._pending = None
                if origin is None:
                    self._busy = False
                    return
            try:
                measurement = self.session.observe(origin, self._fetch_candidates)
                if self._on_update is not None:
                    self._on_update(measurement)
            except Exception:
                with self._lock:
                    self._busy = False
                    dropped = self._pending
                    self._pending = None
                    if dropped is not None:
                        self.dropped_count += 1
                if dropped is not None:
                    logger.warning("Dropped queued fix %s after tracking cycle for %s failed", dropped, origin)
                raise
