from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from candidate_selector import measure, select_nearest
from exceptions import CandidateFetchError
from proximity_engine import distance_meters
from schemas import Candidate, Coordinate, Measurement

logger = logging.getLogger(__name__)

REFRESH_THRESHOLD_M = 50.0

FetchCandidates = Callable[[Coordinate], Sequence[Candidate]]


class TrackingState(str, Enum):
    NO_TARGET = "no_target"
    HAS_TARGET = "has_target"


@dataclass
class SessionState:
    current_target: Candidate | None = None
    last_search_origin: Coordinate | None = None


class TrackingSession:
    """Keeps the nearest hydrant selected while the observer moves.

    A fresh candidate search runs on the first observation and whenever the
    observer has drifted more than ``threshold_m`` from where the last
    successful search was made. In between, the held target is re-measured
    against each new position without consulting the candidate source.

    A fetch that raises :class:`CandidateFetchError` drops the held target for
    that cycle but leaves the search origin untouched, and the next
    observation searches again wherever the observer is.
    """

    def __init__(self, *, threshold_m: float = REFRESH_THRESHOLD_M) -> None:
        self.threshold_m = threshold_m
        self._state = SessionState()
        self.latest: Measurement | None = None
        self.search_count = 0
        self.last_observation_searched = False
        self.last_search_failed = False

    @property
    def state(self) -> TrackingState:
        if self._state.current_target is None:
            return TrackingState.NO_TARGET
        return TrackingState.HAS_TARGET

    @property
    def current_target(self) -> Candidate | None:
        return self._state.current_target

    @property
    def last_search_origin(self) -> Coordinate | None:
        return self._state.last_search_origin

    def needs_search(self, origin: Coordinate) -> bool:
        last = self._state.last_search_origin
        if last is None or self.last_search_failed:
            return True
        return distance_meters(origin, last) > self.threshold_m

    def observe(self, origin: Coordinate, fetch_candidates: FetchCandidates) -> Measurement | None:
        self.last_observation_searched = self.needs_search(origin)
        if self.last_observation_searched:
            self.latest = self._search(origin, fetch_candidates)
        elif self._state.current_target is not None:
            self.latest = measure(origin, self._state.current_target).measurement()
            logger.debug(
                "Re-measured hydrant %s from %s: %.1f m at %.0f deg",
                self.latest.target_id,
                origin,
                self.latest.distance_m,
                self.latest.bearing_deg,
            )
        else:
            self.latest = None
        return self.latest

    def _search(self, origin: Coordinate, fetch_candidates: FetchCandidates) -> Measurement | None:
        self.search_count += 1
        try:
            candidates = fetch_candidates(origin)
        except CandidateFetchError as exc:
            logger.warning("Hydrant search from %s failed, retrying on next fix: %s", origin, exc)
            self.last_search_failed = True
            self._state.current_target = None
            return None

        self.last_search_failed = False
        selection = select_nearest(origin, candidates)
        self._state.last_search_origin = origin
        if selection is None:
            logger.info("No hydrants found near %s", origin)
            self._state.current_target = None
            return None

        self._state.current_target = selection.candidate
        logger.info(
            "Selected hydrant %s from %d candidates near %s (%.1f m)",
            selection.candidate.id,
            len(candidates),
            origin,
            selection.distance_m,
        )
        return selection.measurement()

    def reset(self) -> None:
        self._state = SessionState()
        self.latest = None
        self.last_observation_searched = False
        self.last_search_failed = False
