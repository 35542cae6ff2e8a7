from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from proximity_engine import bearing_degrees, distance_meters
from schemas import Candidate, Coordinate, Measurement


@dataclass(frozen=True)
class Selection:
    candidate: Candidate
    distance_m: float
    bearing_deg: float

    def measurement(self) -> Measurement:
        return Measurement(
            target_id=self.candidate.id,
            distance_m=self.distance_m,
            bearing_deg=self.bearing_deg,
        )


def measure(origin: Coordinate, candidate: Candidate) -> Selection:
    return Selection(
        candidate=candidate,
        distance_m=distance_meters(origin, candidate.coordinate),
        bearing_deg=bearing_degrees(origin, candidate.coordinate),
    )


def select_nearest(origin: Coordinate, candidates: Iterable[Candidate]) -> Selection | None:
    """Return the candidate closest to origin, or None when there are none.

    Equal distances keep the first candidate seen.
    """
    best: Selection | None = None
    for candidate in candidates:
        current = measure(origin, candidate)
        if best is None or current.distance_m < best.distance_m:
            best = current
    return best
