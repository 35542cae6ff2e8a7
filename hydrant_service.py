from __future__ import annotations

import logging
from typing import Callable, Sequence

from candidate_selector import select_nearest
from exceptions import CandidateFetchError
from presentation import describe_measurement, relative_rotation
from proximity_engine import meters_to_feet, meters_to_miles
from schemas import Candidate, Coordinate, HydrantStatus, Measurement

logger = logging.getLogger(__name__)


def hydrant_status(
    measurement: Measurement | None,
    *,
    target: Candidate | None = None,
    heading_deg: float | None = None,
    status: str | None = None,
    searched: bool | None = None,
) -> HydrantStatus:
    if measurement is None:
        return HydrantStatus(
            status=status or "no_target",
            message=describe_measurement(None),
            searched=searched,
        )

    rotation = None
    if heading_deg is not None:
        rotation = round(relative_rotation(measurement.bearing_deg, heading_deg), 1)

    return HydrantStatus(
        status=status or "tracking",
        measurement=measurement,
        target=target,
        distance_ft=round(meters_to_feet(measurement.distance_m), 1),
        distance_miles=round(meters_to_miles(measurement.distance_m), 3),
        relative_rotation_deg=rotation,
        message=describe_measurement(measurement),
        searched=searched,
    )


def build_hydrant_status(
    origin: Coordinate,
    *,
    heading_deg: float | None,
    lookup_fn: Callable[[Coordinate], Sequence[Candidate]],
) -> HydrantStatus:
    try:
        candidates = lookup_fn(origin)
    except CandidateFetchError as exc:
        logger.warning("One-shot hydrant lookup from %s failed: %s", origin, exc)
        return HydrantStatus(
            status="unavailable",
            message="Hydrant service unavailable. Try again shortly.",
            searched=True,
        )

    selection = select_nearest(origin, candidates)
    if selection is None:
        return hydrant_status(None, searched=True)
    return hydrant_status(
        selection.measurement(),
        target=selection.candidate,
        heading_deg=heading_deg,
        searched=True,
    )
