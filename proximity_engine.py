from __future__ import annotations

from math import asin, atan2, cos, degrees, radians, sin, sqrt

from schemas import Coordinate


EARTH_RADIUS_M = 6_371_000.0
FEET_PER_METER = 3.28084
MILES_PER_METER = 0.000621371


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance using haversine formula."""
    dlat = radians(b.latitude - a.latitude)
    dlon = radians(b.longitude - a.longitude)
    h = (
        sin(dlat / 2) ** 2
        + cos(radians(a.latitude)) * cos(radians(b.latitude)) * sin(dlon / 2) ** 2
    )
    # Rounding can push h a hair past 1 for near-antipodal points.
    c = 2 * asin(sqrt(min(h, 1.0)))
    return EARTH_RADIUS_M * c


def normalize_degrees(value: float) -> float:
    result = value % 360.0
    # -1e-15 % 360.0 == 360.0 in floating point.
    if result >= 360.0:
        return 0.0
    return result


def bearing_degrees(origin: Coordinate, target: Coordinate) -> float:
    """Initial great-circle bearing from origin toward target, in [0, 360).

    The bearing between identical points is undefined; 0.0 is returned for it.
    """
    if origin == target:
        return 0.0
    lat1 = radians(origin.latitude)
    lat2 = radians(target.latitude)
    dlon = radians(target.longitude - origin.longitude)
    y = sin(dlon) * cos(lat2)
    x = cos(lat1) * sin(lat2) - sin(lat1) * cos(lat2) * cos(dlon)
    return normalize_degrees(degrees(atan2(y, x)))


def meters_to_feet(value_m: float) -> float:
    return value_m * FEET_PER_METER


def meters_to_miles(value_m: float) -> float:
    return value_m * MILES_PER_METER
