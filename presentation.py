from __future__ import annotations

from proximity_engine import meters_to_feet, normalize_degrees
from schemas import Measurement


NO_TARGET_MESSAGE = "No hydrants found nearby."


def heading_from_orientation(
    *,
    alpha: float | None = None,
    compass_heading: float | None = None,
) -> float | None:
    """Device heading in compass degrees from an orientation reading.

    A true compass heading is used as-is when the device provides one.
    Otherwise the heading is derived from ``alpha``, which turns
    counter-clockwise.
    """
    if compass_heading is not None:
        return normalize_degrees(compass_heading)
    if alpha is not None:
        return normalize_degrees(360.0 - alpha)
    return None


def relative_rotation(bearing_deg: float, heading_deg: float) -> float:
    return normalize_degrees(bearing_deg - heading_deg)


def describe_measurement(measurement: Measurement | None) -> str:
    if measurement is None:
        return NO_TARGET_MESSAGE
    distance_ft = meters_to_feet(measurement.distance_m)
    return f"Hydrant is {distance_ft:.0f} ft away at {measurement.bearing_deg:.0f}°"
