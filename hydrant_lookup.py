from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import ValidationError

from exceptions import HydrantLookupError
from schemas import Candidate, Coordinate

logger = logging.getLogger(__name__)

HYDRANT_QUERY_URL = (
    "https://services1.arcgis.com/wuUHGjgeUTzbEp4y/ArcGIS/rest/services/Hydrant/FeatureServer/0/query"
)
SEARCH_RADIUS_M = 500
RESULT_RECORD_COUNT = 10
REQUEST_TIMEOUT_SECONDS = 4


def _query_params(origin: Coordinate, radius_m: int, limit: int) -> dict[str, str]:
    return {
        "f": "json",
        "geometry": f"{origin.longitude},{origin.latitude}",
        "geometryType": "esriGeometryPoint",
        "inSR": "4326",
        "outSR": "4326",
        "spatialRel": "esriSpatialRelIntersects",
        "distance": str(radius_m),
        "units": "esriSRUnit_Meter",
        "outFields": "*",
        "returnGeometry": "true",
        "resultRecordCount": str(limit),
    }


def _fetch_json(params: dict[str, str]) -> dict[str, Any]:
    try:
        response = requests.get(HYDRANT_QUERY_URL, params=params, timeout=REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
        data = response.json()
    except requests.HTTPError as exc:
        status_code = exc.response.status_code if exc.response is not None else None
        raise HydrantLookupError(
            f"Hydrant service returned HTTP {status_code}",
            status_code=status_code,
            endpoint=HYDRANT_QUERY_URL,
        ) from exc
    except (requests.RequestException, ValueError) as exc:
        raise HydrantLookupError(f"Hydrant service unreachable: {exc}", endpoint=HYDRANT_QUERY_URL) from exc

    if not isinstance(data, dict):
        raise HydrantLookupError("Unexpected hydrant payload", endpoint=HYDRANT_QUERY_URL)
    # ArcGIS reports query failures in the body with a 200 status.
    error = data.get("error")
    if error:
        message = error.get("message", "unknown error") if isinstance(error, dict) else str(error)
        code = error.get("code") if isinstance(error, dict) else None
        raise HydrantLookupError(
            f"Hydrant service error: {message}",
            status_code=code if isinstance(code, int) else None,
            endpoint=HYDRANT_QUERY_URL,
        )
    return data


def _extract_candidate(feature: Any) -> Candidate | None:
    if not isinstance(feature, dict):
        return None
    geometry = feature.get("geometry")
    attributes = feature.get("attributes") or {}
    if not isinstance(geometry, dict) or not isinstance(attributes, dict):
        return None

    object_id = attributes.get("OBJECTID", attributes.get("objectid"))
    if object_id is None:
        return None

    try:
        coordinate = Coordinate(latitude=float(geometry["y"]), longitude=float(geometry["x"]))
    except (KeyError, TypeError, ValueError, ValidationError):
        return None
    return Candidate(id=object_id, coordinate=coordinate)


def fetch_hydrant_candidates(
    origin: Coordinate,
    *,
    radius_m: int = SEARCH_RADIUS_M,
    limit: int = RESULT_RECORD_COUNT,
) -> list[Candidate]:
    """Query the hydrant feature service around origin.

    Returns an empty list when the service has nothing nearby and raises
    HydrantLookupError when it cannot be reached or answers with an error.
    """
    data = _fetch_json(_query_params(origin, radius_m, limit))
    features = data.get("features") or []

    candidates: list[Candidate] = []
    for feature in features:
        candidate = _extract_candidate(feature)
        if candidate is None:
            logger.debug("Skipping malformed hydrant feature: %r", feature)
            continue
        candidates.append(candidate)

    logger.debug("Hydrant query around %s returned %d candidates", origin, len(candidates))
    return candidates
