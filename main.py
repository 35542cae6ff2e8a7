import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from threading import Lock
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response

from exceptions import HydrantLookupError
from hydrant_lookup import fetch_hydrant_candidates
from hydrant_service import build_hydrant_status, hydrant_status
from position_feed import PositionFeed
from presentation import heading_from_orientation
from schemas import Candidate, Coordinate, HealthResponse, HydrantStatus, PositionFix, PositionFixError, SessionCreated
from tracking_session import REFRESH_THRESHOLD_M, TrackingSession

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Hydrant Compass API",
    description="Nearest fire hydrant distance and bearing for a moving observer",
    version="0.1.0",
)

SESSION_IDLE_TTL_SECONDS = 900

_SESSIONS_LOCK = Lock()
_UPSTREAM_LOCK = Lock()
_LATEST_UPSTREAM_STATUS = {"status": "not_requested", "fetched_at": None, "detail": None}


@dataclass
class _TrackedSession:
    feed: PositionFeed
    heading_deg: float | None = None
    last_seen: datetime = field(default_factory=lambda: datetime.now(UTC))
    lock: Lock = field(default_factory=Lock)

    def set_heading(self, heading_deg: float) -> None:
        with self.lock:
            self.heading_deg = heading_deg

    def current_heading(self) -> float | None:
        with self.lock:
            return self.heading_deg


_SESSIONS: dict[str, _TrackedSession] = {}


def _fetch_candidates(origin: Coordinate) -> list[Candidate]:
    try:
        candidates = fetch_hydrant_candidates(origin)
    except HydrantLookupError as exc:
        with _UPSTREAM_LOCK:
            _LATEST_UPSTREAM_STATUS.update(status="unavailable", fetched_at=datetime.now(UTC), detail=str(exc))
        raise
    with _UPSTREAM_LOCK:
        _LATEST_UPSTREAM_STATUS.update(status="live", fetched_at=datetime.now(UTC), detail=None)
    return candidates


def _expire_idle_sessions(now: datetime) -> None:
    # Caller holds _SESSIONS_LOCK.
    cutoff = now - timedelta(seconds=SESSION_IDLE_TTL_SECONDS)
    expired = [session_id for session_id, tracked in _SESSIONS.items() if tracked.last_seen <= cutoff]
    for session_id in expired:
        del _SESSIONS[session_id]
        logger.info("Expired idle tracking session %s", session_id)


def _get_session(session_id: str) -> _TrackedSession:
    now = datetime.now(UTC)
    with _SESSIONS_LOCK:
        _expire_idle_sessions(now)
        tracked = _SESSIONS.get(session_id)
        if tracked is not None:
            tracked.last_seen = now
    if tracked is None:
        raise HTTPException(status_code=404, detail=f"Unknown tracking session {session_id}")
    return tracked


def _session_status(tracked: _TrackedSession, *, status: str | None = None) -> HydrantStatus:
    session = tracked.feed.session
    if status is None and session.latest is None and session.last_search_failed:
        status = "unavailable"
    return hydrant_status(
        session.latest,
        target=session.current_target,
        heading_deg=tracked.current_heading(),
        status=status,
        searched=session.last_observation_searched,
    )


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/system-health")
def system_health() -> dict:
    with _UPSTREAM_LOCK:
        upstream = dict(_LATEST_UPSTREAM_STATUS)
    with _SESSIONS_LOCK:
        active_sessions = len(_SESSIONS)
    return {
        "status": "ok",
        "service": app.title,
        "version": app.version,
        "timestamp": datetime.now(UTC),
        "active_sessions": active_sessions,
        "upstream": upstream,
    }


@app.get("/nearest-hydrant", response_model=HydrantStatus)
def nearest_hydrant(
    lat: float = Query(..., ge=-90, le=90, description="Latitude"),
    lon: float = Query(..., ge=-180, le=180, description="Longitude"),
    heading: float | None = Query(None, description="Device compass heading in degrees"),
) -> HydrantStatus:
    return build_hydrant_status(
        Coordinate(latitude=lat, longitude=lon),
        heading_deg=heading_from_orientation(compass_heading=heading),
        lookup_fn=_fetch_candidates,
    )


@app.post("/sessions", response_model=SessionCreated, status_code=201)
def start_session(
    threshold_m: float = Query(
        REFRESH_THRESHOLD_M,
        gt=0,
        le=1000,
        description="Observer displacement in meters that forces a new hydrant search",
    ),
) -> SessionCreated:
    session_id = uuid4().hex
    feed = PositionFeed(TrackingSession(threshold_m=threshold_m), _fetch_candidates)
    with _SESSIONS_LOCK:
        _expire_idle_sessions(datetime.now(UTC))
        _SESSIONS[session_id] = _TrackedSession(feed=feed)
    logger.info("Started tracking session %s (threshold %.0f m)", session_id, threshold_m)
    return SessionCreated(session_id=session_id, threshold_m=threshold_m)


@app.post("/sessions/{session_id}/positions", response_model=HydrantStatus)
def push_position(session_id: str, fix: PositionFix) -> HydrantStatus:
    tracked = _get_session(session_id)
    heading = heading_from_orientation(alpha=fix.alpha, compass_heading=fix.heading)
    if heading is not None:
        tracked.set_heading(heading)

    if not tracked.feed.push(fix.coordinate()):
        return _session_status(tracked, status="queued")
    return _session_status(tracked)


@app.post("/sessions/{session_id}/position-errors", response_model=HydrantStatus)
def report_position_error(session_id: str, error: PositionFixError) -> HydrantStatus:
    tracked = _get_session(session_id)
    tracked.feed.report_error(error.message)
    return _session_status(tracked)


@app.get("/sessions/{session_id}", response_model=HydrantStatus)
def get_session(session_id: str) -> HydrantStatus:
    return _session_status(_get_session(session_id))


@app.delete("/sessions/{session_id}", status_code=204, response_class=Response)
def stop_session(session_id: str) -> Response:
    with _SESSIONS_LOCK:
        tracked = _SESSIONS.pop(session_id, None)
    if tracked is None:
        raise HTTPException(status_code=404, detail=f"Unknown tracking session {session_id}")
    tracked.feed.session.reset()
    logger.info("Stopped tracking session %s", session_id)
    return Response(status_code=204)
