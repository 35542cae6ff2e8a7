from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    status: str = Field(..., examples=["ok"])


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Longitude in decimal degrees")

    def __str__(self) -> str:
        return f"({self.latitude}, {self.longitude})"


class Candidate(BaseModel):
    """One hydrant returned by a spatial query. Identity is the id."""

    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    coordinate: Coordinate


class Measurement(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_id: Union[int, str]
    distance_m: float = Field(..., ge=0.0)
    bearing_deg: float = Field(..., ge=0.0, lt=360.0)


class PositionFix(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    heading: Optional[float] = Field(None, description="Compass heading in degrees, 0 = north")
    alpha: Optional[float] = Field(None, description="Raw device orientation alpha in degrees")

    def coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


class PositionFixError(BaseModel):
    message: str = Field(..., description="Why the positioning source could not produce a fix")
    code: Optional[int] = None


class HydrantStatus(BaseModel):
    status: str = Field(..., description="tracking | no_target | queued | unavailable")
    measurement: Optional[Measurement] = None
    target: Optional[Candidate] = None
    distance_ft: Optional[float] = None
    distance_miles: Optional[float] = None
    relative_rotation_deg: Optional[float] = None
    message: str
    searched: Optional[bool] = None


class SessionCreated(BaseModel):
    session_id: str
    threshold_m: float
