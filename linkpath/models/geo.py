"""Coordinate and endpoint models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Coordinate(BaseModel):
    """A WGS84 (latitude, longitude) pair in degrees.

    Accepts a plain ``(lat, lon)`` pair wherever a Coordinate is expected,
    which keeps request payloads and fixtures short.
    """

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    lon: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees")

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if len(data) != 2:
                raise ValueError(f"Coordinate pair must have 2 values, got {len(data)}")
            return {"lat": data[0], "lon": data[1]}
        return data

    @classmethod
    def from_lonlat(cls, lonlat: tuple[float, float] | list[float]) -> "Coordinate":
        """Build from GeoJSON ``[lon, lat]`` order."""
        return cls(lat=lonlat[1], lon=lonlat[0])

    def as_tuple(self) -> tuple[float, float]:
        """Return ``(lat, lon)``."""
        return (self.lat, self.lon)

    def as_lonlat(self) -> tuple[float, float]:
        """Return ``(lon, lat)`` for GeoJSON and routing APIs."""
        return (self.lon, self.lat)


class LinkEndpoint(BaseModel):
    """A link endpoint: a topology node and its current position."""

    model_config = ConfigDict(frozen=True)

    node_id: str = Field(..., description="Node identifier owned by the topology store")
    coordinate: Coordinate = Field(..., description="Current node position")
