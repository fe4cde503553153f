"""Mapbox Directions API adapter."""

from typing import Any, Optional

from ..errors import ProviderMalformedResponse, ProviderUnavailable
from ..models.geo import Coordinate
from .provider import HttpRouteProvider, coords_from_lonlat, lonlat_path


class MapboxProvider(HttpRouteProvider):
    """Routes via ``GET /directions/v5/mapbox/{profile}/{coords}``."""

    name = "mapbox"

    PROFILES = {
        "drive": "driving",
        "bicycle": "cycling",
        "walk": "walking",
    }
    DEFAULT_PROFILE = "driving"

    def __init__(self, base_url: str, access_token: str | None = None, **kwargs: Any):
        super().__init__(base_url, **kwargs)
        self.access_token = access_token

    async def _fetch(self, source: Coordinate, target: Coordinate) -> Any:
        if not self.access_token:
            raise ProviderUnavailable("No access token configured", self.name)

        url = f"{self.base_url}/{self.provider_profile}/{lonlat_path(source, target)}"
        return await self._request(
            "GET",
            url,
            params={
                "geometries": "geojson",
                "overview": "full",
                "access_token": self.access_token,
            },
        )

    def _parse(self, payload: dict[str, Any]) -> tuple[list[Coordinate], Optional[float]]:
        routes = payload.get("routes")
        if not isinstance(routes, list) or not routes:
            raise ProviderMalformedResponse("No route found", self.name)

        route = routes[0]
        if not isinstance(route, dict):
            raise ProviderMalformedResponse("Route entry is not an object", self.name)
        geometry = route.get("geometry") or {}
        if not isinstance(geometry, dict):
            raise ProviderMalformedResponse("Route geometry is not GeoJSON", self.name)

        points = coords_from_lonlat(geometry.get("coordinates"), self.name)
        return points, route.get("distance")
