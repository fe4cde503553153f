"""OSRM route service adapter (public demo server needs no key)."""

from typing import Any, Optional

from ..errors import ProviderMalformedResponse
from ..models.geo import Coordinate
from .polyline import decode
from .provider import HttpRouteProvider, coords_from_lonlat, lonlat_path


class OSRMProvider(HttpRouteProvider):
    """Routes via ``GET /route/v1/{profile}/{lon,lat;lon,lat}``."""

    name = "osrm"

    PROFILES = {
        "drive": "driving",
        "bicycle": "cycling",
        "walk": "walking",
    }
    DEFAULT_PROFILE = "driving"

    async def _fetch(self, source: Coordinate, target: Coordinate) -> Any:
        url = f"{self.base_url}/{self.provider_profile}/{lonlat_path(source, target)}"
        return await self._request(
            "GET",
            url,
            params={"geometries": "geojson", "overview": "full"},
        )

    def _parse(self, payload: dict[str, Any]) -> tuple[list[Coordinate], Optional[float]]:
        code = payload.get("code", "Ok")
        if code != "Ok":
            raise ProviderMalformedResponse(f"OSRM returned code '{code}'", self.name)

        routes = payload.get("routes")
        if not isinstance(routes, list) or not routes:
            raise ProviderMalformedResponse("No route found", self.name)

        route = routes[0]
        if not isinstance(route, dict):
            raise ProviderMalformedResponse("Route entry is not an object", self.name)
        geometry = route.get("geometry")
        if isinstance(geometry, str):
            # Encoded polyline when geometries=geojson was ignored
            points = decode(geometry)
        elif isinstance(geometry, dict):
            points = coords_from_lonlat(geometry.get("coordinates"), self.name)
        else:
            raise ProviderMalformedResponse("Route has no geometry", self.name)

        return points, route.get("distance")
