"""OpenRouteService directions adapter."""

from typing import Any, Optional

from ..errors import ProviderMalformedResponse, ProviderUnavailable
from ..models.geo import Coordinate
from .provider import HttpRouteProvider, coords_from_lonlat


class OpenRouteServiceProvider(HttpRouteProvider):
    """Routes via ``POST /v2/directions/{profile}/geojson``."""

    name = "ors"

    PROFILES = {
        "drive": "driving-car",
        "bicycle": "cycling-regular",
        "walk": "foot-walking",
    }
    DEFAULT_PROFILE = "driving-car"

    def __init__(self, base_url: str, api_key: str | None = None, **kwargs: Any):
        super().__init__(base_url, **kwargs)
        self.api_key = api_key

    async def _fetch(self, source: Coordinate, target: Coordinate) -> Any:
        if not self.api_key:
            raise ProviderUnavailable("No API key configured", self.name)

        url = f"{self.base_url}/{self.provider_profile}/geojson"
        return await self._request(
            "POST",
            url,
            json={"coordinates": [list(source.as_lonlat()), list(target.as_lonlat())]},
            headers={"Authorization": self.api_key},
        )

    def _parse(self, payload: dict[str, Any]) -> tuple[list[Coordinate], Optional[float]]:
        features = payload.get("features")
        if not isinstance(features, list) or not features:
            raise ProviderMalformedResponse("No route found", self.name)

        feature = features[0]
        if not isinstance(feature, dict):
            raise ProviderMalformedResponse("Route feature is not an object", self.name)
        geometry = feature.get("geometry") or {}
        points = coords_from_lonlat(geometry.get("coordinates"), self.name)

        summary = (feature.get("properties") or {}).get("summary") or {}
        return points, summary.get("distance")
