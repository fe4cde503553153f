"""Routing provider interface and shared HTTP plumbing."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

import httpx

from ..errors import ProviderMalformedResponse, ProviderTimeout, ProviderUnavailable
from ..models.geo import Coordinate

logger = logging.getLogger(__name__)


@dataclass
class RouteResult:
    """Result from a single route request."""

    points: list[Coordinate]  # Ordered, source first
    provider: str
    reported_distance_m: Optional[float] = None  # Informational only, never stored
    cached: bool = False

    @property
    def num_points(self) -> int:
        return len(self.points)


@dataclass
class ProviderStats:
    """Success/failure counters for one provider."""

    success: int = 0
    failed: int = 0
    last_error: Optional[str] = field(default=None)

    @property
    def success_rate(self) -> Optional[float]:
        total = self.success + self.failed
        if total == 0:
            return None
        return self.success / total

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "failed": self.failed,
            "success_rate": self.success_rate,
            "last_error": self.last_error,
        }


@runtime_checkable
class RouteProvider(Protocol):
    """Anything that can route between two coordinates.

    Implementations raise ``ProviderError`` subclasses on failure.
    """

    name: str

    async def route(self, source: Coordinate, target: Coordinate) -> RouteResult:
        ...


def coords_from_lonlat(raw: Any, provider: str) -> list[Coordinate]:
    """Convert a GeoJSON ``[[lon, lat], ...]`` array to coordinates.

    Raises:
        ProviderMalformedResponse: If the array has the wrong shape or values
    """
    if not isinstance(raw, Sequence) or isinstance(raw, str):
        raise ProviderMalformedResponse("Route geometry is not a coordinate array", provider)
    try:
        return [Coordinate.from_lonlat(pair) for pair in raw]
    except (TypeError, ValueError, IndexError, KeyError) as exc:
        raise ProviderMalformedResponse(f"Invalid route coordinates: {exc}", provider) from exc


class HttpRouteProvider:
    """Base for providers reached over HTTP with httpx.

    Subclasses implement ``_fetch`` (issue the request and return the JSON
    body) and ``_parse`` (extract the ordered point list).
    """

    name = "http"

    # Travel profile -> provider profile name
    PROFILES: dict[str, str] = {}
    DEFAULT_PROFILE = ""

    def __init__(
        self,
        base_url: str,
        profile: str = "drive",
        timeout: float = 8.0,
        user_agent: str = "linkpath",
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize provider.

        Args:
            base_url: Service base URL (no trailing slash needed)
            profile: Travel profile: drive, bicycle, or walk
            timeout: HTTP timeout in seconds
            user_agent: User-Agent header value
            client: Shared AsyncClient; created lazily and owned if None
        """
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.timeout = timeout
        self.user_agent = user_agent
        self._client = client
        self._owns_client = client is None

    @property
    def provider_profile(self) -> str:
        """Profile name in the provider's own vocabulary."""
        return self.PROFILES.get(self.profile, self.DEFAULT_PROFILE)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Issue a request and return the decoded JSON body.

        Maps transport and status errors onto the provider error taxonomy.
        """
        client = self._get_client()
        try:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ProviderTimeout(f"Request timed out after {self.timeout}s", self.name) from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise ProviderUnavailable(f"HTTP {status}", self.name) from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailable(f"Request failed: {exc}", self.name) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderMalformedResponse("Response is not valid JSON", self.name) from exc

    async def _fetch(self, source: Coordinate, target: Coordinate) -> Any:
        raise NotImplementedError

    def _parse(self, payload: Any) -> tuple[list[Coordinate], Optional[float]]:
        raise NotImplementedError

    async def route(self, source: Coordinate, target: Coordinate) -> RouteResult:
        """Request a road route from source to target.

        Raises:
            ProviderTimeout: Request exceeded the timeout
            ProviderUnavailable: Network error or non-2xx response
            ProviderMalformedResponse: Response has no usable geometry
        """
        payload = await self._fetch(source, target)
        if not isinstance(payload, dict):
            raise ProviderMalformedResponse("Response body is not a JSON object", self.name)

        points, reported = self._parse(payload)
        if len(points) < 2:
            raise ProviderMalformedResponse(
                f"Route has {len(points)} point(s), need at least 2", self.name
            )

        logger.debug(f"{self.name} returned {len(points)} points")
        return RouteResult(points=points, provider=self.name, reported_distance_m=reported)


def lonlat_path(source: Coordinate, target: Coordinate) -> str:
    """Format ``lon,lat;lon,lat`` as used in OSRM/Mapbox URL paths."""
    return f"{source.lon},{source.lat};{target.lon},{target.lat}"
