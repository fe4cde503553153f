"""Routing providers: interface, HTTP adapters, chaining and caching."""

from .cache import CachingRouteProvider
from .chain import FallbackChainProvider
from .factory import build_provider, create_provider
from .mapbox import MapboxProvider
from .openrouteservice import OpenRouteServiceProvider
from .osrm import OSRMProvider
from .polyline import decode as decode_polyline
from .provider import (
    HttpRouteProvider,
    ProviderStats,
    RouteProvider,
    RouteResult,
)

__all__ = [
    # Interface
    "RouteProvider",
    "RouteResult",
    "ProviderStats",
    "HttpRouteProvider",
    # Adapters
    "OSRMProvider",
    "MapboxProvider",
    "OpenRouteServiceProvider",
    "decode_polyline",
    # Composition
    "FallbackChainProvider",
    "CachingRouteProvider",
    "build_provider",
    "create_provider",
]
