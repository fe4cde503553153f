"""Build the configured routing provider stack."""

import logging

import httpx

from ..models.settings import RoutingSettings
from .cache import CachingRouteProvider
from .chain import FallbackChainProvider
from .mapbox import MapboxProvider
from .openrouteservice import OpenRouteServiceProvider
from .osrm import OSRMProvider
from .provider import HttpRouteProvider, RouteProvider

logger = logging.getLogger(__name__)


def create_provider(
    name: str,
    settings: RoutingSettings,
    client: httpx.AsyncClient | None = None,
) -> HttpRouteProvider:
    """Create a single named provider from settings."""
    common = {
        "profile": settings.profile,
        "timeout": settings.request_timeout_s,
        "user_agent": settings.user_agent,
        "client": client,
    }
    if name == "osrm":
        return OSRMProvider(settings.osrm_base_url, **common)
    if name == "mapbox":
        return MapboxProvider(
            settings.mapbox_base_url, access_token=settings.mapbox_token, **common
        )
    if name == "ors":
        return OpenRouteServiceProvider(
            settings.ors_base_url, api_key=settings.ors_api_key, **common
        )
    raise ValueError(f"Unknown routing provider '{name}'")


def build_provider(
    settings: RoutingSettings,
    client: httpx.AsyncClient | None = None,
) -> RouteProvider:
    """Build providers in priority order, chained and optionally cached.

    Args:
        settings: Routing settings
        client: Optional shared AsyncClient for all providers

    Returns:
        Provider ready for RouteComputationService
    """
    providers = [create_provider(name, settings, client) for name in settings.providers]
    provider: RouteProvider = FallbackChainProvider(providers, timeout_s=settings.request_timeout_s)

    if settings.cache_enabled:
        provider = CachingRouteProvider(
            provider, profile=settings.profile, max_size=settings.cache_max_routes
        )

    logger.info(
        f"Routing providers: {', '.join(settings.providers)} "
        f"(profile={settings.profile}, cache={'on' if settings.cache_enabled else 'off'})"
    )
    return provider
