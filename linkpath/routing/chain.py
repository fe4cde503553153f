"""Priority-ordered provider chain with per-provider statistics."""

import asyncio
import logging
from typing import Optional, Sequence

from ..errors import ProviderError, ProviderTimeout, ProviderUnavailable
from ..models.geo import Coordinate
from .provider import ProviderStats, RouteProvider, RouteResult

logger = logging.getLogger(__name__)


class FallbackChainProvider:
    """Try each provider in order until one returns a route.

    A failure of one provider is logged and counted, then the next one is
    tried. With ``timeout_s`` set, each attempt gets its own timeout and a
    provider that does not answer in time counts as failed, so a hanging
    provider cannot starve the ones behind it. When every provider fails the
    last error is raised if there was only one provider, otherwise a
    ProviderUnavailable summarizing all of them.
    """

    name = "chain"

    def __init__(self, providers: Sequence[RouteProvider], timeout_s: Optional[float] = None):
        if not providers:
            raise ValueError("FallbackChainProvider needs at least one provider")
        self.providers = list(providers)
        self.timeout_s = timeout_s
        self.stats: dict[str, ProviderStats] = {p.name: ProviderStats() for p in self.providers}

    async def _attempt(self, provider: RouteProvider, source: Coordinate, target: Coordinate) -> RouteResult:
        if self.timeout_s is None:
            return await provider.route(source, target)
        try:
            return await asyncio.wait_for(provider.route(source, target), timeout=self.timeout_s)
        except asyncio.TimeoutError as exc:
            raise ProviderTimeout(f"No route within {self.timeout_s}s", provider.name) from exc

    async def route(self, source: Coordinate, target: Coordinate) -> RouteResult:
        errors: list[ProviderError] = []

        for provider in self.providers:
            stats = self.stats[provider.name]
            try:
                result = await self._attempt(provider, source, target)
            except ProviderError as e:
                stats.failed += 1
                stats.last_error = str(e)
                errors.append(e)
                logger.warning(f"Provider {provider.name} failed: {e}")
                continue

            stats.success += 1
            return result

        if len(errors) == 1:
            raise errors[0]
        summary = "; ".join(str(e) for e in errors)
        raise ProviderUnavailable(f"All providers failed ({summary})", self.name)

    def get_stats(self) -> dict[str, dict]:
        """Counters per provider, keyed by provider name."""
        return {name: s.to_dict() for name, s in self.stats.items()}

    async def aclose(self) -> None:
        for provider in self.providers:
            close = getattr(provider, "aclose", None)
            if close is not None:
                await close()
