"""Batch computation of road-following link paths.

Each link in a batch is routed by its own asyncio task. Tasks of every batch
run by one service share a semaphore that caps in-flight provider requests,
and each request carries its own timeout. A failing link falls back to a
straight line and never affects the others.
"""

import asyncio
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

import structlog

from ..errors import DegenerateGeometry, ProviderError, ProviderTimeout
from ..geometry.geodesy import distance, straight_line
from ..models.batch import BatchResult, LinkRouteRequest
from ..models.geo import Coordinate
from ..models.link_path import LinkPath, PathState
from ..routing.provider import RouteProvider
from ..store.path_store import PathStore

logger = structlog.get_logger(__name__)

# Provider points closer than this to a node are snapped onto it
ENDPOINT_SNAP_M = 0.5

LinkInput = Union[LinkRouteRequest, tuple[str, Coordinate, Coordinate]]


@dataclass
class _LinkOutcome:
    link_id: str
    status: str  # "succeeded", "failed", or "skipped"
    error: Optional[str] = None


def _as_request(link: LinkInput) -> LinkRouteRequest:
    if isinstance(link, LinkRouteRequest):
        return link
    link_id, source, target = link
    return LinkRouteRequest(link_id=link_id, source=source, target=target)


def anchor_endpoints(
    points: Sequence[Coordinate],
    source: Coordinate,
    target: Coordinate,
) -> list[Coordinate]:
    """Make a provider route start at ``source`` and end at ``target``.

    Providers snap endpoints to the nearest road. A first/last point within
    ``ENDPOINT_SNAP_M`` is replaced by the node coordinate; otherwise the node
    coordinate is added as a connector segment.
    """
    anchored = list(points)
    if not anchored:
        return anchored

    if distance(anchored[0], source) <= ENDPOINT_SNAP_M:
        anchored[0] = source
    else:
        anchored.insert(0, source)

    if distance(anchored[-1], target) <= ENDPOINT_SNAP_M:
        anchored[-1] = target
    else:
        anchored.append(target)

    return anchored


class RouteComputationService:
    """Routes batches of links through a provider into a PathStore."""

    def __init__(
        self,
        store: PathStore,
        provider: RouteProvider,
        max_concurrency: int = 8,
        request_timeout_s: float = 8.0,
    ):
        """Initialize service.

        Args:
            store: Path table to write results into
            provider: Routing provider (single adapter, chain, or cache)
            max_concurrency: Maximum simultaneous provider requests
            request_timeout_s: Timeout applied to each link's request
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.store = store
        self.provider = provider
        self.max_concurrency = max_concurrency
        self.request_timeout_s = request_timeout_s
        # Shared by every batch so concurrent batches stay under one limit
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def compute_batch(
        self,
        links: Iterable[LinkInput],
        force: bool = False,
    ) -> BatchResult:
        """Compute road paths for a batch of links.

        Manually edited links are skipped unless ``force`` is set. Provider
        failures are absorbed: the link gets a straight-line fallback and is
        listed in ``failed``. If the batch itself is cancelled, links whose
        request had not completed keep their previous record.

        Args:
            links: LinkRouteRequest objects or (link_id, source, target) tuples
            force: Recompute manually edited links too

        Returns:
            BatchResult listing succeeded, failed, and skipped link IDs
        """
        requests = [_as_request(link) for link in links]
        result = BatchResult()
        to_route: list[LinkRouteRequest] = []

        for req in requests:
            existing = self.store.find(req.link_id)
            if existing is not None and existing.state == PathState.MANUALLY_EDITED and not force:
                result.skipped.append(req.link_id)
                continue
            self.store.ensure_exists(req.link_id, req.source, req.target)
            to_route.append(req)

        logger.info(
            "route_batch_started",
            links=len(requests),
            to_route=len(to_route),
            skipped=len(result.skipped),
            force=force,
        )

        if not to_route:
            return result

        tasks = [
            asyncio.create_task(self._route_link(req, force))
            for req in to_route
        ]
        try:
            outcomes = await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.warning(
                "route_batch_cancelled",
                completed=sum(1 for t in tasks if t.done() and not t.cancelled()),
                total=len(tasks),
            )
            raise

        # gather preserves input order, so result lists follow request order
        for outcome in outcomes:
            if outcome.status == "succeeded":
                result.succeeded.append(outcome.link_id)
            elif outcome.status == "failed":
                result.failed.append(outcome.link_id)
                result.failures[outcome.link_id] = outcome.error or "unknown error"
            else:
                result.skipped.append(outcome.link_id)

        logger.info(
            "route_batch_finished",
            succeeded=len(result.succeeded),
            failed=len(result.failed),
            skipped=len(result.skipped),
        )
        return result

    async def compute_one(
        self,
        link_id: str,
        source: Coordinate,
        target: Coordinate,
        force: bool = False,
    ) -> LinkPath:
        """Route a single link and return its resulting record."""
        await self.compute_batch(
            [LinkRouteRequest(link_id=link_id, source=source, target=target)],
            force=force,
        )
        return self.store.get(link_id)

    async def _route_link(
        self,
        req: LinkRouteRequest,
        force: bool,
    ) -> _LinkOutcome:
        keep_manual = not force
        error: Exception

        async with self._semaphore:
            try:
                route = await asyncio.wait_for(
                    self.provider.route(req.source, req.target),
                    timeout=self.request_timeout_s,
                )
                if len(route.points) < 2:
                    raise DegenerateGeometry(req.link_id, len(route.points))
                points = anchor_endpoints(route.points, req.source, req.target)
                record = self.store.upsert_computed(
                    req.link_id, points, provider=route.provider, keep_manual=keep_manual
                )
            except asyncio.TimeoutError:
                error = ProviderTimeout(
                    f"No route within {self.request_timeout_s}s",
                    getattr(self.provider, "name", None),
                )
            except (ProviderError, DegenerateGeometry) as e:
                error = e
            except Exception as e:
                # Unexpected provider bug: still isolated to this link
                logger.exception("route_unexpected_error", link_id=req.link_id)
                error = e
            else:
                if record.state == PathState.MANUALLY_EDITED:
                    return _LinkOutcome(req.link_id, "skipped")
                logger.debug(
                    "route_succeeded",
                    link_id=req.link_id,
                    provider=route.provider,
                    points=len(record.points),
                    distance_m=round(record.distance_meters, 1),
                )
                return _LinkOutcome(req.link_id, "succeeded")

        logger.warning("route_failed", link_id=req.link_id, error=str(error))
        record = self.store.upsert_fallback(
            req.link_id, straight_line(req.source, req.target), keep_manual=keep_manual
        )
        if record.state == PathState.MANUALLY_EDITED:
            return _LinkOutcome(req.link_id, "skipped")
        return _LinkOutcome(req.link_id, "failed", str(error))
