"""Link path engine facade.

Wires the path store, routing provider stack, batch computation service
and path editor together from one EngineSettings instance. This is the
object the operator surface (MCP tools / REST API) talks to.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from .config.loader import load_settings
from .export.geojson import paths_to_feature_collection
from .geometry.geodesy import endpoints_match
from .models.batch import BatchResult
from .models.geo import Coordinate
from .models.link_path import LinkPath, PathState
from .models.settings import EngineSettings
from .routing.factory import build_provider
from .routing.provider import RouteProvider
from .services.computation import LinkInput, RouteComputationService
from .services.editor import PathEditor
from .store.path_store import PathStore
from .topology import LinkTopology

logger = logging.getLogger(__name__)


class PathEngine:
    """Path store, routing, and editing behind one interface."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        provider: Optional[RouteProvider] = None,
        store: Optional[PathStore] = None,
    ):
        """Initialize engine.

        Args:
            settings: Engine settings (defaults if None)
            provider: Routing provider (built from settings if None)
            store: Path store (new empty store if None)
        """
        self.settings = settings or EngineSettings()
        self.store = store or PathStore()
        self.provider = provider or build_provider(self.settings.routing)
        self.computation = RouteComputationService(
            self.store,
            self.provider,
            max_concurrency=self.settings.routing.max_concurrency,
            request_timeout_s=self.settings.routing.link_timeout_s,
        )
        self.editor = PathEditor(self.store)

    @classmethod
    def from_config(
        cls,
        name: str = "default",
        override: dict | None = None,
        provider: Optional[RouteProvider] = None,
    ) -> "PathEngine":
        """Create an engine from a named YAML configuration.

        Loads persisted paths when ``store_path`` is configured and exists.
        """
        settings = load_settings(name, override)
        engine = cls(settings, provider=provider)
        if settings.store_path and Path(settings.store_path).exists():
            engine.load()
        return engine

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    async def compute_batch(self, links: Iterable[LinkInput], force: bool = False) -> BatchResult:
        """Route a batch of links; see RouteComputationService.compute_batch."""
        result = await self.computation.compute_batch(links, force=force)
        warning = result.warning_message()
        if warning:
            logger.warning(warning)
        return result

    async def compute_topology(
        self,
        topology: LinkTopology,
        link_ids: Iterable[str] | None = None,
        force: bool = False,
    ) -> BatchResult:
        """Route links of a topology whose nodes are positioned."""
        return await self.compute_batch(topology.requests(link_ids), force=force)

    def sync_topology(self, topology: LinkTopology) -> dict[str, list[str]]:
        """Align the store with the topology's current link set.

        Creates straight-line records for new links and removes records of
        links the topology no longer has.

        Returns:
            Dict with 'created' and 'removed' link IDs
        """
        created = []
        for req in topology.requests():
            if req.link_id not in self.store:
                self.store.ensure_exists(req.link_id, req.source, req.target)
                created.append(req.link_id)

        current = set(topology.link_ids())
        removed = []
        for link_id in self.store.link_ids():
            if link_id not in current:
                self.store.remove(link_id)
                removed.append(link_id)

        if created or removed:
            logger.info(f"Topology sync: {len(created)} created, {len(removed)} removed")
        return {"created": created, "removed": removed}

    def stale_links(self, topology: LinkTopology) -> list[str]:
        """Links whose stored path no longer reaches its nodes' positions."""
        tolerance = self.settings.editor.endpoint_tolerance_m
        stale = []
        for req in topology.requests():
            path = self.store.find(req.link_id)
            if path is None:
                continue
            if not endpoints_match(path.points, req.source, req.target, tolerance):
                stale.append(req.link_id)
        return stale

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def insert_point(self, link_id: str, point: Coordinate) -> LinkPath:
        return self.editor.insert_point(link_id, point)

    def insert_point_at(self, link_id: str, index: int, point: Coordinate) -> LinkPath:
        return self.editor.insert_point_at(link_id, index, point)

    def remove_point(self, link_id: str, index: int) -> LinkPath:
        return self.editor.remove_point(link_id, index)

    def move_point(self, link_id: str, index: int, point: Coordinate) -> LinkPath:
        return self.editor.move_point(link_id, index, point)

    def reset_to_straight(
        self,
        link_id: str,
        source: Coordinate | None = None,
        target: Coordinate | None = None,
        topology: LinkTopology | None = None,
    ) -> LinkPath:
        """Reset a link to a straight line.

        Endpoints come from ``source``/``target`` when given, else from
        ``topology``, else from the stored path's first and last points.
        """
        if source is None or target is None:
            ends = topology.endpoints(link_id) if topology is not None else None
            if ends is not None:
                source, target = ends[0].coordinate, ends[1].coordinate
            else:
                current = self.store.get(link_id)
                source, target = current.source, current.target
        return self.editor.reset_to_straight(link_id, source, target)

    # ------------------------------------------------------------------
    # Reads and export
    # ------------------------------------------------------------------

    def get_path(self, link_id: str) -> LinkPath:
        return self.store.get(link_id)

    def list_paths(self, state: PathState | None = None) -> list[LinkPath]:
        paths = self.store.all()
        if state is not None:
            paths = [p for p in paths if p.state == state]
        return paths

    def remove_link(self, link_id: str) -> LinkPath:
        return self.store.remove(link_id)

    def export_geojson(self, states: Iterable[PathState] | None = None) -> dict[str, Any]:
        return paths_to_feature_collection(self.store.all(), states=states)

    def provider_stats(self) -> dict[str, Any]:
        get_stats = getattr(self.provider, "get_stats", None)
        if get_stats is None:
            return {}
        return get_stats()

    # ------------------------------------------------------------------
    # Persistence and lifecycle
    # ------------------------------------------------------------------

    def save(self, path: str | Path | None = None) -> Path:
        """Persist all paths to ``path`` or the configured ``store_path``."""
        target = path or self.settings.store_path
        if not target:
            raise ValueError("No store path configured")
        return self.store.save(target)

    def load(self, path: str | Path | None = None) -> int:
        """Load paths from ``path`` or the configured ``store_path``."""
        source = path or self.settings.store_path
        if not source:
            raise ValueError("No store path configured")
        return self.store.load(source)

    async def aclose(self) -> None:
        close = getattr(self.provider, "aclose", None)
        if close is not None:
            await close()


