"""Canonical table of link path records.

Every write targets exactly one link and swaps in a freshly built
immutable ``LinkPath``, so readers see either the old record or the new
one, never a half-updated ``points``/``distance_meters`` pair.
"""

import json
import threading
from pathlib import Path
from typing import Any, Iterator, Sequence

import structlog

from ..errors import DegenerateGeometry, LinkNotFound
from ..geometry.geodesy import straight_line
from ..models.geo import Coordinate
from ..models.link_path import LinkPath, PathState

logger = structlog.get_logger(__name__)


class PathStore:
    """In-memory path table with optional JSON persistence."""

    def __init__(self) -> None:
        self._paths: dict[str, LinkPath] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, link_id: str) -> LinkPath:
        """Get the path record for a link.

        Raises:
            LinkNotFound: If the link has no record
        """
        path = self._paths.get(link_id)
        if path is None:
            raise LinkNotFound(link_id)
        return path

    def find(self, link_id: str) -> LinkPath | None:
        """Get the path record for a link, or None."""
        return self._paths.get(link_id)

    def link_ids(self) -> list[str]:
        with self._lock:
            return list(self._paths)

    def all(self) -> list[LinkPath]:
        with self._lock:
            return list(self._paths.values())

    def __contains__(self, link_id: object) -> bool:
        return link_id in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self) -> Iterator[LinkPath]:
        return iter(self.all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _write(
        self,
        link_id: str,
        points: Sequence[Coordinate],
        state: PathState,
        provider: str | None = None,
        require_existing: bool = False,
        keep_manual: bool = False,
    ) -> LinkPath:
        if len(points) < 2:
            raise DegenerateGeometry(link_id, len(points))

        record = LinkPath.build(link_id, points, state, provider=provider)
        with self._lock:
            current = self._paths.get(link_id)
            if require_existing and current is None:
                raise LinkNotFound(link_id)
            if keep_manual and current is not None and current.state == PathState.MANUALLY_EDITED:
                return current
            self._paths[link_id] = record
        return record

    def upsert_computed(
        self,
        link_id: str,
        points: Sequence[Coordinate],
        provider: str | None = None,
        keep_manual: bool = False,
    ) -> LinkPath:
        """Store a provider-computed road path.

        Args:
            link_id: Link identifier
            points: Route points, source first
            provider: Name of the provider that produced the route
            keep_manual: Leave a manually edited record untouched and return it

        Raises:
            DegenerateGeometry: If fewer than 2 points are given (record unchanged)
        """
        return self._write(
            link_id,
            points,
            PathState.COMPUTED_BY_PROVIDER,
            provider=provider,
            keep_manual=keep_manual,
        )

    def upsert_fallback(
        self,
        link_id: str,
        straight_points: Sequence[Coordinate],
        keep_manual: bool = False,
    ) -> LinkPath:
        """Store a straight-line path after a failed route computation."""
        return self._write(
            link_id, straight_points, PathState.FALLBACK_STRAIGHT, keep_manual=keep_manual
        )

    def apply_manual_edit(self, link_id: str, points: Sequence[Coordinate]) -> LinkPath:
        """Store an operator-edited path.

        Raises:
            LinkNotFound: If the link has no record
            DegenerateGeometry: If fewer than 2 points are given (record unchanged)
        """
        return self._write(
            link_id, points, PathState.MANUALLY_EDITED, require_existing=True
        )

    def reset_to_straight(
        self,
        link_id: str,
        source: Coordinate,
        target: Coordinate,
    ) -> LinkPath:
        """Replace a link's path with the direct line between its endpoints."""
        return self._write(
            link_id, straight_line(source, target), PathState.FALLBACK_STRAIGHT
        )

    def ensure_exists(
        self,
        link_id: str,
        source: Coordinate,
        target: Coordinate,
    ) -> LinkPath:
        """Create an uncomputed straight-line record if the link is new.

        Existing records are returned unchanged.
        """
        with self._lock:
            existing = self._paths.get(link_id)
            if existing is not None:
                return existing
            record = LinkPath.build(
                link_id, straight_line(source, target), PathState.UNCOMPUTED
            )
            self._paths[link_id] = record
            return record

    def remove(self, link_id: str) -> LinkPath:
        """Drop a link's record when the link is deleted from the topology.

        Raises:
            LinkNotFound: If the link has no record
        """
        with self._lock:
            record = self._paths.pop(link_id, None)
        if record is None:
            raise LinkNotFound(link_id)
        return record

    def clear(self) -> None:
        with self._lock:
            self._paths.clear()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Serializable copy of every record, keyed by link ID."""
        with self._lock:
            records = list(self._paths.values())
        return {r.link_id: r.model_dump(mode="json") for r in records}

    def restore(self, data: dict[str, Any]) -> int:
        """Replace the table with records from ``snapshot`` output.

        All records are validated before any is installed.

        Returns:
            Number of records loaded
        """
        records = {link_id: LinkPath.model_validate(raw) for link_id, raw in data.items()}
        for link_id, record in records.items():
            if record.link_id != link_id:
                raise ValueError(
                    f"Snapshot key '{link_id}' does not match record link_id '{record.link_id}'"
                )
        with self._lock:
            self._paths = records
        return len(records)

    def save(self, path: str | Path) -> Path:
        """Write all records to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.snapshot()
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
        logger.info("path_store_saved", path=str(path), records=len(data))
        return path

    def load(self, path: str | Path) -> int:
        """Load records from a JSON file written by ``save``."""
        path = Path(path)
        with open(path) as f:
            data = json.load(f)
        count = self.restore(data)
        logger.info("path_store_loaded", path=str(path), records=count)
        return count
