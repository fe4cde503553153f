"""Operator edits to a single link's path."""

import logging

from ..errors import InvalidPointIndex
from ..geometry.segments import best_insertion_index
from ..models.geo import Coordinate
from ..models.link_path import LinkPath
from ..store.path_store import PathStore

logger = logging.getLogger(__name__)


class PathEditor:
    """Manual editing operations on PathStore records.

    Endpoints (index 0 and the last index) belong to the link's nodes, so
    only interior points can be moved or removed. Every successful edit
    leaves the record in the ``manually_edited`` state except
    ``reset_to_straight``.
    """

    def __init__(self, store: PathStore):
        self.store = store

    def insert_point(self, link_id: str, new_point: Coordinate) -> LinkPath:
        """Insert a point into the segment nearest to it.

        Not idempotent: every call adds one point.

        Raises:
            LinkNotFound: If the link has no record
        """
        points = list(self.store.get(link_id).points)
        index = best_insertion_index(points, new_point)
        points.insert(index, new_point)
        logger.debug(f"Inserted point into {link_id} at index {index}")
        return self.store.apply_manual_edit(link_id, points)

    def insert_point_at(self, link_id: str, index: int, new_point: Coordinate) -> LinkPath:
        """Insert a point at an explicit position between the endpoints.

        Raises:
            LinkNotFound: If the link has no record
            InvalidPointIndex: If index is not in 1..len(points)-1
        """
        points = list(self.store.get(link_id).points)
        if not 1 <= index <= len(points) - 1:
            raise InvalidPointIndex(
                link_id, index, f"insert position must be between 1 and {len(points) - 1}"
            )
        points.insert(index, new_point)
        return self.store.apply_manual_edit(link_id, points)

    def remove_point(self, link_id: str, index: int) -> LinkPath:
        """Remove an interior point.

        Raises:
            LinkNotFound: If the link has no record
            InvalidPointIndex: If index is an endpoint or out of range
        """
        points = list(self.store.get(link_id).points)
        self._check_interior(link_id, index, len(points))
        del points[index]
        return self.store.apply_manual_edit(link_id, points)

    def move_point(self, link_id: str, index: int, new_position: Coordinate) -> LinkPath:
        """Move an interior point to a new position.

        Raises:
            LinkNotFound: If the link has no record
            InvalidPointIndex: If index is an endpoint or out of range
        """
        points = list(self.store.get(link_id).points)
        self._check_interior(link_id, index, len(points))
        points[index] = new_position
        return self.store.apply_manual_edit(link_id, points)

    def reset_to_straight(
        self,
        link_id: str,
        source: Coordinate,
        target: Coordinate,
    ) -> LinkPath:
        """Discard the path and draw a direct line between the endpoints.

        Endpoints come from the caller; the editor does not own node
        positions. Idempotent.

        Raises:
            LinkNotFound: If the link has no record
        """
        self.store.get(link_id)
        return self.store.reset_to_straight(link_id, source, target)

    @staticmethod
    def _check_interior(link_id: str, index: int, count: int) -> None:
        if count <= 2:
            raise InvalidPointIndex(link_id, index, "straight path has no interior points")
        if not 1 <= index <= count - 2:
            raise InvalidPointIndex(
                link_id, index, f"interior points are 1..{count - 2}"
            )
