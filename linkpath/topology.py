"""Topology adapter: links and node positions supplied by the map collaborator.

The engine never creates or deletes nodes or links. This module turns the
collaborator's link list and node coordinate lookup into route requests.
"""

import logging
from typing import Iterable, Mapping

import networkx as nx
from pydantic import BaseModel, ConfigDict, Field

from .models.batch import LinkRouteRequest
from .models.geo import Coordinate, LinkEndpoint

logger = logging.getLogger(__name__)


class TopologyLink(BaseModel):
    """A network link as known to the topology store."""

    model_config = ConfigDict(frozen=True)

    link_id: str = Field(..., description="Link identifier")
    source_node_id: str = Field(..., description="Source node identifier")
    target_node_id: str = Field(..., description="Target node identifier")


class LinkTopology:
    """Links and node coordinates held as a networkx MultiGraph.

    Parallel links between the same pair of nodes are kept apart by using
    the link ID as the edge key.
    """

    def __init__(
        self,
        links: Iterable[TopologyLink],
        node_coordinates: Mapping[str, Coordinate],
    ):
        """Build topology graph.

        Args:
            links: Links from the topology store
            node_coordinates: Node ID -> current coordinate
        """
        self.graph = nx.MultiGraph()
        self._links: dict[str, TopologyLink] = {}
        for node_id, coord in node_coordinates.items():
            self.graph.add_node(node_id, coordinate=coord)

        for link in links:
            self._links[link.link_id] = link
            self.graph.add_edge(
                link.source_node_id,
                link.target_node_id,
                key=link.link_id,
                source=link.source_node_id,
                target=link.target_node_id,
            )

    @classmethod
    def from_records(
        cls,
        links: Iterable[dict],
        nodes: Mapping[str, tuple[float, float] | Coordinate],
    ) -> "LinkTopology":
        """Build from plain dicts, e.g. a JSON payload.

        Args:
            links: Dicts with link_id, source_node_id, target_node_id
            nodes: Node ID -> (lat, lon) pair or Coordinate
        """
        return cls(
            [TopologyLink(**link) for link in links],
            {node_id: Coordinate.model_validate(c) for node_id, c in nodes.items()},
        )

    def link_ids(self) -> list[str]:
        return list(self._links)

    def coordinate(self, node_id: str) -> Coordinate | None:
        if node_id not in self.graph:
            return None
        return self.graph.nodes[node_id].get("coordinate")

    def endpoints(self, link_id: str) -> tuple[LinkEndpoint, LinkEndpoint] | None:
        """Source and target endpoints of a link.

        Returns:
            Tuple of (source, target), or None if the link is unknown or a
            node has no coordinate
        """
        link = self._links.get(link_id)
        if link is None:
            return None
        source_coord = self.coordinate(link.source_node_id)
        target_coord = self.coordinate(link.target_node_id)
        if source_coord is None or target_coord is None:
            return None
        return (
            LinkEndpoint(node_id=link.source_node_id, coordinate=source_coord),
            LinkEndpoint(node_id=link.target_node_id, coordinate=target_coord),
        )

    def requests(self, link_ids: Iterable[str] | None = None) -> list[LinkRouteRequest]:
        """Route requests for links whose endpoints are both positioned.

        Args:
            link_ids: Restrict to these links (default: all links)

        Returns:
            Requests in link order (or ``link_ids`` order)
        """
        wanted = list(link_ids) if link_ids is not None else self.link_ids()
        requests = []
        for link_id in wanted:
            ends = self.endpoints(link_id)
            if ends is None:
                continue
            source, target = ends
            requests.append(LinkRouteRequest(
                link_id=link_id,
                source=source.coordinate,
                target=target.coordinate,
            ))
        return requests

    def unresolved_links(self) -> list[str]:
        """Links that cannot be routed because a node has no coordinate."""
        unresolved = [lid for lid in self.link_ids() if self.endpoints(lid) is None]
        if unresolved:
            logger.warning(f"{len(unresolved)} links have nodes without coordinates")
        return unresolved

    def links_at_node(self, node_id: str) -> list[str]:
        """Links touching a node, e.g. to recompute after the node moves."""
        if node_id not in self.graph:
            return []
        keys = [key for _, _, key in self.graph.edges(node_id, keys=True)]
        return list(dict.fromkeys(keys))
