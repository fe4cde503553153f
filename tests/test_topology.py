"""Tests for resolving topology links into route requests."""

import pytest

from linkpath.models.geo import Coordinate
from linkpath.topology import LinkTopology, TopologyLink


@pytest.fixture
def topology(nodes):
    links = [
        TopologyLink(link_id="A", source_node_id="n1", target_node_id="n2"),
        TopologyLink(link_id="B", source_node_id="n3", target_node_id="n4"),
        # Parallel link between the same nodes as A
        TopologyLink(link_id="A2", source_node_id="n1", target_node_id="n2"),
        # n9 has no coordinate
        TopologyLink(link_id="D", source_node_id="n4", target_node_id="n9"),
    ]
    return LinkTopology(links, nodes)


class TestLinkTopology:
    """Topology graph and request resolution."""

    def test_link_ids_keep_order(self, topology):
        assert topology.link_ids() == ["A", "B", "A2", "D"]

    def test_parallel_links_kept_apart(self, topology):
        assert topology.graph.number_of_edges("n1", "n2") == 2

    def test_endpoints(self, topology, nodes):
        source, target = topology.endpoints("B")
        assert source.node_id == "n3"
        assert source.coordinate == nodes["n3"]
        assert target.node_id == "n4"

    def test_endpoints_unknown_link(self, topology):
        assert topology.endpoints("missing") is None

    def test_requests_skip_unpositioned_nodes(self, topology, nodes):
        requests = topology.requests()
        assert [r.link_id for r in requests] == ["A", "B", "A2"]
        assert requests[0].source == nodes["n1"]
        assert requests[0].target == nodes["n2"]

    def test_requests_for_subset(self, topology):
        assert [r.link_id for r in topology.requests(["B", "A"])] == ["B", "A"]

    def test_unresolved_links(self, topology):
        assert topology.unresolved_links() == ["D"]

    def test_links_at_node(self, topology):
        assert sorted(topology.links_at_node("n1")) == ["A", "A2"]
        assert sorted(topology.links_at_node("n4")) == ["B", "D"]
        assert topology.links_at_node("unknown") == []

    def test_from_records(self):
        topology = LinkTopology.from_records(
            [{"link_id": "L1", "source_node_id": "a", "target_node_id": "b"}],
            {"a": [0.0, 0.0], "b": (0.0, 1.0)},
        )
        (request,) = topology.requests()
        assert request.link_id == "L1"
        assert request.target == Coordinate(lat=0.0, lon=1.0)

    def test_from_records_rejects_bad_coordinates(self):
        with pytest.raises(ValueError):
            LinkTopology.from_records(
                [{"link_id": "L1", "source_node_id": "a", "target_node_id": "b"}],
                {"a": [100.0, 0.0], "b": [0.0, 1.0]},
            )
