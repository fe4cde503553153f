"""Integration tests for the engine facade."""

import pytest

from linkpath.engine import PathEngine
from linkpath.errors import LinkNotFound, ProviderUnavailable
from linkpath.models.geo import Coordinate
from linkpath.models.link_path import PathState
from linkpath.models.settings import EngineSettings
from linkpath.topology import LinkTopology, TopologyLink


def c(lat, lon):
    return Coordinate(lat=lat, lon=lon)


def build_topology(nodes, link_ids=("A", "B")):
    pairs = {"A": ("n1", "n2"), "B": ("n3", "n4"), "C": ("n5", "n2")}
    links = [
        TopologyLink(link_id=lid, source_node_id=pairs[lid][0], target_node_id=pairs[lid][1])
        for lid in link_ids
    ]
    return LinkTopology(links, nodes)


@pytest.fixture
def engine(make_provider):
    return PathEngine(provider=make_provider())


class TestComputation:
    """Batch and topology computation through the engine."""

    @pytest.mark.asyncio
    async def test_compute_batch(self, engine, abc_links):
        result = await engine.compute_batch(abc_links)
        assert result.succeeded == ["A", "B", "C"]
        assert len(engine.list_paths(PathState.COMPUTED_BY_PROVIDER)) == 3

    @pytest.mark.asyncio
    async def test_failures_reported(self, make_provider, abc_links, nodes):
        provider = make_provider(failures={nodes["n5"]: ProviderUnavailable("down", "scripted")})
        engine = PathEngine(provider=provider)
        result = await engine.compute_batch(abc_links)

        assert result.failed == ["C"]
        assert engine.list_paths(PathState.FALLBACK_STRAIGHT)[0].link_id == "C"

    @pytest.mark.asyncio
    async def test_compute_topology(self, engine, nodes):
        topology = build_topology(nodes)
        result = await engine.compute_topology(topology)
        assert result.succeeded == ["A", "B"]

    @pytest.mark.asyncio
    async def test_settings_drive_concurrency(self, make_provider):
        settings = EngineSettings.model_validate({"routing": {"max_concurrency": 2}})
        engine = PathEngine(settings, provider=make_provider())
        assert engine.computation.max_concurrency == 2

    def test_link_budget_covers_every_provider_attempt(self, make_provider):
        settings = EngineSettings.model_validate(
            {"routing": {"providers": ["osrm", "mapbox"], "request_timeout_s": 4.0}}
        )
        engine = PathEngine(settings, provider=make_provider())
        assert settings.routing.link_timeout_s == 9.0
        assert engine.computation.request_timeout_s == 9.0


class TestTopologySync:
    """Keeping the store aligned with the topology."""

    def test_sync_creates_and_removes(self, engine, nodes):
        engine.store.ensure_exists("gone", nodes["n1"], nodes["n5"])
        result = engine.sync_topology(build_topology(nodes))

        assert result == {"created": ["A", "B"], "removed": ["gone"]}
        assert engine.get_path("A").state == PathState.UNCOMPUTED
        with pytest.raises(LinkNotFound):
            engine.get_path("gone")

    def test_sync_is_idempotent(self, engine, nodes):
        topology = build_topology(nodes)
        engine.sync_topology(topology)
        assert engine.sync_topology(topology) == {"created": [], "removed": []}

    @pytest.mark.asyncio
    async def test_stale_links_after_node_move(self, engine, nodes):
        await engine.compute_topology(build_topology(nodes))

        moved = dict(nodes)
        moved["n4"] = c(-33.95, 151.30)
        stale = engine.stale_links(build_topology(moved))

        assert stale == ["B"]

    @pytest.mark.asyncio
    async def test_reset_stale_link_from_topology(self, engine, nodes):
        await engine.compute_topology(build_topology(nodes))
        moved = dict(nodes)
        moved["n4"] = c(-33.95, 151.30)

        path = engine.reset_to_straight("B", topology=build_topology(moved))

        assert list(path.points) == [nodes["n3"], moved["n4"]]
        assert engine.stale_links(build_topology(moved)) == []


class TestEditing:
    """Editing through the engine."""

    @pytest.mark.asyncio
    async def test_edit_then_recompute_keeps_edit(self, engine, abc_links):
        await engine.compute_batch(abc_links)
        edited = engine.insert_point("A", c(-33.85, 151.215))

        result = await engine.compute_batch(abc_links)

        assert result.skipped == ["A"]
        assert engine.get_path("A") == edited

    @pytest.mark.asyncio
    async def test_reset_defaults_to_stored_endpoints(self, engine, abc_links, nodes):
        await engine.compute_batch(abc_links)
        path = engine.reset_to_straight("A")
        assert list(path.points) == [nodes["n1"], nodes["n2"]]
        assert path.state == PathState.FALLBACK_STRAIGHT

    def test_reset_unknown_link(self, engine):
        with pytest.raises(LinkNotFound):
            engine.reset_to_straight("missing")

    @pytest.mark.asyncio
    async def test_move_and_remove(self, engine, abc_links):
        await engine.compute_batch(abc_links)
        moved = engine.move_point("A", 1, c(-33.84, 151.215))
        assert moved.points[1] == c(-33.84, 151.215)

        removed = engine.remove_point("A", 1)
        assert removed.is_straight
        assert removed.state == PathState.MANUALLY_EDITED

    @pytest.mark.asyncio
    async def test_remove_link(self, engine, abc_links):
        await engine.compute_batch(abc_links)
        engine.remove_link("B")
        assert [p.link_id for p in engine.list_paths()] == ["A", "C"]


class TestExportAndPersistence:
    """GeoJSON export, provider stats, save/load."""

    @pytest.mark.asyncio
    async def test_export_geojson(self, engine, abc_links):
        await engine.compute_batch(abc_links)
        fc = engine.export_geojson([PathState.COMPUTED_BY_PROVIDER])
        assert fc["properties"]["num_links"] == 3

    def test_provider_stats_without_counters(self, engine):
        assert engine.provider_stats() == {}

    def test_save_requires_path(self, engine):
        with pytest.raises(ValueError):
            engine.save()

    @pytest.mark.asyncio
    async def test_save_and_load(self, engine, make_provider, abc_links, tmp_path):
        await engine.compute_batch(abc_links)
        engine.insert_point("A", c(-33.85, 151.215))
        path = engine.save(tmp_path / "paths.json")

        other = PathEngine(provider=make_provider())
        assert other.load(path) == 3
        assert other.get_path("A").state == PathState.MANUALLY_EDITED

    @pytest.mark.asyncio
    async def test_from_config_loads_store(self, engine, make_provider, abc_links, tmp_path):
        await engine.compute_batch(abc_links)
        store_file = tmp_path / "paths.json"
        engine.save(store_file)

        loaded = PathEngine.from_config(
            "default",
            override={"store_path": str(store_file)},
            provider=make_provider(),
        )
        assert len(loaded.list_paths()) == 3

    @pytest.mark.asyncio
    async def test_from_config_missing_store_starts_empty(self, make_provider, tmp_path):
        loaded = PathEngine.from_config(
            "default",
            override={"store_path": str(tmp_path / "absent.json")},
            provider=make_provider(),
        )
        assert loaded.list_paths() == []
        await loaded.aclose()
