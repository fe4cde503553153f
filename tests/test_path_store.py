"""Tests for the path table, its state machine, and persistence."""

import json

import pytest

from linkpath.errors import DegenerateGeometry, LinkNotFound
from linkpath.geometry import path_length
from linkpath.models.geo import Coordinate
from linkpath.models.link_path import LinkPath, PathState
from linkpath.store.path_store import PathStore


def c(lat, lon):
    return Coordinate(lat=lat, lon=lon)


SRC = c(-33.8688, 151.2093)
TGT = c(-33.8700, 151.2200)
BEND = c(-33.8650, 151.2150)


class TestLinkPathModel:
    """Record invariants enforced by the model."""

    def test_build_derives_distance(self):
        path = LinkPath.build("L1", [SRC, BEND, TGT], PathState.COMPUTED_BY_PROVIDER)
        assert path.distance_meters == path_length([SRC, BEND, TGT])
        assert path.source == SRC
        assert path.target == TGT
        assert not path.is_straight

    def test_inconsistent_distance_rejected(self):
        with pytest.raises(ValueError):
            LinkPath(link_id="L1", points=(SRC, TGT), distance_meters=1.0)

    def test_singleton_points_rejected(self):
        with pytest.raises(ValueError):
            LinkPath(link_id="L1", points=(SRC,), distance_meters=0.0)

    def test_accepts_lat_lon_pairs(self):
        path = LinkPath.build("L1", [(0.0, 0.0), (0.0, 1.0)], PathState.FALLBACK_STRAIGHT)
        assert path.points[1] == c(0.0, 1.0)

    def test_records_are_immutable(self):
        path = LinkPath.build("L1", [SRC, TGT], PathState.UNCOMPUTED)
        with pytest.raises(ValueError):
            path.state = PathState.MANUALLY_EDITED


class TestStateMachine:
    """Transitions between path states."""

    def test_ensure_exists_creates_uncomputed_straight_line(self, store):
        path = store.ensure_exists("L1", SRC, TGT)
        assert path.state == PathState.UNCOMPUTED
        assert list(path.points) == [SRC, TGT]
        assert store.get("L1") is path

    def test_ensure_exists_is_idempotent(self, store):
        store.ensure_exists("L1", SRC, TGT)
        computed = store.upsert_computed("L1", [SRC, BEND, TGT], provider="osrm")
        again = store.ensure_exists("L1", SRC, TGT)
        assert again is computed
        assert len(store) == 1

    def test_upsert_computed(self, store):
        path = store.upsert_computed("L1", [SRC, BEND, TGT], provider="osrm")
        assert path.state == PathState.COMPUTED_BY_PROVIDER
        assert path.provider == "osrm"
        assert path.distance_meters == path_length([SRC, BEND, TGT])

    def test_upsert_fallback(self, store):
        path = store.upsert_fallback("L1", [SRC, TGT])
        assert path.state == PathState.FALLBACK_STRAIGHT
        assert path.provider is None

    def test_manual_edit_requires_existing_link(self, store):
        with pytest.raises(LinkNotFound):
            store.apply_manual_edit("missing", [SRC, TGT])

    def test_manual_edit(self, store):
        store.ensure_exists("L1", SRC, TGT)
        path = store.apply_manual_edit("L1", [SRC, BEND, TGT])
        assert path.state == PathState.MANUALLY_EDITED

    def test_keep_manual_leaves_edit_untouched(self, store):
        store.ensure_exists("L1", SRC, TGT)
        edited = store.apply_manual_edit("L1", [SRC, BEND, TGT])

        computed = store.upsert_computed("L1", [SRC, TGT], keep_manual=True)
        fallback = store.upsert_fallback("L1", [SRC, TGT], keep_manual=True)

        assert computed is edited
        assert fallback is edited
        assert store.get("L1").state == PathState.MANUALLY_EDITED

    def test_without_keep_manual_edit_is_overwritten(self, store):
        store.ensure_exists("L1", SRC, TGT)
        store.apply_manual_edit("L1", [SRC, BEND, TGT])
        path = store.upsert_computed("L1", [SRC, TGT], provider="osrm")
        assert path.state == PathState.COMPUTED_BY_PROVIDER

    def test_reset_to_straight_from_any_state(self, store):
        store.ensure_exists("L1", SRC, TGT)
        store.apply_manual_edit("L1", [SRC, BEND, TGT])
        path = store.reset_to_straight("L1", SRC, TGT)
        assert path.state == PathState.FALLBACK_STRAIGHT
        assert list(path.points) == [SRC, TGT]


class TestDegenerateGeometry:
    """Writes with fewer than two points are rejected."""

    @pytest.mark.parametrize("points", [[], [SRC]])
    def test_rejected_and_prior_record_kept(self, store, points):
        prior = store.upsert_computed("L1", [SRC, BEND, TGT])
        with pytest.raises(DegenerateGeometry):
            store.upsert_computed("L1", points)
        assert store.get("L1") is prior

    def test_manual_edit_rejected(self, store):
        prior = store.ensure_exists("L1", SRC, TGT)
        with pytest.raises(DegenerateGeometry) as exc_info:
            store.apply_manual_edit("L1", [SRC])
        assert exc_info.value.point_count == 1
        assert store.get("L1") is prior

    def test_is_a_value_error(self):
        assert issubclass(DegenerateGeometry, ValueError)


class TestReadsAndRemoval:
    """Lookup and deletion."""

    def test_get_missing_raises(self, store):
        with pytest.raises(LinkNotFound) as exc_info:
            store.get("missing")
        assert str(exc_info.value) == "Link 'missing' not found"

    def test_link_not_found_is_key_error(self, store):
        with pytest.raises(KeyError):
            store.get("missing")

    def test_find_missing_returns_none(self, store):
        assert store.find("missing") is None

    def test_remove(self, store):
        store.ensure_exists("L1", SRC, TGT)
        removed = store.remove("L1")
        assert removed.link_id == "L1"
        assert "L1" not in store
        with pytest.raises(LinkNotFound):
            store.remove("L1")

    def test_iteration_and_ids(self, store):
        store.ensure_exists("L1", SRC, TGT)
        store.ensure_exists("L2", TGT, SRC)
        assert store.link_ids() == ["L1", "L2"]
        assert [p.link_id for p in store] == ["L1", "L2"]

    def test_clear(self, store):
        store.ensure_exists("L1", SRC, TGT)
        store.clear()
        assert len(store) == 0


class TestPersistence:
    """JSON snapshot save/load."""

    def test_save_and_load(self, store, tmp_path):
        store.upsert_computed("L1", [SRC, BEND, TGT], provider="osrm")
        store.ensure_exists("L2", TGT, SRC)
        store.apply_manual_edit("L2", [TGT, BEND, SRC])

        path = store.save(tmp_path / "nested" / "paths.json")
        assert path.exists()

        loaded = PathStore()
        assert loaded.load(path) == 2
        assert loaded.get("L1").state == PathState.COMPUTED_BY_PROVIDER
        assert loaded.get("L1").provider == "osrm"
        assert loaded.get("L2").state == PathState.MANUALLY_EDITED
        assert list(loaded.get("L2").points) == [TGT, BEND, SRC]
        assert loaded.get("L1").distance_meters == store.get("L1").distance_meters

    def test_saved_file_is_keyed_by_link(self, store, tmp_path):
        store.ensure_exists("L1", SRC, TGT)
        path = store.save(tmp_path / "paths.json")
        data = json.loads(path.read_text())
        assert list(data) == ["L1"]
        assert data["L1"]["state"] == "uncomputed"

    def test_restore_rejects_mismatched_key(self, store):
        snapshot = PathStore()
        snapshot.ensure_exists("L1", SRC, TGT)
        data = {"other": snapshot.snapshot()["L1"]}
        with pytest.raises(ValueError):
            store.restore(data)
        assert len(store) == 0
