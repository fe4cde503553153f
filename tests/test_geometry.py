"""Tests for great-circle distance and planar segment helpers."""

import pytest

from linkpath.geometry import (
    EARTH_RADIUS_M,
    best_insertion_index,
    distance,
    distance_to_segment,
    endpoints_match,
    path_length,
    project_onto_segment,
    straight_line,
)
from linkpath.models.geo import Coordinate


def c(lat, lon):
    return Coordinate(lat=lat, lon=lon)


class TestDistance:
    """Haversine distance."""

    def test_one_degree_of_longitude_at_equator(self):
        """(0,0) to (0,1) is about 111,195 m."""
        d = distance(c(0, 0), c(0, 1))
        assert d == pytest.approx(111_195, rel=0.01)

    def test_matches_arc_length_formula(self):
        d = distance(c(0, 0), c(0, 1))
        assert d == pytest.approx(2 * 3.141592653589793 * EARTH_RADIUS_M / 360, rel=1e-9)

    def test_same_point_is_zero(self):
        assert distance(c(-33.87, 151.21), c(-33.87, 151.21)) == 0.0

    def test_symmetric(self):
        a, b = c(-33.87, 151.21), c(-37.81, 144.96)
        assert distance(a, b) == pytest.approx(distance(b, a))

    def test_antipodal_pairs(self):
        """Near-antipodal points give half the circumference, never a domain error."""
        half_circumference = 3.141592653589793 * EARTH_RADIUS_M
        for step in range(-180, 181):
            lat = step * 0.5
            d = distance(c(lat, 0.0), c(-lat, 180.0))
            assert d == pytest.approx(half_circumference, rel=1e-6)

    def test_sydney_to_melbourne(self):
        """Roughly 714 km great-circle."""
        d = distance(c(-33.8688, 151.2093), c(-37.8136, 144.9631))
        assert d == pytest.approx(714_000, rel=0.01)


class TestPathLength:
    """Path length is the plain sum of pairwise distances."""

    def test_exact_additivity(self):
        a, b, d = c(0, 0), c(0, 1), c(1, 1)
        assert path_length([a, b, d]) == distance(a, b) + distance(b, d)

    def test_fewer_than_two_points_is_zero(self):
        assert path_length([]) == 0.0
        assert path_length([c(1, 1)]) == 0.0

    def test_straight_line_length(self):
        a, b = c(0, 0), c(0, 1)
        assert path_length(straight_line(a, b)) == distance(a, b)


class TestEndpointsMatch:
    """Path endpoint tolerance check."""

    def test_exact_endpoints_match(self):
        a, b = c(0, 0), c(0, 1)
        assert endpoints_match([a, c(0.5, 0.5), b], a, b)

    def test_drifted_endpoint_outside_tolerance(self):
        a, b = c(0, 0), c(0, 1)
        # ~111 m off the source
        assert not endpoints_match([c(0.001, 0), b], a, b, tolerance_m=50.0)

    def test_drift_inside_tolerance(self):
        a, b = c(0, 0), c(0, 1)
        assert endpoints_match([c(0.0001, 0), b], a, b, tolerance_m=50.0)

    def test_singleton_never_matches(self):
        assert not endpoints_match([c(0, 0)], c(0, 0), c(0, 0))


class TestSegments:
    """Planar projection and point-to-segment distance."""

    def test_projection_onto_midpoint(self):
        t, proj = project_onto_segment(c(1, 1), c(0, 0), c(0, 2))
        assert t == pytest.approx(0.5)
        assert proj.lat == pytest.approx(0.0)
        assert proj.lon == pytest.approx(1.0)

    def test_projection_clamped_past_end(self):
        t, proj = project_onto_segment(c(0, 5), c(0, 0), c(0, 2))
        assert t == pytest.approx(1.0)
        assert proj.lon == pytest.approx(2.0)

    def test_distance_to_segment_perpendicular(self):
        assert distance_to_segment(c(1, 1), c(0, 0), c(0, 2)) == pytest.approx(1.0)

    def test_distance_to_segment_beyond_end_uses_endpoint(self):
        assert distance_to_segment(c(0, 5), c(0, 0), c(0, 2)) == pytest.approx(3.0)

    def test_zero_length_segment(self):
        """Degenerate segment degrades to point distance."""
        assert distance_to_segment(c(3, 4), c(0, 0), c(0, 0)) == pytest.approx(5.0)
        t, proj = project_onto_segment(c(3, 4), c(0, 0), c(0, 0))
        assert t == 0.0
        assert proj == c(0, 0)


class TestBestInsertionIndex:
    """Nearest-segment insertion."""

    def test_point_near_first_segment(self):
        points = [c(0, 0), c(0, 1), c(0, 2)]
        assert best_insertion_index(points, c(0.1, 0.5)) == 1

    def test_point_near_second_segment(self):
        points = [c(0, 0), c(0, 1), c(0, 2)]
        assert best_insertion_index(points, c(0.1, 1.5)) == 2

    def test_straight_path_inserts_between_endpoints(self):
        assert best_insertion_index([c(0, 0), c(0, 1)], c(5, 5)) == 1

    def test_tie_goes_to_lowest_index(self):
        """The shared vertex is equidistant from both segments."""
        points = [c(0, 0), c(0, 1), c(0, 2)]
        assert best_insertion_index(points, c(0, 1)) == 1

    def test_fewer_than_two_points_appends(self):
        assert best_insertion_index([], c(0, 0)) == 0
        assert best_insertion_index([c(0, 0)], c(1, 1)) == 1
