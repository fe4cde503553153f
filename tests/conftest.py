"""Shared fixtures: coordinates near Sydney and an in-process route provider."""

import asyncio

import pytest

from linkpath.models.geo import Coordinate
from linkpath.routing.provider import RouteResult
from linkpath.store.path_store import PathStore


class ScriptedProvider:
    """Route provider answering from per-source scripts.

    Behaviour is keyed by the request's source coordinate so each link in a
    batch can be given its own route, failure, delay, or hang.
    """

    name = "scripted"

    def __init__(self, routes=None, failures=None, delays=None, hang=None, delay=0.0):
        self.routes = routes or {}
        self.failures = failures or {}
        self.delays = delays or {}
        self.hang = set(hang or [])
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def route(self, source, target):
        self.calls.append((source, target))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if source in self.hang:
                await asyncio.Event().wait()
            await asyncio.sleep(self.delays.get(source, self.delay))
            if source in self.failures:
                raise self.failures[source]
            points = self.routes.get(source)
            if points is None:
                points = road_route(source, target)
            return RouteResult(points=list(points), provider=self.name)
        finally:
            self.in_flight -= 1


def road_route(source, target):
    """Three-point route bending north of the direct line."""
    bend = Coordinate(
        lat=(source.lat + target.lat) / 2 + 0.002,
        lon=(source.lon + target.lon) / 2,
    )
    return [source, bend, target]


def coord(lat, lon):
    return Coordinate(lat=lat, lon=lon)


@pytest.fixture
def store():
    return PathStore()


@pytest.fixture
def nodes():
    """Distinct node positions, one source per link."""
    return {
        "n1": coord(-33.8688, 151.2093),
        "n2": coord(-33.8700, 151.2200),
        "n3": coord(-33.8800, 151.2100),
        "n4": coord(-33.8900, 151.2300),
        "n5": coord(-33.8600, 151.2000),
    }


@pytest.fixture
def make_provider():
    """Factory for ScriptedProvider instances."""
    return ScriptedProvider


@pytest.fixture
def abc_links(nodes):
    """Three links A, B, C as (link_id, source, target) tuples."""
    return [
        ("A", nodes["n1"], nodes["n2"]),
        ("B", nodes["n3"], nodes["n4"]),
        ("C", nodes["n5"], nodes["n2"]),
    ]
