import pytest

from deliveries.pricing import default_pricing
from deliveries.store import DeliveryStore
from planner.planner import DeliveryPlanner

from tests.fakes import FakeGeocoder, FakeRouteFn


@pytest.fixture
def pickup():
    # Caracas
    return (10.4806, -66.9036)


@pytest.fixture
def store():
    return DeliveryStore()


@pytest.fixture
def fake_route():
    return FakeRouteFn()


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder()


@pytest.fixture
def planner(store, fake_route):
    # osrm_client is only handed to route_fn, so any non-None sentinel will do
    return DeliveryPlanner(
        store=store,
        pricing=default_pricing(),
        osrm_client=object(),
        route_fn=fake_route,
    )
