"""
Pytest configuration and fixtures for randomplace tests.
"""

import random
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio

from randomplace import LocationPicker


PARIS_ELEMENTS = [
    {
        "type": "node",
        "id": 1,
        "lat": 48.8584,
        "lon": 2.2945,
        "tags": {"name": "Eiffel Tower", "tourism": "attraction"},
    },
    {
        "type": "node",
        "id": 2,
        "lat": 48.8606,
        "lon": 2.3376,
        "tags": {"name": "Louvre", "tourism": "museum"},
    },
    {
        "type": "relation",
        "id": 3,
        "center": {"lat": 48.8530, "lon": 2.3499},
        "tags": {"name": "Île de la Cité", "place": "island"},
    },
    {
        "type": "node",
        "id": 4,
        "lat": 48.8867,
        "lon": 2.3431,
        "tags": {"name": "Sacré-Cœur", "amenity": "place_of_worship", "tourism": "attraction"},
    },
]


class OverpassMock:
    """Fake del intérprete Overpass sobre httpx.MockTransport.

    Las respuestas se consumen en orden; la última se repite indefinidamente.
    """

    def __init__(self):
        self.responses = []
        self.requests = []

    def add_response(self, status_code=200, json=None, exception=None, text=None):
        self.responses.append((status_code, json, exception, text))
        return self

    def add_elements(self, elements):
        return self.add_response(200, json={"elements": elements})

    @property
    def call_count(self):
        return len(self.requests)

    def queries(self):
        """Consultas Overpass QL recibidas (campo 'data' del formulario)."""
        return [parse_qs(r.content.decode())["data"][0] for r in self.requests]

    def handler(self, request):
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(200, json={"elements": []})
        status_code, body, exception, text = self.responses[min(len(self.requests), len(self.responses)) - 1]
        if exception is not None:
            raise exception
        if text is not None:
            return httpx.Response(status_code, text=text)
        return httpx.Response(status_code, json=body if body is not None else {"elements": []})

    def client(self):
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def overpass_mock():
    return OverpassMock()


@pytest_asyncio.fixture
async def http_client(overpass_mock):
    client = overpass_mock.client()
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def picker(http_client):
    """LocationPicker contra el fake de Overpass, con semilla fija."""
    picker = LocationPicker(http_client=http_client, rng=random.Random(1234))
    yield picker
    await picker.close()


@pytest.fixture
def paris_elements():
    return [dict(e) for e in PARIS_ELEMENTS]


def pytest_addoption(parser):
    """Add --integration command line option."""
    parser.addoption(
        "--integration", action="store_true", default=False, help="run integration tests"
    )


def pytest_collection_modifyitems(config, items):
    """Skip tests marked with 'integration' unless --integration is provided."""
    if config.getoption("--integration"):
        return
    skip_integration = pytest.mark.skip(reason="need --integration option to run")
    for item in items:
        if item.get_closest_marker("integration"):
            item.add_marker(skip_integration)
