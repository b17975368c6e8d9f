import pytest

from fakes import FakeClientFactory, FakeObjectStore, FakeTemporalClient


@pytest.fixture
def store():
    return FakeObjectStore()


@pytest.fixture
def temporal_client():
    return FakeTemporalClient()


@pytest.fixture
def client_factory(temporal_client):
    return FakeClientFactory(temporal_client)
