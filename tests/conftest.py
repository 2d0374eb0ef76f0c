from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from chatroom.app import create_app
from chatroom.settings import Settings
from chatroom.storage import StorageGateway


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start=datetime(2024, 5, 1, 12, 0, 0)):
        self.moment = start

    def __call__(self):
        return self.moment

    def advance(self, seconds):
        self.moment += timedelta(seconds=seconds)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest_asyncio.fixture()
async def storage():
    gateway = StorageGateway(AsyncMongoMockClient(), 'chatroom_test')
    await gateway.init()
    return gateway


@pytest.fixture()
def settings():
    # Keep the background sweep out of the way of request tests
    return Settings(SWEEP_INTERVAL_SECONDS=3600, INACTIVITY_TIMEOUT_SECONDS=10)


@pytest.fixture()
def client(settings):
    gateway = StorageGateway(AsyncMongoMockClient(), 'chatroom_api_test')
    app = create_app(settings, storage=gateway)
    with TestClient(app) as test_client:
        yield test_client
