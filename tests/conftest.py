# tests/conftest.py
import json

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.api.main import app
from app.models.schemas import ChangeEvent, ChangeKind, StockItem
from app.services.hub import BroadcastHub
from app.services.store import StockStore


class FakeConnection:
    """Stands in for a WebSocket: records frames, can be broken or stalled."""

    def __init__(self):
        self.frames = []
        self.broken = False
        self.closed = False
        self.gate = None

    async def send_text(self, data):
        if self.gate is not None:
            await self.gate.wait()
        if self.broken:
            raise ConnectionResetError("peer went away")
        self.frames.append(json.loads(data))

    async def close(self, code=1000):
        self.closed = True

    def names(self):
        return [f["payload"]["name"] for f in self.frames]


def make_event(name, kind=ChangeKind.CREATE, item_id=None):
    return ChangeEvent(
        kind=kind,
        item=StockItem(id=item_id or f"id-{name}", name=name, unit_price=1.0, quantity=1),
    )


@pytest.fixture
def store():
    return StockStore()


@pytest_asyncio.fixture
async def hub():
    h = BroadcastHub(queue_maxsize=100, subscriber_queue_maxsize=16, send_timeout=1.0)
    h.start()
    yield h
    await h.stop()


@pytest.fixture
def client():
    """Test client with the app lifespan running (fresh store and hub per test)."""
    with TestClient(app) as c:
        yield c
