# tests/test_inventory_service.py
import asyncio

import pytest

from app.models.schemas import ChangeKind
from app.services.errors import InvalidInput, UnsupportedOperation
from app.services.inventory import InventoryService


class RecordingHub:
    def __init__(self):
        self.events = []

    async def publish(self, event):
        self.events.append(event)


@pytest.fixture
def recorder():
    return RecordingHub()


@pytest.fixture
def service(store, recorder):
    return InventoryService(store, recorder)


@pytest.mark.asyncio
async def test_create_mutates_then_publishes(service, store, recorder):
    item = await service.create(b'{"name": "Widget", "unitPrice": 9.99, "quantity": 5}')

    assert item.id
    assert store.get(item.id) == item
    assert len(recorder.events) == 1
    assert recorder.events[0].kind is ChangeKind.CREATE
    assert recorder.events[0].item == item


@pytest.mark.asyncio
async def test_update_unknown_id_upserts_and_publishes(service, store, recorder):
    item = await service.update({"id": "new", "name": "Gear", "unitPrice": 4.0, "quantity": 2})

    assert store.get("new") == item
    assert [e.kind for e in recorder.events] == [ChangeKind.UPDATE]


@pytest.mark.asyncio
async def test_delete_returns_record_as_it_was(service, store, recorder):
    created = await service.create({"name": "Widget", "unitPrice": 1.5, "quantity": 3})

    removed = await service.delete({"id": created.id})

    assert removed == created
    assert store.get(created.id) is None
    assert recorder.events[-1].kind is ChangeKind.DELETE
    assert recorder.events[-1].item == created


@pytest.mark.asyncio
async def test_delete_absent_id_still_succeeds(service, store, recorder):
    await service.create({"name": "Keep"})

    result = await service.delete({"id": "missing"})

    assert result.id == "missing"
    assert len(store) == 1
    assert recorder.events[-1].kind is ChangeKind.DELETE


@pytest.mark.asyncio
@pytest.mark.parametrize("verb", ["UPDATE", "DELETE"])
async def test_missing_id_is_rejected_without_side_effects(service, store, recorder, verb):
    with pytest.raises(InvalidInput):
        await service.apply(verb, {"name": "No id"})

    assert len(store) == 0
    assert recorder.events == []


@pytest.mark.asyncio
async def test_malformed_body_is_rejected_before_dispatch(service, store, recorder):
    with pytest.raises(InvalidInput):
        await service.apply("PATCH", b"{not json")

    assert recorder.events == []


@pytest.mark.asyncio
async def test_unknown_verb_is_unsupported(service, store, recorder):
    with pytest.raises(UnsupportedOperation):
        await service.apply("PATCH", {"id": "x", "name": "Widget"})

    assert len(store) == 0
    assert recorder.events == []


@pytest.mark.asyncio
async def test_verbs_are_case_insensitive(service, recorder):
    await service.apply("create", {"name": "lower"})
    assert recorder.events[0].kind is ChangeKind.CREATE


def test_list_items_is_a_snapshot(service, store):
    store.create({"name": "A"})
    items = service.list_items()
    store.create({"name": "B"})
    assert [i.name for i in items] == ["A"]


class GatedHub(RecordingHub):
    """First publish waits on a gate, like a full hand-off queue."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()
        self.first_waiting = asyncio.Event()

    async def publish(self, event):
        if not self.events and not self.first_waiting.is_set():
            self.first_waiting.set()
            await self.gate.wait()
        self.events.append(event)


@pytest.mark.asyncio
async def test_concurrent_updates_publish_in_commit_order(store):
    hub = GatedHub()
    service = InventoryService(store, hub)

    first = asyncio.create_task(service.update({"id": "x", "name": "v1"}))
    await hub.first_waiting.wait()
    second = asyncio.create_task(service.update({"id": "x", "name": "v2"}))
    for _ in range(5):
        await asyncio.sleep(0)

    # v2 must not commit while v1's event is still waiting to be enqueued
    assert store.get("x").name == "v1"

    hub.gate.set()
    await asyncio.gather(first, second)

    assert [e.item.name for e in hub.events] == ["v1", "v2"]
    assert store.get("x").name == "v2"
