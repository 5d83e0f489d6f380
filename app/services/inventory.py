"""
Mutation sequencing: decode -> mutate store -> publish change -> respond.

Validation failures raise before the store or hub is touched.
"""
import asyncio
import logging
from typing import Union

from app.models.schemas import ChangeEvent, ChangeKind, StockItem
from app.services.errors import InvalidInput, UnsupportedOperation
from app.services.hub import BroadcastHub
from app.services.store import ItemInput, StockStore, decode_item

logger = logging.getLogger("stock.service")


def _verb(raw: Union[ChangeKind, str]) -> ChangeKind:
    try:
        return ChangeKind(raw.upper() if isinstance(raw, str) else raw)
    except ValueError:
        raise UnsupportedOperation(f"unsupported operation: {raw}") from None


class InventoryService:
    def __init__(self, store: StockStore, hub: BroadcastHub):
        self.store = store
        self.hub = hub
        # Held across mutate + publish so events are enqueued in commit order.
        self._publish_lock = asyncio.Lock()

    def list_items(self) -> list[StockItem]:
        return self.store.snapshot()

    async def apply(self, verb: Union[ChangeKind, str], body: ItemInput) -> StockItem:
        """Run one CREATE/UPDATE/DELETE and publish the resulting change before returning."""
        item = decode_item(body)
        kind = _verb(verb)
        if kind is not ChangeKind.CREATE and not item.id:
            raise InvalidInput(f"id is required for {kind.value.lower()}")

        async with self._publish_lock:
            result = self._mutate(kind, item)
            await self.hub.publish(ChangeEvent(kind=kind, item=result))
        return result

    def _mutate(self, kind: ChangeKind, item: StockItem) -> StockItem:
        if kind is ChangeKind.CREATE:
            result = self.store.create(item)
            logger.info("stock created: %s (%s)", result.name, result.id)
        elif kind is ChangeKind.UPDATE:
            result = self.store.update(item)
            logger.info("stock updated: %s (%s)", result.name, result.id)
        else:
            removed = self.store.delete(item.id)
            result = removed if removed is not None else item
            logger.info("stock deleted: %s (%s)", result.name, result.id)
        return result

    async def create(self, body: ItemInput) -> StockItem:
        return await self.apply(ChangeKind.CREATE, body)

    async def update(self, body: ItemInput) -> StockItem:
        return await self.apply(ChangeKind.UPDATE, body)

    async def delete(self, body: ItemInput) -> StockItem:
        return await self.apply(ChangeKind.DELETE, body)
