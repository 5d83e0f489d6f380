"""
In-memory stock store.

- Keyed by item id; ids are minted here (UUID4) on create.
- Guarded by a shared-read / exclusive-write lock: snapshots run concurrently,
  mutations are exclusive and O(1) under the lock.
- Items are frozen pydantic models, so a snapshot list never aliases live state.
"""
from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from pydantic import ValidationError

from app.models.schemas import StockItem
from app.services.errors import InvalidInput

logger = logging.getLogger("stock.store")

ItemInput = Union[StockItem, Mapping[str, Any], str, bytes]


class ReadWriteLock:
    """Many readers or one writer. Waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writing or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


def decode_item(data: ItemInput) -> StockItem:
    """Coerce a model, mapping or JSON document into a StockItem; InvalidInput if malformed."""
    if isinstance(data, StockItem):
        return data
    try:
        if isinstance(data, (str, bytes)):
            return StockItem.model_validate_json(data)
        return StockItem.model_validate(data)
    except ValidationError as exc:
        raise InvalidInput(f"invalid stock item: {exc.error_count()} error(s)") from exc


class StockStore:
    def __init__(self) -> None:
        self._items: Dict[str, StockItem] = {}
        self._lock = ReadWriteLock()

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._items)

    def snapshot(self) -> List[StockItem]:
        with self._lock.read_locked():
            return list(self._items.values())

    def get(self, item_id: str) -> Optional[StockItem]:
        with self._lock.read_locked():
            return self._items.get(item_id)

    def create(self, data: ItemInput) -> StockItem:
        """Insert under a freshly minted id; any id on the input is ignored."""
        item = decode_item(data)
        stored = item.model_copy(update={"id": str(uuid.uuid4())})
        with self._lock.write_locked():
            self._items[stored.id] = stored
        return stored

    def update(self, data: ItemInput) -> StockItem:
        """Overwrite the record at item.id. An unknown id is inserted (upsert)."""
        item = decode_item(data)
        if not item.id:
            raise InvalidInput("id is required for update")
        with self._lock.write_locked():
            inserted = item.id not in self._items
            self._items[item.id] = item
        if inserted:
            logger.debug("update inserted unknown id %s", item.id)
        return item

    def delete(self, item_id: str) -> Optional[StockItem]:
        """Remove and return the record at item_id; None if it was not there."""
        with self._lock.write_locked():
            return self._items.pop(item_id, None)
