"""Wire schemas: stock items, change events, stats."""
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class StockItem(BaseModel):
    """
    One inventory record.

    JSON uses camelCase (``unitPrice``); Python code uses ``unit_price``.
    Missing fields decode to zero values so a delete body may carry only ``id``.
    Strict: "5" or true for quantity, 5.0 for quantity, "9.99" for unitPrice are rejected.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, strict=True)

    id: str = ""
    name: str = ""
    unit_price: float = Field(default=0.0, alias="unitPrice")
    quantity: int = 0


class ChangeKind(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeEvent(BaseModel):
    """Payload pushed to every subscriber: {"type": ..., "payload": StockItem}."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: ChangeKind = Field(alias="type")
    item: StockItem = Field(alias="payload")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class StatsOut(BaseModel):
    """Store size plus hub counters."""
    items: int = 0
    subscribers: int = 0
    published: int = 0
    dropped: int = 0
    disconnected: int = 0
    queue_depth: int = 0
    broadcasting: bool = False
