from app.services.errors import (
    ConnectionFailure,
    InvalidInput,
    InventoryError,
    UnsupportedOperation,
)
from app.services.hub import BroadcastHub, Subscriber
from app.services.inventory import InventoryService
from app.services.state import (
    AppServices,
    build_services,
    get_hub,
    get_inventory,
    get_services,
    get_store,
    set_services,
)
from app.services.store import StockStore

__all__ = [
    "AppServices",
    "BroadcastHub",
    "ConnectionFailure",
    "InvalidInput",
    "InventoryError",
    "InventoryService",
    "StockStore",
    "Subscriber",
    "UnsupportedOperation",
    "build_services",
    "get_hub",
    "get_inventory",
    "get_services",
    "get_store",
    "set_services",
]
