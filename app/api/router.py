"""
Inventory API: list, CRUD, stats.

- GET  /stocks  — snapshot of every stock item
- POST/PUT/DELETE /stock — create / update / delete (JSON StockItem body)
- GET  /stats   — store size and hub counters
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from app.models.schemas import StatsOut, StockItem
from app.services.errors import InvalidInput, UnsupportedOperation
from app.services.inventory import InventoryService
from app.services.state import AppServices, get_inventory, get_services

router = APIRouter(tags=["stock"])
logger = logging.getLogger("stock.api")

METHOD_VERBS = {
    "POST": "CREATE",
    "PUT": "UPDATE",
    "DELETE": "DELETE",
}


@router.get("/stocks", response_model=List[StockItem], summary="All stock items")
async def list_stocks(inventory: InventoryService = Depends(get_inventory)):
    return inventory.list_items()


@router.api_route(
    "/stock",
    methods=["POST", "PUT", "DELETE", "PATCH"],
    response_model=StockItem,
    summary="Create, update or delete a stock item",
)
async def mutate_stock(request: Request, inventory: InventoryService = Depends(get_inventory)):
    """
    POST creates (id assigned by the server), PUT updates (upsert by id),
    DELETE removes by id and returns the record as it was.
    The change is broadcast to every connected viewer before the response is sent.
    """
    body = await request.body()
    verb = METHOD_VERBS.get(request.method, request.method)
    try:
        return await inventory.apply(verb, body)
    except InvalidInput as exc:
        logger.info("rejected %s /stock: %s", request.method, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except UnsupportedOperation as exc:
        logger.info("rejected %s /stock: %s", request.method, exc)
        raise HTTPException(status_code=405, detail=str(exc))


@router.get("/stats", response_model=StatsOut)
async def stats(services: AppServices = Depends(get_services)):
    """Store size plus subscriber and broadcast counters."""
    hub = services.hub
    return StatsOut(
        items=len(services.store),
        subscribers=hub.subscriber_count,
        published=hub.published,
        dropped=hub.dropped,
        disconnected=hub.disconnected,
        queue_depth=hub.queue_depth,
        broadcasting=hub.running,
    )
