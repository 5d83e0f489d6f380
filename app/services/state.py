"""
Application-scoped services (store, hub, inventory service).

Built once in the app lifespan and attached to app.state; routes reach them
through these FastAPI dependencies instead of module globals.
"""
from __future__ import annotations

from dataclasses import dataclass

from fastapi import FastAPI
from starlette.requests import HTTPConnection

from app.core.config import Settings
from app.services.hub import BroadcastHub
from app.services.inventory import InventoryService
from app.services.store import StockStore


@dataclass
class AppServices:
    store: StockStore
    hub: BroadcastHub
    inventory: InventoryService


def build_services(settings: Settings) -> AppServices:
    store = StockStore()
    hub = BroadcastHub(
        queue_maxsize=settings.HUB_QUEUE_SIZE,
        subscriber_queue_maxsize=settings.SUBSCRIBER_QUEUE_SIZE,
        overflow=settings.SUBSCRIBER_OVERFLOW,
        send_timeout=settings.SUBSCRIBER_SEND_TIMEOUT_SEC,
    )
    return AppServices(store=store, hub=hub, inventory=InventoryService(store, hub))


def set_services(app: FastAPI, services: AppServices) -> None:
    app.state.services = services


def get_services(conn: HTTPConnection) -> AppServices:
    services = getattr(conn.app.state, "services", None)
    if services is None:
        raise RuntimeError("Application services not initialized")
    return services


def get_store(conn: HTTPConnection) -> StockStore:
    return get_services(conn).store


def get_hub(conn: HTTPConnection) -> BroadcastHub:
    return get_services(conn).hub


def get_inventory(conn: HTTPConnection) -> InventoryService:
    return get_services(conn).inventory
