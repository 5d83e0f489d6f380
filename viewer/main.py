"""
Terminal stock viewer.

- Loads a snapshot from GET /api/stocks, then follows /ws change events.
- Keeps a local replica of the inventory and logs every change.
- Reconnects with exponential backoff and resyncs from a fresh snapshot each time.
"""
import asyncio
import json
import logging
from typing import Any, Dict, Iterable, Optional

import httpx
import websockets

from app.core.config import settings

logger = logging.getLogger("stock.viewer")


class InventoryView:
    """Local replica of the server inventory, kept in sync from change events."""

    def __init__(self) -> None:
        self.items: Dict[str, dict] = {}

    def load(self, items: Iterable[dict]) -> None:
        self.items = {item["id"]: dict(item) for item in items if item.get("id")}

    def apply(self, event: dict[str, Any]) -> Optional[str]:
        """Reconcile one {"type", "payload"} event. Returns the applied type, or None if ignored."""
        kind = event.get("type")
        payload = event.get("payload") or {}
        item_id = payload.get("id")
        if not item_id:
            logger.debug("ignoring event without id: %s", event)
            return None
        if kind in ("CREATE", "UPDATE"):
            self.items[item_id] = dict(payload)
        elif kind == "DELETE":
            self.items.pop(item_id, None)
        else:
            logger.warning("ignoring unknown event type: %r", kind)
            return None
        return kind

    def __len__(self) -> int:
        return len(self.items)


def _describe(item: dict) -> str:
    return "%s x%s @ %s" % (item.get("name", ""), item.get("quantity", 0), item.get("unitPrice", 0))


class StockViewer:
    def __init__(self, server_url: str = settings.VIEWER_SERVER_URL):
        self.server_url = server_url.rstrip("/")
        self.view = InventoryView()
        self._running = False
        self.stats = {
            "status": "stopped",
            "events": 0,
            "ignored": 0,
            "reconnects": 0,
        }

    async def run(self) -> None:
        self._running = True
        try:
            await self._connect_loop()
        finally:
            self._running = False
            self.stats["status"] = "stopped"

    def stop(self) -> None:
        self._running = False

    async def _connect_loop(self) -> None:
        delay = 1
        while self._running:
            try:
                await self._stream()
                delay = 1
            except asyncio.CancelledError:
                break
            except Exception as exc:
                self.stats["reconnects"] += 1
                self.stats["status"] = f"reconnecting ({exc})"
                logger.warning("connection error: %s — retry in %ds", exc, delay)
                await asyncio.sleep(delay)
                delay = min(delay * 2, 60)

    async def _load_snapshot(self) -> None:
        async with httpx.AsyncClient(base_url=self.server_url, timeout=10.0) as client:
            resp = await client.get(f"{settings.API_PREFIX}/stocks")
            resp.raise_for_status()
            self.view.load(resp.json() or [])
        logger.info("snapshot loaded: %d items", len(self.view))

    async def _stream(self) -> None:
        async with websockets.connect(
            ws_url(self.server_url),
            ping_interval=20,
            ping_timeout=30,
        ) as ws:
            # Subscribe first so nothing between snapshot and stream is missed.
            await self._load_snapshot()
            self.stats["status"] = "streaming"
            logger.info("connected to %s", self.server_url)
            async for raw in ws:
                if not self._running:
                    break
                self._handle(raw)

    def _handle(self, raw: str | bytes) -> None:
        try:
            event = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            self.stats["ignored"] += 1
            logger.debug("unparseable frame: %r", raw)
            return
        kind = self.view.apply(event) if isinstance(event, dict) else None
        if kind is None:
            self.stats["ignored"] += 1
            return
        self.stats["events"] += 1
        logger.info("%s %s — %d items", kind, _describe(event["payload"]), len(self.view))


def ws_url(server_url: str) -> str:
    """http(s)://host -> ws(s)://host/ws"""
    if server_url.startswith("https://"):
        return "wss://" + server_url[len("https://"):] + "/ws"
    if server_url.startswith("http://"):
        return "ws://" + server_url[len("http://"):] + "/ws"
    return server_url + "/ws"


async def run_viewer() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    viewer = StockViewer()
    try:
        await viewer.run()
    except asyncio.CancelledError:
        pass
    finally:
        viewer.stop()


def main() -> None:
    asyncio.run(run_viewer())


if __name__ == "__main__":
    main()
