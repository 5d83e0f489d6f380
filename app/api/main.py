"""
FastAPI application for the live stock inventory.

- Pages: / (viewer), /admin (admin console)
- Health: /health/live, /health/ready
- API: /api/stocks, /api/stock, /api/stats
- Push: /ws (WebSocket change events)
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.responses import FileResponse

from app.core.config import settings
from app.api.health import router as health_router
from app.api.live import router as live_router
from app.api.router import router as api_router
from app.services.state import build_services, set_services

logger = logging.getLogger("stock.app")


def _setup_logging() -> None:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    _setup_logging()

    services = build_services(settings)
    set_services(app, services)
    services.hub.start()
    logger.info("Admin page:  http://localhost:%d/admin", settings.PORT)
    logger.info("Viewer page: http://localhost:%d/", settings.PORT)

    yield

    await services.hub.stop()


app = FastAPI(
    title="Stock API",
    description="Shared in-memory stock inventory with live WebSocket updates",
    lifespan=lifespan,
)

WEB_DIR = Path(__file__).resolve().parent.parent / "web"


@app.get("/", include_in_schema=False)
async def viewer_page():
    """Read-only live stock table."""
    return FileResponse(WEB_DIR / "viewer.html")


@app.get("/admin", include_in_schema=False)
async def admin_page():
    """Create / update / delete console."""
    return FileResponse(WEB_DIR / "admin.html")


app.include_router(health_router)
app.include_router(live_router)
app.include_router(api_router, prefix=settings.API_PREFIX)


def run() -> None:
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
