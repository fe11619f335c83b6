"""Entry point for the PBX-to-helpdesk CTI bridge."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import health_router
from api.routes import router as api_router
from api.websocket import router as ws_router
from config.settings import get_settings
from db.base import dispose_db, init_db
from realtime.errors import CTIError
from realtime.hub import CTIHub

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    app.state.hub = CTIHub.from_settings(settings)
    LOGGER.info("CTI server ready on %s:%s, waiting for helpdesk clients", settings.host, settings.port)
    try:
        yield
    finally:
        await app.state.hub.shutdown()
        await dispose_db()


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="CTI Server",
    description="Pushes PBX call events to connected helpdesk clients in real time.",
    version=settings.app_version,
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CTIError)
async def cti_error_handler(request: Request, exc: CTIError) -> JSONResponse:
    if exc.status_code >= 500:
        LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(api_router, prefix="/api")
app.include_router(health_router)
app.include_router(ws_router)


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
