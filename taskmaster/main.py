from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taskmaster.db import dispose_engine
from taskmaster.db_init import init_db
from taskmaster.errors import NetworkOrBackendError, NotFoundError, StaleSessionError, ValidationError
from taskmaster.logging_config import configure_logging
from taskmaster.registry import SessionRegistry
from taskmaster.routes import analytics, bootstrap, categories, notes, session, tasks
from taskmaster.settings import get_settings
from taskmaster.sync_adapter import RemoteSyncAdapter, SqlSyncAdapter

logger = logging.getLogger("taskmaster")


def create_app(
    adapter: RemoteSyncAdapter | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if adapter is None:
            await init_db()
        app.state.registry = SessionRegistry(
            adapter or SqlSyncAdapter(),
            default_timezone=settings.default_timezone,
            clock=clock,
        )
        try:
            yield
        finally:
            app.state.registry.close()
            if adapter is None:
                await dispose_engine()

    app = FastAPI(title="Task Master API", version="0.1.0", lifespan=lifespan)

    app.include_router(bootstrap.router)
    app.include_router(session.router)
    app.include_router(categories.router)
    app.include_router(tasks.router)
    app.include_router(analytics.router)
    app.include_router(notes.router)

    @app.exception_handler(NotFoundError)
    async def _not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ValidationError)
    async def _validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(NetworkOrBackendError)
    async def _backend_handler(request: Request, exc: NetworkOrBackendError):
        logger.warning("Backend unavailable during %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": "Backend unavailable, try again"})

    @app.exception_handler(StaleSessionError)
    async def _stale_session_handler(request: Request, exc: StaleSessionError):
        return JSONResponse(status_code=409, content={"detail": "Session ended"})

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal error"})

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


def serve() -> None:
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app, factory=True, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
