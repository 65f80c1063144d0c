from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

from event_scope.config import Settings, get_settings
from event_scope.db import close_db, init_db
from event_scope.logger import setup_logger
from event_scope.routes import archive as archive_routes


def create_app(*, override_settings: Optional[Settings] = None, skip_db_init: bool = False) -> FastAPI:
    settings = override_settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not skip_db_init:
            await init_db()
        yield
        if not skip_db_init:
            await close_db()

    logger = setup_logger("event-scope", settings.log_level)
    # Module loggers (resolver, builder, sink) share the package level.
    setup_logger("event_scope", settings.log_level)

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s -> %s (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            duration,
        )
        return response

    app.include_router(archive_routes.router)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
