# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-02-26
# Description: main.py
# -----------------------------------------------------------------------------
"""
Run with:  uvicorn api.main:create_app --factory
"""
import threading
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

import settings
from api.AppContainer import AppContainer
from api.routers import cache, clusters, embeddings, health, search, vectors
from utility.logging_utils import get_logger

logger = get_logger("api")


def create_app(container: Optional[AppContainer] = None, *, init_on_startup: Optional[bool] = None) -> FastAPI:
    container = container or AppContainer()
    init_on_startup = settings.INIT_ON_STARTUP if init_on_startup is None else init_on_startup

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        svc = app.state.container.semantic_service
        svc.start()
        if init_on_startup:
            # requests arriving before the model is ready wait at most their own timeout, then use the fallback
            threading.Thread(target=svc.initialize, name="kb-model-init", daemon=True).start()
        logger.info("KB semantic API started")
        try:
            yield
        finally:
            svc.shutdown()
            logger.info("KB semantic API stopped")

    app = FastAPI(title="KB Semantic API", lifespan=lifespan)
    app.state.container = container

    app.include_router(health.router)
    app.include_router(search.router)
    app.include_router(embeddings.router)
    app.include_router(clusters.router)
    app.include_router(vectors.router)
    app.include_router(cache.router)
    return app
