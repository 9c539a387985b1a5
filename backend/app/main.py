from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.health import health_router
from app.api.router import router
from app.core.logging_config import configure_logging
from app.domain.services.storefront_session import SessionRegistry, build_registry


def create_application(registry: SessionRegistry | None = None) -> FastAPI:
    registry = registry or build_registry()

    @asynccontextmanager
    async def lifespan(application: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        # First snapshots; later ones go through POST /api/storefront/catalog/refresh
        await registry.refresh()
        yield

    application = FastAPI(title="Storefront", lifespan=lifespan)
    application.state.registry = registry

    # Routes
    application.include_router(router)

    # Health
    application.include_router(health_router)

    return application


app = create_application()
