from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError

from app.api.dependencies import provide_registry, provide_session
from app.api.schemas.catalog import CatalogOut, RefreshOut
from app.domain.services.storefront_session import SessionRegistry, StorefrontSession

logger = logging.getLogger(__name__)

catalog_router = APIRouter(prefix="/api/storefront", tags=["catalog"])


@catalog_router.get("/catalog", response_model=CatalogOut)
async def get_catalog(session: StorefrontSession = Depends(provide_session)) -> CatalogOut:
    """Dishes and toppings (grouped by category) of the current snapshot."""

    return CatalogOut.from_domain(session.catalog)


@catalog_router.post("/catalog/refresh", response_model=RefreshOut)
async def refresh_catalog(registry: SessionRegistry = Depends(provide_registry)) -> RefreshOut:
    """Refetch catalog and promotions from the providers.

    - An invalid provider payload keeps the previous snapshot (502)
    - A superseded fetch is reported as not applied, never as an error
    """

    try:
        catalog_applied, promotions_applied = await registry.refresh()
    except ValidationError as e:
        logger.warning("snapshot_rejected errors=%s", e.error_count())
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Provider returned an invalid snapshot.",
        ) from e

    return RefreshOut(
        catalog_applied=catalog_applied,
        promotions_applied=promotions_applied,
        dishes=len(registry.catalog.current.dishes),
        promotions=len(registry.promotions.current),
    )
