from __future__ import annotations

from fastapi import APIRouter

from app.api.endpoints.cart import cart_router
from app.api.endpoints.catalog import catalog_router
from app.api.endpoints.promotions import promotions_router

# ==============================
# MAIN ROUTER
# ==============================
router = APIRouter()

router.include_router(catalog_router)
router.include_router(promotions_router)
router.include_router(cart_router)
