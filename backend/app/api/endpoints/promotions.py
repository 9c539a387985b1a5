from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.dependencies import provide_session
from app.api.schemas.promotion import PromotionOut
from app.domain.services.storefront_session import StorefrontSession

promotions_router = APIRouter(prefix="/api/storefront", tags=["promotions"])


@promotions_router.get("/promotions/eligible", response_model=list[PromotionOut])
async def list_eligible_promotions(session: StorefrontSession = Depends(provide_session)) -> list[PromotionOut]:
    """Promotions selectable right now, in catalog order (advisory list)."""

    return [PromotionOut.from_domain(p) for p in session.eligible_promotions()]
