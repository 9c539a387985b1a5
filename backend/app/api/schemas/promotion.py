from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from app.domain.models.promotion import (
    FixedAmountDiscount,
    PercentageDiscount,
    Promotion,
    UniformPriceDiscount,
)


class PromotionOut(BaseModel):
    """Promotion as shown in the coupon selector."""

    id: str
    name: str
    type: str
    code: str | None
    description: str | None
    start_date: datetime
    end_date: datetime
    percentage: Decimal | None = None
    fixed_amount: Decimal | None = None
    uniform_price: Decimal | None = None
    min_order_amount: Decimal | None = None
    time_slots: list[str] = []

    @classmethod
    def from_domain(cls, promotion: Promotion) -> "PromotionOut":
        discount = promotion.discount
        return cls(
            id=promotion.id,
            name=promotion.name,
            type=promotion.type.value,
            code=promotion.code,
            description=promotion.description,
            start_date=promotion.start_date,
            end_date=promotion.end_date,
            percentage=discount.percentage if isinstance(discount, PercentageDiscount) else None,
            fixed_amount=discount.fixed_amount if isinstance(discount, FixedAmountDiscount) else None,
            uniform_price=discount.uniform_price if isinstance(discount, UniformPriceDiscount) else None,
            min_order_amount=promotion.conditions.min_order_amount,
            time_slots=[slot.label() for slot in promotion.conditions.time_slots],
        )
