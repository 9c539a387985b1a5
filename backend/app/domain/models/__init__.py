from __future__ import annotations

from app.domain.models.cart import CartLine, CartSnapshot, LineSpec, OrderPayload, ToppingSelection
from app.domain.models.catalog import CatalogSnapshot, Dish, SizeVariant, Topping
from app.domain.models.promotion import (
    Discount,
    FixedAmountDiscount,
    PercentageDiscount,
    Promotion,
    PromotionConditions,
    TimeSlot,
    UniformPriceDiscount,
)

__all__ = [
    "CartLine",
    "CartSnapshot",
    "CatalogSnapshot",
    "Discount",
    "Dish",
    "FixedAmountDiscount",
    "LineSpec",
    "OrderPayload",
    "PercentageDiscount",
    "Promotion",
    "PromotionConditions",
    "SizeVariant",
    "TimeSlot",
    "Topping",
    "ToppingSelection",
    "UniformPriceDiscount",
]
