from __future__ import annotations

"""Promotion definitions.

The discount of a promotion is a tagged variant: exactly one of
`PercentageDiscount`, `FixedAmountDiscount` or `UniformPriceDiscount`.
Ambiguous payloads are rejected at ingestion (see `app.schemas.promotion`).
"""

from dataclasses import dataclass, field
from datetime import datetime, time
from decimal import Decimal

from app.domain.enums.types import ApplicableItems, DayOfWeek, PromotionType
from app.domain.models.catalog import Dish


@dataclass(frozen=True)
class PercentageDiscount:
    percentage: Decimal


@dataclass(frozen=True)
class FixedAmountDiscount:
    fixed_amount: Decimal


@dataclass(frozen=True)
class UniformPriceDiscount:
    """Happy hour only: replaces the unit price of every applicable line."""

    uniform_price: Decimal


Discount = PercentageDiscount | FixedAmountDiscount | UniformPriceDiscount


@dataclass(frozen=True)
class TimeSlot:
    """Local clock window, start inclusive, end exclusive. Never crosses midnight."""

    start: time
    end: time

    def contains(self, moment: time) -> bool:
        minute = moment.replace(second=0, microsecond=0, tzinfo=None)
        return self.start <= minute < self.end

    def label(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


@dataclass(frozen=True)
class PromotionConditions:
    min_order_amount: Decimal | None = None
    max_order_amount: Decimal | None = None
    time_slots: tuple[TimeSlot, ...] = ()
    days_of_week: tuple[DayOfWeek, ...] = ()
    usage_limit: int | None = None


@dataclass(frozen=True)
class Promotion:
    id: str
    name: str
    type: PromotionType
    discount: Discount
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    conditions: PromotionConditions = field(default_factory=PromotionConditions)
    code: str | None = None
    description: str | None = None
    usage_count: int = 0
    priority: int = 0
    applicable_items: ApplicableItems = ApplicableItems.ALL_ORDER
    specific_dishes: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()

    def applies_to(self, dish: Dish) -> bool:
        """Whether a line of `dish` is touched by a line-level discount."""

        if self.applicable_items is ApplicableItems.ALL_ORDER:
            return True
        if self.applicable_items is ApplicableItems.SPECIFIC_DISHES:
            return dish.id in self.specific_dishes
        return dish.category is not None and dish.category in self.categories
