from __future__ import annotations

import enum


class PromotionType(str, enum.Enum):
    """Promotion kinds known to the promotion catalog.

    Only order-level kinds and happy hours are selectable at cart level;
    item-level kinds are carried through ingestion but never eligible.
    """

    ORDER_PERCENTAGE = "order_percentage"
    ORDER_FIXED = "order_fixed"
    ITEM_PERCENTAGE = "item_percentage"
    ITEM_FIXED = "item_fixed"
    HAPPY_HOUR = "happy_hour"


class ApplicableItems(str, enum.Enum):
    """Which cart lines a line-level (uniform price) promotion touches."""

    ALL_ORDER = "all_order"
    SPECIFIC_DISHES = "specific_dishes"
    CATEGORIES = "categories"


class PaymentMethod(str, enum.Enum):
    CASH = "Cash"
    ONLINE = "Online"
    CARD = "Card"


class DayOfWeek(str, enum.Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_weekday(cls, weekday: int) -> "DayOfWeek":
        """Map `date.weekday()` (0 = monday) to a day name."""

        return list(cls)[weekday]
