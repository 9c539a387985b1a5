from __future__ import annotations

"""Promotion eligibility.

Rules:
- A promotion is selectable iff it is active, `start_date <= now <= end_date`
  and its type is order_percentage, order_fixed or happy_hour.
- Happy hours also need the local time of day inside one of their time slots
  (start inclusive, end exclusive). No slot means no clock restriction.
- `days_of_week` and `usage_limit` conditions gate every type.

Output keeps catalog order. Nothing here mutates the catalog.
"""

from collections.abc import Iterable
from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

from app.core.configuration import application_settings
from app.domain.enums.types import DayOfWeek, PromotionType
from app.domain.models.promotion import Promotion

SELECTABLE_TYPES = frozenset(
    {
        PromotionType.ORDER_PERCENTAGE,
        PromotionType.ORDER_FIXED,
        PromotionType.HAPPY_HOUR,
    }
)


class PromotionError(Exception):
    """Generic promotion error."""


class PromotionNotFoundError(PromotionError):
    pass


class PromotionNotEligibleError(PromotionError):
    """The promotion cannot be selected right now."""


class PromotionExpiredError(PromotionNotEligibleError):
    """An applied promotion is no longer valid at checkout time."""


def storefront_timezone() -> tzinfo:
    return ZoneInfo(application_settings.timezone)


def to_local(moment: datetime, tz: tzinfo | None = None) -> datetime:
    """Aware datetimes are converted, naive ones are taken as local time."""

    tz = tz or storefront_timezone()
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def ineligibility_reason(promotion: Promotion, now: datetime, *, tz: tzinfo | None = None) -> str | None:
    """Return why `promotion` is not selectable at `now`, None when it is."""

    tz = tz or storefront_timezone()
    local_now = to_local(now, tz)

    if not promotion.is_active:
        return "Promotion is inactive."
    if promotion.type not in SELECTABLE_TYPES:
        return "Promotion type is not selectable on the cart."
    if local_now < to_local(promotion.start_date, tz):
        return "Promotion has not started yet."
    if local_now > to_local(promotion.end_date, tz):
        return "Promotion has expired."

    conditions = promotion.conditions
    if conditions.usage_limit is not None and promotion.usage_count >= conditions.usage_limit:
        return "Promotion usage limit reached."
    if conditions.days_of_week and DayOfWeek.from_weekday(local_now.weekday()) not in conditions.days_of_week:
        return "Promotion is not valid today."

    if promotion.type is PromotionType.HAPPY_HOUR and conditions.time_slots:
        moment = local_now.time()
        if not any(slot.contains(moment) for slot in conditions.time_slots):
            slots = ", ".join(slot.label() for slot in conditions.time_slots)
            return f"Happy hour is only valid {slots}."

    return None


def is_eligible(promotion: Promotion, now: datetime, *, tz: tzinfo | None = None) -> bool:
    return ineligibility_reason(promotion, now, tz=tz) is None


def check_eligible(promotion: Promotion, now: datetime, *, tz: tzinfo | None = None) -> None:
    reason = ineligibility_reason(promotion, now, tz=tz)
    if reason is not None:
        raise PromotionNotEligibleError(reason)


def check_still_eligible(promotion: Promotion, now: datetime, *, tz: tzinfo | None = None) -> None:
    """Re-validation before checkout: selection-time eligibility is not assumed."""

    reason = ineligibility_reason(promotion, now, tz=tz)
    if reason is not None:
        raise PromotionExpiredError(f"Promotion '{promotion.name}' no longer applies: {reason}")


def eligible_promotions(
    promotion_catalog: Iterable[Promotion],
    now: datetime,
    *,
    tz: tzinfo | None = None,
) -> list[Promotion]:
    tz = tz or storefront_timezone()
    return [p for p in promotion_catalog if is_eligible(p, now, tz=tz)]


def find_by_id(promotion_catalog: Iterable[Promotion], promotion_id: str) -> Promotion:
    for promotion in promotion_catalog:
        if promotion.id == promotion_id:
            return promotion
    raise PromotionNotFoundError("Promotion not found.")


def find_by_code(promotion_catalog: Iterable[Promotion], code: str) -> Promotion:
    """Coupon lookup, case-insensitive."""

    wanted = code.strip().upper()
    for promotion in promotion_catalog:
        if promotion.code is not None and promotion.code.upper() == wanted:
            return promotion
    raise PromotionNotFoundError(f"No promotion with code '{wanted}'.")
