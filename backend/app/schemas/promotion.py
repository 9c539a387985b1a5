from __future__ import annotations

"""Promotion provider payloads.

Rules enforced at ingestion:
- `discount` carries exactly one of percentage / fixedAmount / uniformPrice
- uniformPrice is reserved to happy_hour promotions
- time slots are HH:MM with start < end (no midnight crossing)
- startDate <= endDate
"""

from collections.abc import Iterable
from datetime import datetime, time
from decimal import Decimal
from typing import Any

from pydantic import Field, field_validator, model_validator

from app.domain.enums.types import ApplicableItems, DayOfWeek, PromotionType
from app.domain.models.promotion import (
    Discount,
    FixedAmountDiscount,
    PercentageDiscount,
    Promotion,
    PromotionConditions,
    TimeSlot,
    UniformPriceDiscount,
)
from app.schemas.catalog import ProviderModel

HHMM_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


def _parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def _reference_id(value: Any) -> Any:
    if isinstance(value, dict):
        return value.get("_id", value.get("id"))
    return value


class TimeSlotPayload(ProviderModel):
    start: str = Field(..., pattern=HHMM_PATTERN)
    end: str = Field(..., pattern=HHMM_PATTERN)

    @model_validator(mode="after")
    def _check_order(self) -> "TimeSlotPayload":
        if _parse_hhmm(self.start) >= _parse_hhmm(self.end):
            raise ValueError(f"Time slot {self.start}-{self.end} must start before it ends (no midnight crossing).")
        return self

    def to_domain(self) -> TimeSlot:
        return TimeSlot(start=_parse_hhmm(self.start), end=_parse_hhmm(self.end))


class DiscountPayload(ProviderModel):
    percentage: Decimal | None = Field(default=None, ge=0, le=100)
    fixed_amount: Decimal | None = Field(default=None, ge=0, alias="fixedAmount")
    uniform_price: Decimal | None = Field(default=None, ge=0, alias="uniformPrice")

    @model_validator(mode="after")
    def _exactly_one(self) -> "DiscountPayload":
        populated = [v for v in (self.percentage, self.fixed_amount, self.uniform_price) if v is not None]
        if len(populated) != 1:
            raise ValueError("Discount must set exactly one of percentage, fixedAmount or uniformPrice.")
        return self

    def to_domain(self) -> Discount:
        if self.percentage is not None:
            return PercentageDiscount(percentage=self.percentage)
        if self.fixed_amount is not None:
            return FixedAmountDiscount(fixed_amount=self.fixed_amount)
        assert self.uniform_price is not None
        return UniformPriceDiscount(uniform_price=self.uniform_price)


class ConditionsPayload(ProviderModel):
    min_order_amount: Decimal | None = Field(default=None, ge=0, alias="minOrderAmount")
    max_order_amount: Decimal | None = Field(default=None, ge=0, alias="maxOrderAmount")
    time_slots: list[TimeSlotPayload] = Field(default_factory=list, alias="timeSlots")
    days_of_week: list[DayOfWeek] = Field(default_factory=list, alias="daysOfWeek")
    usage_limit: int | None = Field(default=None, ge=1, alias="usageLimit")

    @field_validator("days_of_week", mode="before")
    @classmethod
    def _lower_days(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [v.lower() if isinstance(v, str) else v for v in value]
        return value

    def to_domain(self) -> PromotionConditions:
        return PromotionConditions(
            min_order_amount=self.min_order_amount,
            max_order_amount=self.max_order_amount,
            time_slots=tuple(s.to_domain() for s in self.time_slots),
            days_of_week=tuple(self.days_of_week),
            usage_limit=self.usage_limit,
        )


class PromotionPayload(ProviderModel):
    id: str = Field(..., alias="_id")
    name: str = Field(..., min_length=1, max_length=100)
    type: PromotionType
    is_active: bool = Field(default=True, alias="isActive")
    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime = Field(..., alias="endDate")
    discount: DiscountPayload
    conditions: ConditionsPayload = Field(default_factory=ConditionsPayload)
    code: str | None = Field(default=None, max_length=20)
    description: str | None = None
    usage_count: int = Field(default=0, ge=0, alias="usageCount")
    priority: int = 0
    applicable_items: ApplicableItems = Field(default=ApplicableItems.ALL_ORDER, alias="applicableItems")
    specific_dishes: list[str] = Field(default_factory=list, alias="specificDishes")
    categories: list[str] = Field(default_factory=list)

    @field_validator("code", mode="before")
    @classmethod
    def _upper_code(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper() or None
        return value

    @field_validator("specific_dishes", mode="before")
    @classmethod
    def _dish_ids(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_reference_id(v) for v in value]
        return value

    @field_validator("categories", mode="before")
    @classmethod
    def _category_names(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [v.get("name") if isinstance(v, dict) else v for v in value]
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> "PromotionPayload":
        if self.start_date > self.end_date:
            raise ValueError(f"Promotion '{self.name}' ends before it starts.")
        if self.discount.uniform_price is not None and self.type is not PromotionType.HAPPY_HOUR:
            raise ValueError("uniformPrice is only allowed on happy_hour promotions.")
        return self

    def to_domain(self) -> Promotion:
        return Promotion(
            id=self.id,
            name=self.name,
            type=self.type,
            discount=self.discount.to_domain(),
            start_date=self.start_date,
            end_date=self.end_date,
            is_active=self.is_active,
            conditions=self.conditions.to_domain(),
            code=self.code,
            description=self.description,
            usage_count=self.usage_count,
            priority=self.priority,
            applicable_items=self.applicable_items,
            specific_dishes=tuple(self.specific_dishes),
            categories=tuple(self.categories),
        )


def parse_promotions(payload: Iterable[dict[str, Any]]) -> tuple[Promotion, ...]:
    """Validate a whole promotion list; one invalid entry rejects the batch."""

    return tuple(PromotionPayload.model_validate(item).to_domain() for item in payload)
