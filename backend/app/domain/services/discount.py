from __future__ import annotations

"""Discount resolution for the cart.

Rules:
- order_percentage: subtotal * percentage / 100, capped at the subtotal
- order_fixed: min(fixed_amount, subtotal)
- happy_hour with a percentage or a fixed amount behaves like the order types
- happy_hour with a uniform price is NOT a subtracted discount: eligible line
  unit prices are replaced upstream (`reprice_lines`) before the subtotal is
  aggregated, and the discount reported afterwards is 0
- final total = subtotal - discount, floored at 0
- one promotion at most, no stacking

Order amount conditions (min / max) are checked against the order amount
before any repricing.
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from decimal import Decimal

from app.domain.enums.types import PromotionType
from app.domain.models.cart import CartLine
from app.domain.models.promotion import (
    FixedAmountDiscount,
    PercentageDiscount,
    Promotion,
    UniformPriceDiscount,
)
from app.domain.services.eligibility import SELECTABLE_TYPES

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class DiscountError(Exception):
    """Generic discount error."""


class MinimumOrderNotMetError(DiscountError):
    pass


class MaximumOrderExceededError(DiscountError):
    pass


class UnsupportedPromotionError(DiscountError):
    """Item-level promotion types are not resolved at cart level."""


@dataclass(frozen=True)
class DiscountResult:
    discount_amount: Decimal
    final_total: Decimal


@dataclass(frozen=True)
class CartPricing:
    lines: tuple[CartLine, ...]
    original_subtotal: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    final_total: Decimal


def sum_lines(lines: Iterable[CartLine]) -> Decimal:
    return sum((line.line_total for line in lines), ZERO)


def check_order_amount(order_amount: Decimal, promotion: Promotion) -> None:
    conditions = promotion.conditions
    if conditions.min_order_amount is not None and order_amount < conditions.min_order_amount:
        raise MinimumOrderNotMetError(
            f"Promotion '{promotion.name}' requires a minimum order of {conditions.min_order_amount}."
        )
    if conditions.max_order_amount is not None and order_amount > conditions.max_order_amount:
        raise MaximumOrderExceededError(
            f"Promotion '{promotion.name}' is limited to orders up to {conditions.max_order_amount}."
        )


def uses_line_pricing(promotion: Promotion | None) -> bool:
    return (
        promotion is not None
        and promotion.type is PromotionType.HAPPY_HOUR
        and isinstance(promotion.discount, UniformPriceDiscount)
    )


def reprice_lines(lines: Iterable[CartLine], promotion: Promotion | None) -> tuple[CartLine, ...]:
    """Substitute the uniform happy-hour price on every applicable line.

    A line already cheaper than the uniform price keeps its own price.
    """

    lines = tuple(lines)
    if promotion is None or not uses_line_pricing(promotion):
        return lines

    assert isinstance(promotion.discount, UniformPriceDiscount)
    uniform_price = promotion.discount.uniform_price

    repriced: list[CartLine] = []
    for line in lines:
        if promotion.applies_to(line.dish) and uniform_price < line.unit_price:
            line = replace(line, unit_price=uniform_price, line_total=uniform_price * line.quantity)
        repriced.append(line)
    return tuple(repriced)


def compute_discount(
    subtotal: Decimal,
    applied_promotion: Promotion | None,
    *,
    order_amount: Decimal | None = None,
) -> DiscountResult:
    """Discount amount and final total for a subtotal.

    `order_amount` is what the min/max conditions are checked against; it
    defaults to `subtotal`.
    """

    if applied_promotion is None:
        return DiscountResult(discount_amount=ZERO, final_total=subtotal)

    if applied_promotion.type not in SELECTABLE_TYPES:
        raise UnsupportedPromotionError(f"Promotion type '{applied_promotion.type.value}' is not cart-level.")

    check_order_amount(subtotal if order_amount is None else order_amount, applied_promotion)

    discount = applied_promotion.discount
    if isinstance(discount, PercentageDiscount):
        amount = subtotal * discount.percentage / HUNDRED
    elif isinstance(discount, FixedAmountDiscount):
        amount = discount.fixed_amount
    else:
        # Uniform price: already folded into the subtotal by reprice_lines.
        amount = ZERO

    amount = max(ZERO, min(amount, subtotal))
    return DiscountResult(discount_amount=amount, final_total=max(ZERO, subtotal - amount))


def price_cart(lines: Iterable[CartLine], applied_promotion: Promotion | None) -> CartPricing:
    """Full pricing pass: repricing, subtotal aggregation, then discount."""

    lines = tuple(lines)
    original_subtotal = sum_lines(lines)
    repriced = reprice_lines(lines, applied_promotion)
    subtotal = sum_lines(repriced)

    result = compute_discount(subtotal, applied_promotion, order_amount=original_subtotal)
    return CartPricing(
        lines=repriced,
        original_subtotal=original_subtotal,
        subtotal=subtotal,
        discount_amount=result.discount_amount,
        final_total=result.final_total,
    )
