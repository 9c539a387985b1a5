from __future__ import annotations

from decimal import Decimal

import pytest

from app.domain.enums.types import ApplicableItems, PromotionType
from app.domain.models.cart import CartLine
from app.domain.services.discount import (
    MaximumOrderExceededError,
    MinimumOrderNotMetError,
    UnsupportedPromotionError,
    compute_discount,
    price_cart,
    reprice_lines,
)
from app.domain.services.pricing import resolve_line_price
from tests._builders import fixed, milk_tea, percentage, pho, promotion, uniform


def _line(line_id: str, dish, quantity: int = 1) -> CartLine:
    variant = dish.find_variant("Large") if dish.has_size_variants else None
    price = resolve_line_price(dish, variant, (), quantity)
    return CartLine(
        id=line_id,
        dish=dish,
        variant=variant,
        toppings=(),
        note=None,
        quantity=quantity,
        unit_price=price.unit_price,
        line_total=price.line_total,
    )


def test_no_promotion() -> None:
    result = compute_discount(Decimal("100000"), None)

    assert result.discount_amount == Decimal("0")
    assert result.final_total == Decimal("100000")


def test_order_percentage() -> None:
    result = compute_discount(Decimal("100000"), promotion(discount=percentage("20")))

    assert result.discount_amount == Decimal("20000")
    assert result.final_total == Decimal("80000")


def test_order_percentage_is_capped() -> None:
    result = compute_discount(Decimal("100000"), promotion(discount=percentage("100")))

    assert result.discount_amount == Decimal("100000")
    assert result.final_total == Decimal("0")


def test_order_fixed_is_capped_at_subtotal() -> None:
    promo = promotion(type=PromotionType.ORDER_FIXED, discount=fixed("50000"))

    result = compute_discount(Decimal("30000"), promo)

    assert result.discount_amount == Decimal("30000")
    assert result.final_total == Decimal("0")


def test_minimum_order_not_met() -> None:
    promo = promotion(min_order_amount="200000")

    with pytest.raises(MinimumOrderNotMetError):
        compute_discount(Decimal("150000"), promo)


def test_maximum_order_exceeded() -> None:
    with pytest.raises(MaximumOrderExceededError):
        compute_discount(Decimal("500000"), promotion(max_order_amount="300000"))


def test_item_level_type_is_refused() -> None:
    with pytest.raises(UnsupportedPromotionError):
        compute_discount(Decimal("1000"), promotion(type=PromotionType.ITEM_FIXED, discount=fixed("10")))


@pytest.mark.parametrize(
    "discount,expected",
    [
        (percentage("10"), Decimal("10000")),
        (fixed("15000"), Decimal("15000")),
    ],
)
def test_happy_hour_percentage_and_fixed_behave_like_order_types(discount, expected: Decimal) -> None:
    promo = promotion(type=PromotionType.HAPPY_HOUR, discount=discount)

    assert compute_discount(Decimal("100000"), promo).discount_amount == expected


def test_uniform_price_reprices_lines_before_subtotal() -> None:
    promo = promotion(type=PromotionType.HAPPY_HOUR, discount=uniform("25000"))
    lines = [_line("l1", milk_tea(), 2), _line("l2", pho(), 1)]

    pricing = price_cart(lines, promo)

    assert [line.unit_price for line in pricing.lines] == [Decimal("25000"), Decimal("25000")]
    assert pricing.original_subtotal == Decimal("130000")
    assert pricing.subtotal == Decimal("75000")
    assert pricing.discount_amount == Decimal("0")
    assert pricing.final_total == Decimal("75000")


def test_uniform_price_respects_applicable_categories() -> None:
    promo = promotion(
        type=PromotionType.HAPPY_HOUR,
        discount=uniform("25000"),
        applicable_items=ApplicableItems.CATEGORIES,
        categories=("Drinks",),
    )

    repriced = reprice_lines([_line("l1", milk_tea()), _line("l2", pho())], promo)

    assert [line.line_total for line in repriced] == [Decimal("25000"), Decimal("50000")]


def test_uniform_price_never_raises_a_cheaper_line() -> None:
    promo = promotion(type=PromotionType.HAPPY_HOUR, discount=uniform("60000"))

    repriced = reprice_lines([_line("l1", pho())], promo)

    assert repriced[0].unit_price == Decimal("50000")


def test_uniform_price_minimum_is_checked_on_original_amount() -> None:
    promo = promotion(type=PromotionType.HAPPY_HOUR, discount=uniform("10000"), min_order_amount="100000")

    # 2 x 50 000 before repricing: meets the minimum even though the repriced subtotal is 20 000
    pricing = price_cart([_line("l1", pho(), 2)], promo)

    assert pricing.final_total == Decimal("20000")
