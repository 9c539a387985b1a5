from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from app.domain.services.cart_store import CartLockedError, EmptyCartError
from app.domain.services.discount import MinimumOrderNotMetError
from app.domain.services.eligibility import PromotionExpiredError, PromotionNotFoundError
from app.domain.services.order_submitter import FakeOrderSubmitter
from app.domain.services.pricing import InvalidVariantError, UnavailableToppingError
from app.domain.services.providers import StaticCatalogProvider, StaticPromotionProvider
from app.domain.services.storefront_session import SessionRegistry, StorefrontSession, UnknownCatalogItemError
from tests._builders import FrozenClock, GatedSubmitter, at, catalog_payload


@pytest.mark.asyncio
async def test_registry_refresh_loads_snapshots(registry: SessionRegistry) -> None:
    assert await registry.refresh() == (True, True)

    session = registry.session("counter-1")
    assert [d.id for d in session.catalog.dishes] == ["dish-pho", "dish-tea", "dish-off"]
    assert len(session.promotions) == 5


@pytest.mark.asyncio
async def test_sessions_are_isolated(registry: SessionRegistry) -> None:
    await registry.refresh()

    first = registry.session("a")
    first.add_line(dish_id="dish-pho")

    assert registry.session("a") is first
    assert registry.session("b").cart.lines == ()
    assert registry.session("b").catalog is first.catalog


@pytest.mark.asyncio
async def test_add_line_by_ids(registry: SessionRegistry) -> None:
    await registry.refresh()
    session = registry.session("s")

    line = session.add_line(
        dish_id="dish-tea",
        variant_size="Small",
        toppings=[("top-pearl", 2)],
        quantity=2,
        note="  less sugar ",
    )

    assert line.display_name == "Milk Tea (Small)"
    assert line.unit_price == Decimal("40000")
    assert line.line_total == Decimal("80000")
    assert line.note == "less sugar"


@pytest.mark.asyncio
async def test_add_line_uses_default_variant(registry: SessionRegistry) -> None:
    await registry.refresh()

    line = registry.session("s").add_line(dish_id="dish-tea")

    assert line.variant is not None and line.variant.size == "Large"
    assert line.unit_price == Decimal("40000")


@pytest.mark.asyncio
async def test_add_line_rejects_unknown_references(registry: SessionRegistry) -> None:
    await registry.refresh()
    session = registry.session("s")

    with pytest.raises(UnknownCatalogItemError):
        session.add_line(dish_id="dish-missing")
    with pytest.raises(UnknownCatalogItemError):
        session.add_line(dish_id="dish-tea", toppings=[("top-missing", 1)])
    with pytest.raises(InvalidVariantError):
        session.add_line(dish_id="dish-tea", variant_size="Medium")
    with pytest.raises(UnavailableToppingError):
        session.add_line(dish_id="dish-tea", toppings=[("top-jelly", 1)])

    assert session.cart.lines == ()
    assert session.cart.revision == 0


@pytest.mark.asyncio
async def test_set_toppings_by_ids(registry: SessionRegistry) -> None:
    await registry.refresh()
    session = registry.session("s")
    line = session.add_line(dish_id="dish-tea")

    updated = session.set_toppings(line.id, [("top-foam", 1), ("top-pearl", 1), ("top-foam", 1)])

    assert [(s.topping.id, s.quantity) for s in updated.toppings] == [("top-foam", 2), ("top-pearl", 1)]
    assert updated.unit_price == Decimal("65000")


@pytest.mark.asyncio
async def test_eligible_promotions_follow_clock(registry: SessionRegistry, clock: FrozenClock) -> None:
    await registry.refresh()
    session = registry.session("s")

    assert [p.id for p in session.eligible_promotions()] == ["promo-20", "promo-fixed", "promo-hh"]

    clock.now = at(20, 0)
    assert [p.id for p in session.eligible_promotions()] == ["promo-20", "promo-fixed"]


@pytest.mark.asyncio
async def test_apply_promotion_by_code(registry: SessionRegistry) -> None:
    await registry.refresh()
    session = registry.session("s")
    session.add_line(dish_id="dish-pho", quantity=4)

    promotion = session.apply_promotion(code=" Save50 ")

    assert promotion.id == "promo-fixed"
    snapshot = session.cart.snapshot()
    assert snapshot.discount_amount == Decimal("50000")
    assert snapshot.final_total == Decimal("150000")


@pytest.mark.asyncio
async def test_apply_promotion_errors(registry: SessionRegistry) -> None:
    await registry.refresh()
    session = registry.session("s")
    session.add_line(dish_id="dish-pho")
    session.apply_promotion(promotion_id="promo-20")

    with pytest.raises(PromotionNotFoundError):
        session.apply_promotion(code="NOPE")
    with pytest.raises(MinimumOrderNotMetError):
        session.apply_promotion(promotion_id="promo-fixed")
    with pytest.raises(ValueError):
        session.apply_promotion()

    applied = session.cart.applied_promotion
    assert applied is not None and applied.id == "promo-20"


@pytest.mark.asyncio
async def test_checkout_submits_then_clears(
    registry: SessionRegistry,
    submitter: FakeOrderSubmitter,
) -> None:
    await registry.refresh()
    session = registry.session("s")
    session.add_line(dish_id="dish-pho", quantity=2)
    session.apply_promotion(promotion_id="promo-20")
    session.cart.set_payment_method("Card")

    payload = await session.checkout()

    assert submitter.orders == [payload]
    assert payload.subtotal == Decimal("100000")
    assert payload.discount_amount == Decimal("20000")
    assert payload.final_total == Decimal("80000")
    assert payload.payment_method == "Card"
    assert payload.applied_promotion_id == "promo-20"

    assert session.cart.lines == ()
    assert session.cart.applied_promotion is None
    assert session.cart.payment_method == "Cash"


@pytest.mark.asyncio
async def test_checkout_refuses_expired_happy_hour(
    registry: SessionRegistry,
    submitter: FakeOrderSubmitter,
    clock: FrozenClock,
) -> None:
    await registry.refresh()
    session = registry.session("s")
    session.add_line(dish_id="dish-tea")
    session.apply_promotion(promotion_id="promo-hh")

    clock.now = at(19, 0)
    with pytest.raises(PromotionExpiredError):
        await session.checkout()

    assert submitter.orders == []
    assert len(session.cart.lines) == 1


@pytest.mark.asyncio
async def test_checkout_empty_cart(registry: SessionRegistry, submitter: FakeOrderSubmitter) -> None:
    await registry.refresh()

    with pytest.raises(EmptyCartError):
        await registry.session("s").checkout()

    assert submitter.orders == []


async def _gated_session(
    submitter: GatedSubmitter,
    promotions_payload: list[dict],
    clock: FrozenClock,
) -> StorefrontSession:
    registry = SessionRegistry(
        catalog_provider=StaticCatalogProvider(catalog_payload()),
        promotion_provider=StaticPromotionProvider(promotions_payload),
        submitter=submitter,
        clock=clock,
    )
    await registry.refresh()
    return registry.session("s")


@pytest.mark.asyncio
async def test_edits_during_checkout_are_refused_not_lost(
    promotions_payload: list[dict],
    clock: FrozenClock,
) -> None:
    submitter = GatedSubmitter()
    session = await _gated_session(submitter, promotions_payload, clock)
    session.add_line(dish_id="dish-pho")

    checkout = asyncio.create_task(session.checkout())
    await submitter.entered.wait()

    with pytest.raises(CartLockedError):
        session.add_line(dish_id="dish-tea")
    with pytest.raises(CartLockedError):
        await session.checkout()

    submitter.gate.set()
    payload = await checkout

    assert [line.dish.id for line in payload.lines] == ["dish-pho"]
    assert submitter.orders == [payload]
    assert session.cart.lines == ()

    session.add_line(dish_id="dish-tea")
    assert len(session.cart.lines) == 1


@pytest.mark.asyncio
async def test_failed_submission_keeps_cart(promotions_payload: list[dict], clock: FrozenClock) -> None:
    submitter = GatedSubmitter(fail=True)
    submitter.gate.set()
    session = await _gated_session(submitter, promotions_payload, clock)
    line = session.add_line(dish_id="dish-pho")

    with pytest.raises(ConnectionError):
        await session.checkout()

    assert session.cart.lines == (line,)
    assert not session.cart.is_held
    session.cart.set_quantity(line.id, 2)
