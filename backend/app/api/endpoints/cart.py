from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.api.dependencies import provide_session
from app.api.errors import DOMAIN_ERRORS, to_http_exception
from app.api.schemas.cart import (
    AddLineRequest,
    ApplyPromotionRequest,
    CartOut,
    NoteRequest,
    OrderPayloadOut,
    PaymentMethodRequest,
    QuantityRequest,
    ToppingsRequest,
)
from app.domain.services.storefront_session import StorefrontSession

cart_router = APIRouter(prefix="/api/storefront/cart", tags=["cart"])


def _snapshot(session: StorefrontSession) -> CartOut:
    return CartOut.from_domain(session.cart.snapshot())


@cart_router.get("", response_model=CartOut)
async def get_cart(session: StorefrontSession = Depends(provide_session)) -> CartOut:
    return _snapshot(session)


@cart_router.delete("", response_model=CartOut)
async def clear_cart(session: StorefrontSession = Depends(provide_session)) -> CartOut:
    try:
        session.cart.clear()
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
    return _snapshot(session)


@cart_router.post("/lines", response_model=CartOut, status_code=status.HTTP_201_CREATED)
async def add_line(
    body: AddLineRequest,
    session: StorefrontSession = Depends(provide_session),
) -> CartOut:
    """Add a dish to the cart.

    - Same dish twice => two lines, never merged
    - Translates business errors into HTTP (400 / 409)
    """

    try:
        session.add_line(
            dish_id=body.dish_id,
            variant_size=body.variant_size,
            toppings=[(t.topping_id, t.quantity) for t in body.toppings],
            quantity=body.quantity,
            note=body.note,
        )
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e

    return _snapshot(session)


@cart_router.delete("/lines/{line_id}", response_model=CartOut)
async def remove_line(line_id: str, session: StorefrontSession = Depends(provide_session)) -> CartOut:
    """Idempotent: an unknown line id is not an error."""

    try:
        session.cart.remove_line(line_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
    return _snapshot(session)


@cart_router.put("/lines/{line_id}/quantity", response_model=CartOut)
async def set_quantity(
    line_id: str,
    body: QuantityRequest,
    session: StorefrontSession = Depends(provide_session),
) -> CartOut:
    try:
        session.cart.set_quantity(line_id, body.quantity)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
    return _snapshot(session)


@cart_router.post("/lines/{line_id}/increment", response_model=CartOut)
async def increment_quantity(line_id: str, session: StorefrontSession = Depends(provide_session)) -> CartOut:
    try:
        session.cart.increment_quantity(line_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
    return _snapshot(session)


@cart_router.post("/lines/{line_id}/decrement", response_model=CartOut)
async def decrement_quantity(line_id: str, session: StorefrontSession = Depends(provide_session)) -> CartOut:
    """Quantity floor is 1: decrementing a single unit changes nothing."""

    try:
        session.cart.decrement_quantity(line_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
    return _snapshot(session)


@cart_router.put("/lines/{line_id}/toppings", response_model=CartOut)
async def set_toppings(
    line_id: str,
    body: ToppingsRequest,
    session: StorefrontSession = Depends(provide_session),
) -> CartOut:
    try:
        session.set_toppings(line_id, [(t.topping_id, t.quantity) for t in body.toppings])
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
    return _snapshot(session)


@cart_router.put("/lines/{line_id}/note", response_model=CartOut)
async def set_note(
    line_id: str,
    body: NoteRequest,
    session: StorefrontSession = Depends(provide_session),
) -> CartOut:
    try:
        session.cart.set_note(line_id, body.note)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
    return _snapshot(session)


@cart_router.put("/promotion", response_model=CartOut)
async def apply_promotion(
    body: ApplyPromotionRequest,
    session: StorefrontSession = Depends(provide_session),
) -> CartOut:
    """Apply a promotion (by id or coupon code); it replaces the previous one.

    On failure the previously applied promotion stays in place.
    """

    try:
        session.apply_promotion(promotion_id=body.promotion_id, code=body.code)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
    return _snapshot(session)


@cart_router.delete("/promotion", response_model=CartOut)
async def remove_promotion(session: StorefrontSession = Depends(provide_session)) -> CartOut:
    try:
        session.cart.remove_promotion()
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
    return _snapshot(session)


@cart_router.put("/payment-method", response_model=CartOut)
async def set_payment_method(
    body: PaymentMethodRequest,
    session: StorefrontSession = Depends(provide_session),
) -> CartOut:
    try:
        session.cart.set_payment_method(body.payment_method)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
    return _snapshot(session)


@cart_router.post("/checkout", response_model=OrderPayloadOut, status_code=status.HTTP_201_CREATED)
async def checkout(session: StorefrontSession = Depends(provide_session)) -> OrderPayloadOut:
    """Finalize the cart and hand it to the order submitter.

    - The applied promotion is re-checked now (409 if it no longer applies)
    - The cart is reset once the order has been handed over
    """

    try:
        payload = await session.checkout()
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e

    return OrderPayloadOut.from_domain(payload)
