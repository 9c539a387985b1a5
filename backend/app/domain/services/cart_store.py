from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, tzinfo
from decimal import Decimal
from typing import TypeVar
from uuid import uuid4

from app.core.configuration import application_settings
from app.domain.enums.types import PaymentMethod
from app.domain.models.cart import CartLine, CartSnapshot, LineSpec, OrderPayload, ToppingSelection
from app.domain.models.catalog import Topping
from app.domain.models.promotion import Promotion
from app.domain.services import pricing
from app.domain.services.discount import DiscountError, price_cart, sum_lines
from app.domain.services.eligibility import check_eligible, check_still_eligible

logger = logging.getLogger(__name__)

CartListener = Callable[[int], None]
T = TypeVar("T")


class CartError(Exception):
    """Generic cart error."""


class UnavailableDishError(CartError):
    pass


class InvalidQuantityError(CartError):
    pass


class InvalidPaymentMethodError(CartError):
    pass


class LineNotFoundError(CartError):
    pass


class EmptyCartError(CartError):
    pass


class CartLockedError(CartError):
    """The cart is being handed over for checkout and cannot change."""


class CartStore:
    """Single owned cart: ordered priced lines, one promotion, one payment method.

    Principles:
    - Every mutation goes through a method below and is all-or-nothing:
      lines are immutable and replaced only once the new one is fully priced.
    - Every mutation bumps `revision`; derived values (subtotal, snapshot)
      are computed once per revision and cached until the next mutation.
    - One writer: callers serialize their operations (single event loop).
      While `hold()` is active (checkout hand-off) every mutation is refused.
    - The applied promotion is checked when applied and again at checkout,
      never in between.
    """

    def __init__(
        self,
        *,
        default_payment_method: str | PaymentMethod | None = None,
        note_max_length: int | None = None,
        id_factory: Callable[[], str] | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self._default_payment_method = self._validate_payment_method(
            default_payment_method or application_settings.default_payment_method
        )
        self._note_max_length = note_max_length or application_settings.note_max_length
        self._id_factory = id_factory or (lambda: uuid4().hex)
        self._tz = tz

        self._lines: list[CartLine] = []
        self._applied_promotion: Promotion | None = None
        self._payment_method = self._default_payment_method
        self._revision = 0
        self._cache: dict[str, object] = {}
        self._listeners: list[CartListener] = []
        self._held = False

    # ---- read side ----

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def applied_promotion(self) -> Promotion | None:
        return self._applied_promotion

    @property
    def payment_method(self) -> str:
        return self._payment_method

    @property
    def default_payment_method(self) -> str:
        return self._default_payment_method

    def get_line(self, line_id: str) -> CartLine:
        return self._lines[self._index_of(line_id)]

    def subtotal(self) -> Decimal:
        """Sum of line totals before any promotion; 0 for an empty cart."""

        return self._memo("subtotal", lambda: sum_lines(self._lines))

    def snapshot(self) -> CartSnapshot:
        return self._memo("snapshot", self._build_snapshot)

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a listener called with the new revision after each mutation.

        A listener that raises is logged and skipped; the mutation stands.
        """

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---- lines ----

    def add_line(self, spec: LineSpec) -> CartLine:
        """Append a new priced line. Same dish twice => two distinct lines."""

        self._ensure_writable()
        dish = spec.dish
        if not dish.is_available:
            raise UnavailableDishError(f"Dish '{dish.name}' is unavailable.")

        variant = spec.variant if spec.variant is not None else pricing.default_variant(dish)
        quantity = int(spec.quantity)
        if quantity < 1:
            raise InvalidQuantityError("Quantity must be at least 1.")

        toppings = pricing.normalize_selections(spec.toppings)
        note = pricing.normalize_note(spec.note, max_length=self._note_max_length)
        price = pricing.resolve_line_price(dish, variant, toppings, quantity)

        line = CartLine(
            id=self._new_line_id(),
            dish=dish,
            variant=variant,
            toppings=toppings,
            note=note,
            quantity=quantity,
            unit_price=price.unit_price,
            line_total=price.line_total,
            unit_cost=pricing.base_cost(dish, variant),
        )
        self._lines.append(line)
        self._mutated("add_line", line_id=line.id, dish_id=dish.id)
        return line

    def remove_line(self, line_id: str) -> None:
        """Remove a line; an unknown id is ignored."""

        self._ensure_writable()
        remaining = [line for line in self._lines if line.id != line_id]
        if len(remaining) == len(self._lines):
            return
        self._lines = remaining
        self._mutated("remove_line", line_id=line_id)

    def set_quantity(self, line_id: str, new_quantity: int) -> CartLine:
        """Set the quantity; below 1 is rejected (use remove_line), never clamped."""

        self._ensure_writable()
        if int(new_quantity) < 1:
            raise InvalidQuantityError("Quantity must be at least 1; remove the line instead.")
        return self._reprice(line_id, quantity=int(new_quantity))

    def increment_quantity(self, line_id: str) -> CartLine:
        self._ensure_writable()
        line = self.get_line(line_id)
        return self._reprice(line_id, quantity=pricing.increment_quantity(line.quantity))

    def decrement_quantity(self, line_id: str) -> CartLine:
        """Decrease by one; at quantity 1 nothing changes."""

        self._ensure_writable()
        line = self.get_line(line_id)
        quantity = pricing.decrement_quantity(line.quantity)
        if quantity == line.quantity:
            return line
        return self._reprice(line_id, quantity=quantity)

    def set_toppings(self, line_id: str, selections: Iterable[ToppingSelection]) -> CartLine:
        self._ensure_writable()
        return self._reprice(line_id, toppings=pricing.normalize_selections(selections))

    def adjust_topping(self, line_id: str, topping: Topping, delta: int) -> CartLine:
        self._ensure_writable()
        line = self.get_line(line_id)
        toppings = pricing.adjust_topping(line.toppings, topping, delta)
        if toppings == line.toppings:
            return line
        return self._reprice(line_id, toppings=toppings)

    def set_note(self, line_id: str, note: str | None) -> CartLine:
        self._ensure_writable()
        index = self._index_of(line_id)
        cleaned = pricing.normalize_note(note, max_length=self._note_max_length)
        line = replace(self._lines[index], note=cleaned)
        self._lines[index] = line
        self._mutated("set_note", line_id=line_id)
        return line

    # ---- cart level ----

    def set_payment_method(self, method: str | PaymentMethod) -> None:
        self._ensure_writable()
        self._payment_method = self._validate_payment_method(method)
        self._mutated("set_payment_method", payment_method=self._payment_method)

    def apply_promotion(self, promotion: Promotion, now: datetime) -> None:
        """Apply `promotion`, replacing any previous one.

        The promotion must be eligible at `now` and its order conditions met by
        the current cart; otherwise the error propagates and nothing changes.
        """

        self._ensure_writable()
        try:
            check_eligible(promotion, now, tz=self._tz)
            price_cart(self._lines, promotion)
        except Exception as e:
            logger.info("promotion_rejected promotion_id=%s reason=%s", promotion.id, e)
            raise

        self._applied_promotion = promotion
        self._mutated("apply_promotion", promotion_id=promotion.id)

    def remove_promotion(self) -> None:
        self._ensure_writable()
        if self._applied_promotion is None:
            return
        self._applied_promotion = None
        self._mutated("remove_promotion")

    def clear(self) -> None:
        """Empty lines, drop the promotion and reset the payment method at once."""

        self._ensure_writable()
        self._lines = []
        self._applied_promotion = None
        self._payment_method = self._default_payment_method
        self._mutated("clear")

    def checkout(self, now: datetime) -> OrderPayload:
        """Finalized payload for order placement.

        The applied promotion is re-validated here (window, slot, conditions).
        The cart itself is left untouched; the caller clears it once the order
        has been handed over.
        """

        if not self._lines:
            raise EmptyCartError("Cannot check out an empty cart.")

        promotion = self._applied_promotion
        if promotion is not None:
            check_still_eligible(promotion, now, tz=self._tz)

        pricing_result = price_cart(self._lines, promotion)
        payload = OrderPayload(
            lines=pricing_result.lines,
            payment_method=self._payment_method,
            subtotal=pricing_result.subtotal,
            discount_amount=pricing_result.discount_amount,
            final_total=pricing_result.final_total,
            applied_promotion_id=promotion.id if promotion is not None else None,
        )
        logger.info(
            "checkout revision=%s lines=%s final_total=%s promotion_id=%s",
            self._revision,
            len(payload.lines),
            payload.final_total,
            payload.applied_promotion_id,
        )
        return payload

    @property
    def is_held(self) -> bool:
        return self._held

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Freeze the cart while a checkout payload is being handed over.

        Mutations attempted meanwhile raise `CartLockedError` instead of being
        lost by the clear that follows a successful hand-off.
        """

        if self._held:
            raise CartLockedError("Checkout already in progress.")
        self._held = True
        try:
            yield
        finally:
            self._held = False

    # ---- internals ----

    def _reprice(
        self,
        line_id: str,
        *,
        quantity: int | None = None,
        toppings: tuple[ToppingSelection, ...] | None = None,
    ) -> CartLine:
        index = self._index_of(line_id)
        line = self._lines[index]
        quantity = line.quantity if quantity is None else quantity
        toppings = line.toppings if toppings is None else toppings

        price = pricing.resolve_line_price(line.dish, line.variant, toppings, quantity)
        updated = replace(
            line,
            toppings=toppings,
            quantity=quantity,
            unit_price=price.unit_price,
            line_total=price.line_total,
        )
        self._lines[index] = updated
        self._mutated("reprice_line", line_id=line_id, quantity=quantity)
        return updated

    def _build_snapshot(self) -> CartSnapshot:
        promotion = self._applied_promotion
        blocked_reason: str | None = None
        try:
            result = price_cart(self._lines, promotion)
        except DiscountError as e:
            # Kept applied: checkout will refuse it, the view shows why.
            blocked_reason = str(e)
            result = price_cart(self._lines, None)

        return CartSnapshot(
            revision=self._revision,
            lines=result.lines,
            payment_method=self._payment_method,
            applied_promotion=promotion,
            original_subtotal=result.original_subtotal,
            subtotal=result.subtotal,
            discount_amount=result.discount_amount,
            final_total=result.final_total,
            promotion_blocked_reason=blocked_reason,
        )

    def _ensure_writable(self) -> None:
        if self._held:
            raise CartLockedError("Cart is locked while checkout is in progress.")

    def _index_of(self, line_id: str) -> int:
        for index, line in enumerate(self._lines):
            if line.id == line_id:
                return index
        raise LineNotFoundError(f"Cart line '{line_id}' not found.")

    def _new_line_id(self) -> str:
        existing = {line.id for line in self._lines}
        line_id = self._id_factory()
        while line_id in existing:
            line_id = self._id_factory()
        return line_id

    def _memo(self, key: str, compute: Callable[[], T]) -> T:
        if key not in self._cache:
            self._cache[key] = compute()
        return self._cache[key]  # type: ignore[return-value]

    def _mutated(self, operation: str, **details: object) -> None:
        self._revision += 1
        self._cache.clear()
        logger.debug(
            "cart_mutation op=%s revision=%s %s",
            operation,
            self._revision,
            " ".join(f"{k}={v}" for k, v in details.items()),
        )
        # The mutation has already happened: a failing listener must not undo it.
        for listener in list(self._listeners):
            try:
                listener(self._revision)
            except Exception:
                logger.exception("cart_listener_failed op=%s revision=%s", operation, self._revision)

    @staticmethod
    def _validate_payment_method(method: str | PaymentMethod) -> str:
        try:
            return PaymentMethod(method).value
        except ValueError as e:
            raise InvalidPaymentMethodError(f"Unknown payment method '{method}'.") from e
