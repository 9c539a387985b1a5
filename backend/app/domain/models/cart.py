from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from app.domain.models.catalog import Dish, SizeVariant, Topping
from app.domain.models.promotion import Promotion


@dataclass(frozen=True)
class ToppingSelection:
    topping: Topping
    quantity: int


@dataclass(frozen=True)
class LineSpec:
    """What the caller asks for when adding a dish to the cart."""

    dish: Dish
    variant: SizeVariant | None = None
    toppings: tuple[ToppingSelection, ...] = ()
    quantity: int = 1
    note: str | None = None


@dataclass(frozen=True)
class CartLine:
    id: str
    dish: Dish
    variant: SizeVariant | None
    toppings: tuple[ToppingSelection, ...]
    note: str | None
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    unit_cost: Decimal = Decimal("0")

    @property
    def display_name(self) -> str:
        if self.variant is not None:
            return f"{self.dish.name} ({self.variant.size})"
        return self.dish.name


@dataclass(frozen=True)
class CartSnapshot:
    """Read-only view of the cart for one revision.

    `original_subtotal` is the sum of resolved line totals; `subtotal` is the
    same sum after a uniform-price happy hour repriced eligible lines.
    """

    revision: int
    lines: tuple[CartLine, ...]
    payment_method: str
    applied_promotion: Promotion | None
    original_subtotal: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    final_total: Decimal
    promotion_blocked_reason: str | None = None


@dataclass(frozen=True)
class OrderPayload:
    """Finalized cart handed to the order-submission collaborator."""

    lines: tuple[CartLine, ...]
    payment_method: str
    subtotal: Decimal
    discount_amount: Decimal
    final_total: Decimal
    applied_promotion_id: str | None
