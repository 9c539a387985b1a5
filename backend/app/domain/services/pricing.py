from __future__ import annotations

"""Cart line pricing.

Rules:
- Unit price = (variant price, else dish base price) + sum(topping price * topping quantity)
- Line total = unit price * quantity, exact (Decimal, no rounding)
- A topping selection never keeps an entry at quantity 0: it is dropped
- Line quantity has a floor of 1: decrementing below it is a no-op

Constraints:
- Pure functions: no cart state here, the Cart Store persists the results.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from app.domain.models.cart import ToppingSelection
from app.domain.models.catalog import Dish, SizeVariant, Topping


class PricingError(Exception):
    """Generic pricing error."""


class InvalidVariantError(PricingError):
    """Missing, foreign or unexpected size variant."""


class UnavailableToppingError(PricingError):
    """A selected topping is flagged unavailable."""


class InvalidNoteError(PricingError):
    """The free-text note exceeds the allowed length."""


@dataclass(frozen=True)
class LinePrice:
    unit_price: Decimal
    line_total: Decimal


def default_variant(dish: Dish) -> SizeVariant | None:
    """Variant preselected for a dish: the flagged default, else the first one."""

    if not dish.has_size_variants or not dish.size_variants:
        return None
    for variant in dish.size_variants:
        if variant.is_default:
            return variant
    return dish.size_variants[0]


def base_price(dish: Dish, variant: SizeVariant | None) -> Decimal:
    return variant.price if variant is not None else dish.price


def base_cost(dish: Dish, variant: SizeVariant | None) -> Decimal:
    return variant.cost if variant is not None else dish.cost


def normalize_selections(selections: Iterable[ToppingSelection]) -> tuple[ToppingSelection, ...]:
    """Merge duplicate toppings and drop entries whose quantity is not positive.

    First-seen order is kept.
    """

    quantities: dict[str, int] = {}
    toppings: dict[str, Topping] = {}
    for selection in selections:
        topping_id = selection.topping.id
        if topping_id not in toppings:
            toppings[topping_id] = selection.topping
            quantities[topping_id] = 0
        quantities[topping_id] += int(selection.quantity)

    return tuple(
        ToppingSelection(topping=toppings[topping_id], quantity=quantity)
        for topping_id, quantity in quantities.items()
        if quantity > 0
    )


def adjust_topping(
    selections: Iterable[ToppingSelection],
    topping: Topping,
    delta: int,
) -> tuple[ToppingSelection, ...]:
    """Add `delta` units of `topping` to a selection.

    Reaching 0 removes the entry. Removing an absent topping changes nothing.
    """

    result: list[ToppingSelection] = []
    found = False
    for selection in selections:
        if selection.topping.id != topping.id:
            result.append(selection)
            continue
        found = True
        quantity = selection.quantity + delta
        if quantity > 0:
            result.append(ToppingSelection(topping=selection.topping, quantity=quantity))

    if not found and delta > 0:
        result.append(ToppingSelection(topping=topping, quantity=delta))

    return tuple(result)


def increment_quantity(quantity: int) -> int:
    return max(1, quantity) + 1


def decrement_quantity(quantity: int) -> int:
    """Decrease by one, keeping the floor of 1."""

    return max(1, quantity - 1)


def normalize_note(note: str | None, *, max_length: int) -> str | None:
    if note is None:
        return None
    cleaned = note.strip()
    if not cleaned:
        return None
    if len(cleaned) > max_length:
        raise InvalidNoteError(f"Note is limited to {max_length} characters.")
    return cleaned


def check_variant(dish: Dish, variant: SizeVariant | None) -> None:
    if dish.has_size_variants:
        if variant is None:
            raise InvalidVariantError(f"Dish '{dish.name}' requires a size variant.")
        if variant not in dish.size_variants:
            raise InvalidVariantError(f"Variant '{variant.size}' does not belong to dish '{dish.name}'.")
    elif variant is not None:
        raise InvalidVariantError(f"Dish '{dish.name}' has no size variants.")


def resolve_line_price(
    dish: Dish,
    variant: SizeVariant | None,
    topping_selections: Iterable[ToppingSelection],
    quantity: int,
) -> LinePrice:
    """Compute unit price and line total for one cart line."""

    check_variant(dish, variant)

    unit_price = base_price(dish, variant)
    for selection in topping_selections:
        if selection.quantity <= 0:
            continue
        if not selection.topping.is_available:
            raise UnavailableToppingError(f"Topping '{selection.topping.name}' is unavailable.")
        unit_price += selection.topping.price * selection.quantity

    quantity = max(1, int(quantity))
    return LinePrice(unit_price=unit_price, line_total=unit_price * quantity)
