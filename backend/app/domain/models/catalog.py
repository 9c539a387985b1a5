from __future__ import annotations

"""Read-only catalog snapshot: dishes, size variants and toppings.

Amounts are `Decimal` in the storefront currency; the core never rounds.
"""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class SizeVariant:
    size: str
    price: Decimal
    cost: Decimal = Decimal("0")
    is_default: bool = False


@dataclass(frozen=True)
class Dish:
    id: str
    name: str
    price: Decimal
    cost: Decimal = Decimal("0")
    is_available: bool = True
    has_size_variants: bool = False
    size_variants: tuple[SizeVariant, ...] = ()
    category: str | None = None

    def find_variant(self, size: str) -> SizeVariant | None:
        for variant in self.size_variants:
            if variant.size == size:
                return variant
        return None


@dataclass(frozen=True)
class Topping:
    id: str
    name: str
    price: Decimal
    is_available: bool = True
    category: str = ""
    description: str | None = None


@dataclass(frozen=True)
class CatalogSnapshot:
    """Dishes and toppings as handed over by the catalog provider."""

    dishes: tuple[Dish, ...] = ()
    toppings: tuple[Topping, ...] = ()
    _dish_index: dict[str, Dish] = field(default_factory=dict, init=False, repr=False, compare=False)
    _topping_index: dict[str, Topping] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._dish_index.update({d.id: d for d in self.dishes})
        self._topping_index.update({t.id: t for t in self.toppings})

    def find_dish(self, dish_id: str) -> Dish | None:
        return self._dish_index.get(dish_id)

    def find_topping(self, topping_id: str) -> Topping | None:
        return self._topping_index.get(topping_id)

    def toppings_by_category(self) -> dict[str, list[Topping]]:
        """Group toppings by category name, keeping catalog order."""

        grouped: dict[str, list[Topping]] = {}
        for topping in self.toppings:
            grouped.setdefault(topping.category, []).append(topping)
        return grouped
