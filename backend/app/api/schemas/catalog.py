from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel

from app.domain.models.catalog import CatalogSnapshot, Dish, Topping


class SizeVariantOut(BaseModel):
    size: str
    price: Decimal
    is_default: bool


class DishOut(BaseModel):
    id: str
    name: str
    price: Decimal
    is_available: bool
    has_size_variants: bool
    size_variants: list[SizeVariantOut]
    category: str | None

    @classmethod
    def from_domain(cls, dish: Dish) -> "DishOut":
        return cls(
            id=dish.id,
            name=dish.name,
            price=dish.price,
            is_available=dish.is_available,
            has_size_variants=dish.has_size_variants,
            size_variants=[
                SizeVariantOut(size=v.size, price=v.price, is_default=v.is_default) for v in dish.size_variants
            ],
            category=dish.category,
        )


class ToppingOut(BaseModel):
    id: str
    name: str
    price: Decimal
    is_available: bool
    description: str | None = None

    @classmethod
    def from_domain(cls, topping: Topping) -> "ToppingOut":
        return cls(
            id=topping.id,
            name=topping.name,
            price=topping.price,
            is_available=topping.is_available,
            description=topping.description,
        )


class CatalogOut(BaseModel):
    dishes: list[DishOut]
    toppings: dict[str, list[ToppingOut]]

    @classmethod
    def from_domain(cls, catalog: CatalogSnapshot) -> "CatalogOut":
        return cls(
            dishes=[DishOut.from_domain(d) for d in catalog.dishes],
            toppings={
                category: [ToppingOut.from_domain(t) for t in toppings]
                for category, toppings in catalog.toppings_by_category().items()
            },
        )


class RefreshOut(BaseModel):
    catalog_applied: bool
    promotions_applied: bool
    dishes: int
    promotions: int
