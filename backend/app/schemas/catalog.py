from __future__ import annotations

"""Catalog provider payloads.

The provider speaks its own JSON (`_id`, camelCase). These schemas validate it
and convert it into immutable domain objects.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.domain.models.catalog import CatalogSnapshot, Dish, SizeVariant, Topping


def _reference_name(value: Any) -> Any:
    """A populated reference (`{"_id": ..., "name": ...}`) collapses to its name."""

    if isinstance(value, dict):
        return value.get("name")
    return value


class ProviderModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SizeVariantPayload(ProviderModel):
    size: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    cost: Decimal = Field(default=Decimal("0"), ge=0)
    is_default: bool = Field(default=False, alias="isDefault")

    def to_domain(self) -> SizeVariant:
        return SizeVariant(size=self.size, price=self.price, cost=self.cost, is_default=self.is_default)


class DishPayload(ProviderModel):
    id: str = Field(..., alias="_id")
    name: str = Field(..., min_length=1)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    cost: Decimal = Field(default=Decimal("0"), ge=0)
    is_available: bool = Field(default=True, alias="isAvailable")
    has_size_variants: bool = Field(default=False, alias="hasSizeVariants")
    size_variants: list[SizeVariantPayload] = Field(default_factory=list, alias="sizeVariants")
    category: str | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _category_name(cls, value: Any) -> Any:
        return _reference_name(value)

    @model_validator(mode="after")
    def _check_variants(self) -> "DishPayload":
        if self.has_size_variants and not self.size_variants:
            raise ValueError(f"Dish '{self.name}' declares size variants but lists none.")
        if sum(1 for v in self.size_variants if v.is_default) > 1:
            raise ValueError(f"Dish '{self.name}' has more than one default size variant.")
        sizes = [v.size for v in self.size_variants]
        if len(sizes) != len(set(sizes)):
            raise ValueError(f"Dish '{self.name}' lists the same size twice.")
        return self

    def to_domain(self) -> Dish:
        return Dish(
            id=self.id,
            name=self.name,
            price=self.price,
            cost=self.cost,
            is_available=self.is_available,
            has_size_variants=self.has_size_variants,
            size_variants=tuple(v.to_domain() for v in self.size_variants) if self.has_size_variants else (),
            category=self.category,
        )


class ToppingPayload(ProviderModel):
    id: str = Field(..., alias="_id")
    name: str = Field(..., min_length=1)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    description: str | None = None
    is_available: bool = Field(default=True, alias="isAvailable")

    def to_domain(self, category: str) -> Topping:
        return Topping(
            id=self.id,
            name=self.name,
            price=self.price,
            is_available=self.is_available,
            category=category,
            description=self.description,
        )


class CatalogPayload(ProviderModel):
    dishes: list[DishPayload] = Field(default_factory=list)
    toppings: dict[str, list[ToppingPayload]] = Field(default_factory=dict)

    def to_domain(self) -> CatalogSnapshot:
        return CatalogSnapshot(
            dishes=tuple(d.to_domain() for d in self.dishes),
            toppings=tuple(
                t.to_domain(category)
                for category, toppings in self.toppings.items()
                for t in toppings
            ),
        )
