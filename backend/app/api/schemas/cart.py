from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from app.api.schemas.promotion import PromotionOut
from app.domain.enums.types import PaymentMethod
from app.domain.models.cart import CartLine, CartSnapshot, OrderPayload


class ToppingSelectionIn(BaseModel):
    topping_id: str
    quantity: int = Field(default=1, ge=0)


class AddLineRequest(BaseModel):
    """Add-to-cart payload sent by the dish selection modal."""

    dish_id: str
    variant_size: str | None = None
    toppings: list[ToppingSelectionIn] = []
    quantity: int = Field(default=1, ge=1)
    note: str | None = None


class QuantityRequest(BaseModel):
    quantity: int


class ToppingsRequest(BaseModel):
    toppings: list[ToppingSelectionIn]


class NoteRequest(BaseModel):
    note: str | None = None


class PaymentMethodRequest(BaseModel):
    payment_method: PaymentMethod


class ApplyPromotionRequest(BaseModel):
    promotion_id: str | None = None
    code: str | None = None

    @model_validator(mode="after")
    def _one_reference(self) -> "ApplyPromotionRequest":
        if (self.promotion_id is None) == (self.code is None):
            raise ValueError("Provide either promotion_id or code.")
        return self


class ToppingSelectionOut(BaseModel):
    topping_id: str
    name: str
    price: Decimal
    quantity: int


class CartLineOut(BaseModel):
    id: str
    dish_id: str
    name: str
    variant_size: str | None
    toppings: list[ToppingSelectionOut]
    note: str | None
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    @classmethod
    def from_domain(cls, line: CartLine) -> "CartLineOut":
        return cls(
            id=line.id,
            dish_id=line.dish.id,
            name=line.display_name,
            variant_size=line.variant.size if line.variant is not None else None,
            toppings=[
                ToppingSelectionOut(
                    topping_id=s.topping.id,
                    name=s.topping.name,
                    price=s.topping.price,
                    quantity=s.quantity,
                )
                for s in line.toppings
            ],
            note=line.note,
            quantity=line.quantity,
            unit_price=line.unit_price,
            line_total=line.line_total,
        )


class CartOut(BaseModel):
    revision: int
    lines: list[CartLineOut]
    payment_method: str
    applied_promotion: PromotionOut | None
    original_subtotal: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    final_total: Decimal
    promotion_blocked_reason: str | None = None

    @classmethod
    def from_domain(cls, snapshot: CartSnapshot) -> "CartOut":
        promotion = snapshot.applied_promotion
        return cls(
            revision=snapshot.revision,
            lines=[CartLineOut.from_domain(line) for line in snapshot.lines],
            payment_method=snapshot.payment_method,
            applied_promotion=PromotionOut.from_domain(promotion) if promotion is not None else None,
            original_subtotal=snapshot.original_subtotal,
            subtotal=snapshot.subtotal,
            discount_amount=snapshot.discount_amount,
            final_total=snapshot.final_total,
            promotion_blocked_reason=snapshot.promotion_blocked_reason,
        )


class OrderPayloadOut(BaseModel):
    lines: list[CartLineOut]
    payment_method: str
    subtotal: Decimal
    discount_amount: Decimal
    final_total: Decimal
    applied_promotion_id: str | None

    @classmethod
    def from_domain(cls, payload: OrderPayload) -> "OrderPayloadOut":
        return cls(
            lines=[CartLineOut.from_domain(line) for line in payload.lines],
            payment_method=payload.payment_method,
            subtotal=payload.subtotal,
            discount_amount=payload.discount_amount,
            final_total=payload.final_total,
            applied_promotion_id=payload.applied_promotion_id,
        )
