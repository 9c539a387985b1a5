from __future__ import annotations

from typing import Protocol

from app.domain.models.cart import OrderPayload


class OrderSubmitter(Protocol):
    """Injectable order-placement collaborator.

    The core only builds the payload; persisting or sending it happens on
    the other side of this interface.
    """

    async def submit(self, payload: OrderPayload) -> None:
        ...


class NoopOrderSubmitter:
    """Default submitter: the order goes nowhere."""

    async def submit(self, payload: OrderPayload) -> None:
        return None


class FakeOrderSubmitter:
    """Test submitter: keeps submitted payloads in memory."""

    def __init__(self) -> None:
        self.orders: list[OrderPayload] = []

    async def submit(self, payload: OrderPayload) -> None:
        self.orders.append(payload)
