from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.domain.services.cart_store import CartStore
from app.domain.services.order_submitter import FakeOrderSubmitter
from app.domain.services.providers import StaticCatalogProvider, StaticPromotionProvider
from app.domain.services.storefront_session import SessionRegistry
from app.main import create_application
from tests._builders import VN, FrozenClock, at, catalog_payload, promotion_payload


@pytest.fixture
def cart() -> CartStore:
    """Empty cart with sequential line ids (line-1, line-2, ...)."""

    counter = iter(range(1, 10_000))
    return CartStore(default_payment_method="Cash", tz=VN, id_factory=lambda: f"line-{next(counter)}")


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(at(18, 0))


@pytest.fixture
def submitter() -> FakeOrderSubmitter:
    return FakeOrderSubmitter()


@pytest.fixture
def promotions_payload() -> list[dict]:
    return [
        promotion_payload(),
        promotion_payload(
            _id="promo-fixed",
            name="Fifty thousand off",
            type="order_fixed",
            code="save50",
            discount={"fixedAmount": 50000},
            conditions={"minOrderAmount": 200000},
        ),
        promotion_payload(
            _id="promo-hh",
            name="Evening happy hour",
            type="happy_hour",
            discount={"uniformPrice": 25000},
            conditions={"timeSlots": [{"start": "17:00", "end": "19:00"}]},
            applicableItems="categories",
            categories=[{"_id": "cat-2", "name": "Drinks"}],
        ),
        promotion_payload(_id="promo-off", name="Disabled", isActive=False),
        promotion_payload(
            _id="promo-item",
            name="Item level",
            type="item_percentage",
            discount={"percentage": 10},
        ),
    ]


@pytest.fixture
def registry(
    clock: FrozenClock,
    submitter: FakeOrderSubmitter,
    promotions_payload: list[dict],
) -> SessionRegistry:
    return SessionRegistry(
        catalog_provider=StaticCatalogProvider(catalog_payload()),
        promotion_provider=StaticPromotionProvider(promotions_payload),
        submitter=submitter,
        clock=clock,
    )


@pytest_asyncio.fixture
async def client(registry: SessionRegistry) -> AsyncIterator[AsyncClient]:
    """HTTP client on the app, snapshots already loaded.

    ASGITransport does not run the lifespan, so the first refresh is done here.
    """

    await registry.refresh()
    application = create_application(registry)
    transport = ASGITransport(app=application)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
