from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from app.core.configuration import application_settings
from app.domain.models.cart import CartLine, LineSpec, OrderPayload, ToppingSelection
from app.domain.models.catalog import CatalogSnapshot, Dish, SizeVariant
from app.domain.models.promotion import Promotion
from app.domain.services.cart_store import CartError, CartStore
from app.domain.services.eligibility import (
    eligible_promotions,
    find_by_code,
    find_by_id,
    storefront_timezone,
)
from app.domain.services.order_submitter import NoopOrderSubmitter, OrderSubmitter
from app.domain.services.pricing import InvalidVariantError
from app.domain.services.providers import (
    CatalogProvider,
    JsonFileCatalogProvider,
    JsonFilePromotionProvider,
    PromotionProvider,
    StaticCatalogProvider,
    StaticPromotionProvider,
)
from app.domain.services.snapshot_feed import SnapshotFeed, catalog_feed, promotion_feed

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class UnknownCatalogItemError(CartError):
    """Dish or topping id absent from the current catalog snapshot."""


def local_now() -> datetime:
    return datetime.now(storefront_timezone())


class StorefrontSession:
    """One customer session: its cart plus the shared catalog/promotion snapshots.

    Resolves catalog ids into domain objects, then delegates to `CartStore`.
    Order submission goes through the injected `OrderSubmitter`.
    """

    def __init__(
        self,
        *,
        catalog: SnapshotFeed[CatalogSnapshot],
        promotions: SnapshotFeed[tuple[Promotion, ...]],
        submitter: OrderSubmitter | None = None,
        cart: CartStore | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._catalog = catalog
        self._promotions = promotions
        self._submitter = submitter or NoopOrderSubmitter()
        self.cart = cart or CartStore()
        self._clock = clock or local_now

    @property
    def catalog(self) -> CatalogSnapshot:
        return self._catalog.current

    @property
    def promotions(self) -> tuple[Promotion, ...]:
        return self._promotions.current

    def now(self) -> datetime:
        return self._clock()

    def eligible_promotions(self, now: datetime | None = None) -> list[Promotion]:
        return eligible_promotions(self.promotions, now or self.now())

    def add_line(
        self,
        *,
        dish_id: str,
        variant_size: str | None = None,
        toppings: Iterable[tuple[str, int]] = (),
        quantity: int = 1,
        note: str | None = None,
    ) -> CartLine:
        dish = self._dish(dish_id)
        spec = LineSpec(
            dish=dish,
            variant=self._variant(dish, variant_size),
            toppings=self._selections(toppings),
            quantity=quantity,
            note=note,
        )
        return self.cart.add_line(spec)

    def set_toppings(self, line_id: str, toppings: Iterable[tuple[str, int]]) -> CartLine:
        return self.cart.set_toppings(line_id, self._selections(toppings))

    def apply_promotion(
        self,
        *,
        promotion_id: str | None = None,
        code: str | None = None,
        now: datetime | None = None,
    ) -> Promotion:
        """Apply a promotion chosen by id or coupon code; it replaces the previous one."""

        if promotion_id is not None:
            promotion = find_by_id(self.promotions, promotion_id)
        elif code is not None:
            promotion = find_by_code(self.promotions, code)
        else:
            raise ValueError("promotion_id or code is required.")

        self.cart.apply_promotion(promotion, now or self.now())
        return promotion

    async def checkout(self, now: datetime | None = None) -> OrderPayload:
        """Finalize, hand over to the submitter, then reset the cart.

        The cart is held for the whole hand-off: concurrent edits on this
        session get `CartLockedError` rather than being cleared unsubmitted.
        A failing submitter leaves the cart as it was.
        """

        with self.cart.hold():
            payload = self.cart.checkout(now or self.now())
            await self._submitter.submit(payload)
        self.cart.clear()
        return payload

    def _dish(self, dish_id: str) -> Dish:
        dish = self.catalog.find_dish(dish_id)
        if dish is None:
            raise UnknownCatalogItemError(f"Dish '{dish_id}' not found in catalog.")
        return dish

    @staticmethod
    def _variant(dish: Dish, size: str | None) -> SizeVariant | None:
        if size is None:
            return None
        variant = dish.find_variant(size)
        if variant is None:
            raise InvalidVariantError(f"Variant '{size}' does not belong to dish '{dish.name}'.")
        return variant

    def _selections(self, toppings: Iterable[tuple[str, int]]) -> tuple[ToppingSelection, ...]:
        selections: list[ToppingSelection] = []
        for topping_id, quantity in toppings:
            topping = self.catalog.find_topping(topping_id)
            if topping is None:
                raise UnknownCatalogItemError(f"Topping '{topping_id}' not found in catalog.")
            selections.append(ToppingSelection(topping=topping, quantity=quantity))
        return tuple(selections)


class SessionRegistry:
    """Sessions by id, all sharing one catalog feed and one promotion feed."""

    def __init__(
        self,
        *,
        catalog_provider: CatalogProvider,
        promotion_provider: PromotionProvider,
        submitter: OrderSubmitter | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.catalog = catalog_feed(catalog_provider)
        self.promotions = promotion_feed(promotion_provider)
        self._submitter = submitter or NoopOrderSubmitter()
        self._clock = clock or local_now
        self._sessions: dict[str, StorefrontSession] = {}

    def session(self, session_id: str) -> StorefrontSession:
        session = self._sessions.get(session_id)
        if session is None:
            session = StorefrontSession(
                catalog=self.catalog,
                promotions=self.promotions,
                submitter=self._submitter,
                clock=self._clock,
            )
            self._sessions[session_id] = session
            logger.debug("session_created session_id=%s", session_id)
        return session

    async def refresh(self) -> tuple[bool, bool]:
        """Refetch catalog and promotions; flags tell which results were applied."""

        catalog_applied = await self.catalog.refresh()
        promotions_applied = await self.promotions.refresh()
        logger.info(
            "snapshots_refreshed catalog=%s promotions=%s dishes=%s promotion_count=%s",
            catalog_applied,
            promotions_applied,
            len(self.catalog.current.dishes),
            len(self.promotions.current),
        )
        return catalog_applied, promotions_applied


def build_registry() -> SessionRegistry:
    """Registry wired from settings: JSON files when configured, empty otherwise."""

    catalog_provider: CatalogProvider = (
        JsonFileCatalogProvider(application_settings.catalog_path)
        if application_settings.catalog_path
        else StaticCatalogProvider()
    )
    promotion_provider: PromotionProvider = (
        JsonFilePromotionProvider(application_settings.promotions_path)
        if application_settings.promotions_path
        else StaticPromotionProvider()
    )
    return SessionRegistry(catalog_provider=catalog_provider, promotion_provider=promotion_provider)
