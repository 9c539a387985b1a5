from __future__ import annotations

"""Latest-result-wins holder for asynchronously fetched snapshots.

Rules:
- Each `refresh()` takes a sequence number before awaiting the fetch.
- A result is applied only if no newer result has been applied meanwhile;
  superseded results are dropped silently (DEBUG log, no error). A newer
  refresh that fails does not supersede an older one that succeeds.
- A failing fetch keeps the previous snapshot and propagates its error.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from app.domain.models.catalog import CatalogSnapshot
from app.domain.models.promotion import Promotion
from app.domain.services.providers import CatalogProvider, PromotionProvider
from app.schemas.catalog import CatalogPayload
from app.schemas.promotion import parse_promotions

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SnapshotFeed(Generic[T]):
    def __init__(self, fetch: Callable[..., Awaitable[T]], *, initial: T, name: str) -> None:
        self._fetch = fetch
        self._current = initial
        self._name = name
        self._issued = 0
        self._applied = 0

    @property
    def current(self) -> T:
        return self._current

    @property
    def applied_sequence(self) -> int:
        """Sequence number of the result currently held (0 = initial value)."""

        return self._applied

    async def refresh(self, **filters: Any) -> bool:
        """Fetch and apply a new snapshot. Returns False when superseded."""

        self._issued += 1
        sequence = self._issued

        result = await self._fetch(**filters)

        if sequence < self._applied:
            logger.debug(
                "snapshot_discarded feed=%s sequence=%s applied=%s",
                self._name,
                sequence,
                self._applied,
            )
            return False

        self._current = result
        self._applied = sequence
        logger.debug("snapshot_applied feed=%s sequence=%s", self._name, sequence)
        return True


def catalog_feed(provider: CatalogProvider) -> SnapshotFeed[CatalogSnapshot]:
    async def fetch(**filters: Any) -> CatalogSnapshot:
        payload = await provider.fetch_catalog(**filters)
        return CatalogPayload.model_validate(payload).to_domain()

    return SnapshotFeed(fetch, initial=CatalogSnapshot(), name="catalog")


def promotion_feed(provider: PromotionProvider) -> SnapshotFeed[tuple[Promotion, ...]]:
    async def fetch(**filters: Any) -> tuple[Promotion, ...]:
        payload = await provider.fetch_promotions(**filters)
        return parse_promotions(payload)

    return SnapshotFeed(fetch, initial=(), name="promotions")
