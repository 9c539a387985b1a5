from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError

from app.domain.services.providers import StaticCatalogProvider
from app.domain.services.snapshot_feed import SnapshotFeed, catalog_feed
from tests._builders import catalog_payload


@pytest.mark.asyncio
async def test_refresh_applies_result() -> None:
    async def fetch(**filters: object) -> str:
        return f"menu-{filters.get('branch', 'all')}"

    feed = SnapshotFeed(fetch, initial="empty", name="test")
    assert feed.current == "empty"
    assert feed.applied_sequence == 0

    assert await feed.refresh(branch="d1") is True
    assert feed.current == "menu-d1"
    assert feed.applied_sequence == 1


@pytest.mark.asyncio
async def test_superseded_result_is_discarded() -> None:
    """A slow first fetch must not overwrite the result of a later one."""

    release_first = asyncio.Event()
    calls = 0

    async def fetch(**filters: object) -> str:
        nonlocal calls
        calls += 1
        if calls == 1:
            await release_first.wait()
            return "stale"
        return "fresh"

    feed = SnapshotFeed(fetch, initial="empty", name="test")

    first = asyncio.create_task(feed.refresh())
    await asyncio.sleep(0)
    assert await feed.refresh() is True

    release_first.set()
    assert await first is False
    assert feed.current == "fresh"
    assert feed.applied_sequence == 2


@pytest.mark.asyncio
async def test_failed_fetch_keeps_previous_snapshot() -> None:
    fail = False

    async def fetch(**filters: object) -> str:
        if fail:
            raise ConnectionError("provider down")
        return "v1"

    feed = SnapshotFeed(fetch, initial="empty", name="test")
    await feed.refresh()

    fail = True
    with pytest.raises(ConnectionError):
        await feed.refresh()

    assert feed.current == "v1"
    assert feed.applied_sequence == 1


@pytest.mark.asyncio
async def test_invalid_catalog_keeps_previous_snapshot() -> None:
    provider = StaticCatalogProvider(catalog_payload())
    feed = catalog_feed(provider)
    await feed.refresh()
    assert len(feed.current.dishes) == 3

    provider.payload = {"dishes": [{"_id": "broken"}], "toppings": {}}
    with pytest.raises(ValidationError):
        await feed.refresh()

    assert len(feed.current.dishes) == 3


@pytest.mark.asyncio
async def test_failed_newer_fetch_does_not_discard_older_success() -> None:
    release_first = asyncio.Event()
    calls = 0

    async def fetch(**filters: object) -> str:
        nonlocal calls
        calls += 1
        if calls == 1:
            await release_first.wait()
            return "menu"
        raise ConnectionError("provider down")

    feed = SnapshotFeed(fetch, initial="empty", name="test")

    first = asyncio.create_task(feed.refresh())
    await asyncio.sleep(0)
    with pytest.raises(ConnectionError):
        await feed.refresh()

    release_first.set()
    assert await first is True
    assert feed.current == "menu"
    assert feed.applied_sequence == 1

