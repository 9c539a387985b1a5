from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Protocol


class CatalogProvider(Protocol):
    """Injectable catalog source.

    Contract:
    - returns the raw payload `{"dishes": [...], "toppings": {category: [...]}}`
    - the core never performs network I/O itself
    """

    async def fetch_catalog(self, **filters: Any) -> dict[str, Any]:
        ...


class PromotionProvider(Protocol):
    """Injectable promotion source returning a list of raw promotion dicts."""

    async def fetch_promotions(self, **filters: Any) -> list[dict[str, Any]]:
        ...


class StaticCatalogProvider:
    """In-memory catalog, mostly for tests and demos."""

    def __init__(self, payload: dict[str, Any] | None = None) -> None:
        self.payload: dict[str, Any] = payload or {"dishes": [], "toppings": {}}

    async def fetch_catalog(self, **filters: Any) -> dict[str, Any]:
        return self.payload


class StaticPromotionProvider:
    def __init__(self, payload: list[dict[str, Any]] | None = None) -> None:
        self.payload: list[dict[str, Any]] = payload or []

    async def fetch_promotions(self, **filters: Any) -> list[dict[str, Any]]:
        return self.payload


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


class JsonFileCatalogProvider:
    """Catalog exported as a JSON file (same shape as the catalog API)."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    async def fetch_catalog(self, **filters: Any) -> dict[str, Any]:
        return await asyncio.to_thread(_read_json, self._path)


class JsonFilePromotionProvider:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    async def fetch_promotions(self, **filters: Any) -> list[dict[str, Any]]:
        data = await asyncio.to_thread(_read_json, self._path)
        # Accept both a bare list and the paginated `{"promotions": [...]}` shape.
        if isinstance(data, dict):
            return list(data.get("promotions", []))
        return list(data)
