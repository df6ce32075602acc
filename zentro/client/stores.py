"""
Property stores

One interface, three adapters: the live API, a JSON-file cache, and the
read-only seed list. The data manager picks between them at runtime.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Union

import httpx

from zentro.client.api_client import ApiError, ZentroApiClient
from zentro.seed_data import seed_listings
from zentro.services.params import is_numeric_id

logger = logging.getLogger(__name__)

Listing = Dict[str, Any]

SEARCH_FIELDS = ("title", "description", "short_description", "location_area", "location_city")


class ReadOnlyStoreError(Exception):
    pass


class PropertyStore(Protocol):
    async def ping(self) -> bool: ...

    async def list(self, criteria: Optional[Mapping[str, Any]] = None) -> List[Listing]: ...

    async def get(self, identifier: Union[int, str]) -> Optional[Listing]: ...

    async def create(self, data: Mapping[str, Any]) -> Listing: ...

    async def update(self, property_id: int, changes: Mapping[str, Any]) -> Listing: ...

    async def delete(self, property_id: int) -> None: ...

    async def search(self, term: str) -> List[Listing]: ...


def _contains(value: Any, needle: str) -> bool:
    return value is not None and needle in str(value).lower()


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def filter_properties(items: Iterable[Listing], criteria: Optional[Mapping[str, Any]] = None) -> List[Listing]:
    """
    Filter listings locally.

    Mirrors the server filters except bedrooms, which is a minimum here and
    an exact match on the server.
    """
    criteria = {k: v for k, v in (criteria or {}).items() if v not in (None, "")}
    results = []
    for item in items:
        if "status" in criteria and item.get("status") != criteria["status"]:
            continue
        if "type" in criteria and item.get("type") != criteria["type"]:
            continue
        if "location" in criteria:
            needle = str(criteria["location"]).lower()
            if not (_contains(item.get("location_area"), needle) or _contains(item.get("location_city"), needle)):
                continue
        price = item.get("price") or 0
        if "min_price" in criteria and price < int(criteria["min_price"]):
            continue
        if "max_price" in criteria and price > int(criteria["max_price"]):
            continue
        if "bedrooms" in criteria and (item.get("bedrooms") or 0) < int(criteria["bedrooms"]):
            continue
        if "featured" in criteria and bool(item.get("featured")) != _truthy(criteria["featured"]):
            continue
        if "search" in criteria:
            needle = str(criteria["search"]).lower()
            if not any(_contains(item.get(field), needle) for field in SEARCH_FIELDS):
                continue
        results.append(item)
    return results


def _matches(item: Listing, identifier: Union[int, str]) -> bool:
    if is_numeric_id(identifier):
        return item.get("id") == int(identifier)
    return item.get("slug") == identifier


class ApiPropertyStore:
    """Live API adapter. Errors propagate as ApiError or httpx.HTTPError."""

    def __init__(self, api: ZentroApiClient):
        self.api = api

    async def ping(self) -> bool:
        try:
            health = await self.api.health()
        except (ApiError, httpx.HTTPError) as e:
            logger.debug(f"Backend ping failed: {e}")
            return False
        return health.get("status") == "healthy"

    async def list(self, criteria: Optional[Mapping[str, Any]] = None) -> List[Listing]:
        data = await self.api.list_properties(**dict(criteria or {}))
        return data["properties"]

    async def get(self, identifier: Union[int, str]) -> Optional[Listing]:
        try:
            data = await self.api.get_property(identifier)
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise
        return data["property"]

    async def create(self, data: Mapping[str, Any]) -> Listing:
        created = await self.api.create_property(dict(data))
        return await self.api.admin_get_property(created["property"]["id"])

    async def update(self, property_id: int, changes: Mapping[str, Any]) -> Listing:
        await self.api.update_property(property_id, dict(changes))
        return await self.api.admin_get_property(property_id)

    async def delete(self, property_id: int) -> None:
        await self.api.delete_property(property_id)

    async def search(self, term: str) -> List[Listing]:
        data = await self.api.search_properties(term)
        return data["results"]


class CachedPropertyStore:
    """In-memory listings, optionally persisted to a JSON file."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._items: List[Listing] = []
        self._loaded = False

    def load(self) -> List[Listing]:
        if not self._loaded:
            self._loaded = True
            if self.path and self.path.exists():
                try:
                    self._items = json.loads(self.path.read_text(encoding="utf-8"))
                except (OSError, ValueError) as e:
                    logger.warning(f"Ignoring unreadable cache {self.path}: {e}")
                    self._items = []
        return self._items

    def save(self) -> None:
        if not self.path:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self._items, default=str), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not persist cache to {self.path}: {e}")

    @property
    def is_empty(self) -> bool:
        return not self.load()

    def replace_all(self, items: Iterable[Listing]) -> None:
        self._items = [dict(item) for item in items]
        self._loaded = True
        self.save()

    def upsert(self, item: Listing) -> None:
        self.load()
        for index, existing in enumerate(self._items):
            if existing.get("id") == item.get("id"):
                self._items[index] = dict(item)
                break
        else:
            self._items.append(dict(item))
        self.save()

    async def ping(self) -> bool:
        return True

    async def list(self, criteria: Optional[Mapping[str, Any]] = None) -> List[Listing]:
        return filter_properties(self.load(), criteria)

    async def get(self, identifier: Union[int, str]) -> Optional[Listing]:
        return next((item for item in self.load() if _matches(item, identifier)), None)

    async def create(self, data: Mapping[str, Any]) -> Listing:
        items = self.load()
        next_id = max((item.get("id") or 0 for item in items), default=0) + 1
        item = dict(data, id=next_id, local=True)
        item.setdefault("views_count", 0)
        self.upsert(item)
        return item

    async def update(self, property_id: int, changes: Mapping[str, Any]) -> Listing:
        current = await self.get(property_id)
        if current is None:
            raise KeyError(property_id)
        updated = dict(current, **changes)
        self.upsert(updated)
        return updated

    async def delete(self, property_id: int) -> None:
        items = self.load()
        self._items = [item for item in items if item.get("id") != property_id]
        self.save()

    async def search(self, term: str) -> List[Listing]:
        return filter_properties(self.load(), {"search": term})


class SeedPropertyStore:
    """Static sample listings; the last resort when nothing else answers."""

    def __init__(self, items: Optional[Iterable[Listing]] = None):
        self._items = [dict(item) for item in (items if items is not None else seed_listings())]

    async def ping(self) -> bool:
        return True

    async def list(self, criteria: Optional[Mapping[str, Any]] = None) -> List[Listing]:
        return filter_properties(self._items, criteria)

    async def get(self, identifier: Union[int, str]) -> Optional[Listing]:
        return next((item for item in self._items if _matches(item, identifier)), None)

    async def create(self, data: Mapping[str, Any]) -> Listing:
        raise ReadOnlyStoreError("Seed listings are read-only")

    async def update(self, property_id: int, changes: Mapping[str, Any]) -> Listing:
        raise ReadOnlyStoreError("Seed listings are read-only")

    async def delete(self, property_id: int) -> None:
        raise ReadOnlyStoreError("Seed listings are read-only")

    async def search(self, term: str) -> List[Listing]:
        return filter_properties(self._items, {"search": term})
