"""
Property Data Manager

A single facade over a live backend store, a persisted cache and seed
listings. Initialization waits a bounded time for the backend; if it never
answers the manager stays offline for its lifetime and serves local data.
"""
import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx

from zentro.client.api_client import ApiError
from zentro.client.stores import CachedPropertyStore, Listing, PropertyStore, SeedPropertyStore

logger = logging.getLogger(__name__)

FALLBACK_ERRORS = (ApiError, httpx.HTTPError)

DEFAULT_MAX_ATTEMPTS = 50
DEFAULT_INTERVAL = 0.1
DEFAULT_TIMEOUT = 10.0


class ManagerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    WAITING_FOR_BACKEND = "waiting_for_backend"
    ONLINE = "online"
    OFFLINE = "offline"
    READY = "ready"


@dataclass
class BackendReady:
    attempts: int


@dataclass
class BackendUnavailable:
    reason: str
    attempts: int


InitResult = Union[BackendReady, BackendUnavailable]


class PropertyDataManager:
    """
    Uniform CRUD, filtering and search over whichever data source is reachable.

    Usage:
        manager = PropertyDataManager(ApiPropertyStore(api), CachedPropertyStore("cache.json"))
        result = await manager.initialize()
        villas = await manager.by_type("Villa")
    """

    def __init__(
        self,
        backend: Optional[PropertyStore],
        cache: Optional[CachedPropertyStore] = None,
        seed: Optional[SeedPropertyStore] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval: float = DEFAULT_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT
    ):
        self.backend = backend
        self.cache = cache or CachedPropertyStore()
        self.seed = seed or SeedPropertyStore()
        self.max_attempts = max_attempts
        self.interval = interval
        self.timeout = timeout

        self.state = ManagerState.UNINITIALIZED
        self.online = False
        self.attempts = 0
        self.result: Optional[InitResult] = None
        self._init_task: Optional[asyncio.Task] = None

    # Initialization

    async def initialize(self) -> InitResult:
        """Start (or join) initialization. Safe to call any number of times."""
        if self._init_task is None:
            self._init_task = asyncio.create_task(self._initialize())
        return await asyncio.shield(self._init_task)

    async def ready(self) -> InitResult:
        return await self.initialize()

    async def _wait_for_backend(self) -> InitResult:
        for attempt in range(1, self.max_attempts + 1):
            self.attempts = attempt
            try:
                if await self.backend.ping():
                    return BackendReady(attempts=attempt)
            except FALLBACK_ERRORS as e:
                logger.debug(f"Backend probe {attempt} failed: {e}")
            if attempt < self.max_attempts:
                await asyncio.sleep(self.interval)
        return BackendUnavailable(
            reason=f"Backend did not respond after {self.max_attempts} attempts",
            attempts=self.max_attempts,
        )

    async def _initialize(self) -> InitResult:
        self.state = ManagerState.WAITING_FOR_BACKEND

        if self.backend is None:
            result: InitResult = BackendUnavailable(reason="No backend configured", attempts=0)
        else:
            try:
                result = await asyncio.wait_for(self._wait_for_backend(), timeout=self.timeout)
            except asyncio.TimeoutError:
                result = BackendUnavailable(
                    reason=f"Backend did not respond within {self.timeout} seconds",
                    attempts=self.attempts,
                )

        if isinstance(result, BackendReady):
            self.state = ManagerState.ONLINE
            self.online = True
            logger.info(f"Backend ready after {result.attempts} attempt(s)")
            await self._refresh_cache()
        else:
            self.state = ManagerState.OFFLINE
            self.online = False
            logger.warning(f"Working offline: {result.reason}")

        self.result = result
        self.state = ManagerState.READY
        return result

    async def _refresh_cache(self) -> None:
        try:
            self.cache.replace_all(await self.backend.list())
        except FALLBACK_ERRORS as e:
            logger.warning(f"Could not prime cache from backend: {e}")

    # Reads

    async def _local_list(self, criteria: Optional[Mapping[str, Any]]) -> List[Listing]:
        if not self.cache.is_empty:
            return await self.cache.list(criteria)
        return await self.seed.list(criteria)

    async def list(self, criteria: Optional[Mapping[str, Any]] = None) -> List[Listing]:
        await self.ready()
        if self.online:
            try:
                items = await self.backend.list(criteria)
                if not criteria:
                    self.cache.replace_all(items)
                return items
            except FALLBACK_ERRORS as e:
                logger.warning(f"Backend list failed, using local data: {e}")
        return await self._local_list(criteria)

    async def get(self, identifier: Union[int, str]) -> Optional[Listing]:
        await self.ready()
        if self.online:
            try:
                item = await self.backend.get(identifier)
                if item is not None:
                    self.cache.upsert(item)
                return item
            except FALLBACK_ERRORS as e:
                logger.warning(f"Backend get failed, using local data: {e}")
        item = await self.cache.get(identifier)
        if item is None:
            item = await self.seed.get(identifier)
        return item

    async def search(self, term: str) -> List[Listing]:
        await self.ready()
        if self.online:
            try:
                return await self.backend.search(term)
            except FALLBACK_ERRORS as e:
                logger.warning(f"Backend search failed, using local data: {e}")
        return await self._local_list({"search": term})

    async def featured(self, limit: int = 6) -> List[Listing]:
        return (await self.list({"featured": True}))[:limit]

    async def by_type(self, property_type: str) -> List[Listing]:
        return await self.list({"type": property_type})

    # Writes

    async def create(self, data: Mapping[str, Any]) -> Listing:
        await self.ready()
        if self.online:
            item = await self.backend.create(data)
            self.cache.upsert(item)
            return item
        return await self.cache.create(data)

    async def update(self, property_id: int, changes: Mapping[str, Any]) -> Listing:
        await self.ready()
        if self.online:
            item = await self.backend.update(property_id, changes)
            self.cache.upsert(item)
            return item
        return await self.cache.update(property_id, changes)

    async def delete(self, property_id: int) -> None:
        await self.ready()
        if self.online:
            await self.backend.delete(property_id)
        await self.cache.delete(property_id)

    # Derived views

    async def statistics(self) -> Dict[str, Any]:
        items = await self.list()
        prices = [item["price"] for item in items if item.get("price")]
        types = Counter(item.get("type") for item in items)
        return {
            "total": len(items),
            "for_sale": sum(1 for item in items if item.get("status") == "For Sale"),
            "for_rent": sum(1 for item in items if item.get("status") == "For Rent"),
            "featured": sum(1 for item in items if item.get("featured")),
            "by_type": dict(types),
            "average_price": int(sum(prices) / len(prices)) if prices else 0,
            "min_price": min(prices) if prices else 0,
            "max_price": max(prices) if prices else 0,
        }

    async def filter_options(self) -> Dict[str, Any]:
        """Distinct values the UI can offer as filter choices."""
        items = await self.list()
        prices = [item["price"] for item in items if item.get("price")]
        return {
            "types": sorted({item["type"] for item in items if item.get("type")}),
            "statuses": sorted({item["status"] for item in items if item.get("status")}),
            "locations": sorted({item["location_area"] for item in items if item.get("location_area")}),
            "bedrooms": sorted({item["bedrooms"] for item in items if item.get("bedrooms")}),
            "price_range": {"min": min(prices) if prices else 0, "max": max(prices) if prices else 0},
        }

    async def sync(self) -> Dict[str, Any]:
        """Re-pull every listing from the backend into the cache."""
        await self.ready()
        if not self.online:
            return {"synced": 0, "source": "offline"}
        items = await self.backend.list()
        self.cache.replace_all(items)
        return {"synced": len(items), "source": "backend"}

    def connection_info(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "mode": "online" if self.online else "offline",
            "attempts": self.attempts,
            "reason": self.result.reason if isinstance(self.result, BackendUnavailable) else None,
            "cached_items": len(self.cache.load()),
        }
