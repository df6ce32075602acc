"""Async HTTP client for the Zentro Homes API."""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class ZentroApiClient:
    """
    Thin wrapper over the REST endpoints.

    Usage:
        async with ZentroApiClient("https://api.example.com") as api:
            await api.login("admin", password)
            page = await api.list_properties(type="Villa")
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.token = token
        self._client = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    async def __aenter__(self) -> "ZentroApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._client.request(method, path, headers=self._headers(), **kwargs)
        if response.is_success:
            return response.json() if response.content else None

        try:
            message = response.json().get("error", response.reason_phrase)
        except ValueError:
            message = response.text or response.reason_phrase
        raise ApiError(response.status_code, message)

    @staticmethod
    def _params(filters: Dict[str, Any]) -> Dict[str, Any]:
        params = {}
        for key, value in filters.items():
            if value is None or value == "":
                continue
            params[key] = str(value).lower() if isinstance(value, bool) else value
        return params

    # Health

    async def health(self) -> Dict[str, Any]:
        return await self._request("GET", "/health")

    # Public properties

    async def list_properties(self, **filters) -> Dict[str, Any]:
        return await self._request("GET", "/api/properties", params=self._params(filters))

    async def get_property(self, identifier: Any) -> Dict[str, Any]:
        return await self._request("GET", f"/api/properties/{identifier}")

    async def search_properties(self, term: str, limit: int = 20, offset: int = 0) -> Dict[str, Any]:
        return await self._request(
            "GET", f"/api/properties/search/{quote(term, safe='')}", params={"limit": limit, "offset": offset}
        )

    async def featured_properties(self, limit: int = 6) -> List[Dict[str, Any]]:
        data = await self._request("GET", "/api/properties/featured/list", params={"limit": limit})
        return data["properties"]

    async def properties_by_type(self, property_type: str, limit: int = 12, offset: int = 0) -> Dict[str, Any]:
        return await self._request(
            "GET", f"/api/properties/type/{property_type}", params={"limit": limit, "offset": offset}
        )

    async def property_stats(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/properties/stats/summary")

    # Contacts and analytics

    async def submit_inquiry(self, inquiry: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/api/contacts", json=inquiry)

    async def track(self, event: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/api/analytics/track", json=event)

    # Admin

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        data = await self._request("POST", "/api/admin/login", json={"username": username, "password": password})
        self.token = data["token"]
        return data

    async def logout(self) -> None:
        try:
            await self._request("POST", "/api/admin/logout")
        finally:
            self.token = None

    async def admin_list_properties(self, **filters) -> Dict[str, Any]:
        return await self._request("GET", "/api/admin/properties", params=self._params(filters))

    async def admin_get_property(self, property_id: int) -> Dict[str, Any]:
        return await self._request("GET", f"/api/admin/properties/{property_id}")

    async def create_property(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/api/admin/properties", json=data)

    async def update_property(self, property_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/admin/properties/{property_id}", json=changes)

    async def delete_property(self, property_id: int) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/admin/properties/{property_id}")

    async def dashboard_stats(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/admin/dashboard/stats")
