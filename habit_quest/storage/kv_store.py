"""
Persistent key/value store adapters.

Every user owns an independent key space of opaque JSON values. Two backends:
- InMemoryStore: process-local dict, used for development and tests
- HttpKeyValueStore: client of the storage REST API
  (GET/POST/DELETE {base}/{key}, GET {base}/, user in the x-user-id header)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from habit_quest.exceptions import StorageError, wrap_external_exception
from habit_quest.resilience.retry import retry_with_backoff

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Key-scoped durable storage per user"""

    @abstractmethod
    async def get(self, user_id: str, key: str) -> Optional[Any]:
        """Return the stored value or None"""

    @abstractmethod
    async def set(self, user_id: str, key: str, value: Any) -> bool:
        """Upsert a value"""

    @abstractmethod
    async def delete(self, user_id: str, key: str) -> bool:
        """Remove a key (missing keys are not an error)"""

    @abstractmethod
    async def list_all(self, user_id: str) -> Dict[str, Any]:
        """Return every key/value pair of the user"""

    async def close(self) -> None:
        """Release backend resources"""


class InMemoryStore(KeyValueStore):
    """In-memory store; data lives as long as the process"""

    def __init__(self):
        self._data: Dict[str, Dict[str, Any]] = {}

    async def get(self, user_id: str, key: str) -> Optional[Any]:
        return self._data.get(user_id, {}).get(key)

    async def set(self, user_id: str, key: str, value: Any) -> bool:
        self._data.setdefault(user_id, {})[key] = value
        logger.debug(f"Stored {key} for user {user_id}")
        return True

    async def delete(self, user_id: str, key: str) -> bool:
        self._data.get(user_id, {}).pop(key, None)
        return True

    async def list_all(self, user_id: str) -> Dict[str, Any]:
        return dict(self._data.get(user_id, {}))


class HttpKeyValueStore(KeyValueStore):
    """
    Async client of the storage REST API.

    Transient failures (timeouts, 429, 5xx) are retried with backoff; anything
    else is wrapped into StorageError / ExternalAPIError.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize store client.

        Args:
            base_url: Root of the storage routes, e.g. http://host/api/storage
            timeout: Per-request timeout in seconds
            max_retries: Retries for transient errors
            transport: Optional httpx transport (tests inject MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Storage client closed")

    def _url(self, key: str = "") -> str:
        return f"{self.base_url}/{quote(key, safe='')}"

    async def _request(self, method: str, user_id: str, key: str = "", payload: Optional[dict] = None) -> dict:
        response = await self._client.request(
            method,
            self._url(key),
            headers={"x-user-id": user_id},
            json=payload,
        )
        response.raise_for_status()
        return response.json()

    async def _call(self, operation: str, method: str, user_id: str, key: str = "", payload: Optional[dict] = None) -> dict:
        try:
            body = await retry_with_backoff(
                self._request, method, user_id, key, payload, max_retries=self.max_retries
            )
        except httpx.HTTPError as e:
            raise wrap_external_exception(e, operation=operation, user_id=user_id, context={"key": key})

        if not body.get("success", False):
            raise StorageError(
                f"Storage rejected {operation}: {body.get('error', 'unknown error')}",
                key=key,
                user_id=user_id,
                operation=operation,
            )
        return body

    async def get(self, user_id: str, key: str) -> Optional[Any]:
        body = await self._call("store_get", "GET", user_id, key)
        return body.get("value")

    async def set(self, user_id: str, key: str, value: Any) -> bool:
        await self._call("store_set", "POST", user_id, key, {"value": value})
        logger.debug(f"Saved {key} for user {user_id}")
        return True

    async def delete(self, user_id: str, key: str) -> bool:
        await self._call("store_delete", "DELETE", user_id, key)
        return True

    async def list_all(self, user_id: str) -> Dict[str, Any]:
        body = await self._call("store_list_all", "GET", user_id)
        data = body.get("data") or {}
        # Older servers return a list of {key, value} documents
        if isinstance(data, list):
            return {item["key"]: item.get("value") for item in data if "key" in item}
        return dict(data)
