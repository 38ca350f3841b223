"""Content-addressed storage clients."""

from __future__ import annotations

import abc
import asyncio
import hashlib
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from ..constants import DEFAULT_PINATA_API_URL
from ..contracts import PinResult
from ..errors import StorageError

logger = logging.getLogger(__name__)


class StorageClient(metaclass=abc.ABCMeta):
    """Abstract pinning service."""

    @abc.abstractmethod
    async def pin_json(self, record: Mapping[str, Any]) -> PinResult:
        """Publish ``record`` and return its content hash."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release resources (no-op by default)."""
        pass


class InMemoryStorageClient(StorageClient):
    """Keeps pinned records in a dict; useful for tests and dry runs."""

    def __init__(self) -> None:
        self.records: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Dict[str, Any]] = []
        self._lock = asyncio.Lock()

    async def pin_json(self, record: Mapping[str, Any]) -> PinResult:
        payload = dict(record)
        try:
            encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise StorageError(f"Record is not JSON serializable: {e}") from e
        content_hash = hashlib.sha256(encoded.encode()).hexdigest()
        async with self._lock:
            self.calls.append(payload)
            self.records[content_hash] = payload
        return PinResult(content_hash=content_hash)


class PinataStorageClient(StorageClient):
    """Pin JSON documents through the Pinata HTTP API."""

    def __init__(
        self,
        jwt: str,
        api_url: str = DEFAULT_PINATA_API_URL,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not jwt:
            raise ValueError("A Pinata JWT is required for PinataStorageClient")
        self.api_url = api_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"Authorization": f"Bearer {jwt}"}

    async def pin_json(self, record: Mapping[str, Any]) -> PinResult:
        url = f"{self.api_url}/pinning/pinJSONToIPFS"
        try:
            response = await self._client.post(
                url, json={"pinataContent": dict(record)}, headers=self._headers
            )
            response.raise_for_status()
            content_hash = response.json()["IpfsHash"]
        except httpx.HTTPStatusError as e:
            raise StorageError(
                f"Pinata rejected the record with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise StorageError(f"Pinata request failed: {e}") from e
        except (KeyError, ValueError) as e:
            raise StorageError(f"Unexpected Pinata response: {e}") from e

        logger.debug(f"Pinned record to {content_hash}")
        return PinResult(content_hash=content_hash)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "PinataStorageClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
