"""Clients for the off-chain indexer."""

from __future__ import annotations

import abc
import logging
from typing import Any, Optional

import httpx

from ..contracts import IndexQueryParams
from ..errors import IndexQueryError

logger = logging.getLogger(__name__)

_RECIPIENT_QUERY = """
query checkIfRecipientIsIndexed($chainId: String!, $poolId: String!, $recipientId: String!) {
  %(entity)s(chainId: $chainId, poolId: $poolId, recipientId: $recipientId) {
    recipientId
  }
}
"""


class IndexQueryClient(metaclass=abc.ABCMeta):
    """Answers whether a record has reached the index yet."""

    @abc.abstractmethod
    async def query(self, params: IndexQueryParams) -> bool:
        raise NotImplementedError

    async def aclose(self) -> None:
        pass


class GraphQLIndexClient(IndexQueryClient):
    """Looks up the recipient entity through the indexer's GraphQL API."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def query(self, params: IndexQueryParams) -> bool:
        body = {
            "query": _RECIPIENT_QUERY % {"entity": params.entity},
            "variables": {
                "chainId": str(params.chain_id),
                "poolId": str(params.pool_id),
                "recipientId": params.recipient_id,
            },
        }
        try:
            response = await self._client.post(self.url, json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise IndexQueryError(f"Indexer request failed: {e}") from e
        except ValueError as e:
            raise IndexQueryError(f"Indexer returned invalid JSON: {e}") from e

        if payload.get("errors"):
            messages = "; ".join(
                str(err.get("message", err)) for err in payload["errors"]
            )
            raise IndexQueryError(f"Indexer query failed: {messages}")

        data = payload.get("data") or {}
        return data.get(params.entity) is not None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "GraphQLIndexClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
