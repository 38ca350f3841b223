"""Transaction submission and receipt retrieval."""

from __future__ import annotations

import abc
import asyncio
import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..constants import DEFAULT_RECEIPT_INTERVAL, DEFAULT_RECEIPT_MAX_ATTEMPTS
from ..contracts import RawLog, TransactionReceipt, TransactionRequest
from ..errors import TransactionError
from ..utils.polling import Sleep, poll_until

logger = logging.getLogger(__name__)


class TransactionClient(metaclass=abc.ABCMeta):
    """Abstract transaction sender."""

    @abc.abstractmethod
    async def submit(self, request: TransactionRequest) -> str:
        """Send a transaction and return its hash."""
        raise NotImplementedError

    @abc.abstractmethod
    async def await_receipt(self, tx_hash: str) -> TransactionReceipt:
        """Block until the transaction is included and return its receipt."""
        raise NotImplementedError

    async def aclose(self) -> None:
        pass


def parse_receipt(data: Dict[str, Any]) -> TransactionReceipt:
    """Convert a JSON-RPC receipt object into a :class:`TransactionReceipt`."""
    status = data.get("status")
    if isinstance(status, str):
        status = int(status, 16)
    logs = [
        RawLog(
            address=entry.get("address", ""),
            topics=list(entry.get("topics") or []),
            data=entry.get("data") or "0x",
        )
        for entry in data.get("logs") or []
    ]
    return TransactionReceipt(
        transaction_hash=data["transactionHash"], status=status, logs=logs
    )


class JsonRpcTransactionClient(TransactionClient):
    """Sends transactions through an Ethereum JSON-RPC node.

    The node must manage the ``sender`` account (``eth_sendTransaction``).
    Receipts are fetched with ``eth_getTransactionReceipt`` at a fixed
    interval until the transaction is mined or the attempt budget runs out.
    """

    def __init__(
        self,
        rpc_url: str,
        sender: str,
        timeout: float = 30.0,
        receipt_interval: float = DEFAULT_RECEIPT_INTERVAL,
        receipt_max_attempts: int = DEFAULT_RECEIPT_MAX_ATTEMPTS,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.rpc_url = rpc_url
        self.sender = sender
        self.receipt_interval = receipt_interval
        self.receipt_max_attempts = receipt_max_attempts
        self._sleep = sleep
        self._ids = itertools.count(1)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _call(self, method: str, params: List[Any]) -> Any:
        body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            response = await self._client.post(self.rpc_url, json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise TransactionError(f"{method} request failed: {e}") from e
        except ValueError as e:
            raise TransactionError(f"{method} returned invalid JSON: {e}") from e

        if payload.get("error"):
            error = payload["error"]
            raise TransactionError(
                f"{method} failed: {error.get('message', error)}"
            )
        return payload.get("result")

    async def submit(self, request: TransactionRequest) -> str:
        tx = {
            "from": self.sender,
            "to": request.to,
            "data": request.data,
            "value": hex(request.value),
        }
        tx_hash = await self._call("eth_sendTransaction", [tx])
        if not tx_hash:
            raise TransactionError("eth_sendTransaction returned no hash")
        logger.info(f"Submitted transaction {tx_hash} to {request.to}")
        return tx_hash

    async def await_receipt(self, tx_hash: str) -> TransactionReceipt:
        async def fetch() -> Optional[Dict[str, Any]]:
            return await self._call("eth_getTransactionReceipt", [tx_hash])

        data, attempts = await poll_until(
            fetch,
            interval=self.receipt_interval,
            max_attempts=self.receipt_max_attempts,
            sleep=self._sleep,
            description=f"receipt for {tx_hash}",
        )
        if data is None:
            raise TransactionError(
                f"No receipt for {tx_hash} after {attempts} attempt(s)"
            )
        try:
            return parse_receipt(data)
        except (KeyError, ValueError) as e:
            raise TransactionError(f"Malformed receipt for {tx_hash}: {e}") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "JsonRpcTransactionClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
