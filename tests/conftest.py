"""Shared test doubles for grantflow collaborators."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Union

import pytest

from grantflow.constants import REGISTERED_EVENT_TOPIC
from grantflow.contracts import (
    ApplicationInput,
    MetadataReference,
    PinResult,
    RawLog,
    RegisterPayload,
    TransactionReceipt,
    TransactionRequest,
)
from grantflow.orchestrator import ApplicationOrchestrator
from grantflow.services import (
    ChainDirectory,
    IndexQueryClient,
    RegistrationStrategy,
    StorageClient,
    TransactionClient,
)

RECIPIENT_ID = "0x" + "ab" * 20
TX_HASH = "0x" + "12" * 32
EMBEDDED_IMAGE = "data:image/png;base64,iVBORw0KGgo="


def address_topic(address: str) -> str:
    return "0x" + "0" * 24 + address[2:]


def registered_log(recipient_id: str = RECIPIENT_ID) -> RawLog:
    return RawLog(
        address="0xpool",
        topics=[REGISTERED_EVENT_TOPIC, address_topic(recipient_id)],
        data="0x",
    )


class FakeStorage(StorageClient):
    """Records pinned records; ``failures`` maps 1-based call numbers to errors."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.failures: Dict[int, Exception] = {}

    async def pin_json(self, record: Mapping[str, Any]) -> PinResult:
        self.calls.append(dict(record))
        error = self.failures.get(len(self.calls))
        if error is not None:
            raise error
        return PinResult(content_hash=f"Qm{len(self.calls)}")


class FakeStrategy(RegistrationStrategy):
    built: List[Dict[str, Any]] = []
    error: Optional[Exception] = None

    def build_register_payload(
        self,
        recipient_address: str,
        requested_amount: int,
        metadata: MetadataReference,
    ) -> RegisterPayload:
        if self.error is not None:
            raise self.error
        self.built.append(
            {
                "chain_id": self.chain_id,
                "pool_id": self.pool_id,
                "recipient_address": recipient_address,
                "requested_amount": requested_amount,
                "metadata": metadata,
            }
        )
        return RegisterPayload(
            to="0xallo", data=f"0xregister{self.pool_id}{metadata.pointer}"
        )


class FakeTransactions(TransactionClient):
    def __init__(self) -> None:
        self.submitted: List[TransactionRequest] = []
        self.receipt_requests: List[str] = []
        self.submit_error: Optional[Exception] = None
        self.receipt_error: Optional[Exception] = None
        self.logs: List[RawLog] = [registered_log()]
        self.status: Optional[int] = 1

    async def submit(self, request: TransactionRequest) -> str:
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append(request)
        return TX_HASH

    async def await_receipt(self, tx_hash: str) -> TransactionReceipt:
        self.receipt_requests.append(tx_hash)
        if self.receipt_error is not None:
            raise self.receipt_error
        return TransactionReceipt(
            transaction_hash=tx_hash, status=self.status, logs=self.logs
        )


class FakeIndex(IndexQueryClient):
    """Replays ``results``; the last entry repeats once exhausted.

    Every query yields to the event loop so concurrent runs interleave.
    """

    def __init__(self) -> None:
        self.results: List[Union[bool, Exception]] = [True]
        self.queries: List[Any] = []

    async def query(self, params) -> bool:
        self.queries.append(params)
        await asyncio.sleep(0)
        position = min(len(self.queries), len(self.results)) - 1
        result = self.results[position]
        if isinstance(result, Exception):
            raise result
        return result


class Sleeper:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def strategy_factory():
    FakeStrategy.built = []
    FakeStrategy.error = None
    yield FakeStrategy
    FakeStrategy.built = []
    FakeStrategy.error = None


@pytest.fixture
def transactions() -> FakeTransactions:
    return FakeTransactions()


@pytest.fixture
def index_client() -> FakeIndex:
    return FakeIndex()


@pytest.fixture
def sleeper() -> Sleeper:
    return Sleeper()


@pytest.fixture
def chains() -> ChainDirectory:
    return ChainDirectory.with_defaults()


@pytest.fixture
def application() -> ApplicationInput:
    return ApplicationInput(
        name="A",
        website="https://a.example",
        description="Community garden",
        email="a@example.com",
        image=EMBEDDED_IMAGE,
        profile_owner="0xowner",
        recipient_address="0xabc",
        requested_amount=100,
    )


@pytest.fixture
def make_orchestrator(storage, chains, strategy_factory, transactions, index_client, sleeper):
    def _make(**overrides: Any) -> ApplicationOrchestrator:
        options: Dict[str, Any] = {
            "poll_interval": 0.5,
            "poll_max_attempts": 5,
            "sleep": sleeper,
        }
        options.update(overrides)
        return ApplicationOrchestrator(
            storage=storage,
            chains=chains,
            strategy_factory=strategy_factory,
            transactions=transactions,
            index_client=index_client,
            **options,
        )

    return _make
