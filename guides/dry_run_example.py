"""Example running the application workflow against in-process services.

Storage is the in-memory backend; the chain and indexer are simulated so the
step progress printed by the listener can be observed without a node.
"""

import asyncio

from grantflow import ApplicationInput, ApplicationOrchestrator, StepEvent
from grantflow.constants import REGISTERED_EVENT_TOPIC
from grantflow.contracts import (
    MetadataReference,
    RawLog,
    RegisterPayload,
    TransactionReceipt,
    TransactionRequest,
)
from grantflow.services import (
    ChainDirectory,
    IndexQueryClient,
    InMemoryStorageClient,
    RegistrationStrategy,
    TransactionClient,
)

RECIPIENT = "0x" + "42" * 20


class EchoStrategy(RegistrationStrategy):
    def build_register_payload(
        self, recipient_address: str, requested_amount: int, metadata: MetadataReference
    ) -> RegisterPayload:
        return RegisterPayload(to="0xallo", data=f"0x{self.pool_id:064x}")


class SimulatedChain(TransactionClient):
    async def submit(self, request: TransactionRequest) -> str:
        return "0x" + "01" * 32

    async def await_receipt(self, tx_hash: str) -> TransactionReceipt:
        await asyncio.sleep(0.2)
        topic = "0x" + "0" * 24 + RECIPIENT[2:]
        return TransactionReceipt(
            transaction_hash=tx_hash,
            status=1,
            logs=[RawLog(topics=[REGISTERED_EVENT_TOPIC, topic])],
        )


class SlowIndexer(IndexQueryClient):
    def __init__(self) -> None:
        self.calls = 0

    async def query(self, params) -> bool:
        self.calls += 1
        return self.calls >= 3


def show(event: StepEvent) -> None:
    if event.field == "status":
        step = event.steps[event.index]
        print(f"step {step.id}: {step.status.value:<12} {step.description}{step.target}")


async def main():
    orchestrator = ApplicationOrchestrator(
        storage=InMemoryStorageClient(),
        chains=ChainDirectory.with_defaults(),
        strategy_factory=EchoStrategy,
        transactions=SimulatedChain(),
        index_client=SlowIndexer(),
        poll_interval=0.5,
        poll_max_attempts=5,
    )
    application = ApplicationInput(
        name="Community Garden",
        website="https://garden.example",
        description="Raised beds for the neighbourhood",
        email="hello@garden.example",
        image="data:image/png;base64,iVBORw0KGgo=",
        profile_owner="0x" + "99" * 20,
        recipient_address=RECIPIENT,
        requested_amount=100,
    )

    outcome = await orchestrator.create_application(
        application, chain_id=11155111, pool_id=5, listener=show
    )
    print(f"recipient id: {outcome.recipient_id}")
    print(f"succeeded: {outcome.succeeded}")


if __name__ == "__main__":
    asyncio.run(main())
