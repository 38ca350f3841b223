"""Registration stage tests."""

import pytest

from conftest import RECIPIENT_ID, TX_HASH, registered_log
from grantflow.contracts import (
    DecodedEvent,
    RawLog,
    StepStatus,
    TransactionReceipt,
)
from grantflow.errors import (
    InconsistentReceiptError,
    RegistrationError,
    TransactionError,
    UnknownChainError,
)
from grantflow.registration import RegistrationSubmitter
from grantflow.services import EventDecoder, TopicEventDecoder
from grantflow.tracker import StepTracker

SEPOLIA = 11155111


def started_tracker():
    tracker = StepTracker()
    tracker.set_status(0, StepStatus.IN_PROGRESS)
    tracker.set_status(0, StepStatus.SUCCESS)
    tracker.set_status(1, StepStatus.IN_PROGRESS)
    return tracker


def make_submitter(chains, strategy_factory, transactions, tracker, **kwargs):
    return RegistrationSubmitter(
        chains, strategy_factory, transactions, TopicEventDecoder(), tracker, **kwargs
    )


@pytest.mark.asyncio
async def test_register_success(chains, strategy_factory, transactions):
    tracker = started_tracker()
    submitter = make_submitter(chains, strategy_factory, transactions, tracker)

    result = await submitter.register(SEPOLIA, 7, "QmPointer", "0xabc", 100)

    assert result.transaction_hash == TX_HASH
    assert result.recipient_id == RECIPIENT_ID

    built = strategy_factory.built[0]
    assert built["chain_id"] == SEPOLIA
    assert built["pool_id"] == 7
    assert built["recipient_address"] == "0xabc"
    assert built["requested_amount"] == 100
    assert built["metadata"].protocol == 1
    assert built["metadata"].pointer == "QmPointer"

    request = transactions.submitted[0]
    assert request.to == "0xallo"
    assert request.data == "0xregister7QmPointer"
    assert request.value == 1

    steps = tracker.snapshot()
    assert steps[1].status == StepStatus.SUCCESS
    assert steps[2].status == StepStatus.IN_PROGRESS
    assert steps[2].target == f"Sepolia at {TX_HASH}"
    assert steps[2].href == f"https://sepolia.etherscan.io/tx/{TX_HASH}"


@pytest.mark.asyncio
async def test_first_decodable_log_wins(chains, strategy_factory, transactions):
    other = "0x" + "cd" * 20
    transactions.logs = [
        RawLog(address="0xtoken", topics=["0x" + "aa" * 32], data="0x"),
        registered_log(RECIPIENT_ID),
        registered_log(other),
    ]
    submitter = make_submitter(chains, strategy_factory, transactions, started_tracker())

    result = await submitter.register(SEPOLIA, 7, "QmPointer", "0xabc", 100)

    assert result.recipient_id == RECIPIENT_ID


@pytest.mark.asyncio
async def test_default_schema_ignores_logs_of_other_events(
    chains, strategy_factory, transactions
):
    transactions.logs = [
        RawLog(topics=["0x" + "11" * 32, "0x" + "0" * 24 + "cd" * 20]),
        registered_log(RECIPIENT_ID),
    ]
    submitter = make_submitter(
        chains, strategy_factory, transactions, started_tracker()
    )

    result = await submitter.register(SEPOLIA, 7, "QmPointer", "0xabc", 100)

    assert result.recipient_id == RECIPIENT_ID


@pytest.mark.asyncio
async def test_submission_failure_marks_step_error(chains, strategy_factory, transactions):
    transactions.submit_error = TransactionError("rejected")
    tracker = started_tracker()
    submitter = make_submitter(chains, strategy_factory, transactions, tracker)

    with pytest.raises(RegistrationError) as excinfo:
        await submitter.register(SEPOLIA, 7, "QmPointer", "0xabc", 100)

    assert isinstance(excinfo.value.__cause__, TransactionError)
    steps = tracker.snapshot()
    assert steps[1].status == StepStatus.ERROR
    assert steps[2].status == StepStatus.NOT_STARTED
    assert steps[2].href == ""


@pytest.mark.asyncio
async def test_strategy_failure_is_a_registration_error(chains, strategy_factory, transactions):
    strategy_factory.error = ValueError("invalid recipient address")
    tracker = started_tracker()
    submitter = make_submitter(chains, strategy_factory, transactions, tracker)

    with pytest.raises(RegistrationError):
        await submitter.register(SEPOLIA, 7, "QmPointer", "bad", 100)

    assert transactions.submitted == []
    assert tracker.status(1) == StepStatus.ERROR


@pytest.mark.asyncio
async def test_reverted_receipt_fails(chains, strategy_factory, transactions):
    transactions.status = 0
    tracker = started_tracker()
    submitter = make_submitter(chains, strategy_factory, transactions, tracker)

    with pytest.raises(RegistrationError, match="reverted"):
        await submitter.register(SEPOLIA, 7, "QmPointer", "0xabc", 100)

    assert tracker.status(1) == StepStatus.ERROR


@pytest.mark.asyncio
async def test_receipt_without_matching_event(chains, strategy_factory, transactions):
    transactions.logs = []
    tracker = started_tracker()
    submitter = make_submitter(chains, strategy_factory, transactions, tracker)

    with pytest.raises(InconsistentReceiptError):
        await submitter.register(SEPOLIA, 7, "QmPointer", "0xabc", 100)

    assert tracker.status(1) == StepStatus.ERROR


def test_event_without_recipient_id_is_skipped(chains, strategy_factory, transactions):
    class NamedOnlyDecoder(EventDecoder):
        def decode(self, raw_log, schema):
            return DecodedEvent(event_name=schema.name, args={"sender": "0x1"})

    submitter = RegistrationSubmitter(
        chains, strategy_factory, transactions, NamedOnlyDecoder(), StepTracker()
    )
    receipt = TransactionReceipt(transaction_hash=TX_HASH, logs=[registered_log()])

    with pytest.raises(InconsistentReceiptError):
        submitter.extract_recipient_id(receipt)


@pytest.mark.asyncio
async def test_unknown_chain_raises_before_any_step_change(
    chains, strategy_factory, transactions
):
    tracker = started_tracker()
    submitter = make_submitter(chains, strategy_factory, transactions, tracker)

    with pytest.raises(UnknownChainError):
        await submitter.register(999, 7, "QmPointer", "0xabc", 100)

    assert tracker.status(1) == StepStatus.IN_PROGRESS
