"""On-chain registration of a published application."""

from __future__ import annotations

import logging
from typing import Optional

from .constants import (
    DEFAULT_METADATA_PROTOCOL,
    DEFAULT_TRANSACTION_VALUE,
    INDEX_STEP,
    RECIPIENT_ID_ARG,
    REGISTER_STEP,
)
from .contracts import (
    EventSchema,
    MetadataReference,
    RegistrationResult,
    StepStatus,
    TransactionReceipt,
    TransactionRequest,
)
from .errors import InconsistentReceiptError, RegistrationError
from .services.chains import ChainDirectory
from .services.events import EventDecoder
from .services.strategy import StrategyFactory
from .services.transactions import TransactionClient
from .tracker import StepTracker

logger = logging.getLogger(__name__)


class RegistrationSubmitter:
    """Registers the recipient with the pool and extracts its identifier."""

    def __init__(
        self,
        chains: ChainDirectory,
        strategy_factory: StrategyFactory,
        transactions: TransactionClient,
        decoder: EventDecoder,
        tracker: StepTracker,
        event_schema: Optional[EventSchema] = None,
        protocol: int = DEFAULT_METADATA_PROTOCOL,
        transaction_value: int = DEFAULT_TRANSACTION_VALUE,
    ) -> None:
        self._chains = chains
        self._strategy_factory = strategy_factory
        self._transactions = transactions
        self._decoder = decoder
        self._tracker = tracker
        self.event_schema = event_schema or EventSchema()
        self.protocol = protocol
        self.transaction_value = transaction_value

    def extract_recipient_id(self, receipt: TransactionReceipt) -> str:
        """Return ``recipientId`` from the first log that decodes.

        Raises:
            InconsistentReceiptError: If no log decodes to an event carrying
                a recipient id.
        """
        for position, log in enumerate(receipt.logs):
            try:
                event = self._decoder.decode(log, self.event_schema)
            except Exception as e:
                logger.debug(f"Skipping log {position} of {receipt.transaction_hash}: {e}")
                continue
            recipient_id = event.args.get(RECIPIENT_ID_ARG)
            if recipient_id is None:
                logger.debug(
                    f"Log {position} of {receipt.transaction_hash} decoded to "
                    f"{event.event_name} without {RECIPIENT_ID_ARG}"
                )
                continue
            return str(recipient_id)
        raise InconsistentReceiptError(
            f"Receipt {receipt.transaction_hash} has no decodable "
            f"{self.event_schema.name} event ({len(receipt.logs)} log(s))"
        )

    async def register(
        self,
        chain_id: int,
        pool_id: int,
        pointer: str,
        recipient_address: str,
        requested_amount: int,
    ) -> RegistrationResult:
        """Submit the registration transaction and wait for its receipt.

        Raises:
            RegistrationError: If building, submitting, confirming or decoding
                the transaction failed. Step 1 is marked ``ERROR`` first.
            UnknownChainError: If ``chain_id`` is not configured.
        """
        chain = self._chains.resolve(chain_id)
        self._tracker.set_status(REGISTER_STEP, StepStatus.IN_PROGRESS)

        try:
            strategy = self._strategy_factory(chain_id, pool_id)
            payload = strategy.build_register_payload(
                recipient_address,
                requested_amount,
                MetadataReference(protocol=self.protocol, pointer=pointer),
            )
            tx_hash = await self._transactions.submit(
                TransactionRequest(
                    to=payload.to, data=payload.data, value=self.transaction_value
                )
            )
            receipt = await self._transactions.await_receipt(tx_hash)
            if receipt.reverted:
                raise RegistrationError(f"Transaction {tx_hash} reverted")
            recipient_id = self.extract_recipient_id(receipt)
        except Exception as e:
            logger.error(f"Registration on {chain.name} pool {pool_id} failed: {e}")
            self._tracker.set_status(REGISTER_STEP, StepStatus.ERROR)
            if isinstance(e, RegistrationError):
                raise
            raise RegistrationError(f"Registration failed: {e}") from e

        logger.info(
            f"Registered recipient {recipient_id} on {chain.name} pool {pool_id} "
            f"in transaction {tx_hash}"
        )
        self._tracker.set_target(INDEX_STEP, f"{chain.name} at {tx_hash}")
        self._tracker.set_href(INDEX_STEP, chain.transaction_url(tx_hash))
        self._tracker.set_status(REGISTER_STEP, StepStatus.SUCCESS)
        self._tracker.set_status(INDEX_STEP, StepStatus.IN_PROGRESS)
        return RegistrationResult(transaction_hash=tx_hash, recipient_id=recipient_id)
