"""Sequential publish -> register -> index workflow."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, List, Optional

from .config import GrantflowConfig, load_config
from .constants import (
    DEFAULT_GATEWAY_URL,
    DEFAULT_INDEX_ENTITY,
    DEFAULT_METADATA_PROTOCOL,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_MAX_ATTEMPTS,
    DEFAULT_TRANSACTION_VALUE,
    INDEX_STEP,
)
from .contracts import (
    ApplicationInput,
    EventSchema,
    ImageFailurePolicy,
    WorkflowOutcome,
)
from .errors import ConfigError, WorkflowError
from .indexing import IndexConfirmer
from .publisher import MetadataPublisher
from .registration import RegistrationSubmitter
from .services import (
    ChainDirectory,
    EventDecoder,
    IndexQueryClient,
    StorageClient,
    StrategyFactory,
    TopicEventDecoder,
    TransactionClient,
    check_client_config,
    get_chain_directory,
    get_index_client,
    get_storage_client,
    get_transaction_client,
    load_strategy_factory,
)
from .tracker import StepListener, StepTracker
from .utils.polling import Sleep

logger = logging.getLogger(__name__)


class ApplicationOrchestrator:
    """Runs the application workflow and reports its outcome.

    Every invocation of :meth:`create_application` owns a fresh
    :class:`StepTracker`. Stage failures are recorded on the steps and
    returned in the :class:`WorkflowOutcome`; they are never raised.
    """

    def __init__(
        self,
        storage: StorageClient,
        chains: ChainDirectory,
        strategy_factory: StrategyFactory,
        transactions: TransactionClient,
        index_client: IndexQueryClient,
        decoder: Optional[EventDecoder] = None,
        *,
        gateway_url: str = DEFAULT_GATEWAY_URL,
        image_failure_policy: ImageFailurePolicy = ImageFailurePolicy.CONTINUE,
        event_schema: Optional[EventSchema] = None,
        protocol: int = DEFAULT_METADATA_PROTOCOL,
        transaction_value: int = DEFAULT_TRANSACTION_VALUE,
        index_entity: str = DEFAULT_INDEX_ENTITY,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS,
        poll_timeout: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.storage = storage
        self.chains = chains
        self.strategy_factory = strategy_factory
        self.transactions = transactions
        self.index_client = index_client
        self.decoder = decoder or TopicEventDecoder()
        self.gateway_url = gateway_url
        self.image_failure_policy = image_failure_policy
        self.event_schema = event_schema or EventSchema()
        self.protocol = protocol
        self.transaction_value = transaction_value
        self.index_entity = index_entity
        self.poll_interval = poll_interval
        self.poll_max_attempts = poll_max_attempts
        self.poll_timeout = poll_timeout
        self._sleep = sleep
        self._owned: List[Any] = []

    @classmethod
    def from_config(
        cls,
        config: Optional[GrantflowConfig] = None,
        strategy_factory: Optional[StrategyFactory] = None,
    ) -> "ApplicationOrchestrator":
        """Build an orchestrator with collaborators selected by ``config``."""
        config = config or load_config()
        if strategy_factory is None:
            if not config.registration.strategy:
                raise ConfigError(
                    "registration.strategy must name a strategy factory "
                    "('module:attribute')"
                )
            strategy_factory = load_strategy_factory(config.registration.strategy)

        check_client_config(config)
        storage = get_storage_client(config=config)
        transactions = get_transaction_client(config)
        index_client = get_index_client(config)
        orchestrator = cls(
            storage=storage,
            chains=get_chain_directory(config),
            strategy_factory=strategy_factory,
            transactions=transactions,
            index_client=index_client,
            gateway_url=config.storage.gateway_url,
            image_failure_policy=config.registration.image_failure_policy,
            event_schema=config.registration.event,
            protocol=config.registration.protocol,
            transaction_value=config.registration.transaction_value,
            index_entity=config.indexer.entity,
            poll_interval=config.indexer.interval,
            poll_max_attempts=config.indexer.max_attempts,
            poll_timeout=config.indexer.timeout,
        )
        orchestrator._owned = [storage, transactions, index_client]
        return orchestrator

    async def aclose(self) -> None:
        """Close collaborators created by :meth:`from_config`."""
        for client in self._owned:
            await client.aclose()
        self._owned = []

    async def __aenter__(self) -> "ApplicationOrchestrator":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def create_application(
        self,
        application: ApplicationInput,
        chain_id: int,
        pool_id: int,
        listener: Optional[StepListener] = None,
    ) -> WorkflowOutcome:
        """Publish, register and confirm ``application``.

        Args:
            application: Record to submit.
            chain_id: Chain hosting the pool.
            pool_id: Pool receiving the application.
            listener: Optional callback invoked synchronously on every step
                change, for live progress display.

        Returns:
            Outcome carrying the recipient id (``None`` when registration did
            not complete) and the final step states.
        """
        run_id = str(uuid.uuid4())
        tracker = StepTracker()
        unsubscribe = tracker.subscribe(listener) if listener else None

        publisher = MetadataPublisher(
            self.storage,
            tracker,
            gateway_url=self.gateway_url,
            image_failure_policy=self.image_failure_policy,
        )
        submitter = RegistrationSubmitter(
            self.chains,
            self.strategy_factory,
            self.transactions,
            self.decoder,
            tracker,
            event_schema=self.event_schema,
            protocol=self.protocol,
            transaction_value=self.transaction_value,
        )
        confirmer = IndexConfirmer(
            self.index_client,
            tracker,
            interval=self.poll_interval,
            max_attempts=self.poll_max_attempts,
            timeout=self.poll_timeout,
            sleep=self._sleep,
        )

        pointer: Optional[str] = None
        transaction_hash: Optional[str] = None
        recipient_id: Optional[str] = None
        try:
            chain = self.chains.resolve(chain_id)
            tracker.set_target(INDEX_STEP, chain.name)
            logger.info(
                f"Starting application '{application.name}' for pool {pool_id} "
                f"on {chain.name} (run_id={run_id})"
            )

            published = await publisher.publish(application)
            pointer = published.pointer

            registration = await submitter.register(
                chain_id,
                pool_id,
                pointer,
                application.recipient_address,
                application.requested_amount,
            )
            transaction_hash = registration.transaction_hash
            recipient_id = registration.recipient_id

            await confirmer.confirm(
                chain_id, pool_id, recipient_id, entity=self.index_entity
            )
            logger.info(f"Application workflow completed (run_id={run_id})")
        except WorkflowError as e:
            logger.error(
                f"Application workflow stopped (run_id={run_id}): "
                f"{type(e).__name__}: {e}"
            )
        finally:
            if unsubscribe is not None:
                unsubscribe()

        return WorkflowOutcome(
            run_id=run_id,
            recipient_id=recipient_id,
            steps=tracker.snapshot(),
            pointer=pointer,
            transaction_hash=transaction_hash,
        )
