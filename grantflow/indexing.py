"""Waiting for a registered recipient to appear in the indexer."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .constants import (
    DEFAULT_INDEX_ENTITY,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_MAX_ATTEMPTS,
    INDEX_STEP,
)
from .contracts import IndexQueryParams, StepStatus
from .errors import IndexTimeoutError
from .services.indexer import IndexQueryClient
from .tracker import StepTracker
from .utils.polling import Sleep, poll_until

logger = logging.getLogger(__name__)


class IndexConfirmer:
    """Polls the indexer at a fixed interval within an attempt budget."""

    def __init__(
        self,
        client: IndexQueryClient,
        tracker: StepTracker,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS,
        timeout: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._client = client
        self._tracker = tracker
        self.interval = interval
        self.max_attempts = max_attempts
        self.timeout = timeout
        self._sleep = sleep

    async def confirm(
        self,
        chain_id: int,
        pool_id: int,
        recipient_id: Optional[str],
        entity: str = DEFAULT_INDEX_ENTITY,
    ) -> int:
        """Wait until ``recipient_id`` is indexed.

        Returns:
            Number of queries issued.

        Raises:
            IndexTimeoutError: If the budget ran out first. Step 2 is marked
                ``ERROR`` before raising.
        """
        self._tracker.set_status(INDEX_STEP, StepStatus.IN_PROGRESS)
        if not recipient_id:
            self._tracker.set_status(INDEX_STEP, StepStatus.ERROR)
            raise IndexTimeoutError("No recipient id to look up in the index")

        params = IndexQueryParams(
            chain_id=chain_id, pool_id=pool_id, recipient_id=recipient_id, entity=entity
        )

        async def probe() -> bool:
            return await self._client.query(params)

        found, attempts = await poll_until(
            probe,
            interval=self.interval,
            max_attempts=self.max_attempts,
            timeout=self.timeout,
            sleep=self._sleep,
            description=f"{entity} {recipient_id}",
        )
        if not found:
            logger.error(
                f"Recipient {recipient_id} not indexed on chain {chain_id} "
                f"pool {pool_id} after {attempts} attempt(s)"
            )
            self._tracker.set_status(INDEX_STEP, StepStatus.ERROR)
            raise IndexTimeoutError(
                f"Recipient {recipient_id} was not indexed after {attempts} attempt(s)"
            )

        logger.info(f"Recipient {recipient_id} indexed after {attempts} attempt(s)")
        self._tracker.set_status(INDEX_STEP, StepStatus.SUCCESS)
        return attempts
