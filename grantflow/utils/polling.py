from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


async def poll_until(
    probe: Callable[[], Awaitable[Optional[T]]],
    *,
    interval: float,
    max_attempts: int,
    timeout: Optional[float] = None,
    sleep: Sleep = asyncio.sleep,
    description: str = "condition",
) -> tuple[Optional[T], int]:
    """Call ``probe`` until it returns a truthy value or the budget runs out.

    Exceptions raised by ``probe`` count as a miss. The loop issues at most
    ``max_attempts`` probes, waits ``interval`` seconds between them and never
    sleeps after the final probe. When ``timeout`` is set no new probe starts
    once that many seconds have elapsed.

    Returns:
        ``(value, attempts)`` where ``value`` is ``None`` when the budget was
        exhausted without a hit.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    started = time.monotonic()
    attempts = 0
    while attempts < max_attempts:
        attempts += 1
        try:
            result = await probe()
        except Exception as e:
            logger.debug(f"Polling {description}: attempt {attempts} failed: {e}")
            result = None
        if result:
            logger.debug(f"Polling {description}: satisfied after {attempts} attempt(s)")
            return result, attempts
        if attempts >= max_attempts:
            break
        if timeout is not None and time.monotonic() - started + interval > timeout:
            logger.debug(f"Polling {description}: timeout of {timeout}s reached")
            break
        await sleep(interval)
    return None, attempts
