"""Registration payload builders.

Each allocation protocol encodes recipient registration differently. The
workflow only needs a target address and calldata, so protocol support is
plugged in through :class:`RegistrationStrategy` implementations.
"""

from __future__ import annotations

import abc
from typing import Callable

from ..contracts import MetadataReference, RegisterPayload
from ..errors import ConfigError
from ..utils.loading import import_string


class RegistrationStrategy(metaclass=abc.ABCMeta):
    """Builds the transaction that registers a recipient in a pool."""

    def __init__(self, chain_id: int, pool_id: int) -> None:
        self.chain_id = chain_id
        self.pool_id = pool_id

    @abc.abstractmethod
    def build_register_payload(
        self,
        recipient_address: str,
        requested_amount: int,
        metadata: MetadataReference,
    ) -> RegisterPayload:
        """Return the ``to`` address and calldata for registration."""
        raise NotImplementedError


StrategyFactory = Callable[[int, int], RegistrationStrategy]


def load_strategy_factory(target: str) -> StrategyFactory:
    """Load a strategy class or factory from a ``module:attribute`` string."""
    factory = import_string(target)
    if not callable(factory):
        raise ConfigError(f"Strategy '{target}' is not callable")
    return factory
