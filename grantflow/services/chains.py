"""Chain id to display metadata lookup."""

from __future__ import annotations

from typing import Dict, Iterable, List

from ..contracts import ChainInfo
from ..errors import UnknownChainError

DEFAULT_CHAINS: List[ChainInfo] = [
    ChainInfo(id=1, name="Ethereum", explorer_base_url="https://etherscan.io"),
    ChainInfo(id=10, name="Optimism", explorer_base_url="https://optimistic.etherscan.io"),
    ChainInfo(id=137, name="Polygon", explorer_base_url="https://polygonscan.com"),
    ChainInfo(id=42161, name="Arbitrum One", explorer_base_url="https://arbiscan.io"),
    ChainInfo(id=11155111, name="Sepolia", explorer_base_url="https://sepolia.etherscan.io"),
]


class ChainDirectory:
    """Read-only mapping of chain ids to :class:`ChainInfo`."""

    def __init__(self, chains: Iterable[ChainInfo] = ()) -> None:
        self._chains: Dict[int, ChainInfo] = {chain.id: chain for chain in chains}

    @classmethod
    def with_defaults(cls, overrides: Iterable[ChainInfo] = ()) -> "ChainDirectory":
        """Directory of the built-in chains, updated with ``overrides``."""
        return cls([*DEFAULT_CHAINS, *overrides])

    def resolve(self, chain_id: int) -> ChainInfo:
        try:
            return self._chains[chain_id]
        except KeyError:
            raise UnknownChainError(chain_id) from None

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._chains

    def all(self) -> List[ChainInfo]:
        return sorted(self._chains.values(), key=lambda c: c.id)
