"""External collaborator interfaces and config-driven factories."""

from __future__ import annotations

import os
from typing import Optional

from ..config import STORAGE_BACKENDS, GrantflowConfig, load_config
from ..errors import ConfigError
from .chains import DEFAULT_CHAINS, ChainDirectory
from .events import EventDecoder, TopicEventDecoder
from .indexer import GraphQLIndexClient, IndexQueryClient
from .storage import InMemoryStorageClient, PinataStorageClient, StorageClient
from .strategy import RegistrationStrategy, StrategyFactory, load_strategy_factory
from .transactions import JsonRpcTransactionClient, TransactionClient


def _storage_backend(backend: Optional[str], config: GrantflowConfig) -> str:
    backend = (
        backend
        or os.getenv("GRANTFLOW_STORAGE_BACKEND")
        or config.storage.backend
    ).lower()
    if backend not in STORAGE_BACKENDS:
        raise ConfigError(f"Unsupported storage backend: {backend}")
    if backend == "pinata" and not config.storage.pinata.jwt:
        raise ConfigError("storage.pinata.jwt (or PINATA_JWT) is required")
    return backend


def _check_transactions(config: GrantflowConfig) -> None:
    if not config.transactions.rpc_url or not config.transactions.sender:
        raise ConfigError(
            "transactions.rpc_url and transactions.sender must be configured"
        )


def _check_indexer(config: GrantflowConfig) -> None:
    if not config.indexer.url:
        raise ConfigError("indexer.url (or GRANTFLOW_INDEXER_URL) must be configured")


def check_client_config(config: GrantflowConfig) -> None:
    """Raise :class:`ConfigError` unless every remote client can be built.

    Called before any client is opened.
    """
    _storage_backend(None, config)
    _check_transactions(config)
    _check_indexer(config)


def get_storage_client(
    backend: Optional[str] = None, config: Optional[GrantflowConfig] = None
) -> StorageClient:
    """Factory function to get the configured storage client."""

    config = config or load_config()
    backend = _storage_backend(backend, config)

    if backend == "pinata":
        pinata = config.storage.pinata
        return PinataStorageClient(
            jwt=pinata.jwt, api_url=pinata.api_url, timeout=pinata.timeout
        )
    return InMemoryStorageClient()


def get_chain_directory(config: Optional[GrantflowConfig] = None) -> ChainDirectory:
    config = config or load_config()
    return ChainDirectory.with_defaults(config.chains)


def get_transaction_client(
    config: Optional[GrantflowConfig] = None,
) -> TransactionClient:
    config = config or load_config()
    _check_transactions(config)
    tx = config.transactions
    return JsonRpcTransactionClient(
        rpc_url=tx.rpc_url,
        sender=tx.sender,
        timeout=tx.timeout,
        receipt_interval=tx.receipt_interval,
        receipt_max_attempts=tx.receipt_max_attempts,
    )


def get_index_client(config: Optional[GrantflowConfig] = None) -> IndexQueryClient:
    config = config or load_config()
    _check_indexer(config)
    return GraphQLIndexClient(
        url=config.indexer.url, timeout=config.indexer.request_timeout
    )


__all__ = [
    "DEFAULT_CHAINS",
    "STORAGE_BACKENDS",
    "ChainDirectory",
    "EventDecoder",
    "TopicEventDecoder",
    "IndexQueryClient",
    "GraphQLIndexClient",
    "StorageClient",
    "InMemoryStorageClient",
    "PinataStorageClient",
    "RegistrationStrategy",
    "StrategyFactory",
    "load_strategy_factory",
    "TransactionClient",
    "JsonRpcTransactionClient",
    "check_client_config",
    "get_storage_client",
    "get_chain_directory",
    "get_transaction_client",
    "get_index_client",
]
