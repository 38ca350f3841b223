from __future__ import annotations

import os
from typing import List, Literal, Optional, get_args

import yaml
from pydantic import BaseModel, Field, ValidationError

from .constants import (
    DEFAULT_GATEWAY_URL,
    DEFAULT_INDEX_ENTITY,
    DEFAULT_METADATA_PROTOCOL,
    DEFAULT_PINATA_API_URL,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_MAX_ATTEMPTS,
    DEFAULT_RECEIPT_INTERVAL,
    DEFAULT_RECEIPT_MAX_ATTEMPTS,
    DEFAULT_TRANSACTION_VALUE,
)
from .contracts import ChainInfo, EventSchema, ImageFailurePolicy
from .errors import ConfigError


class PinataConfig(BaseModel):
    """Configuration for the Pinata pinning API."""

    api_url: str = DEFAULT_PINATA_API_URL
    jwt: Optional[str] = None
    timeout: float = 30.0


StorageBackend = Literal["inmemory", "pinata"]
STORAGE_BACKENDS = get_args(StorageBackend)


class StorageConfig(BaseModel):
    """Content-addressed storage settings."""

    backend: StorageBackend = "inmemory"
    gateway_url: str = DEFAULT_GATEWAY_URL
    pinata: PinataConfig = PinataConfig()


class RegistrationConfig(BaseModel):
    """On-chain registration settings."""

    protocol: int = DEFAULT_METADATA_PROTOCOL
    transaction_value: int = DEFAULT_TRANSACTION_VALUE
    image_failure_policy: ImageFailurePolicy = ImageFailurePolicy.CONTINUE
    event: EventSchema = EventSchema()
    strategy: Optional[str] = None


class TransactionConfig(BaseModel):
    """JSON-RPC node used to submit transactions."""

    rpc_url: Optional[str] = None
    sender: Optional[str] = None
    timeout: float = 30.0
    receipt_interval: float = DEFAULT_RECEIPT_INTERVAL
    receipt_max_attempts: int = Field(default=DEFAULT_RECEIPT_MAX_ATTEMPTS, ge=1)


class IndexerConfig(BaseModel):
    """Indexer endpoint and polling budget."""

    url: Optional[str] = None
    entity: str = DEFAULT_INDEX_ENTITY
    interval: float = Field(default=DEFAULT_POLL_INTERVAL, ge=0)
    max_attempts: int = Field(default=DEFAULT_POLL_MAX_ATTEMPTS, ge=1)
    timeout: Optional[float] = None
    request_timeout: float = 10.0


class GrantflowConfig(BaseModel):
    """Top-level configuration model."""

    storage: StorageConfig = StorageConfig()
    chains: List[ChainInfo] = Field(default_factory=list)
    registration: RegistrationConfig = RegistrationConfig()
    transactions: TransactionConfig = TransactionConfig()
    indexer: IndexerConfig = IndexerConfig()


def load_config(path: Optional[str] = None) -> GrantflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to GRANTFLOW_CONFIG env
            variable or 'grantflow.yaml' in the current directory.
    """

    config_path = path or os.getenv("GRANTFLOW_CONFIG", "grantflow.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        try:
            config = GrantflowConfig(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e
    elif path:
        raise ConfigError(f"Config file not found: {path}")
    else:
        config = GrantflowConfig()

    backend = os.getenv("GRANTFLOW_STORAGE_BACKEND")
    if backend:
        if backend.lower() not in STORAGE_BACKENDS:
            raise ConfigError(
                f"Unsupported storage backend in GRANTFLOW_STORAGE_BACKEND: {backend}"
            )
        config.storage.backend = backend.lower()
    pinata_jwt = os.getenv("PINATA_JWT")
    if pinata_jwt:
        config.storage.pinata.jwt = pinata_jwt
    rpc_url = os.getenv("GRANTFLOW_RPC_URL")
    if rpc_url:
        config.transactions.rpc_url = rpc_url
    indexer_url = os.getenv("GRANTFLOW_INDEXER_URL")
    if indexer_url:
        config.indexer.url = indexer_url
    return config
