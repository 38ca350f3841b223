"""Tests for configuration loading."""

import pytest

from grantflow.config import load_config
from grantflow.contracts import ImageFailurePolicy
from grantflow.errors import ConfigError
from grantflow.services import (
    InMemoryStorageClient,
    PinataStorageClient,
    check_client_config,
    get_chain_directory,
    get_index_client,
    get_storage_client,
    get_transaction_client,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in (
        "GRANTFLOW_CONFIG",
        "GRANTFLOW_STORAGE_BACKEND",
        "PINATA_JWT",
        "GRANTFLOW_RPC_URL",
        "GRANTFLOW_INDEXER_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults_without_config_file():
    config = load_config()

    assert config.storage.backend == "inmemory"
    assert config.storage.gateway_url == "https://ipfs.io/ipfs/"
    assert config.registration.protocol == 1
    assert config.registration.image_failure_policy == ImageFailurePolicy.CONTINUE
    assert config.indexer.entity == "microGrantRecipient"
    assert config.indexer.max_attempts == 30


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "custom.yaml"
    config_path.write_text(
        """
storage:
  backend: pinata
  pinata:
    jwt: secret
chains:
  - id: 31337
    name: Anvil
    explorer_base_url: http://localhost:8545
registration:
  image_failure_policy: abort
  event:
    name: Registered
    topic: "0xabc"
indexer:
  url: https://indexer.example/graphql
  interval: 0.5
  max_attempts: 4
"""
    )
    monkeypatch.setenv("GRANTFLOW_CONFIG", str(config_path))

    config = load_config()
    assert config.storage.backend == "pinata"
    assert config.storage.pinata.jwt == "secret"
    assert config.chains[0].name == "Anvil"
    assert config.registration.image_failure_policy == ImageFailurePolicy.ABORT
    assert config.registration.event.topic == "0xabc"
    assert config.indexer.interval == 0.5
    assert config.indexer.max_attempts == 4

    directory = get_chain_directory(config)
    assert directory.resolve(31337).name == "Anvil"
    assert directory.resolve(1).name == "Ethereum"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PINATA_JWT", "from-env")
    monkeypatch.setenv("GRANTFLOW_RPC_URL", "http://node:8545")
    monkeypatch.setenv("GRANTFLOW_INDEXER_URL", "http://indexer/graphql")

    config = load_config()
    assert config.storage.pinata.jwt == "from-env"
    assert config.transactions.rpc_url == "http://node:8545"
    assert config.indexer.url == "http://indexer/graphql"


def test_missing_explicit_path_is_an_error(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.yaml"))


def test_invalid_config_is_an_error(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("indexer:\n  max_attempts: 0\n")

    with pytest.raises(ConfigError):
        load_config(str(path))


@pytest.mark.asyncio
async def test_get_storage_client_uses_config(monkeypatch):
    assert isinstance(get_storage_client(), InMemoryStorageClient)

    monkeypatch.setenv("GRANTFLOW_STORAGE_BACKEND", "pinata")
    monkeypatch.setenv("PINATA_JWT", "token")
    client = get_storage_client()
    assert isinstance(client, PinataStorageClient)
    await client.aclose()


def test_storage_factory_errors(monkeypatch):
    with pytest.raises(ConfigError, match="Unsupported storage backend"):
        get_storage_client("s3")
    with pytest.raises(ConfigError):
        get_storage_client("pinata")


def test_network_clients_require_urls():
    with pytest.raises(ConfigError):
        get_transaction_client()
    with pytest.raises(ConfigError):
        get_index_client()


def test_unknown_backend_from_env_is_a_config_error(monkeypatch):
    monkeypatch.setenv("GRANTFLOW_STORAGE_BACKEND", "ipfs")

    with pytest.raises(ConfigError, match="GRANTFLOW_STORAGE_BACKEND"):
        load_config()


def test_check_client_config_reports_first_missing_setting():
    config = load_config()
    config.storage.backend = "pinata"
    config.storage.pinata.jwt = "secret"

    with pytest.raises(ConfigError, match="transactions.rpc_url"):
        check_client_config(config)

    config.transactions.rpc_url = "http://localhost:8545"
    config.transactions.sender = "0xsender"
    with pytest.raises(ConfigError, match="indexer.url"):
        check_client_config(config)

    config.indexer.url = "https://indexer.example/graphql"
    check_client_config(config)
