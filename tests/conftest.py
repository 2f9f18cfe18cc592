"""Shared test fixtures for merchdeploy."""

from __future__ import annotations

import base64
from pathlib import Path

import pytest

from merchdeploy.config import DeployConfig
from merchdeploy.core.identity import Keypair, save_keystore
from merchdeploy.core.manifest_store import ManifestStore
from merchdeploy.models.manifest import DeploymentManifest
from merchdeploy.stages.base import StageContext
from tests.fakes import FALLBACK_URL, FAUCET_URL, RPC_URL, TEST_SEED, FakeNetwork

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def network() -> FakeNetwork:
    """Provide a fresh fake ledger and faucet pair."""
    return FakeNetwork()


@pytest.fixture
def keypair() -> Keypair:
    """Provide the deterministic deployer keypair."""
    return Keypair.from_secret(base64.b64encode(TEST_SEED).decode())


@pytest.fixture
def deploy_config(tmp_path: Path) -> DeployConfig:
    """Provide a config pointing every path at tmp_path and every URL at the fakes."""
    return DeployConfig(
        rpc_url=RPC_URL,
        faucet_url=FAUCET_URL,
        fallback_faucet_url=FALLBACK_URL,
        keystore_path=tmp_path / "sui.keystore",
        manifest_path=tmp_path / "deployment-info.json",
        project_root=tmp_path,
        build_dir=tmp_path / "build" / "anime_merchandise",
        faucet_poll_interval_seconds=0.0,
    )


@pytest.fixture
def keystore(deploy_config: DeployConfig, keypair: Keypair) -> Path:
    """Write the deterministic keypair to the configured keystore."""
    save_keystore(keypair, deploy_config.keystore_path)
    return deploy_config.keystore_path


@pytest.fixture
def bytecode(deploy_config: DeployConfig) -> list[bytes]:
    """Write two fake compiled modules to the bytecode directory."""
    bytecode_dir = deploy_config.bytecode_dir
    bytecode_dir.mkdir(parents=True)
    modules = [b"\xa1\x1c\xeb\x0bmarketplace", b"\xa1\x1c\xeb\x0banime_nft"]
    (bytecode_dir / "marketplace.mv").write_bytes(modules[0])
    (bytecode_dir / "anime_nft.mv").write_bytes(modules[1])
    return modules


@pytest.fixture
def sleeps() -> list[float]:
    """Collect the intervals passed to the injected sleep function."""
    return []


@pytest.fixture
def context(deploy_config: DeployConfig, network: FakeNetwork, sleeps: list[float]):
    """Provide a StageContext wired to the fake network."""
    with StageContext(deploy_config, client=network.client(), sleep=sleeps.append) as ctx:
        yield ctx


@pytest.fixture
def manifest_store(deploy_config: DeployConfig) -> ManifestStore:
    return ManifestStore(deploy_config.manifest_path)


@pytest.fixture
def published_manifest(manifest_store: ManifestStore, keypair: Keypair) -> DeploymentManifest:
    """A manifest recording a publish of 0xPKG by the test keypair."""
    return manifest_store.create(
        DeploymentManifest(package_id="0xPKG", deployer_address=keypair.address, network="testnet")
    )


@pytest.fixture
def initialized_manifest(manifest_store: ManifestStore, published_manifest: DeploymentManifest) -> DeploymentManifest:
    """A manifest that also records the marketplace init transaction D2."""
    return manifest_store.update(marketplace_init_tx="D2")
