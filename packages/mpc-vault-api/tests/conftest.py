"""
Shared test fixtures for the MPC Vault API test suite.

Provides a file store under tmp_path, a simulated SDK with no device-join
delay, an initialized VaultService and an async HTTP client wrapping the
FastAPI app via ASGITransport.
"""

import uuid

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport

from mpc_vault.api import create_app
from mpc_vault.config import ServerConfig, reset_config
from mpc_vault.sdk import SimulatedVaultSdk
from mpc_vault.service import VaultService
from mpc_vault.storage import FileMetadataStore


@pytest.fixture
def test_prefix():
    """Unique prefix for test isolation."""
    return f"test_{uuid.uuid4().hex[:8]}"


@pytest.fixture
def clean_env(monkeypatch):
    """Remove env vars that leak into config between tests."""
    for key in [
        "HOST",
        "PORT",
        "VAULTS_STORAGE_PATH",
        "TEST_MODE",
        "VAULT_SDK_URL",
        "VAULT_SDK_TIMEOUT",
        "CORS_ORIGINS",
        "LOG_LEVEL",
        "DEVICE_JOIN_DELAY",
    ]:
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def storage_path(tmp_path):
    return tmp_path / "vaults"


@pytest.fixture
def store(storage_path):
    return FileMetadataStore(storage_path)


@pytest.fixture
def sdk():
    return SimulatedVaultSdk(test_mode=True, device_join_delay=0)


@pytest_asyncio.fixture
async def service(sdk, store):
    svc = VaultService(sdk, store)
    await svc.initialize()
    yield svc
    await svc.close()


@pytest.fixture
def config(storage_path):
    return ServerConfig(storage_path=storage_path, test_mode=True, device_join_delay=0)


@pytest.fixture
def app(config, service):
    return create_app(config, service=service)


@pytest_asyncio.fixture
async def test_client(app):
    """Async HTTP client wrapping the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def verified_vault(service, sdk, test_prefix):
    """A fast vault that has been created and verified."""
    vault_id = await service.create_fast_vault(
        f"{test_prefix} wallet", f"{test_prefix}@example.com", "P@ssw0rd"
    )
    await service.verify_vault(vault_id, sdk.verification_code_for(vault_id))
    return vault_id
