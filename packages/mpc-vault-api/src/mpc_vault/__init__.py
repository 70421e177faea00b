"""
MPC Vault API

A REST facade over an MPC vault SDK: create Fast (2-of-2) and Secure
(n-of-m) vaults, verify them, derive addresses, sign and export backups,
with per-vault metadata kept as JSON files.

Example:
    >>> from mpc_vault import VaultService, SimulatedVaultSdk, FileMetadataStore
    >>>
    >>> service = VaultService(
    ...     SimulatedVaultSdk(test_mode=True),
    ...     FileMetadataStore("./data/vaults"),
    ... )
    >>> await service.initialize()
    >>> vault_id = await service.create_fast_vault("Wallet", "a@b.com", "pw")
    >>> await service.verify_vault(vault_id, "000000")
    >>> await service.get_address(vault_id, "Ethereum")
"""

from .service import VaultService
from .storage import MetadataStore, MemoryMetadataStore, FileMetadataStore
from .sdk import (
    VaultSdk,
    LiveVault,
    ExportableVault,
    SecureVaultCallbacks,
    SecureVaultResult,
    SimulatedVaultSdk,
    RemoteVaultSdk,
    TEST_MODE_CODE,
)
from .config import ServerConfig, get_config, load_config
from .client import VaultApiClient, is_valid_address
from .types import (
    ErrorCode,
    VaultApiError,
    ValidationError,
    NotFoundError,
    VaultStateError,
    UpstreamError,
    VaultMetadata,
    SecureVaultSession,
    SessionStatus,
    ProgressStep,
    Signature,
)
from .version import __version__

__all__ = [
    # Service
    "VaultService",
    # Storage
    "MetadataStore",
    "MemoryMetadataStore",
    "FileMetadataStore",
    # SDK
    "VaultSdk",
    "LiveVault",
    "ExportableVault",
    "SecureVaultCallbacks",
    "SecureVaultResult",
    "SimulatedVaultSdk",
    "RemoteVaultSdk",
    "TEST_MODE_CODE",
    # Config
    "ServerConfig",
    "get_config",
    "load_config",
    # Client
    "VaultApiClient",
    "is_valid_address",
    # Types
    "ErrorCode",
    "VaultApiError",
    "ValidationError",
    "NotFoundError",
    "VaultStateError",
    "UpstreamError",
    "VaultMetadata",
    "SecureVaultSession",
    "SessionStatus",
    "ProgressStep",
    "Signature",
    "__version__",
]
