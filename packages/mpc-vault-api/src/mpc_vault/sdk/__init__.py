"""
Vault SDK interface.

The orchestrator talks to the MPC vault SDK only through the protocols in
``base``. Key shares, the TSS protocols and chain-specific encoding all live
behind them; the orchestrator never sees key material.

Backends:
    SimulatedVaultSdk  in-process stand-in for development, demos and tests
    RemoteVaultSdk     forwards calls to an SDK sidecar over HTTP
"""

from .base import (
    ExportableVault,
    LiveVault,
    SecureVaultCallbacks,
    SecureVaultResult,
    VaultSdk,
)
from .simulator import SimulatedVaultSdk, SimulatedVault, TEST_MODE_CODE
from .remote import RemoteVaultSdk, RemoteVault

__all__ = [
    "LiveVault",
    "ExportableVault",
    "SecureVaultCallbacks",
    "SecureVaultResult",
    "VaultSdk",
    "SimulatedVaultSdk",
    "SimulatedVault",
    "RemoteVaultSdk",
    "RemoteVault",
    "TEST_MODE_CODE",
]
