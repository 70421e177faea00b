"""Vault SDK interface: the protocols the orchestrator talks to."""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from ..types import ProgressStep


@runtime_checkable
class LiveVault(Protocol):
    """An unlocked vault able to derive addresses and sign."""

    async def address(self, chain: str) -> str:
        """Derive the vault's address on ``chain``."""
        ...

    async def sign(self, payload: Any, options: dict[str, Any] | None = None) -> Any:
        """Sign a transaction payload with the threshold key."""
        ...


@runtime_checkable
class ExportableVault(LiveVault, Protocol):
    """A live vault that can also produce an encrypted backup."""

    async def export_as_base64(self, password: str) -> str:
        """Export an encrypted backup as a base64 string."""
        ...


class SecureVaultCallbacks(Protocol):
    """Event hooks for a secure vault pairing ceremony."""

    def on_qr_code_ready(self, payload: str) -> None:
        """Pairing payload to show to the joining devices."""
        ...

    def on_device_joined(self, device_id: str, total_joined: int, required: int) -> None:
        """A device joined the ceremony."""
        ...

    def on_progress(self, step: ProgressStep) -> None:
        """Ceremony progress report."""
        ...


@dataclass
class SecureVaultResult:
    """Outcome of a completed secure vault ceremony."""

    vault: LiveVault
    vault_id: str
    session_id: str


class VaultSdk(Protocol):
    """Protocol for vault SDK backends."""

    async def initialize(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def create_fast_vault(self, name: str, email: str, password: str) -> str:
        """Start a 2-of-2 vault; returns its id. A verification code is sent
        to ``email`` out of band."""
        ...

    async def verify_vault(self, vault_id: str, code: str) -> LiveVault:
        """Unlock a fast vault with its verification code."""
        ...

    async def create_secure_vault(
        self,
        name: str,
        devices: int,
        threshold: int,
        password: str | None,
        callbacks: SecureVaultCallbacks,
    ) -> SecureVaultResult:
        """Run an n-of-m pairing ceremony to completion."""
        ...


