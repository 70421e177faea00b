"""Vault orchestration service."""

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Any

from .sdk import ExportableVault, LiveVault, VaultSdk
from .storage import MetadataStore
from .types import (
    NotFoundError,
    ProgressStep,
    SecureVaultSession,
    SessionStatus,
    VaultMetadata,
    VaultStateError,
)

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class _SessionRecorder:
    """Ceremony callbacks writing into the single session the service owns."""

    def __init__(self, session: SecureVaultSession) -> None:
        self.session = session

    def on_qr_code_ready(self, payload: str) -> None:
        self.session.qr_code = payload

    def on_device_joined(self, device_id: str, total_joined: int, required: int) -> None:
        self.session.devices_joined = total_joined
        if total_joined == required:
            self.session.status = SessionStatus.READY
        logger.info("Device %s joined (%d/%d)", device_id, total_joined, required)

    def on_progress(self, step: ProgressStep) -> None:
        logger.info("Secure vault progress: %s - %s", step.step, step.message)


class VaultService:
    """
    Vault orchestrator.

    The only component that talks to the vault SDK. Bridges the durable
    metadata store with live vault handles, which exist only in this process:
    after a restart every vault must be verified again before it can derive
    addresses, sign or export.

    Shared state is two plain dicts mutated from coroutines on one event loop;
    every store read-modify-write runs without an intervening await.

    Example:
        >>> service = VaultService(SimulatedVaultSdk(), FileMetadataStore("./data/vaults"))
        >>> await service.initialize()
        >>> vault_id = await service.create_fast_vault("Wallet", "a@b.com", "pw")
        >>> await service.verify_vault(vault_id, code)
        >>> await service.get_address(vault_id, "Bitcoin")
    """

    def __init__(
        self,
        sdk: VaultSdk,
        store: MetadataStore,
        *,
        verify_locally: bool = False,
    ) -> None:
        self._sdk = sdk
        self._store = store
        self._verify_locally = verify_locally
        self._vaults: dict[str, LiveVault] = {}
        self._sessions: dict[str, SecureVaultSession] = {}

    async def initialize(self) -> None:
        await self._sdk.initialize()
        self._store.initialize()
        logger.info("VaultService initialized")

    async def close(self) -> None:
        await self._sdk.close()

    @property
    def store(self) -> MetadataStore:
        return self._store

    def is_loaded(self, vault_id: str) -> bool:
        """Check if a live handle is cached for the vault."""
        return vault_id in self._vaults

    # ============================================================================
    # Fast Vaults
    # ============================================================================

    async def create_fast_vault(
        self,
        name: str,
        email: str,
        password: str,
        user_id: str | None = None,
    ) -> str:
        """Create a 2-of-2 vault. It stays unverified until the emailed code
        is submitted to verify_vault."""
        vault_id = await self._sdk.create_fast_vault(name, email, password)

        self._store.save(VaultMetadata(
            vault_id=vault_id,
            name=name,
            email=email,
            user_id=user_id,
            created_at=_now_iso(),
            verified=False,
        ))
        logger.info("Fast vault %s created", vault_id)
        return vault_id

    async def verify_vault(self, vault_id: str, code: str) -> LiveVault:
        """Verify a fast vault and cache its live handle."""
        if self._verify_locally and self._store.get(vault_id) is None:
            raise NotFoundError(f"Vault {vault_id} not found")

        vault = await self._sdk.verify_vault(vault_id, code)

        self._store.update(vault_id, verified=True)
        self._vaults[vault_id] = vault
        logger.info("Vault %s verified and loaded", vault_id)
        return vault

    # ============================================================================
    # Live Vault Operations
    # ============================================================================

    async def get_address(self, vault_id: str, chain: str) -> str:
        """Derive an address and record the chain in the vault's metadata."""
        vault = self._vaults.get(vault_id)

        if vault is None:
            metadata = self._store.get(vault_id)
            if metadata is None or not metadata.verified:
                raise NotFoundError("Vault not found or not verified")
            raise VaultStateError.not_loaded(
                "Vault not loaded. Please re-verify the vault first."
            )

        address = await vault.address(chain)

        metadata = self._store.get(vault_id)
        if metadata is not None and chain not in metadata.chains:
            self._store.update(vault_id, chains=[*metadata.chains, chain])

        return address

    async def sign_transaction(
        self,
        vault_id: str,
        payload: Any,
        options: dict[str, Any] | None = None,
    ) -> Any:
        """Sign a transaction payload. The result is whatever the SDK returns."""
        vault = self._vaults.get(vault_id)
        if vault is None:
            raise VaultStateError.not_loaded(
                "Vault not loaded. Please verify the vault first."
            )
        return await vault.sign(payload, options)

    async def export_vault(self, vault_id: str, password: str) -> str:
        """Export an encrypted backup and keep a copy in the store."""
        vault = self._vaults.get(vault_id)
        if vault is None:
            raise VaultStateError.not_loaded()
        if not isinstance(vault, ExportableVault):
            raise VaultStateError.export_not_supported()

        backup = await vault.export_as_base64(password)
        self._store.save_export(vault_id, backup)
        logger.info("Vault %s exported", vault_id)
        return backup

    # ============================================================================
    # Secure Vaults
    # ============================================================================

    async def create_secure_vault(
        self,
        name: str,
        devices: int,
        threshold: int,
        password: str | None = None,
        user_id: str | None = None,
    ) -> SecureVaultSession:
        """Run the n-of-m pairing ceremony and register the resulting vault.

        Returns a snapshot of the session; the recorded session stays owned
        by the service.
        """
        session = SecureVaultSession(
            vault_id="",
            session_id="",
            qr_code="",
            devices_joined=0,
            devices_required=devices,
            status=SessionStatus.PENDING,
        )
        recorder = _SessionRecorder(session)

        try:
            result = await self._sdk.create_secure_vault(
                name, devices, threshold, password, recorder
            )
        except Exception:
            session.status = SessionStatus.FAILED
            logger.error(
                "Secure vault ceremony failed (%d/%d devices joined)",
                session.devices_joined, devices,
            )
            raise

        session.vault_id = result.vault_id
        session.session_id = result.session_id
        self._sessions[result.vault_id] = session

        self._store.save(VaultMetadata(
            vault_id=result.vault_id,
            name=name,
            email="",
            user_id=user_id,
            created_at=_now_iso(),
            verified=True,
        ))
        self._vaults[result.vault_id] = result.vault
        logger.info("Secure vault %s created (%d-of-%d)", result.vault_id, threshold, devices)

        return dataclasses.replace(session)

    def get_secure_vault_session(self, vault_id: str) -> SecureVaultSession | None:
        """Look up a completed pairing session. Sessions are not persisted."""
        session = self._sessions.get(vault_id)
        return dataclasses.replace(session) if session is not None else None

    # ============================================================================
    # Metadata
    # ============================================================================

    def list_vaults(self, user_id: str | None = None) -> list[VaultMetadata]:
        return self._store.list(user_id)

    def get_vault_metadata(self, vault_id: str) -> VaultMetadata | None:
        return self._store.get(vault_id)
