"""Vault routes.

Handlers only check field presence and translate; every failure raised here
or by the service is mapped to a response by ``api.errors``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ...service import VaultService
from ...types import NotFoundError, ValidationError
from ..deps import get_vault_service
from ..models import (
    CreateFastVaultRequest,
    CreateSecureVaultRequest,
    ExportVaultRequest,
    SignTransactionRequest,
    VerifyVaultRequest,
    envelope,
)

router = APIRouter(prefix="/api/vaults", tags=["vaults"])


@router.post("/fast", status_code=201)
async def create_fast_vault(
    body: CreateFastVaultRequest,
    service: VaultService = Depends(get_vault_service),
):
    """Create a Fast Vault (2-of-2 MPC)."""
    if not body.name or not body.email or not body.password:
        raise ValidationError("Missing required fields: name, email, password")

    vault_id = await service.create_fast_vault(
        body.name, body.email, body.password, user_id=body.userId
    )
    return envelope(
        {"vaultId": vault_id},
        "Fast Vault created. Check your email for verification code.",
    )


@router.post("/secure", status_code=201)
async def create_secure_vault(
    body: CreateSecureVaultRequest,
    service: VaultService = Depends(get_vault_service),
):
    """Create a Secure Vault (N-of-M MPC)."""
    if not body.name or not body.devices or not body.threshold:
        raise ValidationError("Missing required fields: name, devices, threshold")
    if body.threshold > body.devices:
        raise ValidationError("Threshold cannot exceed number of devices")

    session = await service.create_secure_vault(
        body.name, body.devices, body.threshold,
        password=body.password, user_id=body.userId,
    )
    return envelope(
        session.to_dict(),
        "Secure Vault session created. Scan QR code with Vultisig mobile app.",
    )


@router.post("/{vault_id}/verify")
async def verify_vault(
    vault_id: str,
    body: VerifyVaultRequest,
    service: VaultService = Depends(get_vault_service),
):
    """Verify a vault with its email verification code."""
    if not body.verificationCode:
        raise ValidationError("Verification code is required")

    await service.verify_vault(vault_id, body.verificationCode)
    return envelope({"vaultId": vault_id, "verified": True}, "Vault verified successfully")


@router.get("/{vault_id}/address/{chain}")
async def get_address(
    vault_id: str,
    chain: str,
    service: VaultService = Depends(get_vault_service),
):
    address = await service.get_address(vault_id, chain)
    return envelope({"chain": chain, "address": address, "vaultId": vault_id})


@router.post("/{vault_id}/sign")
async def sign_transaction(
    vault_id: str,
    body: SignTransactionRequest,
    service: VaultService = Depends(get_vault_service),
):
    """Sign a transaction using MPC."""
    if body.transaction is None or body.transaction == "":
        raise ValidationError("Transaction payload is required")

    options = dict(body.options or {})
    if body.chain:
        options.setdefault("chain", body.chain)

    signature = await service.sign_transaction(vault_id, body.transaction, options or None)
    return envelope({"signature": signature}, "Transaction signed successfully")


@router.get("")
async def list_vaults(
    userId: str | None = Query(None),
    service: VaultService = Depends(get_vault_service),
):
    vaults = service.list_vaults(userId)
    return envelope({"vaults": [v.to_dict() for v in vaults]})


@router.get("/{vault_id}")
async def get_vault(
    vault_id: str,
    service: VaultService = Depends(get_vault_service),
):
    metadata = service.get_vault_metadata(vault_id)
    if metadata is None:
        raise NotFoundError("Vault not found")
    return envelope(metadata.to_dict())


@router.post("/{vault_id}/export")
async def export_vault(
    vault_id: str,
    body: ExportVaultRequest,
    service: VaultService = Depends(get_vault_service),
):
    """Export an encrypted vault backup."""
    if not body.password:
        raise ValidationError("Password is required for export")

    backup = await service.export_vault(vault_id, body.password)
    return envelope({"backup": backup, "vaultId": vault_id}, "Vault exported successfully")


@router.get("/{vault_id}/session")
async def get_session(
    vault_id: str,
    service: VaultService = Depends(get_vault_service),
):
    """Secure vault pairing session status."""
    session = service.get_secure_vault_session(vault_id)
    if session is None:
        raise NotFoundError("Session not found")
    return envelope(session.to_dict())
