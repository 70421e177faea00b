"""
Simulated vault SDK.

An in-process stand-in for the MPC vault SDK. It reproduces the SDK's
observable lifecycle (verification codes, live handles, pairing events) with
hash-derived key material and performs no real threshold cryptography.

Example:
    >>> sdk = SimulatedVaultSdk(test_mode=True)
    >>> await sdk.initialize()
    >>> vault_id = await sdk.create_fast_vault("Wallet", "a@b.com", "pw")
    >>> vault = await sdk.verify_vault(vault_id, TEST_MODE_CODE)
    >>> await vault.address("Ethereum")
    '0x...'
"""

import asyncio
import base64
import hashlib
import hmac
import json
import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Any

from ..backup import encrypt_backup
from ..types import ProgressStep, Signature, UpstreamError
from .base import SecureVaultCallbacks, SecureVaultResult

logger = logging.getLogger(__name__)

# Accepted by verify_vault for any vault when test mode is on
TEST_MODE_CODE = "000000"

EVM_CHAINS = frozenset({
    "ethereum", "polygon", "avalanche", "arbitrum", "optimism",
    "base", "bsc", "blast", "cronoschain", "zksync",
})

BECH32_PREFIXES = {
    "bitcoin": "bc1q",
    "litecoin": "ltc1q",
    "cosmos": "cosmos1",
    "thorchain": "thor1",
}

_BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def _base58(data: bytes) -> str:
    n = int.from_bytes(data, "big")
    out = ""
    while n:
        n, rem = divmod(n, 58)
        out = _BASE58_ALPHABET[rem] + out
    pad = len(data) - len(data.lstrip(b"\0"))
    return "1" * pad + out


def _derive_public_key(secret: bytes) -> bytes:
    """Compressed-public-key shaped bytes for a local secret."""
    return bytes([0x02]) + hashlib.sha256(b"public:" + secret).digest()


@dataclass
class _VaultRecord:
    name: str
    email: str
    secret: bytes
    public_key: bytes
    code: str
    signers: list[str] = field(default_factory=lambda: ["server", "client"])
    threshold: int = 2
    created_at: int = field(default_factory=lambda: int(time.time()))


class SimulatedVault:
    """Live handle over a simulated vault."""

    def __init__(self, vault_id: str, record: _VaultRecord) -> None:
        self._vault_id = vault_id
        self._record = record

    @property
    def vault_id(self) -> str:
        return self._vault_id

    @property
    def public_key(self) -> str:
        return self._record.public_key.hex()

    async def address(self, chain: str) -> str:
        key = chain.lower()
        digest = hashlib.sha256(
            b"address:" + key.encode() + self._record.public_key
        ).digest()

        if key in EVM_CHAINS:
            return "0x" + digest[12:].hex()
        if key in BECH32_PREFIXES:
            return BECH32_PREFIXES[key] + digest[:20].hex()
        if key == "solana":
            return _base58(digest)
        raise UpstreamError(f"Unsupported chain: {chain}", status_code=400)

    async def sign(self, payload: Any, options: dict[str, Any] | None = None) -> dict[str, Any]:
        message = json.dumps({"payload": payload, "options": options or {}}, sort_keys=True)
        message_hash = hashlib.sha3_256(message.encode()).digest()

        r = hashlib.sha256(b"r:" + message_hash + self._record.secret).digest()
        s = hashlib.sha256(b"s:" + self._record.secret + r + message_hash).digest()
        signature = Signature(r="0x" + r.hex(), s="0x" + s.hex(), recovery_id=r[31] % 2)

        return {
            "r": signature.r,
            "s": signature.s,
            "recoveryId": signature.recovery_id,
            "signature": signature.to_hex(),
            "messageHash": "0x" + message_hash.hex(),
        }

    async def export_as_base64(self, password: str) -> str:
        share = {
            "publicKey": self._record.public_key.hex(),
            "localShare": base64.b64encode(self._record.secret).decode(),
            "signers": self._record.signers,
            "threshold": self._record.threshold,
            "createdAt": self._record.created_at,
        }
        return await asyncio.to_thread(
            encrypt_backup, self._vault_id, self._record.name, share, password
        )


class SimulatedVaultSdk:
    """In-process vault SDK simulation."""

    def __init__(self, *, test_mode: bool = False, device_join_delay: float = 1.0) -> None:
        self._test_mode = test_mode
        self._device_join_delay = device_join_delay
        self._records: dict[str, _VaultRecord] = {}
        self._initialized = False

    @property
    def test_mode(self) -> bool:
        return self._test_mode

    async def initialize(self) -> None:
        self._initialized = True
        logger.info("Simulated vault SDK ready (test_mode=%s)", self._test_mode)

    async def close(self) -> None:
        self._initialized = False

    def verification_code_for(self, vault_id: str) -> str | None:
        """The code that was "emailed" for a fast vault."""
        record = self._records.get(vault_id)
        return record.code if record else None

    async def create_fast_vault(self, name: str, email: str, password: str) -> str:
        secret = secrets.token_bytes(32)
        public_key = _derive_public_key(secret)
        vault_id = public_key.hex()
        code = f"{secrets.randbelow(10**6):06d}"

        self._records[vault_id] = _VaultRecord(
            name=name, email=email, secret=secret, public_key=public_key, code=code,
        )
        logger.info("Verification code for vault %s sent to %s", vault_id, email)
        logger.debug("Verification code for vault %s: %s", vault_id, code)
        return vault_id

    async def verify_vault(self, vault_id: str, code: str) -> SimulatedVault:
        record = self._records.get(vault_id)
        if record is None:
            raise UpstreamError(f"Vault {vault_id} not found", status_code=404)
        if not record.code:
            raise UpstreamError("Secure vaults do not use verification codes", status_code=400)

        accepted = hmac.compare_digest(code, record.code) or (
            self._test_mode and code == TEST_MODE_CODE
        )
        if not accepted:
            raise UpstreamError("Invalid verification code", status_code=400)

        return SimulatedVault(vault_id, record)

    async def create_secure_vault(
        self,
        name: str,
        devices: int,
        threshold: int,
        password: str | None,
        callbacks: SecureVaultCallbacks,
    ) -> SecureVaultResult:
        if devices < 1 or not 1 <= threshold <= devices:
            raise UpstreamError(
                f"Invalid threshold {threshold} for {devices} devices", status_code=400
            )

        session_id = secrets.token_hex(16)
        secret = secrets.token_bytes(32)
        public_key = _derive_public_key(secret)
        vault_id = public_key.hex()

        callbacks.on_progress(ProgressStep("init", "Creating pairing session", 0))

        qr_data = json.dumps({
            "sessionId": session_id,
            "vaultName": name,
            "devices": devices,
            "threshold": threshold,
        })
        qr_payload = (
            "vultisig://vultisig.com?type=NewVault&tssType=Keygen&jsonData="
            + base64.urlsafe_b64encode(qr_data.encode()).decode()
        )
        callbacks.on_qr_code_ready(qr_payload)
        callbacks.on_progress(ProgressStep("waiting", "Waiting for devices to join", 10))

        signers = []
        for joined in range(1, devices + 1):
            if self._device_join_delay:
                await asyncio.sleep(self._device_join_delay)
            device_id = f"device-{joined}"
            signers.append(device_id)
            callbacks.on_device_joined(device_id, joined, devices)

        callbacks.on_progress(ProgressStep("keygen", "Generating key shares", 60))

        record = _VaultRecord(
            name=name,
            email="",
            secret=secret,
            public_key=public_key,
            code="",
            signers=signers,
            threshold=threshold,
        )
        self._records[vault_id] = record

        callbacks.on_progress(ProgressStep("complete", "Vault created", 100))
        return SecureVaultResult(
            vault=SimulatedVault(vault_id, record),
            vault_id=vault_id,
            session_id=session_id,
        )
