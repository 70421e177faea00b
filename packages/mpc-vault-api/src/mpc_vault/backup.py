"""Password-protected vault backup blobs."""

import base64
import hashlib
import json
import secrets
import time
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from .types import ErrorCode, VaultApiError

BACKUP_VERSION = 1
KDF_ITERATIONS = 100000


def _derive_key(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode(), salt, KDF_ITERATIONS, dklen=32)


def _encrypt(data: str, password: str, salt: str) -> str:
    """Encrypt data with password."""
    nonce = secrets.token_bytes(12)
    cipher = ChaCha20Poly1305(_derive_key(password, bytes.fromhex(salt)))
    ciphertext = cipher.encrypt(nonce, data.encode(), None)
    return base64.b64encode(nonce + ciphertext).decode()


def _decrypt(encrypted: str, password: str, salt: str) -> str:
    """Decrypt data with password."""
    data = base64.b64decode(encrypted)
    nonce, ciphertext = data[:12], data[12:]
    cipher = ChaCha20Poly1305(_derive_key(password, bytes.fromhex(salt)))
    return cipher.decrypt(nonce, ciphertext, None).decode()


def encrypt_backup(vault_id: str, name: str, payload: dict[str, Any], password: str) -> str:
    """Create a base64 backup blob of ``payload`` sealed under ``password``."""
    salt = secrets.token_hex(32)
    envelope = {
        "version": BACKUP_VERSION,
        "vaultId": vault_id,
        "name": name,
        "createdAt": int(time.time()),
        "salt": salt,
        "encrypted": _encrypt(json.dumps(payload), password, salt),
    }
    return base64.b64encode(json.dumps(envelope).encode()).decode()


def read_backup_header(backup: str) -> dict[str, Any]:
    """Return the unencrypted fields of a backup blob."""
    envelope = json.loads(base64.b64decode(backup))
    return {k: v for k, v in envelope.items() if k not in ("salt", "encrypted")}


def decrypt_backup(backup: str, password: str) -> dict[str, Any]:
    """Restore the payload of a backup blob."""
    envelope = json.loads(base64.b64decode(backup))
    if envelope.get("version") != BACKUP_VERSION:
        raise VaultApiError(
            ErrorCode.VALIDATION,
            f"Unsupported backup version: {envelope.get('version')}",
            status_code=400,
        )
    try:
        return json.loads(_decrypt(envelope["encrypted"], password, envelope["salt"]))
    except InvalidTag as e:
        raise VaultApiError(
            ErrorCode.VALIDATION, "Invalid backup password", status_code=400, cause=e
        ) from e
