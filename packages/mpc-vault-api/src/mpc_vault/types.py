"""Core type definitions for the MPC Vault API."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Error codes for vault operations."""

    VALIDATION = 1
    NOT_FOUND = 2
    VAULT_NOT_LOADED = 3
    EXPORT_NOT_SUPPORTED = 4
    UPSTREAM = 5
    STORAGE = 6


class VaultApiError(Exception):
    """Base exception for vault operations.

    Carries the HTTP status the API layer should answer with, so errors are
    mapped once, centrally, instead of in every handler.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = 500,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.cause = cause


class ValidationError(VaultApiError):
    """Missing or invalid request fields."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.VALIDATION, message, status_code=400)


class NotFoundError(VaultApiError):
    """Unknown vault or session id."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.NOT_FOUND, message, status_code=404)


class VaultStateError(VaultApiError):
    """Vault is known but cannot serve the request in its current state."""

    @classmethod
    def not_loaded(cls, message: str = "Vault not loaded") -> "VaultStateError":
        return cls(ErrorCode.VAULT_NOT_LOADED, message, status_code=400)

    @classmethod
    def export_not_supported(cls) -> "VaultStateError":
        return cls(
            ErrorCode.EXPORT_NOT_SUPPORTED,
            "Vault does not support export",
            status_code=500,
        )


class UpstreamError(VaultApiError):
    """The vault SDK rejected a call."""

    def __init__(self, message: str, status_code: int = 500, cause: Exception | None = None):
        super().__init__(ErrorCode.UPSTREAM, message, status_code=status_code, cause=cause)


class SessionStatus(str, Enum):
    """Secure vault pairing status."""

    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass
class VaultMetadata:
    """Durable per-vault record."""

    vault_id: str
    name: str
    email: str
    created_at: str  # ISO-8601
    verified: bool = False
    user_id: str | None = None
    chains: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the wire (camelCase) field names."""
        data: dict[str, Any] = {
            "vaultId": self.vault_id,
            "name": self.name,
            "email": self.email,
            "createdAt": self.created_at,
            "verified": self.verified,
            "chains": list(self.chains),
        }
        if self.user_id is not None:
            data["userId"] = self.user_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VaultMetadata":
        return cls(
            vault_id=data["vaultId"],
            name=data.get("name", ""),
            email=data.get("email", ""),
            created_at=data.get("createdAt", ""),
            verified=bool(data.get("verified", False)),
            user_id=data.get("userId"),
            chains=list(data.get("chains") or []),
        )


@dataclass
class SecureVaultSession:
    """Pairing ceremony state for an n-of-m vault."""

    vault_id: str
    session_id: str
    qr_code: str
    devices_joined: int
    devices_required: int
    status: SessionStatus = SessionStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "vaultId": self.vault_id,
            "sessionId": self.session_id,
            "qrCode": self.qr_code,
            "devicesJoined": self.devices_joined,
            "devicesRequired": self.devices_required,
            "status": self.status.value,
        }


@dataclass
class ProgressStep:
    """Progress event emitted during secure vault creation."""

    step: str
    message: str
    progress: int | None = None  # percent, when known


@dataclass
class Signature:
    """ECDSA signature components."""

    r: str  # R component (hex string with 0x prefix)
    s: str  # S component (hex string with 0x prefix)
    recovery_id: int  # Recovery ID (0 or 1)

    def to_bytes(self) -> bytes:
        """Convert to bytes (r || s || v)."""
        r_bytes = bytes.fromhex(self.r.removeprefix("0x"))
        s_bytes = bytes.fromhex(self.s.removeprefix("0x"))
        return r_bytes + s_bytes + bytes([self.recovery_id + 27])

    def to_hex(self) -> str:
        """Convert to hex string."""
        return "0x" + self.to_bytes().hex()
