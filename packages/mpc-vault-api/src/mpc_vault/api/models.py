"""Request and response models for the vault API.

Request fields are all optional here: presence is checked in the routes so
that a missing field answers 400 with the API's own error envelope.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class CreateFastVaultRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    userId: str | None = None


class CreateSecureVaultRequest(BaseModel):
    name: str | None = None
    devices: int | None = None
    threshold: int | None = None
    password: str | None = None
    userId: str | None = None


class VerifyVaultRequest(BaseModel):
    verificationCode: str | None = None


class SignTransactionRequest(BaseModel):
    transaction: Any = None
    chain: str | None = None
    options: dict[str, Any] | None = None


class ExportVaultRequest(BaseModel):
    password: str | None = None


def envelope(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """Wrap a successful result as ``{success, data?, message?}``."""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body


def error_body(message: str) -> dict[str, Any]:
    return {"success": False, "error": message}
