"""Vault SDK backend that forwards calls to an SDK sidecar over HTTP."""

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from ..types import ProgressStep, UpstreamError
from .base import SecureVaultCallbacks, SecureVaultResult

logger = logging.getLogger(__name__)


class RemoteVault:
    """Live handle for a vault held by the sidecar."""

    def __init__(self, sdk: "RemoteVaultSdk", vault_id: str) -> None:
        self._sdk = sdk
        self._vault_id = vault_id

    @property
    def vault_id(self) -> str:
        return self._vault_id

    async def address(self, chain: str) -> str:
        data = await self._sdk._request(
            "GET", f"/vaults/{quote(self._vault_id, safe='')}/address/{quote(chain, safe='')}"
        )
        return data["address"]

    async def sign(self, payload: Any, options: dict[str, Any] | None = None) -> Any:
        data = await self._sdk._request(
            "POST",
            f"/vaults/{quote(self._vault_id, safe='')}/sign",
            {"payload": payload, "options": options or {}},
        )
        return data.get("signature", data)

    async def export_as_base64(self, password: str) -> str:
        data = await self._sdk._request(
            "POST",
            f"/vaults/{quote(self._vault_id, safe='')}/export",
            {"password": password},
        )
        return data["backup"]


class RemoteVaultSdk:
    """
    Vault SDK sidecar client.

    The sidecar hosts the real vault SDK and exposes it as JSON over HTTP.
    The secure vault ceremony is streamed back as newline-delimited JSON
    events, which are replayed into the caller's callbacks in order.

    Example:
        >>> sdk = RemoteVaultSdk("http://localhost:4000")
        >>> await sdk.initialize()
        >>> vault_id = await sdk.create_fast_vault("Wallet", "a@b.com", "pw")
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def initialize(self) -> None:
        await self._request("GET", "/health")
        logger.info("Connected to vault SDK at %s", self._base_url)

    async def close(self) -> None:
        await self._client.aclose()

    async def create_fast_vault(self, name: str, email: str, password: str) -> str:
        data = await self._request(
            "POST", "/vaults/fast", {"name": name, "email": email, "password": password}
        )
        return data["vaultId"]

    async def verify_vault(self, vault_id: str, code: str) -> RemoteVault:
        await self._request("POST", f"/vaults/{quote(vault_id, safe='')}/verify", {"code": code})
        return RemoteVault(self, vault_id)

    async def create_secure_vault(
        self,
        name: str,
        devices: int,
        threshold: int,
        password: str | None,
        callbacks: SecureVaultCallbacks,
    ) -> SecureVaultResult:
        body = {"name": name, "devices": devices, "threshold": threshold, "password": password}

        try:
            async with self._client.stream("POST", "/vaults/secure", json=body) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise self._error_from(response)

                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    event = json.loads(line)
                    kind = event.get("event")

                    if kind == "qrCode":
                        callbacks.on_qr_code_ready(event["payload"])
                    elif kind == "deviceJoined":
                        callbacks.on_device_joined(
                            event.get("deviceId", ""), event["totalJoined"], event["required"]
                        )
                    elif kind == "progress":
                        callbacks.on_progress(ProgressStep(
                            step=event.get("step", ""),
                            message=event.get("message", ""),
                            progress=event.get("progress"),
                        ))
                    elif kind == "error":
                        raise UpstreamError(event.get("message") or "Secure vault creation failed")
                    elif kind == "complete":
                        vault_id = event["vaultId"]
                        return SecureVaultResult(
                            vault=RemoteVault(self, vault_id),
                            vault_id=vault_id,
                            session_id=event.get("sessionId", ""),
                        )
                    else:
                        logger.debug("Ignoring unknown ceremony event: %s", kind)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Vault SDK unreachable: {e}", cause=e) from e

        raise UpstreamError("Secure vault ceremony ended before completion")

    async def _request(self, method: str, path: str, body: Any = None) -> dict[str, Any]:
        """Make a sidecar call and return its JSON body."""
        try:
            response = await self._client.request(method, path, json=body)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Vault SDK unreachable: {e}", cause=e) from e

        if response.status_code >= 400:
            raise self._error_from(response)

        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_from(response: httpx.Response) -> UpstreamError:
        try:
            data = response.json()
        except ValueError:
            data = None
        message = data.get("error") if isinstance(data, dict) else None
        message = message or f"Vault SDK request failed: {response.status_code}"
        status = response.status_code if 400 <= response.status_code < 500 else 500
        return UpstreamError(message, status_code=status)
