"""
Async client for the MPC Vault API.

Example:
    >>> async with VaultApiClient("http://localhost:3000/api") as client:
    ...     vault_id = await client.create_fast_vault("My Wallet", "user@example.com", "pw")
    ...     await client.verify_vault(vault_id, "000000")  # TEST_MODE code
    ...     addresses = await client.get_addresses(vault_id, ["Bitcoin", "Ethereum"])
"""

import asyncio
import re
from typing import Any
from urllib.parse import quote

import httpx

from .types import ErrorCode, VaultApiError

EVM_ADDRESS_CHAINS = ("ethereum", "polygon", "avalanche", "arbitrum")

_BITCOIN_RE = re.compile(r"^(1|3|bc1)[a-zA-HJ-NP-Z0-9]{25,62}$")
_EVM_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_SOLANA_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def is_valid_address(chain: str, address: str) -> bool:
    """Check that an address has the expected format for its chain."""
    key = chain.lower()
    if key == "bitcoin":
        return bool(_BITCOIN_RE.match(address))
    if key in EVM_ADDRESS_CHAINS:
        return bool(_EVM_RE.match(address))
    if key == "solana":
        return bool(_SOLANA_RE.match(address))
    return len(address) > 0


class VaultApiClient:
    """
    MPC Vault API client.

    Unwraps the ``{success, data}`` envelope and raises VaultApiError with the
    server's error message and HTTP status on failure.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000/api",
        *,
        timeout: float | None = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> "VaultApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

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
        """Create a Fast Vault; a verification code is emailed."""
        data = await self._request("POST", "/vaults/fast", {
            "name": name,
            "email": email,
            "password": password,
            "userId": user_id,
        })
        return data["vaultId"]

    async def verify_vault(self, vault_id: str, verification_code: str) -> dict[str, Any]:
        """Verify a vault with the emailed code ("000000" in TEST_MODE)."""
        return await self._request(
            "POST",
            f"/vaults/{quote(vault_id, safe='')}/verify",
            {"verificationCode": verification_code},
        )

    # ============================================================================
    # Addresses & Signing
    # ============================================================================

    async def get_address(self, vault_id: str, chain: str) -> str:
        data = await self._request(
            "GET", f"/vaults/{quote(vault_id, safe='')}/address/{quote(chain, safe='')}"
        )
        return data["address"]

    async def get_addresses(self, vault_id: str, chains: list[str]) -> dict[str, str]:
        """Fetch addresses for several chains concurrently."""
        addresses = await asyncio.gather(*(self.get_address(vault_id, c) for c in chains))
        return dict(zip(chains, addresses))

    async def sign_transaction(
        self,
        vault_id: str,
        chain: str,
        transaction: Any,
        options: dict[str, Any] | None = None,
    ) -> Any:
        data = await self._request("POST", f"/vaults/{quote(vault_id, safe='')}/sign", {
            "chain": chain,
            "transaction": transaction,
            "options": options,
        })
        return data["signature"]

    # ============================================================================
    # Metadata & Backup
    # ============================================================================

    async def list_vaults(self, user_id: str | None = None) -> list[dict[str, Any]]:
        params = {"userId": user_id} if user_id else None
        data = await self._request("GET", "/vaults", params=params)
        return data.get("vaults", [])

    async def get_vault(self, vault_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/vaults/{quote(vault_id, safe='')}")

    async def export_vault(self, vault_id: str, password: str) -> str:
        """Export the vault as an encrypted base64 backup."""
        data = await self._request(
            "POST", f"/vaults/{quote(vault_id, safe='')}/export", {"password": password}
        )
        return data["backup"]

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
    ) -> dict[str, Any]:
        return await self._request("POST", "/vaults/secure", {
            "name": name,
            "devices": devices,
            "threshold": threshold,
            "password": password,
            "userId": user_id,
        })

    async def get_secure_vault_session(self, vault_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/vaults/{quote(vault_id, safe='')}/session")

    # ============================================================================
    # Utilities
    # ============================================================================

    async def health_check(self) -> dict[str, Any]:
        root = self._base_url.removesuffix("/api")
        response = await self._client.get(f"{root}/health")
        return response.json()

    async def _request(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        response = await self._client.request(
            method, f"{self._base_url}{path}", json=body, params=params
        )
        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            message = (
                data.get("error") or data.get("message") if isinstance(data, dict) else None
            ) or f"Request failed: {response.status_code}"
            raise VaultApiError(ErrorCode.UPSTREAM, message, status_code=response.status_code)

        # Handle both wrapped and unwrapped responses
        if isinstance(data, dict) and "data" in data:
            return data["data"]
        return data
