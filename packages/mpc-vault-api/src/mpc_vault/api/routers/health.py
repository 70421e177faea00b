"""Health and index routes."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from ...version import __version__

SERVICE_NAME = "MPC Vault API"

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "service": SERVICE_NAME,
    }


@router.get("/")
async def index():
    """API index."""
    return {
        "name": SERVICE_NAME,
        "version": __version__,
        "description": "REST facade over an MPC vault SDK",
        "endpoints": {
            "health": "GET /health",
            "vaults": {
                "createFast": "POST /api/vaults/fast",
                "createSecure": "POST /api/vaults/secure",
                "verify": "POST /api/vaults/:vaultId/verify",
                "list": "GET /api/vaults",
                "get": "GET /api/vaults/:vaultId",
                "getAddress": "GET /api/vaults/:vaultId/address/:chain",
                "sign": "POST /api/vaults/:vaultId/sign",
                "export": "POST /api/vaults/:vaultId/export",
                "getSession": "GET /api/vaults/:vaultId/session",
            },
        },
        "docs": "/docs",
    }
