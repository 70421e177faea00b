"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from ..service import VaultService


def get_vault_service(request: Request) -> VaultService:
    """The process-wide VaultService, attached to the app by create_app."""
    return request.app.state.vault_service
