"""
MPC Vault API FastAPI application.

Start:
  mpc-vault-server
  # or
  uvicorn mpc_vault.api.app:create_app --factory --port 3000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import ServerConfig, get_config
from ..sdk import RemoteVaultSdk, SimulatedVaultSdk, VaultSdk
from ..service import VaultService
from ..storage import FileMetadataStore
from ..version import __version__
from .errors import install_error_handlers
from .middleware import RequestIdMiddleware
from .routers.health import router as health_router
from .routers.vaults import router as vaults_router

logger = logging.getLogger(__name__)


def build_sdk(config: ServerConfig) -> VaultSdk:
    """Pick the vault SDK backend for a configuration."""
    if config.uses_remote_sdk:
        return RemoteVaultSdk(config.sdk_url, timeout=config.sdk_timeout)
    return SimulatedVaultSdk(
        test_mode=config.test_mode,
        device_join_delay=config.device_join_delay,
    )


def build_service(config: ServerConfig) -> VaultService:
    """Construct the process-wide VaultService."""
    return VaultService(
        build_sdk(config),
        FileMetadataStore(config.storage_path),
        verify_locally=config.test_mode,
    )


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    service: VaultService = app.state.vault_service
    # Startup errors propagate: the server refuses to start.
    await service.initialize()
    try:
        yield
    finally:
        await service.close()


def create_app(
    config: ServerConfig | None = None,
    service: VaultService | None = None,
) -> FastAPI:
    """FastAPI factory. The service is built from config unless injected."""
    cfg = config or get_config()

    app = FastAPI(
        title="MPC Vault API",
        description="REST facade over an MPC vault SDK.",
        version=__version__,
        lifespan=_lifespan,
    )
    app.state.config = cfg
    app.state.vault_service = service or build_service(cfg)

    install_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(vaults_router)

    if cfg.test_mode:
        logger.warning("TEST_MODE is on: verification code bypass enabled")

    return app
