"""
Server configuration for the MPC Vault API.

All configuration is loaded from environment variables (a local ``.env``
file is read first, when present).

Usage:
    from mpc_vault.config import get_config
    cfg = get_config()
    print(cfg.port)            # 3000
    print(cfg.storage_path)    # ./data/vaults or $VAULTS_STORAGE_PATH
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class ServerConfig:
    """Top-level server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000
    storage_path: Path = field(default_factory=lambda: Path("./data/vaults"))

    # Accept the fixed bypass code and check metadata locally before verifying
    test_mode: bool = False

    # Vault SDK sidecar; empty = in-process simulated SDK
    sdk_url: str = ""
    sdk_timeout: float | None = None

    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    # Simulated SDK only: seconds between device joins in a pairing ceremony
    device_join_delay: float = 1.0

    @property
    def uses_remote_sdk(self) -> bool:
        return bool(self.sdk_url)


_TRUTHY = ("1", "true", "yes", "y", "on")

# Singleton
_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Get or create the singleton config from environment variables."""
    global _config
    if _config is not None:
        return _config
    _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the singleton config (for testing)."""
    global _config
    _config = None


def load_config() -> ServerConfig:
    """Load configuration from environment variables."""
    load_dotenv()

    timeout = os.environ.get("VAULT_SDK_TIMEOUT", "")
    origins = os.environ.get("CORS_ORIGINS", "*")

    return ServerConfig(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "3000")),
        storage_path=Path(os.environ.get("VAULTS_STORAGE_PATH", "./data/vaults")),
        test_mode=os.environ.get("TEST_MODE", "").strip().lower() in _TRUTHY,
        sdk_url=os.environ.get("VAULT_SDK_URL", "").rstrip("/"),
        sdk_timeout=float(timeout) if timeout else None,
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        device_join_delay=float(os.environ.get("DEVICE_JOIN_DELAY", "1.0")),
    )
