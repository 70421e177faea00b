"""HTTP routing layer for the MPC Vault API."""

from .app import build_sdk, build_service, create_app

__all__ = ["build_sdk", "build_service", "create_app"]
