"""
Uvicorn launcher for the MPC Vault API.

Usage:
  mpc-vault-server [--host 0.0.0.0] [--port 3000] [--log-level info]
  python -m mpc_vault

Environment overrides (if flags not provided): see mpc_vault.config.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys

import uvicorn

from .api import build_service, create_app
from .config import get_config

logger = logging.getLogger("mpc_vault")


def main(argv: list[str] | None = None) -> None:
    cfg = get_config()

    parser = argparse.ArgumentParser(description="Run the MPC Vault API server")
    parser.add_argument("--host", default=cfg.host, help="Bind address (default: %(default)s)")
    parser.add_argument("--port", type=int, default=cfg.port, help="Port (default: %(default)s)")
    parser.add_argument("--log-level", default=cfg.log_level, help="Log level (default: %(default)s)")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = dataclasses.replace(cfg, host=args.host, port=args.port, log_level=args.log_level.upper())

    service = build_service(cfg)
    try:
        service.store.initialize()
    except OSError as e:
        logger.error("Failed to start server: %s", e)
        sys.exit(1)

    app = create_app(cfg, service=service)
    logger.info(
        "Server running on: http://%s:%d (sdk=%s)",
        cfg.host, cfg.port, cfg.sdk_url or "simulated",
    )
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
