"""Application entry point for the ledger-notify server."""

from __future__ import annotations

import argparse
import os

import uvicorn

from ledger_notify.config.settings import AppConfig


def main() -> None:
    """Start the ledger-notify server."""
    parser = argparse.ArgumentParser(prog="ledger-notify")
    parser.add_argument("--config", default=os.getenv("LEDGERNOTIFY_CONFIG_PATH", ""))
    args = parser.parse_args()

    config = AppConfig.from_yaml(args.config) if args.config else AppConfig()
    if args.config:
        os.environ["LEDGERNOTIFY_CONFIG_PATH"] = args.config

    uvicorn.run(
        "ledger_notify.api.app:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        log_level="debug" if config.debug else "info",
    )


if __name__ == "__main__":
    main()
