"""Configuration — settings loaded from env vars and YAML."""

from __future__ import annotations

from ledger_notify.config.settings import AppConfig

__all__ = ["AppConfig"]
