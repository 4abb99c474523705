"""Datastore — async SQLAlchemy engine and session management."""

from __future__ import annotations

from ledger_notify.datastore.client import Datastore

__all__ = ["Datastore"]
