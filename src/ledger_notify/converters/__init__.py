"""Converters — internal models to their external JSON representation."""

from __future__ import annotations

from ledger_notify.converters.fulfillments import convert_to_external_fulfillment
from ledger_notify.converters.transfers import convert_to_external_transfer

__all__ = ["convert_to_external_fulfillment", "convert_to_external_transfer"]
