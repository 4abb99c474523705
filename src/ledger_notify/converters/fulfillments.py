"""Fulfillment converter."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ledger_notify.engine.models.fulfillment import Fulfillment


def convert_to_external_fulfillment(fulfillment: Fulfillment) -> dict[str, Any]:
    """External form of a condition fulfillment."""
    return {"condition_fulfillment": fulfillment.condition_fulfillment}
