"""Public URI construction for ledger resources."""

from __future__ import annotations

from urllib.parse import quote

_PATTERNS: dict[str, str] = {
    "account": "/accounts/{id}",
    "transfer": "/transfers/{id}",
    "subscription": "/subscriptions/{id}",
    "fulfillment": "/transfers/{id}/fulfillment",
}


class URIManager:
    """Builds absolute URIs below the ledger's public base URI.

    Usage::

        uri = URIManager("https://ledger.example")
        uri.make("account", "alice")  # https://ledger.example/accounts/alice
    """

    def __init__(self, base_uri: str) -> None:
        self._base = base_uri.rstrip("/")

    @property
    def base_uri(self) -> str:
        """Return the base URI without a trailing slash."""
        return self._base

    def make(self, kind: str, identifier: str) -> str:
        """Return the URI of resource *identifier* of type *kind*.

        Raises:
            ValueError: If *kind* is unknown.
        """
        pattern = _PATTERNS.get(kind)
        if pattern is None:
            msg = f"Unknown resource kind: {kind}"
            raise ValueError(msg)
        return self._base + pattern.format(id=quote(identifier, safe=""))
