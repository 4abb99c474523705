"""ledger-notify — transfer notification dispatch for a financial ledger."""

__version__ = "0.1.0"
