"""Base exception for ledger-notify."""

from __future__ import annotations


class LedgerNotifyError(Exception):
    """Error carrying an HTTP status and a stable kebab-case ``code``.

    The API layer renders any of these as ``{"code": ..., "message": ...}``.
    """

    def __init__(
        self, message: str, *, status_code: int = 500, code: str = "internal-error"
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, status_code={self.status_code})"
