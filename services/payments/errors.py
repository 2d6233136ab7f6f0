from __future__ import annotations

from typing import Optional


class PaymentError(RuntimeError):
    """A provider call failed; carries the HTTP status to return."""

    def __init__(self, message: str, status_code: int = 500, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.hint = hint

    def to_dict(self) -> dict:
        out = {"error": self.message}
        if self.hint:
            out["hint"] = self.hint
        return out
