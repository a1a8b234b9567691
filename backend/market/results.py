from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Result:
    """Outcome of a fallible store operation.

    Stores report failures as values; they do not raise for validation,
    authorization or remote errors. `code` lets the HTTP layer pick a status
    without parsing the message.
    """

    success: bool
    error: str | None = None
    code: str | None = None
    data: Any = None

    @classmethod
    def ok(cls, data: Any = None) -> "Result":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, *, code: str = "error") -> "Result":
        return cls(success=False, error=error, code=code)

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            out["error"] = self.error
        return out


# Result codes
VALIDATION = "validation"
NOT_AUTHENTICATED = "not_authenticated"
FORBIDDEN = "forbidden"
NOT_FOUND = "not_found"
REMOTE = "remote"

LOGIN_REQUIRED_TO_ADD = "You must be logged in to add a product"
LOGIN_REQUIRED = "You must be logged in"
