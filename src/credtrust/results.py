"""credtrust.results — Uniform error taxonomy and operation results.

Every mutating operation returns a Result instead of raising, so a rejected
call is an ordinary value the caller can inspect, log, or resubmit.

Usage:
    result = registry.register_institution(admin, 1, "Harvard University", "USA", "https://harvard.edu")
    if result.ok:
        ...
    else:
        print(result.error, result.code)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class TrustError(str, Enum):
    """Reasons an operation can be rejected."""
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    ALREADY_REGISTERED = "already_registered"
    ALREADY_REVOKED = "already_revoked"
    ALREADY_PROCESSED = "already_processed"
    INVALID_INSTITUTION = "invalid_institution"


class TrustOperationError(Exception):
    """Raised by Result.unwrap() on a failed result."""

    def __init__(self, result: "Result"):
        self.result = result
        super().__init__(f"{result.error.value} (code {result.code})")

    @property
    def error(self) -> TrustError:
        return self.result.error


@dataclass(frozen=True)
class Result:
    """Outcome of a registry operation: either a value or an error."""
    value: Any = None
    error: Optional[TrustError] = None
    code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = True) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, error: TrustError, codes: Optional[dict] = None) -> "Result":
        code = codes.get(error) if codes else None
        return cls(error=error, code=code)

    def unwrap(self) -> Any:
        """Return the value, or raise TrustOperationError."""
        if self.error is not None:
            raise TrustOperationError(self)
        return self.value

    def to_dict(self) -> dict:
        if self.ok:
            return {"value": self.value}
        return {"error": self.error.value, "code": self.code}

    def __bool__(self):
        return self.ok

    def __repr__(self):
        if self.ok:
            return f"Result(ok, {self.value!r})"
        return f"Result({self.error.name}, code={self.code})"
