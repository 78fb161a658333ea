"""Domain errors for invitations and confirmations.

Entities raise these synchronously when an invariant would be broken. The use
cases catch them and turn them into failed ``OperationResult`` values.
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import pydantic


class ErrorType(str, Enum):
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    NOT_FOUND = "not_found"
    UNEXPECTED = "unexpected"


class DomainError(Exception):
    """Base class for every error the domain core raises on purpose."""

    error_type: ErrorType = ErrorType.UNEXPECTED

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(DomainError):
    """Raised when input has the wrong shape or type."""

    error_type = ErrorType.VALIDATION

    @classmethod
    def from_pydantic(cls, exc: "pydantic.ValidationError") -> "ValidationError":
        parts = []
        for error in exc.errors():
            location = ".".join(str(item) for item in error["loc"]) or "input"
            parts.append(f"{location}: {error['msg']}")
        return cls("; ".join(parts) or "Invalid input")


class BusinessRuleViolation(DomainError):
    """Raised when valid input is not allowed by the current state."""

    error_type = ErrorType.BUSINESS_RULE


class NotFoundError(DomainError):
    """Raised when no record matches an invitation code."""

    error_type = ErrorType.NOT_FOUND

    def __init__(self, code: str, entity: str = "Invitation") -> None:
        self.code = code
        super().__init__(f"{entity} with code '{code}' not found")
