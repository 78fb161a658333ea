from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from src.invitations.errors import DomainError, ErrorType

if TYPE_CHECKING:
    from src.invitations.domain.confirmation import Confirmation
    from src.invitations.domain.invitation import Invitation

T = TypeVar("T")


class InvitationStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    INACTIVE = "inactive"


# Statuses that take an invitation out of the active guest list
INACTIVE_STATUSES = frozenset({InvitationStatus.INACTIVE, InvitationStatus.CANCELLED})
CONFIRMED_STATUSES = frozenset({InvitationStatus.CONFIRMED, InvitationStatus.PARTIAL})


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Uniform result returned by every use case."""

    success: bool
    message: str
    data: T | None = None
    error: str | None = None
    error_type: ErrorType | None = None

    @classmethod
    def ok(cls, data: T | None = None, message: str = "") -> "OperationResult[T]":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(
        cls,
        error: str,
        message: str,
        error_type: ErrorType = ErrorType.UNEXPECTED,
    ) -> "OperationResult[T]":
        return cls(success=False, message=message, error=error, error_type=error_type)

    @classmethod
    def from_error(cls, exc: DomainError, message: str) -> "OperationResult[T]":
        return cls.fail(error=exc.message, message=message, error_type=exc.error_type)


@dataclass(frozen=True)
class ConfirmationResultDTO:
    """Invitation and confirmation as they were stored by a confirm/update."""

    invitation: "Invitation"
    confirmation: "Confirmation"


@dataclass(frozen=True)
class BatchItemSuccess:
    index: int
    invitation: "Invitation"


@dataclass(frozen=True)
class BatchItemError:
    index: int
    error: str
    data: Any = None


@dataclass(frozen=True)
class BatchResultDTO:
    total: int
    created: list[BatchItemSuccess] = field(default_factory=list)
    errors: list[BatchItemError] = field(default_factory=list)


@dataclass(frozen=True)
class PaginationParams:
    """1-based pagination with an optional sort field."""

    page: int = 1
    limit: int = 10
    sort_by: str | None = "created_at"
    sort_order: SortOrder = SortOrder.DESC

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PageDTO(Generic[T]):
    items: list[T]
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


@dataclass(frozen=True)
class InvitationFilters:
    """Filters understood by ``InvitationRepository.find_all``.

    ``passes`` is either an exact count ("2") or "4+". ``table`` is
    "assigned" or "unassigned" and ``phone`` is "with_phone" or
    "without_phone"; unknown values are ignored.
    """

    status: InvitationStatus | None = None
    confirmed: bool | None = None
    search: str | None = None
    passes: str | None = None
    table: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class ConfirmationFilters:
    will_attend: bool | None = None
    confirmed_after: datetime | None = None
    confirmed_before: datetime | None = None
    search: str | None = None


@dataclass(frozen=True)
class ExportDTO:
    data: str
    count: int
    format: ExportFormat
    exported_at: datetime
