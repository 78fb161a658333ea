"""Storage contracts for invitations and confirmations.

Adapters implement the handful of abstract primitives; lookups, pagination,
stats and exports are built on top of them here so every adapter answers
them the same way.
"""

import csv
import io
import json
import math
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar, runtime_checkable

from src.invitations.domain.confirmation import Confirmation
from src.invitations.domain.invitation import GUEST_NAMES_SEPARATOR, Invitation
from src.invitations.domain.stats import (
    ConfirmationStats,
    InvitationStats,
    compute_confirmation_stats,
    compute_invitation_stats,
)
from src.invitations.dtos import (
    ConfirmationFilters,
    ExportDTO,
    ExportFormat,
    InvitationFilters,
    PageDTO,
    PaginationParams,
    SortOrder,
)
from src.invitations.errors import NotFoundError

T = TypeVar("T", Invitation, Confirmation)


def matches_invitation_filters(invitation: Invitation, filters: InvitationFilters | None) -> bool:
    if filters is None:
        return True
    if filters.status and invitation.status != filters.status:
        return False
    if filters.confirmed is not None and invitation.is_confirmed != filters.confirmed:
        return False
    if filters.passes:
        if filters.passes == "4+":
            if invitation.number_of_passes < 4:
                return False
        elif filters.passes.isdigit() and invitation.number_of_passes != int(filters.passes):
            return False
    if filters.table == "assigned" and not invitation.table_number:
        return False
    if filters.table == "unassigned" and invitation.table_number:
        return False
    has_phone = bool(invitation.phone.strip())
    if filters.phone == "with_phone" and not has_phone:
        return False
    if filters.phone == "without_phone" and has_phone:
        return False
    if filters.search:
        needle = filters.search.lower()
        if not any(needle in name.lower() for name in invitation.guest_names):
            return False
    return True


def matches_confirmation_filters(
    confirmation: Confirmation, filters: ConfirmationFilters | None
) -> bool:
    if filters is None:
        return True
    if filters.will_attend is not None and confirmation.will_attend != filters.will_attend:
        return False
    if filters.confirmed_after and confirmation.confirmed_at <= filters.confirmed_after:
        return False
    if filters.confirmed_before and confirmation.confirmed_at >= filters.confirmed_before:
        return False
    if filters.search:
        needle = filters.search.lower()
        haystack = [confirmation.code, confirmation.message, *confirmation.attending_names]
        if not any(needle in value.lower() for value in haystack):
            return False
    return True


def paginate(items: Sequence[T], pagination: PaginationParams | None) -> PageDTO[T]:
    pagination = pagination or PaginationParams()
    items = list(items)
    if pagination.sort_by:
        # None sorts last in ascending order
        items.sort(
            key=lambda item: _sort_key(getattr(item, pagination.sort_by, None)),
            reverse=pagination.sort_order == SortOrder.DESC,
        )
    total = len(items)
    total_pages = math.ceil(total / pagination.limit)
    start = pagination.offset
    return PageDTO(
        items=items[start : start + pagination.limit],
        page=pagination.page,
        limit=pagination.limit,
        total=total,
        total_pages=total_pages,
        has_next=pagination.page < total_pages,
        has_prev=pagination.page > 1,
    )


def _sort_key(value: Any) -> tuple:
    if value is None:
        return (1, "")
    if isinstance(value, (list, tuple)):
        value = GUEST_NAMES_SEPARATOR.join(value).lower()
    elif isinstance(value, str):
        value = value.lower()
    return (0, value)


def export_rows(
    rows: list[dict[str, Any]],
    export_format: ExportFormat,
    exported_at: datetime | None = None,
) -> ExportDTO:
    exported_at = exported_at or datetime.now(UTC)
    export_format = ExportFormat(export_format)
    if export_format == ExportFormat.JSON:
        data = json.dumps(rows, ensure_ascii=False, indent=2)
    else:
        buffer = io.StringIO()
        if rows:
            writer = csv.DictWriter(buffer, fieldnames=list(rows[0]))
            writer.writeheader()
            for row in rows:
                writer.writerow(
                    {
                        key: GUEST_NAMES_SEPARATOR.join(value) if isinstance(value, list) else value
                        for key, value in row.items()
                    }
                )
        data = buffer.getvalue()
    return ExportDTO(data=data, count=len(rows), format=export_format, exported_at=exported_at)


def _filter(items: Iterable[T], predicate: Callable[[T], bool]) -> list[T]:
    return [item for item in items if predicate(item)]


@runtime_checkable
class SupportsBatchSave(Protocol):
    async def save_batch(self, invitations: list[Invitation]) -> list[Invitation]: ...


class InvitationRepository(ABC):
    @abstractmethod
    async def save(self, invitation: Invitation) -> Invitation:
        """Store a new invitation. Raises BusinessRuleViolation on a taken code."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_code(self, code: str) -> Invitation | None:
        """Case-insensitive lookup, inactive invitations included."""
        raise NotImplementedError

    @abstractmethod
    async def find_all(
        self,
        filters: InvitationFilters | None = None,
        include_inactive: bool = False,
    ) -> list[Invitation]:
        raise NotImplementedError

    @abstractmethod
    async def update(self, code: str, invitation: Invitation) -> Invitation:
        """Replace the stored invitation. Raises NotFoundError."""
        raise NotImplementedError

    async def delete(self, code: str, deleted_by: str = "admin", reason: str = "") -> Invitation:
        """Soft delete: the record is kept with status inactive."""
        invitation = await self._get(code)
        return await self.update(code, invitation.deactivate(deleted_by, reason))

    async def restore(self, code: str) -> Invitation:
        invitation = await self._get(code)
        return await self.update(code, invitation.activate())

    async def find_by_guest_name(
        self, guest_name: str, include_inactive: bool = False
    ) -> list[Invitation]:
        return await self.find_all(InvitationFilters(search=guest_name), include_inactive)

    async def find_by_phone(self, phone: str, include_inactive: bool = False) -> list[Invitation]:
        invitations = await self.find_all(include_inactive=include_inactive)
        return _filter(invitations, lambda invitation: invitation.phone == phone)

    async def find_by_table(
        self, table_number: int, include_inactive: bool = False
    ) -> list[Invitation]:
        invitations = await self.find_all(include_inactive=include_inactive)
        return _filter(invitations, lambda invitation: invitation.table_number == table_number)

    async def find_paginated(
        self,
        filters: InvitationFilters | None = None,
        pagination: PaginationParams | None = None,
        include_inactive: bool = False,
    ) -> PageDTO[Invitation]:
        return paginate(await self.find_all(filters, include_inactive), pagination)

    async def get_stats(self) -> InvitationStats:
        return compute_invitation_stats(await self.find_all(include_inactive=True))

    async def export_all(self, export_format: ExportFormat = ExportFormat.JSON) -> ExportDTO:
        invitations = await self.find_all(include_inactive=True)
        return export_rows([invitation.to_dict() for invitation in invitations], export_format)

    async def exists(self, code: str) -> bool:
        return await self.find_by_code(code) is not None

    async def count(
        self, filters: InvitationFilters | None = None, include_inactive: bool = False
    ) -> int:
        return len(await self.find_all(filters, include_inactive))

    async def _get(self, code: str) -> Invitation:
        invitation = await self.find_by_code(code)
        if invitation is None:
            raise NotFoundError(code)
        return invitation


class ConfirmationRepository(ABC):
    @abstractmethod
    async def save(self, confirmation: Confirmation) -> Confirmation:
        """Store a new confirmation. Raises BusinessRuleViolation when one exists."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_code(self, code: str) -> Confirmation | None:
        raise NotImplementedError

    @abstractmethod
    async def find_all(self, filters: ConfirmationFilters | None = None) -> list[Confirmation]:
        raise NotImplementedError

    @abstractmethod
    async def update(self, code: str, confirmation: Confirmation) -> Confirmation:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, code: str) -> bool:
        """Hard delete. Returns False when nothing was stored for the code."""
        raise NotImplementedError

    async def exists(self, code: str) -> bool:
        return await self.find_by_code(code) is not None

    async def count(self, filters: ConfirmationFilters | None = None) -> int:
        return len(await self.find_all(filters))

    async def find_positive(self) -> list[Confirmation]:
        return await self.find_all(ConfirmationFilters(will_attend=True))

    async def find_negative(self) -> list[Confirmation]:
        return await self.find_all(ConfirmationFilters(will_attend=False))

    async def find_with_dietary_restrictions(self) -> list[Confirmation]:
        return _filter(await self.find_all(), lambda c: c.has_dietary_restrictions)

    async def find_with_messages(self) -> list[Confirmation]:
        return _filter(await self.find_all(), lambda c: c.has_message)

    async def find_paginated(
        self,
        filters: ConfirmationFilters | None = None,
        pagination: PaginationParams | None = None,
    ) -> PageDTO[Confirmation]:
        return paginate(await self.find_all(filters), pagination)

    async def get_stats(self) -> ConfirmationStats:
        return compute_confirmation_stats(await self.find_all())

    async def export_all(self, export_format: ExportFormat = ExportFormat.JSON) -> ExportDTO:
        confirmations = await self.find_all()
        return export_rows([c.to_dict() for c in confirmations], export_format)
