"""Read model for the RSVP dashboard.

Confirmations that belong to deactivated invitations are left out of every
answer given here.
"""

import logging
from dataclasses import fields, replace
from datetime import timedelta

from src.config.logging import log_operation
from src.invitations.domain.confirmation import Confirmation
from src.invitations.domain.invitation import utc_now
from src.invitations.domain.stats import (
    DashboardStats,
    build_dashboard_stats,
    compute_confirmation_stats,
)
from src.invitations.dtos import (
    ConfirmationFilters,
    ExportDTO,
    ExportFormat,
    InvitationFilters,
    InvitationStatus,
    OperationResult,
    PageDTO,
    PaginationParams,
)
from src.invitations.errors import ValidationError
from src.invitations.features.get_invitation.read_model import (
    check_pagination,
    parse_export_format,
)
from src.invitations.repository.base import (
    ConfirmationRepository,
    InvitationRepository,
    export_rows,
    paginate,
)
from src.invitations.results import as_operation_result

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 1000
MAX_RECENT_DAYS = 365
SORTABLE_FIELDS = frozenset(f.name for f in fields(Confirmation))


class ConfirmationStatsReadModel:
    def __init__(
        self,
        confirmation_repository: ConfirmationRepository,
        invitation_repository: InvitationRepository,
    ) -> None:
        self._confirmations = confirmation_repository
        self._invitations = invitation_repository

    async def _active_confirmations(
        self, filters: ConfirmationFilters | None = None
    ) -> list[Confirmation]:
        inactive = await self._invitations.find_all(
            InvitationFilters(status=InvitationStatus.INACTIVE), include_inactive=True
        )
        inactive_codes = {invitation.code.lower() for invitation in inactive}
        confirmations = await self._confirmations.find_all(filters)
        return [c for c in confirmations if c.code.lower() not in inactive_codes]

    @as_operation_result("Could not compute the dashboard statistics")
    async def execute(self) -> OperationResult[DashboardStats]:
        with log_operation(logger, "confirmation_stats"):
            invitation_stats = await self._invitations.get_stats()
            confirmation_stats = compute_confirmation_stats(await self._active_confirmations())
            dashboard = build_dashboard_stats(invitation_stats, confirmation_stats)
        return OperationResult.ok(dashboard, "Statistics computed")

    @as_operation_result("Could not load positive confirmations")
    async def positive(self) -> OperationResult[list[Confirmation]]:
        confirmations = await self._active_confirmations(ConfirmationFilters(will_attend=True))
        return OperationResult.ok(confirmations, f"{len(confirmations)} positive confirmations")

    @as_operation_result("Could not load negative confirmations")
    async def negative(self) -> OperationResult[list[Confirmation]]:
        confirmations = await self._active_confirmations(ConfirmationFilters(will_attend=False))
        return OperationResult.ok(confirmations, f"{len(confirmations)} negative confirmations")

    @as_operation_result("Could not load dietary restrictions")
    async def with_dietary_restrictions(self) -> OperationResult[list[Confirmation]]:
        confirmations = [c for c in await self._active_confirmations() if c.has_dietary_restrictions]
        return OperationResult.ok(
            confirmations, f"{len(confirmations)} confirmations with dietary restrictions"
        )

    @as_operation_result("Could not load messages")
    async def with_messages(self) -> OperationResult[list[Confirmation]]:
        confirmations = [c for c in await self._active_confirmations() if c.has_message]
        return OperationResult.ok(confirmations, f"{len(confirmations)} confirmations with messages")

    @as_operation_result("Could not load recent confirmations")
    async def recent(self, days: int = 7) -> OperationResult[list[Confirmation]]:
        if isinstance(days, bool) or not isinstance(days, int) or not 1 <= days <= MAX_RECENT_DAYS:
            raise ValidationError(f"days must be between 1 and {MAX_RECENT_DAYS}")
        since = utc_now() - timedelta(days=days)
        confirmations = [c for c in await self._active_confirmations() if c.confirmed_at >= since]
        confirmations.sort(key=lambda c: c.confirmed_at, reverse=True)
        return OperationResult.ok(
            confirmations, f"{len(confirmations)} confirmations in the last {days} days"
        )

    @as_operation_result("Could not count confirmed guests")
    async def total_guests(self) -> OperationResult[int]:
        confirmations = await self._active_confirmations(ConfirmationFilters(will_attend=True))
        total = sum(c.attending_guests for c in confirmations)
        return OperationResult.ok(total, f"{total} confirmed guests")

    @as_operation_result("Could not list confirmations")
    async def list_confirmations(
        self,
        filters: ConfirmationFilters | None = None,
        pagination: PaginationParams | None = None,
    ) -> OperationResult[PageDTO[Confirmation]]:
        pagination = pagination or PaginationParams()
        if pagination.sort_by == "created_at":
            # confirmations are timestamped by confirmed_at
            pagination = replace(pagination, sort_by="confirmed_at")
        check_pagination(pagination, MAX_PAGE_SIZE, SORTABLE_FIELDS)
        page = paginate(await self._active_confirmations(filters), pagination)
        return OperationResult.ok(page, f"{page.total} confirmations found")

    @as_operation_result("Could not export confirmations")
    async def export(
        self, export_format: ExportFormat | str = ExportFormat.JSON
    ) -> OperationResult[ExportDTO]:
        export_format = parse_export_format(export_format)
        with log_operation(logger, "export_confirmations", format=export_format.value) as details:
            confirmations = await self._active_confirmations()
            export = export_rows([c.to_dict() for c in confirmations], export_format)
            details["count"] = export.count
        return OperationResult.ok(export, f"{export.count} confirmations exported")
