"""Read model for invitation lookups, listings and exports."""

import logging
from dataclasses import fields

from src.config.logging import log_operation
from src.invitations.domain.invitation import Invitation
from src.invitations.domain.stats import InvitationStats
from src.invitations.dtos import (
    ExportDTO,
    ExportFormat,
    InvitationFilters,
    InvitationStatus,
    OperationResult,
    PageDTO,
    PaginationParams,
)
from src.invitations.errors import BusinessRuleViolation, NotFoundError, ValidationError
from src.invitations.repository.base import InvitationRepository
from src.invitations.results import as_operation_result

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
MIN_SEARCH_LENGTH = 2
SORTABLE_FIELDS = frozenset(f.name for f in fields(Invitation))


def check_pagination(pagination: PaginationParams, max_limit: int, sortable: frozenset[str]) -> None:
    if pagination.page < 1:
        raise ValidationError("page must be 1 or greater")
    if not 1 <= pagination.limit <= max_limit:
        raise ValidationError(f"limit must be between 1 and {max_limit}")
    if pagination.sort_by and pagination.sort_by not in sortable:
        raise ValidationError(f"Cannot sort by '{pagination.sort_by}'")


def parse_export_format(export_format: ExportFormat | str) -> ExportFormat:
    try:
        return ExportFormat(export_format)
    except ValueError:
        raise ValidationError(f"Unsupported export format '{export_format}'")


class InvitationReadModel:
    def __init__(self, invitation_repository: InvitationRepository) -> None:
        self._invitations = invitation_repository

    @as_operation_result("Could not load the invitation")
    async def get(self, code: str) -> OperationResult[Invitation]:
        if not code or not isinstance(code, str):
            raise ValidationError("An invitation code is required")
        invitation = await self._invitations.find_by_code(code.strip())
        if invitation is None:
            raise NotFoundError(code)
        if invitation.status == InvitationStatus.INACTIVE:
            raise BusinessRuleViolation("This invitation is no longer active")
        return OperationResult.ok(invitation, "Invitation found")

    @as_operation_result("Could not list invitations")
    async def list_invitations(
        self,
        filters: InvitationFilters | None = None,
        pagination: PaginationParams | None = None,
        include_inactive: bool = False,
    ) -> OperationResult[PageDTO[Invitation]]:
        pagination = pagination or PaginationParams()
        check_pagination(pagination, MAX_PAGE_SIZE, SORTABLE_FIELDS)
        with log_operation(logger, "list_invitations", page=pagination.page) as details:
            page = await self._invitations.find_paginated(filters, pagination, include_inactive)
            details["total"] = page.total
        return OperationResult.ok(page, f"{page.total} invitations found")

    @as_operation_result("Could not search invitations")
    async def search(self, name: str) -> OperationResult[list[Invitation]]:
        name = (name or "").strip()
        if len(name) < MIN_SEARCH_LENGTH:
            raise ValidationError(
                f"The search term needs at least {MIN_SEARCH_LENGTH} characters"
            )
        invitations = await self._invitations.find_by_guest_name(name)
        return OperationResult.ok(invitations, f"{len(invitations)} invitations match '{name}'")

    @as_operation_result("Could not compute invitation statistics")
    async def get_stats(self) -> OperationResult[InvitationStats]:
        with log_operation(logger, "invitation_stats") as details:
            stats = await self._invitations.get_stats()
            details["active"] = stats.active
        return OperationResult.ok(stats, "Statistics computed")

    @as_operation_result("Could not export invitations")
    async def export(
        self, export_format: ExportFormat | str = ExportFormat.JSON
    ) -> OperationResult[ExportDTO]:
        export_format = parse_export_format(export_format)
        with log_operation(logger, "export_invitations", format=export_format.value) as details:
            export = await self._invitations.export_all(export_format)
            details["count"] = export.count
        return OperationResult.ok(export, f"{export.count} invitations exported")
