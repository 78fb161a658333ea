"""Write model for admin changes to existing invitations."""

import logging
from typing import Any

from src.config.settings import settings
from src.invitations.domain.invitation import Invitation, parse_guest_names
from src.invitations.dtos import OperationResult
from src.invitations.errors import NotFoundError, ValidationError
from src.invitations.features.manage_invitation.dtos import UpdateInvitationRequest
from src.invitations.locks import KeyedLocks, invitation_locks
from src.invitations.repository.base import InvitationRepository
from src.invitations.results import as_operation_result
from src.invitations.rules import ensure_table_capacity, ensure_unique_guests
from src.invitations.validation import ValidationService, validation_service

logger = logging.getLogger(__name__)


class ManageInvitationWriteModel:
    def __init__(
        self,
        invitation_repository: InvitationRepository,
        validation: ValidationService = validation_service,
        max_passes_per_invitation: int = settings.max_passes_per_invitation,
        max_passes_per_table: int | None = settings.max_passes_per_table,
        locks: KeyedLocks = invitation_locks,
    ) -> None:
        self._invitations = invitation_repository
        self._validation = validation
        self._max_passes_per_invitation = max_passes_per_invitation
        self._max_passes_per_table = max_passes_per_table
        self._locks = locks

    @as_operation_result("Could not update the invitation")
    async def update(
        self, code: str, data: UpdateInvitationRequest | dict[str, Any]
    ) -> OperationResult[Invitation]:
        request = UpdateInvitationRequest.model_validate(data)
        changes = request.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("Nothing to update")

        if "guest_names" in changes:
            raw_names = parse_guest_names(changes["guest_names"] or "")
            names = (self._validation.sanitize_string(name) for name in raw_names)
            changes["guest_names"] = tuple(name for name in names if name)
            if not changes["guest_names"]:
                raise ValidationError("At least one guest name is required")
        if changes.get("phone"):
            phone = self._validation.sanitize_phone(changes["phone"])
            if not self._validation.validate_phone(phone):
                raise ValidationError(f"Invalid phone number '{changes['phone']}'")
            changes["phone"] = phone
        if (changes.get("number_of_passes") or 0) > self._max_passes_per_invitation:
            raise ValidationError(
                f"An invitation can have at most {self._max_passes_per_invitation} passes"
            )

        async with self._locks.hold(code):
            invitation = await self._get(code)
            updated = invitation.update(**changes)

            if "guest_names" in changes:
                await ensure_unique_guests(
                    self._invitations, updated.guest_names, exclude_code=invitation.code
                )
            if updated.table_number and (
                updated.table_number != invitation.table_number
                or updated.number_of_passes != invitation.number_of_passes
            ):
                await ensure_table_capacity(
                    self._invitations,
                    updated.table_number,
                    updated.number_of_passes,
                    self._max_passes_per_table,
                    exclude_code=invitation.code,
                )

            await self._invitations.update(invitation.code, updated)

        logger.info(f"Invitation {updated.code} updated: {', '.join(sorted(changes))}")
        return OperationResult.ok(updated, "Invitation updated")

    @as_operation_result("Could not deactivate the invitation")
    async def deactivate(
        self, code: str, deactivated_by: str = "admin", reason: str = ""
    ) -> OperationResult[Invitation]:
        reason = self._validation.sanitize_string(reason)
        async with self._locks.hold(code):
            await self._get(code)
            invitation = await self._invitations.delete(code, deactivated_by, reason)
        logger.info(f"Invitation {invitation.code} deactivated by {deactivated_by}: {reason or '-'}")
        return OperationResult.ok(invitation, "Invitation deactivated")

    @as_operation_result("Could not restore the invitation")
    async def restore(self, code: str) -> OperationResult[Invitation]:
        async with self._locks.hold(code):
            await self._get(code)
            invitation = await self._invitations.restore(code)
        logger.info(f"Invitation {invitation.code} restored as {invitation.status.value}")
        return OperationResult.ok(invitation, "Invitation restored")

    @as_operation_result("Could not assign the table")
    async def assign_table(
        self, code: str, table_number: int | None
    ) -> OperationResult[Invitation]:
        async with self._locks.hold(code):
            invitation = await self._get(code)
            updated = invitation.assign_table(table_number)
            if updated.is_active:
                await ensure_table_capacity(
                    self._invitations,
                    table_number,
                    updated.number_of_passes,
                    self._max_passes_per_table,
                    exclude_code=invitation.code,
                )
            await self._invitations.update(invitation.code, updated)

        if table_number is None:
            message = "Table assignment cleared"
        else:
            message = f"Assigned to table {table_number}"
        logger.info(f"Invitation {updated.code}: {message}")
        return OperationResult.ok(updated, message)

    @as_operation_result("Could not update the pass split")
    async def update_passes(
        self,
        code: str,
        adult_passes: int = 0,
        child_passes: int = 0,
        staff_passes: int = 0,
    ) -> OperationResult[Invitation]:
        async with self._locks.hold(code):
            invitation = await self._get(code)
            updated = invitation.update_passes(adult_passes, child_passes, staff_passes)
            await self._invitations.update(invitation.code, updated)
        return OperationResult.ok(updated, "Pass split updated")

    async def _get(self, code: str) -> Invitation:
        invitation = await self._invitations.find_by_code(code)
        if invitation is None:
            raise NotFoundError(code)
        return invitation
