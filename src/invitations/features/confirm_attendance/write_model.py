"""Write model for guest RSVPs.

Confirming stores a Confirmation and mirrors its outcome onto the invitation.
Every read-modify-write runs under the invitation code's lock.
"""

import logging
from typing import Any

from src.events import ConfirmationCancelledEvent, ConfirmationReceivedEvent, DomainEvent
from src.invitations.domain.confirmation import Confirmation
from src.invitations.domain.invitation import Invitation, utc_now
from src.invitations.dtos import ConfirmationResultDTO, InvitationStatus, OperationResult
from src.invitations.errors import BusinessRuleViolation, NotFoundError, ValidationError
from src.invitations.features.confirm_attendance.dtos import (
    ConfirmAttendanceRequest,
    UpdateConfirmationRequest,
)
from src.invitations.locks import KeyedLocks, invitation_locks
from src.invitations.notifications import NotificationPublisher, get_notification_publisher
from src.invitations.repository.base import ConfirmationRepository, InvitationRepository
from src.invitations.results import as_operation_result
from src.invitations.validation import ValidationService, validation_service

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 500
MAX_DIETARY_LENGTH = 200


class ConfirmAttendanceWriteModel:
    def __init__(
        self,
        invitation_repository: InvitationRepository,
        confirmation_repository: ConfirmationRepository,
        publisher: NotificationPublisher | None = None,
        validation: ValidationService = validation_service,
        locks: KeyedLocks = invitation_locks,
    ) -> None:
        self._invitations = invitation_repository
        self._confirmations = confirmation_repository
        self._publisher = publisher or get_notification_publisher()
        self._validation = validation
        self._locks = locks

    @as_operation_result("Could not confirm attendance")
    async def execute(
        self, code: str, data: ConfirmAttendanceRequest | dict[str, Any]
    ) -> OperationResult[ConfirmationResultDTO]:
        code = self._check_code(code)
        request = ConfirmAttendanceRequest.model_validate(data)
        names = self._sanitize_names(request.attending_names)
        message = self._validation.sanitize_string(request.message)
        dietary = self._validation.sanitize_string(request.dietary_restrictions)
        details = self._validation.sanitize_string(request.dietary_restrictions_details)
        phone = self._sanitize_phone(request.phone)

        async with self._locks.hold(code):
            invitation = await self._get_invitation(code)
            if invitation.status == InvitationStatus.INACTIVE:
                raise BusinessRuleViolation("This invitation is no longer active")
            if await self._confirmations.exists(invitation.code):
                raise BusinessRuleViolation("Invitation already confirmed")

            self._check_rules(
                invitation, request.will_attend, request.attending_guests, names, message, dietary
            )

            confirmation = Confirmation(
                code=invitation.code,
                will_attend=request.will_attend,
                attending_guests=request.attending_guests,
                attending_names=names,
                phone=phone,
                dietary_restrictions=dietary,
                message=message,
            )
            confirmed = invitation.confirm(confirmation.attending_guests).update_confirmation_details(
                attending_names=confirmation.attending_names,
                dietary_restrictions_names=dietary,
                dietary_restrictions_details=details,
                general_message=message,
            )

            await self._confirmations.save(confirmation)
            try:
                await self._invitations.update(invitation.code, confirmed)
            except Exception:
                # keep the two stores consistent
                await self._confirmations.delete(invitation.code)
                raise

        logger.info(
            f"Invitation {confirmed.code} confirmed: {confirmation.summary} "
            f"(status {confirmed.status.value})"
        )
        self._publish(
            ConfirmationReceivedEvent(
                invitation=confirmed.to_dict(), confirmation=confirmation.to_dict()
            )
        )
        if confirmation.will_attend:
            message = "Attendance confirmed"
        else:
            message = "Non-attendance registered"
        return OperationResult.ok(ConfirmationResultDTO(confirmed, confirmation), message)

    @as_operation_result("Could not update the confirmation")
    async def update_confirmation(
        self, code: str, data: UpdateConfirmationRequest | dict[str, Any]
    ) -> OperationResult[ConfirmationResultDTO]:
        code = self._check_code(code)
        request = UpdateConfirmationRequest.model_validate(data)

        async with self._locks.hold(code):
            invitation = await self._get_invitation(code)
            if invitation.status == InvitationStatus.INACTIVE:
                raise BusinessRuleViolation("This invitation is no longer active")
            existing = await self._confirmations.find_by_code(code)
            if existing is None:
                raise NotFoundError(code, entity="Confirmation")

            updated = existing
            if request.will_attend is not None:
                updated = updated.update_attendance(request.will_attend)
            if request.attending_guests is not None:
                updated = updated.update_attending_guests(request.attending_guests)
            if request.attending_names is not None:
                updated = updated.update_attending_names(self._sanitize_names(request.attending_names))
            if request.phone is not None:
                updated = updated.update_phone(self._sanitize_phone(request.phone))
            if request.dietary_restrictions is not None:
                updated = updated.update_dietary_restrictions(
                    self._validation.sanitize_string(request.dietary_restrictions)
                )
            if request.message is not None:
                updated = updated.update_message(self._validation.sanitize_string(request.message))

            self._check_rules(
                invitation,
                updated.will_attend,
                updated.attending_guests,
                updated.attending_names,
                updated.message,
                updated.dietary_restrictions,
            )

            changes: dict[str, Any] = {
                "confirmed_passes": updated.attending_guests,
                "confirmation_date": invitation.confirmation_date or utc_now(),
                "attending_names": updated.attending_names,
                "dietary_restrictions_names": updated.dietary_restrictions,
                "general_message": updated.message,
            }
            if request.dietary_restrictions_details is not None:
                changes["dietary_restrictions_details"] = self._validation.sanitize_string(
                    request.dietary_restrictions_details
                )
            synced = invitation.update(**changes)

            await self._confirmations.update(invitation.code, updated)
            try:
                await self._invitations.update(invitation.code, synced)
            except Exception:
                await self._confirmations.update(invitation.code, existing)
                raise

        logger.info(f"Confirmation for {synced.code} updated: {updated.summary}")
        return OperationResult.ok(ConfirmationResultDTO(synced, updated), "Confirmation updated")

    @as_operation_result("Could not cancel the confirmation")
    async def cancel_confirmation(self, code: str, reason: str = "") -> OperationResult[Invitation]:
        code = self._check_code(code)

        async with self._locks.hold(code):
            invitation = await self._get_invitation(code)
            if await self._confirmations.find_by_code(code) is None:
                raise NotFoundError(code, entity="Confirmation")
            reverted = invitation.unconfirm()
            await self._invitations.update(invitation.code, reverted)
            try:
                await self._confirmations.delete(invitation.code)
            except Exception:
                await self._invitations.update(invitation.code, invitation)
                raise

        logger.info(f"Confirmation for {reverted.code} cancelled. Reason: {reason or '-'}")
        self._publish(ConfirmationCancelledEvent(code=reverted.code, reason=reason))
        return OperationResult.ok(reverted, "Confirmation cancelled")

    def _check_code(self, code: str) -> str:
        if not isinstance(code, str) or not self._validation.validate_invitation_code(code):
            raise ValidationError("A valid invitation code is required")
        return code.strip()

    async def _get_invitation(self, code: str) -> Invitation:
        invitation = await self._invitations.find_by_code(code)
        if invitation is None:
            raise NotFoundError(code)
        return invitation

    def _sanitize_names(self, names: list[str] | tuple[str, ...]) -> tuple[str, ...]:
        cleaned = (self._validation.sanitize_string(name) for name in names)
        return tuple(name for name in cleaned if name)

    def _sanitize_phone(self, phone: str | None) -> str:
        if not phone:
            return ""
        cleaned = self._validation.sanitize_phone(phone)
        if not self._validation.validate_phone_loose(cleaned):
            raise ValidationError(f"Invalid phone number '{phone}'")
        return cleaned

    def _check_rules(
        self,
        invitation: Invitation,
        will_attend: bool,
        attending_guests: int,
        attending_names: tuple[str, ...],
        message: str,
        dietary_restrictions: str,
    ) -> None:
        if will_attend and attending_guests < 1:
            raise BusinessRuleViolation("At least one attending guest is required")
        if not will_attend and attending_guests > 0:
            raise BusinessRuleViolation("A declined invitation cannot have attending guests")
        if attending_guests > invitation.number_of_passes:
            raise BusinessRuleViolation(
                f"Only {invitation.number_of_passes} passes are available"
            )
        if len(attending_names) > attending_guests:
            raise BusinessRuleViolation(
                f"Cannot name more guests ({len(attending_names)}) "
                f"than are attending ({attending_guests})"
            )
        if len(message) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f"The message cannot exceed {MAX_MESSAGE_LENGTH} characters")
        if len(dietary_restrictions) > MAX_DIETARY_LENGTH:
            raise ValidationError(
                f"Dietary restrictions cannot exceed {MAX_DIETARY_LENGTH} characters"
            )

    def _publish(self, event: DomainEvent) -> None:
        try:
            self._publisher.notify(event.event_type, event.payload())
        except Exception:
            logger.exception(f"Publishing {event.event_type} failed")
