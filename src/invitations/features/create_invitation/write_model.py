"""Write model for creating invitations.

Validates and normalises raw input, rejects duplicate guest lists and full
tables, then stores the new invitation. Batches collect failures per item
instead of aborting.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

import pydantic

from src.config.settings import settings
from src.invitations.domain.invitation import Invitation, generate_code, parse_guest_names
from src.invitations.dtos import (
    BatchItemError,
    BatchItemSuccess,
    BatchResultDTO,
    OperationResult,
)
from src.invitations.errors import (
    BusinessRuleViolation,
    DomainError,
    ErrorType,
    ValidationError,
)
from src.invitations.features.create_invitation.dtos import CreateInvitationRequest
from src.invitations.repository.base import InvitationRepository, SupportsBatchSave
from src.invitations.results import as_operation_result
from src.invitations.rules import (
    ensure_table_capacity,
    ensure_unique_guests,
    guest_name_key,
)
from src.invitations.validation import ValidationService, validation_service

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 5


class CreateInvitationWriteModel:
    def __init__(
        self,
        invitation_repository: InvitationRepository,
        validation: ValidationService = validation_service,
        max_passes_per_invitation: int = settings.max_passes_per_invitation,
        max_passes_per_table: int | None = settings.max_passes_per_table,
        create_lock: asyncio.Lock | None = None,
    ) -> None:
        self._invitations = invitation_repository
        self._validation = validation
        self._max_passes_per_invitation = max_passes_per_invitation
        self._max_passes_per_table = max_passes_per_table
        # duplicate checks and saves must not interleave between creates
        self._create_lock = create_lock or asyncio.Lock()

    @as_operation_result("Could not create the invitation")
    async def execute(
        self, data: CreateInvitationRequest | dict[str, Any]
    ) -> OperationResult[Invitation]:
        request = self._parse(data)
        async with self._create_lock:
            invitation = await self._prepare(request)
            invitation = await self._invitations.save(invitation)

        logger.info(
            f"Invitation {invitation.code} created for {invitation.guest_names_string} "
            f"({invitation.number_of_passes} passes)"
        )
        return OperationResult.ok(invitation, f"Invitation {invitation.code} created")

    @as_operation_result("Could not create the invitations")
    async def execute_batch(
        self, items: list[CreateInvitationRequest | dict[str, Any]]
    ) -> OperationResult[BatchResultDTO]:
        if not items:
            raise ValidationError("The batch contains no invitations")

        errors: list[BatchItemError] = []
        created: list[BatchItemSuccess] = []
        prepared: list[tuple[int, Invitation]] = []
        seen_guests: dict[frozenset[str], int] = {}

        async with self._create_lock:
            # Phase 1: validate every item against the store and the batch so far
            for index, item in enumerate(items):
                try:
                    request = self._parse(item)
                    invitation = await self._prepare(
                        request, pending=[invitation for _, invitation in prepared]
                    )
                    key = guest_name_key(invitation.guest_names)
                    if key in seen_guests:
                        raise BusinessRuleViolation(
                            f"Same guests as item {seen_guests[key]} of this batch"
                        )
                    seen_guests[key] = index
                    prepared.append((index, invitation))
                except pydantic.ValidationError as e:
                    errors.append(BatchItemError(index, ValidationError.from_pydantic(e).message, item))
                except DomainError as e:
                    errors.append(BatchItemError(index, e.message, item))
                except Exception as e:
                    logger.exception(f"Unexpected error preparing batch item {index}")
                    errors.append(BatchItemError(index, str(e), item))

            # Phase 2: persist
            if prepared and isinstance(self._invitations, SupportsBatchSave):
                try:
                    await self._invitations.save_batch([invitation for _, invitation in prepared])
                    created = [BatchItemSuccess(index, invitation) for index, invitation in prepared]
                except Exception as e:
                    logger.error(f"Batch save of {len(prepared)} invitations failed: {e}")
                    errors.extend(
                        BatchItemError(index, f"Batch save failed: {e}", invitation.to_dict())
                        for index, invitation in prepared
                    )
            else:
                for index, invitation in prepared:
                    try:
                        await self._invitations.save(invitation)
                        created.append(BatchItemSuccess(index, invitation))
                    except Exception as e:
                        logger.error(f"Saving batch item {index} ({invitation.code}) failed: {e}")
                        errors.append(BatchItemError(index, str(e), invitation.to_dict()))

        errors.sort(key=lambda error: error.index)
        result = BatchResultDTO(total=len(items), created=created, errors=errors)
        message = f"{len(created)} of {len(items)} invitations created"
        logger.info(message)
        if errors:
            return OperationResult(
                success=False,
                message=message,
                data=result,
                error=f"{len(errors)} invitation(s) could not be created",
                error_type=ErrorType.BUSINESS_RULE,
            )
        return OperationResult.ok(result, message)

    def _parse(self, data: CreateInvitationRequest | dict[str, Any]) -> CreateInvitationRequest:
        if isinstance(data, CreateInvitationRequest):
            return data
        if not isinstance(data, dict):
            raise ValidationError("Invitation data must be an object")
        return CreateInvitationRequest.model_validate(data)

    def _normalize_names(self, raw: list[str] | str) -> tuple[str, ...]:
        names = tuple(
            name
            for name in (self._validation.sanitize_string(n) for n in parse_guest_names(raw))
            if name
        )
        if not names:
            raise ValidationError("At least one guest name is required")
        invalid = [name for name in names if not self._validation.validate_name(name)]
        if invalid:
            raise ValidationError(f"Invalid guest name(s): {', '.join(invalid)}")
        return names

    def _normalize_passes(self, request: CreateInvitationRequest) -> tuple[int, int, int]:
        adult = request.adult_passes or 0
        child = request.child_passes or 0
        staff = request.staff_passes or 0
        if not (adult or child or staff):
            return request.number_of_passes, 0, 0
        if adult + child + staff != request.number_of_passes:
            raise ValidationError(
                f"The pass split ({adult} adult + {child} child + {staff} staff) must add "
                f"up to number_of_passes ({request.number_of_passes})"
            )
        return adult, child, staff

    async def _prepare(
        self,
        request: CreateInvitationRequest,
        pending: Iterable[Invitation] = (),
    ) -> Invitation:
        pending = list(pending)
        if request.number_of_passes > self._max_passes_per_invitation:
            raise ValidationError(
                f"An invitation can have at most {self._max_passes_per_invitation} passes"
            )

        guest_names = self._normalize_names(request.guest_names)
        adult, child, staff = self._normalize_passes(request)

        phone = ""
        if request.phone:
            phone = self._validation.sanitize_phone(request.phone)
            if not self._validation.validate_phone(phone):
                raise ValidationError(f"Invalid phone number '{request.phone}'")

        await ensure_unique_guests(self._invitations, guest_names)

        if phone:
            reused = [i for i in await self._invitations.find_by_phone(phone) if i.is_active]
            if reused:
                logger.warning(
                    f"Phone {phone} is already used by invitation(s) "
                    f"{', '.join(i.code for i in reused)}"
                )

        await ensure_table_capacity(
            self._invitations,
            request.table_number,
            request.number_of_passes,
            self._max_passes_per_table,
            pending=pending,
        )

        code = await self._pick_code(request.code, pending)
        return Invitation.create(
            guest_names=guest_names,
            number_of_passes=request.number_of_passes,
            code=code,
            phone=phone,
            adult_passes=adult,
            child_passes=child,
            staff_passes=staff,
            table_number=request.table_number,
        )

    async def _pick_code(self, requested: str | None, pending: list[Invitation]) -> str:
        taken = {invitation.code.lower() for invitation in pending}
        if requested:
            if not self._validation.validate_invitation_code(requested):
                raise ValidationError(f"Invalid invitation code '{requested}'")
            if requested.lower() in taken or await self._invitations.exists(requested):
                raise BusinessRuleViolation(f"An invitation with code '{requested}' already exists")
            return requested

        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_code()
            if code not in taken and not await self._invitations.exists(code):
                return code
            logger.warning(f"Generated invitation code {code} is taken, retrying")
        raise BusinessRuleViolation("Could not generate a free invitation code")
