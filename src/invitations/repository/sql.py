"""SQLAlchemy adapters. Return domain entities, never ORM models."""

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.database import async_session_manager
from src.invitations.domain.confirmation import Confirmation
from src.invitations.domain.invitation import Invitation
from src.invitations.dtos import ConfirmationFilters, InvitationFilters, InvitationStatus
from src.invitations.errors import BusinessRuleViolation, NotFoundError
from src.invitations.repository.base import (
    ConfirmationRepository,
    InvitationRepository,
    matches_confirmation_filters,
    matches_invitation_filters,
)
from src.invitations.repository.orm_models import ConfirmationRecord, InvitationRecord

logger = logging.getLogger(__name__)

INVITATION_COLUMNS = (
    "code",
    "guest_names",
    "number_of_passes",
    "phone",
    "created_at",
    "confirmed_passes",
    "confirmation_date",
    "adult_passes",
    "child_passes",
    "staff_passes",
    "table_number",
    "status",
    "cancelled_at",
    "cancelled_by",
    "cancellation_reason",
    "attending_names",
    "dietary_restrictions_names",
    "dietary_restrictions_details",
    "general_message",
)

CONFIRMATION_COLUMNS = (
    "code",
    "will_attend",
    "attending_guests",
    "attending_names",
    "phone",
    "dietary_restrictions",
    "message",
    "confirmed_at",
)


def _columns(entity: Invitation | Confirmation, names: tuple[str, ...]) -> dict[str, Any]:
    values = {name: getattr(entity, name) for name in names}
    for name, value in values.items():
        if isinstance(value, tuple):
            values[name] = list(value)
    return values


def invitation_from_record(record: InvitationRecord) -> Invitation:
    # sqlite hands back naive datetimes; the entity reads them as UTC
    return Invitation(**{name: getattr(record, name) for name in INVITATION_COLUMNS})


def confirmation_from_record(record: ConfirmationRecord) -> Confirmation:
    return Confirmation(**{name: getattr(record, name) for name in CONFIRMATION_COLUMNS})


class SqlInvitationRepository(InvitationRepository):
    def __init__(self, session_overwrite: AsyncSession | None = None):
        self._session_overwrite = session_overwrite

    async def _get_record(self, session, code: str) -> InvitationRecord | None:
        stmt = select(InvitationRecord).where(func.lower(InvitationRecord.code) == code.lower())
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def save(self, invitation: Invitation) -> Invitation:
        async with async_session_manager(session_overwrite=self._session_overwrite) as session:
            if await self._get_record(session, invitation.code):
                raise BusinessRuleViolation(
                    f"An invitation with code '{invitation.code}' already exists"
                )
            session.add(InvitationRecord(**_columns(invitation, INVITATION_COLUMNS)))
            await session.flush()
        logger.info(f"Invitation {invitation.code} saved for {invitation.guest_names_string}")
        return invitation

    async def save_batch(self, invitations: list[Invitation]) -> list[Invitation]:
        """Insert every invitation or none of them."""
        if not invitations:
            return []
        async with async_session_manager(session_overwrite=self._session_overwrite) as session:
            seen: set[str] = set()
            for invitation in invitations:
                code = invitation.code.lower()
                if code in seen or await self._get_record(session, code):
                    raise BusinessRuleViolation(
                        f"An invitation with code '{invitation.code}' already exists"
                    )
                seen.add(code)
            session.add_all(
                [InvitationRecord(**_columns(i, INVITATION_COLUMNS)) for i in invitations]
            )
            await session.flush()
        logger.info(f"Saved a batch of {len(invitations)} invitations")
        return invitations

    async def find_by_code(self, code: str) -> Invitation | None:
        async with async_session_manager(session_overwrite=self._session_overwrite) as session:
            record = await self._get_record(session, code)
            return invitation_from_record(record) if record else None

    async def find_all(
        self,
        filters: InvitationFilters | None = None,
        include_inactive: bool = False,
    ) -> list[Invitation]:
        stmt = select(InvitationRecord).order_by(InvitationRecord.created_at)
        if not include_inactive:
            stmt = stmt.where(InvitationRecord.status != InvitationStatus.INACTIVE)
        if filters and filters.status:
            stmt = stmt.where(InvitationRecord.status == filters.status)
        async with async_session_manager(session_overwrite=self._session_overwrite) as session:
            result = await session.execute(stmt)
            invitations = [invitation_from_record(record) for record in result.scalars()]
        return [i for i in invitations if matches_invitation_filters(i, filters)]

    async def update(self, code: str, invitation: Invitation) -> Invitation:
        async with async_session_manager(session_overwrite=self._session_overwrite) as session:
            record = await self._get_record(session, code)
            if record is None:
                raise NotFoundError(code)
            for name, value in _columns(invitation, INVITATION_COLUMNS).items():
                setattr(record, name, value)
            await session.flush()
        return invitation


class SqlConfirmationRepository(ConfirmationRepository):
    def __init__(self, session_overwrite: AsyncSession | None = None):
        self._session_overwrite = session_overwrite

    async def _get_record(self, session, code: str) -> ConfirmationRecord | None:
        stmt = select(ConfirmationRecord).where(
            func.lower(ConfirmationRecord.code) == code.lower()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def save(self, confirmation: Confirmation) -> Confirmation:
        async with async_session_manager(session_overwrite=self._session_overwrite) as session:
            if await self._get_record(session, confirmation.code):
                raise BusinessRuleViolation(
                    f"A confirmation for code '{confirmation.code}' already exists"
                )
            session.add(ConfirmationRecord(**_columns(confirmation, CONFIRMATION_COLUMNS)))
            await session.flush()
        return confirmation

    async def find_by_code(self, code: str) -> Confirmation | None:
        async with async_session_manager(session_overwrite=self._session_overwrite) as session:
            record = await self._get_record(session, code)
            return confirmation_from_record(record) if record else None

    async def find_all(self, filters: ConfirmationFilters | None = None) -> list[Confirmation]:
        stmt = select(ConfirmationRecord).order_by(ConfirmationRecord.confirmed_at)
        if filters and filters.will_attend is not None:
            stmt = stmt.where(ConfirmationRecord.will_attend == filters.will_attend)
        async with async_session_manager(session_overwrite=self._session_overwrite) as session:
            result = await session.execute(stmt)
            confirmations = [confirmation_from_record(record) for record in result.scalars()]
        return [c for c in confirmations if matches_confirmation_filters(c, filters)]

    async def update(self, code: str, confirmation: Confirmation) -> Confirmation:
        async with async_session_manager(session_overwrite=self._session_overwrite) as session:
            record = await self._get_record(session, code)
            if record is None:
                raise NotFoundError(code, entity="Confirmation")
            for name, value in _columns(confirmation, CONFIRMATION_COLUMNS).items():
                setattr(record, name, value)
            await session.flush()
        return confirmation

    async def delete(self, code: str) -> bool:
        async with async_session_manager(session_overwrite=self._session_overwrite) as session:
            record = await self._get_record(session, code)
            if record is None:
                return False
            await session.delete(record)
            await session.flush()
        return True
