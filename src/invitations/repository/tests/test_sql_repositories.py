"""Tests for the SQL repositories against an in-memory SQLite database."""

import pytest

from src.invitations.domain.confirmation import Confirmation
from src.invitations.domain.invitation import Invitation
from src.invitations.dtos import (
    ConfirmationFilters,
    InvitationFilters,
    InvitationStatus,
    PaginationParams,
)
from src.invitations.errors import BusinessRuleViolation, NotFoundError
from src.invitations.repository.sql import SqlConfirmationRepository, SqlInvitationRepository


@pytest.fixture
def invitations(db_session) -> SqlInvitationRepository:
    return SqlInvitationRepository(session_overwrite=db_session)


@pytest.fixture
def confirmations(db_session) -> SqlConfirmationRepository:
    return SqlConfirmationRepository(session_overwrite=db_session)


async def test_save_and_find_by_code_is_case_insensitive(invitations):
    """Test saving an invitation and finding it by code."""
    invitation = Invitation(
        ["Ana", "Luis"], 3, code="AbCd1234", phone="+34600123456", adult_passes=2, child_passes=1
    )

    await invitations.save(invitation)
    found = await invitations.find_by_code("abcd1234")

    assert found == invitation
    assert found.guest_names == ("Ana", "Luis")
    assert found.created_at.tzinfo is not None


async def test_save_rejects_duplicate_code(invitations):
    """Test saving two invitations with the same code."""
    await invitations.save(Invitation(["Ana"], 1, code="abcd1234"))

    with pytest.raises(BusinessRuleViolation):
        await invitations.save(Invitation(["Eva"], 1, code="ABCD1234"))


async def test_save_batch_is_all_or_nothing(invitations):
    """Test that a failing batch stores nothing."""
    await invitations.save(Invitation(["Ana"], 1, code="taken001"))

    with pytest.raises(BusinessRuleViolation):
        await invitations.save_batch(
            [Invitation(["Eva"], 1, code="fresh001"), Invitation(["Leo"], 1, code="taken001")]
        )

    assert await invitations.find_by_code("fresh001") is None
    saved = await invitations.save_batch(
        [Invitation(["Eva"], 1, code="fresh001"), Invitation(["Leo"], 2, code="fresh002")]
    )
    assert len(saved) == 2
    assert await invitations.count() == 3


async def test_find_all_excludes_inactive_unless_asked(invitations):
    """Test that find_all leaves out inactive invitations by default."""
    await invitations.save(Invitation(["Ana"], 2, code="active01"))
    await invitations.save(Invitation(["Eva"], 2, code="gone0001"))
    await invitations.delete("gone0001", deleted_by="planner", reason="duplicate")

    active = await invitations.find_all()
    everything = await invitations.find_all(include_inactive=True)

    assert [i.code for i in active] == ["active01"]
    assert len(everything) == 2
    gone = await invitations.find_by_code("gone0001")
    assert gone.status == InvitationStatus.INACTIVE
    assert gone.cancelled_by == "planner"
    assert gone.cancellation_reason == "duplicate"


async def test_restore_brings_invitation_back(invitations):
    """Test restoring a soft deleted invitation."""
    await invitations.save(Invitation(["Ana"], 2, code="gone0001").confirm(1))
    await invitations.delete("gone0001")

    restored = await invitations.restore("gone0001")

    assert restored.status == InvitationStatus.PARTIAL
    assert (await invitations.find_by_code("gone0001")).cancelled_at is None


async def test_update_persists_confirmation_snapshot(invitations):
    """Test that updates store the confirmation snapshot."""
    invitation = await invitations.save(Invitation(["Ana", "Luis"], 2, code="abcd1234"))

    confirmed = invitation.confirm(2).update_confirmation_details(
        attending_names=["Ana", "Luis"], general_message="¡Allí estaremos!"
    )
    await invitations.update("ABCD1234", confirmed)
    stored = await invitations.find_by_code("abcd1234")

    assert stored.status == InvitationStatus.CONFIRMED
    assert stored.attending_names == ("Ana", "Luis")
    assert stored.general_message == "¡Allí estaremos!"


async def test_update_missing_invitation_raises(invitations):
    """Test updating an invitation that does not exist."""
    with pytest.raises(NotFoundError):
        await invitations.update("missing1", Invitation(["Ana"], 1, code="missing1"))


async def test_status_and_search_filters(invitations):
    """Test filtering by status and guest name."""
    await invitations.save(Invitation(["Ana García"], 2, code="code0001", table_number=3))
    await invitations.save(Invitation(["Luis Pérez"], 4, code="code0002").confirm(4))

    confirmed = await invitations.find_all(InvitationFilters(status=InvitationStatus.CONFIRMED))
    by_name = await invitations.find_by_guest_name("garcía")
    by_table = await invitations.find_by_table(3)
    big = await invitations.find_all(InvitationFilters(passes="4+"))

    assert [i.code for i in confirmed] == ["code0002"]
    assert [i.code for i in by_name] == ["code0001"]
    assert [i.code for i in by_table] == ["code0001"]
    assert [i.code for i in big] == ["code0002"]


async def test_find_paginated(invitations):
    """Test paginated invitation queries."""
    for n in range(5):
        await invitations.save(Invitation([f"Guest {n}"], n + 1, code=f"page000{n}"))

    page = await invitations.find_paginated(
        pagination=PaginationParams(page=2, limit=2, sort_by="number_of_passes")
    )

    assert page.total == 5
    assert page.total_pages == 3
    assert [i.number_of_passes for i in page.items] == [3, 2]
    assert page.has_next and page.has_prev


async def test_confirmation_crud(confirmations):
    """Test saving, finding, updating and deleting a confirmation."""
    confirmation = Confirmation.create_positive("AbCd1234", 2, ["Ana"], message="Hola")

    await confirmations.save(confirmation)
    with pytest.raises(BusinessRuleViolation):
        await confirmations.save(confirmation)

    stored = await confirmations.find_by_code("abcd1234")
    assert stored == confirmation

    await confirmations.update("abcd1234", stored.update_attending_guests(1))
    assert (await confirmations.find_by_code("abcd1234")).attending_guests == 1

    assert await confirmations.delete("abcd1234") is True
    assert await confirmations.delete("abcd1234") is False
    assert await confirmations.find_by_code("abcd1234") is None


async def test_confirmation_filters_and_stats(confirmations):
    """Test confirmation filters and stats."""
    await confirmations.save(
        Confirmation.create_positive("code0001", 2, dietary_restrictions="Vegan")
    )
    await confirmations.save(Confirmation.create_positive("code0002", 3))
    await confirmations.save(Confirmation.create_negative("code0003", "Lo sentimos"))

    positive = await confirmations.find_all(ConfirmationFilters(will_attend=True))
    stats = await confirmations.get_stats()

    assert {c.code for c in positive} == {"code0001", "code0002"}
    assert [c.code for c in await confirmations.find_negative()] == ["code0003"]
    assert [c.code for c in await confirmations.find_with_dietary_restrictions()] == ["code0001"]
    assert stats.total_confirmed_guests == 5
    assert stats.average_guests_per_confirmation == 2.5


async def test_update_missing_confirmation_raises(confirmations):
    """Test updating a confirmation that does not exist."""
    with pytest.raises(NotFoundError):
        await confirmations.update("missing1", Confirmation.create_negative("missing1"))
