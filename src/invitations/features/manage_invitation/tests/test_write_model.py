"""Tests for ManageInvitationWriteModel."""

import pytest

from src.invitations.domain.invitation import Invitation
from src.invitations.dtos import InvitationStatus
from src.invitations.errors import ErrorType
from src.invitations.features.manage_invitation.write_model import ManageInvitationWriteModel


@pytest.fixture
async def seeded(invitation_repository):
    await invitation_repository.save(
        Invitation(["Ana", "Luis"], 4, code="code0001", table_number=1)
    )
    await invitation_repository.save(Invitation(["Eva"], 4, code="code0002", table_number=1))
    await invitation_repository.save(Invitation(["Leo"], 2, code="code0003").confirm(1))
    return invitation_repository


@pytest.fixture
def write_model(invitation_repository, locks) -> ManageInvitationWriteModel:
    return ManageInvitationWriteModel(
        invitation_repository, max_passes_per_invitation=20, max_passes_per_table=10, locks=locks
    )


async def test_update_fields(seeded, write_model):
    """Test updating guest names and phone."""
    result = await write_model.update(
        "CODE0001", {"guest_names": "Ana y Luis y Sol", "phone": "600 111 222"}
    )

    assert result.success
    assert result.data.guest_names == ("Ana", "Luis", "Sol")
    assert result.data.phone == "600 111 222"
    assert (await seeded.find_by_code("code0001")).guest_names == ("Ana", "Luis", "Sol")


async def test_update_confirmed_passes_rederives_status(seeded, write_model):
    """Test that changing confirmed passes re-derives the status."""
    result = await write_model.update("code0003", {"confirmed_passes": 2})

    assert result.data.status == InvitationStatus.CONFIRMED


async def test_update_can_set_status_explicitly(seeded, write_model):
    """Test setting the status explicitly."""
    result = await write_model.update(
        "code0003", {"confirmed_passes": 0, "status": InvitationStatus.PENDING}
    )

    assert result.data.status == InvitationStatus.PENDING


@pytest.mark.parametrize(
    "data, error_type",
    [
        ({}, ErrorType.VALIDATION),
        ({"code": "other001"}, ErrorType.VALIDATION),
        ({"number_of_passes": 21}, ErrorType.VALIDATION),
        ({"number_of_passes": 0}, ErrorType.VALIDATION),
        ({"phone": "phone"}, ErrorType.VALIDATION),
        ({"guest_names": []}, ErrorType.VALIDATION),
        ({"confirmed_passes": 3}, ErrorType.BUSINESS_RULE),
        ({"guest_names": ["Eva"]}, ErrorType.BUSINESS_RULE),
        ({"table_number": 1, "number_of_passes": 3}, ErrorType.BUSINESS_RULE),
    ],
)
async def test_rejected_updates(seeded, write_model, data, error_type):
    """Test that rejected updates leave the invitation unchanged."""
    result = await write_model.update("code0003", data)

    assert not result.success
    assert result.error_type == error_type
    assert (await seeded.find_by_code("code0003")).confirmed_passes == 1


async def test_update_unknown_code(write_model):
    """Test updating an unknown invitation."""
    result = await write_model.update("missing1", {"phone": "600111222"})

    assert result.error_type == ErrorType.NOT_FOUND


async def test_growing_passes_checks_the_current_table(seeded, write_model):
    """Test adding passes at a nearly full table."""
    too_many = await write_model.update("code0001", {"number_of_passes": 7})
    fits = await write_model.update("code0001", {"number_of_passes": 6})

    assert too_many.error_type == ErrorType.BUSINESS_RULE
    assert fits.success


async def test_deactivate_and_restore(seeded, write_model):
    """Test deactivating and restoring an invitation."""
    deactivated = await write_model.deactivate("code0003", "planner", "Duplicated <b>invite</b>")

    assert deactivated.success
    assert deactivated.data.status == InvitationStatus.INACTIVE
    assert deactivated.data.cancellation_reason == "Duplicated binvite/b"
    assert await seeded.count() == 2

    again = await write_model.deactivate("code0003")
    assert again.error_type == ErrorType.BUSINESS_RULE

    restored = await write_model.restore("code0003")
    assert restored.data.status == InvitationStatus.PARTIAL
    assert restored.data.confirmed_passes == 1


async def test_restore_active_invitation_is_a_noop(seeded, write_model):
    """Test restoring an invitation that is active."""
    result = await write_model.restore("code0001")

    assert result.success
    assert result.data.status == InvitationStatus.PENDING


async def test_assign_table_respects_capacity(seeded, write_model):
    """Test seating an invitation at a table with room."""
    seated = await write_model.assign_table("code0003", 1)
    assert seated.success
    assert seated.message == "Assigned to table 1"

    extra = await write_model.update("code0002", {"number_of_passes": 5})
    assert extra.error_type == ErrorType.BUSINESS_RULE


async def test_assign_table_over_capacity(seeded, write_model, invitation_repository):
    """Test seating an invitation at a full table."""
    await invitation_repository.save(Invitation(["Sol"], 3, code="code0004"))

    result = await write_model.assign_table("code0004", 1)

    assert result.error_type == ErrorType.BUSINESS_RULE
    assert (await invitation_repository.find_by_code("code0004")).table_number is None


async def test_inactive_invitations_do_not_take_seats(seeded, write_model, invitation_repository):
    """Test that deactivated invitations free their seats."""
    await write_model.deactivate("code0002")
    await invitation_repository.save(Invitation(["Sol"], 5, code="code0004"))

    result = await write_model.assign_table("code0004", 1)

    assert result.success


async def test_clear_table(seeded, write_model):
    """Test clearing a table assignment."""
    result = await write_model.assign_table("code0001", None)

    assert result.data.table_number is None
    assert result.message == "Table assignment cleared"


async def test_update_passes(seeded, write_model):
    """Test changing the pass split."""
    ok = await write_model.update_passes("code0001", adult_passes=2, child_passes=1, staff_passes=1)
    wrong = await write_model.update_passes("code0001", adult_passes=2)

    assert ok.success
    assert (ok.data.adult_passes, ok.data.child_passes, ok.data.staff_passes) == (2, 1, 1)
    assert ok.data.passes_split_matches
    assert wrong.error_type == ErrorType.BUSINESS_RULE
