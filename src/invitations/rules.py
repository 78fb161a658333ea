"""Cross-invitation checks shared by the create and manage use cases."""

from collections.abc import Iterable

from src.invitations.domain.invitation import Invitation
from src.invitations.errors import BusinessRuleViolation
from src.invitations.repository.base import InvitationRepository


def guest_name_key(guest_names: Iterable[str]) -> frozenset[str]:
    """Order and case do not matter when comparing guest lists."""
    return frozenset(name.strip().lower() for name in guest_names)


async def find_duplicate(
    repository: InvitationRepository,
    guest_names: tuple[str, ...],
    exclude_code: str | None = None,
) -> Invitation | None:
    key = guest_name_key(guest_names)
    for candidate in await repository.find_by_guest_name(guest_names[0]):
        if exclude_code and candidate.code.lower() == exclude_code.lower():
            continue
        if candidate.is_active and guest_name_key(candidate.guest_names) == key:
            return candidate
    return None


async def ensure_unique_guests(
    repository: InvitationRepository,
    guest_names: tuple[str, ...],
    exclude_code: str | None = None,
) -> None:
    duplicate = await find_duplicate(repository, guest_names, exclude_code)
    if duplicate:
        raise BusinessRuleViolation(
            f"An active invitation already exists for these guests (code {duplicate.code})"
        )


async def ensure_table_capacity(
    repository: InvitationRepository,
    table_number: int | None,
    number_of_passes: int,
    max_passes_per_table: int | None,
    exclude_code: str | None = None,
    pending: Iterable[Invitation] = (),
) -> None:
    """Raise when seating ``number_of_passes`` more would overflow the table.

    ``pending`` holds invitations accepted earlier in the same batch but not
    stored yet.
    """
    if table_number is None or max_passes_per_table is None:
        return
    seated = [
        invitation
        for invitation in [*await repository.find_by_table(table_number), *pending]
        if invitation.is_active
        and invitation.table_number == table_number
        and not (exclude_code and invitation.code.lower() == exclude_code.lower())
    ]
    occupied = sum(invitation.number_of_passes for invitation in seated)
    if occupied + number_of_passes > max_passes_per_table:
        raise BusinessRuleViolation(
            f"Table {table_number} has {max_passes_per_table - occupied} free passes "
            f"left, {number_of_passes} requested"
        )
