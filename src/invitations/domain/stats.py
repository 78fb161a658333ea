"""Pass accounting over a collection of invitations.

Everything here is a pure function of its input: the same set of invitations
always yields the same snapshot, whatever order it comes in.
"""

import math
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from typing import Any

from src.invitations.domain.confirmation import Confirmation
from src.invitations.domain.invitation import Invitation
from src.invitations.dtos import InvitationStatus

PASS_TYPES = ("adult_passes", "child_passes", "staff_passes")


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values, unlike ``round``."""
    return math.floor(value + 0.5)


def percentage(part: float, whole: float) -> int:
    if not whole:
        return 0
    return round_half_up(part / whole * 100)


@dataclass(frozen=True)
class PassDistribution:
    adults: int = 0
    children: int = 0
    staff: int = 0


@dataclass(frozen=True)
class InvitationStats:
    total: int = 0
    active: int = 0
    inactive: int = 0
    confirmed: int = 0
    partial: int = 0
    cancelled: int = 0
    pending: int = 0
    total_issued_passes: int = 0
    confirmed_passes: int = 0
    pending_passes: int = 0
    active_adult_passes: int = 0
    active_child_passes: int = 0
    active_staff_passes: int = 0
    total_active_passes: int = 0
    distribution_percentages: PassDistribution = field(default_factory=PassDistribution)
    confirmed_adult_passes: int = 0
    confirmed_child_passes: int = 0
    confirmed_staff_passes: int = 0
    occupied_passes: int = 0
    total_liberated_passes: int = 0
    liberated_by_cancel: int = 0
    liberated_by_inactive: int = 0
    liberated_by_partial: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ConfirmationStats:
    total: int = 0
    positive: int = 0
    negative: int = 0
    total_confirmed_guests: int = 0
    with_dietary_restrictions: int = 0
    with_messages: int = 0
    with_phone: int = 0
    average_guests_per_confirmation: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DashboardStats:
    invitations: dict[str, int]
    confirmations: dict[str, Any]
    pass_distribution: dict[str, Any]
    rates: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _scaled(invitation: Invitation, pass_type: str) -> int:
    ratio = invitation.confirmed_passes / invitation.number_of_passes
    return round_half_up(getattr(invitation, pass_type) * ratio)


def active_passes_by_type(invitations: Iterable[Invitation], pass_type: str) -> int:
    """Pending invitations count in full, confirmed ones by the confirmed share."""
    total = 0
    for invitation in invitations:
        if invitation.status == InvitationStatus.PENDING:
            total += getattr(invitation, pass_type)
        elif invitation.confirmed_passes > 0:
            total += _scaled(invitation, pass_type)
    return total


def confirmed_passes_by_type(invitations: Iterable[Invitation], pass_type: str) -> int:
    total = 0
    for invitation in invitations:
        if invitation.status == InvitationStatus.CONFIRMED:
            total += getattr(invitation, pass_type)
        elif invitation.status == InvitationStatus.PARTIAL and invitation.confirmed_passes > 0:
            total += _scaled(invitation, pass_type)
    return total


def compute_invitation_stats(invitations: Iterable[Invitation]) -> InvitationStats:
    invitations = list(invitations)
    active = [i for i in invitations if i.is_active]
    cancelled = [i for i in invitations if i.status == InvitationStatus.CANCELLED]
    inactive = [i for i in invitations if i.status == InvitationStatus.INACTIVE]
    confirmed = [i for i in active if i.status == InvitationStatus.CONFIRMED]
    partial = [i for i in active if i.status == InvitationStatus.PARTIAL]
    pending = [i for i in active if i.status == InvitationStatus.PENDING]

    pending_passes = sum(i.number_of_passes for i in pending)
    confirmed_passes = sum(i.confirmed_passes for i in active)
    # pending invitations optimistically occupy every pass
    occupied_passes = sum(i.confirmed_passes for i in confirmed + partial) + pending_passes
    total_active_passes = occupied_passes

    liberated_by_cancel = sum(i.number_of_passes for i in cancelled)
    liberated_by_inactive = sum(i.number_of_passes for i in inactive)
    liberated_by_partial = sum(i.number_of_passes - i.confirmed_passes for i in partial)

    active_adult, active_child, active_staff = (
        active_passes_by_type(active, pass_type) for pass_type in PASS_TYPES
    )
    confirmed_adult, confirmed_child, confirmed_staff = (
        confirmed_passes_by_type(active, pass_type) for pass_type in PASS_TYPES
    )

    return InvitationStats(
        total=len(active) + len(cancelled),
        active=len(active),
        inactive=len(inactive),
        confirmed=len(confirmed),
        partial=len(partial),
        cancelled=len(cancelled),
        pending=len(pending),
        total_issued_passes=sum(i.number_of_passes for i in active) + liberated_by_cancel,
        confirmed_passes=confirmed_passes,
        pending_passes=pending_passes,
        active_adult_passes=active_adult,
        active_child_passes=active_child,
        active_staff_passes=active_staff,
        total_active_passes=total_active_passes,
        distribution_percentages=PassDistribution(
            adults=percentage(active_adult, total_active_passes),
            children=percentage(active_child, total_active_passes),
            staff=percentage(active_staff, total_active_passes),
        ),
        confirmed_adult_passes=confirmed_adult,
        confirmed_child_passes=confirmed_child,
        confirmed_staff_passes=confirmed_staff,
        occupied_passes=occupied_passes,
        total_liberated_passes=liberated_by_cancel + liberated_by_partial,
        liberated_by_cancel=liberated_by_cancel,
        liberated_by_inactive=liberated_by_inactive,
        liberated_by_partial=liberated_by_partial,
    )


def compute_confirmation_stats(confirmations: Iterable[Confirmation]) -> ConfirmationStats:
    confirmations = list(confirmations)
    positive = [c for c in confirmations if c.is_positive]
    confirmed_guests = sum(c.attending_guests for c in positive)
    return ConfirmationStats(
        total=len(confirmations),
        positive=len(positive),
        negative=len(confirmations) - len(positive),
        total_confirmed_guests=confirmed_guests,
        with_dietary_restrictions=sum(1 for c in confirmations if c.has_dietary_restrictions),
        with_messages=sum(1 for c in confirmations if c.has_message),
        with_phone=sum(1 for c in confirmations if c.has_phone),
        average_guests_per_confirmation=confirmed_guests / len(positive) if positive else 0.0,
    )


def build_dashboard_stats(
    invitation_stats: InvitationStats,
    confirmation_stats: ConfirmationStats,
) -> DashboardStats:
    s = invitation_stats
    return DashboardStats(
        invitations={
            "total": s.total,
            "total_passes": s.total_issued_passes,
            # partial invitations count as confirmed here
            "confirmed": s.confirmed + s.partial,
            "pending": s.pending,
            "cancelled": s.cancelled,
            "inactive": s.inactive,
        },
        confirmations={
            "total_confirmed_guests": s.confirmed_passes,
            "pending_passes": s.pending_passes,
            "by_type": {
                "adults": s.confirmed_adult_passes,
                "children": s.confirmed_child_passes,
                "staff": s.confirmed_staff_passes,
            },
            "with_dietary_restrictions": confirmation_stats.with_dietary_restrictions,
            "with_messages": confirmation_stats.with_messages,
            "with_phone": confirmation_stats.with_phone,
        },
        pass_distribution={
            "active_adult_passes": s.active_adult_passes,
            "active_child_passes": s.active_child_passes,
            "active_staff_passes": s.active_staff_passes,
            "total_active_passes": s.total_active_passes,
            "distribution_percentages": asdict(s.distribution_percentages),
        },
        rates={
            "confirmation_rate": percentage(s.confirmed + s.partial, s.total),
            "attendance_rate": percentage(s.confirmed_passes, s.total_active_passes),
        },
    )
