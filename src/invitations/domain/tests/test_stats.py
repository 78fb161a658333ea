"""Tests for the pass accounting aggregator."""

import random

from src.invitations.domain.confirmation import Confirmation
from src.invitations.domain.invitation import Invitation
from src.invitations.domain.stats import (
    InvitationStats,
    PassDistribution,
    build_dashboard_stats,
    compute_confirmation_stats,
    compute_invitation_stats,
    round_half_up,
)


def wedding() -> list[Invitation]:
    pending = Invitation(["Ana", "Luis"], 4, code="pend0001", adult_passes=2, child_passes=2)
    confirmed = Invitation(["Eva"], 2, code="conf0001").confirm(2)
    partial = Invitation(["Leo"], 4, code="part0001", adult_passes=3, child_passes=1).confirm(2)
    cancelled = Invitation(["Sol"], 3, code="canc0001").confirm(0)
    inactive = Invitation(["Mar"], 5, code="inac0001").confirm(5).deactivate()
    return [pending, confirmed, partial, cancelled, inactive]


def test_round_half_up():
    """Test rounding halves away from zero."""
    assert round_half_up(0.5) == 1
    assert round_half_up(1.5) == 2
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_empty_collection_is_all_zeros():
    """Test stats over no invitations."""
    stats = compute_invitation_stats([])

    assert stats == InvitationStats()
    assert stats.distribution_percentages == PassDistribution(0, 0, 0)


def test_counts_and_pass_totals():
    """Test status counts and pass totals."""
    stats = compute_invitation_stats(wedding())

    assert (stats.total, stats.active, stats.inactive) == (4, 3, 1)
    assert (stats.confirmed, stats.partial, stats.pending, stats.cancelled) == (1, 1, 1, 1)
    assert stats.total_issued_passes == 13
    assert stats.confirmed_passes == 4
    assert stats.pending_passes == 4
    assert stats.occupied_passes == 8
    assert stats.total_active_passes == 8


def test_liberated_passes():
    """Test passes freed by declines."""
    stats = compute_invitation_stats(wedding())

    assert stats.liberated_by_cancel == 3
    assert stats.liberated_by_inactive == 5
    assert stats.liberated_by_partial == 2
    assert stats.total_liberated_passes == 5


def test_per_type_breakdown_scales_confirmed_share_and_rounds_half_up():
    """Test the adult, child and staff breakdown of confirmed passes."""
    stats = compute_invitation_stats(wedding())

    # partial 2 of 4: 3 adults -> 1.5 -> 2, 1 child -> 0.5 -> 1
    assert (stats.active_adult_passes, stats.active_child_passes, stats.active_staff_passes) == (
        6,
        3,
        0,
    )
    assert (
        stats.confirmed_adult_passes,
        stats.confirmed_child_passes,
        stats.confirmed_staff_passes,
    ) == (4, 1, 0)
    assert stats.distribution_percentages == PassDistribution(adults=75, children=38, staff=0)


def test_stats_do_not_depend_on_order():
    """Test that invitation order does not change the stats."""
    invitations = wedding()
    shuffled = invitations[:]
    random.Random(7).shuffle(shuffled)

    assert compute_invitation_stats(shuffled) == compute_invitation_stats(invitations)


def test_inconsistent_pass_split_does_not_break_stats():
    """Test stats over an invitation whose split does not add up."""
    invitation = Invitation(["Ana"], 5, adult_passes=2, child_passes=1, staff_passes=1)

    stats = compute_invitation_stats([invitation])

    assert stats.total_active_passes == 5
    assert stats.active_adult_passes + stats.active_child_passes + stats.active_staff_passes == 4


def test_deactivated_confirmed_invitation_is_excluded_from_totals():
    """Test that deactivated invitations only count as inactive."""
    invitation = Invitation(["Ana", "Luis"], 2).confirm(2)
    before = compute_invitation_stats([invitation])

    after = compute_invitation_stats([invitation.deactivate()])

    assert before.total_issued_passes == 2
    assert before.occupied_passes == 2
    assert after.total_issued_passes == 0
    assert after.occupied_passes == 0
    assert after.inactive == 1
    assert after.liberated_by_inactive == 2


def test_confirmation_stats():
    """Test the confirmation counters."""
    confirmations = [
        Confirmation.create_positive("a0000001", 2, dietary_restrictions="Vegan", phone="600"),
        Confirmation.create_positive("a0000002", 1, message="¡Enhorabuena!"),
        Confirmation.create_negative("a0000003", "Lo sentimos"),
    ]

    stats = compute_confirmation_stats(confirmations)

    assert (stats.total, stats.positive, stats.negative) == (3, 2, 1)
    assert stats.total_confirmed_guests == 3
    assert stats.with_dietary_restrictions == 1
    assert stats.with_messages == 2
    assert stats.with_phone == 1
    assert stats.average_guests_per_confirmation == 1.5
    assert compute_confirmation_stats([]).average_guests_per_confirmation == 0.0


def test_dashboard_rates():
    """Test the dashboard percentages."""
    dashboard = build_dashboard_stats(
        compute_invitation_stats(wedding()), compute_confirmation_stats([])
    )

    assert dashboard.invitations["confirmed"] == 2
    assert dashboard.invitations["total_passes"] == 13
    assert dashboard.rates == {"confirmation_rate": 50, "attendance_rate": 50}
    assert dashboard.pass_distribution["distribution_percentages"] == {
        "adults": 75,
        "children": 38,
        "staff": 0,
    }


def test_dashboard_rates_on_empty_data_are_zero():
    """Test dashboard percentages with no data."""
    dashboard = build_dashboard_stats(compute_invitation_stats([]), compute_confirmation_stats([]))

    assert dashboard.rates == {"confirmation_rate": 0, "attendance_rate": 0}
