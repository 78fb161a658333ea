"""Invitation entity.

An invitation is issued to a household and carries a number of passes split
into adult, child and staff passes. The entity is immutable: every transition
validates and returns a new ``Invitation`` or raises without touching the
original.
"""

import logging
import re
import secrets
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import UTC, datetime
from typing import Any

from src.invitations.dtos import (
    CONFIRMED_STATUSES,
    INACTIVE_STATUSES,
    InvitationStatus,
)
from src.invitations.errors import BusinessRuleViolation, ValidationError

logger = logging.getLogger(__name__)

MAX_PASSES_PER_INVITATION = 20
GUEST_NAMES_SEPARATOR = " y "

_GUEST_NAMES_SPLIT = re.compile(r"\s+y\s+|,", re.IGNORECASE)


def utc_now() -> datetime:
    return datetime.now(UTC)


def generate_code() -> str:
    """Random 8 character hex code. Uniqueness is checked by the repository."""
    return secrets.token_hex(4)


def is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_guest_names(value: Any) -> tuple[str, ...]:
    """Turn a list of names or a "Ana y Luis, Eva" string into a tuple of names."""
    if isinstance(value, str):
        parts = _GUEST_NAMES_SPLIT.split(value)
    elif isinstance(value, (list, tuple)):
        parts = list(value)
    else:
        raise ValidationError("guest_names must be a list of names or a string")

    names = []
    for part in parts:
        if not isinstance(part, str):
            raise ValidationError("Every guest name must be a string")
        if part.strip():
            names.append(part.strip())
    return tuple(names)


def parse_datetime(value: Any, field_name: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            raise ValidationError(f"{field_name} must be an ISO 8601 datetime")
    if not isinstance(value, datetime):
        raise ValidationError(f"{field_name} must be a datetime")
    if value.tzinfo is None:
        # naive values are stored in UTC
        value = value.replace(tzinfo=UTC)
    return value


def derive_status(confirmed_passes: int, number_of_passes: int) -> InvitationStatus:
    if confirmed_passes == 0:
        return InvitationStatus.CANCELLED
    if confirmed_passes < number_of_passes:
        return InvitationStatus.PARTIAL
    return InvitationStatus.CONFIRMED


def reactivated_status(confirmed_passes: int, number_of_passes: int) -> InvitationStatus:
    if confirmed_passes > 0:
        return derive_status(confirmed_passes, number_of_passes)
    return InvitationStatus.PENDING


@dataclass(frozen=True)
class Invitation:
    guest_names: tuple[str, ...]
    number_of_passes: int
    code: str | None = None
    phone: str = ""
    created_at: datetime = field(default_factory=utc_now)
    confirmed_passes: int = 0
    confirmation_date: datetime | None = None
    # None means "all adults"
    adult_passes: int | None = None
    child_passes: int = 0
    staff_passes: int = 0
    table_number: int | None = None
    status: InvitationStatus = InvitationStatus.PENDING
    cancelled_at: datetime | None = None
    cancelled_by: str | None = None
    cancellation_reason: str | None = None
    attending_names: tuple[str, ...] = ()
    dietary_restrictions_names: str = ""
    dietary_restrictions_details: str = ""
    general_message: str = ""

    def __post_init__(self) -> None:
        set_ = object.__setattr__

        if not self.code:
            set_(self, "code", generate_code())
        elif not isinstance(self.code, str):
            raise ValidationError("code must be a string")

        guest_names = parse_guest_names(self.guest_names)
        if not guest_names:
            raise ValidationError("At least one guest name is required")
        set_(self, "guest_names", guest_names)

        if not is_int(self.number_of_passes) or self.number_of_passes <= 0:
            raise ValidationError("number_of_passes must be a positive integer")
        if self.number_of_passes > MAX_PASSES_PER_INVITATION:
            raise ValidationError(
                f"An invitation can have at most {MAX_PASSES_PER_INVITATION} passes"
            )

        if self.phone is None:
            set_(self, "phone", "")
        elif not isinstance(self.phone, str):
            raise ValidationError("phone must be a string")

        if self.adult_passes is None:
            set_(self, "adult_passes", self.number_of_passes)
        for name in ("confirmed_passes", "adult_passes", "child_passes", "staff_passes"):
            value = getattr(self, name)
            if value is None:
                value = 0
                set_(self, name, value)
            if not is_int(value) or value < 0:
                raise ValidationError(f"{name} must be a non-negative integer")

        if self.table_number is not None and (
            not is_int(self.table_number) or self.table_number <= 0
        ):
            raise ValidationError("table_number must be a positive integer")

        try:
            set_(self, "status", InvitationStatus(self.status))
        except ValueError:
            raise ValidationError(f"Unknown invitation status '{self.status}'")

        set_(self, "created_at", parse_datetime(self.created_at, "created_at") or utc_now())
        for name in ("confirmation_date", "cancelled_at"):
            set_(self, name, parse_datetime(getattr(self, name), name))

        attending_names = self.attending_names
        if attending_names is None:
            attending_names = ()
        elif isinstance(attending_names, str):
            attending_names = (attending_names,)
        if not all(isinstance(name, str) for name in attending_names):
            raise ValidationError("attending_names must be a list of strings")
        set_(self, "attending_names", tuple(n.strip() for n in attending_names if n.strip()))

        for name in (
            "dietary_restrictions_names",
            "dietary_restrictions_details",
            "general_message",
        ):
            value = getattr(self, name)
            if value is None:
                set_(self, name, "")
            elif not isinstance(value, str):
                raise ValidationError(f"{name} must be a string")

        if self.confirmed_passes > self.number_of_passes:
            raise BusinessRuleViolation(
                f"Confirmed passes ({self.confirmed_passes}) cannot exceed "
                f"the total number of passes ({self.number_of_passes})"
            )

        if not self.passes_split_matches:
            # legacy records can be inconsistent; keep the data as it is
            logger.warning(
                f"Pass split ({self.adult_passes} adult + {self.child_passes} child + "
                f"{self.staff_passes} staff = {self.split_total}) does not match "
                f"number_of_passes ({self.number_of_passes}) for invitation {self.code}"
            )

    @classmethod
    def create(
        cls,
        guest_names: list[str] | tuple[str, ...] | str,
        number_of_passes: int,
        **kwargs: Any,
    ) -> "Invitation":
        return cls(guest_names=guest_names, number_of_passes=number_of_passes, **kwargs)

    # Queries

    @property
    def split_total(self) -> int:
        return self.adult_passes + self.child_passes + self.staff_passes

    @property
    def passes_split_matches(self) -> bool:
        return self.split_total == self.number_of_passes

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_STATUSES

    @property
    def is_confirmed(self) -> bool:
        return self.status in CONFIRMED_STATUSES

    @property
    def is_fully_confirmed(self) -> bool:
        return (
            self.status == InvitationStatus.CONFIRMED
            and self.confirmed_passes == self.number_of_passes
        )

    @property
    def pending_passes(self) -> int:
        return self.number_of_passes - self.confirmed_passes

    @property
    def primary_guest_name(self) -> str:
        return self.guest_names[0]

    @property
    def guest_names_string(self) -> str:
        return GUEST_NAMES_SEPARATOR.join(self.guest_names)

    @property
    def attending_names_string(self) -> str:
        if self.attending_names:
            return GUEST_NAMES_SEPARATOR.join(self.attending_names)
        return self.guest_names_string

    @property
    def has_dietary_restrictions(self) -> bool:
        return bool(self.dietary_restrictions_names or self.dietary_restrictions_details)

    @property
    def dietary_restrictions_info(self) -> dict[str, Any]:
        if self.has_dietary_restrictions:
            summary = f"{self.dietary_restrictions_names}: {self.dietary_restrictions_details}"
            summary = summary.strip(" :")
        else:
            summary = "No restrictions"
        return {
            "has_restrictions": self.has_dietary_restrictions,
            "names": self.dietary_restrictions_names,
            "details": self.dietary_restrictions_details,
            "summary": summary,
        }

    # Transitions

    def confirm(self, attending_guests: int) -> "Invitation":
        if self.is_confirmed:
            raise BusinessRuleViolation("Invitation already confirmed")
        if self.status == InvitationStatus.INACTIVE:
            raise BusinessRuleViolation("Cannot confirm an inactive invitation")
        if not is_int(attending_guests) or attending_guests < 0:
            raise ValidationError("attending_guests must be a non-negative integer")
        if attending_guests > self.number_of_passes:
            raise BusinessRuleViolation(f"Only {self.number_of_passes} passes are available")

        return replace(
            self,
            confirmed_passes=attending_guests,
            confirmation_date=utc_now(),
            status=derive_status(attending_guests, self.number_of_passes),
        )

    def unconfirm(self) -> "Invitation":
        """Back to pending, dropping the confirmation snapshot."""
        if self.status == InvitationStatus.INACTIVE:
            raise BusinessRuleViolation(
                "Cannot cancel the confirmation of an inactive invitation"
            )
        return replace(
            self,
            status=InvitationStatus.PENDING,
            confirmed_passes=0,
            confirmation_date=None,
            attending_names=(),
            dietary_restrictions_names="",
            dietary_restrictions_details="",
            general_message="",
        )

    def deactivate(self, cancelled_by: str = "admin", reason: str = "") -> "Invitation":
        if self.status == InvitationStatus.INACTIVE:
            raise BusinessRuleViolation("Invitation is already inactive")
        return replace(
            self,
            status=InvitationStatus.INACTIVE,
            cancelled_at=utc_now(),
            cancelled_by=cancelled_by,
            cancellation_reason=reason,
        )

    def activate(self) -> "Invitation":
        if self.status not in INACTIVE_STATUSES:
            return self
        return replace(
            self,
            cancelled_at=None,
            cancelled_by=None,
            cancellation_reason=None,
            status=reactivated_status(self.confirmed_passes, self.number_of_passes),
        )

    def assign_table(self, table_number: int | None) -> "Invitation":
        if table_number is not None and (not is_int(table_number) or table_number <= 0):
            raise ValidationError("table_number must be a positive integer")
        return replace(self, table_number=table_number)

    def update_passes(
        self,
        adult_passes: int | None = 0,
        child_passes: int | None = 0,
        staff_passes: int | None = 0,
    ) -> "Invitation":
        counts = [adult_passes or 0, child_passes or 0, staff_passes or 0]
        if not all(is_int(count) and count >= 0 for count in counts):
            raise ValidationError("Pass counts must be non-negative integers")
        total = sum(counts)
        if total != self.number_of_passes:
            raise BusinessRuleViolation(
                f"The pass split ({total}) must match the total ({self.number_of_passes})"
            )
        adult, child, staff = counts
        return replace(self, adult_passes=adult, child_passes=child, staff_passes=staff)

    def update_confirmation_details(
        self,
        attending_names: list[str] | tuple[str, ...] | None = None,
        dietary_restrictions_names: str | None = None,
        dietary_restrictions_details: str | None = None,
        general_message: str | None = None,
    ) -> "Invitation":
        changes: dict[str, Any] = {}
        if attending_names is not None:
            changes["attending_names"] = tuple(attending_names)
        if dietary_restrictions_names is not None:
            changes["dietary_restrictions_names"] = dietary_restrictions_names
        if dietary_restrictions_details is not None:
            changes["dietary_restrictions_details"] = dietary_restrictions_details
        if general_message is not None:
            changes["general_message"] = general_message
        return replace(self, **changes) if changes else self

    def update(self, **changes: Any) -> "Invitation":
        """Apply an admin edit.

        Changing ``confirmed_passes`` without an explicit ``status`` re-derives
        the status, unless the invitation is inactive.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        if "confirmed_passes" in changes and "status" not in changes:
            confirmed = changes["confirmed_passes"]
            if not is_int(confirmed) or confirmed < 0:
                raise ValidationError("confirmed_passes must be a non-negative integer")
            if self.status != InvitationStatus.INACTIVE:
                total = changes.get("number_of_passes", self.number_of_passes)
                if is_int(total) and total > 0:
                    changes["status"] = derive_status(confirmed, total)

        return replace(self, **changes)

    # Serialisation

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["guest_names"] = list(self.guest_names)
        data["attending_names"] = list(self.attending_names)
        data["status"] = self.status.value
        for name in ("created_at", "confirmation_date", "cancelled_at"):
            value = getattr(self, name)
            data[name] = value.isoformat() if value else None
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Invitation":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def __str__(self) -> str:
        return f"Invitation({self.code}, {self.guest_names_string}, {self.number_of_passes} passes)"


UPDATABLE_FIELDS = frozenset(f.name for f in fields(Invitation)) - {"code", "created_at"}
