from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime
from typing import Any

from src.invitations.domain.invitation import is_int, parse_datetime, utc_now
from src.invitations.errors import BusinessRuleViolation, ValidationError


def _clean_names(names: Any) -> tuple[str, ...]:
    if names is None:
        return ()
    if not isinstance(names, (list, tuple)):
        raise ValidationError("attending_names must be a list of names")
    if not all(isinstance(name, str) for name in names):
        raise ValidationError("attending_names must be a list of strings")
    return tuple(name.strip() for name in names if name.strip())


@dataclass(frozen=True)
class Confirmation:
    """A guest's RSVP for one invitation code."""

    code: str
    will_attend: bool = False
    attending_guests: int = 0
    attending_names: tuple[str, ...] = ()
    phone: str = ""
    dietary_restrictions: str = ""
    message: str = ""
    confirmed_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        set_ = object.__setattr__

        if not self.code or not isinstance(self.code, str):
            raise ValidationError("The invitation code is required")
        if not isinstance(self.will_attend, bool):
            raise ValidationError("will_attend must be a boolean")
        if not is_int(self.attending_guests) or self.attending_guests < 0:
            raise ValidationError("attending_guests must be a non-negative integer")

        set_(self, "attending_names", _clean_names(self.attending_names))

        for name in ("phone", "dietary_restrictions", "message"):
            value = getattr(self, name)
            if value is None:
                set_(self, name, "")
            elif not isinstance(value, str):
                raise ValidationError(f"{name} must be a string")

        set_(self, "confirmed_at", parse_datetime(self.confirmed_at, "confirmed_at") or utc_now())

        if not self.will_attend and self.attending_guests > 0:
            raise BusinessRuleViolation("A declined invitation cannot have attending guests")
        if len(self.attending_names) > self.attending_guests:
            raise BusinessRuleViolation(
                f"Cannot name more guests ({len(self.attending_names)}) "
                f"than are attending ({self.attending_guests})"
            )

    @classmethod
    def create_positive(
        cls,
        code: str,
        attending_guests: int,
        attending_names: list[str] | tuple[str, ...] = (),
        **kwargs: Any,
    ) -> "Confirmation":
        return cls(
            code=code,
            will_attend=True,
            attending_guests=attending_guests,
            attending_names=tuple(attending_names),
            **kwargs,
        )

    @classmethod
    def create_negative(cls, code: str, message: str = "", **kwargs: Any) -> "Confirmation":
        return cls(code=code, will_attend=False, attending_guests=0, message=message, **kwargs)

    # Updates

    def update_attendance(self, will_attend: bool) -> "Confirmation":
        if not isinstance(will_attend, bool):
            raise ValidationError("will_attend must be a boolean")
        if not will_attend:
            return replace(self, will_attend=False, attending_guests=0, attending_names=())
        return replace(self, will_attend=True)

    def update_attending_guests(self, attending_guests: int) -> "Confirmation":
        if not is_int(attending_guests) or attending_guests < 0:
            raise ValidationError("attending_guests must be a non-negative integer")
        if not self.will_attend and attending_guests > 0:
            raise BusinessRuleViolation("A declined invitation cannot have attending guests")
        return replace(
            self,
            attending_guests=attending_guests,
            attending_names=self.attending_names[:attending_guests],
        )

    def update_attending_names(self, attending_names: list[str] | tuple[str, ...]) -> "Confirmation":
        names = _clean_names(attending_names)
        if len(names) > self.attending_guests:
            raise BusinessRuleViolation(
                f"Cannot name more guests ({len(names)}) "
                f"than are attending ({self.attending_guests})"
            )
        return replace(self, attending_names=names)

    def update_phone(self, phone: str | None) -> "Confirmation":
        return replace(self, phone=phone or "")

    def update_dietary_restrictions(self, dietary_restrictions: str | None) -> "Confirmation":
        return replace(self, dietary_restrictions=dietary_restrictions or "")

    def update_message(self, message: str | None) -> "Confirmation":
        return replace(self, message=message or "")

    # Queries

    @property
    def is_positive(self) -> bool:
        return self.will_attend

    @property
    def is_negative(self) -> bool:
        return not self.will_attend

    @property
    def has_all_guest_names(self) -> bool:
        return len(self.attending_names) == self.attending_guests

    @property
    def has_dietary_restrictions(self) -> bool:
        return bool(self.dietary_restrictions.strip())

    @property
    def has_message(self) -> bool:
        return bool(self.message.strip())

    @property
    def has_phone(self) -> bool:
        return bool(self.phone.strip())

    @property
    def missing_names_count(self) -> int:
        return max(0, self.attending_guests - len(self.attending_names))

    @property
    def summary(self) -> str:
        if not self.will_attend:
            return "Will not attend"
        guests = "guest" if self.attending_guests == 1 else "guests"
        return f"Will attend with {self.attending_guests} {guests}"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["attending_names"] = list(self.attending_names)
        data["confirmed_at"] = self.confirmed_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Confirmation":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def __str__(self) -> str:
        return f"Confirmation({self.code}, {self.summary})"
