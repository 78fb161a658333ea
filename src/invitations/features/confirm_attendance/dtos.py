"""DTOs for the confirm attendance feature."""

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt


class ConfirmAttendanceRequest(BaseModel):
    """An RSVP as submitted by a guest."""

    model_config = ConfigDict(str_strip_whitespace=True)

    will_attend: StrictBool
    attending_guests: StrictInt = Field(default=0, ge=0)
    attending_names: list[str] = Field(default_factory=list)
    phone: str | None = None
    dietary_restrictions: str | None = None
    dietary_restrictions_details: str | None = None
    message: str | None = None


class UpdateConfirmationRequest(BaseModel):
    """Partial update of an existing RSVP. Unset fields are left alone."""

    model_config = ConfigDict(str_strip_whitespace=True)

    will_attend: StrictBool | None = None
    attending_guests: StrictInt | None = Field(default=None, ge=0)
    attending_names: list[str] | None = None
    phone: str | None = None
    dietary_restrictions: str | None = None
    dietary_restrictions_details: str | None = None
    message: str | None = None
