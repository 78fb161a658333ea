"""DTOs for the manage invitation feature."""

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from src.invitations.dtos import InvitationStatus


class UpdateInvitationRequest(BaseModel):
    """Admin edit. Only the fields that are set are applied."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    guest_names: list[str] | str | None = None
    number_of_passes: StrictInt | None = Field(default=None, ge=1)
    phone: str | None = None
    table_number: StrictInt | None = Field(default=None, ge=1)
    adult_passes: StrictInt | None = Field(default=None, ge=0)
    child_passes: StrictInt | None = Field(default=None, ge=0)
    staff_passes: StrictInt | None = Field(default=None, ge=0)
    confirmed_passes: StrictInt | None = Field(default=None, ge=0)
    status: InvitationStatus | None = None
    attending_names: list[str] | None = None
    dietary_restrictions_names: str | None = None
    dietary_restrictions_details: str | None = None
    general_message: str | None = None
