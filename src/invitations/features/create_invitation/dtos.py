"""DTOs for the create invitation feature."""

from pydantic import BaseModel, ConfigDict, Field, StrictInt


class CreateInvitationRequest(BaseModel):
    """Raw input for one invitation.

    ``guest_names`` may be a list or a single "Ana y Luis" string.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    guest_names: list[str] | str
    number_of_passes: StrictInt = Field(ge=1)
    code: str | None = None
    phone: str | None = None
    adult_passes: StrictInt | None = Field(default=None, ge=0)
    child_passes: StrictInt | None = Field(default=None, ge=0)
    staff_passes: StrictInt | None = Field(default=None, ge=0)
    table_number: StrictInt | None = Field(default=None, ge=1)
