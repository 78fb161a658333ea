from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.config.table_names import TableNames
from src.invitations.dtos import InvitationStatus
from src.models.base import Record


class InvitationRecord(Record):
    __tablename__ = TableNames.INVITATIONS.value

    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    guest_names: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    number_of_passes: Mapped[int] = mapped_column(Integer, nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False, default="")

    confirmed_passes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    confirmation_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    adult_passes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    child_passes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    staff_passes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    table_number: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    status: Mapped[str] = mapped_column(
        Enum(
            InvitationStatus,
            name="invitation_status_enum",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=InvitationStatus.PENDING,
        nullable=False,
        index=True,
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    attending_names: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    dietary_restrictions_names: Mapped[str] = mapped_column(Text, nullable=False, default="")
    dietary_restrictions_details: Mapped[str] = mapped_column(Text, nullable=False, default="")
    general_message: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def __repr__(self) -> str:
        return f"<Invitation {self.code}>"


class ConfirmationRecord(Record):
    __tablename__ = TableNames.CONFIRMATIONS.value

    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    will_attend: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attending_guests: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    attending_names: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    phone: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    dietary_restrictions: Mapped[str] = mapped_column(Text, nullable=False, default="")
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    confirmed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<Confirmation {self.code} attend={self.will_attend}>"
