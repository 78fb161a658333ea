"""create_invitations_and_confirmations

Revision ID: 3f1c9a7d2b64
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "3f1c9a7d2b64"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "invitations",
        sa.Column("uuid", sa.UUID(), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("guest_names", sa.JSON(), nullable=False),
        sa.Column("number_of_passes", sa.Integer(), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("confirmed_passes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("confirmation_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("adult_passes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("child_passes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("staff_passes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("table_number", sa.Integer(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "partial",
                "confirmed",
                "cancelled",
                "inactive",
                name="invitation_status_enum",
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", sa.String(length=255), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("attending_names", sa.JSON(), nullable=False),
        sa.Column("dietary_restrictions_names", sa.Text(), nullable=False, server_default=""),
        sa.Column("dietary_restrictions_details", sa.Text(), nullable=False, server_default=""),
        sa.Column("general_message", sa.Text(), nullable=False, server_default=""),
        *_timestamps(),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_index("ix_invitations_code", "invitations", ["code"], unique=True)
    op.create_index("ix_invitations_table_number", "invitations", ["table_number"])
    op.create_index("ix_invitations_status", "invitations", ["status"])

    op.create_table(
        "confirmations",
        sa.Column("uuid", sa.UUID(), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("will_attend", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("attending_guests", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("attending_names", sa.JSON(), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("dietary_restrictions", sa.Text(), nullable=False, server_default=""),
        sa.Column("message", sa.Text(), nullable=False, server_default=""),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_index("ix_confirmations_code", "confirmations", ["code"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_confirmations_code", table_name="confirmations")
    op.drop_table("confirmations")
    op.drop_index("ix_invitations_status", table_name="invitations")
    op.drop_index("ix_invitations_table_number", table_name="invitations")
    op.drop_index("ix_invitations_code", table_name="invitations")
    op.drop_table("invitations")
    op.execute("DROP TYPE invitation_status_enum")
