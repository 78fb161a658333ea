"""CLI commands for wedding RSVP management."""

import asyncio
import json
from pathlib import Path

import sentry_sdk
import typer

from src.config.database import run_migrations
from src.config.logging import setup_logging
from src.config.settings import settings
from src.invitations.dtos import ExportFormat, InvitationFilters, OperationResult, PaginationParams
from src.invitations.features.confirm_attendance.write_model import ConfirmAttendanceWriteModel
from src.invitations.features.create_invitation.write_model import CreateInvitationWriteModel
from src.invitations.features.get_invitation.read_model import InvitationReadModel
from src.invitations.features.get_stats.read_model import ConfirmationStatsReadModel
from src.invitations.features.manage_invitation.write_model import ManageInvitationWriteModel
from src.invitations.notifications import HttpNotificationPublisher, get_notification_publisher
from src.invitations.repository.sql import SqlConfirmationRepository, SqlInvitationRepository

app = typer.Typer(help="CLI commands for wedding RSVP management")


@app.callback()
def main():
    setup_logging()
    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            profiles_sample_rate=settings.SENTRY_PROFILES_SAMPLE_RATE,
            send_default_pii=False,
        )


def _report(result: OperationResult) -> None:
    """Print the outcome of a use case, exiting non-zero on failure."""
    if result.success:
        typer.secho(result.message, fg=typer.colors.GREEN)
        return
    typer.secho(f"{result.message}: {result.error}", fg=typer.colors.RED)
    raise typer.Exit(1)


def _show_invitation(invitation) -> None:
    typer.secho(f"  Code: {invitation.code}", fg=typer.colors.CYAN)
    typer.secho(f"  Guests: {invitation.guest_names_string}", fg=typer.colors.BLUE)
    typer.secho(
        f"  Passes: {invitation.confirmed_passes}/{invitation.number_of_passes} "
        f"({invitation.adult_passes} adult, {invitation.child_passes} child, "
        f"{invitation.staff_passes} staff)",
        fg=typer.colors.BLUE,
    )
    typer.secho(f"  Status: {invitation.status.value}", fg=typer.colors.MAGENTA)
    if invitation.table_number:
        typer.secho(f"  Table: {invitation.table_number}", fg=typer.colors.BLUE)


@app.command()
def migrate():
    """Apply database migrations."""
    asyncio.run(run_migrations())
    typer.secho("Database is up to date", fg=typer.colors.GREEN)


@app.command()
def create_invitation(
    guest_names: list[str] = typer.Argument(
        ...,
        help="Guest names, one per argument",
    ),
    passes: int = typer.Option(
        ...,
        "--passes",
        "-p",
        help="Number of passes",
    ),
    children: int = typer.Option(
        0,
        "--children",
        help="How many of the passes are for children",
    ),
    staff: int = typer.Option(
        0,
        "--staff",
        help="How many of the passes are for staff",
    ),
    phone: str = typer.Option(
        None,
        "--phone",
        help="Contact phone number",
    ),
    table: int = typer.Option(
        None,
        "--table",
        "-t",
        help="Table number",
    ),
    code: str = typer.Option(
        None,
        "--code",
        "-c",
        help="Invitation code, generated when omitted",
    ),
):
    """Create a single invitation."""
    data = {
        "guest_names": guest_names,
        "number_of_passes": passes,
        "phone": phone,
        "table_number": table,
        "code": code,
    }
    if children or staff:
        data.update(
            adult_passes=passes - children - staff, child_passes=children, staff_passes=staff
        )

    result = asyncio.run(CreateInvitationWriteModel(SqlInvitationRepository()).execute(data))
    _report(result)
    _show_invitation(result.data)


@app.command()
def import_invitations(
    path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="JSON file holding a list of invitations",
    ),
):
    """Create invitations in bulk from a JSON file."""
    try:
        items = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        typer.secho(f"Invalid JSON in {path}: {e}", fg=typer.colors.RED)
        raise typer.Exit(1)
    if not isinstance(items, list):
        typer.secho("The file must contain a JSON list", fg=typer.colors.RED)
        raise typer.Exit(1)

    result = asyncio.run(CreateInvitationWriteModel(SqlInvitationRepository()).execute_batch(items))
    if result.data is None:
        _report(result)

    color = typer.colors.GREEN if result.success else typer.colors.YELLOW
    typer.secho(result.message, fg=color)
    for item in result.data.created:
        typer.secho(
            f"  [{item.index}] {item.invitation.code} {item.invitation.guest_names_string}",
            fg=typer.colors.BLUE,
        )
    for error in result.data.errors:
        typer.secho(f"  [{error.index}] {error.error}", fg=typer.colors.RED)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def show(
    code: str = typer.Argument(
        ...,
        help="Invitation code",
    ),
):
    """Show an invitation."""
    result = asyncio.run(InvitationReadModel(SqlInvitationRepository()).get(code))
    _report(result)
    _show_invitation(result.data)


@app.command(name="list")
def list_invitations(
    search: str = typer.Option(
        None,
        "--search",
        "-s",
        help="Part of a guest name",
    ),
    page: int = typer.Option(1, "--page"),
    limit: int = typer.Option(20, "--limit"),
    include_inactive: bool = typer.Option(
        False,
        "--include-inactive",
        help="Also list deactivated invitations",
    ),
):
    """List invitations, newest first."""
    result = asyncio.run(
        InvitationReadModel(SqlInvitationRepository()).list_invitations(
            InvitationFilters(search=search),
            PaginationParams(page=page, limit=limit),
            include_inactive,
        )
    )
    _report(result)
    for invitation in result.data.items:
        typer.secho(
            f"  {invitation.code}  {invitation.status.value:<9}  "
            f"{invitation.confirmed_passes}/{invitation.number_of_passes}  "
            f"{invitation.guest_names_string}",
            fg=typer.colors.BLUE,
        )
    typer.secho(f"Page {result.data.page} of {result.data.total_pages}", fg=typer.colors.CYAN)


async def _confirm(code: str, data: dict):
    publisher = get_notification_publisher()
    write_model = ConfirmAttendanceWriteModel(
        SqlInvitationRepository(), SqlConfirmationRepository(), publisher=publisher
    )
    result = await write_model.execute(code, data)
    if isinstance(publisher, HttpNotificationPublisher):
        await publisher.drain()
    return result


@app.command()
def confirm(
    code: str = typer.Argument(
        ...,
        help="Invitation code",
    ),
    guests: int = typer.Option(
        0,
        "--guests",
        "-g",
        help="Number of attending guests, 0 to decline",
    ),
    names: list[str] = typer.Option(
        [],
        "--name",
        "-n",
        help="Name of an attending guest",
    ),
    dietary: str = typer.Option(
        None,
        "--dietary",
        help="Dietary restrictions",
    ),
    message: str = typer.Option(
        None,
        "--message",
        "-m",
        help="Message for the couple",
    ),
    phone: str = typer.Option(None, "--phone"),
):
    """Register an RSVP for an invitation."""
    data = {
        "will_attend": guests > 0,
        "attending_guests": guests,
        "attending_names": names,
        "dietary_restrictions": dietary,
        "message": message,
        "phone": phone,
    }
    result = asyncio.run(_confirm(code, data))
    _report(result)
    _show_invitation(result.data.invitation)


@app.command()
def cancel_confirmation(
    code: str = typer.Argument(
        ...,
        help="Invitation code",
    ),
    reason: str = typer.Option("", "--reason", "-r"),
):
    """Withdraw an RSVP and put the invitation back to pending."""
    write_model = ConfirmAttendanceWriteModel(
        SqlInvitationRepository(), SqlConfirmationRepository()
    )
    _report(asyncio.run(write_model.cancel_confirmation(code, reason)))


@app.command()
def deactivate(
    code: str = typer.Argument(
        ...,
        help="Invitation code",
    ),
    reason: str = typer.Option("", "--reason", "-r"),
    by: str = typer.Option("admin", "--by", help="Who deactivates the invitation"),
):
    """Deactivate an invitation. It is kept and can be restored."""
    write_model = ManageInvitationWriteModel(SqlInvitationRepository())
    _report(asyncio.run(write_model.deactivate(code, by, reason)))


@app.command()
def restore(
    code: str = typer.Argument(
        ...,
        help="Invitation code",
    ),
):
    """Reactivate a deactivated invitation."""
    write_model = ManageInvitationWriteModel(SqlInvitationRepository())
    result = asyncio.run(write_model.restore(code))
    _report(result)
    _show_invitation(result.data)


@app.command()
def assign_table(
    code: str = typer.Argument(
        ...,
        help="Invitation code",
    ),
    table: int = typer.Argument(
        None,
        help="Table number, omit to clear the assignment",
    ),
):
    """Seat an invitation at a table."""
    write_model = ManageInvitationWriteModel(SqlInvitationRepository())
    _report(asyncio.run(write_model.assign_table(code, table)))


@app.command()
def stats():
    """Show the RSVP dashboard."""
    read_model = ConfirmationStatsReadModel(SqlConfirmationRepository(), SqlInvitationRepository())
    result = asyncio.run(read_model.execute())
    _report(result)

    dashboard = result.data
    typer.echo()
    typer.secho("Invitations", fg=typer.colors.GREEN)
    for key, value in dashboard.invitations.items():
        typer.secho(f"  {key}: {value}", fg=typer.colors.BLUE)
    typer.secho("Confirmations", fg=typer.colors.GREEN)
    for key, value in dashboard.confirmations.items():
        typer.secho(f"  {key}: {value}", fg=typer.colors.BLUE)
    typer.secho("Passes", fg=typer.colors.GREEN)
    for key, value in dashboard.pass_distribution.items():
        typer.secho(f"  {key}: {value}", fg=typer.colors.BLUE)
    typer.secho(
        f"Confirmation rate {dashboard.rates['confirmation_rate']}%, "
        f"attendance rate {dashboard.rates['attendance_rate']}%",
        fg=typer.colors.MAGENTA,
    )


@app.command()
def export(
    what: str = typer.Argument(
        "invitations",
        help="invitations or confirmations",
    ),
    export_format: ExportFormat = typer.Option(
        ExportFormat.JSON,
        "--format",
        "-f",
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="File to write, stdout when omitted",
    ),
):
    """Export invitations or confirmations as JSON or CSV."""
    if what == "invitations":
        read_model = InvitationReadModel(SqlInvitationRepository())
    elif what == "confirmations":
        read_model = ConfirmationStatsReadModel(
            SqlConfirmationRepository(), SqlInvitationRepository()
        )
    else:
        typer.secho(f"Unknown export '{what}'", fg=typer.colors.RED)
        raise typer.Exit(1)

    result = asyncio.run(read_model.export(export_format))
    if not result.success:
        _report(result)
    if output:
        output.write_text(result.data.data, encoding="utf-8")
        typer.secho(f"{result.message} to {output}", fg=typer.colors.GREEN)
    else:
        typer.echo(result.data.data)


if __name__ == "__main__":
    app()
