"""Installment commands (open payables that statement lines are matched to)."""

from datetime import date
from decimal import Decimal

import click
from bankrecon.cli.account_resolution import account_id_or_exit
from bankrecon.cli.error_handling import amount_option, date_option, handle_domain_error
from bankrecon.domain.account import AccountService
from bankrecon.domain.entities import InstallmentStatus
from bankrecon.domain.errors import DomainError
from bankrecon.domain.installment import InstallmentService


@click.group()
def installment_group():
    """Manage installments available for matching."""
    pass


@installment_group.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--description", required=True, help="Entry description")
@click.option("--amount", required=True, callback=amount_option, help="Installment total")
@click.option("--due", "due_date", required=True, callback=date_option, help="Due date")
@click.option("--movement", "movement_date", callback=date_option, help="Movement date")
@click.option("--number", type=int, default=1, show_default=True, help="Installment number")
@click.option(
    "--status",
    type=click.Choice([InstallmentStatus.PLANNED.value, InstallmentStatus.PENDING.value]),
    default=InstallmentStatus.PENDING.value,
    show_default=True,
)
@click.pass_context
def add_installment(
    ctx,
    account: str,
    description: str,
    amount: Decimal,
    due_date: date,
    movement_date: date | None,
    number: int,
    status: str,
):
    """Create an entry with a single installment.

    Examples:
        bankrecon installment add --account Checking --description "Rent" --amount -1500 --due 2025-01-05
    """
    db = ctx.obj["db"]
    account_id = account_id_or_exit(ctx, AccountService(db), account)
    service = InstallmentService(db)

    try:
        installment_id = service.create_installment(
            financial_account_id=account_id,
            description=description,
            total_amount=amount,
            due_date=due_date,
            movement_date=movement_date,
            status=InstallmentStatus(status),
            number=number,
        )
        click.echo(f"Created installment {installment_id} for {amount:,.2f}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@installment_group.command("list")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--all", "show_all", is_flag=True, help="Include paid and canceled installments")
@click.pass_context
def list_installments(ctx, account: str, show_all: bool):
    """List the installments of an account (open ones by default)."""
    db = ctx.obj["db"]
    account_id = account_id_or_exit(ctx, AccountService(db), account)

    installments = InstallmentService(db).list_installments(account_id, open_only=not show_all)
    if not installments:
        click.echo("No installments found.")
        return

    for inst in installments:
        due = inst.due_date.isoformat() if inst.due_date else "-"
        click.echo(
            f"ID: {inst.id:4d} | {due:10s} | {inst.total_amount:>12,.2f} | "
            f"{inst.status.value:8s} | {inst.entry_description or ''}"
        )


def register_commands(cli):
    """Register installment commands with main CLI."""
    cli.add_command(installment_group, name="installment")
