"""Period close commands."""

from datetime import date
from decimal import Decimal

import click
from bankrecon.cli.account_resolution import account_id_or_exit
from bankrecon.cli.error_handling import amount_option, date_option, handle_domain_error
from bankrecon.domain.account import AccountService
from bankrecon.domain.errors import DomainError
from bankrecon.domain.period_close import PeriodCloseService


@click.group()
def reconcile_group():
    """Close and review reconciliation periods."""
    pass


@reconcile_group.command("close")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--start", "period_start", required=True, callback=date_option, help="Period start")
@click.option("--end", "period_end", required=True, callback=date_option, help="Period end")
@click.option("--opening", required=True, callback=amount_option, help="Opening balance")
@click.option("--closing", required=True, callback=amount_option, help="Closing balance")
@click.option(
    "--statement",
    "statement_ids",
    type=int,
    multiple=True,
    help="Restrict the close to these statement IDs (repeatable)",
)
@click.pass_context
def close_period(
    ctx,
    account: str,
    period_start: date,
    period_end: date,
    opening: Decimal,
    closing: Decimal,
    statement_ids: tuple[int, ...],
):
    """Close a period once every statement in it is resolved.

    Examples:
        bankrecon reconcile close --account Checking --start 2025-01-01 --end 2025-01-31 \\
            --opening 3499.50 --closing 4700.00
    """
    db = ctx.obj["db"]
    account_id = account_id_or_exit(ctx, AccountService(db), account)

    try:
        reconciliation = PeriodCloseService(db).close_period(
            account_id,
            period_start,
            period_end,
            opening,
            closing,
            ctx.obj["context"],
            statement_ids=statement_ids,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(
        f"Closed period {reconciliation.period_start.isoformat()} to "
        f"{reconciliation.period_end.isoformat()} (reconciliation {reconciliation.id}, "
        f"closing balance {reconciliation.closing_balance:,.2f})"
    )


@reconcile_group.command("list")
@click.option("--account", required=True, help="Account name or ID")
@click.pass_context
def list_reconciliations(ctx, account: str):
    """List closed periods of an account."""
    db = ctx.obj["db"]
    account_id = account_id_or_exit(ctx, AccountService(db), account)

    reconciliations = PeriodCloseService(db).list_reconciliations(account_id)
    if not reconciliations:
        click.echo("No reconciliations found.")
        return

    for rec in reconciliations:
        click.echo(
            f"ID: {rec.id:3d} | {rec.period_start.isoformat()} .. {rec.period_end.isoformat()} | "
            f"opening {rec.opening_balance:>12,.2f} | closing {rec.closing_balance:>12,.2f} | "
            f"{rec.locked_by or '-'}"
        )


def register_commands(cli):
    """Register reconcile commands with main CLI."""
    cli.add_command(reconcile_group, name="reconcile")
