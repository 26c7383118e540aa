"""Account management commands."""

from decimal import Decimal

import click
from bankrecon.cli.error_handling import amount_option, handle_domain_error
from bankrecon.domain.account import AccountService
from bankrecon.domain.errors import DomainError


@click.group()
def account_group():
    """Manage financial accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--bank", help="Bank name (defaults to account name if not provided)")
@click.option("--balance", callback=amount_option, help="Current balance (default 0)")
@click.pass_context
def create_account(ctx, name: str, bank: str | None, balance: Decimal | None):
    """Create a new account.

    Examples:
        bankrecon account create "Checking"
        bankrecon account create "Checking" --bank "Itau" --balance 1500,00
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    bank_name = bank if bank is not None else name

    try:
        account_id = service.create_account(
            name=name, bank_name=bank_name, current_balance=balance or Decimal("0")
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all accounts."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts()
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc in accounts:
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | Bank: {acc.bank_name:15s} "
            f"| Balance: {acc.current_balance:>12,.2f}"
        )


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
