"""Turn an --account option into a financial account ID."""

from __future__ import annotations

import click
from bankrecon.cli.error_handling import handle_domain_error
from bankrecon.domain.account import AccountService
from bankrecon.domain.errors import DomainError
from bankrecon.utils.account_resolver import resolve_account


def account_id_or_exit(ctx: click.Context, accounts: AccountService, account: str | int) -> int:
    """Look up an account by name or ID; unknown accounts end the command."""
    try:
        return resolve_account(accounts, account)
    except DomainError as e:
        handle_domain_error(ctx, e)
