"""CLI error handling helpers."""

from decimal import Decimal
from datetime import date

import click

from bankrecon.domain.errors import DomainError, ValidationError
from bankrecon.utils.amount_parser import parse_amount
from bankrecon.utils.date_parser import parse_date


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    if isinstance(error, ValidationError) and error.field:
        click.echo(f"Error ({error.field}): {error}", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def amount_option(ctx: click.Context, param: click.Parameter, value: str | None) -> Decimal | None:
    """Click callback turning a money string into a Decimal."""
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def date_option(ctx: click.Context, param: click.Parameter, value: str | None) -> date | None:
    """Click callback turning a date string into a date."""
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        raise click.BadParameter(str(e))
