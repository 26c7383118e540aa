"""Statement import, review and matching commands."""

from datetime import date
from decimal import Decimal

import click
from bankrecon.cli.account_resolution import account_id_or_exit
from bankrecon.cli.error_handling import amount_option, date_option, handle_domain_error
from bankrecon.domain.account import AccountService
from bankrecon.domain.entities import MatchStatus
from bankrecon.domain.errors import DomainError
from bankrecon.domain.resolution import MatchResolutionService
from bankrecon.domain.statement import StatementService
from bankrecon.domain.statement_import import StatementImportService, UploadedFile
from bankrecon.domain.suggestion import MatchSuggestionService


@click.group()
def statement_group():
    """Import and reconcile bank statements."""
    pass


def _format_balance(value: Decimal | None) -> str:
    return f"{value:,.2f}" if value is not None else "-"


@statement_group.command("import")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--account", required=True, help="Account name or ID")
@click.option("--opening-balance", callback=amount_option, help="Override the opening balance")
@click.option("--closing-balance", callback=amount_option, help="Override the closing balance")
@click.pass_context
def import_statement(
    ctx,
    file_path: str,
    account: str,
    opening_balance: Decimal | None,
    closing_balance: Decimal | None,
):
    """Import a CSV or OFX statement file.

    Examples:
        bankrecon statement import extrato.csv --account Checking
        bankrecon statement import january.ofx --account 1 --closing-balance 4700.00
    """
    db = ctx.obj["db"]
    account_id = account_id_or_exit(ctx, AccountService(db), account)
    service = StatementImportService(db, ctx.obj["storage"])

    meta = {}
    if opening_balance is not None:
        meta["opening_balance"] = opening_balance
    if closing_balance is not None:
        meta["closing_balance"] = closing_balance

    try:
        statement = service.import_statement(
            account_id, UploadedFile.from_path(file_path), ctx.obj["context"], meta=meta
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    summary = StatementService(db).summarize(statement.id)
    click.echo(f"Imported statement {statement.id} ({statement.reference})")
    click.echo(f"  Lines: {summary.total_lines}")
    click.echo(f"  Opening balance: {_format_balance(statement.opening_balance)}")
    click.echo(f"  Closing balance: {_format_balance(statement.closing_balance)}")


@statement_group.command("list")
@click.option("--account", help="Account name or ID")
@click.option("--status", help="imported/open/pending or reconciled/closed")
@click.option("--reference", help="Filter by part of the reference")
@click.option("--from", "imported_from", callback=date_option, help="Imported on or after")
@click.option("--to", "imported_to", callback=date_option, help="Imported on or before")
@click.pass_context
def list_statements(
    ctx,
    account: str | None,
    status: str | None,
    reference: str | None,
    imported_from: date | None,
    imported_to: date | None,
):
    """List imported statements, newest first."""
    db = ctx.obj["db"]
    account_id = None
    if account is not None:
        account_id = account_id_or_exit(ctx, AccountService(db), account)

    statements = StatementService(db).list_statements(
        financial_account_id=account_id,
        status=status,
        reference=reference,
        imported_from=imported_from,
        imported_to=imported_to,
    )
    if not statements:
        click.echo("No statements found.")
        return

    click.echo("\nStatements:")
    click.echo("-" * 80)
    for st in statements:
        click.echo(
            f"ID: {st.id:3d} | {st.imported_at:%Y-%m-%d %H:%M} | {st.status.value:10s} | "
            f"{st.reference[:30]:30s} | {st.original_name}"
        )


@statement_group.command("show")
@click.argument("statement_id", type=int)
@click.pass_context
def show_statement(ctx, statement_id: int):
    """Show a statement with its lines and match suggestions."""
    service = StatementService(ctx.obj["db"])

    try:
        statement = service.require_statement(statement_id)
        summary = service.summarize(statement_id)
        lines = service.list_lines(statement_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nStatement {statement.id}: {statement.reference}")
    click.echo(f"  File:     {statement.original_name}")
    click.echo(f"  Imported: {statement.imported_at:%Y-%m-%d %H:%M} by {statement.imported_by or '-'}")
    click.echo(f"  Status:   {statement.status.value}")
    click.echo(f"  Opening:  {_format_balance(statement.opening_balance)}")
    click.echo(f"  Closing:  {_format_balance(statement.closing_balance)}")
    click.echo(
        f"  Lines:    {summary.total_lines} ({summary.pending_lines} pending, "
        f"{summary.confirmed_lines} confirmed, {summary.ignored_lines} ignored)"
    )
    click.echo("-" * 80)

    for line in lines:
        click.echo(
            f"{line.id:5d} | {line.transaction_date.isoformat()} | {line.amount:>12,.2f} | "
            f"{line.match_status.value:9s} | {line.description}"
        )
        if line.match_status == MatchStatus.CONFIRMED:
            click.echo(f"        matched installment {line.matched_installment_id}")
            continue
        for suggestion in line.suggestions:
            click.echo(
                f"        -> installment {suggestion.installment_id} "
                f"({suggestion.confidence}%) {suggestion.entry_description or ''}"
            )


@statement_group.command("suggest")
@click.argument("statement_id", type=int)
@click.pass_context
def suggest_matches(ctx, statement_id: int):
    """Score open installments against the statement's lines."""
    db = ctx.obj["db"]

    try:
        statement = MatchSuggestionService(db).suggest_matches(statement_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    summary = StatementService(db).summarize(statement.id)
    click.echo(
        f"Statement {statement.id}: {summary.suggested_lines} suggested, "
        f"{summary.pending_lines - summary.suggested_lines} unmatched, "
        f"status {statement.status.value}"
    )


@statement_group.command("confirm")
@click.argument("statement_id", type=int)
@click.argument("line_id", type=int)
@click.option("--installment", "installment_id", type=int, required=True, help="Installment ID")
@click.option(
    "--payment-date", required=True, callback=date_option, help="Date the installment was paid"
)
@click.pass_context
def confirm_match(ctx, statement_id: int, line_id: int, installment_id: int, payment_date: date):
    """Confirm that a line pays an installment."""
    db = ctx.obj["db"]

    try:
        StatementService(db).get_statement_line(statement_id, line_id)
        line = MatchResolutionService(db).confirm_match(
            line_id, installment_id, payment_date, ctx.obj["context"]
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    statement = StatementService(db).require_statement(statement_id)
    click.echo(
        f"Line {line.id} confirmed against installment {line.matched_installment_id} "
        f"(statement {statement.status.value})"
    )


@statement_group.command("ignore")
@click.argument("statement_id", type=int)
@click.argument("line_id", type=int)
@click.option("--reason", help="Why the line is set aside")
@click.pass_context
def ignore_line(ctx, statement_id: int, line_id: int, reason: str | None):
    """Set a line aside so it no longer blocks reconciliation."""
    db = ctx.obj["db"]

    try:
        StatementService(db).get_statement_line(statement_id, line_id)
        line = MatchResolutionService(db).ignore_line(line_id, ctx.obj["context"], reason=reason)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    statement = StatementService(db).require_statement(statement_id)
    click.echo(f"Line {line.id} ignored (statement {statement.status.value})")


def register_commands(cli):
    """Register statement commands with main CLI."""
    cli.add_command(statement_group, name="statement")
