"""Main CLI entry point."""

import click

from bankrecon.database.factories import create_sqlite_database
from bankrecon.domain.context import OperationContext
from bankrecon.domain.storage import create_local_storage
from bankrecon.utils.logging_config import configure_logging

# Import and register all commands at module level
from bankrecon.cli.commands import account, installment, statement, reconcile


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides BANKRECON_DB_PATH environment variable)",
    envvar="BANKRECON_DB_PATH",
)
@click.option(
    "--storage-dir",
    type=click.Path(file_okay=False),
    help="Directory for uploaded statement files (BANKRECON_STORAGE_DIR)",
    envvar="BANKRECON_STORAGE_DIR",
)
@click.option(
    "--user",
    help="Identity recorded on imports, matches and closes (BANKRECON_USER)",
    envvar="BANKRECON_USER",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, storage_dir: str | None, user: str | None, verbose: bool):
    """Bankrecon - Bank statement reconciliation.

    Import CSV/OFX bank statements, match their lines against open
    installments and close reconciled periods.
    """
    ctx.ensure_object(dict)
    configure_logging(verbose)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.call_on_close(db.disconnect)
        ctx.obj["db"] = db
        ctx.obj["storage"] = create_local_storage(storage_dir)
        ctx.obj["context"] = OperationContext(user=user)


# Register all commands
account.register_commands(cli)
installment.register_commands(cli)
statement.register_commands(cli)
reconcile.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
