"""Main CLI entry point."""

import logging

import click
from reportbridge.database.factories import create_sqlite_database

# Import and register all commands at module level
from reportbridge.cli.commands import mapping, rules, report

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides REPORTBRIDGE_DB_PATH environment variable)",
    envvar="REPORTBRIDGE_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level (overrides REPORTBRIDGE_LOG_LEVEL environment variable)",
    envvar="REPORTBRIDGE_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Reportbridge - Property report extraction and mapping.

    Parse account lines out of property-management reports, map their
    source codes to target chart-of-accounts codes and transform the
    result with per-property rules.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
mapping.register_commands(cli)
rules.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
