"""CLI error handling helpers."""

import click

from reportbridge.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    message = error.message if isinstance(error, DomainError) else str(error)
    click.echo(f"Error: {message}", err=True)
    ctx.exit(1)
