"""Account code mapping commands."""

import click
from reportbridge.cli.error_handling import handle_domain_error
from reportbridge.domain.code_mapping_service import CodeMappingService
from reportbridge.domain.errors import DomainError
from reportbridge.domain.mapping_import import MappingImportService


@click.group()
def mapping_group():
    """Manage account code mappings."""
    pass


@mapping_group.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.option("--strict", is_flag=True, help="Reject the file on the first invalid row")
@click.pass_context
def import_mappings(ctx, csv_file: str, strict: bool):
    """Import source -> target code mappings from a CSV file."""
    db = ctx.obj["db"]
    service = MappingImportService(db)

    try:
        result = service.import_code_mappings(csv_file, strict=strict)
    except (ValueError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result['imported']} mappings")
    click.echo(f"  Skipped: {result['skipped']} rows")
    for warning in result["warnings"]:
        click.echo(f"    {warning}", err=True)


@mapping_group.command("list")
@click.option("--property-id", type=int, help="Only mappings stored for this property (0 = global)")
@click.pass_context
def list_mappings(ctx, property_id: int | None):
    """List account code mappings."""
    service = CodeMappingService(ctx.obj["db"])
    mappings = service.list_mappings(property_id=property_id)
    if not mappings:
        click.echo("No mappings found.")
        return

    click.echo(f"\n{'Source':<12} {'Target':<12} {'Property':>8} {'Multiplier':>10}  Name")
    click.echo("-" * 70)
    for m in mappings:
        scope = "global" if m.is_global else str(m.property_id)
        click.echo(
            f"{m.source_code:<12} {m.target_code:<12} {scope:>8} "
            f"{m.multiplier.normalize():>10f}  {m.target_name}"
        )


@mapping_group.command("resolve")
@click.argument("source_code")
@click.option("--property-id", type=int, default=0, help="Property to resolve for")
@click.pass_context
def resolve_code(ctx, source_code: str, property_id: int):
    """Show which target code a source code maps to."""
    service = CodeMappingService(ctx.obj["db"])
    try:
        m = service.resolve(source_code, property_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    scope = "global" if m.is_global else f"property {m.property_id}"
    click.echo(f"{source_code} -> {m.target_code} {m.target_name} ({scope}, x{m.multiplier.normalize():f})")


@mapping_group.command("clear")
@click.option("--property-id", type=int, help="Only delete this property's mappings")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def clear_mappings(ctx, property_id: int | None, yes: bool):
    """Delete account code mappings."""
    scope = "all mappings" if property_id is None else f"mappings of property {property_id}"
    if not yes and not click.confirm(f"Delete {scope}?"):
        click.echo("Cancelled.")
        return

    service = CodeMappingService(ctx.obj["db"])
    deleted = service.clear(property_id=property_id)
    click.echo(f"Deleted {deleted} mappings.")


def register_commands(cli):
    """Register mapping commands with main CLI."""
    cli.add_command(mapping_group, name="mapping")
