"""Transformation rule commands."""

import click
from reportbridge.cli.error_handling import handle_domain_error
from reportbridge.cli.options import parse_params
from reportbridge.domain.entities import TransformationRule, ValidationConfig
from reportbridge.domain.mapping_import import MappingImportService
from reportbridge.domain.mapping_table import DATA_TYPES, FILE_FORMATS, TRANSFORMATIONS, parse_list
from reportbridge.domain.rule_set import RuleSetService


@click.group()
def rules_group():
    """Manage per-property transformation rules."""
    pass


@rules_group.command("create")
@click.argument("property_id")
@click.argument("name")
@click.option(
    "--file-format",
    type=click.Choice(FILE_FORMATS),
    default="all",
    show_default=True,
    help="File type the rules apply to",
)
@click.pass_context
def create_rule_set(ctx, property_id: str, name: str, file_format: str):
    """Create an empty rule set for a property."""
    service = RuleSetService(ctx.obj["db"])
    try:
        mapping_id = service.create_property_mapping(property_id, name, file_format)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created rule set for property '{property_id}' (ID: {mapping_id})")
    click.echo("Use 'rules add' to add transformation rules.")


@rules_group.command("add")
@click.argument("property_id")
@click.argument("source_path")
@click.argument("target_field")
@click.option("--type", "data_type", type=click.Choice(DATA_TYPES), default="string", show_default=True)
@click.option("--required", is_flag=True, help="Fail the row when the value is missing")
@click.option("--default", "default_value", help="Value used when the source is missing")
@click.option("--transform", "transformation", type=click.Choice(TRANSFORMATIONS))
@click.option("--param", "params", multiple=True, help="Transformation parameter as KEY=VALUE")
@click.option("--min-length", type=int)
@click.option("--max-length", type=int)
@click.option("--pattern", help="Regular expression the value should match")
@click.option("--allowed", help="Comma-separated list of allowed values")
@click.pass_context
def add_rule(
    ctx,
    property_id: str,
    source_path: str,
    target_field: str,
    data_type: str,
    required: bool,
    default_value: str | None,
    transformation: str | None,
    params: tuple[str, ...],
    min_length: int | None,
    max_length: int | None,
    pattern: str | None,
    allowed: str | None,
):
    """Add a rule reading SOURCE_PATH into TARGET_FIELD."""
    validation = ValidationConfig(
        min_length=min_length,
        max_length=max_length,
        pattern=pattern,
        allowed_values=parse_list(allowed),
    )
    rule = TransformationRule(
        source_path=source_path,
        target_field=target_field,
        data_type=data_type,
        required=required,
        default_value=default_value,
        transformation=transformation,
        transformation_params=parse_params(ctx, params),
        validation=None if validation == ValidationConfig() else validation,
    )

    service = RuleSetService(ctx.obj["db"])
    try:
        rule_id = service.add_rule(property_id, rule)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Added rule {source_path} -> {target_field} (ID: {rule_id})")


@rules_group.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.option("--replace", is_flag=True, help="Overwrite existing rule sets")
@click.pass_context
def import_rules(ctx, csv_file: str, replace: bool):
    """Import transformation rules from a CSV file."""
    service = MappingImportService(ctx.obj["db"])
    try:
        result = service.import_rules(csv_file, replace=replace)
    except (ValueError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result['imported']} rules")
    click.echo(f"  Skipped: {result['skipped']} rule sets")
    for warning in result["warnings"]:
        click.echo(f"    {warning}", err=True)


@rules_group.command("list")
@click.pass_context
def list_rules(ctx):
    """List rule sets and custom transformations."""
    service = RuleSetService(ctx.obj["db"])
    mappings = service.list_property_mappings()
    customs = service.list_custom_transformations()
    if not mappings and not customs:
        click.echo("No rules found.")
        return

    for mapping in mappings:
        click.echo(
            f"\n{mapping.property_id}: {mapping.property_name} (format: {mapping.file_format})"
        )
        click.echo("-" * 60)
        if not mapping.rules:
            click.echo("  (no rules)")
        for rule in mapping.rules:
            flags = [rule.data_type]
            if rule.required:
                flags.append("required")
            if rule.transformation:
                flags.append(rule.transformation)
            click.echo(f"  {rule.source_path} -> {rule.target_field} [{', '.join(flags)}]")

    if customs:
        click.echo("\nCustom transformations:")
        for custom in customs:
            function = custom.function or custom.name
            click.echo(f"  {custom.name} -> {function} {custom.parameters or ''}".rstrip())


@rules_group.command("custom")
@click.argument("name")
@click.option("--function", help="Built-in function to call (defaults to NAME)")
@click.option("--param", "params", multiple=True, help="Default parameter as KEY=VALUE")
@click.option("--description", help="Free text description")
@click.pass_context
def add_custom(ctx, name: str, function: str | None, params: tuple[str, ...], description: str | None):
    """Declare a named custom transformation."""
    service = RuleSetService(ctx.obj["db"])
    try:
        service.add_custom_transformation(
            name,
            function=function,
            parameters=parse_params(ctx, params),
            description=description,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Declared custom transformation '{name}'")


def register_commands(cli):
    """Register rules commands with main CLI."""
    cli.add_command(rules_group, name="rules")
