"""Report parsing and processing commands."""

import csv
from pathlib import Path

import click
from reportbridge.cli.error_handling import handle_domain_error
from reportbridge.cli.options import (
    build_parser_config,
    build_transformation_config,
    parser_options,
    transformation_options,
)
from reportbridge.domain.account_lines import AccountLineParser
from reportbridge.domain.code_mapping_service import CodeMappingService
from reportbridge.domain.errors import DomainError
from reportbridge.domain.pipeline import ReportPipeline
from reportbridge.domain.rule_set import RuleSetService


@click.group()
def report_group():
    """Parse and process report text files."""
    pass


@report_group.command("parse")
@click.argument("report_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--consolidate", is_flag=True, help="Combine payment-method groups into CC lines")
@parser_options
@click.pass_context
def parse_report(
    ctx,
    report_file: str,
    consolidate: bool,
    min_amount: str,
    include_zero: bool,
    no_combine: bool,
    groups: tuple[str, ...],
):
    """Print the account lines found in a report text file."""
    config = build_parser_config(
        ctx,
        min_amount=min_amount,
        include_zero=include_zero,
        no_combine=no_combine,
        groups=groups,
    )
    # Known codes sharpen extraction of codes glued to descriptions
    resolver = CodeMappingService(ctx.obj["db"]).get_resolver()
    if resolver.source_codes:
        config.valid_source_codes = resolver.source_codes

    text = Path(report_file).read_text(encoding="utf-8")
    parser = AccountLineParser(config)
    if consolidate:
        lines = parser.get_consolidated_account_lines(text)
    else:
        lines = parser.parse_account_lines(text)

    if not lines:
        click.echo("No account lines found.")
        return

    click.echo(f"\n{'Line':>5}  {'Code':<16} {'Description':<32} {'Amount':>14}  Method")
    click.echo("-" * 80)
    for line in lines:
        method = line.payment_method.value if line.payment_method else ""
        click.echo(
            f"{line.line_number:>5}  {line.source_code:<16} {line.description[:32]:<32} "
            f"{line.amount:>14}  {method}"
        )

    stats = parser.get_parsing_stats(text)
    click.echo("-" * 80)
    click.echo(f"Parsed {stats.parsed_lines} of {stats.total_lines} lines")
    click.echo(f"Total amount: {stats.total_amount}")
    click.echo(
        f"Payment method lines: {stats.payment_method_lines} "
        f"(amount: {stats.payment_method_amount})"
    )


@report_group.command("process")
@click.argument("report_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--property-id", type=int, required=True, help="Property the report belongs to")
@click.option(
    "--file-type",
    type=click.Choice(("pdf", "txt")),
    default="pdf",
    show_default=True,
    help="Source file type used to pick the rule set",
)
@click.option("--output", type=click.Path(dir_okay=False), help="Write records to this CSV file")
@parser_options
@transformation_options
@click.pass_context
def process_report(
    ctx,
    report_file: str,
    property_id: int,
    file_type: str,
    output: str | None,
    min_amount: str,
    include_zero: bool,
    no_combine: bool,
    groups: tuple[str, ...],
    stop_on_error: bool,
    max_errors: int,
    validation_mode: str,
):
    """Parse, map and transform a report for a property."""
    db = ctx.obj["db"]
    parser_config = build_parser_config(
        ctx,
        min_amount=min_amount,
        include_zero=include_zero,
        no_combine=no_combine,
        groups=groups,
    )

    try:
        transformation_config = build_transformation_config(
            stop_on_error=stop_on_error,
            max_errors=max_errors,
            validation_mode=validation_mode,
        )
        pipeline = ReportPipeline(
            CodeMappingService(db).get_resolver(),
            RuleSetService(db).build_mapping_table(),
            parser_config=parser_config,
            transformation_config=transformation_config,
        )
        text = Path(report_file).read_text(encoding="utf-8")
        result = pipeline.process_report(
            text,
            property_id,
            filename=Path(report_file).name,
            file_type=file_type,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    fieldnames: list[str] = []
    for record in result.records:
        for name in record.fields:
            if name not in fieldnames:
                fieldnames.append(name)

    if output:
        with open(output, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            for record in result.records:
                writer.writerow(record.fields)
        click.echo(f"Wrote {result.record_count} records to {output}")
    else:
        for record in result.records:
            values = ", ".join(f"{name}={record.fields[name]}" for name in fieldnames if name in record.fields)
            click.echo(f"{record.record_id}: {values}")
            for warning in record.transformation_warnings:
                click.echo(f"  warning: {warning}")

    click.echo(f"\nProperty: {result.property_id} ({result.property_name})")
    click.echo(f"Records: {result.record_count}")
    click.echo(f"Errors: {len(result.errors)}")
    for error in result.errors:
        click.echo(f"  {error.type}: {error.message}", err=True)
    if result.warnings:
        click.echo(f"Warnings: {len(result.warnings)}")
        for warning in result.warnings:
            click.echo(f"  {warning}", err=True)


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
