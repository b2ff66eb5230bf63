"""CLI helpers shared by the parsing and processing commands."""

import json
from decimal import Decimal

import click

from reportbridge.domain.account_lines import AccountLineParserConfig
from reportbridge.domain.transformation import VALIDATION_MODES, TransformationConfig
from reportbridge.utils.amount_parser import parse_amount


def parser_options(command):
    """Attach the account line parser options to a command."""
    options = (
        click.option(
            "--min-amount",
            default="0.01",
            show_default=True,
            help="Drop currency lines whose absolute amount is below this",
        ),
        click.option(
            "--include-zero", is_flag=True, help="Keep lines regardless of amount"
        ),
        click.option(
            "--no-combine", is_flag=True, help="Do not combine payment-method groups"
        ),
        click.option(
            "--group",
            "groups",
            multiple=True,
            help="Payment-method group as NAME=M1,M2 (repeatable, replaces the default)",
        ),
    )
    for option in reversed(options):
        command = option(command)
    return command


def transformation_options(command):
    """Attach the transformation error policy options to a command."""
    options = (
        click.option(
            "--stop-on-error", is_flag=True, help="Abort on the first failing row"
        ),
        click.option(
            "--max-errors", type=int, default=100, show_default=True,
            help="Stop after this many row errors",
        ),
        click.option(
            "--validation-mode",
            type=click.Choice(VALIDATION_MODES),
            default="lenient",
            show_default=True,
            help="strict turns failed optional fields into row errors; skip ignores validation",
        ),
    )
    for option in reversed(options):
        command = option(command)
    return command


def parse_groups(ctx, groups: tuple[str, ...]) -> dict[str, list[str]] | None:
    """Parse NAME=M1,M2 group options."""
    if not groups:
        return None

    result = {}
    for group in groups:
        name, sep, members = group.partition("=")
        if not sep or not name.strip() or not members.strip():
            click.echo(f"Error: Invalid group '{group}'. Use NAME=M1,M2", err=True)
            ctx.exit(1)
        result[name.strip()] = [m.strip() for m in members.split(",") if m.strip()]
    return result


def build_parser_config(
    ctx,
    *,
    min_amount: str,
    include_zero: bool,
    no_combine: bool,
    groups: tuple[str, ...],
) -> AccountLineParserConfig:
    """Build a parser config from CLI options."""
    try:
        minimum = parse_amount(min_amount)
    except ValueError as e:
        click.echo(f"Error: Invalid minimum amount: {e}", err=True)
        ctx.exit(1)

    config = AccountLineParserConfig(
        combine_payment_methods=not no_combine,
        minimum_amount=abs(minimum) if minimum else Decimal("0"),
        include_zero_amounts=include_zero,
    )
    payment_groups = parse_groups(ctx, groups)
    if payment_groups is not None:
        config.payment_method_groups = payment_groups
    return config


def build_transformation_config(
    *, stop_on_error: bool, max_errors: int, validation_mode: str
) -> TransformationConfig:
    """Build an engine config from CLI options."""
    return TransformationConfig(
        continue_on_error=not stop_on_error,
        max_errors=max_errors,
        validation_mode=validation_mode,
    )


def parse_params(ctx, pairs: tuple[str, ...]) -> dict:
    """Parse K=V options; values that read as JSON are decoded."""
    params = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            click.echo(f"Error: Invalid parameter '{pair}'. Use KEY=VALUE", err=True)
            ctx.exit(1)
        try:
            params[key.strip()] = json.loads(value)
        except json.JSONDecodeError:
            params[key.strip()] = value
    return params
