"""
``config`` command group: manage a single configuration file on disk.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .cli_support import command_errors, dump_document, fail, get_settings, write_document
from .config import (
    TestConfiguration,
    default_configuration,
    load_configuration,
    new_configuration,
    read_document,
)
from .templates import get_builtin_template, merge_overrides
from .validation import validate_configuration

logger = logging.getLogger(__name__)

INIT_TEMPLATES = ("basic", "advanced", "ci", "performance")
SHOW_FORMATS = ("json", "yaml", "table")

file_option = click.option(
    "-f",
    "--file",
    "file_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Configuration file path (default: config_file setting)",
)


def build_init_configuration(template: str) -> TestConfiguration:
    """
    Build the configuration ``config init`` writes for *template*.

    ``basic`` is the canonical default; the others start from a built-in
    template.
    """
    if template == "basic":
        return default_configuration()
    if template == "advanced":
        return new_configuration(get_builtin_template("regression-test").configuration)
    if template == "performance":
        return new_configuration(get_builtin_template("performance-test").configuration)
    if template == "ci":
        smoke = get_builtin_template("smoke-test")
        return new_configuration(
            merge_overrides(
                smoke.configuration,
                {
                    "name": "CI Test Configuration",
                    "concurrencyLevel": 8,
                    "retryAttempts": 3,
                    "tags": ["ci"],
                },
            )
        )
    raise ValueError(f"Unknown template: {template}")


def _list_index(items: List[Any], part: str) -> Optional[int]:
    """Return *part* as an in-range index of *items*, or None."""
    if part.isdigit() and int(part) < len(items):
        return int(part)
    return None


def get_path_value(document: Any, key: str) -> Tuple[bool, Any]:
    """Follow a dot path through nested mappings and lists; returns (found, value)."""
    current = document
    for part in key.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        elif isinstance(current, list) and _list_index(current, part) is not None:
            current = current[int(part)]
        else:
            return False, None
    return True, current


def set_path_value(document: Dict[str, Any], key: str, value: Any) -> None:
    """
    Set a dot-path value, creating intermediate mappings.

    Numeric segments index into lists. A segment that does not address an
    existing list element raises ``ValueError``, leaving the list untouched.
    """
    parts = key.split(".")
    current: Any = document
    for depth, part in enumerate(parts):
        last = depth == len(parts) - 1
        if isinstance(current, list):
            index = _list_index(current, part)
            path = ".".join(parts[:depth])
            if index is None:
                raise ValueError(
                    f"'{part}' is not a valid index into {path} ({len(current)} item(s))"
                )
            if last:
                current[index] = value
            elif isinstance(current[index], (dict, list)):
                current = current[index]
            else:
                raise ValueError(f"{path}.{part} is not a mapping or list")
        elif last:
            current[part] = value
        else:
            if not isinstance(current.get(part), (dict, list)):
                current[part] = {}
            current = current[part]


def parse_value(raw: str) -> Any:
    """Parse *raw* as JSON, falling back to the plain string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def flatten(document: Any, prefix: str = "") -> List[Tuple[str, Any]]:
    """Flatten nested mappings into (dot.path, value) rows; lists stay whole."""
    if not isinstance(document, dict):
        return [(prefix, document)]
    rows: List[Tuple[str, Any]] = []
    for key, value in document.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict) and value:
            rows.extend(flatten(value, path))
        else:
            rows.append((path, value))
    return rows


def _display(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2)
    return json.dumps(value)


def _resolve_file(ctx: click.Context, file_path: Optional[str]) -> Path:
    return Path(file_path or get_settings(ctx).config_file)


@click.group(invoke_without_command=True)
@click.pass_context
def config(ctx: click.Context) -> None:
    """Manage test configuration files."""
    if ctx.invoked_subcommand is None:
        click.echo("Config command requires a subcommand", err=True)
        click.echo(ctx.get_help())
        sys.exit(1)


@config.command()
@file_option
@click.option(
    "-t",
    "--template",
    type=click.Choice(INIT_TEMPLATES),
    default="basic",
    help="Configuration template to use",
)
@click.option("--force", is_flag=True, help="Overwrite existing configuration file")
@click.pass_context
def init(ctx: click.Context, file_path: Optional[str], template: str, force: bool) -> None:
    """Initialize a new test configuration file."""
    path = _resolve_file(ctx, file_path)
    if path.exists() and not force:
        fail(
            f"Configuration file already exists: {path}",
            "Use --force to overwrite the existing file",
        )

    with command_errors("Failed to create configuration file"):
        configuration = build_init_configuration(template)
        write_document(path, configuration.to_dict())

    click.echo(f"Configuration file created: {path}")
    click.echo(f"Template used: {template}")


@config.command()
@file_option
@click.pass_context
def validate(ctx: click.Context, file_path: Optional[str]) -> None:
    """Validate test configuration file."""
    path = _resolve_file(ctx, file_path)
    if not path.exists():
        fail(f"Configuration file not found: {path}")

    with command_errors("Failed to validate configuration"):
        result = validate_configuration(load_configuration(path))

    for warning in result.warnings:
        line = f"  ! {warning.field}: {warning.message}"
        if warning.suggestion:
            line += f" ({warning.suggestion})"
        click.echo(line)

    if not result.is_valid:
        click.echo("Configuration validation failed:", err=True)
        for error in result.errors:
            click.echo(f"  - {error.field}: {error.message}", err=True)
        sys.exit(1)

    suffix = f" with {len(result.warnings)} warning(s)" if result.warnings else ""
    click.echo(f"Configuration is valid{suffix}")


@config.command()
@file_option
@click.option(
    "--format",
    "fmt",
    type=click.Choice(SHOW_FORMATS),
    default="json",
    help="Output format",
)
@click.pass_context
def show(ctx: click.Context, file_path: Optional[str], fmt: str) -> None:
    """Display current configuration."""
    path = _resolve_file(ctx, file_path)
    if not path.exists():
        fail(f"Configuration file not found: {path}")

    with command_errors("Failed to display configuration"):
        document = read_document(path)

    if fmt == "table":
        rows = flatten(document)
        width = max((len(key) for key, _ in rows), default=0)
        for key, value in rows:
            click.echo(f"{key:<{width}}  {json.dumps(value)}")
    else:
        click.echo(dump_document(document, fmt).rstrip("\n"))


@config.command(name="set")
@file_option
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_value(ctx: click.Context, file_path: Optional[str], key: str, value: str) -> None:
    """Set a configuration value (dot notation supported)."""
    path = _resolve_file(ctx, file_path)

    with command_errors("Failed to set configuration value"):
        document = read_document(path) if path.exists() else {}
        set_path_value(document, key, parse_value(value))
        write_document(path, document)

    click.echo(f"Set {key} = {value}")


@config.command(name="get")
@file_option
@click.argument("key")
@click.pass_context
def get_value(ctx: click.Context, file_path: Optional[str], key: str) -> None:
    """Get a configuration value (dot notation supported)."""
    path = _resolve_file(ctx, file_path)
    if not path.exists():
        fail(f"Configuration file not found: {path}")

    with command_errors("Failed to get configuration value"):
        document = read_document(path)

    found, value = get_path_value(document, key)
    if not found:
        fail(f"Configuration key not found: {key}")
    click.echo(_display(value))


@config.command()
@file_option
@click.option("--confirm", is_flag=True, help="Confirm the reset operation")
@click.pass_context
def reset(ctx: click.Context, file_path: Optional[str], confirm: bool) -> None:
    """Reset configuration to defaults."""
    path = _resolve_file(ctx, file_path)
    if not confirm:
        fail("This will reset the configuration to defaults. Use --confirm to proceed.")

    with command_errors("Failed to reset configuration"):
        write_document(path, default_configuration().to_dict())

    click.echo(f"Configuration reset to defaults: {path}")
