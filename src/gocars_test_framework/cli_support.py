"""
Helpers shared by the command modules.
"""

import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, NoReturn, Optional, Union

import click
import yaml

from .exceptions import GocarsTestError, ValidationError
from .fileio import write_text_atomic
from .settings import Settings, load_settings

logger = logging.getLogger(__name__)


def get_settings(ctx: click.Context) -> Settings:
    """Settings loaded by the root command, or loaded now when invoked standalone."""
    obj = ctx.ensure_object(dict)
    if "settings" not in obj:
        obj["settings"] = load_settings()
    return obj["settings"]


def fail(message: str, hint: Optional[str] = None) -> NoReturn:
    """Print *message* (and an optional hint) on stderr and exit 1."""
    click.echo(message, err=True)
    if hint:
        click.echo(hint, err=True)
    sys.exit(1)


@contextmanager
def command_errors(action: str) -> Iterator[None]:
    """Convert any exception raised in the block into a message and exit 1."""
    try:
        yield
    except ValidationError as e:
        logger.error("%s: %s", action, e)
        click.echo(f"{action}:", err=True)
        for error in e.errors:
            field = getattr(error, "field", None)
            message = getattr(error, "message", str(error))
            click.echo(f"  - {field}: {message}" if field else f"  - {message}", err=True)
        sys.exit(1)
    except FileNotFoundError as e:
        logger.error("File not found: %s", e)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except (GocarsTestError, ValueError) as e:
        logger.error("%s: %s", action, e)
        click.echo(f"{action}: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


def split_list(value: Optional[str]) -> List[str]:
    """Split a comma-separated option value, dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def dump_document(data: Dict[str, Any], fmt: str = "json") -> str:
    """Serialize a document as indented JSON or block-style YAML."""
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
    return json.dumps(data, indent=2)


def write_document(path: Union[str, Path], data: Dict[str, Any]) -> Path:
    """Atomically write *data* as YAML for ``.yaml``/``.yml`` paths, JSON otherwise."""
    p = Path(path)
    fmt = "yaml" if p.suffix.lower() in (".yaml", ".yml") else "json"
    content = dump_document(data, fmt)
    if not content.endswith("\n"):
        content += "\n"
    return write_text_atomic(p, content)
