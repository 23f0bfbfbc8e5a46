"""
Command-line interface for the GoCars test framework.
"""

import logging
import sys
from typing import Any, Optional

import click

from .config_commands import config
from .exceptions import SettingsError
from .report_commands import report
from .run_command import test
from .settings import LOG_LEVELS, load_settings

logger = logging.getLogger(__name__)


class GocarsGroup(click.Group):
    """Root group that turns every failure, usage errors included, into exit code 1."""

    def main(self, *args: Any, **kwargs: Any) -> Any:
        kwargs["standalone_mode"] = False
        try:
            rv = super().main(*args, **kwargs)
        except click.ClickException as e:
            e.show()
            sys.exit(1)
        except click.exceptions.Abort:
            click.echo("Aborted!", err=True)
            sys.exit(1)
        except Exception as e:
            logger.exception("Unexpected error: %s", e)
            click.echo(f"Unexpected error: {e}", err=True)
            sys.exit(1)
        sys.exit(rv if isinstance(rv, int) else 0)


@click.group(cls=GocarsGroup)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (default: log_level setting, INFO)",
)
@click.option(
    "--settings",
    "settings_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Settings file (default: nearest .gocars-test.yaml/.yml/.json)",
)
@click.pass_context
def main(ctx: click.Context, log_level: Optional[str], settings_file: Optional[str]) -> None:
    """
    GoCars Test Framework - test configuration and report orchestration.

    Examples:

      # Create a configuration file and check it
      gocars-test config init --template ci
      gocars-test config validate

      # Show the execution plan, then run it
      gocars-test test --dry-run
      gocars-test test --orchestrator mypkg.runner:Orchestrator -o junit

      # Build an HTML report from the latest results
      gocars-test report generate -i ./test-reports -f html
    """
    try:
        settings = load_settings(settings_file)
    except SettingsError as e:
        click.echo(f"Settings error: {e}", err=True)
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, (log_level or settings.log_level).upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    ctx.ensure_object(dict)["settings"] = settings


main.add_command(config)
main.add_command(test)
main.add_command(report)


if __name__ == "__main__":
    main()
