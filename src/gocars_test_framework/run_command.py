"""
``test`` command: resolve a configuration, plan the run and execute it.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .cli_support import command_errors, fail, get_settings, split_list
from .config import ENVIRONMENTS, TestConfiguration, load_test_configuration
from .exceptions import NotFoundError
from .fileio import write_text_atomic
from .manager import ConfigurationManager
from .models import TestRunResult
from .notifications import Notifier
from .orchestrator import load_orchestrator
from .planner import OUTPUT_FORMATS, ExecutionPlan, RunOptions, build_execution_plan
from .reporting import ConsoleReporter, HTMLReporter, JSONReporter, JUnitReporter
from .runner import TestRunner
from .validation import validate_configuration

logger = logging.getLogger(__name__)

REPORT_FILENAMES = {
    "json": "test-results.json",
    "junit": "junit.xml",
    "html": "test-report.html",
}


def _print_plan(plan: ExecutionPlan) -> None:
    click.echo("Dry run mode - showing tests that would be executed:")
    click.echo("\nTest Execution Plan:")
    click.echo(f"  Configuration : {plan.configuration_name}")
    click.echo(f"  Environment   : {plan.environment}")
    click.echo(f"  Concurrency   : {plan.concurrency_level}")
    click.echo(f"  Timeout       : {plan.timeout}ms")
    click.echo(f"  Retry attempts: {plan.retry_attempts}")
    click.echo(f"  Bail          : {'yes' if plan.options.bail else 'no'}")

    suites = plan.suites
    if suites:
        click.echo(f"\nTest Suites ({len(suites)}):")
        for phase in plan.phases:
            click.echo(f"  {phase.name}:")
            for suite in phase.suites:
                line = f"    - {suite.name} [{suite.id}] priority {suite.priority}"
                if suite.dependencies:
                    line += f", after {', '.join(suite.dependencies)}"
                click.echo(line)
    else:
        click.echo("\nNo test suites found matching the criteria.")

    if plan.skipped:
        click.echo(f"\nSkipped Suites ({len(plan.skipped)}):")
        for skipped in plan.skipped:
            click.echo(f"  - {skipped.name} [{skipped.id}]: {skipped.reason}")

    filters = plan.options.filters()
    if filters:
        click.echo("\nFilters applied:")
        if "pattern" in filters:
            click.echo(f"  Pattern: {filters['pattern']}")
        if "includeTags" in filters:
            click.echo(f"  Include tags: {', '.join(filters['includeTags'])}")
        if "excludeTags" in filters:
            click.echo(f"  Exclude tags: {', '.join(filters['excludeTags'])}")
        if "suite" in filters:
            click.echo(f"  Suite: {filters['suite']}")

    click.echo(f"\nRisk: {plan.overall_risk}")
    for factor in plan.risk_factors:
        click.echo(f"  - {factor.description} ({factor.severity}): {factor.impact}")


def _write_report(
    result: TestRunResult, config: TestConfiguration, options: RunOptions
) -> Optional[Path]:
    if options.output_format == "console":
        return None
    if options.output_format == "json":
        reporter = JSONReporter()
    elif options.output_format == "junit":
        reporter = JUnitReporter(name=config.name)
    else:
        reporter = HTMLReporter(
            title=f"{config.name} Test Report",
            include_coverage=options.coverage,
            include_performance=True,
        )
    path = Path(options.report_dir) / REPORT_FILENAMES[options.output_format]
    return write_text_atomic(path, reporter.generate(result))


@click.command()
@click.argument("suite", required=False)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Configuration file (default: config_file setting, else built-in defaults)",
)
@click.option("--config-id", help="Load a stored configuration by id instead of a file")
@click.option("-e", "--environment", type=click.Choice(ENVIRONMENTS), help="Target environment")
@click.option("-p", "--parallel", type=click.IntRange(min=1), help="Concurrency level")
@click.option("-t", "--timeout", type=click.IntRange(min=1), help="Run timeout in milliseconds")
@click.option("-r", "--retry", type=click.IntRange(min=0), help="Retry attempts for failed tests")
@click.option(
    "-o",
    "--output",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default="console",
    help="Report format",
)
@click.option(
    "--report-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Report output directory (default: results_directory setting)",
)
@click.option("--bail", is_flag=True, help="Stop on first test failure")
@click.option("--dry-run", is_flag=True, help="Show the execution plan without running tests")
@click.option("--filter", "pattern", help="Only run suites whose id or name matches this regex")
@click.option("--tags", help="Only run suites with any of these tags (comma-separated)")
@click.option("--exclude-tags", help="Skip suites with any of these tags (comma-separated)")
@click.option("--coverage", is_flag=True, help="Collect code coverage")
@click.option("--watch", is_flag=True, help="Watch for changes and re-run (runs once)")
@click.option(
    "--orchestrator",
    help="Execution orchestrator as 'package.module:ClassName' (default: orchestrator setting)",
)
@click.pass_context
def test(
    ctx: click.Context,
    suite: Optional[str],
    config_file: Optional[str],
    config_id: Optional[str],
    environment: Optional[str],
    parallel: Optional[int],
    timeout: Optional[int],
    retry: Optional[int],
    output_format: str,
    report_dir: Optional[str],
    bail: bool,
    dry_run: bool,
    pattern: Optional[str],
    tags: Optional[str],
    exclude_tags: Optional[str],
    coverage: bool,
    watch: bool,
    orchestrator: Optional[str],
) -> None:
    """
    Run tests for a configuration.

    Examples:

      # Show what would run
      gocars-test test --dry-run

      # Run one suite against staging with JUnit output
      gocars-test test firebase-auth -e staging -o junit

      # Run smoke-tagged suites, stopping at the first failure
      gocars-test test --tags smoke --bail
    """
    settings = get_settings(ctx)

    with command_errors("Test execution failed"):
        if config_id:
            manager = ConfigurationManager.from_directory(settings.config_directory)
            configuration = manager.get_configuration(config_id)
            if configuration is None:
                raise NotFoundError("configuration", config_id)
        else:
            configuration = load_test_configuration(config_file or settings.config_file)

        if environment:
            configuration.environment = environment
        if parallel is not None:
            configuration.concurrency_level = parallel
        if timeout is not None:
            configuration.timeout = timeout
        if retry is not None:
            configuration.retry_attempts = retry

        options = RunOptions(
            output_format=output_format,
            report_dir=report_dir or settings.results_directory,
            bail=bail,
            coverage=coverage,
            pattern=pattern,
            include_tags=split_list(tags),
            exclude_tags=split_list(exclude_tags),
            suite=suite,
            watch=watch,
        )

    validation = validate_configuration(configuration)
    if not validation.is_valid:
        click.echo("Configuration validation failed:", err=True)
        for error in validation.errors:
            click.echo(f"  - {error.field}: {error.message}", err=True)
        sys.exit(1)
    for warning in validation.warnings:
        logger.warning("%s: %s", warning.field, warning.message)

    if dry_run:
        with command_errors("Failed to create execution plan"):
            plan = build_execution_plan(configuration, options)
        if output_format == "json":
            click.echo(json.dumps(plan.to_dict(), indent=2))
        else:
            _print_plan(plan)
        sys.exit(0)

    if watch:
        click.echo("Warning: watch mode is not supported yet, running tests once", err=True)

    with command_errors("Test execution failed"):
        executor = load_orchestrator(orchestrator or settings.orchestrator)
        click.echo(f"Running tests for '{configuration.name}' in {configuration.environment}...")
        with Notifier(
            configuration.notification_settings,
            configuration.reporting_options,
            timeout=settings.notification_timeout_seconds,
        ) as notifier:
            result = TestRunner(configuration, executor, notifier).run(options)
        report_path = _write_report(result, configuration, options)

    if report_path is not None:
        click.echo(f"Report written to: {report_path}")
    click.echo(ConsoleReporter().generate(result))

    logger.info(
        "Tests complete: %d passed, %d failed, %d errors",
        result.passed,
        result.failures,
        result.errors,
    )
    if not result.success:
        fail("Test run failed")
    sys.exit(0)
