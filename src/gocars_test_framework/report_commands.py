"""
``report`` command group: generate, list, merge, compare, serve and clean reports.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import click

from .cli_support import command_errors, fail, get_settings, split_list
from .fileio import write_json_atomic, write_text_atomic
from .models import TestRunResult
from .reporting.comparison import COMPARISON_FORMATS, render_comparison
from .reporting.html_reporter import HTML_TEMPLATES, THEMES
from .reports import (
    REPORT_FORMATS,
    UNSUPPORTED_FORMATS,
    ReportOptions,
    clean_reports,
    generate_report,
    list_reports,
)
from .results import compare_results, load_result_file, load_results, merge_results
from .server import serve_reports

logger = logging.getLogger(__name__)


def format_size(size: int) -> str:
    """Human-readable file size."""
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def _echo_summary(result: TestRunResult) -> None:
    click.echo("\nReport Summary:")
    click.echo("=" * 40)
    click.echo(f"Total Tests: {result.total_tests}")
    click.echo(f"Passed: {result.passed}")
    click.echo(f"Failed: {result.failures}")
    click.echo(f"Errors: {result.errors}")
    click.echo(f"Duration: {result.duration / 1000:.2f}s")
    click.echo(f"Success Rate: {result.success_rate:.1f}%")


@click.group(invoke_without_command=True)
@click.pass_context
def report(ctx: click.Context) -> None:
    """Generate and manage test reports."""
    if ctx.invoked_subcommand is None:
        click.echo("Report command requires a subcommand", err=True)
        click.echo(ctx.get_help())
        sys.exit(1)


@report.command()
@click.option(
    "-i",
    "--input",
    "input_path",
    type=click.Path(),
    default=None,
    help="Result file or directory (default: results_directory setting)",
)
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Output directory (default: report_directory setting)",
)
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice(REPORT_FORMATS + UNSUPPORTED_FORMATS),
    default="html",
    help="Report format",
)
@click.option(
    "-t",
    "--template",
    type=click.Choice(HTML_TEMPLATES),
    default="default",
    help="HTML report template",
)
@click.option("--title", default="Test Report", help="Report title")
@click.option("--theme", type=click.Choice(tuple(THEMES)), default="light", help="HTML theme")
@click.option("--include-coverage", is_flag=True, help="Include coverage section")
@click.option("--include-performance", is_flag=True, help="Include slowest tests section")
@click.pass_context
def generate(
    ctx: click.Context,
    input_path: Optional[str],
    output_dir: Optional[str],
    fmt: str,
    template: str,
    title: str,
    theme: str,
    include_coverage: bool,
    include_performance: bool,
) -> None:
    """Generate a report from test results."""
    settings = get_settings(ctx)
    source = Path(input_path or settings.results_directory)
    if not source.exists():
        fail(f"Input path not found: {source}")

    click.echo("Generating test report...")
    with command_errors("Failed to generate report"):
        results = load_results(source)
        result = results[0] if len(results) == 1 else merge_results(results)
        path = generate_report(
            result,
            ReportOptions(
                title=title,
                format=fmt,
                template=template,
                theme=theme,
                include_coverage=include_coverage,
                include_performance=include_performance,
                output_path=output_dir or settings.report_directory,
            ),
        )

    click.echo(f"Report generated: {path}")
    _echo_summary(result)


@report.command(name="list")
@click.option("-d", "--detailed", is_flag=True, help="Show size, date and path of each report")
@click.option(
    "--directory",
    type=click.Path(file_okay=False),
    default=None,
    help="Report directory (default: report_directory setting)",
)
@click.pass_context
def list_command(ctx: click.Context, detailed: bool, directory: Optional[str]) -> None:
    """List generated reports."""
    report_dir = Path(directory or get_settings(ctx).report_directory)
    if not report_dir.is_dir():
        click.echo("No reports directory found")
        return

    with command_errors("Failed to list reports"):
        artifacts = list_reports(report_dir)

    if not artifacts:
        click.echo("No reports found")
        return

    click.echo(f"Found {len(artifacts)} report(s):")
    click.echo("=" * 50)
    for artifact in artifacts:
        modified = artifact.modified.strftime("%Y-%m-%d %H:%M:%S")
        if detailed:
            click.echo(artifact.name)
            click.echo(f"  Size: {format_size(artifact.size)}")
            click.echo(f"  Modified: {modified}")
            click.echo(f"  Path: {artifact.path}")
            click.echo("")
        else:
            click.echo(f"{artifact.name:<30} {format_size(artifact.size):<10} {modified}")


@report.command()
@click.option("--inputs", required=True, help="Result files to merge (comma-separated)")
@click.option(
    "--output-file",
    type=click.Path(dir_okay=False),
    default="./merged-results.json",
    show_default=True,
    help="Merged result file",
)
def merge(inputs: str, output_file: str) -> None:
    """Merge multiple test result files."""
    paths = split_list(inputs)
    if not paths:
        fail("No input files specified")

    click.echo(f"Merging {len(paths)} result file(s)...")
    loaded: List[TestRunResult] = []
    merged_from: List[str] = []
    with command_errors("Failed to merge results"):
        for item in paths:
            if not Path(item).is_file():
                click.echo(f"Warning: Input not found, skipping: {item}", err=True)
                continue
            loaded.append(load_result_file(item))
            merged_from.append(item)
            logger.debug("Loaded %s", item)

        if not loaded:
            fail("No valid result files found")

        merged = merge_results(loaded)
        document = merged.to_dict()
        document["mergedFrom"] = merged_from
        document["mergedAt"] = datetime.now().isoformat()
        write_json_atomic(output_file, document)

    click.echo(f"Merged results saved to: {output_file}")
    click.echo(f"Total tests: {merged.total_tests}")
    click.echo(f"Success rate: {merged.success_rate:.1f}%")


@report.command()
@click.option("-b", "--baseline", required=True, help="Baseline result file")
@click.option("-c", "--current", required=True, help="Current result file")
@click.option(
    "--output-format",
    type=click.Choice(COMPARISON_FORMATS),
    default="table",
    help="Comparison output format",
)
@click.option(
    "--output-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the comparison to a file instead of stdout",
)
def compare(baseline: str, current: str, output_format: str, output_file: Optional[str]) -> None:
    """Compare two test result files."""
    if not Path(baseline).is_file():
        fail(f"Baseline file not found: {baseline}")
    if not Path(current).is_file():
        fail(f"Current file not found: {current}")

    with command_errors("Failed to compare results"):
        comparison = compare_results(load_result_file(baseline), load_result_file(current))
        rendered = render_comparison(comparison, output_format)
        if output_file:
            write_text_atomic(output_file, rendered + "\n")

    if output_file:
        click.echo(f"Comparison written to: {output_file}")
    else:
        click.echo(rendered)


@report.command()
@click.option("-p", "--port", type=click.IntRange(0, 65535), default=8080, show_default=True)
@click.option("--host", default="localhost", show_default=True)
@click.option(
    "--directory",
    type=click.Path(file_okay=False),
    default=None,
    help="Report directory (default: report_directory setting)",
)
@click.pass_context
def serve(ctx: click.Context, port: int, host: str, directory: Optional[str]) -> None:
    """Serve generated reports over HTTP."""
    report_dir = Path(directory or get_settings(ctx).report_directory)
    if not report_dir.is_dir():
        fail(f"Report directory not found: {report_dir}")

    click.echo(f"Starting report server on http://{host}:{port}")
    click.echo(f"Serving reports from: {report_dir}")
    click.echo("Press Ctrl+C to stop the server")
    with command_errors("Failed to serve reports"):
        serve_reports(report_dir, host, port)


@report.command()
@click.option("-d", "--days", type=click.IntRange(min=0), default=30, show_default=True)
@click.option("--confirm", is_flag=True, help="Confirm the clean operation")
@click.option(
    "--directory",
    type=click.Path(file_okay=False),
    default=None,
    help="Report directory (default: report_directory setting)",
)
@click.pass_context
def clean(ctx: click.Context, days: int, confirm: bool, directory: Optional[str]) -> None:
    """Remove reports older than N days."""
    if not confirm:
        fail(f"This will remove reports older than {days} days. Use --confirm to proceed.")

    report_dir = Path(directory or get_settings(ctx).report_directory)
    if not report_dir.is_dir():
        click.echo("No reports directory found")
        return

    with command_errors("Failed to clean reports"):
        removed = clean_reports(report_dir, days)

    click.echo(f"Removed {removed} old report(s)")
