"""
Report artifact generation, listing and cleanup.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional, Union

from .exceptions import StorageError, UnsupportedFormatError
from .fileio import write_text_atomic
from .models import TestRunResult
from .reporting import CSVReporter, HTMLReporter, JSONReporter, JUnitReporter, ReportGenerator

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("html", "json", "junit", "csv")
# Accepted on the command line, never produced by this tool
UNSUPPORTED_FORMATS = ("pdf",)
REPORT_EXTENSIONS = (".html", ".pdf", ".json", ".xml", ".csv")


@dataclass
class ReportOptions:
    """How a report is rendered and where it is written."""

    title: str = "GoCars Test Report"
    format: str = "html"
    template: str = "default"
    theme: str = "light"
    include_coverage: bool = False
    include_performance: bool = False
    output_path: str = "./reports"


def slugify(title: str) -> str:
    """Lower-case *title* and collapse anything but letters and digits to ``-``."""
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug or "report"


def create_reporter(options: ReportOptions) -> ReportGenerator:
    """
    Build the generator for ``options.format``.

    Raises:
        UnsupportedFormatError: If the format is unknown or not implemented
        ValueError: If the HTML template or theme is unknown
    """
    fmt = options.format.lower()
    if fmt == "html":
        return HTMLReporter(
            title=options.title,
            template=options.template,
            theme=options.theme,
            include_coverage=options.include_coverage,
            include_performance=options.include_performance,
        )
    if fmt == "json":
        return JSONReporter()
    if fmt == "junit":
        return JUnitReporter(name=options.title)
    if fmt == "csv":
        return CSVReporter()
    raise UnsupportedFormatError(options.format, REPORT_FORMATS)


def generate_report(
    result: TestRunResult, options: ReportOptions, now: Optional[datetime] = None
) -> Path:
    """
    Render *result* and write it to ``options.output_path``.

    The file is named ``<slug(title)>-<YYYYmmdd-HHMMSS>.<ext>``.

    Returns:
        Path of the written report
    """
    reporter = create_reporter(options)
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    path = Path(options.output_path) / f"{slugify(options.title)}-{stamp}.{reporter.extension}"
    write_text_atomic(path, reporter.generate(result))
    logger.info("Wrote %s report to %s", options.format, path)
    return path


@dataclass
class ReportArtifact:
    """A previously generated report file."""

    name: str
    path: Path
    size: int
    modified: datetime


def list_reports(directory: Union[str, Path]) -> List[ReportArtifact]:
    """
    List report files in *directory*, newest first.

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    d = Path(directory)
    if not d.is_dir():
        raise FileNotFoundError(f"Report directory not found: {d}")

    artifacts = []
    for entry in d.iterdir():
        if not entry.is_file() or entry.suffix.lower() not in REPORT_EXTENSIONS:
            continue
        stat = entry.stat()
        artifacts.append(
            ReportArtifact(
                name=entry.name,
                path=entry,
                size=stat.st_size,
                modified=datetime.fromtimestamp(stat.st_mtime),
            )
        )
    artifacts.sort(key=lambda a: a.modified, reverse=True)
    return artifacts


def find_expired_reports(
    directory: Union[str, Path], days: int, now: Optional[datetime] = None
) -> List[Path]:
    """Return files in *directory* last modified before ``now - days``."""
    if days < 0:
        raise ValueError(f"days must be non-negative, got {days}")
    d = Path(directory)
    if not d.is_dir():
        raise FileNotFoundError(f"Report directory not found: {d}")

    cutoff = ((now or datetime.now()) - timedelta(days=days)).timestamp()
    return sorted(
        entry for entry in d.iterdir() if entry.is_file() and entry.stat().st_mtime < cutoff
    )


def clean_reports(directory: Union[str, Path], days: int, now: Optional[datetime] = None) -> int:
    """
    Delete files in *directory* older than *days* days.

    Returns:
        Number of files removed

    Raises:
        StorageError: If a file cannot be deleted
    """
    removed = 0
    for path in find_expired_reports(directory, days, now):
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            raise StorageError(str(path), e) from e
        logger.debug("Removed expired report %s", path)
        removed += 1
    logger.info("Removed %d report files older than %d days from %s", removed, days, directory)
    return removed
