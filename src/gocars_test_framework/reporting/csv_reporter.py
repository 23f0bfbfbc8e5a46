"""
CSV reporter for test run results.
"""

import csv
import io

from ..models import TestRunResult
from .base import ReportGenerator

CSV_COLUMNS = ["suite", "test", "status", "duration_ms", "message"]


class CSVReporter(ReportGenerator):
    """One row per test case, for spreadsheets and ad-hoc analysis."""

    extension = "csv"

    def generate(self, result: TestRunResult) -> str:
        """Generate CSV report."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_COLUMNS)
        for suite in result.suites:
            for case in suite.tests:
                writer.writerow(
                    [suite.name, case.name, case.status.value, case.duration, case.message or ""]
                )
        return buffer.getvalue()
