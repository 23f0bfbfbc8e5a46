"""
JSON reporter for test run results.
"""

import json

from ..models import TestRunResult
from .base import ReportGenerator


class JSONReporter(ReportGenerator):
    """Emit the result document itself, for programmatic analysis."""

    extension = "json"

    def generate(self, result: TestRunResult) -> str:
        """Generate JSON report, reusing the source document when there is one."""
        document = result.raw if result.raw is not None else result.to_dict()
        return json.dumps(document, indent=2)
