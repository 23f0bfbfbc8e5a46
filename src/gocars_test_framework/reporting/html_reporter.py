"""
Self-contained HTML reporter for test run results.
"""

from html import escape
from typing import List, Optional

from ..models import CaseResult, SuiteResult, TestRunResult, TestStatus
from .base import ReportGenerator

HTML_TEMPLATES = ("default", "detailed", "summary", "executive")

THEMES = {
    "light": {"bg": "#ffffff", "fg": "#212529", "panel": "#f8f9fa", "accent": "#0d6efd"},
    "dark": {"bg": "#1e1e1e", "fg": "#e0e0e0", "panel": "#2b2b2b", "accent": "#4dabf7"},
    "corporate": {"bg": "#f4f6f9", "fg": "#1b2a41", "panel": "#ffffff", "accent": "#1b4f72"},
}

STATUS_COLORS = {
    TestStatus.PASSED: "#2e7d32",
    TestStatus.FAILED: "#c62828",
    TestStatus.ERROR: "#ad1457",
    TestStatus.SKIPPED: "#f9a825",
}

SLOWEST_TEST_COUNT = 10


def _stylesheet(theme: str) -> str:
    colors = THEMES[theme]
    return (
        f"body{{font-family:Arial,Helvetica,sans-serif;margin:2rem;"
        f"background:{colors['bg']};color:{colors['fg']}}}"
        f"h1,h2{{color:{colors['accent']}}}"
        f".panel{{background:{colors['panel']};padding:1rem;margin-bottom:1rem;"
        f"border-radius:6px}}"
        "table{border-collapse:collapse;width:100%}"
        "th,td{text-align:left;padding:.4rem .6rem;border-bottom:1px solid #ccc}"
        ".metric{display:inline-block;margin-right:2rem}"
        ".metric .value{font-size:1.6rem;font-weight:bold}"
        "pre{white-space:pre-wrap;font-size:.85rem}"
    )


class HTMLReporter(ReportGenerator):
    """Render a test run as one HTML document with inline styles."""

    extension = "html"

    def __init__(
        self,
        title: str = "GoCars Test Report",
        template: str = "default",
        theme: str = "light",
        include_coverage: bool = False,
        include_performance: bool = False,
    ) -> None:
        if template not in HTML_TEMPLATES:
            raise ValueError(
                f"Invalid report template: {template}. Must be one of {', '.join(HTML_TEMPLATES)}"
            )
        if theme not in THEMES:
            raise ValueError(f"Invalid theme: {theme}. Must be one of {', '.join(THEMES)}")
        self.title = title
        self.template = template
        self.theme = theme
        self.include_coverage = include_coverage
        self.include_performance = include_performance

    def generate(self, result: TestRunResult) -> str:
        """Generate HTML report."""
        sections = [self._summary(result)]
        if self.template == "summary":
            sections.append(self._suite_totals(result))
        elif self.template in ("default", "detailed"):
            sections.extend(self._suite_section(suite) for suite in result.suites)
        if self.include_performance and self.template != "executive":
            sections.append(self._performance(result))
        if self.include_coverage:
            sections.append(self._coverage(result))

        title = escape(self.title)
        return (
            "<!DOCTYPE html>\n"
            '<html lang="en">\n<head>\n<meta charset="utf-8">\n'
            f"<title>{title}</title>\n"
            f"<style>{_stylesheet(self.theme)}</style>\n"
            "</head>\n<body>\n"
            f"<h1>{title}</h1>\n"
            f"<p>Generated for run at {escape(result.timestamp.isoformat())}</p>\n"
            + "\n".join(sections)
            + "\n</body>\n</html>\n"
        )

    def _summary(self, result: TestRunResult) -> str:
        outcome = "PASSED" if result.success else "FAILED"
        color = STATUS_COLORS[TestStatus.PASSED if result.success else TestStatus.FAILED]
        metrics = [
            ("Total Tests", str(result.total_tests)),
            ("Passed", str(result.passed)),
            ("Failed", str(result.failures)),
            ("Errors", str(result.errors)),
            ("Skipped", str(result.skipped)),
            ("Success Rate", f"{result.success_rate:.1f}%"),
            ("Duration", f"{result.duration / 1000:.2f}s"),
        ]
        cells = "".join(
            f'<div class="metric"><div>{label}</div><div class="value">{value}</div></div>'
            for label, value in metrics
        )
        return (
            '<div class="panel summary">\n'
            f'<h2>Summary: <span style="color:{color}">{outcome}</span></h2>\n'
            f"{cells}\n</div>"
        )

    def _suite_totals(self, result: TestRunResult) -> str:
        rows = "".join(
            f"<tr><td>{escape(s.name)}</td><td>{len(s.tests)}</td><td>{s.passed}</td>"
            f"<td>{s.failures}</td><td>{s.errors}</td><td>{s.skipped}</td>"
            f"<td>{s.duration:.0f}ms</td></tr>\n"
            for s in result.suites
        )
        return (
            '<div class="panel">\n<h2>Suites</h2>\n<table>\n'
            "<tr><th>Suite</th><th>Tests</th><th>Passed</th><th>Failed</th>"
            "<th>Errors</th><th>Skipped</th><th>Duration</th></tr>\n"
            f"{rows}</table>\n</div>"
        )

    def _case_row(self, case: CaseResult) -> str:
        color = STATUS_COLORS[case.status]
        row = (
            f"<tr><td>{escape(case.name)}</td>"
            f'<td style="color:{color}">{case.status.value}</td>'
            f"<td>{case.duration:.0f}ms</td></tr>\n"
        )
        if self.template == "detailed" and (case.message or case.stack):
            detail = escape(case.message or "")
            if case.stack:
                detail += f"<pre>{escape(case.stack)}</pre>"
            row += f'<tr><td colspan="3">{detail}</td></tr>\n'
        return row

    def _suite_section(self, suite: SuiteResult) -> str:
        rows = "".join(self._case_row(case) for case in suite.tests)
        return (
            '<div class="panel suite">\n'
            f"<h2>{escape(suite.name)}</h2>\n"
            f"<p>{suite.passed}/{len(suite.tests)} passed in {suite.duration:.0f}ms</p>\n"
            "<table>\n<tr><th>Test</th><th>Status</th><th>Duration</th></tr>\n"
            f"{rows}</table>\n</div>"
        )

    def _performance(self, result: TestRunResult) -> str:
        cases: List[tuple] = [(s.name, c) for s in result.suites for c in s.tests]
        cases.sort(key=lambda item: item[1].duration, reverse=True)
        rows = "".join(
            f"<tr><td>{escape(suite)}</td><td>{escape(case.name)}</td>"
            f"<td>{case.duration:.0f}ms</td></tr>\n"
            for suite, case in cases[:SLOWEST_TEST_COUNT]
        )
        return (
            '<div class="panel performance">\n<h2>Slowest Tests</h2>\n<table>\n'
            "<tr><th>Suite</th><th>Test</th><th>Duration</th></tr>\n"
            f"{rows}</table>\n</div>"
        )

    def _coverage(self, result: TestRunResult) -> str:
        coverage: Optional[dict] = result.coverage
        if not coverage:
            body = "<p>No coverage data was recorded for this run.</p>"
        else:
            rows = "".join(
                f"<tr><td>{escape(str(key))}</td><td>{escape(str(value))}</td></tr>\n"
                for key, value in coverage.items()
            )
            body = f"<table>\n<tr><th>Metric</th><th>Value</th></tr>\n{rows}</table>"
        return f'<div class="panel coverage">\n<h2>Coverage</h2>\n{body}\n</div>'
