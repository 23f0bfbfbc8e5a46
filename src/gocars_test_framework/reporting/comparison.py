"""
Rendering of baseline/current result comparisons.
"""

import json
from html import escape

from ..exceptions import UnsupportedFormatError
from ..results import METRICS, Comparison

COMPARISON_FORMATS = ("table", "json", "html")

LABELS = {
    "totalTests": "Total Tests",
    "passed": "Passed",
    "failures": "Failures",
    "errors": "Errors",
    "skipped": "Skipped",
    "duration": "Duration (ms)",
    "successRate": "Success Rate (%)",
}


def _fmt(value: float) -> str:
    if isinstance(value, float) and not value.is_integer():
        return f"{value:.2f}"
    return str(int(value))


def _signed(value: float) -> str:
    text = _fmt(value)
    return text if value <= 0 else f"+{text}"


def _table(comparison: Comparison) -> str:
    header = f"{'Metric':<20}{'Baseline':>12}{'Current':>12}{'Change':>12}"
    lines = ["Test Results Comparison", "=" * len(header), header, "-" * len(header)]
    for metric in METRICS:
        lines.append(
            f"{LABELS[metric]:<20}"
            f"{_fmt(comparison.baseline[metric]):>12}"
            f"{_fmt(comparison.current[metric]):>12}"
            f"{_signed(comparison.changes[metric]):>12}"
        )
    return "\n".join(lines)


def _html(comparison: Comparison) -> str:
    rows = "".join(
        f"<tr><td>{escape(LABELS[m])}</td><td>{_fmt(comparison.baseline[m])}</td>"
        f"<td>{_fmt(comparison.current[m])}</td><td>{_signed(comparison.changes[m])}</td></tr>\n"
        for m in METRICS
    )
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n<head>\n<meta charset="utf-8">\n'
        "<title>Test Results Comparison</title>\n"
        "<style>body{font-family:Arial,Helvetica,sans-serif;margin:2rem}"
        "table{border-collapse:collapse}th,td{padding:.4rem .8rem;"
        "border-bottom:1px solid #ccc;text-align:right}</style>\n"
        "</head>\n<body>\n<h1>Test Results Comparison</h1>\n<table>\n"
        "<tr><th>Metric</th><th>Baseline</th><th>Current</th><th>Change</th></tr>\n"
        f"{rows}</table>\n</body>\n</html>\n"
    )


def render_comparison(comparison: Comparison, fmt: str = "table") -> str:
    """
    Render a comparison as a text table, JSON or HTML.

    Raises:
        UnsupportedFormatError: If *fmt* is not one of table, json, html
    """
    if fmt == "table":
        return _table(comparison)
    if fmt == "json":
        return json.dumps(comparison.to_dict(), indent=2)
    if fmt == "html":
        return _html(comparison)
    raise UnsupportedFormatError(fmt, COMPARISON_FORMATS)
