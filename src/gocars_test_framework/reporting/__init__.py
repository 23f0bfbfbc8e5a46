"""
Reporting modules for the GoCars test framework.
"""

from .base import ReportGenerator
from .comparison import render_comparison
from .console import ConsoleReporter
from .csv_reporter import CSVReporter
from .html_reporter import HTMLReporter
from .json_reporter import JSONReporter
from .junit import JUnitReporter

__all__ = [
    "ReportGenerator",
    "ConsoleReporter",
    "JSONReporter",
    "JUnitReporter",
    "HTMLReporter",
    "CSVReporter",
    "render_comparison",
]
