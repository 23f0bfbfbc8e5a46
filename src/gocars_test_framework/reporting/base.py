"""
Base class for report generators.
"""

from abc import ABC, abstractmethod

from ..models import TestRunResult


class ReportGenerator(ABC):
    """Base class for generating test reports."""

    #: File extension used when the report is written to disk
    extension = "txt"

    @abstractmethod
    def generate(self, result: TestRunResult) -> str:
        """
        Generate a report from a test run result.

        Args:
            result: TestRunResult to render

        Returns:
            Report as a string
        """
        pass
