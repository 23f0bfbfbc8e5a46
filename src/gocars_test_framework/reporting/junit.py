"""
JUnit XML reporter for test run results.
"""

import xml.etree.ElementTree as ET

from ..models import TestRunResult, TestStatus
from .base import ReportGenerator


def _seconds(milliseconds: float) -> str:
    return f"{milliseconds / 1000:.3f}"


class JUnitReporter(ReportGenerator):
    """Generate JUnit XML format for CI/CD integration."""

    extension = "xml"

    def __init__(self, name: str = "GoCars Tests") -> None:
        self.name = name

    def generate(self, result: TestRunResult) -> str:
        """Generate JUnit XML report."""
        testsuites = ET.Element("testsuites")
        testsuites.set("name", self.name)
        testsuites.set("tests", str(result.total_tests))
        testsuites.set("failures", str(result.failures))
        testsuites.set("errors", str(result.errors))
        testsuites.set("skipped", str(result.skipped))
        testsuites.set("time", _seconds(result.duration))
        testsuites.set("timestamp", result.timestamp.isoformat())

        for suite in result.suites:
            testsuite = ET.SubElement(testsuites, "testsuite")
            testsuite.set("name", suite.name)
            testsuite.set("tests", str(len(suite.tests)))
            testsuite.set("failures", str(suite.failures))
            testsuite.set("errors", str(suite.errors))
            testsuite.set("skipped", str(suite.skipped))
            testsuite.set("time", _seconds(suite.duration))

            for case in suite.tests:
                testcase = ET.SubElement(testsuite, "testcase")
                testcase.set("name", case.name)
                testcase.set("classname", suite.name)
                testcase.set("time", _seconds(case.duration))

                if case.status == TestStatus.FAILED:
                    failure = ET.SubElement(testcase, "failure")
                    failure.set("message", case.message or "Test failed")
                    failure.text = case.stack or ""

                elif case.status == TestStatus.ERROR:
                    error = ET.SubElement(testcase, "error")
                    error.set("message", case.message or "Test error")
                    error.text = case.stack or ""

                elif case.status == TestStatus.SKIPPED:
                    skipped = ET.SubElement(testcase, "skipped")
                    if case.message:
                        skipped.set("message", case.message)

        ET.indent(testsuites, space="  ")
        return ET.tostring(testsuites, encoding="unicode", xml_declaration=True)
