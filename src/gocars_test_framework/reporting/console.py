"""
Console reporter for test run results.
"""

import os
import sys

from ..models import TestRunResult, TestStatus
from .base import ReportGenerator


def _supports_color() -> bool:
    """Return True if the output stream likely supports ANSI colours."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    # Non-TTY output (e.g. piped to a file) should not use colour
    if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
        return False
    if sys.platform == "win32":
        try:
            import ctypes

            kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]
            handle = kernel32.GetStdHandle(-11)
            mode = ctypes.c_ulong()
            kernel32.GetConsoleMode(handle, ctypes.byref(mode))
            kernel32.SetConsoleMode(handle, mode.value | 0x0004)
        except Exception:
            return False
    return True


class ConsoleReporter(ReportGenerator):
    """Generate colored console output for a test run."""

    extension = "txt"

    def __init__(self, max_listed_tests: int = 20) -> None:
        self.max_listed_tests = max_listed_tests
        color = _supports_color()
        self.GREEN = "\033[92m" if color else ""
        self.RED = "\033[91m" if color else ""
        self.YELLOW = "\033[93m" if color else ""
        self.RESET = "\033[0m" if color else ""
        self.BOLD = "\033[1m" if color else ""

    def _symbol(self, status: TestStatus) -> str:
        if status == TestStatus.PASSED:
            return f"{self.GREEN}✓{self.RESET}"
        if status == TestStatus.SKIPPED:
            return f"{self.YELLOW}○{self.RESET}"
        return f"{self.RED}✗{self.RESET}"

    def generate(self, result: TestRunResult) -> str:
        """Generate console report."""
        lines = []

        lines.append(f"\n{self.BOLD}GoCars Test Results{self.RESET}")
        lines.append("=" * 60)

        lines.append(f"  Total Tests: {result.total_tests}")
        lines.append(f"  {self.GREEN}Passed: {result.passed}{self.RESET}")
        lines.append(f"  {self.RED}Failed: {result.failures}{self.RESET}")
        lines.append(f"  {self.RED}Errors: {result.errors}{self.RESET}")
        lines.append(f"  {self.YELLOW}Skipped: {result.skipped}{self.RESET}")
        lines.append(f"  Duration: {result.duration / 1000:.2f}s")
        lines.append(f"  Success Rate: {result.success_rate:.1f}%")

        if result.success:
            lines.append(f"\n{self.GREEN}{self.BOLD}✓ ALL TESTS PASSED{self.RESET}")
        else:
            lines.append(
                f"\n{self.RED}{self.BOLD}✗ {result.failures + result.errors} "
                f"TEST(S) FAILED{self.RESET}"
            )

        failed = [
            (suite, case)
            for suite in result.suites
            for case in suite.tests
            if case.status in (TestStatus.FAILED, TestStatus.ERROR)
        ]
        if failed:
            lines.append(f"\n{self.BOLD}Failed Tests:{self.RESET}")
            for suite, case in failed:
                lines.append(f"\n  {self.RED}✗ {suite.name} › {case.name}{self.RESET}")
                if case.message:
                    lines.append(f"    {case.message}")
                lines.append(f"    Duration: {case.duration:.0f}ms")

        listed = sum(len(s.tests) for s in result.suites)
        if result.suites and listed <= self.max_listed_tests:
            lines.append(f"\n{self.BOLD}All Tests:{self.RESET}")
            for suite in result.suites:
                lines.append(f"  {suite.name}")
                for case in suite.tests:
                    lines.append(
                        f"    {self._symbol(case.status)} {case.name} ({case.duration:.0f}ms)"
                    )

        lines.append("=" * 60)
        lines.append("")
        return "\n".join(lines)
