"""
Result document loading, aggregation, merging and comparison.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from .exceptions import ParseError
from .models import SuiteResult, TestRunResult

logger = logging.getLogger(__name__)


def aggregate_suites(suites: List[SuiteResult]) -> TestRunResult:
    """
    Aggregate suite results into a run result.

    Args:
        suites: List of SuiteResult objects

    Returns:
        TestRunResult with counters derived from the test cases
    """
    total_tests = sum(len(s.tests) for s in suites)
    failures = sum(s.failures for s in suites)
    errors = sum(s.errors for s in suites)

    return TestRunResult(
        total_tests=total_tests,
        passed=sum(s.passed for s in suites),
        failures=failures,
        errors=errors,
        skipped=sum(s.skipped for s in suites),
        duration=sum(s.duration for s in suites),
        suites=list(suites),
        success=failures == 0 and errors == 0,
    )


def load_result_file(path: Union[str, Path]) -> TestRunResult:
    """
    Load one result document.

    Raises:
        FileNotFoundError: If *path* does not exist
        ParseError: If the file is not a valid result document
    """
    p = Path(path)
    try:
        content = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileNotFoundError(f"Result file not found: {p}")
    try:
        data = json.loads(content)
    except ValueError as e:
        raise ParseError(str(p), str(e))
    result = TestRunResult.from_dict(data, source=str(p))
    result.raw = data
    return result


def load_results(path: Union[str, Path]) -> List[TestRunResult]:
    """
    Load a single result file, or every ``*.json`` file in a directory.

    Raises:
        FileNotFoundError: If *path* does not exist or holds no result files
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input path not found: {p}")
    if p.is_file():
        return [load_result_file(p)]

    files = sorted(f for f in p.iterdir() if f.is_file() and f.suffix == ".json")
    if not files:
        raise FileNotFoundError(f"No test result files found in {p}")
    logger.info("Loading %d result files from %s", len(files), p)
    return [load_result_file(f) for f in files]


def merge_results(results: Sequence[TestRunResult]) -> TestRunResult:
    """
    Merge result documents into one.

    Counters and durations are summed, suites concatenated in input order,
    and the merged run succeeds only if every input succeeded. The merged
    timestamp is the latest input timestamp, naive ones read as local time,
    so merging a single result yields an equivalent result.

    Raises:
        ValueError: If *results* is empty
    """
    if not results:
        raise ValueError("At least one result is required to merge")

    merged = TestRunResult(
        total_tests=0,
        passed=0,
        failures=0,
        errors=0,
        skipped=0,
        duration=0,
        suites=[],
        success=True,
        timestamp=max(results, key=lambda r: r.timestamp.timestamp()).timestamp,
    )
    for result in results:
        merged.total_tests += result.total_tests
        merged.passed += result.passed
        merged.failures += result.failures
        merged.errors += result.errors
        merged.skipped += result.skipped
        merged.duration += result.duration
        merged.suites.extend(result.suites)
        merged.success = merged.success and result.success
    if len(results) == 1:
        merged.coverage = results[0].coverage
    return merged


METRICS = ("totalTests", "passed", "failures", "errors", "skipped", "duration", "successRate")


def _snapshot(result: TestRunResult) -> Dict[str, float]:
    return {
        "totalTests": result.total_tests,
        "passed": result.passed,
        "failures": result.failures,
        "errors": result.errors,
        "skipped": result.skipped,
        "duration": result.duration,
        "successRate": result.success_rate,
    }


@dataclass
class Comparison:
    """Per-metric view of a baseline run, a current run and their deltas."""

    baseline: Dict[str, float]
    current: Dict[str, float]
    changes: Dict[str, float]

    def to_dict(self) -> Dict[str, Any]:
        return {"baseline": self.baseline, "current": self.current, "changes": self.changes}


def compare_results(baseline: TestRunResult, current: TestRunResult) -> Comparison:
    """Compute ``current - baseline`` for every counter and the success rate."""
    before = _snapshot(baseline)
    after = _snapshot(current)
    return Comparison(
        baseline=before,
        current=after,
        changes={metric: after[metric] - before[metric] for metric in METRICS},
    )
