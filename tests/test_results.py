"""Tests for result loading, aggregation, merging and comparison."""

import json
from datetime import datetime

import pytest

from src.gocars_test_framework.exceptions import ParseError
from src.gocars_test_framework.models import CaseResult, SuiteResult, TestRunResult, TestStatus
from src.gocars_test_framework.results import (
    METRICS,
    aggregate_suites,
    compare_results,
    load_result_file,
    load_results,
    merge_results,
)


def _result(total, passed, failures=0, errors=0, skipped=0, duration=1000, **kwargs):
    return TestRunResult(
        total_tests=total,
        passed=passed,
        failures=failures,
        errors=errors,
        skipped=skipped,
        duration=duration,
        success=failures == 0 and errors == 0,
        **kwargs,
    )


class TestAggregateSuites:
    """Tests for aggregate_suites function."""

    def test_empty(self):
        result = aggregate_suites([])
        assert result.total_tests == 0
        assert result.success is True

    def test_mixed(self):
        suites = [
            SuiteResult(
                "auth",
                300,
                [
                    CaseResult("t1", TestStatus.PASSED, 100),
                    CaseResult("t2", TestStatus.FAILED, 200),
                ],
            ),
            SuiteResult(
                "ui",
                60,
                [
                    CaseResult("t3", TestStatus.SKIPPED, 10),
                    CaseResult("t4", TestStatus.ERROR, 50),
                ],
            ),
        ]
        result = aggregate_suites(suites)
        assert result.total_tests == 4
        assert result.passed == 1
        assert result.failures == 1
        assert result.errors == 1
        assert result.skipped == 1
        assert result.duration == 360
        assert result.success is False


class TestMergeResults:
    """Tests for merge_results function."""

    def test_single_result_is_identity(self):
        original = _result(10, 8, failures=2, coverage={"lines": 70})
        merged = merge_results([original])
        assert merged.to_dict() == original.to_dict()

    def test_sums_counters(self):
        merged = merge_results([_result(10, 8, failures=2), _result(5, 5, duration=500)])
        assert merged.total_tests == 15
        assert merged.passed == 13
        assert merged.failures == 2
        assert merged.duration == 1500
        assert merged.success is False

    def test_success_when_all_succeed(self):
        assert merge_results([_result(1, 1), _result(2, 2)]).success is True

    def test_concatenates_suites_in_order(self):
        first = _result(1, 1, suites=[SuiteResult("a")])
        second = _result(1, 1, suites=[SuiteResult("b"), SuiteResult("c")])
        merged = merge_results([first, second])
        assert [s.name for s in merged.suites] == ["a", "b", "c"]

    def test_latest_timestamp(self):
        early = _result(1, 1, timestamp=datetime(2024, 1, 1))
        late = _result(1, 1, timestamp=datetime(2024, 6, 1))
        assert merge_results([late, early]).timestamp == datetime(2024, 6, 1)

    def test_mixed_aware_and_naive_timestamps(self):
        utc = TestRunResult.from_dict(
            {"totalTests": 1, "passed": 1, "timestamp": "2024-05-01T10:00:00.000Z"}
        )
        local = TestRunResult.from_dict(
            {"totalTests": 2, "passed": 2, "timestamp": "2024-06-01T11:00:00"}
        )
        merged = merge_results([utc, local])
        assert merged.total_tests == 3
        assert merged.timestamp == datetime(2024, 6, 1, 11, 0, 0)
        assert merge_results([local, utc]).timestamp == merged.timestamp

    def test_empty_input(self):
        with pytest.raises(ValueError):
            merge_results([])


class TestCompareResults:
    """Tests for compare_results function."""

    def test_deltas(self):
        comparison = compare_results(_result(100, 90, failures=10), _result(100, 95, failures=5))
        assert comparison.changes["passed"] == 5
        assert comparison.changes["failures"] == -5
        assert comparison.changes["successRate"] == pytest.approx(5.0)
        assert comparison.baseline["totalTests"] == 100

    def test_all_metrics_present(self):
        comparison = compare_results(_result(1, 1), _result(1, 1))
        assert set(comparison.changes) == set(METRICS)
        assert all(v == 0 for v in comparison.changes.values())

    def test_to_dict(self):
        data = compare_results(_result(1, 1), _result(2, 1, failures=1)).to_dict()
        assert set(data) == {"baseline", "current", "changes"}
        assert data["changes"]["totalTests"] == 1


class TestLoadResults:
    """Tests for loading result documents from disk."""

    def _write(self, path, result):
        path.write_text(json.dumps(result.to_dict()))
        return path

    def test_load_file(self, tmp_path):
        path = self._write(tmp_path / "r.json", _result(3, 3))
        assert load_result_file(path).total_tests == 3

    def test_load_file_keeps_source_document(self, tmp_path):
        document = {"totalTests": 1, "passed": 1, "buildNumber": 42}
        path = tmp_path / "r.json"
        path.write_text(json.dumps(document))
        assert load_result_file(path).raw == document

    def test_merged_result_has_no_source_document(self, tmp_path):
        path = self._write(tmp_path / "r.json", _result(3, 3))
        assert merge_results([load_result_file(path)]).raw is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_result_file(tmp_path / "missing.json")

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("not json")
        with pytest.raises(ParseError):
            load_result_file(path)

    def test_load_directory(self, tmp_path):
        self._write(tmp_path / "b.json", _result(2, 2))
        self._write(tmp_path / "a.json", _result(1, 1))
        (tmp_path / "notes.txt").write_text("ignored")
        results = load_results(tmp_path)
        assert [r.total_tests for r in results] == [1, 2]

    def test_empty_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_results(tmp_path)

    def test_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Input path not found"):
            load_results(tmp_path / "nope")
