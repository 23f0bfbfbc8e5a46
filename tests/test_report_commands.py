"""Tests for the ``report`` command group."""

import json
import os
import time
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from src.gocars_test_framework.cli import main
from src.gocars_test_framework.models import TestRunResult
from src.gocars_test_framework.report_commands import format_size
from src.gocars_test_framework.settings import ENV_VARS


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)


def _invoke(*args):
    return CliRunner().invoke(main, ["report", *args])


def _write_result(path, total, passed, failures=0, duration=1000):
    result = TestRunResult(
        total_tests=total,
        passed=passed,
        failures=failures,
        duration=duration,
        success=failures == 0,
    )
    path.write_text(json.dumps(result.to_dict()))
    return path


def _age_days(path, days):
    stamp = time.time() - days * 86400
    os.utime(path, (stamp, stamp))


class TestFormatSize:
    """Tests for format_size."""

    @pytest.mark.parametrize(
        "size,expected", [(512, "512 B"), (2048, "2.0 KB"), (5 * 1024 * 1024, "5.0 MB")]
    )
    def test_units(self, size, expected):
        assert format_size(size) == expected


class TestGenerate:
    """Tests for ``report generate``."""

    def test_html_from_file(self, tmp_path):
        source = _write_result(tmp_path / "results.json", 10, 9, failures=1)
        out = tmp_path / "reports"
        result = _invoke("generate", "-i", str(source), "-o", str(out), "--title", "Nightly")
        assert result.exit_code == 0, result.output
        assert "Generating test report..." in result.output
        assert "Report generated:" in result.output
        assert "Total Tests: 10" in result.output
        assert "Success Rate: 90.0%" in result.output
        files = list(out.iterdir())
        assert len(files) == 1
        assert files[0].name.startswith("nightly-")
        assert files[0].suffix == ".html"

    def test_directory_input_is_merged(self, tmp_path):
        results_dir = tmp_path / "results"
        results_dir.mkdir()
        _write_result(results_dir / "a.json", 10, 8, failures=2)
        _write_result(results_dir / "b.json", 5, 5)
        result = _invoke(
            "generate", "-i", str(results_dir), "-o", str(tmp_path / "out"), "-f", "json"
        )
        assert result.exit_code == 0
        assert "Total Tests: 15" in result.output
        report_file = next((tmp_path / "out").iterdir())
        assert json.loads(report_file.read_text())["passed"] == 13

    def test_json_reproduces_input_document(self, tmp_path):
        document = {
            "totalTests": 1, "passed": 1, "failures": 0, "errors": 0, "skipped": 0,
            "duration": 40, "success": True, "timestamp": "2024-05-01T10:00:00.000Z",
            "mergedFrom": ["a.json", "b.json"],
            "suites": [{"name": "auth", "duration": 40, "tests": [
                {"name": "login", "status": "passed", "duration": 40, "retries": 2}
            ]}],
        }
        source = tmp_path / "results.json"
        source.write_text(json.dumps(document))
        out = tmp_path / "out"
        result = _invoke("generate", "-i", str(source), "-o", str(out), "-f", "json")
        assert result.exit_code == 0, result.output
        assert json.loads(next(out.iterdir()).read_text()) == document

    def test_directory_with_mixed_timestamps(self, tmp_path):
        results_dir = tmp_path / "results"
        results_dir.mkdir()
        (results_dir / "a.json").write_text(
            json.dumps({"totalTests": 1, "passed": 1, "timestamp": "2024-05-01T10:00:00.000Z"})
        )
        _write_result(results_dir / "b.json", 2, 2)
        result = _invoke("generate", "-i", str(results_dir), "-o", str(tmp_path / "out"))
        assert result.exit_code == 0, result.output
        assert "Total Tests: 3" in result.output

    def test_missing_input(self, tmp_path):
        result = _invoke("generate", "-i", str(tmp_path / "nope"))
        assert result.exit_code == 1
        assert "Input path not found" in result.output

    def test_pdf_unsupported(self, tmp_path):
        source = _write_result(tmp_path / "results.json", 1, 1)
        out = tmp_path / "out"
        result = _invoke("generate", "-i", str(source), "-o", str(out), "-f", "pdf")
        assert result.exit_code == 1
        assert "Unsupported format: pdf" in result.output
        assert not out.exists() or list(out.iterdir()) == []

    def test_malformed_input(self, tmp_path):
        source = tmp_path / "results.json"
        source.write_text("not json")
        result = _invoke("generate", "-i", str(source), "-o", str(tmp_path / "out"))
        assert result.exit_code == 1
        assert "Failed to generate report" in result.output


class TestList:
    """Tests for ``report list``."""

    def test_missing_directory(self, tmp_path):
        result = _invoke("list", "--directory", str(tmp_path / "nope"))
        assert result.exit_code == 0
        assert "No reports directory found" in result.output

    def test_empty_directory(self, tmp_path):
        result = _invoke("list", "--directory", str(tmp_path))
        assert "No reports found" in result.output

    def test_lists_reports(self, tmp_path):
        (tmp_path / "a.html").write_text("<html></html>")
        (tmp_path / "b.xml").write_text("<testsuites/>")
        (tmp_path / "notes.txt").write_text("ignored")
        result = _invoke("list", "--directory", str(tmp_path))
        assert result.exit_code == 0
        assert "Found 2 report(s):" in result.output
        assert "notes.txt" not in result.output

    def test_detailed(self, tmp_path):
        (tmp_path / "a.html").write_text("<html></html>")
        result = _invoke("list", "--directory", str(tmp_path), "--detailed")
        assert "Size: 13 B" in result.output
        assert "Path:" in result.output


class TestMerge:
    """Tests for ``report merge``."""

    def test_merge(self, tmp_path):
        a = _write_result(tmp_path / "a.json", 10, 8, failures=2)
        b = _write_result(tmp_path / "b.json", 5, 5)
        output = tmp_path / "merged.json"
        result = _invoke("merge", "--inputs", f"{a},{b}", "--output-file", str(output))
        assert result.exit_code == 0
        assert "Merging 2 result file(s)..." in result.output
        assert "Total tests: 15" in result.output
        assert "Success rate: 86.7%" in result.output
        merged = json.loads(output.read_text())
        assert merged["totalTests"] == 15
        assert merged["passed"] == 13
        assert merged["success"] is False
        assert merged["mergedFrom"] == [str(a), str(b)]
        assert "mergedAt" in merged

    def test_skips_missing_inputs(self, tmp_path):
        a = _write_result(tmp_path / "a.json", 3, 3)
        output = tmp_path / "merged.json"
        result = _invoke(
            "merge", "--inputs", f"{a},{tmp_path / 'gone.json'}", "--output-file", str(output)
        )
        assert result.exit_code == 0
        assert "Input not found, skipping" in result.output
        assert json.loads(output.read_text())["totalTests"] == 3

    def test_no_valid_inputs(self, tmp_path):
        output = tmp_path / "merged.json"
        result = _invoke(
            "merge", "--inputs", str(tmp_path / "gone.json"), "--output-file", str(output)
        )
        assert result.exit_code == 1
        assert "No valid result files found" in result.output
        assert not output.exists()

    def test_merged_file_can_be_reloaded(self, tmp_path):
        a = _write_result(tmp_path / "a.json", 2, 2)
        first = tmp_path / "first.json"
        _invoke("merge", "--inputs", str(a), "--output-file", str(first))
        second = tmp_path / "second.json"
        result = _invoke("merge", "--inputs", str(first), "--output-file", str(second))
        assert result.exit_code == 0
        assert json.loads(second.read_text())["totalTests"] == 2


class TestCompare:
    """Tests for ``report compare``."""

    def test_table(self, tmp_path):
        baseline = _write_result(tmp_path / "baseline.json", 100, 90, failures=10)
        current = _write_result(tmp_path / "current.json", 100, 95, failures=5)
        result = _invoke("compare", "-b", str(baseline), "-c", str(current))
        assert result.exit_code == 0
        assert "Test Results Comparison" in result.output
        assert "+5" in result.output

    def test_json_to_file(self, tmp_path):
        baseline = _write_result(tmp_path / "baseline.json", 100, 90, failures=10)
        current = _write_result(tmp_path / "current.json", 100, 95, failures=5)
        output = tmp_path / "cmp.json"
        result = _invoke(
            "compare", "-b", str(baseline), "-c", str(current),
            "--output-format", "json", "--output-file", str(output),
        )
        assert result.exit_code == 0
        data = json.loads(output.read_text())
        assert data["changes"]["passed"] == 5
        assert data["changes"]["successRate"] == pytest.approx(5.0)

    def test_missing_baseline(self, tmp_path):
        current = _write_result(tmp_path / "current.json", 1, 1)
        result = _invoke("compare", "-b", str(tmp_path / "nope.json"), "-c", str(current))
        assert result.exit_code == 1
        assert "Baseline file not found" in result.output

    def test_missing_current(self, tmp_path):
        baseline = _write_result(tmp_path / "baseline.json", 1, 1)
        result = _invoke("compare", "-b", str(baseline), "-c", str(tmp_path / "nope.json"))
        assert result.exit_code == 1
        assert "Current file not found" in result.output


class TestServe:
    """Tests for ``report serve``."""

    def test_missing_directory(self, tmp_path):
        result = _invoke("serve", "--directory", str(tmp_path / "nope"))
        assert result.exit_code == 1
        assert "Report directory not found" in result.output

    def test_starts_server(self, tmp_path):
        with patch("src.gocars_test_framework.report_commands.serve_reports") as mock_serve:
            result = _invoke("serve", "--directory", str(tmp_path), "-p", "9000")
        assert result.exit_code == 0
        assert "http://localhost:9000" in result.output
        mock_serve.assert_called_once()
        assert mock_serve.call_args.args[2] == 9000


class TestClean:
    """Tests for ``report clean``."""

    def test_requires_confirm(self, tmp_path):
        old = tmp_path / "old.html"
        old.write_text("x")
        _age_days(old, 40)
        result = _invoke("clean", "--directory", str(tmp_path))
        assert result.exit_code == 1
        assert "older than 30 days" in result.output
        assert old.exists()

    def test_removes_old_reports(self, tmp_path):
        old = tmp_path / "old.html"
        recent = tmp_path / "recent.html"
        old.write_text("x")
        recent.write_text("x")
        _age_days(old, 10)
        result = _invoke("clean", "--directory", str(tmp_path), "--days", "7", "--confirm")
        assert result.exit_code == 0
        assert "Removed 1 old report(s)" in result.output
        assert not old.exists()
        assert recent.exists()

    def test_missing_directory(self, tmp_path):
        result = _invoke("clean", "--directory", str(tmp_path / "nope"), "--confirm")
        assert result.exit_code == 0
        assert "No reports directory found" in result.output

    def test_negative_days(self, tmp_path):
        result = _invoke("clean", "--directory", str(tmp_path), "--days", "-1", "--confirm")
        assert result.exit_code == 1
