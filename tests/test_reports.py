"""Tests for report generation, listing and cleanup."""

import json
import os
from datetime import datetime, timedelta

import pytest

from src.gocars_test_framework.exceptions import UnsupportedFormatError
from src.gocars_test_framework.models import CaseResult, SuiteResult, TestStatus
from src.gocars_test_framework.reporting import HTMLReporter, JUnitReporter
from src.gocars_test_framework.reports import (
    ReportOptions,
    clean_reports,
    create_reporter,
    find_expired_reports,
    generate_report,
    list_reports,
    slugify,
)
from src.gocars_test_framework.results import aggregate_suites

NOW = datetime(2024, 6, 1, 12, 30, 45)


def _result():
    return aggregate_suites(
        [SuiteResult("auth", 20, [CaseResult("login", TestStatus.PASSED, 20)])]
    )


def _age(path, days):
    """Set the mtime of *path* to *days* before NOW."""
    stamp = (NOW - timedelta(days=days)).timestamp()
    os.utime(path, (stamp, stamp))


class TestSlugify:
    """Tests for slugify."""

    def test_basic(self):
        assert slugify("Nightly Run #5") == "nightly-run-5"

    def test_empty(self):
        assert slugify("!!!") == "report"


class TestCreateReporter:
    """Tests for create_reporter."""

    def test_html(self):
        reporter = create_reporter(ReportOptions(template="detailed", theme="dark"))
        assert isinstance(reporter, HTMLReporter)
        assert reporter.theme == "dark"

    def test_junit_uses_title(self):
        reporter = create_reporter(ReportOptions(format="junit", title="CI"))
        assert isinstance(reporter, JUnitReporter)
        assert reporter.name == "CI"

    def test_pdf_unsupported(self):
        with pytest.raises(UnsupportedFormatError, match="Unsupported format: pdf"):
            create_reporter(ReportOptions(format="pdf"))

    def test_invalid_template(self):
        with pytest.raises(ValueError):
            create_reporter(ReportOptions(template="fancy"))


class TestGenerateReport:
    """Tests for generate_report."""

    def test_filename(self, tmp_path):
        options = ReportOptions(title="Nightly Run", output_path=str(tmp_path / "out"))
        path = generate_report(_result(), options, now=NOW)
        assert path.name == "nightly-run-20240601-123045.html"
        assert path.read_text().startswith("<!DOCTYPE html>")

    def test_json_report(self, tmp_path):
        options = ReportOptions(format="json", output_path=str(tmp_path))
        path = generate_report(_result(), options, now=NOW)
        assert path.suffix == ".json"
        assert json.loads(path.read_text())["totalTests"] == 1

    def test_junit_extension(self, tmp_path):
        options = ReportOptions(format="junit", output_path=str(tmp_path))
        assert generate_report(_result(), options, now=NOW).suffix == ".xml"

    def test_pdf_writes_nothing(self, tmp_path):
        options = ReportOptions(format="pdf", output_path=str(tmp_path))
        with pytest.raises(UnsupportedFormatError):
            generate_report(_result(), options, now=NOW)
        assert list(tmp_path.iterdir()) == []


class TestListReports:
    """Tests for list_reports."""

    def test_newest_first(self, tmp_path):
        old = tmp_path / "old.html"
        new = tmp_path / "new.json"
        old.write_text("<html></html>")
        new.write_text("{}")
        (tmp_path / "notes.txt").write_text("ignored")
        (tmp_path / "sub").mkdir()
        _age(old, 3)
        _age(new, 1)

        reports = list_reports(tmp_path)
        assert [r.name for r in reports] == ["new.json", "old.html"]
        assert reports[1].size == len("<html></html>")

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            list_reports(tmp_path / "nope")


class TestCleanReports:
    """Tests for find_expired_reports and clean_reports."""

    def test_find_expired(self, tmp_path):
        for name, days in (("a.html", 40), ("b.html", 31), ("c.html", 5)):
            path = tmp_path / name
            path.write_text("x")
            _age(path, days)
        expired = find_expired_reports(tmp_path, 30, now=NOW)
        assert [p.name for p in expired] == ["a.html", "b.html"]

    def test_clean(self, tmp_path):
        old = tmp_path / "old.html"
        recent = tmp_path / "recent.html"
        old.write_text("x")
        recent.write_text("x")
        _age(old, 10)
        _age(recent, 1)

        assert clean_reports(tmp_path, 7, now=NOW) == 1
        assert not old.exists()
        assert recent.exists()

    def test_clean_empty_directory(self, tmp_path):
        assert clean_reports(tmp_path, 30, now=NOW) == 0

    def test_negative_days(self, tmp_path):
        with pytest.raises(ValueError):
            find_expired_reports(tmp_path, -1)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            clean_reports(tmp_path / "nope", 30)
