"""
Result document models for the GoCars test framework.

A result document is produced by the execution orchestrator and consumed by
the report engine. On disk it uses camelCase keys::

    {
      "totalTests": 3, "passed": 2, "failures": 1, "errors": 0, "skipped": 0,
      "duration": 1520, "success": false, "timestamp": "2024-05-01T10:00:00",
      "suites": [
        {"name": "auth", "duration": 1520, "tests": [
          {"name": "login", "status": "failed", "duration": 800,
           "error": {"message": "timeout", "stack": "..."}}
        ]}
      ]
    }
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import ParseError


class TestStatus(Enum):
    """Status of a test case execution."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERROR = "error"


def parse_timestamp(value: Any, source: str) -> datetime:
    """Parse an ISO-8601 timestamp, passing datetimes through unchanged."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ParseError(source, f"timestamp must be an ISO-8601 string, got {value!r}")
    try:
        # fromisoformat() rejects a trailing "Z" before Python 3.11
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ParseError(source, f"invalid timestamp: {value!r}")


def _number(data: Dict[str, Any], key: str, source: str) -> float:
    value = data.get(key, 0) or 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(source, f"'{key}' must be a number, got {value!r}")
    return value


@dataclass
class CaseResult:
    """Result of a single test case."""

    name: str
    status: TestStatus
    duration: float = 0
    message: Optional[str] = None
    stack: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: str = "result document") -> "CaseResult":
        if not isinstance(data, dict):
            raise ParseError(source, f"test case must be an object, got {data!r}")
        try:
            status = TestStatus(data.get("status"))
        except ValueError:
            raise ParseError(source, f"unknown test status {data.get('status')!r}")
        error = data.get("error") or {}
        if not isinstance(error, dict):
            error = {"message": str(error)}
        return cls(
            name=str(data.get("name", "")),
            status=status,
            duration=_number(data, "duration", source),
            message=error.get("message", data.get("message")),
            stack=error.get("stack"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "duration": self.duration,
        }
        if self.message is not None or self.stack is not None:
            error: Dict[str, Any] = {}
            if self.message is not None:
                error["message"] = self.message
            if self.stack is not None:
                error["stack"] = self.stack
            data["error"] = error
        return data


@dataclass
class SuiteResult:
    """Results of all test cases in one suite."""

    name: str
    duration: float = 0
    tests: List[CaseResult] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for t in self.tests if t.status == TestStatus.PASSED)

    @property
    def failures(self) -> int:
        return sum(1 for t in self.tests if t.status == TestStatus.FAILED)

    @property
    def errors(self) -> int:
        return sum(1 for t in self.tests if t.status == TestStatus.ERROR)

    @property
    def skipped(self) -> int:
        return sum(1 for t in self.tests if t.status == TestStatus.SKIPPED)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: str = "result document") -> "SuiteResult":
        if not isinstance(data, dict):
            raise ParseError(source, f"suite must be an object, got {data!r}")
        return cls(
            name=str(data.get("name", "")),
            duration=_number(data, "duration", source),
            tests=[CaseResult.from_dict(t, source) for t in data.get("tests") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "duration": self.duration,
            "tests": [t.to_dict() for t in self.tests],
        }


@dataclass
class TestRunResult:
    """Aggregate outcome of a completed test run."""

    total_tests: int = 0
    passed: int = 0
    failures: int = 0
    errors: int = 0
    skipped: int = 0
    duration: float = 0
    suites: List[SuiteResult] = field(default_factory=list)
    success: bool = True
    timestamp: datetime = field(default_factory=datetime.now)
    coverage: Optional[Dict[str, Any]] = None
    # Document the result was loaded from; JSON reports reproduce it verbatim
    raw: Optional[Dict[str, Any]] = field(default=None, repr=False, compare=False)

    @property
    def success_rate(self) -> float:
        """Percentage of passed tests, 0 when no tests ran."""
        if not self.total_tests:
            return 0.0
        return self.passed / self.total_tests * 100

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: str = "result document") -> "TestRunResult":
        if not isinstance(data, dict):
            raise ParseError(source, "result document must be a JSON object")
        failures = int(_number(data, "failures", source))
        errors = int(_number(data, "errors", source))
        success = data.get("success")
        if success is None:
            success = failures == 0 and errors == 0
        timestamp = data.get("timestamp")
        return cls(
            total_tests=int(_number(data, "totalTests", source)),
            passed=int(_number(data, "passed", source)),
            failures=failures,
            errors=errors,
            skipped=int(_number(data, "skipped", source)),
            duration=_number(data, "duration", source),
            suites=[SuiteResult.from_dict(s, source) for s in data.get("suites") or []],
            success=bool(success),
            timestamp=parse_timestamp(timestamp, source) if timestamp else datetime.now(),
            coverage=data.get("coverage"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "totalTests": self.total_tests,
            "passed": self.passed,
            "failures": self.failures,
            "errors": self.errors,
            "skipped": self.skipped,
            "duration": self.duration,
            "suites": [s.to_dict() for s in self.suites],
            "success": self.success,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.coverage is not None:
            data["coverage"] = self.coverage
        return data
