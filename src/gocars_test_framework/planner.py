"""
Execution planning: which suites a run would execute, in what order.

The plan is what ``test --dry-run`` prints and what an execution
orchestrator receives. Nothing here runs tests.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import TestConfiguration, TestSuiteConfig

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("console", "json", "junit", "html")

HIGH_CONCURRENCY_THRESHOLD = 50


@dataclass
class RunOptions:
    """Run-time options for a ``test`` invocation."""

    output_format: str = "console"
    report_dir: str = "./test-reports"
    bail: bool = False
    coverage: bool = False
    pattern: Optional[str] = None
    include_tags: List[str] = field(default_factory=list)
    exclude_tags: List[str] = field(default_factory=list)
    suite: Optional[str] = None
    watch: bool = False

    def __post_init__(self) -> None:
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"Invalid output format: {self.output_format}. "
                f"Must be one of {', '.join(OUTPUT_FORMATS)}"
            )

    def filters(self) -> Dict[str, Any]:
        """Filters that narrow the suite set, omitting unset ones."""
        applied: Dict[str, Any] = {}
        if self.pattern:
            applied["pattern"] = self.pattern
        if self.include_tags:
            applied["includeTags"] = list(self.include_tags)
        if self.exclude_tags:
            applied["excludeTags"] = list(self.exclude_tags)
        if self.suite:
            applied["suite"] = self.suite
        return applied


@dataclass
class PlannedSuite:
    """A suite selected for execution with its effective limits."""

    id: str
    name: str
    priority: int
    timeout: int
    retry_attempts: int
    dependencies: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "priority": self.priority,
            "timeout": self.timeout,
            "retryAttempts": self.retry_attempts,
            "dependencies": list(self.dependencies),
        }


@dataclass
class SkippedSuite:
    """A suite left out of the plan and why."""

    id: str
    name: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "reason": self.reason}


@dataclass
class ExecutionPhase:
    """Suites that may run together once every earlier phase has finished."""

    index: int
    suites: List[PlannedSuite] = field(default_factory=list)

    @property
    def name(self) -> str:
        return f"Phase {self.index}"

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "suites": [s.to_dict() for s in self.suites]}


@dataclass
class RiskFactor:
    """An aspect of the configuration likely to make the run unreliable."""

    type: str
    severity: str
    description: str
    impact: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity,
            "description": self.description,
            "impact": self.impact,
        }


@dataclass
class ExecutionPlan:
    """Resolved, filter-applied set of suites a run would execute."""

    configuration_id: str
    configuration_name: str
    environment: str
    concurrency_level: int
    timeout: int
    retry_attempts: int
    options: RunOptions
    phases: List[ExecutionPhase] = field(default_factory=list)
    skipped: List[SkippedSuite] = field(default_factory=list)
    risk_factors: List[RiskFactor] = field(default_factory=list)

    @property
    def suites(self) -> List[PlannedSuite]:
        """Planned suites in execution order."""
        return [suite for phase in self.phases for suite in phase.suites]

    @property
    def overall_risk(self) -> str:
        if not self.risk_factors:
            return "low"
        if any(f.severity == "high" for f in self.risk_factors):
            return "high"
        return "medium"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "configurationId": self.configuration_id,
            "configurationName": self.configuration_name,
            "environment": self.environment,
            "concurrencyLevel": self.concurrency_level,
            "timeout": self.timeout,
            "retryAttempts": self.retry_attempts,
            "bail": self.options.bail,
            "coverage": self.options.coverage,
            "filters": self.options.filters(),
            "phases": [p.to_dict() for p in self.phases],
            "skipped": [s.to_dict() for s in self.skipped],
            "riskAssessment": {
                "overallRisk": self.overall_risk,
                "riskFactors": [f.to_dict() for f in self.risk_factors],
            },
        }


def _skip_reason(
    suite: TestSuiteConfig, options: RunOptions, pattern: Optional["re.Pattern[str]"]
) -> Optional[str]:
    if options.suite and suite.id != options.suite:
        return f"not the selected suite '{options.suite}'"
    if not suite.enabled:
        return "disabled"
    if pattern and not (pattern.search(suite.id) or pattern.search(suite.name)):
        return f"does not match filter '{pattern.pattern}'"
    if options.include_tags and not set(options.include_tags) & set(suite.tags):
        return f"has none of the tags {', '.join(options.include_tags)}"
    excluded = set(options.exclude_tags) & set(suite.tags)
    if excluded:
        return f"has excluded tag {', '.join(sorted(excluded))}"
    return None


def _layer(selected: List[TestSuiteConfig], config: TestConfiguration) -> List[ExecutionPhase]:
    """Group suites into phases so each runs after its in-plan dependencies."""
    planned_ids = {s.id for s in selected}
    pending = {
        s.id: {d for d in (s.dependencies or []) if d in planned_ids and d != s.id}
        for s in selected
    }
    by_id = {s.id: s for s in selected}
    done: set = set()
    phases: List[ExecutionPhase] = []

    while pending:
        ready = [sid for sid, deps in pending.items() if deps <= done]
        if not ready:
            raise ValueError(
                "Cannot order suites with circular dependencies: " + ", ".join(sorted(pending))
            )
        ready.sort(key=lambda sid: (by_id[sid].priority, sid))
        phase = ExecutionPhase(index=len(phases) + 1)
        for sid in ready:
            suite = by_id[sid]
            phase.suites.append(
                PlannedSuite(
                    id=suite.id,
                    name=suite.name,
                    priority=suite.priority,
                    timeout=suite.timeout if suite.timeout is not None else config.timeout,
                    retry_attempts=(
                        suite.retry_attempts
                        if suite.retry_attempts is not None
                        else config.retry_attempts
                    ),
                    dependencies=sorted(pending[sid]),
                )
            )
            del pending[sid]
        done.update(ready)
        phases.append(phase)
    return phases


def _assess_risks(config: TestConfiguration) -> List[RiskFactor]:
    factors = []
    total_dependencies = sum(len(s.dependencies or []) for s in config.test_suites)
    if total_dependencies > len(config.test_suites):
        factors.append(
            RiskFactor(
                type="dependency",
                severity="medium",
                description="Complex dependency chain detected",
                impact="May cause cascading failures if dependencies fail",
            )
        )
    if config.concurrency_level > HIGH_CONCURRENCY_THRESHOLD:
        factors.append(
            RiskFactor(
                type="complexity",
                severity="medium",
                description="High concurrency level",
                impact="May cause race conditions and timing issues",
            )
        )
    return factors


def build_execution_plan(
    config: TestConfiguration, options: Optional[RunOptions] = None
) -> ExecutionPlan:
    """
    Resolve which suites of *config* a run executes and in what order.

    Suites removed by a filter are kept in ``plan.skipped`` with the reason.

    Raises:
        ValueError: If the filter is not a valid regular expression, the
            selected suite does not exist, or dependencies are circular
    """
    options = options or RunOptions()

    pattern = None
    if options.pattern:
        try:
            pattern = re.compile(options.pattern)
        except re.error as e:
            raise ValueError(f"Invalid filter pattern '{options.pattern}': {e}")

    if options.suite and config.suite(options.suite) is None:
        raise ValueError(f"Test suite '{options.suite}' not found in configuration")

    selected = []
    skipped = []
    for suite in config.test_suites:
        reason = _skip_reason(suite, options, pattern)
        if reason:
            skipped.append(SkippedSuite(id=suite.id, name=suite.name, reason=reason))
        else:
            selected.append(suite)

    plan = ExecutionPlan(
        configuration_id=config.id,
        configuration_name=config.name,
        environment=config.environment,
        concurrency_level=config.concurrency_level,
        timeout=config.timeout,
        retry_attempts=config.retry_attempts,
        options=options,
        phases=_layer(selected, config),
        skipped=skipped,
        risk_factors=_assess_risks(config),
    )
    logger.debug(
        "Planned %d suites in %d phases (%d skipped)",
        len(plan.suites),
        len(plan.phases),
        len(skipped),
    )
    return plan
