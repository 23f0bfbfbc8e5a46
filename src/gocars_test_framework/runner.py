"""
Test runner: plans a run and hands it to the execution orchestrator.
"""

import logging
from typing import Optional

from .config import TestConfiguration
from .models import TestRunResult
from .notifications import CRITICAL_ERROR, TEST_COMPLETED, TEST_FAILED, TEST_STARTED, Notifier
from .orchestrator import ExecutionOrchestrator
from .planner import ExecutionPlan, RunOptions, build_execution_plan

logger = logging.getLogger(__name__)


class TestRunner:
    """Drives one run of a configuration through an orchestrator."""

    def __init__(
        self,
        config: TestConfiguration,
        orchestrator: ExecutionOrchestrator,
        notifier: Optional[Notifier] = None,
    ):
        self.config = config
        self.orchestrator = orchestrator
        self.notifier = notifier

    def plan(self, options: Optional[RunOptions] = None) -> ExecutionPlan:
        """Resolve the execution plan without running anything."""
        return build_execution_plan(self.config, options)

    def _notify(self, event: str, summary: str, details: dict) -> None:
        if self.notifier is not None:
            self.notifier.notify(event, summary, details)

    def run(self, options: Optional[RunOptions] = None) -> TestRunResult:
        """
        Plan and execute a run.

        Returns:
            TestRunResult from the orchestrator

        Raises:
            ValueError: If the plan cannot be built
            Exception: Whatever the orchestrator raises, after a
                critical-error notification
        """
        plan = self.plan(options)
        logger.info(
            "Running %d suites of '%s' in %s (%d phases)",
            len(plan.suites),
            self.config.name,
            self.config.environment,
            len(plan.phases),
        )
        self._notify(
            TEST_STARTED,
            f"Test run started for '{self.config.name}' ({len(plan.suites)} suites)",
            {"configurationId": self.config.id, "suites": [s.id for s in plan.suites]},
        )

        try:
            result = self.orchestrator.execute(plan)
        except Exception as e:
            logger.error("Execution orchestrator failed: %s", e)
            self._notify(
                CRITICAL_ERROR,
                f"Test run for '{self.config.name}' aborted: {e}",
                {"configurationId": self.config.id, "error": str(e)},
            )
            raise

        details = {"configurationId": self.config.id, "result": result.to_dict()}
        self._notify(
            TEST_COMPLETED,
            f"Test run for '{self.config.name}' completed: "
            f"{result.passed}/{result.total_tests} passed",
            details,
        )
        if not result.success:
            self._notify(
                TEST_FAILED,
                f"Test run for '{self.config.name}' failed: "
                f"{result.failures} failures, {result.errors} errors",
                details,
            )
        logger.info("Run finished: success=%s", result.success)
        return result
