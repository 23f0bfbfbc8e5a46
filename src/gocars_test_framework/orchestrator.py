"""
Boundary to the external test execution engine.

The framework never runs tests itself. A run hands an ``ExecutionPlan`` to
an ``ExecutionOrchestrator`` and receives a ``TestRunResult`` back.
Implementations are plugged in with a ``package.module:ClassName``
reference, from ``--orchestrator`` or the ``orchestrator`` setting.
"""

import importlib
import logging
from abc import ABC, abstractmethod
from typing import Optional

from .exceptions import OrchestratorError
from .models import TestRunResult
from .planner import ExecutionPlan

logger = logging.getLogger(__name__)


class ExecutionOrchestrator(ABC):
    """Runs the suites of an execution plan."""

    @abstractmethod
    def execute(self, plan: ExecutionPlan) -> TestRunResult:
        """
        Execute *plan* and return the aggregate result.

        Timeouts, retries, concurrency and cancellation of individual tests
        are owned by the implementation; the plan only carries the limits.
        """
        pass


def load_orchestrator(reference: Optional[str]) -> ExecutionOrchestrator:
    """
    Import and instantiate the orchestrator named by *reference*.

    Args:
        reference: ``package.module:ClassName``; the class is called with
            no arguments

    Raises:
        OrchestratorError: If nothing is configured, the reference is
            malformed, or the target cannot be imported or instantiated
    """
    if not reference:
        raise OrchestratorError(
            None,
            "No execution orchestrator configured. Pass --orchestrator "
            "or set GOCARS_ORCHESTRATOR to 'package.module:ClassName'",
        )

    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise OrchestratorError(
            reference, f"Invalid orchestrator reference '{reference}', expected 'module:ClassName'"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise OrchestratorError(reference, f"Cannot import orchestrator module '{module_name}': {e}")

    target = getattr(module, attr, None)
    if target is None:
        raise OrchestratorError(reference, f"Module '{module_name}' has no attribute '{attr}'")

    try:
        orchestrator = target()
    except Exception as e:
        raise OrchestratorError(reference, f"Failed to create orchestrator '{reference}': {e}")

    if not isinstance(orchestrator, ExecutionOrchestrator):
        raise OrchestratorError(
            reference, f"'{reference}' is not an ExecutionOrchestrator implementation"
        )
    logger.debug("Loaded execution orchestrator %s", reference)
    return orchestrator
