"""
Structural validation of test configurations.

``validate_configuration`` is a pure function: it never raises, performs no
I/O and always runs every rule, so calling it twice on the same document
gives the same result. Callers decide whether errors are fatal.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .catalog import PARAMETER_SCHEMAS
from .config import ENVIRONMENTS, USER_ROLES, TestConfiguration, TestSuiteConfig

WEIGHT_TOLERANCE = 0.01
MAX_RECOMMENDED_CONCURRENCY = 100
MAX_RECOMMENDED_TIMEOUT_MS = 3600000


@dataclass(frozen=True)
class FieldError:
    """A structural defect that blocks persistence."""

    field: str
    message: str
    severity: str = "error"


@dataclass(frozen=True)
class FieldWarning:
    """An advisory finding; never blocks persistence."""

    field: str
    message: str
    suggestion: Optional[str] = None


@dataclass
class ValidationResult:
    """Outcome of validating one configuration."""

    errors: List[FieldError] = field(default_factory=list)
    warnings: List[FieldWarning] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": [asdict(e) for e in self.errors],
            "warnings": [asdict(w) for w in self.warnings],
        }


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _key(value: Any) -> str:
    return value if isinstance(value, str) else repr(value)


def _dependencies(suite: TestSuiteConfig) -> List[str]:
    if not isinstance(suite.dependencies, list):
        return []
    return [_key(d) for d in suite.dependencies]


def _duplicates(ids: Iterable[str]) -> List[str]:
    """Return every id seen more than once, in first-seen order."""
    seen = set()
    duplicates: List[str] = []
    for item in ids:
        if item in seen and item not in duplicates:
            duplicates.append(item)
        seen.add(item)
    return duplicates


def detect_circular_dependencies(suites: List[TestSuiteConfig]) -> List[str]:
    """
    Find the first dependency cycle among *suites*.

    Depth-first traversal from each unvisited suite in declaration order,
    tracking the current path. Revisiting a suite already on the path
    closes a cycle.

    Returns:
        The cycle as a path that starts and ends with the same suite id,
        e.g. ``["A", "B", "A"]``, or an empty list when the graph is acyclic
    """
    graph = {_key(s.id): _dependencies(s) for s in suites}
    visited = set()

    for suite in suites:
        start = _key(suite.id)
        if start in visited:
            continue
        visited.add(start)
        path = [start]
        on_path = {start}
        stack = [iter(graph.get(start, []))]

        while stack:
            dep = next(stack[-1], None)
            if dep is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            if dep in on_path:
                return path[path.index(dep):] + [dep]
            if dep in visited:
                continue
            visited.add(dep)
            on_path.add(dep)
            path.append(dep)
            stack.append(iter(graph.get(dep, [])))

    return []


def _matches_type(value: Any, expected: Any) -> bool:
    types = expected if isinstance(expected, tuple) else (expected,)
    if isinstance(value, bool) and bool not in types:
        return False
    return isinstance(value, types)


def _check_scalars(config: TestConfiguration, errors: List[FieldError]) -> None:
    if not isinstance(config.name, str) or not config.name.strip():
        errors.append(FieldError("name", "Configuration name is required"))

    if not config.environment:
        errors.append(FieldError("environment", "Environment is required"))
    elif config.environment not in ENVIRONMENTS:
        errors.append(
            FieldError(
                "environment",
                f"Environment must be one of {', '.join(ENVIRONMENTS)}: {config.environment}",
            )
        )

    if not _is_int(config.concurrency_level):
        errors.append(FieldError("concurrencyLevel", "Concurrency level must be an integer"))
    elif config.concurrency_level <= 0:
        errors.append(FieldError("concurrencyLevel", "Concurrency level must be greater than 0"))

    if not _is_number(config.timeout):
        errors.append(FieldError("timeout", "Timeout must be a number of milliseconds"))
    elif config.timeout <= 0:
        errors.append(FieldError("timeout", "Timeout must be greater than 0"))

    if not _is_int(config.retry_attempts):
        errors.append(FieldError("retryAttempts", "Retry attempts must be an integer"))
    elif config.retry_attempts < 0:
        errors.append(FieldError("retryAttempts", "Retry attempts cannot be negative"))


def _check_suites(
    config: TestConfiguration, errors: List[FieldError], warnings: List[FieldWarning]
) -> None:
    if not config.test_suites:
        warnings.append(
            FieldWarning(
                "testSuites",
                "No test suites configured",
                "Add at least one test suite to run meaningful tests",
            )
        )
        return

    duplicates = _duplicates(_key(s.id) for s in config.test_suites)
    if duplicates:
        errors.append(
            FieldError("testSuites", f"Duplicate test suite IDs found: {', '.join(duplicates)}")
        )

    cycle = detect_circular_dependencies(config.test_suites)
    if cycle:
        errors.append(
            FieldError("testSuites", f"Circular dependencies detected: {' -> '.join(cycle)}")
        )


def _check_profiles(
    config: TestConfiguration, errors: List[FieldError], warnings: List[FieldWarning]
) -> None:
    if not config.user_profiles:
        warnings.append(
            FieldWarning(
                "userProfiles",
                "No user profiles configured",
                "Add user profiles to simulate realistic user behavior",
            )
        )
        return

    duplicates = _duplicates(_key(p.id) for p in config.user_profiles)
    if duplicates:
        errors.append(
            FieldError(
                "userProfiles", f"Duplicate user profile IDs found: {', '.join(duplicates)}"
            )
        )

    total = 0.0
    for profile in config.user_profiles:
        if _is_number(profile.weight) and 0 <= profile.weight <= 100:
            total += profile.weight
    if abs(total - 100) > WEIGHT_TOLERANCE:
        warnings.append(
            FieldWarning(
                "userProfiles",
                f"User profile weights sum to {total:g}%, should sum to 100%",
                "Adjust profile weights to sum to exactly 100%",
            )
        )


def _check_performance(config: TestConfiguration, warnings: List[FieldWarning]) -> None:
    if _is_int(config.concurrency_level) and config.concurrency_level > MAX_RECOMMENDED_CONCURRENCY:
        warnings.append(
            FieldWarning(
                "concurrencyLevel",
                "High concurrency level may impact system performance",
                "Consider starting with lower concurrency and scaling up",
            )
        )
    if _is_number(config.timeout) and config.timeout > MAX_RECOMMENDED_TIMEOUT_MS:
        warnings.append(
            FieldWarning(
                "timeout",
                "Very long timeout configured",
                "Consider if such a long timeout is necessary",
            )
        )


def _check_profile_fields(config: TestConfiguration, errors: List[FieldError]) -> None:
    for profile in config.user_profiles:
        if profile.role not in USER_ROLES:
            errors.append(
                FieldError(
                    "userProfiles",
                    f"User profile '{_key(profile.id)}' has invalid role: {profile.role}",
                )
            )
        if not _is_number(profile.weight) or not 0 <= profile.weight <= 100:
            errors.append(
                FieldError(
                    "userProfiles",
                    f"User profile '{_key(profile.id)}' weight must be a number "
                    f"between 0 and 100: {profile.weight}",
                )
            )


def _check_suite_references(
    config: TestConfiguration, errors: List[FieldError], warnings: List[FieldWarning]
) -> None:
    known = {_key(s.id) for s in config.test_suites}
    for suite in config.test_suites:
        suite_id = _key(suite.id)
        if not isinstance(suite.dependencies, list):
            errors.append(
                FieldError("testSuites", f"Suite '{suite_id}' dependencies must be a list")
            )
        for dep in _dependencies(suite):
            if dep not in known:
                warnings.append(
                    FieldWarning(
                        "testSuites",
                        f"Suite '{suite_id}' depends on unknown suite '{dep}'",
                        "Add the missing suite or remove the dependency",
                    )
                )


def _check_parameters(config: TestConfiguration, warnings: List[FieldWarning]) -> None:
    for suite in config.test_suites:
        schema = PARAMETER_SCHEMAS.get(_key(suite.id))
        if schema is None:
            continue
        if not isinstance(suite.parameters, dict):
            warnings.append(
                FieldWarning("testSuites", f"Suite '{suite.id}' parameters must be an object")
            )
            continue
        for name, value in suite.parameters.items():
            if name not in schema:
                warnings.append(
                    FieldWarning(
                        "testSuites",
                        f"Suite '{suite.id}' has unexpected parameter '{name}'",
                        f"Expected one of: {', '.join(sorted(schema))}",
                    )
                )
            elif not _matches_type(value, schema[name]):
                warnings.append(
                    FieldWarning(
                        "testSuites",
                        f"Suite '{suite.id}' parameter '{name}' has unexpected type "
                        f"{type(value).__name__}",
                    )
                )


def validate_configuration(config: TestConfiguration) -> ValidationResult:
    """
    Validate a full configuration.

    Args:
        config: Configuration to check

    Returns:
        ValidationResult with every error and warning found
    """
    errors: List[FieldError] = []
    warnings: List[FieldWarning] = []

    _check_scalars(config, errors)
    _check_suites(config, errors, warnings)
    _check_profiles(config, errors, warnings)
    _check_performance(config, warnings)
    _check_profile_fields(config, errors)
    _check_suite_references(config, errors, warnings)
    _check_parameters(config, warnings)

    return ValidationResult(errors=errors, warnings=warnings)
