"""
Test configuration object model for the GoCars test framework.

Configurations are dataclasses in Python and camelCase JSON documents on
disk. ``from_dict`` accepts either key spelling; ``to_dict`` always emits
the document form.
"""

import json
import logging
import os
import re
import uuid
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

import yaml

from .exceptions import ParseError
from .models import parse_timestamp

logger = logging.getLogger(__name__)

ENVIRONMENTS = ("development", "staging", "production")
USER_ROLES = ("passenger", "driver", "operator", "admin")
NOTIFICATION_CHANNELS = ("email", "slack", "webhook")

DEFAULT_CONCURRENCY_LEVEL = 10
DEFAULT_TIMEOUT_MS = 600000
DEFAULT_RETRY_ATTEMPTS = 1

T = TypeVar("T")


def _snake(key: str) -> str:
    """Convert a camelCase document key to a snake_case attribute name."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _camel(name: str) -> str:
    """Convert a snake_case attribute name to a camelCase document key."""
    first, *rest = name.split("_")
    return first + "".join(word.capitalize() for word in rest)


def normalize_document_keys(partial: Mapping[str, Any]) -> Dict[str, Any]:
    """Return *partial* with every top-level key in camelCase document form."""
    return {_camel(_snake(key)): value for key, value in partial.items()}


def _build(cls: Type[T], data: Any, source: str) -> T:
    """Construct dataclass *cls* from a document mapping, rejecting unknown keys."""
    if isinstance(data, cls):
        return data
    if not isinstance(data, dict):
        raise ParseError(source, f"expected an object for {cls.__name__}, got {data!r}")
    known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        name = _snake(str(key))
        if name not in known:
            raise ParseError(source, f"unknown field '{key}' in {cls.__name__}")
        kwargs[name] = value
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ParseError(source, f"invalid {cls.__name__}: {e}")


def _to_document(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        document: Dict[str, Any] = {}
        for f in fields(value):
            item = getattr(value, f.name)
            if item is None:
                continue
            document[_camel(f.name)] = _to_document(item)
        return document
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, list):
        return [_to_document(v) for v in value]
    return value


@dataclass
class TestSuiteConfig:
    """A named group of tests, optionally depending on other suites."""

    id: str
    name: str
    enabled: bool = True
    # Lower runs first; advisory only
    priority: int = 0
    parameters: Dict[str, Any] = field(default_factory=dict)
    dependencies: List[str] = field(default_factory=list)
    timeout: Optional[int] = None
    retry_attempts: Optional[int] = None
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, source: str = "test suite") -> "TestSuiteConfig":
        return _build(cls, data, source)

    def to_dict(self) -> Dict[str, Any]:
        return _to_document(self)


@dataclass
class UserProfile:
    """Weighted descriptor of a simulated user population."""

    id: str
    name: str
    role: str = "passenger"
    demographics: Dict[str, Any] = field(default_factory=dict)
    preferences: Dict[str, Any] = field(default_factory=dict)
    behavior_patterns: Dict[str, Any] = field(default_factory=dict)
    # Share of the simulated population, 0-100
    weight: float = 0

    @classmethod
    def from_dict(cls, data: Any, source: str = "user profile") -> "UserProfile":
        return _build(cls, data, source)

    def to_dict(self) -> Dict[str, Any]:
        return _to_document(self)


@dataclass
class ReportingOptions:
    """What a run's reports should contain and where they go."""

    include_executive_summary: bool = True
    include_technical_details: bool = True
    include_trend_analysis: bool = False
    include_recommendations: bool = True
    formats: List[str] = field(default_factory=lambda: ["json", "html"])
    output_path: Optional[str] = None
    email_recipients: List[str] = field(default_factory=list)
    slack_webhook: Optional[str] = None


@dataclass
class NotificationSettings:
    """When and where run notifications are delivered."""

    on_test_start: bool = False
    on_test_complete: bool = True
    on_test_failure: bool = True
    on_critical_error: bool = True
    channels: List[str] = field(default_factory=lambda: ["email"])
    webhook_url: Optional[str] = None
    email_recipients: List[str] = field(default_factory=list)
    slack_channel: Optional[str] = None


@dataclass
class TestConfiguration:
    """A named, validated bundle of suites, user profiles and run settings."""

    id: str = ""
    name: str = "Untitled Configuration"
    description: Optional[str] = None
    environment: str = "development"
    test_suites: List[TestSuiteConfig] = field(default_factory=list)
    user_profiles: List[UserProfile] = field(default_factory=list)
    concurrency_level: int = DEFAULT_CONCURRENCY_LEVEL
    timeout: int = DEFAULT_TIMEOUT_MS
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    reporting_options: ReportingOptions = field(default_factory=ReportingOptions)
    auto_fix_enabled: bool = False
    notification_settings: NotificationSettings = field(default_factory=NotificationSettings)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    created_by: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Convert nested documents into their dataclass types."""
        source = f"configuration '{self.id or self.name}'"
        if not isinstance(self.test_suites, list):
            raise ParseError(source, "testSuites must be a list")
        if not isinstance(self.user_profiles, list):
            raise ParseError(source, "userProfiles must be a list")
        self.test_suites = [TestSuiteConfig.from_dict(s, source) for s in self.test_suites]
        self.user_profiles = [UserProfile.from_dict(p, source) for p in self.user_profiles]

        if self.reporting_options is None:
            self.reporting_options = ReportingOptions()
        else:
            self.reporting_options = _build(ReportingOptions, self.reporting_options, source)

        if self.notification_settings is None:
            self.notification_settings = NotificationSettings()
        else:
            self.notification_settings = _build(
                NotificationSettings, self.notification_settings, source
            )

        self.created_at = parse_timestamp(self.created_at, source)
        self.updated_at = parse_timestamp(self.updated_at, source)
        if self.tags is None:
            self.tags = []

    @classmethod
    def from_dict(cls, data: Any, source: str = "configuration") -> "TestConfiguration":
        return _build(cls, data, source)

    def to_dict(self) -> Dict[str, Any]:
        return _to_document(self)

    def suite(self, suite_id: str) -> Optional[TestSuiteConfig]:
        """Return the suite with *suite_id*, or None."""
        return next((s for s in self.test_suites if s.id == suite_id), None)


def generate_id(prefix: str = "config") -> str:
    """Mint an identifier like ``config-1714557600000-3f9c2a1b0``."""
    millis = int(datetime.now().timestamp() * 1000)
    return f"{prefix}-{millis}-{uuid.uuid4().hex[:9]}"


def new_configuration(partial: Optional[Mapping[str, Any]] = None) -> TestConfiguration:
    """
    Build a complete configuration from a partial document.

    Omitted fields (absent or ``None``) receive defaults; explicit values,
    including falsy ones such as ``0``, are kept so validation can judge
    them. Any ``id`` and timestamps in *partial* are replaced with a fresh
    identifier and the current time.

    Raises:
        ParseError: If *partial* has unknown fields or malformed nested values
    """
    document = {
        key: value
        for key, value in normalize_document_keys(partial or {}).items()
        if value is not None and key not in ("id", "createdAt", "updatedAt")
    }
    now = datetime.now()
    document.update({"id": generate_id(), "createdAt": now, "updatedAt": now})
    return TestConfiguration.from_dict(document)


def default_configuration() -> TestConfiguration:
    """The canonical zero-value configuration used by ``test`` and ``config reset``."""
    return new_configuration({"name": "Default Test Configuration"})


def read_document(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a JSON or YAML document from disk.

    Raises:
        FileNotFoundError: If the file does not exist
        ParseError: If the content is not a valid JSON/YAML object
    """
    p = Path(path)
    try:
        content = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found: {p}")
    try:
        if p.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (ValueError, yaml.YAMLError) as e:
        raise ParseError(str(p), str(e))
    if not isinstance(data, dict):
        raise ParseError(str(p), "top-level value must be an object")
    return data


def load_configuration(path: Union[str, Path]) -> TestConfiguration:
    """Load a configuration document from *path* without minting a new id."""
    return TestConfiguration.from_dict(read_document(path), source=str(path))


def _parse_env_int(var_name: str) -> Optional[int]:
    """
    Safely parse an integer from an environment variable.

    Returns:
        Parsed integer value, or None if the variable is not set

    Raises:
        ParseError: If the value cannot be parsed as an integer
    """
    value = os.environ.get(var_name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ParseError(
            f"environment variable {var_name}", f"must be a valid integer, got: '{value}'"
        )


def _load_from_env() -> Dict[str, Any]:
    """
    Collect run overrides from environment variables.

    Supported environment variables:
    - GOCARS_ENVIRONMENT: development, staging or production
    - GOCARS_CONCURRENCY: concurrency level
    - GOCARS_TIMEOUT_MS: run timeout in milliseconds
    - GOCARS_RETRY_ATTEMPTS: retry attempts per failed test
    """
    env_config: Dict[str, Any] = {}

    if "GOCARS_ENVIRONMENT" in os.environ:
        env_config["environment"] = os.environ["GOCARS_ENVIRONMENT"]

    concurrency = _parse_env_int("GOCARS_CONCURRENCY")
    if concurrency is not None:
        env_config["concurrency_level"] = concurrency

    timeout = _parse_env_int("GOCARS_TIMEOUT_MS")
    if timeout is not None:
        env_config["timeout"] = timeout

    retries = _parse_env_int("GOCARS_RETRY_ATTEMPTS")
    if retries is not None:
        env_config["retry_attempts"] = retries

    return env_config


def load_test_configuration(config_file: Optional[str] = None) -> TestConfiguration:
    """
    Resolve the configuration a ``test`` run starts from.

    Configuration precedence (highest to lowest):
    1. Environment variables
    2. Configuration file, when it exists
    3. The canonical default configuration

    Raises:
        ParseError: If the file or an environment variable is malformed
    """
    if config_file and Path(config_file).exists():
        logger.info("Loading configuration from %s", config_file)
        config = load_configuration(config_file)
    else:
        logger.info("No configuration file found, using defaults")
        config = default_configuration()

    env_overrides = _load_from_env()
    for name, value in env_overrides.items():
        setattr(config, name, value)
    if env_overrides:
        logger.debug("Applied environment variable overrides: %s", list(env_overrides.keys()))
    return config
