"""
Tool settings: where configurations, results and reports live.

Settings precedence (highest to lowest):
1. Environment variables
2. Settings file (``--settings`` or the nearest ``.gocars-test.yaml``)
3. Defaults
"""

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .exceptions import SettingsError

logger = logging.getLogger(__name__)

SETTINGS_FILENAMES = (".gocars-test.yaml", ".gocars-test.yml", ".gocars-test.json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

ENV_VARS = {
    "config_directory": "GOCARS_CONFIG_DIR",
    "config_file": "GOCARS_CONFIG_FILE",
    "results_directory": "GOCARS_RESULTS_DIR",
    "report_directory": "GOCARS_REPORT_DIR",
    "orchestrator": "GOCARS_ORCHESTRATOR",
    "log_level": "GOCARS_LOG_LEVEL",
    "notification_timeout_seconds": "GOCARS_NOTIFICATION_TIMEOUT",
}


@dataclass
class Settings:
    """Tool settings."""

    config_directory: str = "./test-configurations"
    config_file: str = "./test-config.json"
    results_directory: str = "./test-reports"
    report_directory: str = "./reports"
    orchestrator: Optional[str] = None
    log_level: str = "INFO"
    notification_timeout_seconds: int = 10

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise SettingsError(
                f"Invalid log_level: {self.log_level}. Must be one of {', '.join(LOG_LEVELS)}"
            )
        if (
            isinstance(self.notification_timeout_seconds, bool)
            or not isinstance(self.notification_timeout_seconds, int)
            or self.notification_timeout_seconds <= 0
        ):
            raise SettingsError(
                "notification_timeout_seconds must be a positive integer, "
                f"got: {self.notification_timeout_seconds!r}"
            )


def find_settings_file(start: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Walk up from *start* (default: cwd) to the first settings file found."""
    directory = Path(start or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        for name in SETTINGS_FILENAMES:
            candidate = candidate_dir / name
            if candidate.is_file():
                return candidate
    return None


def _load_from_file(path: Path) -> Dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SettingsError(f"Cannot read settings file {path}: {e}")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (ValueError, yaml.YAMLError) as e:
        raise SettingsError(f"Invalid settings file {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping")

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise SettingsError(f"Unknown settings in {path}: {', '.join(unknown)}")
    return data


def _load_from_env() -> Dict[str, Any]:
    env_settings: Dict[str, Any] = {}
    for name, var_name in ENV_VARS.items():
        value = os.environ.get(var_name)
        if value is None:
            continue
        if name == "notification_timeout_seconds":
            try:
                env_settings[name] = int(value)
            except ValueError:
                raise SettingsError(f"{var_name} must be a valid integer, got: '{value}'")
        else:
            env_settings[name] = value
    return env_settings


def load_settings(settings_file: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from a file and environment variables.

    Args:
        settings_file: Explicit settings file; discovered upward from the
            working directory when omitted

    Raises:
        SettingsError: If the file is missing, malformed, or a value is invalid
    """
    values: Dict[str, Any] = {}

    if settings_file is not None:
        path: Optional[Path] = Path(settings_file)
        if not path.is_file():
            raise SettingsError(f"Settings file not found: {settings_file}")
    else:
        path = find_settings_file()

    if path is not None:
        logger.debug("Loading settings from %s", path)
        values.update(_load_from_file(path))

    env_values = _load_from_env()
    if env_values:
        logger.debug("Applied environment variable overrides: %s", list(env_values.keys()))
    values.update(env_values)

    return Settings(**values)
