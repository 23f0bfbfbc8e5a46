"""
Configuration manager: CRUD, cloning, templates and import/export over a
document store, gated by the validation engine.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import yaml

from .catalog import available_test_suites
from .config import (
    TestConfiguration,
    TestSuiteConfig,
    new_configuration,
    normalize_document_keys,
)
from .exceptions import NotFoundError, ParseError, UnsupportedFormatError, ValidationError
from .store import DocumentStore, JsonFileStore
from .templates import ConfigurationTemplate, TemplateRegistry
from .validation import ValidationResult, validate_configuration

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "yaml")

CONFIGURATION_CREATED = "configuration_created"
CONFIGURATION_UPDATED = "configuration_updated"
CONFIGURATION_DELETED = "configuration_deleted"
CONFIGURATION_IMPORTED = "configuration_imported"
TEMPLATE_CREATED = "template_created"
TEMPLATE_DELETED = "template_deleted"

EVENTS = (
    CONFIGURATION_CREATED,
    CONFIGURATION_UPDATED,
    CONFIGURATION_DELETED,
    CONFIGURATION_IMPORTED,
    TEMPLATE_CREATED,
    TEMPLATE_DELETED,
)

Handler = Callable[[Any], None]


class ConfigurationManager:
    """
    Orchestrates the configuration store, template registry and validation.

    The in-memory index is rebuilt from the store on construction. Every
    mutation validates first and only then touches the store, so a failed
    create/update/import leaves no trace.

    Lifecycle events are delivered to handlers registered with
    ``add_listener`` or the ``on_*`` helpers::

        manager.on_configuration_created(lambda config: print(config.id))
    """

    def __init__(self, config_store: DocumentStore, template_store: DocumentStore):
        self.store = config_store
        self.templates = TemplateRegistry(template_store)
        self._configurations: Dict[str, TestConfiguration] = {}
        self._listeners: Dict[str, List[Handler]] = {event: [] for event in EVENTS}
        self._load()

    @classmethod
    def from_directory(cls, directory: Union[str, Path]) -> "ConfigurationManager":
        """Use ``<directory>/*.json`` for configurations and ``templates/`` for templates."""
        root = Path(directory)
        return cls(JsonFileStore(root), JsonFileStore(root / "templates"))

    def _load(self) -> None:
        for key in self.store.list():
            try:
                document = self.store.get(key)
                if document is None:
                    continue
                config = TestConfiguration.from_dict(document, source=f"configuration {key}")
            except ParseError as e:
                logger.warning("Failed to load configuration %s: %s", key, e)
                continue
            self._configurations[config.id] = config
        logger.debug("Loaded %d configurations", len(self._configurations))

    # Events

    def add_listener(self, event: str, handler: Handler) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event}")
        self._listeners[event].append(handler)

    def remove_listener(self, event: str, handler: Handler) -> None:
        if handler in self._listeners.get(event, []):
            self._listeners[event].remove(handler)

    def on_configuration_created(self, handler: Handler) -> None:
        self.add_listener(CONFIGURATION_CREATED, handler)

    def on_configuration_updated(self, handler: Handler) -> None:
        self.add_listener(CONFIGURATION_UPDATED, handler)

    def on_configuration_deleted(self, handler: Handler) -> None:
        self.add_listener(CONFIGURATION_DELETED, handler)

    def on_configuration_imported(self, handler: Handler) -> None:
        self.add_listener(CONFIGURATION_IMPORTED, handler)

    def on_template_created(self, handler: Handler) -> None:
        self.add_listener(TEMPLATE_CREATED, handler)

    def on_template_deleted(self, handler: Handler) -> None:
        self.add_listener(TEMPLATE_DELETED, handler)

    def _emit(self, event: str, payload: Any) -> None:
        for handler in list(self._listeners[event]):
            try:
                handler(payload)
            except Exception:
                logger.exception("Listener for %s failed", event)

    # Validation and persistence

    def validate_configuration(self, config: TestConfiguration) -> ValidationResult:
        return validate_configuration(config)

    def _require_valid(self, config: TestConfiguration, context: str) -> None:
        result = validate_configuration(config)
        for warning in result.warnings:
            logger.debug("Configuration %s: %s", config.id, warning.message)
        if not result.is_valid:
            raise ValidationError(result.errors, context)

    def _save(self, config: TestConfiguration) -> None:
        self.store.put(config.id, config.to_dict())
        self._configurations[config.id] = config

    def _get_or_raise(self, config_id: str) -> TestConfiguration:
        config = self._configurations.get(config_id)
        if config is None:
            raise NotFoundError("configuration", config_id)
        return config

    # CRUD

    def create_configuration(self, partial: Optional[Mapping[str, Any]] = None) -> str:
        """
        Create, validate and persist a configuration.

        Args:
            partial: Document fields to set; omitted fields get defaults

        Returns:
            The freshly assigned configuration id

        Raises:
            ValidationError: If the resulting configuration is invalid
            ParseError: If *partial* has unknown or malformed fields
        """
        config = new_configuration(partial)
        self._require_valid(config, "Configuration validation failed")
        self._save(config)
        logger.info("Created configuration %s (%s)", config.id, config.name)
        self._emit(CONFIGURATION_CREATED, config)
        return config.id

    def update_configuration(self, config_id: str, partial: Mapping[str, Any]) -> None:
        """
        Shallow-merge *partial* over an existing configuration.

        ``id`` and ``createdAt`` are preserved; ``updatedAt`` is bumped.

        Raises:
            NotFoundError: If *config_id* does not exist
            ValidationError: If the merged configuration is invalid
        """
        existing = self._get_or_raise(config_id)
        document = existing.to_dict()
        document.update(normalize_document_keys(partial))
        document["id"] = existing.id
        document["createdAt"] = existing.created_at
        now = datetime.now(existing.created_at.tzinfo)
        document["updatedAt"] = max(now, existing.created_at)
        updated = TestConfiguration.from_dict(document, source=f"configuration {config_id}")

        self._require_valid(updated, "Configuration validation failed")
        self._save(updated)
        logger.info("Updated configuration %s", config_id)
        self._emit(CONFIGURATION_UPDATED, updated)

    def delete_configuration(self, config_id: str) -> None:
        """Remove a configuration and its backing document."""
        config = self._get_or_raise(config_id)
        self.store.delete(config_id)
        del self._configurations[config_id]
        logger.info("Deleted configuration %s", config_id)
        self._emit(CONFIGURATION_DELETED, config)

    def get_configuration(self, config_id: str) -> Optional[TestConfiguration]:
        return self._configurations.get(config_id)

    def get_all_configurations(self) -> List[TestConfiguration]:
        return list(self._configurations.values())

    def get_configurations_by_tag(self, tag: str) -> List[TestConfiguration]:
        return [c for c in self._configurations.values() if tag in (c.tags or [])]

    def get_configurations_by_environment(self, environment: str) -> List[TestConfiguration]:
        return [c for c in self._configurations.values() if c.environment == environment]

    def clone_configuration(self, config_id: str, new_name: Optional[str] = None) -> str:
        """Copy a configuration under a new id; the copy is validated again."""
        original = self._get_or_raise(config_id)
        document = original.to_dict()
        document["name"] = new_name or f"{original.name} (Copy)"
        return self.create_configuration(document)

    def create_from_template(
        self, template_id: str, overrides: Optional[Mapping[str, Any]] = None
    ) -> str:
        """Create a configuration from a template's base merged with *overrides*."""
        document = self.templates.instantiate(template_id, overrides)
        return self.create_configuration(document)

    # Import / export

    def export_configuration(self, config_id: str, format: str = "json") -> str:
        """
        Serialize a configuration.

        Raises:
            NotFoundError: If *config_id* does not exist
            UnsupportedFormatError: If *format* is not json or yaml
        """
        config = self._get_or_raise(config_id)
        if format == "json":
            return json.dumps(config.to_dict(), indent=2)
        if format == "yaml":
            return yaml.safe_dump(config.to_dict(), sort_keys=False)
        raise UnsupportedFormatError(format, EXPORT_FORMATS)

    def import_configuration(self, data: str, format: str = "json") -> str:
        """
        Accept an exported configuration under a new id and fresh timestamps.

        Raises:
            UnsupportedFormatError: If *format* is not json or yaml
            ParseError: If *data* cannot be parsed into a configuration
            ValidationError: If the imported configuration is invalid
        """
        if format not in EXPORT_FORMATS:
            raise UnsupportedFormatError(format, EXPORT_FORMATS)
        try:
            document = json.loads(data) if format == "json" else yaml.safe_load(data)
        except (ValueError, yaml.YAMLError) as e:
            raise ParseError("configuration data", str(e))
        if not isinstance(document, dict):
            raise ParseError("configuration data", "expected a configuration object")

        config = new_configuration(document)
        self._require_valid(config, "Imported configuration is invalid")
        self._save(config)
        logger.info("Imported configuration %s (%s)", config.id, config.name)
        self._emit(CONFIGURATION_IMPORTED, config)
        return config.id

    # Templates and catalog

    def get_templates(self) -> List[ConfigurationTemplate]:
        return self.templates.get_templates()

    def get_template(self, template_id: str) -> Optional[ConfigurationTemplate]:
        return self.templates.get_template(template_id)

    def create_template(
        self,
        name: str,
        description: str,
        category: str,
        configuration: Mapping[str, Any],
    ) -> str:
        template = self.templates.create_template(name, description, category, configuration)
        self._emit(TEMPLATE_CREATED, template)
        return template.id

    def delete_template(self, template_id: str) -> None:
        template = self.templates.delete_template(template_id)
        self._emit(TEMPLATE_DELETED, template)

    def get_available_test_suites(self) -> List[TestSuiteConfig]:
        return available_test_suites()
