"""
Configuration templates: built-in starting points plus user-defined ones.

Instantiating a template is a shallow merge. An override replaces the whole
top-level value it names, so a template that sets ``reportingOptions``
either keeps all of its reporting settings or none of them.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .config import generate_id, normalize_document_keys
from .exceptions import NotFoundError, ParseError
from .store import DocumentStore

logger = logging.getLogger(__name__)

TEMPLATE_CATEGORIES = ("smoke", "regression", "performance", "security", "full")


@dataclass
class ConfigurationTemplate:
    """A partial configuration used as the base of new configurations."""

    id: str
    name: str
    description: str = ""
    category: str = "smoke"
    configuration: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.category not in TEMPLATE_CATEGORIES:
            raise ValueError(
                f"Template category must be one of {', '.join(TEMPLATE_CATEGORIES)}: "
                f"{self.category}"
            )
        self.configuration = normalize_document_keys(self.configuration or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: str = "template") -> "ConfigurationTemplate":
        try:
            return cls(
                id=data["id"],
                name=data["name"],
                description=data.get("description", ""),
                category=data.get("category", "smoke"),
                configuration=data.get("configuration") or {},
            )
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise ParseError(source, f"invalid template: {e}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "configuration": copy.deepcopy(self.configuration),
        }


def _basic_passenger() -> Dict[str, Any]:
    return {
        "id": "basic-passenger",
        "name": "Basic Passenger",
        "role": "passenger",
        "demographics": {
            "age": 30,
            "location": "urban",
            "deviceType": "mobile",
            "experience": "regular",
        },
        "preferences": {
            "paymentMethod": "credit_card",
            "notificationSettings": {},
            "language": "en",
        },
        "behaviorPatterns": {
            "bookingFrequency": 5,
            "averageRideDistance": 10,
            "preferredTimes": ["09:00", "17:00"],
            "cancellationRate": 0.05,
        },
        "weight": 100,
    }


def _full_reporting(formats: List[str]) -> Dict[str, Any]:
    return {
        "includeExecutiveSummary": True,
        "includeTechnicalDetails": True,
        "includeTrendAnalysis": True,
        "includeRecommendations": True,
        "formats": formats,
    }


def _all_notifications(channels: List[str]) -> Dict[str, Any]:
    return {
        "onTestStart": True,
        "onTestComplete": True,
        "onTestFailure": True,
        "onCriticalError": True,
        "channels": channels,
    }


def builtin_templates() -> List[ConfigurationTemplate]:
    """Return fresh copies of the templates shipped with the framework."""
    return [
        ConfigurationTemplate(
            id="smoke-test",
            name="Smoke Test",
            description="Quick validation of core functionality",
            category="smoke",
            configuration={
                "name": "Smoke Test Configuration",
                "environment": "development",
                "concurrencyLevel": 5,
                "timeout": 300000,
                "retryAttempts": 1,
                "testSuites": [
                    {
                        "id": "firebase-auth",
                        "name": "Firebase Authentication",
                        "enabled": True,
                        "priority": 1,
                        "parameters": {"quickMode": True},
                        "dependencies": [],
                    },
                    {
                        "id": "basic-ui",
                        "name": "Basic UI Components",
                        "enabled": True,
                        "priority": 2,
                        "parameters": {"skipVisualTests": True},
                        "dependencies": [],
                    },
                ],
                "userProfiles": [_basic_passenger()],
                "autoFixEnabled": False,
                "reportingOptions": {
                    "includeExecutiveSummary": True,
                    "includeTechnicalDetails": False,
                    "includeTrendAnalysis": False,
                    "includeRecommendations": True,
                    "formats": ["json", "html"],
                },
                "notificationSettings": {
                    "onTestStart": False,
                    "onTestComplete": True,
                    "onTestFailure": True,
                    "onCriticalError": True,
                    "channels": ["email"],
                },
            },
        ),
        ConfigurationTemplate(
            id="regression-test",
            name="Regression Test",
            description="Comprehensive testing of all features",
            category="regression",
            configuration={
                "name": "Regression Test Configuration",
                "environment": "staging",
                "concurrencyLevel": 20,
                "timeout": 1800000,
                "retryAttempts": 2,
                "testSuites": [
                    {"id": "firebase-full", "name": "Firebase Full Suite", "priority": 1},
                    {
                        "id": "websocket-full",
                        "name": "WebSocket Full Suite",
                        "priority": 2,
                        "dependencies": ["firebase-full"],
                    },
                    {"id": "ui-full", "name": "UI Full Suite", "priority": 3},
                    {
                        "id": "booking-workflows",
                        "name": "Booking Workflows",
                        "priority": 4,
                        "dependencies": ["firebase-full", "websocket-full"],
                    },
                ],
                "autoFixEnabled": True,
                "reportingOptions": _full_reporting(["json", "html", "pdf"]),
                "notificationSettings": _all_notifications(["email", "slack"]),
            },
        ),
        ConfigurationTemplate(
            id="performance-test",
            name="Performance Test",
            description="Load and performance testing",
            category="performance",
            configuration={
                "name": "Performance Test Configuration",
                "environment": "staging",
                "concurrencyLevel": 100,
                "timeout": 3600000,
                "retryAttempts": 1,
                "testSuites": [
                    {
                        "id": "load-testing",
                        "name": "Load Testing",
                        "priority": 1,
                        "parameters": {"maxUsers": 1000, "rampUpTime": 300, "sustainTime": 1800},
                    },
                    {
                        "id": "stress-testing",
                        "name": "Stress Testing",
                        "priority": 2,
                        "parameters": {"maxUsers": 2000, "rampUpTime": 600},
                        "dependencies": ["load-testing"],
                    },
                ],
                "autoFixEnabled": False,
                "reportingOptions": _full_reporting(["json", "html"]),
                "notificationSettings": _all_notifications(["email", "slack"]),
            },
        ),
    ]


def get_builtin_template(template_id: str) -> ConfigurationTemplate:
    """Look up a built-in template without touching any store."""
    for template in builtin_templates():
        if template.id == template_id:
            return template
    raise NotFoundError("template", template_id)


def merge_overrides(
    base: Mapping[str, Any], overrides: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """Shallow-merge *overrides* over *base*; override values win whole."""
    merged = normalize_document_keys(copy.deepcopy(dict(base)))
    merged.update(normalize_document_keys(copy.deepcopy(dict(overrides or {}))))
    return merged


class TemplateRegistry:
    """Built-in and user-defined templates backed by a document store."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self._templates: Dict[str, ConfigurationTemplate] = {}
        self._load()
        self._install_builtins()

    def _load(self) -> None:
        for key in self.store.list():
            try:
                document = self.store.get(key)
                if document is None:
                    continue
                template = ConfigurationTemplate.from_dict(document, source=f"template {key}")
            except ParseError as e:
                logger.warning("Skipping unreadable template %s: %s", key, e)
                continue
            self._templates[template.id] = template

    def _install_builtins(self) -> None:
        # Templates already on disk win over the shipped defaults
        for template in builtin_templates():
            if template.id not in self._templates:
                self.store.put(template.id, template.to_dict())
                self._templates[template.id] = template
                logger.info("Installed built-in template %s", template.id)

    def get_template(self, template_id: str) -> Optional[ConfigurationTemplate]:
        return self._templates.get(template_id)

    def get_templates(self) -> List[ConfigurationTemplate]:
        return list(self._templates.values())

    def create_template(
        self,
        name: str,
        description: str,
        category: str,
        configuration: Mapping[str, Any],
    ) -> ConfigurationTemplate:
        """Persist a new user-defined template and return it."""
        template = ConfigurationTemplate(
            id=generate_id("template"),
            name=name,
            description=description,
            category=category,
            configuration=dict(configuration),
        )
        self.store.put(template.id, template.to_dict())
        self._templates[template.id] = template
        return template

    def delete_template(self, template_id: str) -> ConfigurationTemplate:
        """Remove a template. Raises NotFoundError if it does not exist."""
        template = self._templates.get(template_id)
        if template is None:
            raise NotFoundError("template", template_id)
        self.store.delete(template_id)
        del self._templates[template_id]
        return template

    def instantiate(
        self, template_id: str, overrides: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        """Return the template's base document with *overrides* applied."""
        template = self._templates.get(template_id)
        if template is None:
            raise NotFoundError("template", template_id)
        return merge_overrides(template.configuration, overrides)
