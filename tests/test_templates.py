"""Tests for the template registry."""

import pytest

from src.gocars_test_framework.config import new_configuration
from src.gocars_test_framework.exceptions import NotFoundError
from src.gocars_test_framework.store import JsonFileStore, MemoryStore
from src.gocars_test_framework.templates import (
    ConfigurationTemplate,
    TemplateRegistry,
    builtin_templates,
    get_builtin_template,
    merge_overrides,
)
from src.gocars_test_framework.validation import validate_configuration


class TestBuiltinTemplates:
    """Tests for the shipped templates."""

    def test_ids(self):
        assert [t.id for t in builtin_templates()] == [
            "smoke-test",
            "regression-test",
            "performance-test",
        ]

    def test_categories(self):
        categories = {t.id: t.category for t in builtin_templates()}
        assert categories == {
            "smoke-test": "smoke",
            "regression-test": "regression",
            "performance-test": "performance",
        }

    @pytest.mark.parametrize("template_id", ["smoke-test", "regression-test", "performance-test"])
    def test_instantiates_to_valid_configuration(self, template_id):
        template = get_builtin_template(template_id)
        result = validate_configuration(new_configuration(template.configuration))
        assert result.is_valid, result.errors

    def test_unknown_builtin(self):
        with pytest.raises(NotFoundError):
            get_builtin_template("security-test")


class TestConfigurationTemplate:
    """Tests for ConfigurationTemplate."""

    def test_invalid_category(self):
        with pytest.raises(ValueError):
            ConfigurationTemplate(
                id="t", name="T", description="", category="nightly", configuration={}
            )

    def test_round_trip(self):
        template = get_builtin_template("smoke-test")
        assert ConfigurationTemplate.from_dict(template.to_dict()) == template


class TestMergeOverrides:
    """Tests for shallow override merging."""

    def test_override_wins(self):
        merged = merge_overrides({"name": "Base", "timeout": 1}, {"name": "X"})
        assert merged == {"name": "X", "timeout": 1}

    def test_nested_values_replaced_whole(self):
        base = {"reportingOptions": {"formats": ["json"], "includeTrendAnalysis": True}}
        merged = merge_overrides(base, {"reportingOptions": {"formats": ["html"]}})
        assert merged["reportingOptions"] == {"formats": ["html"]}

    def test_base_not_mutated(self):
        base = {"testSuites": [{"id": "a", "name": "A"}]}
        merged = merge_overrides(base, {})
        merged["testSuites"].append({"id": "b", "name": "B"})
        assert len(base["testSuites"]) == 1


class TestTemplateRegistry:
    """Tests for TemplateRegistry."""

    def test_installs_builtins(self):
        store = MemoryStore()
        registry = TemplateRegistry(store)
        assert store.list() == ["performance-test", "regression-test", "smoke-test"]
        assert len(registry.get_templates()) == 3

    def test_disk_wins_over_builtin(self, tmp_path):
        store = JsonFileStore(tmp_path)
        custom = get_builtin_template("smoke-test")
        custom.name = "Customised Smoke"
        store.put("smoke-test", custom.to_dict())

        registry = TemplateRegistry(store)
        assert registry.get_template("smoke-test").name == "Customised Smoke"
        assert store.get("smoke-test")["name"] == "Customised Smoke"

    def test_create_and_delete(self):
        store = MemoryStore()
        registry = TemplateRegistry(store)
        template = registry.create_template("Nightly", "All the things", "full", {"timeout": 5})
        assert template.id.startswith("template-")
        assert template.id in store

        registry.delete_template(template.id)
        assert registry.get_template(template.id) is None
        assert template.id not in store

    def test_delete_missing(self):
        with pytest.raises(NotFoundError):
            TemplateRegistry(MemoryStore()).delete_template("nope")

    def test_instantiate_applies_overrides(self):
        registry = TemplateRegistry(MemoryStore())
        document = registry.instantiate("smoke-test", {"name": "X"})
        assert document["name"] == "X"
        assert document["environment"] == "development"

    def test_instantiate_missing(self):
        with pytest.raises(NotFoundError):
            TemplateRegistry(MemoryStore()).instantiate("nope")

    def test_skips_unreadable_template(self):
        store = MemoryStore()
        store.put("broken", {"id": "broken", "unexpected": True})
        registry = TemplateRegistry(store)
        assert registry.get_template("broken") is None
        assert registry.get_template("smoke-test") is not None
