"""Tests for the configuration object model."""

import json
import re
from datetime import datetime

import pytest
import yaml

from src.gocars_test_framework.config import (
    NotificationSettings,
    ReportingOptions,
    TestConfiguration,
    TestSuiteConfig,
    UserProfile,
    _parse_env_int,
    default_configuration,
    generate_id,
    load_configuration,
    load_test_configuration,
    new_configuration,
    normalize_document_keys,
    read_document,
)
from src.gocars_test_framework.exceptions import ParseError


class TestTestSuiteConfig:
    """Tests for TestSuiteConfig dataclass."""

    def test_defaults(self):
        suite = TestSuiteConfig(id="auth", name="Auth")
        assert suite.enabled is True
        assert suite.priority == 0
        assert suite.parameters == {}
        assert suite.dependencies == []
        assert suite.timeout is None

    def test_from_dict_camel_case(self):
        suite = TestSuiteConfig.from_dict(
            {"id": "auth", "name": "Auth", "retryAttempts": 2, "dependencies": ["db"]}
        )
        assert suite.retry_attempts == 2
        assert suite.dependencies == ["db"]

    def test_to_dict_omits_none(self):
        data = TestSuiteConfig(id="auth", name="Auth").to_dict()
        assert "timeout" not in data
        assert "retryAttempts" not in data
        assert data["enabled"] is True

    def test_unknown_key_rejected(self):
        with pytest.raises(ParseError, match="unknown field 'colour'"):
            TestSuiteConfig.from_dict({"id": "a", "name": "A", "colour": "red"})


class TestUserProfile:
    """Tests for UserProfile dataclass."""

    def test_behavior_patterns_key(self):
        profile = UserProfile.from_dict(
            {"id": "p", "name": "P", "behaviorPatterns": {"bookingFrequency": "weekly"}}
        )
        assert profile.behavior_patterns == {"bookingFrequency": "weekly"}
        assert profile.to_dict()["behaviorPatterns"] == {"bookingFrequency": "weekly"}

    def test_missing_required_field(self):
        with pytest.raises(ParseError):
            UserProfile.from_dict({"id": "p"})


class TestTestConfiguration:
    """Tests for TestConfiguration dataclass."""

    def test_nested_documents_coerced(self):
        config = TestConfiguration.from_dict(
            {
                "id": "c1",
                "name": "C",
                "testSuites": [{"id": "a", "name": "A"}],
                "userProfiles": [{"id": "p", "name": "P", "weight": 100}],
                "reportingOptions": {"formats": ["json"]},
                "notificationSettings": {"channels": ["slack"]},
                "createdAt": "2024-01-01T00:00:00",
                "updatedAt": "2024-01-02T00:00:00",
            }
        )
        assert isinstance(config.test_suites[0], TestSuiteConfig)
        assert isinstance(config.user_profiles[0], UserProfile)
        assert isinstance(config.reporting_options, ReportingOptions)
        assert config.reporting_options.formats == ["json"]
        assert isinstance(config.notification_settings, NotificationSettings)
        assert config.created_at == datetime(2024, 1, 1)

    def test_unknown_top_level_key(self):
        with pytest.raises(ParseError):
            TestConfiguration.from_dict({"id": "c1", "execution": {"parallel": 4}})

    def test_to_dict_round_trip(self):
        config = new_configuration(
            {"name": "Round", "testSuites": [{"id": "a", "name": "A", "tags": ["smoke"]}]}
        )
        data = json.loads(json.dumps(config.to_dict()))
        assert TestConfiguration.from_dict(data) == config

    def test_suite_lookup(self):
        config = new_configuration({"testSuites": [{"id": "a", "name": "A"}]})
        assert config.suite("a").name == "A"
        assert config.suite("missing") is None

    def test_suites_must_be_list(self):
        with pytest.raises(ParseError):
            TestConfiguration.from_dict({"testSuites": {"a": {}}})


class TestNewConfiguration:
    """Tests for new_configuration defaults."""

    def test_fills_defaults(self):
        config = new_configuration({})
        assert config.name == "Untitled Configuration"
        assert config.environment == "development"
        assert config.concurrency_level == 10
        assert config.timeout == 600000
        assert config.retry_attempts == 1
        assert config.test_suites == []
        assert config.tags == []
        assert config.created_at == config.updated_at

    def test_id_format(self):
        config = new_configuration({})
        assert re.fullmatch(r"config-\d+-[0-9a-f]{9}", config.id)

    def test_replaces_supplied_id_and_timestamps(self):
        config = new_configuration(
            {"id": "mine", "createdAt": "2020-01-01T00:00:00", "name": "X"}
        )
        assert config.id != "mine"
        assert config.created_at.year >= 2024

    def test_none_means_omitted(self):
        config = new_configuration({"concurrencyLevel": None, "timeout": None})
        assert config.concurrency_level == 10
        assert config.timeout == 600000

    def test_explicit_zero_kept(self):
        config = new_configuration({"concurrencyLevel": 0})
        assert config.concurrency_level == 0

    def test_accepts_snake_case_keys(self):
        config = new_configuration({"concurrency_level": 3, "auto_fix_enabled": True})
        assert config.concurrency_level == 3
        assert config.auto_fix_enabled is True

    def test_unique_ids(self):
        assert generate_id() != generate_id()


class TestDefaultConfiguration:
    """Tests for the canonical default configuration."""

    def test_shape(self):
        config = default_configuration()
        assert config.name == "Default Test Configuration"
        assert config.environment == "development"
        assert config.concurrency_level == 10

    def test_is_fresh_each_call(self):
        assert default_configuration().id != default_configuration().id


class TestNormalizeDocumentKeys:
    """Tests for normalize_document_keys."""

    def test_converts_snake_case(self):
        assert normalize_document_keys({"retry_attempts": 1, "testSuites": []}) == {
            "retryAttempts": 1,
            "testSuites": [],
        }


class TestReadDocument:
    """Tests for reading configuration documents."""

    def test_json(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text(json.dumps({"name": "J"}))
        assert read_document(path) == {"name": "J"}

    def test_yaml(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text(yaml.dump({"name": "Y", "concurrencyLevel": 4}))
        assert read_document(path)["concurrencyLevel"] == 4

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_document(tmp_path / "missing.json")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ParseError):
            read_document(path)

    def test_top_level_list(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ParseError, match="must be an object"):
            read_document(path)

    def test_load_configuration_keeps_id(self, tmp_path):
        config = new_configuration({"name": "Keep"})
        path = tmp_path / "c.json"
        path.write_text(json.dumps(config.to_dict()))
        assert load_configuration(path).id == config.id


class TestParseEnvInt:
    """Tests for _parse_env_int."""

    def test_unset(self, monkeypatch):
        monkeypatch.delenv("TEST_INT_VAR", raising=False)
        assert _parse_env_int("TEST_INT_VAR") is None

    def test_parses_valid_int(self, monkeypatch):
        monkeypatch.setenv("TEST_INT_VAR", "42")
        assert _parse_env_int("TEST_INT_VAR") == 42

    def test_raises_on_invalid_value(self, monkeypatch):
        monkeypatch.setenv("TEST_INT_VAR", "not_a_number")
        with pytest.raises(ParseError, match="must be a valid integer"):
            _parse_env_int("TEST_INT_VAR")


class TestLoadTestConfiguration:
    """Tests for load_test_configuration."""

    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch):
        for var in (
            "GOCARS_ENVIRONMENT",
            "GOCARS_CONCURRENCY",
            "GOCARS_TIMEOUT_MS",
            "GOCARS_RETRY_ATTEMPTS",
        ):
            monkeypatch.delenv(var, raising=False)

    def test_falls_back_to_default(self, tmp_path):
        config = load_test_configuration(str(tmp_path / "missing.json"))
        assert config.name == "Default Test Configuration"

    def test_loads_file(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text(json.dumps(new_configuration({"name": "From File"}).to_dict()))
        assert load_test_configuration(str(path)).name == "From File"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "c.json"
        path.write_text(json.dumps(new_configuration({"concurrencyLevel": 2}).to_dict()))
        monkeypatch.setenv("GOCARS_CONCURRENCY", "7")
        monkeypatch.setenv("GOCARS_ENVIRONMENT", "staging")
        config = load_test_configuration(str(path))
        assert config.concurrency_level == 7
        assert config.environment == "staging"

    def test_invalid_env_value(self, monkeypatch):
        monkeypatch.setenv("GOCARS_TIMEOUT_MS", "soon")
        with pytest.raises(ParseError):
            load_test_configuration(None)
