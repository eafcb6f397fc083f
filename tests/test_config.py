"""
Tests for configuration loading, placeholder resolution and executor creation.
"""

import pytest

from databuilder.config import Config, load_config, resolve_config
from databuilder.core.api import create_executor
from databuilder.core.config import ExecutorConfig
from databuilder.exceptions import ConfigurationError
from databuilder.observability.listeners import LoggingListener
from databuilder.observability.metrics import MetricsListener


class TestConfig:
    """Dict-like and dot-notation access."""

    def test_dot_notation(self):
        config = Config({"executor": {"metrics_enabled": True}, "logging": {"level": "DEBUG"}})

        assert config.get("executor.metrics_enabled") is True
        assert config.get("executor.missing", "default") == "default"
        assert config.get("logging.level.deeper") is None
        assert config.executor == {"metrics_enabled": True}
        assert config.logging == {"level": "DEBUG"}

    def test_getitem_wraps_nested_dicts(self):
        config = Config({"logging": {"level": "INFO"}, "name": "shop"})

        assert isinstance(config["logging"], Config)
        assert config["logging"]["level"] == "INFO"
        assert config["name"] == "shop"
        assert config["logging.level"] == "INFO"

    def test_getitem_missing_key(self):
        with pytest.raises(KeyError, match="not found"):
            Config({})["missing"]

    def test_contains(self):
        config = Config({"executor": {"log_executions": False}})

        assert "executor" in config
        assert "executor.log_executions" in config
        assert "executor.metrics_enabled" not in config
        assert list(config) == ["executor"]

    def test_missing_sections_default_to_empty(self):
        config = Config({})

        assert config.executor == {}
        assert config.logging == {}

    def test_validate_rejects_non_mapping_sections(self):
        config = Config({"executor": ["metrics_enabled"], "logging": "INFO"})

        with pytest.raises(ConfigurationError) as exc_info:
            config.validate()

        assert len(exc_info.value.details["errors"]) == 2


class TestResolveConfig:
    def test_env_var_and_env_name(self, monkeypatch):
        monkeypatch.setenv("DB_LOG_DIR", "/var/log")

        resolved = resolve_config({"logging": {"file": "${DB_LOG_DIR}/{env}.log"}}, env="prod")

        assert resolved == {"logging": {"file": "/var/log/prod.log"}}

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("DB_LEVEL", raising=False)

        assert resolve_config({"level": "${DB_LEVEL:-INFO}"}) == {"level": "INFO"}

    def test_unset_without_default_left_as_is(self, monkeypatch):
        monkeypatch.delenv("DB_MISSING", raising=False)

        assert resolve_config({"values": ["${DB_MISSING}", 3]}) == {"values": ["${DB_MISSING}", 3]}

    def test_strict_mode_raises_for_unset(self, monkeypatch):
        monkeypatch.delenv("DB_MISSING", raising=False)

        with pytest.raises(ConfigurationError, match="DB_MISSING"):
            resolve_config({"value": "${DB_MISSING}"}, strict=True)

    def test_input_not_modified(self, monkeypatch):
        monkeypatch.setenv("DB_NAME", "shop")
        data = {"name": "${DB_NAME}"}

        resolve_config(data)

        assert data == {"name": "${DB_NAME}"}


class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml"):
            load_config(tmp_path)

    def test_loads_and_overlays_env_file(self, tmp_path):
        (tmp_path / "config.yaml").write_text(
            "executor:\n  metrics_enabled: false\n  log_executions: true\nlogging:\n  level: INFO\n"
        )
        (tmp_path / "config.prod.yaml").write_text("executor:\n  metrics_enabled: true\n")

        config = load_config(tmp_path, env="prod")

        assert config.executor == {"metrics_enabled": True, "log_executions": True}
        assert config.get("logging.level") == "INFO"

    def test_env_without_overlay_file(self, tmp_path):
        (tmp_path / "config.yaml").write_text("logging:\n  file: logs/{env}.log\n")

        config = load_config(tmp_path, env="staging")

        assert config.get("logging.file") == "logs/staging.log"

    def test_parse_error_reports_location(self, tmp_path):
        (tmp_path / "config.yaml").write_text("executor:\n  metrics_enabled: [true\n")

        with pytest.raises(ConfigurationError, match="Error parsing config.yaml at line"):
            load_config(tmp_path)

    def test_non_mapping_file(self, tmp_path):
        (tmp_path / "config.yaml").write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_config(tmp_path)

    def test_empty_file_is_empty_config(self, tmp_path):
        (tmp_path / "config.yaml").write_text("")

        assert load_config(tmp_path).data == {}


class TestExecutorConfig:
    def test_defaults(self):
        config = ExecutorConfig.from_dict(None)

        assert config == ExecutorConfig(log_executions=True, metrics_enabled=False, correlation_ids=True)

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError, match="Unknown executor option"):
            ExecutorConfig.from_dict({"threads": 4})

    def test_non_boolean_option(self):
        with pytest.raises(ConfigurationError, match="must be true or false"):
            ExecutorConfig.from_dict({"metrics_enabled": "yes"})


class TestCreateExecutor:
    def test_default_registers_logging_listener(self):
        executor = create_executor()

        assert [type(listener) for listener in executor.listeners] == [LoggingListener]
        assert executor.correlation_ids is True

    def test_listeners_from_config(self):
        config = Config({"executor": {"log_executions": False, "metrics_enabled": True, "correlation_ids": False}})

        executor = create_executor(config)

        assert [type(listener) for listener in executor.listeners] == [MetricsListener]
        assert executor.correlation_ids is False

    def test_raw_dict_and_registry(self):
        from databuilder.core.registry import BuilderRegistry

        registry = BuilderRegistry()

        executor = create_executor({"executor": {"log_executions": False}}, registry=registry)

        assert executor.listeners == ()
        assert executor.builder_registry is registry

    def test_invalid_config_raises(self):
        with pytest.raises(ConfigurationError):
            create_executor({"executor": {"bogus": True}})
