"""
Tests for calculator configuration.
"""

import logging

import pytest
from pydantic import ValidationError

from xparser import (
    DEFAULT_EXPRESSION_LIMITS,
    MAX_NESTING_DEPTH_CEILING,
    CalculatorConfig,
    NullHandling,
    config_from_env,
    enable_logging,
    load_config,
)


class TestCalculatorConfig:
    def test_defaults(self):
        config = CalculatorConfig()
        assert config.null_policy is NullHandling.NULL_AS_ZERO
        assert config.international_format is False
        assert config.to_limits() == DEFAULT_EXPRESSION_LIMITS

    def test_to_limits(self):
        config = CalculatorConfig(max_tree_nodes=10, max_nesting_depth=4)
        limits = config.to_limits()
        assert limits.max_tree_nodes == 10
        assert limits.max_nesting_depth == 4

    def test_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            CalculatorConfig.model_validate({"max_depth": 3})

    def test_rejects_non_positive_limits(self):
        with pytest.raises(ValidationError):
            CalculatorConfig(max_tree_nodes=0)

    def test_nesting_depth_is_capped(self):
        config = CalculatorConfig(max_nesting_depth=MAX_NESTING_DEPTH_CEILING)
        assert config.to_limits().max_nesting_depth == MAX_NESTING_DEPTH_CEILING
        with pytest.raises(ValidationError):
            CalculatorConfig(max_nesting_depth=5000)

    def test_unknown_null_policy_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING, logger="xparser.evaluator"):
            config = CalculatorConfig(null_policy="sometimes")
        assert config.null_policy is NullHandling.NULL_AS_ZERO
        assert "invalid_null_handling_mode" in caplog.text


class TestLoadConfig:
    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "xparser.yaml"
        path.write_text(
            "null_policy: drop_null\ninternational_format: true\nmax_tree_nodes: 100\n",
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.null_policy is NullHandling.DROP_NULL
        assert config.international_format is True
        assert config.max_tree_nodes == 100

    def test_loads_json(self, tmp_path):
        path = tmp_path / "xparser.json"
        path.write_text('{"null_policy": "throw_error"}', encoding="utf-8")
        assert load_config(str(path)).null_policy is NullHandling.THROW_ON_NULL

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == CalculatorConfig()

    def test_invalid_values_raise(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("max_tree_nodes: lots\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")


class TestConfigFromEnv:
    def test_reads_variables(self):
        config = config_from_env(
            {
                "XPARSER_NULL_POLICY": "THROW_ERROR",
                "XPARSER_INTERNATIONAL_FORMAT": "yes",
                "XPARSER_MAX_TREE_NODES": "128",
                "XPARSER_MAX_NESTING_DEPTH": "16",
            }
        )
        assert config.null_policy is NullHandling.THROW_ON_NULL
        assert config.international_format is True
        assert config.max_tree_nodes == 128
        assert config.max_nesting_depth == 16

    def test_empty_environment_gives_defaults(self):
        assert config_from_env({}) == CalculatorConfig()

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("XPARSER_NULL_POLICY", "drop_null")
        assert config_from_env().null_policy is NullHandling.DROP_NULL

    def test_false_international_format(self):
        config = config_from_env({"XPARSER_INTERNATIONAL_FORMAT": "off"})
        assert config.international_format is False


class TestEnableLogging:
    def test_sets_package_level(self):
        package_logger = logging.getLogger("xparser")
        previous = package_logger.level
        try:
            enable_logging("debug")
            assert package_logger.level == logging.DEBUG
        finally:
            package_logger.setLevel(previous)
