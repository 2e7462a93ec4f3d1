#!/usr/bin/env python3
"""
Tests for Planflow Configuration
================================

Tests PlanflowConfig defaults, loading from environment variables and
configuration validation.
"""

import os
from unittest.mock import patch

from planflow import DEFAULT_CONFIG, PlanflowConfig, get_plan_format


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self):
        config = PlanflowConfig()

        assert config.max_steps == 200
        assert config.skipped_satisfies_dependencies is False
        assert config.horizontal_spacing == 300
        assert config.vertical_spacing == 150
        assert "feature" in config.plan_types
        assert "custom" in config.step_kinds
        assert config.statuses == ("pending", "in-progress", "done", "blocked", "skipped")

    def test_default_is_valid(self):
        assert DEFAULT_CONFIG.is_valid()
        assert DEFAULT_CONFIG.get_validation_errors() == []


class TestFromEnv:
    """Tests for PlanflowConfig.from_env()."""

    def test_empty_environment_gives_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = PlanflowConfig.from_env()

        assert config == PlanflowConfig()

    def test_reads_all_variables(self):
        env = {
            "PLANFLOW_MAX_STEPS": "50",
            "PLANFLOW_PLAN_TYPES": "feature, bugfix",
            "PLANFLOW_STEP_KINDS": "edit_file,test",
            "PLANFLOW_STATUSES": "pending,in-progress,done",
            "PLANFLOW_SKIPPED_SATISFIES_DEPENDENCIES": "yes",
            "PLANFLOW_HORIZONTAL_SPACING": "120",
            "PLANFLOW_VERTICAL_SPACING": "80",
            "PLANFLOW_SCHEMA_VERSIONS": "1.1.0",
        }
        with patch.dict(os.environ, env, clear=True):
            config = PlanflowConfig.from_env()

        assert config.max_steps == 50
        assert config.plan_types == ("feature", "bugfix")
        assert config.step_kinds == ("edit_file", "test")
        assert config.statuses == ("pending", "in-progress", "done")
        assert config.skipped_satisfies_dependencies is True
        assert config.horizontal_spacing == 120
        assert config.vertical_spacing == 80
        assert config.supported_schema_versions == ("1.1.0",)

    def test_invalid_number_falls_back(self, caplog):
        with patch.dict(os.environ, {"PLANFLOW_MAX_STEPS": "lots"}, clear=True):
            config = PlanflowConfig.from_env()

        assert config.max_steps == 200
        assert "Invalid PLANFLOW_MAX_STEPS" in caplog.text

    def test_invalid_bool_falls_back(self):
        with patch.dict(
            os.environ, {"PLANFLOW_SKIPPED_SATISFIES_DEPENDENCIES": "maybe"}, clear=True
        ):
            config = PlanflowConfig.from_env()

        assert config.skipped_satisfies_dependencies is False

    def test_monkeypatched_environment(self, monkeypatch):
        monkeypatch.setenv("PLANFLOW_SKIPPED_SATISFIES_DEPENDENCIES", "false")
        monkeypatch.setenv("PLANFLOW_VERTICAL_SPACING", "10")

        config = PlanflowConfig.from_env()

        assert config.skipped_satisfies_dependencies is False
        assert config.vertical_spacing == 10


class TestValidation:
    """Tests for get_validation_errors()."""

    def test_non_positive_values(self):
        config = PlanflowConfig(max_steps=0, horizontal_spacing=-1, vertical_spacing=0)

        errors = config.get_validation_errors()

        assert not config.is_valid()
        assert "max_steps must be positive, got 0" in errors
        assert "horizontal_spacing must be positive" in errors
        assert "vertical_spacing must be positive" in errors

    def test_unknown_values(self):
        config = PlanflowConfig(step_kinds=("edit_file", "deploy"))

        assert config.get_validation_errors() == ["step_kinds contains unknown values: deploy"]

    def test_statuses_need_pending(self):
        config = PlanflowConfig(statuses=("in-progress", "done"))

        assert "statuses must include 'pending'" in config.get_validation_errors()

    def test_empty_vocabulary(self):
        config = PlanflowConfig(plan_types=())

        assert "plan_types must not be empty" in config.get_validation_errors()


class TestPlanFormat:
    """Tests for the published JSON Schema."""

    def test_schema_carries_configured_vocabulary(self):
        config = PlanflowConfig(max_steps=10, plan_types=("feature",))

        schema = get_plan_format(config)

        assert schema["$id"].endswith("/plan.json")
        assert schema["properties"]["planType"]["enum"] == ["feature"]
        assert schema["properties"]["steps"]["maxItems"] == 10
        assert schema["$defs"]["Step"]["properties"]["kind"]["enum"] == list(
            config.step_kinds
        )
        assert "planId" in schema["required"]
        assert "plan" in schema["properties"]
