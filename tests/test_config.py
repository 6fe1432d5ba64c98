# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Tests for application settings and context configuration."""

import logging

import pytest
from signal_agent.config import Settings, SpecialGroupId
from signal_agent.services.compaction.settings import (
    ContextConfig,
    ContextConfigError,
    create_context_config,
)


class TestSettings:
    """Tests for pydantic-settings backed configuration."""

    def test_defaults(self):
        """Verify the context defaults."""
        s = Settings(_env_file=None)
        assert s.CONTEXT_MAX_TURNS == 8
        assert s.CONTEXT_SUMMARIZE_AFTER == 12
        assert s.DEFAULT_ACTIVITY_DAYS == 30

    def test_env_override(self, monkeypatch):
        """Verify that CONTEXT_* environment variables are read."""
        monkeypatch.setenv("CONTEXT_MAX_TURNS", "3")
        monkeypatch.setenv("CONTEXT_TOOL_TRIM_ENABLED", "false")
        s = Settings(_env_file=None)
        assert s.CONTEXT_MAX_TURNS == 3
        assert s.CONTEXT_TOOL_TRIM_ENABLED is False

    def test_profile_link(self):
        """Verify that profile links use the configured base URL."""
        s = Settings(_env_file=None, APP_BASE_URL="https://signals.example.com/")
        assert s.profile_link("42") == "https://signals.example.com/search?user_id=42"

    def test_special_group_ids(self):
        """Verify that special group ids are negative."""
        assert SpecialGroupId.ALL_TRACKED == -3
        assert SpecialGroupId.SAVED < 0 and SpecialGroupId.SKIPPED < 0


class TestContextConfig:
    """Tests for ContextConfig construction and validation."""

    def test_from_settings(self):
        """Verify that a config mirrors the given settings."""
        s = Settings(_env_file=None, CONTEXT_MAX_TURNS=5, CONTEXT_SUMMARY_MAX_TOKENS=99)
        config = ContextConfig.from_settings(s)
        assert config.max_turns == 5
        assert config.summary_max_tokens == 99

    def test_is_immutable(self):
        """Verify that configs cannot be mutated."""
        config = ContextConfig()
        with pytest.raises(AttributeError):
            config.max_turns = 1

    def test_summarization_enabled(self):
        """Verify that summarize_after=0 disables summarization."""
        assert ContextConfig(summarize_after=0).summarization_enabled is False
        assert ContextConfig(summarize_after=1).summarization_enabled is True

    def test_low_summarize_after_is_logged(self, caplog):
        """Verify that summarize_after < max_turns is accepted in lenient mode."""
        config = ContextConfig(max_turns=8, summarize_after=4)
        with caplog.at_level(logging.INFO):
            assert config.validate() is config
        assert "summarize_after=4 is below max_turns=8" in caplog.text

    def test_low_summarize_after_rejected_when_strict(self):
        """Verify that strict validation rejects summarize_after < max_turns."""
        with pytest.raises(ContextConfigError):
            ContextConfig(max_turns=8, summarize_after=4).validate(strict=True)

    def test_disabled_summary_passes_strict(self):
        """Verify that summarize_after=0 is valid in strict mode."""
        config = ContextConfig(max_turns=8, summarize_after=0)
        assert config.validate(strict=True) is config

    def test_negative_values_rejected(self):
        """Verify that negative values are always rejected."""
        with pytest.raises(ContextConfigError):
            ContextConfig(max_turns=-1).validate()

    def test_error_is_value_error(self):
        """Verify that config errors can be caught as ValueError."""
        assert issubclass(ContextConfigError, ValueError)


class TestCreateContextConfig:
    """Tests for create_context_config overrides."""

    def test_overrides_applied(self):
        """Verify that known overrides replace base values."""
        config = create_context_config(ContextConfig(), max_turns=3, tool_trim_enabled=False)
        assert config.max_turns == 3
        assert config.tool_trim_enabled is False
        assert config.summarize_after == 12

    def test_unknown_keys_ignored(self, caplog):
        """Verify that unknown keys are dropped with a warning."""
        base = ContextConfig()
        with caplog.at_level(logging.WARNING):
            config = create_context_config(base, bogus=1)
        assert config == base
        assert "bogus" in caplog.text

    def test_none_values_ignored(self):
        """Verify that None overrides keep the base value."""
        assert create_context_config(ContextConfig(), max_turns=None).max_turns == 8
