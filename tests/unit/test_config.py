"""Unit tests for storymock.config.

Test taxonomy:
    - Defaults
    - Environment overrides with the STORYMOCK_ prefix
    - Process-wide cached settings
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from storymock.config import LookaheadPolicy, StoryMockSettings, get_settings


class TestSettings:
    def test_defaults(self, settings) -> None:
        assert settings.lookahead_policy is LookaheadPolicy.ADVANCE
        assert settings.check_return_types
        assert settings.check_exception_integrity
        assert settings.trace_in_failures

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("STORYMOCK_LOOKAHEAD_POLICY", "strict")
        monkeypatch.setenv("STORYMOCK_TRACE_IN_FAILURES", "false")
        settings = StoryMockSettings()
        assert settings.lookahead_policy is LookaheadPolicy.STRICT
        assert not settings.trace_in_failures

    def test_invalid_policy_rejected(self, monkeypatch) -> None:
        monkeypatch.setenv("STORYMOCK_LOOKAHEAD_POLICY", "sideways")
        with pytest.raises(ValidationError):
            StoryMockSettings()

    def test_settings_are_frozen(self, settings) -> None:
        with pytest.raises(ValidationError):
            settings.check_return_types = False

    def test_get_settings_is_cached(self, monkeypatch) -> None:
        first = get_settings()
        monkeypatch.setenv("STORYMOCK_CHECK_RETURN_TYPES", "false")
        assert get_settings() is first
        get_settings.cache_clear()
        assert not get_settings().check_return_types
