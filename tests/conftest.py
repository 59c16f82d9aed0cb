"""Shared test fixtures for storymock."""

from __future__ import annotations

import os

import pytest
from hypothesis import HealthCheck
from hypothesis import settings as hypothesis_settings

from storymock.config import LookaheadPolicy, StoryMockSettings, get_settings
from storymock.story import StoryContext

# clean_settings is autouse and idempotent, so it is safe across examples
hypothesis_settings.register_profile(
    "storymock",
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
hypothesis_settings.load_profile("storymock")


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Run every test with default settings, whatever the environment says."""
    for name in list(os.environ):
        if name.startswith("STORYMOCK_"):
            monkeypatch.delenv(name)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> StoryMockSettings:
    """Default settings."""
    return StoryMockSettings()


@pytest.fixture
def strict_settings() -> StoryMockSettings:
    """Settings rejecting invocations instead of skipping ahead."""
    return StoryMockSettings(lookahead_policy=LookaheadPolicy.STRICT)


@pytest.fixture
def context(settings) -> StoryContext:
    """A fresh story context with default settings."""
    return StoryContext(settings=settings)
