"""Runtime settings for stories.

Values are read from the environment (prefix ``STORYMOCK_``) the first time
``get_settings()`` is called.  A ``Story`` can also be handed an explicit
``StoryMockSettings`` instance, which is the usual route in tests.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class LookaheadPolicy(StrEnum):
    """What the story processor does when a satisfied, still-open expectation
    does not match, the following one does not match either and no default
    hook applies."""

    ADVANCE = "advance"  # skip the current expectation and retry
    STRICT = "strict"  # reject the invocation


class StoryMockSettings(BaseSettings):
    """Settings shared by every processor of a story."""

    model_config = SettingsConfigDict(env_prefix="STORYMOCK_", frozen=True)

    lookahead_policy: LookaheadPolicy = LookaheadPolicy.ADVANCE
    check_return_types: bool = True
    check_exception_integrity: bool = True
    trace_in_failures: bool = True


@lru_cache(maxsize=1)
def get_settings() -> StoryMockSettings:
    """Return the process-wide settings read from the environment."""
    return StoryMockSettings()
