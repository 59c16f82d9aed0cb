"""Stories: one verification run from ``begin()`` to ``end()``.

Typical use::

    scenario = Scenario()
    scenario.expect(geek).drinks_coffee()
    scenario.expect(geek).writes_code().will_return(10)

    with Story.create(scenario):
        geek_day(geek)

Multi-threaded stories give each thread an actor::

    story = Story.with_actors(
        Actor.for_thread(worker).following(work),
        Actor.for_current_thread().following(control),
    )

The first matching failure of the run, on whatever thread, is kept by the
story's failure guard and raised by ``end()``; every later ``end()`` of the
same run raises that same failure.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from storymock.actor import Actor
from storymock.config import StoryMockSettings, get_settings
from storymock.dispatch import StoryDispatcher
from storymock.exceptions import ExpectationError, IllegalClauseError
from storymock.guard import FailureGuard
from storymock.hooks import DEFAULT_HOOKS, DefaultHooks
from storymock.scenario import Scenario, Stubs
from storymock.tracking import StoryTrack

if TYPE_CHECKING:
    from types import TracebackType

log = logging.getLogger(__name__)


@dataclass(slots=True)
class StoryContext:
    """Story-wide collaborators handed to the dispatcher and processors."""

    settings: StoryMockSettings = field(default_factory=get_settings)
    guard: FailureGuard = field(default_factory=FailureGuard)
    track: StoryTrack = field(default_factory=StoryTrack)
    hooks: DefaultHooks = field(default=DEFAULT_HOOKS)


class Story:
    """A run over a set of actors.

    Use ``Story.create`` or ``Story.with_actors``.
    """

    def __init__(self, actors: list[Actor], settings: StoryMockSettings | None = None) -> None:
        if not actors:
            raise IllegalClauseError("story", "a story needs at least one actor")
        self.context = StoryContext(settings=settings if settings is not None else get_settings())
        self.default_actor = actors[0]
        self.actors = tuple(actors)
        self._dispatcher = StoryDispatcher(self.context, actors)
        self._lock = threading.Lock()
        self._state = "created"
        self._failure: ExpectationError | None = None

    @classmethod
    def create(
        cls,
        scenario: Scenario | None = None,
        *stubs: Stubs,
        settings: StoryMockSettings | None = None,
    ) -> Story:
        """Single-actor story bound to the current thread."""
        actor = Actor.for_current_thread().following(scenario if scenario is not None else Scenario())
        actor.using(*stubs)
        return cls([actor], settings)

    @classmethod
    def with_actors(cls, *actors: Actor, settings: StoryMockSettings | None = None) -> Story:
        """Multi-actor story.

        The first actor matching the current thread becomes the default
        actor; when none does, an actor with an empty scenario is created for
        the current thread.
        """
        current = threading.current_thread()
        default = next((actor for actor in actors if actor.predicate.is_compatible(current)), None)
        if default is None:
            default = Actor.for_current_thread()
        others = [actor for actor in actors if actor is not default]
        return cls([default, *others], settings)

    # ── lifecycle ────────────────────────────────────────────────

    def begin(self) -> None:
        """Rewind every scenario, enable the guard, link the mocks."""
        with self._lock:
            if self._state == "running":
                raise IllegalClauseError("begin", "the story is already running")
            self._state = "running"
            self._failure = None
            self._dispatcher.begin()
        log.debug("story began with %d actors", len(self.actors))

    def end(self) -> None:
        """Check the end of every scenario and unlink the mocks.

        Raises
        ------
        ExpectationError
            The first failure of the run.  Calling ``end()`` again raises
            the same failure.
        """
        with self._lock:
            if self._state == "created":
                raise IllegalClauseError("end", "the story did not begin")
            if self._state == "running":
                self._failure = self._dispatcher.end()
                self._state = "ended"
                log.debug("story ended%s", "" if self._failure is None else " with a failure")
            failure = self._failure
        if failure is not None:
            raise failure

    def __enter__(self) -> Story:
        self.begin()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc is None:
            self.end()
            return
        # the body's exception propagates; end() still unlinks every mock
        try:
            self.end()
        except ExpectationError as failure:
            if failure is not exc:
                log.warning("story failure superseded by %s: %s", type(exc).__name__, failure.reason)

    # ── live extension ───────────────────────────────────────────

    def append(self, specification: Scenario | Stubs, actor: Actor | None = None) -> None:
        """Extend the running story for *actor* (the default actor if omitted)."""
        target = actor if actor is not None else self.default_actor
        if isinstance(specification, Scenario):
            self._dispatcher.append_scenario(target, specification)
        elif isinstance(specification, Stubs):
            self._dispatcher.append_stubs(target, specification)
        else:
            raise TypeError(f"cannot append {type(specification).__name__!r} to a story")

    # ── diagnostics ──────────────────────────────────────────────

    def trace(self) -> str:
        """Which expectations were satisfied, how many times, by which thread."""
        return self.context.track.describe()

    @property
    def failure(self) -> ExpectationError | None:
        """Failure recorded so far in the current or last run."""
        with self._lock:
            if self._state == "ended":
                return self._failure
        return self.context.guard.failure

    @property
    def running(self) -> bool:
        with self._lock:
            return self._state == "running"

    def __repr__(self) -> str:
        return f"Story(actors={list(self.actors)!r}, state={self._state})"

