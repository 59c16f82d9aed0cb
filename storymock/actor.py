"""Actors: logical flows of a story, each bound to one thread.

An actor holds a thread predicate, the scenario it follows and the stub sets
it uses.  Several actors may follow the same scenario object, in which case
they walk one shared expectation sequence.  Once a story runs, the first
thread matching the predicate is bound to the actor for good.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import TYPE_CHECKING

from storymock.threads import any_thread, equal_to

if TYPE_CHECKING:
    from collections.abc import Callable

    from storymock.exceptions import ExpectationError
    from storymock.scenario import Scenario, Stubs
    from storymock.threads import ThreadPredicate

log = logging.getLogger(__name__)

_uids = itertools.count()


class Actor:
    """One logical flow of a story.

    Use the ``for_*`` factories rather than the constructor.
    """

    __slots__ = ("_listeners", "_lock", "_thread", "last_error", "predicate", "scenario", "stubs", "uid")

    def __init__(self, predicate: ThreadPredicate) -> None:
        self.uid = next(_uids)
        self.predicate = predicate
        self.scenario: Scenario | None = None
        self.stubs: tuple[Stubs, ...] = ()
        self.last_error: BaseException | None = None
        self._thread: threading.Thread | None = None
        self._listeners: list[Callable[[Actor], None]] = []
        self._lock = threading.Lock()

    # ── factories ────────────────────────────────────────────────

    @classmethod
    def for_thread(cls, thread: threading.Thread) -> Actor:
        return cls(equal_to(thread))

    @classmethod
    def for_current_thread(cls) -> Actor:
        return cls.for_thread(threading.current_thread())

    @classmethod
    def for_thread_like(cls, predicate: ThreadPredicate) -> Actor:
        return cls(predicate)

    @classmethod
    def for_any_thread(cls) -> Actor:
        return cls(any_thread)

    # ── clauses ──────────────────────────────────────────────────

    def following(self, scenario: Scenario) -> Actor:
        """Follow *scenario*; re-wires a running story."""
        self.scenario = scenario
        self._notify()
        return self

    def using(self, *stubs: Stubs) -> Actor:
        """Use the stub sets *stubs*, replacing the previous ones."""
        self.stubs = tuple(stubs)
        self._notify()
        return self

    def add_listener(self, listener: Callable[[Actor], None]) -> None:
        with self._lock:
            self._listeners.append(listener)

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(self)

    # ── run-time state ───────────────────────────────────────────

    def bind(self, thread: threading.Thread) -> None:
        """Record that *thread* is the one this actor stands for."""
        with self._lock:
            self._thread = thread
        log.debug("%r bound to thread %s", self, thread.name)

    @property
    def thread(self) -> threading.Thread | None:
        with self._lock:
            return self._thread

    @property
    def is_present(self) -> bool:
        """Whether a thread was bound to this actor."""
        return self.thread is not None

    @property
    def is_alive(self) -> bool:
        thread = self.thread
        return thread is not None and thread.is_alive()

    def record_error(self, error: ExpectationError) -> None:
        with self._lock:
            self.last_error = error

    def assert_no_error(self) -> None:
        """Raise the last failure seen on this actor's thread, if any."""
        with self._lock:
            error = self.last_error
        if error is not None:
            raise error

    def __repr__(self) -> str:
        return f"Actor${self.uid}"
