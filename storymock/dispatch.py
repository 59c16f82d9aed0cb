"""Multi-actor dispatch of intercepted calls.

The ``StoryDispatcher`` is the ``CHECK`` handler of every mock of a running
story.  For each call it resolves the calling thread to an actor, then runs
that actor's stub processor and story processor.  Thread resolution and all
processor state changes happen under one dispatcher-wide lock; the result
provider returned by a processor runs after the lock is released.

Processors are cached so that actors share state the way they share
authoring objects: one story processor per scenario object, one stub
processor per tuple of stub sets.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from storymock.exceptions import ExpectationError, ThreadNotFoundError
from storymock.expectation import ExpectationSequence
from storymock.mock import HandlerKind, link, uid_of, unlink
from storymock.processor import InvocationProcessor, StoryProcessor
from storymock.stubs import StubProcessor

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from storymock.actor import Actor
    from storymock.invocation import Invocation, ResultProvider
    from storymock.mock import InvocationHandler
    from storymock.scenario import Scenario, Stubs
    from storymock.story import StoryContext
    from storymock.threads import ThreadPredicate

log = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Thread matching
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _Candidate(Generic[T]):
    predicate: ThreadPredicate
    data: T
    on_match: Callable[[threading.Thread], None] | None


class ThreadMatcher(Generic[T]):
    """Maps threads to registered data.

    A thread seen before gets the same data again.  A new thread is tested
    against the registered predicates in registration order; the first match
    is bound to the thread and removed from the candidates, so one predicate
    never claims two threads.
    """

    def __init__(self) -> None:
        self._candidates: list[_Candidate[T]] = []
        self._known: dict[threading.Thread, T] = {}
        self._lock = threading.Lock()

    def register(
        self,
        predicate: ThreadPredicate,
        data: T,
        on_match: Callable[[threading.Thread], None] | None = None,
    ) -> None:
        with self._lock:
            self._candidates.append(_Candidate(predicate, data, on_match))

    def resolve(self, thread: threading.Thread) -> T:
        """Data bound to *thread*, binding it on first sight.

        Raises
        ------
        ThreadNotFoundError
            If no remaining predicate matches *thread*.
        """
        with self._lock:
            if thread in self._known:
                return self._known[thread]
            for index, candidate in enumerate(self._candidates):
                if candidate.predicate.is_compatible(thread):
                    del self._candidates[index]
                    self._known[thread] = candidate.data
                    break
            else:
                raise ThreadNotFoundError(thread.name, thread.ident)
        if candidate.on_match is not None:
            candidate.on_match(thread)
        return candidate.data

    def __len__(self) -> int:
        with self._lock:
            return len(self._candidates)


# ---------------------------------------------------------------------------
# Mock linking
# ---------------------------------------------------------------------------


class MockLinker:
    """Installs one handler in the ``CHECK`` slot of a set of mocks."""

    __slots__ = ("_handler", "_mocks")

    def __init__(self, handler: InvocationHandler) -> None:
        self._handler = handler
        self._mocks: dict[int, Any] = {}

    def register(self, mocks: Iterable[Any]) -> None:
        for mock in mocks:
            self._mocks.setdefault(uid_of(mock), mock)

    def register_and_link(self, mock: Any) -> None:
        self._mocks.setdefault(uid_of(mock), mock)
        link(mock, HandlerKind.CHECK, self._handler)

    def link_all(self) -> None:
        for mock in self._mocks.values():
            link(mock, HandlerKind.CHECK, self._handler)

    def retain(self, mocks: Iterable[Any]) -> None:
        """Forget, and unlink, every registered mock not in *mocks*."""
        kept = {uid_of(mock) for mock in mocks}
        for uid in [uid for uid in self._mocks if uid not in kept]:
            unlink(self._mocks.pop(uid), HandlerKind.CHECK)

    def unlink_all(self) -> None:
        for mock in self._mocks.values():
            unlink(mock, HandlerKind.CHECK)

    def __len__(self) -> int:
        return len(self._mocks)


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class _Binding:
    """An actor and its current invocation processor."""

    __slots__ = ("actor", "processor")

    def __init__(self, actor: Actor, processor: InvocationProcessor) -> None:
        self.actor = actor
        self.processor = processor


class StoryDispatcher:
    """``CHECK`` handler routing calls to the processors of their actor.

    Parameters
    ----------
    context:
        Story-wide guard, track, hooks and settings.
    actors:
        The actors of the story, the default actor first.
    """

    def __init__(self, context: StoryContext, actors: Iterable[Actor]) -> None:
        self.context = context
        self._lock = threading.Lock()
        self._matcher: ThreadMatcher[_Binding] = ThreadMatcher()
        self._linker = MockLinker(self)
        self._story_processors: dict[Any, StoryProcessor] = {}
        self._stub_processors: dict[tuple[Any, ...], StubProcessor] = {}
        self._processors: list[StoryProcessor] = []
        self._bindings: dict[int, _Binding] = {}
        self._running = False
        for actor in actors:
            self._register(actor)

    # ── setup ────────────────────────────────────────────────────

    def _register(self, actor: Actor) -> None:
        binding = _Binding(actor, self._processor_for(actor))
        self._bindings[actor.uid] = binding
        self._matcher.register(actor.predicate, binding, actor.bind)
        actor.add_listener(self._on_actor_update)

    def _processor_for(self, actor: Actor) -> InvocationProcessor:
        return InvocationProcessor(
            self._stub_processor_for(actor.stubs),
            self._story_processor_for(actor.scenario),
        )

    def _stub_processor_for(self, stubs: tuple[Stubs, ...]) -> StubProcessor:
        processor = self._stub_processors.get(stubs)
        if processor is None:
            processor = StubProcessor(each.index for each in stubs)
            self._stub_processors[stubs] = processor
            self._adopt_mocks(processor.mocks())
        return processor

    def _story_processor_for(self, scenario: Scenario | None) -> StoryProcessor:
        processor = self._story_processors.get(scenario) if scenario is not None else None
        if processor is None:
            expectations = scenario.expectations if scenario is not None else ()
            processor = StoryProcessor(ExpectationSequence(expectations), self.context)
            if scenario is not None:
                self._story_processors[scenario] = processor
            self._processors.append(processor)
            self._adopt_mocks(processor.sequence.mocks())
            if self._running:
                processor.begin()
        return processor

    def _adopt_mocks(self, mocks: Iterable[Any]) -> None:
        if self._running:
            for mock in mocks:
                self._linker.register_and_link(mock)
        else:
            self._linker.register(mocks)

    def _on_actor_update(self, actor: Actor) -> None:
        with self._lock:
            binding = self._bindings.get(actor.uid)
            if binding is not None:
                binding.processor = self._processor_for(actor)
                self._drop_unused()
                log.debug("%r re-wired", actor)

    def _drop_unused(self) -> None:
        """Forget processors no actor uses any more, and their mocks."""
        stories = [binding.processor.story_processor for binding in self._bindings.values()]
        stubs = [binding.processor.stub_processor for binding in self._bindings.values()]

        def used(processor: Any, live: list[Any]) -> bool:
            return any(processor is each for each in live)

        self._processors = [p for p in self._processors if used(p, stories)]
        self._story_processors = {k: p for k, p in self._story_processors.items() if used(p, stories)}
        self._stub_processors = {k: p for k, p in self._stub_processors.items() if used(p, stubs)}
        mocks = [mock for p in stories for mock in p.sequence.mocks()]
        mocks.extend(mock for p in stubs for mock in p.mocks())
        self._linker.retain(mocks)

    # ── run time ─────────────────────────────────────────────────

    def invoke(self, invocation: Invocation) -> ResultProvider:
        """Resolve the calling actor and run its processors.

        Matching failures are recorded in the failure guard and on the
        actor before being raised on the calling thread.  Once the guard
        holds a failure, no actor's processors run any more: identity
        methods get their default hooks and every other call raises the
        recorded failure.

        Raises
        ------
        ThreadNotFoundError
            If the calling thread matches no actor.
        ExpectationError
            If the actor's processors reject the invocation, or if the story
            already failed.
        """
        with self._lock:
            binding = self._matcher.resolve(invocation.thread)
            try:
                if self.context.guard.failure is not None:
                    provider = self.context.hooks.try_invocation(invocation)
                    if provider is not None:
                        return provider
                    self.context.guard.raise_if_present()
                return binding.processor.invoke(invocation)
            except ExpectationError as error:
                self.context.guard.record(error)
                binding.actor.record_error(error)
                raise

    def begin(self) -> None:
        with self._lock:
            self.context.guard.enable()
            self.context.track.clear()
            for stub_processor in self._stub_processors.values():
                for index in stub_processor.indexes:
                    index.freeze()
            self._linker.link_all()
            for processor in self._processors:
                processor.begin()
            self._running = True
        log.debug("dispatcher began: %d mocks, %d story processors", len(self._linker), len(self._processors))

    def end(self) -> ExpectationError | None:
        """Check every story processor, unlink every mock.

        Returns the failure the guard kept (the first one recorded during
        the story, or the first end-of-story failure); ``None`` on success.
        """
        with self._lock:
            try:
                self._linker.unlink_all()
                for processor in self._processors:
                    try:
                        processor.end()
                    except ExpectationError as error:
                        self.context.guard.record(error)
                failure = self.context.guard.failure
            finally:
                self.context.guard.disable()
                self._running = False
        log.debug("dispatcher ended: %s", "failed" if failure is not None else "ok")
        return failure

    def append_scenario(self, actor: Actor, scenario: Scenario) -> None:
        """Append the expectations of *scenario* to the sequence of *actor*."""
        with self._lock:
            processor = self._binding_of(actor).processor.story_processor
            for expectation in scenario.expectations:
                processor.add_expectation(expectation)
                self._adopt_mocks([expectation.mock])
                log.debug("appended %r for %r", expectation, actor)

    def append_stubs(self, actor: Actor, stubs: Stubs) -> None:
        """Add the stubs of *stubs* to the stub processor of *actor*."""
        with self._lock:
            processor = self._binding_of(actor).processor.stub_processor
            for stub in stubs.index:
                stub.freeze()
                processor.add_stub(stub)
                self._adopt_mocks([stub.mock])
                log.debug("appended %r for %r", stub, actor)

    def _binding_of(self, actor: Actor) -> _Binding:
        try:
            return self._bindings[actor.uid]
        except KeyError:
            raise ValueError(f"{actor!r} does not take part in this story") from None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    def __repr__(self) -> str:
        return f"StoryDispatcher(actors={len(self._bindings)}, mocks={len(self._linker)})"

