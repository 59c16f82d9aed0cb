"""Story processor: the expectation-matching state machine.

The state is the cursor of an ``ExpectationSequence`` plus the occurrence
counter of each expectation.  For each invocation the processor looks at the
current expectation ``cur``:

1. no ``cur`` (cursor past the end): a default hook, or
   ``UnexpectedInvocationError``;
2. ``cur`` matches and reached its limit: advance, retry;
3. ``cur`` matches: count the match, return its result;
4. ``cur`` does not match and needs more matches: a default hook, or
   ``UnsatisfiedOccurrenceError`` naming ``cur``;
5. ``cur`` does not match, is satisfied and reached its limit: advance,
   retry;
6. ``cur`` does not match, is satisfied and could take more: advance when
   the next expectation matches; otherwise a default hook; otherwise apply
   the lookahead policy (``ADVANCE`` moves on and retries, ``STRICT`` raises
   ``UnexpectedInvocationError``).

Retries never consume the invocation.  A failure unwinds the sequence, so
the processor rejects everything else until the story ends.

Processors are not thread-safe; the story dispatcher serializes every call.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NoReturn

from storymock.config import LookaheadPolicy
from storymock.exceptions import (
    ExpectationError,
    UnexpectedInvocationError,
    UnsatisfiedOccurrenceError,
)
from storymock.tracking import StoryTracker

if TYPE_CHECKING:
    from storymock.expectation import Expectation, ExpectationSequence
    from storymock.invocation import Invocation, ResultProvider
    from storymock.story import StoryContext
    from storymock.stubs import StubProcessor

__all__ = ["InvocationProcessor", "LookaheadPolicy", "StoryProcessor"]

log = logging.getLogger(__name__)


class StoryProcessor:
    """Walks one expectation sequence as invocations arrive.

    Parameters
    ----------
    sequence:
        The expectations to walk.  Several actors may share one processor,
        hence one cursor.
    context:
        Story-wide hooks, track and settings.
    """

    __slots__ = ("context", "sequence", "tracker")

    def __init__(self, sequence: ExpectationSequence, context: StoryContext) -> None:
        self.sequence = sequence
        self.context = context
        self.tracker = StoryTracker()

    # ── lifecycle ────────────────────────────────────────────────

    def begin(self) -> None:
        """Rewind the sequence and freeze its expectations."""
        self.tracker.clear()
        self.context.track.register(self.tracker)
        self.sequence.rewind()
        self.sequence.freeze()
        current = self.sequence.current()
        if current is not None:
            self.tracker.add_report(current)
        log.debug("story processor begins with %d expectations", len(self.sequence))

    def end(self) -> None:
        """Check that every remaining expectation can end now.

        The sequence is unwound whatever the outcome.

        Raises
        ------
        UnsatisfiedOccurrenceError
            For the first remaining expectation that needs more matches.
        """
        try:
            current = self.sequence.current()
            while current is not None:
                if not current.can_end_now():
                    log.debug("%r cannot end now", current)
                    raise UnsatisfiedOccurrenceError(repr(current), self._trace())
                current = self._advance()
        finally:
            self.sequence.unwind()

    def add_expectation(self, expectation: Expectation) -> None:
        """Append *expectation* to the running sequence."""
        expectation.freeze()
        self.sequence.append(expectation)
        if self.sequence.current() is expectation:
            self.tracker.add_report(expectation)

    # ── matching ─────────────────────────────────────────────────

    def invoke(self, invocation: Invocation) -> ResultProvider:
        """Return the result provider for *invocation* or raise.

        Raises
        ------
        UnexpectedInvocationError
            Nothing in the sequence (nor a default hook) explains the call.
        UnsatisfiedOccurrenceError
            The current expectation needs more matches and the call is not
            one of them.
        """
        hooks = self.context.hooks
        while True:
            current = self.sequence.current()
            if current is None:
                provider = hooks.try_invocation(invocation)
                if provider is not None:
                    log.debug("%s handled by a default hook past the end", invocation)
                    return provider
                self._fail(UnexpectedInvocationError(str(invocation), self._trace()))

            if current.matches(invocation):
                if current.has_reached_limit():
                    log.debug("%r reached its limit, trying the next one", current)
                    self._advance()
                    continue
                provider = current.consume()
                report = self.tracker.current_report()
                if report is not None:
                    report.record(invocation.thread)
                log.debug("%s matched %r", invocation, current)
                return provider

            if not current.can_end_now():
                provider = hooks.try_invocation(invocation)
                if provider is not None:
                    log.debug("%s handled by a default hook", invocation)
                    return provider
                self._fail(UnsatisfiedOccurrenceError(repr(current), self._trace()))

            if current.has_reached_limit():
                self._advance()
                continue

            following = self.sequence.peek_next()
            if following is not None and following.matches(invocation):
                log.debug("%s matches the expectation after %r, moving on", invocation, current)
                self._advance()
                continue

            provider = hooks.try_invocation(invocation)
            if provider is not None:
                log.debug("%s handled by a default hook", invocation)
                return provider
            if self.context.settings.lookahead_policy is LookaheadPolicy.STRICT:
                self._fail(UnexpectedInvocationError(str(invocation), self._trace()))
            log.debug("%s matches neither %r nor its successor, moving on", invocation, current)
            self._advance()

    # ── helpers ──────────────────────────────────────────────────

    def _advance(self) -> Expectation | None:
        current = self.sequence.advance()
        if current is not None:
            self.tracker.add_report(current)
        return current

    def _trace(self) -> str:
        if not self.context.settings.trace_in_failures:
            return ""
        return self.context.track.describe()

    def _fail(self, error: ExpectationError) -> NoReturn:
        self.sequence.unwind()
        raise error


class InvocationProcessor:
    """Stub processor first, story processor when no stub applies."""

    __slots__ = ("story_processor", "stub_processor")

    def __init__(self, stub_processor: StubProcessor, story_processor: StoryProcessor) -> None:
        self.stub_processor = stub_processor
        self.story_processor = story_processor

    def invoke(self, invocation: Invocation) -> ResultProvider:
        provider = self.stub_processor.try_resolve(invocation)
        if provider is not None:
            return provider
        return self.story_processor.invoke(invocation)
