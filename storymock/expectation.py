"""Expectations and the ordered sequence a story processor walks.

An ``Expectation`` is an invocation profile, an occurrence scheme and a result
provider.  Its clauses can be changed until the story that runs it begins;
from then on only its occurrence counter moves.

An ``ExpectationSequence`` is a list of expectations plus a cursor.  The
cursor only moves forward, except for ``rewind()`` at story begin, and new
expectations can be appended at the tail while a story runs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from storymock.config import get_settings
from storymock.exceptions import IllegalClauseError
from storymock.invocation import InvocationResult
from storymock.mock import describe, uid_of
from storymock.occurrences import Occurrences, exactly

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from storymock.config import StoryMockSettings
    from storymock.invocation import Invocation, ResultProvider
    from storymock.profile import InvocationProfile

log = logging.getLogger(__name__)


class ResultClauses:
    """Result clauses shared by expectations and stubs.

    Subclasses provide ``profile``, ``result`` and ``settings``, and start
    unfrozen.  Once frozen, every clause raises ``IllegalClauseError``.
    """

    __slots__ = ("_frozen",)

    profile: InvocationProfile
    result: ResultProvider
    settings: StoryMockSettings

    def _check_mutable(self, clause: str) -> None:
        if self._frozen:
            raise IllegalClauseError(clause, f"{self!r} belongs to a story that already began")

    def freeze(self) -> None:
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def will_return(self, value: Any) -> Any:
        """Return *value* when matched.

        Raises
        ------
        IncompatibleReturnValueError
            If *value* does not fit the declared return type.
        """
        self._check_mutable("will_return")
        self.result = InvocationResult.returns(value).validate(self.profile.signature, self.settings)
        return self

    def will_throw(self, exception: BaseException) -> Any:
        """Raise *exception* when matched.

        Raises
        ------
        IncompatibleThrowableError
            If *exception* is not an exception instance or is not declared
            by the method.
        """
        self._check_mutable("will_throw")
        self.result = InvocationResult.raises(exception).validate(self.profile.signature, self.settings)
        return self

    def will(self, result: InvocationResult | Callable[[], Any]) -> Any:
        """Use *result* as the result provider.

        ``InvocationResult`` instances are validated like ``will_return`` and
        ``will_throw``; any other zero-argument callable is a delegate.
        """
        if isinstance(result, InvocationResult):
            self._check_mutable("will")
            self.result = result.validate(self.profile.signature, self.settings)
            return self
        return self.will_delegate_to(result)

    def will_delegate_to(self, delegate: Callable[[], Any]) -> Any:
        """Call *delegate* to produce the result when matched.

        The delegate runs on the calling thread once the dispatch lock is
        released; it may return a value or raise.
        """
        self._check_mutable("will_delegate_to")
        if not callable(delegate):
            raise IllegalClauseError("will_delegate_to", f"{delegate!r} is not callable")
        self.result = delegate
        return self


class Expectation(ResultClauses):
    """One step of a scenario.

    The default occurrence scheme is ``exactly(1)``; the default result is
    the neutral value of the declared return type.
    """

    __slots__ = ("occurrences", "profile", "result", "settings")

    def __init__(
        self,
        profile: InvocationProfile,
        occurrences: Occurrences | None = None,
        settings: StoryMockSettings | None = None,
    ) -> None:
        self.profile = profile
        self.occurrences = occurrences if occurrences is not None else exactly(1)
        self.settings = settings if settings is not None else get_settings()
        self.result: ResultProvider = InvocationResult.default_for(profile.signature.return_type)
        self._frozen = False

    def occurs(self, occurrences: Occurrences | int) -> Expectation:
        """Set the occurrence scheme; an ``int`` means ``exactly(n)``."""
        self._check_mutable("occurs")
        if isinstance(occurrences, int):
            occurrences = exactly(occurrences)
        if not isinstance(occurrences, Occurrences):
            raise IllegalClauseError("occurs", f"{occurrences!r} is not an occurrence scheme")
        self.occurrences = occurrences
        return self

    @property
    def mock(self) -> Any:
        return self.profile.mock

    def matches(self, invocation: Invocation) -> bool:
        return self.profile.matches(invocation)

    def can_end_now(self) -> bool:
        return self.occurrences.can_end_now()

    def has_reached_limit(self) -> bool:
        return self.occurrences.has_reached_limit()

    def consume(self) -> ResultProvider:
        """Count one more match and return the result provider."""
        self.occurrences.increment()
        return self.result

    def __repr__(self) -> str:
        return f"{self.profile}{self.occurrences}"


class ExpectationSequence:
    """Ordered expectations with a forward-only cursor."""

    __slots__ = ("_cursor", "_expectations")

    def __init__(self, expectations: Iterable[Expectation] = ()) -> None:
        self._expectations: list[Expectation] = list(expectations)
        self._cursor = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    def current(self) -> Expectation | None:
        """The expectation at the cursor, ``None`` once past the end."""
        if self._cursor < len(self._expectations):
            return self._expectations[self._cursor]
        return None

    def peek_next(self) -> Expectation | None:
        """The expectation following the current one, cursor unchanged."""
        index = self._cursor + 1
        if index < len(self._expectations):
            return self._expectations[index]
        return None

    def advance(self) -> Expectation | None:
        """Move to the next expectation and reset its counter."""
        if self._cursor < len(self._expectations):
            self._cursor += 1
        current = self.current()
        if current is not None:
            current.occurrences.reset()
        return current

    def rewind(self) -> None:
        """Back to the first expectation, every counter at zero."""
        self._cursor = 0
        for expectation in self._expectations:
            expectation.occurrences.reset()

    def unwind(self) -> None:
        """Move the cursor past the last expectation."""
        self._cursor = len(self._expectations)

    def append(self, expectation: Expectation) -> None:
        """Add *expectation* at the tail, wherever the cursor is."""
        self._expectations.append(expectation)
        if self._cursor == len(self._expectations) - 1:
            expectation.occurrences.reset()
        log.debug("appended %r at position %d", expectation, len(self._expectations) - 1)

    def freeze(self) -> None:
        for expectation in self._expectations:
            expectation.freeze()

    def mocks(self) -> list[Any]:
        """Distinct mocks referenced by the sequence, first use first."""
        seen: dict[int, Any] = {}
        for expectation in self._expectations:
            seen.setdefault(uid_of(expectation.mock), expectation.mock)
        return list(seen.values())

    def __len__(self) -> int:
        return len(self._expectations)

    def __iter__(self) -> Iterator[Expectation]:
        return iter(list(self._expectations))

    def __getitem__(self, index: int) -> Expectation:
        return self._expectations[index]

    def __repr__(self) -> str:
        current = self.current()
        where = describe(None) if current is None else repr(current)
        return f"ExpectationSequence(size={len(self)}, cursor={self._cursor}, current={where})"
