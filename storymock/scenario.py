"""Authoring surface: scenarios and stub sets.

A specification is written by calling the mock itself::

    scenario = Scenario()
    scenario.expect(geek).drinks_coffee()
    scenario.expect(geek).writes_code().will_return(10)

    stubs = Stubs()
    stubs.stub(geek).is_hungry().will_return(False)

``expect(mock)`` / ``stub(mock)`` install a capture handler on the mock and
hand the mock back; the next call made on it is recorded as a profile and
returns the new ``Expectation`` / ``Stub`` handle, ready for its clauses.
Arguments that are checkers stay checkers; other values are compared for
equality.  ``arguments=[...]`` gives every argument explicitly instead, in
which case the values passed to the captured call are ignored.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from storymock.checkers import checker_for
from storymock.config import get_settings
from storymock.exceptions import IllegalClauseError, MissingInvocationError
from storymock.expectation import Expectation
from storymock.mock import HandlerKind, describe, link, state_of, unlink
from storymock.profile import InvocationProfile
from storymock.stubs import Stub, StubIndex

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    from storymock.config import StoryMockSettings
    from storymock.invocation import Invocation, InvocationResult, ResultProvider
    from storymock.occurrences import Occurrences

log = logging.getLogger(__name__)


class _Capture:
    """One-shot ``CAPTURE`` handler turning the next call into a handle."""

    __slots__ = ("arguments", "build", "mock", "owner")

    def __init__(
        self,
        owner: _Specification,
        mock: Any,
        build: Callable[[InvocationProfile], Any],
        arguments: Sequence[Any] | None,
    ) -> None:
        self.owner = owner
        self.mock = mock
        self.build = build
        self.arguments = arguments

    def invoke(self, invocation: Invocation) -> ResultProvider:
        unlink(self.mock, HandlerKind.CAPTURE)
        self.owner._pending = None
        if self.arguments is None:
            checkers = [checker_for(value) for value in invocation.arguments]
            profile = InvocationProfile(self.mock, invocation.signature, checkers)
        else:
            profile = InvocationProfile.from_checkers(self.mock, invocation.signature, self.arguments)
        handle = self.build(profile)
        log.debug("captured %r", handle)
        return lambda: handle


class _Specification:
    """Capture bookkeeping shared by ``Scenario`` and ``Stubs``."""

    __slots__ = ("_pending", "settings")

    def __init__(self, settings: StoryMockSettings | None) -> None:
        self.settings = settings if settings is not None else get_settings()
        self._pending: _Capture | None = None

    def _capture(self, mock: Any, build: Callable[[InvocationProfile], Any], arguments: Sequence[Any] | None) -> Any:
        state_of(mock)
        self._check_complete()
        capture = _Capture(self, mock, build, arguments)
        self._pending = capture
        link(mock, HandlerKind.CAPTURE, capture)
        return mock

    def _check_complete(self) -> None:
        """Raise if the previous ``expect``/``stub`` never saw its call."""
        pending = self._pending
        if pending is not None:
            self._pending = None
            unlink(pending.mock, HandlerKind.CAPTURE)
            raise MissingInvocationError(describe(pending.mock))


class Scenario(_Specification):
    """Ordered expectations, each with an occurrence scheme and a result.

    Scenario-level clauses (``occurs``, ``will_return``...) apply to the
    last expectation.  Actors following the same scenario share one cursor.
    """

    __slots__ = ("_expectations",)

    def __init__(self, settings: StoryMockSettings | None = None) -> None:
        super().__init__(settings)
        self._expectations: list[Expectation] = []

    def expect(self, mock: Any, *, arguments: Sequence[Any] | None = None) -> Any:
        """Record the next call made on *mock* as a new expectation.

        Raises
        ------
        MockReferenceError
            If *mock* is not a mock.
        MissingInvocationError
            If the previous ``expect`` was never followed by a call.
        """
        return self._capture(mock, self._add, arguments)

    def _add(self, profile: InvocationProfile) -> Expectation:
        expectation = Expectation(profile, settings=self.settings)
        self._expectations.append(expectation)
        return expectation

    @property
    def expectations(self) -> tuple[Expectation, ...]:
        self._check_complete()
        return tuple(self._expectations)

    def last(self) -> Expectation:
        self._check_complete()
        if not self._expectations:
            raise IllegalClauseError("last", "the scenario has no expectation yet")
        return self._expectations[-1]

    def occurs(self, occurrences: Occurrences | int) -> Scenario:
        self.last().occurs(occurrences)
        return self

    def will_return(self, value: Any) -> Scenario:
        self.last().will_return(value)
        return self

    def will_throw(self, exception: BaseException) -> Scenario:
        self.last().will_throw(exception)
        return self

    def will(self, result: InvocationResult | Callable[[], Any]) -> Scenario:
        self.last().will(result)
        return self

    def will_delegate_to(self, delegate: Callable[[], Any]) -> Scenario:
        self.last().will_delegate_to(delegate)
        return self

    def __len__(self) -> int:
        return len(self._expectations)

    def __iter__(self) -> Iterator[Expectation]:
        return iter(self.expectations)

    def __repr__(self) -> str:
        return f"Scenario({len(self._expectations)} expectations)"


class Stubs(_Specification):
    """Unordered canned answers; the most recent matching stub wins."""

    __slots__ = ("_index",)

    def __init__(self, settings: StoryMockSettings | None = None) -> None:
        super().__init__(settings)
        self._index = StubIndex()

    def stub(self, mock: Any, *, arguments: Sequence[Any] | None = None) -> Any:
        """Record the next call made on *mock* as a new stub.

        Raises
        ------
        MockReferenceError
            If *mock* is not a mock.
        MissingInvocationError
            If the previous ``stub`` was never followed by a call.
        """
        return self._capture(mock, self._add, arguments)

    def _add(self, profile: InvocationProfile) -> Stub:
        stub = Stub(profile, settings=self.settings)
        self._index.add(stub)
        return stub

    @property
    def index(self) -> StubIndex:
        self._check_complete()
        return self._index

    def __len__(self) -> int:
        return len(self._index)

    def __iter__(self) -> Iterator[Stub]:
        return iter(self.index)

    def __repr__(self) -> str:
        return f"Stubs({len(self._index)} stubs)"
