"""Unit tests for storymock.expectation and storymock.invocation results.

Test taxonomy:
    - Expectation defaults: exactly(1), neutral value of the return type
    - Result clauses and their validation against the method
    - Freezing once a story begins
    - ExpectationSequence cursor: advance, rewind, unwind, append
"""

from __future__ import annotations

import threading
from typing import Any

import pytest

from storymock.config import StoryMockSettings
from storymock.exceptions import (
    IllegalClauseError,
    IncompatibleReturnValueError,
    IncompatibleThrowableError,
)
from storymock.expectation import Expectation, ExpectationSequence
from storymock.invocation import Invocation, InvocationResult
from storymock.mock import mock_of, signature_of
from storymock.occurrences import at_least, exactly
from storymock.profile import InvocationProfile
from storymock.signature import raises


class Inventory:
    @raises(KeyError)
    def count(self, item: str) -> int: ...

    def items(self) -> list[str]: ...

    def describe(self) -> str | None: ...

    def restock(self, item: str, amount: int) -> None: ...


def expectation_for(mock: Any, method: str, *args: Any, settings: StoryMockSettings | None = None) -> Expectation:
    profile = InvocationProfile.from_call(mock, signature_of(mock, method), args, {})
    return Expectation(profile, settings=settings)


def call(mock: Any, method: str, *arguments: Any) -> Invocation:
    return Invocation(mock, signature_of(mock, method), arguments, threading.current_thread())


@pytest.fixture
def inventory() -> Any:
    return mock_of(Inventory, "inventory")


# ---------------------------------------------------------------------------
# Expectation
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_occurs_exactly_once(self, inventory) -> None:
        expectation = expectation_for(inventory, "count", "apple")
        assert expectation.occurrences == exactly(1)

    def test_neutral_results(self, inventory) -> None:
        assert expectation_for(inventory, "count", "apple").result() == 0
        assert expectation_for(inventory, "restock", "apple", 1).result() is None
        assert expectation_for(inventory, "describe").result() is None

    def test_container_defaults_are_fresh(self, inventory) -> None:
        expectation = expectation_for(inventory, "items")
        first = expectation.result()
        first.append("x")
        assert expectation.result() == []

    def test_repr(self, inventory) -> None:
        assert repr(expectation_for(inventory, "count", "apple")) == "inventory.count(str='apple')[1..1]"


class TestResultClauses:
    def test_will_return(self, inventory) -> None:
        expectation = expectation_for(inventory, "count", "apple").will_return(3)
        assert expectation.result() == 3

    def test_incompatible_return_rejected(self, inventory) -> None:
        with pytest.raises(IncompatibleReturnValueError):
            expectation_for(inventory, "count", "apple").will_return("three")

    def test_return_check_can_be_disabled(self, inventory) -> None:
        settings = StoryMockSettings(check_return_types=False)
        expectation = expectation_for(inventory, "count", "apple", settings=settings).will_return("three")
        assert expectation.result() == "three"

    def test_will_throw_declared_exception(self, inventory) -> None:
        expectation = expectation_for(inventory, "count", "pear").will_throw(KeyError("pear"))
        with pytest.raises(KeyError):
            expectation.result()

    def test_runtime_errors_always_allowed(self, inventory) -> None:
        expectation_for(inventory, "count", "pear").will_throw(RuntimeError("boom"))

    def test_undeclared_exception_rejected(self, inventory) -> None:
        with pytest.raises(IncompatibleThrowableError):
            expectation_for(inventory, "count", "pear").will_throw(ValueError("nope"))

    def test_undeclaring_method_may_raise_anything(self, inventory) -> None:
        expectation_for(inventory, "items").will_throw(ValueError("nope"))

    def test_non_exception_rejected(self, inventory) -> None:
        with pytest.raises(IncompatibleThrowableError):
            expectation_for(inventory, "items").will_throw("nope")  # type: ignore[arg-type]

    def test_integrity_check_can_be_disabled(self, inventory) -> None:
        settings = StoryMockSettings(check_exception_integrity=False)
        expectation_for(inventory, "count", "pear", settings=settings).will_throw(ValueError("ok"))

    def test_will_with_result_is_validated(self, inventory) -> None:
        with pytest.raises(IncompatibleReturnValueError):
            expectation_for(inventory, "count", "apple").will(InvocationResult.returns("x"))

    def test_will_with_callable_delegates(self, inventory) -> None:
        calls: list[int] = []

        def produce() -> int:
            calls.append(1)
            return len(calls)

        expectation = expectation_for(inventory, "count", "apple").will(produce)
        assert expectation.result() == 1
        assert expectation.result() == 2

    def test_non_callable_delegate_rejected(self, inventory) -> None:
        with pytest.raises(IllegalClauseError):
            expectation_for(inventory, "count", "apple").will_delegate_to(42)  # type: ignore[arg-type]


class TestOccursAndFreeze:
    def test_int_means_exactly(self, inventory) -> None:
        expectation = expectation_for(inventory, "items").occurs(3)
        assert expectation.occurrences == exactly(3)

    def test_scheme_kept(self, inventory) -> None:
        expectation = expectation_for(inventory, "items").occurs(at_least(2))
        assert expectation.occurrences == at_least(2)

    def test_non_scheme_rejected(self, inventory) -> None:
        with pytest.raises(IllegalClauseError):
            expectation_for(inventory, "items").occurs("twice")  # type: ignore[arg-type]

    def test_frozen_expectation_rejects_clauses(self, inventory) -> None:
        expectation = expectation_for(inventory, "count", "apple")
        expectation.freeze()
        assert expectation.is_frozen
        for clause in (
            lambda: expectation.occurs(2),
            lambda: expectation.will_return(1),
            lambda: expectation.will_throw(KeyError("x")),
            lambda: expectation.will_delegate_to(lambda: 1),
        ):
            with pytest.raises(IllegalClauseError):
                clause()

    def test_consume_counts(self, inventory) -> None:
        expectation = expectation_for(inventory, "count", "apple").occurs(2).will_return(5)
        assert expectation.matches(call(inventory, "count", "apple"))
        assert expectation.consume()() == 5
        assert not expectation.can_end_now()
        expectation.consume()
        assert expectation.can_end_now()
        assert expectation.has_reached_limit()


# ---------------------------------------------------------------------------
# ExpectationSequence
# ---------------------------------------------------------------------------


class TestSequence:
    def test_cursor_walk(self, inventory) -> None:
        first = expectation_for(inventory, "items")
        second = expectation_for(inventory, "describe")
        sequence = ExpectationSequence([first, second])
        assert sequence.current() is first
        assert sequence.peek_next() is second
        assert sequence.advance() is second
        assert sequence.peek_next() is None
        assert sequence.advance() is None
        assert sequence.advance() is None
        assert sequence.cursor == 2

    def test_advance_resets_the_new_current(self, inventory) -> None:
        first = expectation_for(inventory, "items")
        second = expectation_for(inventory, "describe")
        second.occurrences.increment()
        sequence = ExpectationSequence([first, second])
        sequence.advance()
        assert second.occurrences.count == 0

    def test_rewind_resets_everything(self, inventory) -> None:
        expectations = [expectation_for(inventory, "items") for _ in range(3)]
        sequence = ExpectationSequence(expectations)
        for expectation in expectations:
            expectation.occurrences.increment()
        sequence.unwind()
        assert sequence.current() is None
        sequence.rewind()
        assert sequence.cursor == 0
        assert all(e.occurrences.count == 0 for e in expectations)

    def test_append_past_the_end_becomes_current(self, inventory) -> None:
        sequence = ExpectationSequence([expectation_for(inventory, "items")])
        sequence.advance()
        late = expectation_for(inventory, "describe")
        late.occurrences.increment()
        sequence.append(late)
        assert sequence.current() is late
        assert late.occurrences.count == 0

    def test_append_before_the_end_waits(self, inventory) -> None:
        first = expectation_for(inventory, "items")
        sequence = ExpectationSequence([first])
        sequence.append(expectation_for(inventory, "describe"))
        assert sequence.current() is first
        assert len(sequence) == 2

    def test_freeze_freezes_all(self, inventory) -> None:
        sequence = ExpectationSequence([expectation_for(inventory, "items"), expectation_for(inventory, "describe")])
        sequence.freeze()
        assert all(e.is_frozen for e in sequence)

    def test_mocks_are_distinct(self, inventory) -> None:
        other = mock_of(Inventory)
        sequence = ExpectationSequence(
            [expectation_for(inventory, "items"), expectation_for(other, "items"), expectation_for(inventory, "describe")]
        )
        mocks = sequence.mocks()
        assert len(mocks) == 2
        assert mocks[0] is inventory
        assert mocks[1] is other
