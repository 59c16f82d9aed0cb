"""Unit tests for storymock.profile.

Test taxonomy:
    - Profiles built from captured calls
    - Profiles built from explicit checker lists, variadic tails included
    - Matching fails closed on mock, method and arity
"""

from __future__ import annotations

import threading
from typing import Any

import pytest

from storymock.checkers import ArrayChecker, ExactChecker, any_of
from storymock.exceptions import IncoherentArgumentListError
from storymock.invocation import Invocation
from storymock.mock import mock_of, signature_of
from storymock.profile import InvocationProfile


class Plotter:
    def move(self, x: int, y: int, z: int | None) -> None: ...

    def draw(self, pen: str, *points: int) -> int: ...

    def reset(self) -> None: ...


def call(mock: Any, method: str, *arguments: Any) -> Invocation:
    return Invocation(
        mock=mock,
        signature=signature_of(mock, method),
        arguments=arguments,
        thread=threading.current_thread(),
    )


@pytest.fixture
def plotter() -> Any:
    return mock_of(Plotter, "plotter")


class TestFromCall:
    def test_values_become_exact_checkers(self, plotter) -> None:
        profile = InvocationProfile.from_call(plotter, signature_of(plotter, "move"), (1, 2), {"z": 3})
        assert all(isinstance(c, ExactChecker) for c in profile.checkers)
        assert profile.matches(call(plotter, "move", 1, 2, 3))
        assert not profile.matches(call(plotter, "move", 1, 2, 4))

    def test_checkers_are_kept(self, plotter) -> None:
        wildcard = any_of(int)
        profile = InvocationProfile.from_call(plotter, signature_of(plotter, "move"), (wildcard, 2, None), {})
        assert profile.checkers[0] is wildcard
        assert profile.matches(call(plotter, "move", 99, 2, None))

    def test_variadic_tail_is_a_sequence(self, plotter) -> None:
        profile = InvocationProfile.from_call(plotter, signature_of(plotter, "draw"), ("red", 1, 2), {})
        assert isinstance(profile.checkers[1], ArrayChecker)
        assert profile.matches(call(plotter, "draw", "red", (1, 2)))
        assert not profile.matches(call(plotter, "draw", "red", (1,)))

    def test_unbindable_call_rejected(self, plotter) -> None:
        with pytest.raises(IncoherentArgumentListError) as info:
            InvocationProfile.from_call(plotter, signature_of(plotter, "move"), (1,), {})
        assert info.value.method == "move"

    def test_checker_count_must_equal_arity(self, plotter) -> None:
        with pytest.raises(IncoherentArgumentListError):
            InvocationProfile(plotter, signature_of(plotter, "move"), [ExactChecker(1)])


class TestFromCheckers:
    def test_every_position_required(self, plotter) -> None:
        signature = signature_of(plotter, "move")
        with pytest.raises(IncoherentArgumentListError):
            InvocationProfile.from_checkers(plotter, signature, [1, 2])

    def test_surplus_rejected_without_variadic_tail(self, plotter) -> None:
        signature = signature_of(plotter, "move")
        with pytest.raises(IncoherentArgumentListError):
            InvocationProfile.from_checkers(plotter, signature, [1, 2, 3, 4])

    def test_three_positions_accepted(self, plotter) -> None:
        profile = InvocationProfile.from_checkers(plotter, signature_of(plotter, "move"), [1, 2, any_of(int)])
        assert profile.matches(call(plotter, "move", 1, 2, 7))
        assert profile.matches(call(plotter, "move", 1, 2, None))
        assert not profile.matches(call(plotter, "move", 1, 3, None))

    def test_surplus_packed_into_variadic_tail(self, plotter) -> None:
        profile = InvocationProfile.from_checkers(plotter, signature_of(plotter, "draw"), ["red", 1, any_of(int)])
        assert len(profile.checkers) == 2
        assert profile.matches(call(plotter, "draw", "red", (1, 5)))
        assert not profile.matches(call(plotter, "draw", "red", (1,)))

    def test_single_tail_checker_describes_the_whole_tail(self, plotter) -> None:
        profile = InvocationProfile.from_checkers(plotter, signature_of(plotter, "draw"), ["red", any_of(tuple)])
        assert profile.matches(call(plotter, "draw", "red", ()))
        assert profile.matches(call(plotter, "draw", "red", (1, 2, 3)))

    def test_no_parameters(self, plotter) -> None:
        profile = InvocationProfile.from_checkers(plotter, signature_of(plotter, "reset"), [])
        assert profile.checkers == ()
        assert profile.matches(call(plotter, "reset"))


class TestMatching:
    def test_other_mock_never_matches(self, plotter) -> None:
        other = mock_of(Plotter)
        profile = InvocationProfile.from_call(plotter, signature_of(plotter, "reset"), (), {})
        assert not profile.matches(call(other, "reset"))

    def test_other_method_never_matches(self, plotter) -> None:
        profile = InvocationProfile.from_call(plotter, signature_of(plotter, "reset"), (), {})
        assert not profile.matches(call(plotter, "move", 1, 2, 3))

    def test_arity_mismatch_never_matches(self, plotter) -> None:
        profile = InvocationProfile.from_checkers(
            plotter, signature_of(plotter, "move"), [any_of(int), any_of(int), any_of(int)]
        )
        assert not profile.matches(call(plotter, "move", 1, 2))

    def test_repr(self, plotter) -> None:
        profile = InvocationProfile.from_call(plotter, signature_of(plotter, "move"), (1, 2, None), {})
        assert repr(profile) == "plotter.move(int=1, int=2, object=None)"
