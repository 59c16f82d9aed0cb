"""Unit tests for storymock.stubs.

Test taxonomy:
    - StubIndex: grouping, newest-first lookup, iteration order
    - StubProcessor: most recent match across indexes, appended stubs
    - Stub clauses and freezing
"""

from __future__ import annotations

import threading
from typing import Any

import pytest

from storymock.checkers import any_of
from storymock.exceptions import IllegalClauseError
from storymock.invocation import Invocation
from storymock.mock import mock_of, signature_of
from storymock.profile import InvocationProfile
from storymock.stubs import Stub, StubIndex, StubProcessor


class Weather:
    def temperature(self, city: str) -> float: ...

    def is_raining(self) -> bool: ...


def stub_for(mock: Any, method: str, *args: Any) -> Stub:
    return Stub(InvocationProfile.from_call(mock, signature_of(mock, method), args, {}))


def call(mock: Any, method: str, *arguments: Any) -> Invocation:
    return Invocation(mock, signature_of(mock, method), arguments, threading.current_thread())


@pytest.fixture
def weather() -> Any:
    return mock_of(Weather, "weather")


class TestStubIndex:
    def test_lookup_by_mock_and_method(self, weather) -> None:
        rain = stub_for(weather, "is_raining").will_return(True)
        index = StubIndex([rain])
        assert index.lookup(call(weather, "is_raining")) is rain
        assert index.lookup(call(weather, "temperature", "Oslo")) is None
        assert index.lookup(call(mock_of(Weather), "is_raining")) is None

    def test_newest_matching_stub_wins(self, weather) -> None:
        general = stub_for(weather, "temperature", any_of(str)).will_return(20.0)
        specific = stub_for(weather, "temperature", "Oslo").will_return(-3.0)
        newest = stub_for(weather, "temperature", any_of(str)).will_return(25.0)
        index = StubIndex([general, specific])
        assert index.lookup(call(weather, "temperature", "Oslo")) is specific
        assert index.lookup(call(weather, "temperature", "Rome")) is general
        index.add(newest)
        assert index.lookup(call(weather, "temperature", "Oslo")) is newest

    def test_iteration_in_registration_order(self, weather) -> None:
        first = stub_for(weather, "temperature", "Oslo")
        second = stub_for(weather, "is_raining")
        third = stub_for(weather, "temperature", "Rome")
        index = StubIndex([third, first, second])
        assert list(index) == [first, second, third]
        assert len(index) == 3

    def test_mocks(self, weather) -> None:
        index = StubIndex([stub_for(weather, "is_raining"), stub_for(weather, "temperature", "Oslo")])
        (mock,) = index.mocks()
        assert mock is weather

    def test_freeze(self, weather) -> None:
        stub = stub_for(weather, "is_raining")
        StubIndex([stub]).freeze()
        assert stub.is_frozen
        with pytest.raises(IllegalClauseError):
            stub.will_return(True)


class TestStubProcessor:
    def test_no_match_is_not_an_error(self, weather) -> None:
        processor = StubProcessor([StubIndex()])
        assert processor.try_resolve(call(weather, "is_raining")) is None

    def test_most_recent_across_indexes(self, weather) -> None:
        old = stub_for(weather, "temperature", any_of(str)).will_return(1.0)
        recent = stub_for(weather, "temperature", any_of(str)).will_return(2.0)
        processor = StubProcessor([StubIndex([recent]), StubIndex([old])])
        provider = processor.try_resolve(call(weather, "temperature", "Oslo"))
        assert provider is not None
        assert provider() == 2.0

    def test_appended_stub_takes_over(self, weather) -> None:
        processor = StubProcessor([StubIndex([stub_for(weather, "is_raining").will_return(False)])])
        processor.add_stub(stub_for(weather, "is_raining").will_return(True))
        provider = processor.try_resolve(call(weather, "is_raining"))
        assert provider is not None
        assert provider() is True

    def test_mocks_across_indexes(self, weather) -> None:
        other = mock_of(Weather)
        processor = StubProcessor([StubIndex([stub_for(weather, "is_raining")]), StubIndex([stub_for(other, "is_raining")])])
        assert {id(m) for m in processor.mocks()} == {id(weather), id(other)}

    def test_repr(self, weather) -> None:
        assert repr(stub_for(weather, "is_raining")) == "stub weather.is_raining()"
