"""Unit tests for storymock.story.

Test taxonomy:
    - Lifecycle: create, begin, end, repeated end, restart
    - Context manager behaviour with and without a failing body
    - Live appends of scenarios and stubs
    - Trace and failure accessors
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import pytest

from storymock.actor import Actor
from storymock.checkers import any_of
from storymock.exceptions import (
    IllegalClauseError,
    UnexpectedInvocationError,
    UnsatisfiedOccurrenceError,
)
from storymock.mock import mock_of, state_of
from storymock.occurrences import at_least
from storymock.scenario import Scenario, Stubs
from storymock.story import Story
from storymock.threads import threads_called


class Printer:
    def prints(self, text: str) -> int: ...

    def status(self) -> str: ...


@pytest.fixture
def printer() -> Any:
    return mock_of(Printer, "printer")


class TestLifecycle:
    def test_successful_story(self, printer) -> None:
        scenario = Scenario()
        scenario.expect(printer).prints("hello").will_return(5)
        story = Story.create(scenario)
        story.begin()
        assert story.running
        assert printer.prints("hello") == 5
        story.end()
        assert not story.running
        assert story.failure is None

    def test_end_before_begin(self) -> None:
        with pytest.raises(IllegalClauseError):
            Story.create().end()

    def test_begin_twice(self) -> None:
        story = Story.create()
        story.begin()
        with pytest.raises(IllegalClauseError):
            story.begin()
        story.end()

    def test_repeated_end_raises_the_same_failure(self, printer) -> None:
        scenario = Scenario()
        scenario.expect(printer).prints("hello")
        story = Story.create(scenario)
        story.begin()
        with pytest.raises(UnsatisfiedOccurrenceError) as first:
            story.end()
        with pytest.raises(UnsatisfiedOccurrenceError) as second:
            story.end()
        assert first.value is second.value
        assert story.failure is first.value

    def test_failure_during_run_wins_over_end_failures(self, printer) -> None:
        scenario = Scenario()
        scenario.expect(printer).prints("hello")
        story = Story.create(scenario)
        story.begin()
        with pytest.raises(UnsatisfiedOccurrenceError) as during:
            printer.status()
        assert story.failure is during.value
        with pytest.raises(UnsatisfiedOccurrenceError) as at_end:
            story.end()
        assert at_end.value is during.value

    def test_mocks_unlinked_after_end(self, printer) -> None:
        scenario = Scenario()
        scenario.expect(printer).status().will_return("ok")
        with Story.create(scenario):
            assert printer.status() == "ok"
        assert state_of(printer).active() is None
        with pytest.raises(UnexpectedInvocationError):
            printer.status()

    def test_restart_rewinds(self, printer) -> None:
        scenario = Scenario()
        scenario.expect(printer).status().will_return("ok")
        story = Story.create(scenario)
        for _ in range(2):
            story.begin()
            assert printer.status() == "ok"
            story.end()

    def test_identity_methods_need_no_script(self, printer) -> None:
        with Story.create():
            assert printer == printer
            assert str(printer) == "printer"
            assert {printer: 1}[printer] == 1


class TestContextManager:
    def test_end_failure_raised_on_exit(self, printer) -> None:
        scenario = Scenario()
        scenario.expect(printer).prints("x")
        with pytest.raises(UnsatisfiedOccurrenceError):
            with Story.create(scenario):
                pass

    def test_body_exception_propagates(self, printer, caplog) -> None:
        scenario = Scenario()
        scenario.expect(printer).prints("x")
        with caplog.at_level(logging.WARNING, logger="storymock.story"):
            with pytest.raises(KeyError):
                with Story.create(scenario):
                    raise KeyError("body")
        assert "superseded by KeyError" in caplog.text
        assert state_of(printer).active() is None

    def test_story_failure_raised_in_body_propagates_once(self, printer, caplog) -> None:
        scenario = Scenario()
        scenario.expect(printer).status()
        with pytest.raises(UnsatisfiedOccurrenceError):
            with Story.create(scenario):
                printer.prints("x")
        assert "superseded" not in caplog.text


class TestAppend:
    def test_append_scenario_while_running(self, printer) -> None:
        first = Scenario()
        first.expect(printer).status().will_return("idle")
        story = Story.create(first)
        story.begin()
        assert printer.status() == "idle"
        more = Scenario()
        more.expect(printer).prints("late").will_return(4)
        story.append(more)
        assert printer.prints("late") == 4
        story.end()

    def test_append_stubs_while_running(self, printer) -> None:
        story = Story.create()
        story.begin()
        stubs = Stubs()
        stubs.stub(printer).prints(any_of(str)).will_return(1)
        story.append(stubs)
        assert printer.prints("a") == 1
        assert printer.prints("b") == 1
        story.end()

    def test_append_rejects_other_types(self) -> None:
        story = Story.create()
        with pytest.raises(TypeError):
            story.append("scenario")  # type: ignore[arg-type]


class TestWithActors:
    def test_current_thread_actor_is_default(self) -> None:
        worker = Actor.for_thread_like(threads_called("worker"))
        main = Actor.for_current_thread()
        story = Story.with_actors(worker, main)
        assert story.default_actor is main
        assert story.actors == (main, worker)

    def test_default_actor_created_when_missing(self) -> None:
        worker = Actor.for_thread_like(threads_called("worker"))
        story = Story.with_actors(worker)
        assert story.default_actor is not worker
        assert story.default_actor.predicate.is_compatible(threading.current_thread())


class TestTrace:
    def test_trace_after_run(self, printer) -> None:
        scenario = Scenario()
        scenario.expect(printer).prints(any_of(str)).occurs(at_least(1))
        with Story.create(scenario) as story:
            printer.prints("a")
            printer.prints("b")
        trace = story.trace()
        assert trace.startswith("what happened up to now:\n")
        assert "satisfied 2 times: printer.prints(str=<ANY>)[1..*]" in trace

    def test_repr(self) -> None:
        story = Story.create()
        assert "state=created" in repr(story)
