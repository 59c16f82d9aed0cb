"""storymock: scenario-driven mocks for single- and multi-threaded code.

A *scenario* lists the calls a piece of code is expected to make on its
collaborators, in order, each with an occurrence scheme and a result.  A
*story* runs the code against mocks of those collaborators and checks, call
by call, that what happens fits the scenario.  *Stubs* answer calls that are
not part of the ordered script, and *actors* give every thread its own (or a
shared) scenario.
"""

from __future__ import annotations

from storymock.actor import Actor
from storymock.checkers import (
    ArrayChecker,
    Checker,
    ClassChecker,
    DelegateChecker,
    ExactChecker,
    a_non_null_of,
    any_of,
    checker_for,
)
from storymock.config import LookaheadPolicy, StoryMockSettings, get_settings
from storymock.exceptions import (
    CheckerCreationError,
    ConstructionError,
    EnvironmentFault,
    ExpectationError,
    IllegalClassDefinitionError,
    IllegalClauseError,
    IllegalOccurrencesError,
    IncoherentArgumentListError,
    IncompatibleReturnValueError,
    IncompatibleThrowableError,
    MissingInvocationError,
    MockCreationError,
    MockReferenceError,
    StoryMockError,
    ThreadNotFoundError,
    UnexpectedInvocationError,
    UnsatisfiedOccurrenceError,
)
from storymock.expectation import Expectation, ExpectationSequence
from storymock.invocation import Invocation, InvocationResult
from storymock.library import (
    RangeChecker,
    StringChecker,
    at_least_value,
    at_most_value,
    between_values,
    contains_string,
    equals_string,
    matches_pattern,
    negative_values,
    positive_values,
    satisfies,
)
from storymock.mock import describe, is_mock, mock_of
from storymock.occurrences import (
    Occurrences,
    any_times,
    at_least,
    at_most,
    between,
    exactly,
    never,
    once,
)
from storymock.scenario import Scenario, Stubs
from storymock.signature import MethodSignature, raises
from storymock.story import Story, StoryContext
from storymock.stubs import Stub, StubIndex
from storymock.threads import any_thread, equal_to, instances_of, threads_called

__all__ = [
    "Actor",
    "ArrayChecker",
    "Checker",
    "CheckerCreationError",
    "ClassChecker",
    "ConstructionError",
    "DelegateChecker",
    "EnvironmentFault",
    "ExactChecker",
    "Expectation",
    "ExpectationError",
    "ExpectationSequence",
    "IllegalClassDefinitionError",
    "IllegalClauseError",
    "IllegalOccurrencesError",
    "IncoherentArgumentListError",
    "IncompatibleReturnValueError",
    "IncompatibleThrowableError",
    "Invocation",
    "InvocationResult",
    "LookaheadPolicy",
    "MethodSignature",
    "MissingInvocationError",
    "MockCreationError",
    "MockReferenceError",
    "Occurrences",
    "RangeChecker",
    "Scenario",
    "Story",
    "StoryContext",
    "StoryMockError",
    "StoryMockSettings",
    "StringChecker",
    "Stub",
    "StubIndex",
    "Stubs",
    "ThreadNotFoundError",
    "UnexpectedInvocationError",
    "UnsatisfiedOccurrenceError",
    "a_non_null_of",
    "any_of",
    "any_thread",
    "any_times",
    "at_least",
    "at_least_value",
    "at_most",
    "at_most_value",
    "between",
    "between_values",
    "checker_for",
    "contains_string",
    "describe",
    "equal_to",
    "equals_string",
    "exactly",
    "get_settings",
    "instances_of",
    "is_mock",
    "matches_pattern",
    "mock_of",
    "negative_values",
    "never",
    "once",
    "positive_values",
    "raises",
    "satisfies",
    "threads_called",
]
