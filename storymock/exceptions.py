"""storymock exception hierarchy.

Three families of errors:

- **Construction errors** (``ConstructionError``) are raised while a scenario
  or a stub set is being authored: incoherent argument lists, illegal class
  references, incompatible results, missing invocations.  They are fatal to
  the authoring step and never reach the failure guard.
- **Matching failures** (``ExpectationError``) are raised while a story runs:
  ``UnexpectedInvocationError`` and ``UnsatisfiedOccurrenceError``.  They
  subclass ``AssertionError`` so that test runners report them as test
  failures, and the first one raised during a story is captured by the
  ``FailureGuard``.
- **Environment errors** (``EnvironmentFault``) report a broken setup:
  ``ThreadNotFoundError`` and ``MockReferenceError``.

All non-matching errors inherit from ``StoryMockError`` to enable blanket
``except StoryMockError`` handling.
"""

from __future__ import annotations

from typing import Any


class StoryMockError(Exception):
    """Base exception for construction and environment failures."""

    __slots__ = ()


# ── Construction errors ──────────────────────────────────────────


class ConstructionError(StoryMockError):
    """Raised when an expectation, stub or checker cannot be built."""

    __slots__ = ()


class IllegalClauseError(ConstructionError):
    """Raised when an authoring clause is used out of place.

    Examples: ``occurs()`` with no preceding expectation, or changing an
    expectation once the story it belongs to has started.
    """

    __slots__ = ("clause",)

    def __init__(self, clause: str, detail: str) -> None:
        super().__init__(f"illegal clause {clause!r}: {detail}")
        self.clause = clause


class MissingInvocationError(ConstructionError):
    """Raised when a specification block never invoked the targeted mock."""

    __slots__ = ("mock_name",)

    def __init__(self, mock_name: str) -> None:
        super().__init__(
            f"incomplete specification: no invocation of a method of {mock_name} found"
        )
        self.mock_name = mock_name


class IncoherentArgumentListError(ConstructionError):
    """Raised when the arguments of a specification do not cover the method."""

    __slots__ = ("detail", "method")

    def __init__(self, method: str, detail: str) -> None:
        super().__init__(f"incoherent arguments for {method!r}: {detail}")
        self.method = method
        self.detail = detail


class IllegalClassDefinitionError(ConstructionError):
    """Raised when a class checker is built from something that is not a class."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        super().__init__(f"illegal class value {value!r}")
        self.value = value


class IllegalOccurrencesError(ConstructionError):
    """Raised when an occurrence range is negative or inverted."""

    __slots__ = ("maximum", "minimum")

    def __init__(self, minimum: int | None, maximum: int | None, detail: str) -> None:
        super().__init__(f"illegal occurrences [{minimum},{maximum}]: {detail}")
        self.minimum = minimum
        self.maximum = maximum


class CheckerCreationError(ConstructionError):
    """Raised when a ready-made checker receives incoherent bounds."""

    __slots__ = ()


class IncompatibleReturnValueError(ConstructionError):
    """Raised when a scripted return value does not fit the declared return type.

    Attributes
    ----------
    expected : Any
        The declared return annotation of the method.
    value : Any
        The rejected value.
    """

    __slots__ = ("expected", "value")

    def __init__(self, method: str, expected: Any, value: Any) -> None:
        expected_name = getattr(expected, "__name__", repr(expected))
        super().__init__(
            f"incompatible return value for {method!r}: expecting an element of "
            f"{expected_name!r} but found {type(value).__name__!r}"
        )
        self.expected = expected
        self.value = value


class IncompatibleThrowableError(ConstructionError):
    """Raised when a scripted exception is not declared by the method."""

    __slots__ = ("exception_type",)

    def __init__(self, method: str, exception_type: type) -> None:
        super().__init__(
            f"exceptions of class {exception_type.__name__!r} cannot be raised "
            f"by {method!r}"
        )
        self.exception_type = exception_type


# ── Environment errors ───────────────────────────────────────────


class EnvironmentFault(StoryMockError):
    """Raised when the story setup itself is broken."""

    __slots__ = ()


class MockReferenceError(EnvironmentFault):
    """Raised when an operation targets an object that is not a mock."""

    __slots__ = ()

    def __init__(self, detail: str) -> None:
        super().__init__(f"mock reference error: {detail}")


class MockCreationError(EnvironmentFault):
    """Raised when a mock cannot be generated for an interface."""

    __slots__ = ("interface",)

    def __init__(self, interface: Any, detail: str) -> None:
        super().__init__(f"cannot create a mock of {interface!r}: {detail}")
        self.interface = interface


class ThreadNotFoundError(EnvironmentFault):
    """Raised when a call comes from a thread that no actor claims.

    Attributes
    ----------
    thread_name : str
        Name of the offending thread.
    thread_ident : int | None
        Identifier of the offending thread.
    """

    __slots__ = ("thread_ident", "thread_name")

    def __init__(self, thread_name: str, thread_ident: int | None) -> None:
        super().__init__(
            f"could not match thread {thread_name!r} id={thread_ident} to any actor"
        )
        self.thread_name = thread_name
        self.thread_ident = thread_ident


# ── Matching failures ────────────────────────────────────────────


class ExpectationError(AssertionError):
    """Base class for failures detected while a story runs.

    The message carries the story trace known when the failure was raised
    (which expectations were satisfied, how many times, by which thread).
    """

    __slots__ = ("reason", "trace")

    def __init__(self, reason: str, trace: str = "") -> None:
        msg = f"expectation error: {reason}"
        if trace:
            msg += f"\n{trace}"
        super().__init__(msg)
        self.reason = reason
        self.trace = trace


class UnexpectedInvocationError(ExpectationError):
    """Raised when nothing in the story can explain an invocation."""

    __slots__ = ("invocation",)

    def __init__(self, invocation: str, trace: str = "") -> None:
        super().__init__(f"unexpected invocation of {invocation!r}", trace)
        self.invocation = invocation


class UnsatisfiedOccurrenceError(ExpectationError):
    """Raised when an expectation did not get the invocations it requires."""

    __slots__ = ("expectation",)

    def __init__(self, expectation: str, trace: str = "") -> None:
        super().__init__(
            f"expectation {expectation!r} was not fully satisfied", trace
        )
        self.expectation = expectation
