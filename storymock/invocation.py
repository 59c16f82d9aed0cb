"""Invocation records and result providers.

An ``Invocation`` is created once per intercepted call and dropped as soon as
the matching decision is taken.  A *result provider* is any zero-argument
callable: it returns the value handed back to the caller, or raises the
exception the caller sees.  ``InvocationResult`` is the provider built from a
scripted value or exception; it can be checked against the target method.
"""

from __future__ import annotations

import threading
import typing
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from storymock.checkers import value_fits_annotation
from storymock.exceptions import (
    IncompatibleReturnValueError,
    IncompatibleThrowableError,
)
from storymock.mock import describe

if TYPE_CHECKING:
    from storymock.config import StoryMockSettings
    from storymock.signature import MethodSignature

#: Zero-argument callable producing the outcome of an invocation.
ResultProvider = Callable[[], Any]

# Fresh value factories for ``InvocationResult.default_for``.
_DEFAULT_FACTORIES: dict[type, Callable[[], Any]] = {
    bool: bool,
    int: int,
    float: float,
    complex: complex,
    str: str,
    bytes: bytes,
    list: list,
    dict: dict,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
}


@dataclass(slots=True, frozen=True, eq=False)
class Invocation:
    """One intercepted call.

    Attributes
    ----------
    mock : Any
        The mock the call was made on.  Compared by identity only.
    signature : MethodSignature
        The called method.
    arguments : tuple[Any, ...]
        Normalized arguments, one per signature position.
    thread : threading.Thread
        The calling thread.
    """

    mock: Any
    signature: MethodSignature
    arguments: tuple[Any, ...]
    thread: threading.Thread

    @property
    def method_name(self) -> str:
        return self.signature.name

    def __str__(self) -> str:
        args = ", ".join(describe(arg) for arg in self.arguments)
        return f"{describe(self.mock)}.{self.signature.name}({args})"


class InvocationResult:
    """Result provider returning a value or raising an exception."""

    __slots__ = ("_exception", "_factory", "_value")

    def __init__(
        self,
        value: Any = None,
        exception: BaseException | None = None,
        factory: Callable[[], Any] | None = None,
    ) -> None:
        self._value = value
        self._exception = exception
        self._factory = factory

    @classmethod
    def returns(cls, value: Any) -> InvocationResult:
        return cls(value=value)

    @classmethod
    def raises(cls, exception: BaseException) -> InvocationResult:
        return cls(exception=exception)

    @classmethod
    def default_for(cls, annotation: Any) -> InvocationResult:
        """Result returning the neutral value of *annotation*.

        Containers are created afresh on every call, so callers never share
        a mutable default.  Anything else, ``Optional`` included, yields
        ``None``.
        """
        target = typing.get_origin(annotation) or annotation
        factory = _DEFAULT_FACTORIES.get(target) if isinstance(target, type) else None
        return cls(factory=factory)

    @property
    def is_exception(self) -> bool:
        return self._exception is not None

    @property
    def value(self) -> Any:
        return self._value

    @property
    def exception(self) -> BaseException | None:
        return self._exception

    def __call__(self) -> Any:
        if self._exception is not None:
            raise self._exception
        if self._factory is not None:
            return self._factory()
        return self._value

    def validate(self, signature: MethodSignature, settings: StoryMockSettings) -> InvocationResult:
        """Check this result against *signature*; return ``self``."""
        if self._exception is not None:
            validate_throw(signature, self._exception, settings)
        elif self._factory is None:
            validate_return(signature, self._value, settings)
        return self

    def __repr__(self) -> str:
        if self._exception is not None:
            return f"raises {type(self._exception).__name__}({self._exception})"
        if self._factory is not None:
            return f"returns default {self._factory.__name__}()"
        return f"returns {describe(self._value)}"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_return(signature: MethodSignature, value: Any, settings: StoryMockSettings) -> None:
    """Check that *value* may be returned by *signature*.

    Raises
    ------
    IncompatibleReturnValueError
        If ``check_return_types`` is on and *value* does not fit the declared
        return annotation.
    """
    if not settings.check_return_types:
        return
    if not value_fits_annotation(value, signature.return_type):
        raise IncompatibleReturnValueError(signature.name, signature.return_type, value)


def validate_throw(signature: MethodSignature, exception: Any, settings: StoryMockSettings) -> None:
    """Check that *exception* may be raised by *signature*.

    ``RuntimeError`` and its subclasses are always allowed; a method that
    declares nothing may raise anything.

    Raises
    ------
    IncompatibleThrowableError
        If *exception* is not an exception instance, or integrity checks are
        on and the method declares other exception classes only.
    """
    if not isinstance(exception, BaseException):
        raise IncompatibleThrowableError(signature.name, type(exception))
    if not settings.check_exception_integrity or not signature.raises:
        return
    if isinstance(exception, (RuntimeError, *signature.raises)):
        return
    raise IncompatibleThrowableError(signature.name, type(exception))
