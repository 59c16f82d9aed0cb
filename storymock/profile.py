"""Invocation profiles: which calls an expectation or a stub is about.

A profile binds one mock, one method and one checker per normalized argument
position.  Matching fails closed: another mock, another method or another
arity never matches, whatever the checkers say.
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any

from storymock.checkers import ArrayChecker, Checker, checker_for
from storymock.exceptions import IncoherentArgumentListError
from storymock.mock import describe, uid_of

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from storymock.invocation import Invocation
    from storymock.signature import MethodSignature


class InvocationProfile:
    """Mock + method + argument checkers.

    Attributes
    ----------
    mock : Any
        The mock the profile is about.
    signature : MethodSignature
        The targeted method.
    checkers : tuple[Checker, ...]
        One checker per normalized argument position.
    """

    __slots__ = ("checkers", "mock", "mock_uid", "signature")

    def __init__(self, mock: Any, signature: MethodSignature, checkers: Sequence[Checker]) -> None:
        if len(checkers) != signature.arity:
            raise IncoherentArgumentListError(
                signature.name,
                f"{len(checkers)} argument checkers for {signature.arity} parameters",
            )
        self.mock = mock
        self.mock_uid = uid_of(mock)
        self.signature = signature
        self.checkers = tuple(checkers)

    @classmethod
    def from_call(
        cls,
        mock: Any,
        signature: MethodSignature,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
    ) -> InvocationProfile:
        """Build a profile from a call captured while authoring.

        Arguments that are checkers are kept; any other value is checked
        for equality (sequences item by item).  A ``*args`` tail becomes one
        sequence argument.

        Raises
        ------
        IncoherentArgumentListError
            If the arguments cannot be bound to the method parameters.
        """
        try:
            values = signature.normalize(args, kwargs)
        except TypeError as exc:
            raise IncoherentArgumentListError(signature.name, str(exc)) from exc
        return cls(mock, signature, [checker_for(value) for value in values])

    @classmethod
    def from_checkers(
        cls, mock: Any, signature: MethodSignature, checkers: Sequence[Any]
    ) -> InvocationProfile:
        """Build a profile from an explicit argument specification.

        Every position must be specified.  When the method takes ``*args``,
        the checkers beyond the fixed parameters are packed into one
        sequence checker for the tail.

        Raises
        ------
        IncoherentArgumentListError
            If fewer checkers than parameters are given, or more than
            parameters for a method without a variadic tail.
        """
        arity = signature.arity
        if len(checkers) < arity:
            raise IncoherentArgumentListError(
                signature.name,
                f"missing argument specifications, all {arity} must be given",
            )
        if len(checkers) > arity and not _has_variadic_tail(signature):
            raise IncoherentArgumentListError(
                signature.name,
                f"{len(checkers)} argument specifications for {arity} parameters",
            )
        built = [checker_for(value) for value in checkers[: max(arity - 1, 0)]]
        if arity:
            tail = checkers[arity - 1:]
            if len(tail) == 1:
                built.append(checker_for(tail[0]))
            else:
                built.append(ArrayChecker(list(tail)))
        return cls(mock, signature, built)

    def matches(self, invocation: Invocation) -> bool:
        """Return ``True`` iff *invocation* is a call this profile describes."""
        if invocation.mock is not self.mock:
            return False
        if invocation.signature.name != self.signature.name:
            return False
        if len(invocation.arguments) != len(self.checkers):
            return False
        return all(
            checker.is_compatible(value)
            for checker, value in zip(self.checkers, invocation.arguments, strict=True)
        )

    def __repr__(self) -> str:
        args = ", ".join(repr(checker) for checker in self.checkers)
        return f"{describe(self.mock)}.{self.signature.name}({args})"


def _has_variadic_tail(signature: MethodSignature) -> bool:
    return bool(signature.parameters) and (
        signature.parameters[-1].kind is inspect.Parameter.VAR_POSITIONAL
    )
