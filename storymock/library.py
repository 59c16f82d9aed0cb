"""Ready-made argument checkers.

Range checkers work on any mutually comparable values (numbers, strings,
dates...).  String checkers compare, search or fully match a reference, and
can be switched to case-insensitive mode.
"""

from __future__ import annotations

import re
from abc import abstractmethod
from typing import TYPE_CHECKING, Any

from storymock.checkers import Checker, DelegateChecker
from storymock.exceptions import CheckerCreationError

if TYPE_CHECKING:
    from collections.abc import Callable


class RangeChecker(Checker):
    """Accepts non-``None`` values within ``[minimum, maximum]``.

    Either bound may be ``None`` to leave that side open.
    """

    __slots__ = ("maximum", "minimum")

    def __init__(self, minimum: Any = None, maximum: Any = None) -> None:
        if minimum is not None and maximum is not None and maximum < minimum:
            raise CheckerCreationError(f"{minimum!r} is greater than {maximum!r}")
        self.minimum = minimum
        self.maximum = maximum

    def is_compatible(self, value: Any) -> bool:
        if value is None:
            return False
        if self.minimum is not None and value < self.minimum:
            return False
        return not (self.maximum is not None and value > self.maximum)

    @property
    def related_class(self) -> type:
        bound = self.minimum if self.minimum is not None else self.maximum
        return object if bound is None else type(bound)

    def __repr__(self) -> str:
        low = "" if self.minimum is None else repr(self.minimum)
        high = "" if self.maximum is None else repr(self.maximum)
        return f"{self.related_class.__name__}=[{low},{high}]"


def between_values(minimum: Any, maximum: Any) -> RangeChecker:
    return RangeChecker(minimum, maximum)


def at_least_value(minimum: Any) -> RangeChecker:
    return RangeChecker(minimum=minimum)


def at_most_value(maximum: Any) -> RangeChecker:
    return RangeChecker(maximum=maximum)


#: Any number greater than or equal to zero.
positive_values = at_least_value(0)
#: Any number lower than or equal to zero.
negative_values = at_most_value(0)


class StringChecker(Checker):
    """Base class for string checkers.

    A ``None`` reference accepts only ``None``; a non-``None`` reference
    rejects ``None``.
    """

    __slots__ = ("case_sensitive", "kind", "reference")

    def __init__(self, kind: str, reference: str | None) -> None:
        self.kind = kind
        self.reference = reference
        self.case_sensitive = True

    def case_insensitive(self) -> StringChecker:
        """Ignore case from now on; returns ``self`` for chaining."""
        self.case_sensitive = False
        return self

    def is_compatible(self, value: Any) -> bool:
        if value is None or self.reference is None:
            return value is None and self.reference is None
        if not isinstance(value, str):
            return False
        return self._matches(self.reference, value)

    @abstractmethod
    def _matches(self, reference: str, value: str) -> bool:
        """Compare a non-``None`` *reference* with a string *value*."""

    def _fold(self, text: str) -> str:
        return text if self.case_sensitive else text.casefold()

    @property
    def related_class(self) -> type:
        return str

    def __repr__(self) -> str:
        return f"{self.kind}({self.reference!r})"


class _Equals(StringChecker):
    __slots__ = ()

    def _matches(self, reference: str, value: str) -> bool:
        return self._fold(reference) == self._fold(value)


class _Contains(StringChecker):
    __slots__ = ()

    def _matches(self, reference: str, value: str) -> bool:
        return self._fold(reference) in self._fold(value)


class _Matches(StringChecker):
    __slots__ = ()

    def _matches(self, reference: str, value: str) -> bool:
        flags = 0 if self.case_sensitive else re.IGNORECASE
        return re.fullmatch(reference, value, flags) is not None


def equals_string(reference: str | None) -> StringChecker:
    return _Equals("equals", reference)


def contains_string(reference: str | None) -> StringChecker:
    return _Contains("contains", reference)


def matches_pattern(pattern: str | None) -> StringChecker:
    """Strings fully matching the regular expression *pattern*."""
    if pattern is not None:
        try:
            re.compile(pattern)
        except re.error as exc:
            raise CheckerCreationError(f"invalid pattern {pattern!r}: {exc}") from exc
    return _Matches("matches", pattern)


def satisfies(predicate: Callable[[Any], Any], description: str | None = None) -> DelegateChecker:
    """Values for which *predicate* returns a truthy result.

    The predicate must not call any mock.
    """
    return DelegateChecker(predicate, description)
