"""Occurrence schemes: how many times an expectation may be matched.

An ``Occurrences`` instance holds a ``[minimum, maximum]`` range (``maximum``
``None`` meaning unbounded) and the running count of its expectation.  The
count is reset when the expectation becomes current and incremented once per
successful match.
"""

from __future__ import annotations

from storymock.exceptions import IllegalOccurrencesError


class Occurrences:
    """Occurrence range plus counter.

    Parameters
    ----------
    minimum:
        Matches required before the expectation may be left.
    maximum:
        Matches after which the expectation accepts no more; ``None`` for no
        limit.

    Raises
    ------
    IllegalOccurrencesError
        If a bound is negative or ``maximum < minimum``.
    """

    __slots__ = ("count", "maximum", "minimum")

    def __init__(self, minimum: int, maximum: int | None) -> None:
        if minimum < 0:
            raise IllegalOccurrencesError(minimum, maximum, "minimum is negative")
        if maximum is not None and maximum < minimum:
            raise IllegalOccurrencesError(minimum, maximum, "maximum is lower than minimum")
        self.minimum = minimum
        self.maximum = maximum
        self.count = 0

    def can_end_now(self) -> bool:
        return self.count >= self.minimum

    def has_reached_limit(self) -> bool:
        return self.maximum is not None and self.count >= self.maximum

    def increment(self) -> None:
        self.count += 1

    def reset(self) -> None:
        self.count = 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Occurrences):
            return NotImplemented
        return (self.minimum, self.maximum) == (other.minimum, other.maximum)

    def __hash__(self) -> int:
        return hash((self.minimum, self.maximum))

    def __repr__(self) -> str:
        if self.minimum == 0 and self.maximum is None:
            return "[ANY]"
        high = "*" if self.maximum is None else str(self.maximum)
        return f"[{self.minimum}..{high}]"


def exactly(times: int) -> Occurrences:
    return Occurrences(times, times)


def at_least(times: int) -> Occurrences:
    return Occurrences(times, None)


def at_most(times: int) -> Occurrences:
    if times < 0:
        raise IllegalOccurrencesError(0, times, "maximum is negative")
    return Occurrences(0, times)


def between(minimum: int, maximum: int) -> Occurrences:
    return Occurrences(minimum, maximum)


def any_times() -> Occurrences:
    return Occurrences(0, None)


def never() -> Occurrences:
    return Occurrences(0, 0)


def once() -> Occurrences:
    return exactly(1)
