"""Value checkers: "is this actual argument compatible with the expectation?"

Four kinds cover every argument position of an invocation profile:

- ``ExactChecker``: value equality; mocks compare by identity only.
- ``ClassChecker``: class membership, optionally tolerating ``None``;
  numeric promotion (``int`` → ``float`` → ``complex``) is honoured, the
  way a ``float`` parameter accepts an ``int`` argument.
- ``ArrayChecker``: pairwise check of a list/tuple against a reference
  sequence.  The reference is read at check time, so mutating it between
  calls changes what the checker accepts.
- ``DelegateChecker``: a user predicate.  Predicates must be free of side
  effects and must never call a mock: they run inside the dispatch critical
  section.

``checker_for`` turns an authoring-time argument into a checker.
"""

from __future__ import annotations

import types
import typing
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from storymock.exceptions import IllegalClassDefinitionError
from storymock.mock import describe, is_mock

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

# Numeric promotion accepted by class checks (PEP 484 numeric tower).
_PROMOTIONS: dict[type, tuple[type, ...]] = {
    float: (int,),
    complex: (int, float),
}


class Checker(ABC):
    """Predicate telling whether an actual value fits an expectation."""

    __slots__ = ()

    @abstractmethod
    def is_compatible(self, value: Any) -> bool:
        """Return ``True`` iff *value* satisfies this checker."""

    @property
    def related_class(self) -> type:
        """Class of the values this checker is about."""
        return object


# ---------------------------------------------------------------------------
# Class compatibility
# ---------------------------------------------------------------------------


def class_accepts(reference: type, actual: type) -> bool:
    """Return ``True`` iff instances of *actual* are members of *reference*."""
    if getattr(reference, "_is_protocol", False) and not getattr(
        reference, "_is_runtime_protocol", False
    ):
        return True
    if issubclass(actual, reference):
        return True
    return any(issubclass(actual, promoted) for promoted in _PROMOTIONS.get(reference, ()))


def value_fits_annotation(value: Any, annotation: Any) -> bool:
    """Return ``True`` iff *value* is acceptable for a type *annotation*.

    Unions and ``Optional`` accept a value fitting any member; parametrised
    generics are checked on their origin class; ``Any``, type variables and
    annotations that could not be resolved accept everything.
    """
    if annotation is Any or annotation is object or isinstance(annotation, (str, typing.TypeVar)):
        return True
    if annotation is None or annotation is type(None):
        return value is None
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return any(value_fits_annotation(value, arg) for arg in typing.get_args(annotation))
    if origin is typing.Annotated:
        return value_fits_annotation(value, typing.get_args(annotation)[0])
    if origin is typing.Literal:
        return any(ExactChecker(arg).is_compatible(value) for arg in typing.get_args(annotation))
    if origin is not None:
        annotation = origin
    if not isinstance(annotation, type):
        return True
    if value is None:
        return False
    return class_accepts(annotation, type(value))


def _is_array(value: Any) -> bool:
    return not is_mock(value) and isinstance(value, (list, tuple))


# ---------------------------------------------------------------------------
# Checkers
# ---------------------------------------------------------------------------


class ExactChecker(Checker):
    """Accepts values equal to a reference value."""

    __slots__ = ("reference",)

    def __init__(self, reference: Any) -> None:
        self.reference = reference

    def is_compatible(self, value: Any) -> bool:
        # never reach a mocked __eq__
        if is_mock(self.reference) or is_mock(value):
            return value is self.reference
        if self.reference is None or value is None:
            return value is self.reference
        return bool(self.reference == value)

    @property
    def related_class(self) -> type:
        return object if self.reference is None else type(self.reference)

    def __repr__(self) -> str:
        return f"{self.related_class.__name__}={describe(self.reference)}"


class ClassChecker(Checker):
    """Accepts any instance of a class, and ``None`` when *nullable*.

    When *item_class* is given the checker accepts list/tuple values whose
    items are all members of *item_class* (or ``None``); this is how a
    ``*args`` tail is checked by default.
    """

    __slots__ = ("item_class", "nullable", "reference_class")

    def __init__(self, reference_class: type, *, nullable: bool = True, item_class: type | None = None) -> None:
        if not isinstance(reference_class, type):
            raise IllegalClassDefinitionError(reference_class)
        if item_class is not None and not isinstance(item_class, type):
            raise IllegalClassDefinitionError(item_class)
        self.reference_class = reference_class
        self.nullable = nullable
        self.item_class = item_class

    def is_compatible(self, value: Any) -> bool:
        if value is None:
            return self.nullable
        if self.item_class is not None:
            if not _is_array(value):
                return False
            items = ClassChecker(self.item_class)
            return all(items.is_compatible(item) for item in value)
        return class_accepts(self.reference_class, type(value))

    @property
    def related_class(self) -> type:
        return self.reference_class

    def __repr__(self) -> str:
        name = self.reference_class.__name__
        if self.item_class is not None:
            name = f"{name}[{self.item_class.__name__}]"
        return f"{name}=<ANY>" if self.nullable else f"{name}!=None"


class ArrayChecker(Checker):
    """Accepts list/tuple values pairwise compatible with a reference sequence.

    Items of the reference that are checkers are used as such; other items
    are compared like exact values (nested sequences recursively).  The
    reference is consulted on every check, never copied.
    """

    __slots__ = ("reference",)

    def __init__(self, reference: Sequence[Any]) -> None:
        self.reference = reference

    def is_compatible(self, value: Any) -> bool:
        if value is None or not _is_array(value):
            return False
        reference = self.reference
        if len(value) != len(reference):
            return False
        return all(
            checker_for(expected).is_compatible(actual)
            for expected, actual in zip(reference, value, strict=True)
        )

    @property
    def related_class(self) -> type:
        return type(self.reference)

    def __repr__(self) -> str:
        items = ",".join(repr(checker_for(item)) for item in self.reference)
        return f"{self.related_class.__name__}={{{items}}}"


class DelegateChecker(Checker):
    """Accepts values for which a user predicate returns a truthy result."""

    __slots__ = ("description", "predicate")

    def __init__(self, predicate: Callable[[Any], Any], description: str | None = None) -> None:
        self.predicate = predicate
        self.description = description or getattr(predicate, "__name__", "predicate")

    def is_compatible(self, value: Any) -> bool:
        return bool(self.predicate(value))

    def __repr__(self) -> str:
        return f"satisfies({self.description})"


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def any_of(reference_class: type) -> ClassChecker:
    """Any member of *reference_class*, ``None`` included."""
    if reference_class is None:
        raise IllegalClassDefinitionError(None)
    return ClassChecker(reference_class, nullable=True)


def a_non_null_of(reference_class: type) -> ClassChecker:
    """Any member of *reference_class* except ``None``."""
    if reference_class is None:
        raise IllegalClassDefinitionError(None)
    return ClassChecker(reference_class, nullable=False)


def checker_for(value: Any, *, preserve_checkers: bool = True) -> Checker:
    """Return the checker matching an authoring-time argument.

    Checkers are kept as they are unless *preserve_checkers* is false, in
    which case a checker argument is compared like any other exact value.
    """
    if preserve_checkers and isinstance(value, Checker):
        return value
    if _is_array(value):
        return ArrayChecker(value)
    return ExactChecker(value)
