"""Structural description of an intercepted method.

A ``MethodSignature`` is a plain value object: name, ordered parameters,
return annotation and declared exceptions.  Two signatures are equal when
their descriptions are equal, whatever function object they were read from.

The signature also owns argument normalization.  Every call is folded into
one tuple with exactly ``arity`` positions:

- defaults are applied, so ``f(1)`` and ``f(1, b=<default>)`` are the same
  invocation;
- keyword arguments land in their positional slot;
- a ``*args`` tail is packed as one tuple argument;
- a ``**kwargs`` tail is packed as one dict argument.
"""

from __future__ import annotations

import inspect
import typing
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

#: Attribute set on interface functions by ``raises``.
RAISES_ATTRIBUTE = "__storymock_raises__"


def raises(*exception_types: type[BaseException]) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Declare the exceptions an interface method may raise.

    Usage::

        class Store(Protocol):
            @raises(KeyError, TimeoutError)
            def fetch(self, key: str) -> bytes: ...
    """
    for exception_type in exception_types:
        if not (isinstance(exception_type, type) and issubclass(exception_type, BaseException)):
            raise TypeError(f"{exception_type!r} is not an exception class")

    def decorate(func: Callable[..., Any]) -> Callable[..., Any]:
        setattr(func, RAISES_ATTRIBUTE, tuple(exception_types))
        return func

    return decorate


@dataclass(slots=True, frozen=True)
class ParameterSpec:
    """One parameter of an intercepted method (``self`` excluded)."""

    name: str
    kind: inspect._ParameterKind
    annotation: Any = Any
    has_default: bool = False

    @property
    def is_variadic(self) -> bool:
        return self.kind in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        )


@dataclass(slots=True, frozen=True)
class MethodSignature:
    """Name, parameters, return type and declared exceptions of a method.

    Attributes
    ----------
    name : str
        Method name as seen on the interface.
    parameters : tuple[ParameterSpec, ...]
        Ordered parameters, ``self`` excluded.
    return_type : Any
        Resolved return annotation; ``Any`` when the method has none.
    raises : tuple[type[BaseException], ...]
        Exceptions declared with ``raises``.
    """

    name: str
    parameters: tuple[ParameterSpec, ...] = ()
    return_type: Any = Any
    raises: tuple[type[BaseException], ...] = ()
    _binder: inspect.Signature | None = field(
        default=None, compare=False, hash=False, repr=False
    )

    @classmethod
    def from_function(cls, func: Callable[..., Any], name: str | None = None) -> MethodSignature:
        """Describe *func*, an instance method read from an interface class."""
        raw = inspect.signature(func)
        params = list(raw.parameters.values())[1:]  # drop self
        hints = _resolve_hints(func)
        specs = tuple(
            ParameterSpec(
                name=p.name,
                kind=p.kind,
                annotation=hints.get(p.name, _raw_annotation(p.annotation)),
                has_default=p.default is not inspect.Parameter.empty,
            )
            for p in params
        )
        return cls(
            name=name or func.__name__,
            parameters=specs,
            return_type=hints.get("return", _raw_annotation(raw.return_annotation)),
            raises=tuple(getattr(func, RAISES_ATTRIBUTE, ())),
            _binder=raw.replace(parameters=params),
        )

    @property
    def arity(self) -> int:
        """Number of normalized argument positions."""
        return len(self.parameters)

    @property
    def is_variadic(self) -> bool:
        return any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in self.parameters)

    def normalize(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> tuple[Any, ...]:
        """Fold a call into one tuple of ``arity`` positions.

        Raises
        ------
        TypeError
            If the arguments cannot be bound to the parameters, exactly as
            a call to a real method would.
        """
        if self._binder is None:
            if kwargs or len(args) != self.arity:
                raise TypeError(
                    f"{self.name}() takes {self.arity} arguments ({len(args)} given)"
                )
            return tuple(args)
        bound = self._binder.bind(*args, **kwargs)
        bound.apply_defaults()
        values: list[Any] = []
        for spec in self.parameters:
            value = bound.arguments[spec.name]
            if spec.kind is inspect.Parameter.VAR_POSITIONAL:
                value = tuple(value)
            elif spec.kind is inspect.Parameter.VAR_KEYWORD:
                value = dict(value)
            values.append(value)
        return tuple(values)

    def __str__(self) -> str:
        return f"{self.name}({', '.join(p.name for p in self.parameters)})"


def _raw_annotation(annotation: Any) -> Any:
    if annotation is inspect.Parameter.empty or annotation is inspect.Signature.empty:
        return Any
    return annotation


def _resolve_hints(func: Callable[..., Any]) -> dict[str, Any]:
    """Resolved type hints of *func*; empty when forward references cannot be
    resolved, in which case the raw annotations are used instead."""
    try:
        return typing.get_type_hints(func)
    except (NameError, TypeError, AttributeError):
        return {}


# ---------------------------------------------------------------------------
# Identity methods
# ---------------------------------------------------------------------------


class _IdentityMethods:
    """Templates for the identity methods every mock intercepts."""

    def __eq__(self, other: Any) -> Any: ...

    def __hash__(self) -> int: ...

    def __repr__(self) -> str: ...

    def __str__(self) -> str: ...


#: Signatures of the identity methods, keyed by name.
HOOK_SIGNATURES: dict[str, MethodSignature] = {
    name: MethodSignature.from_function(vars(_IdentityMethods)[name])
    for name in ("__eq__", "__hash__", "__repr__", "__str__")
}
