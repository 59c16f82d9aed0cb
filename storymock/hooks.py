"""Default behaviour of the identity methods of a mock.

Scenarios rarely script ``__eq__``, ``__hash__``, ``__repr__`` or
``__str__``; when an invocation of one of them is not explained otherwise,
its result is derived from the mock's own identity.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from storymock.mock import describe

if TYPE_CHECKING:
    from collections.abc import Callable

    from storymock.invocation import Invocation, ResultProvider


def _equals(invocation: Invocation) -> ResultProvider:
    mock, other = invocation.mock, invocation.arguments[0]
    return lambda: other is mock


def _hash(invocation: Invocation) -> ResultProvider:
    mock = invocation.mock
    return lambda: object.__hash__(mock)


def _name(invocation: Invocation) -> ResultProvider:
    name = describe(invocation.mock)
    return lambda: name


class DefaultHooks:
    """Table of identity-based fallbacks, keyed by method name."""

    __slots__ = ("_hooks",)

    def __init__(self, hooks: dict[str, Callable[[Invocation], ResultProvider]] | None = None) -> None:
        self._hooks = dict(hooks) if hooks is not None else {
            "__eq__": _equals,
            "__hash__": _hash,
            "__repr__": _name,
            "__str__": _name,
        }

    def try_invocation(self, invocation: Invocation) -> ResultProvider | None:
        """Return the fallback provider for *invocation*, or ``None``."""
        hook = self._hooks.get(invocation.method_name)
        return None if hook is None else hook(invocation)

    def __contains__(self, method_name: Any) -> bool:
        return method_name in self._hooks


#: Hooks used when no story handles a mock.
DEFAULT_HOOKS = DefaultHooks()
