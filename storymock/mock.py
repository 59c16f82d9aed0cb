"""Interception port: mocks whose every call is routed to a handler.

``mock_of(Interface)`` generates (once per interface) a subclass of
``Interface`` whose public functions are all replaced by interceptors, then
instantiates it without running ``Interface.__init__``.  The identity
methods ``__eq__``, ``__hash__``, ``__repr__`` and ``__str__`` are
intercepted as well, so a scenario can script them.

Each mock carries a ``MockState`` with two handler slots:

    CAPTURE: set while a scenario records "the next call" on the mock;
    CHECK: set by the story dispatcher while a story runs.

``CAPTURE`` wins over ``CHECK``, so a mock is in exactly one effective mode
at any instant.  With no handler installed, the identity methods fall back to
the default hooks and everything else raises ``UnexpectedInvocationError``.

The engine never compares, hashes or prints a mock through its intercepted
methods: it uses ``is_mock``, ``uid_of`` and ``describe`` instead.
"""

from __future__ import annotations

import inspect
import itertools
import threading
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Protocol

from storymock.exceptions import (
    IncoherentArgumentListError,
    MockCreationError,
    MockReferenceError,
    UnexpectedInvocationError,
)
from storymock.signature import HOOK_SIGNATURES, MethodSignature

if TYPE_CHECKING:
    from storymock.invocation import Invocation, ResultProvider

_STATE_ATTRIBUTE = "_storymock_state"
_MARKER = "__storymock_mock__"

_uids = itertools.count()
_class_cache: dict[type, type] = {}
_class_cache_lock = threading.Lock()


class HandlerKind(IntEnum):
    """Handler slots of a mock; lower values take precedence."""

    CAPTURE = 0
    CHECK = 1


class InvocationHandler(Protocol):
    """Anything that turns an intercepted call into a result provider."""

    def invoke(self, invocation: Invocation) -> ResultProvider: ...


@dataclass(slots=True)
class MockState:
    """Identity and handler slots of one mock."""

    uid: int
    name: str
    interface: type
    signatures: dict[str, MethodSignature]
    handlers: dict[HandlerKind, InvocationHandler] = field(default_factory=dict)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def active(self) -> tuple[HandlerKind, InvocationHandler] | None:
        """The effective handler slot and its handler, if any."""
        with self.lock:
            for kind in HandlerKind:
                handler = self.handlers.get(kind)
                if handler is not None:
                    return kind, handler
        return None

    def set_handler(self, kind: HandlerKind, handler: InvocationHandler) -> None:
        with self.lock:
            self.handlers[kind] = handler

    def unset_handler(self, kind: HandlerKind) -> None:
        with self.lock:
            self.handlers.pop(kind, None)

    def clear_handlers(self) -> None:
        with self.lock:
            self.handlers.clear()


# ---------------------------------------------------------------------------
# Identity helpers (never trigger an intercepted call)
# ---------------------------------------------------------------------------


def is_mock(value: Any) -> bool:
    """Return ``True`` iff *value* was produced by ``mock_of``."""
    return bool(vars(type(value)).get(_MARKER, False))


def state_of(value: Any) -> MockState:
    """Return the ``MockState`` of *value*.

    Raises
    ------
    MockReferenceError
        If *value* is not a mock.
    """
    if not is_mock(value):
        raise MockReferenceError(f"{type(value).__name__} object is not a mock")
    return object.__getattribute__(value, _STATE_ATTRIBUTE)


def uid_of(mock: Any) -> int:
    """Unique identifier of *mock*."""
    return state_of(mock).uid


def describe(value: Any) -> str:
    """Printable form of *value* that never calls into a mock."""
    if is_mock(value):
        return object.__getattribute__(value, _STATE_ATTRIBUTE).name
    if isinstance(value, list):
        return "[" + ", ".join(describe(item) for item in value) + "]"
    if isinstance(value, tuple):
        inner = ", ".join(describe(item) for item in value)
        return f"({inner},)" if len(value) == 1 else f"({inner})"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{describe(k)}: {describe(v)}" for k, v in value.items()) + "}"
    return repr(value)


def signature_of(mock: Any, method: str) -> MethodSignature:
    """Return the signature of *method* on *mock*.

    Raises
    ------
    MockReferenceError
        If *mock* is not a mock or does not declare *method*.
    """
    state = state_of(mock)
    try:
        return state.signatures[method]
    except KeyError:
        raise MockReferenceError(
            f"{state.name} has no method {method!r}"
        ) from None


# ---------------------------------------------------------------------------
# Handler slots
# ---------------------------------------------------------------------------


def link(mock: Any, kind: HandlerKind, handler: InvocationHandler) -> None:
    """Install *handler* in the *kind* slot of *mock*."""
    state_of(mock).set_handler(kind, handler)


def unlink(mock: Any, kind: HandlerKind) -> None:
    """Remove whatever handler sits in the *kind* slot of *mock*."""
    state_of(mock).unset_handler(kind)


def unlink_all(mock: Any) -> None:
    """Remove every handler of *mock*."""
    state_of(mock).clear_handlers()


# ---------------------------------------------------------------------------
# Interception
# ---------------------------------------------------------------------------


def _intercept(mock: Any, signature: MethodSignature, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
    from storymock.hooks import DEFAULT_HOOKS
    from storymock.invocation import Invocation

    state: MockState = object.__getattribute__(mock, _STATE_ATTRIBUTE)
    active = state.active()
    try:
        arguments = signature.normalize(args, kwargs)
    except TypeError as exc:
        if active is not None and active[0] is HandlerKind.CAPTURE:
            raise IncoherentArgumentListError(signature.name, str(exc)) from exc
        raise
    invocation = Invocation(
        mock=mock,
        signature=signature,
        arguments=arguments,
        thread=threading.current_thread(),
    )
    if active is None:
        provider = DEFAULT_HOOKS.try_invocation(invocation)
        if provider is None:
            raise UnexpectedInvocationError(f"{invocation} (no story is running)")
    else:
        provider = active[1].invoke(invocation)
    return provider()


def _make_interceptor(signature: MethodSignature, owner: type) -> Any:
    def intercept(self: Any, *args: Any, **kwargs: Any) -> Any:
        return _intercept(self, signature, args, kwargs)

    intercept.__name__ = signature.name
    intercept.__qualname__ = f"{owner.__name__}.{signature.name}"
    return intercept


def _interface_methods(interface: type) -> dict[str, Any]:
    """Public functions of *interface*, most-derived definition first."""
    methods: dict[str, Any] = {}
    for klass in reversed(interface.__mro__):
        if klass is object:
            continue
        for attr, value in vars(klass).items():
            if attr.startswith("_"):
                continue
            if inspect.isfunction(value):
                methods[attr] = value
            else:
                methods.pop(attr, None)
    return methods


def _mock_class_for(interface: type) -> type:
    with _class_cache_lock:
        cached = _class_cache.get(interface)
        if cached is not None:
            return cached
        signatures = {
            name: MethodSignature.from_function(func)
            for name, func in _interface_methods(interface).items()
        }
        signatures.update(HOOK_SIGNATURES)
        namespace: dict[str, Any] = {
            _MARKER: True,
            "__storymock_signatures__": signatures,
            "__module__": interface.__module__,
        }
        for name, signature in signatures.items():
            namespace[name] = _make_interceptor(signature, interface)
        try:
            mock_class = type(interface)(f"{interface.__name__}Mock", (interface,), namespace)
        except TypeError as exc:
            raise MockCreationError(interface, str(exc)) from exc
        # every public function is overridden; abstract properties are not served
        if getattr(mock_class, "__abstractmethods__", None):
            mock_class.__abstractmethods__ = frozenset()
        _class_cache[interface] = mock_class
        return mock_class


def mock_of(interface: type, name: str | None = None) -> Any:
    """Create a mock implementing *interface*.

    Parameters
    ----------
    interface:
        Class (plain, ABC or protocol implementation) to imitate.
    name:
        Display name used in traces and failure messages; defaults to
        ``"<Interface>$<uid>"``.

    Raises
    ------
    MockCreationError
        If *interface* is not a class or cannot be subclassed.
    """
    if not isinstance(interface, type):
        raise MockCreationError(interface, "not a class")
    mock_class = _mock_class_for(interface)
    try:
        mock = object.__new__(mock_class)
    except TypeError as exc:
        raise MockCreationError(interface, str(exc)) from exc
    uid = next(_uids)
    state = MockState(
        uid=uid,
        name=name or f"{interface.__name__}${uid}",
        interface=interface,
        signatures=vars(mock_class)["__storymock_signatures__"],
    )
    object.__setattr__(mock, _STATE_ATTRIBUTE, state)
    return mock
