"""Thread predicates telling which threads an actor stands for."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from storymock.checkers import Checker

if TYPE_CHECKING:
    from collections.abc import Callable


class ThreadPredicate(Checker):
    """Checker over ``threading.Thread`` values."""

    __slots__ = ("description", "test")

    def __init__(self, test: Callable[[threading.Thread], bool], description: str) -> None:
        self.test = test
        self.description = description

    def is_compatible(self, value: Any) -> bool:
        return isinstance(value, threading.Thread) and bool(self.test(value))

    @property
    def related_class(self) -> type:
        return threading.Thread

    def __repr__(self) -> str:
        return f"threads({self.description})"


def equal_to(thread: threading.Thread) -> ThreadPredicate:
    """Exactly *thread*."""
    return ThreadPredicate(lambda value: value is thread, f"is {thread.name}")


def threads_called(name: str) -> ThreadPredicate:
    """Threads whose name is *name*."""
    if name is None:
        raise ValueError("thread name must not be None")
    return ThreadPredicate(lambda value: value.name == name, f"called {name!r}")


def instances_of(thread_class: type[threading.Thread]) -> ThreadPredicate:
    """Instances of *thread_class* or of a subclass."""
    if not (isinstance(thread_class, type) and issubclass(thread_class, threading.Thread)):
        raise ValueError(f"{thread_class!r} is not a thread class")
    return ThreadPredicate(
        lambda value: isinstance(value, thread_class), f"instances of {thread_class.__name__}"
    )


#: Matches whatever thread it is given.
any_thread = ThreadPredicate(lambda value: True, "any")
