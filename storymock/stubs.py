"""Stubs: canned answers with no order and no occurrence constraint.

Stubs are stored per (mock, method) in a ``StubIndex``, in registration
order.  Lookup scans from the newest stub to the oldest and the first match
wins; across several indexes the most recently registered matching stub wins.
A failed lookup is not an error: the story processor is consulted instead.
"""

from __future__ import annotations

import itertools
import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from storymock.config import get_settings
from storymock.expectation import ResultClauses
from storymock.invocation import InvocationResult
from storymock.mock import uid_of

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from storymock.config import StoryMockSettings
    from storymock.invocation import Invocation, ResultProvider
    from storymock.profile import InvocationProfile

log = logging.getLogger(__name__)

_sequence = itertools.count()


class Stub(ResultClauses):
    """A profile and a result provider.

    ``order`` is a process-wide registration number, used to find the most
    recent stub among several indexes.
    """

    __slots__ = ("order", "profile", "result", "settings")

    def __init__(self, profile: InvocationProfile, settings: StoryMockSettings | None = None) -> None:
        self.profile = profile
        self.settings = settings if settings is not None else get_settings()
        self.result: ResultProvider = InvocationResult.default_for(profile.signature.return_type)
        self.order = next(_sequence)
        self._frozen = False

    @property
    def mock(self) -> Any:
        return self.profile.mock

    def matches(self, invocation: Invocation) -> bool:
        return self.profile.matches(invocation)

    def __repr__(self) -> str:
        return f"stub {self.profile}"


class StubIndex:
    """Stubs grouped by (mock uid, method name), oldest first."""

    __slots__ = ("_stubs",)

    def __init__(self, stubs: Iterable[Stub] = ()) -> None:
        self._stubs: defaultdict[tuple[int, str], list[Stub]] = defaultdict(list)
        for stub in stubs:
            self.add(stub)

    def add(self, stub: Stub) -> None:
        key = (stub.profile.mock_uid, stub.profile.signature.name)
        self._stubs[key].append(stub)

    def lookup(self, invocation: Invocation) -> Stub | None:
        """Newest stub matching *invocation*, or ``None``."""
        candidates = self._stubs.get((uid_of(invocation.mock), invocation.method_name))
        if not candidates:
            return None
        for stub in reversed(candidates):
            if stub.matches(invocation):
                return stub
        return None

    def freeze(self) -> None:
        for stub in self:
            stub.freeze()

    def mocks(self) -> list[Any]:
        seen: dict[int, Any] = {}
        for (uid, _method), stubs in self._stubs.items():
            seen.setdefault(uid, stubs[0].mock)
        return list(seen.values())

    def __iter__(self) -> Iterator[Stub]:
        stubs = [stub for group in self._stubs.values() for stub in group]
        return iter(sorted(stubs, key=lambda stub: stub.order))

    def __len__(self) -> int:
        return sum(len(group) for group in self._stubs.values())


class StubProcessor:
    """Looks invocations up in the stub indexes of an actor.

    Never advances any state and never fails.
    """

    __slots__ = ("appended", "indexes")

    def __init__(self, indexes: Iterable[StubIndex] = ()) -> None:
        self.indexes: list[StubIndex] = list(indexes)
        # stubs appended while the story runs
        self.appended = StubIndex()
        self.indexes.append(self.appended)

    def try_resolve(self, invocation: Invocation) -> ResultProvider | None:
        """Result provider of the newest matching stub, or ``None``."""
        found: Stub | None = None
        for index in self.indexes:
            stub = index.lookup(invocation)
            if stub is not None and (found is None or stub.order > found.order):
                found = stub
        if found is None:
            return None
        log.debug("%s resolved by %r", invocation, found)
        return found.result

    def add_stub(self, stub: Stub) -> None:
        """Register *stub* for this processor only."""
        self.appended.add(stub)

    def mocks(self) -> list[Any]:
        seen: dict[int, Any] = {}
        for index in self.indexes:
            for mock in index.mocks():
                seen.setdefault(uid_of(mock), mock)
        return list(seen.values())
