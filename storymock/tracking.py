"""Diagnostic trace of a story.

Each story processor owns a ``StoryTracker``: one ``ExpectationReport`` per
expectation that became current, recording how many matches came from which
thread, in arrival order.  The ``StoryTrack`` of a story gathers the trackers
of all its processors and renders them for failure messages::

    what happened up to now:
    satisfied 2 times: Geek$0.drinks_coffee()[1..*]
        2 times from Thread-1
    satisfied 0 times: Geek$0.writes_code()[1..1]
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from storymock.expectation import Expectation


def times(count: int) -> str:
    return f"{count} time" if count == 1 else f"{count} times"


@dataclass(slots=True)
class ThreadRecord:
    """Consecutive matches coming from one thread."""

    thread_name: str
    thread_ident: int | None
    count: int = 1

    def __str__(self) -> str:
        return f"{times(self.count)} from {self.thread_name}"


@dataclass(slots=True)
class ExpectationReport:
    """Matches of one expectation, grouped by runs of the same thread."""

    expectation: Expectation
    records: list[ThreadRecord] = field(default_factory=list)

    def record(self, thread: threading.Thread) -> None:
        if self.records and self.records[-1].thread_ident == thread.ident:
            self.records[-1].count += 1
        else:
            self.records.append(ThreadRecord(thread.name, thread.ident))

    @property
    def total(self) -> int:
        return sum(record.count for record in self.records)

    def __str__(self) -> str:
        lines = [f"satisfied {times(self.total)}: {self.expectation!r}"]
        lines.extend(f"\t{record}" for record in self.records)
        return "\n".join(lines)


class StoryTracker:
    """Reports of the expectations one processor went through."""

    __slots__ = ("_reports",)

    def __init__(self) -> None:
        self._reports: list[ExpectationReport] = []

    def add_report(self, expectation: Expectation) -> None:
        self._reports.append(ExpectationReport(expectation))

    def current_report(self) -> ExpectationReport | None:
        return self._reports[-1] if self._reports else None

    def clear(self) -> None:
        self._reports.clear()

    def __len__(self) -> int:
        return len(self._reports)

    def __iter__(self) -> Iterator[ExpectationReport]:
        return iter(list(self._reports))

    def __str__(self) -> str:
        if not self._reports:
            return ""
        return "".join(f"{report}\n" for report in self._reports)


class StoryTrack:
    """All trackers of a story, in registration order."""

    __slots__ = ("_lock", "_trackers")

    def __init__(self) -> None:
        self._trackers: list[StoryTracker] = []
        self._lock = threading.Lock()

    def register(self, tracker: StoryTracker) -> None:
        with self._lock:
            if not any(known is tracker for known in self._trackers):
                self._trackers.append(tracker)

    def clear(self) -> None:
        with self._lock:
            self._trackers.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(tracker) for tracker in self._trackers)

    def describe(self) -> str:
        """Human-readable trace; empty when nothing was tracked."""
        with self._lock:
            body = "".join(str(tracker) for tracker in self._trackers)
        return f"what happened up to now:\n{body}" if body else ""

    def __str__(self) -> str:
        return self.describe()
