"""First-failure-wins recorder for a story.

While enabled, the guard keeps the first matching failure recorded by any
actor and ignores the following ones.  At story end the recorded failure is
raised again, so every actor reports the same failure.
"""

from __future__ import annotations

import logging
import threading

from storymock.exceptions import ExpectationError

log = logging.getLogger(__name__)


class FailureGuard:
    """Single-slot, thread-safe failure recorder."""

    __slots__ = ("_enabled", "_failure", "_lock")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._enabled = False
        self._failure: ExpectationError | None = None

    def enable(self) -> None:
        """Clear the slot and start recording."""
        with self._lock:
            self._enabled = True
            self._failure = None

    def disable(self) -> None:
        """Stop recording and clear the slot."""
        with self._lock:
            self._enabled = False
            self._failure = None

    @property
    def enabled(self) -> bool:
        with self._lock:
            return self._enabled

    def record(self, failure: ExpectationError) -> bool:
        """Record *failure* unless another one is already there.

        Returns ``True`` iff *failure* is now the recorded failure.
        """
        with self._lock:
            if not self._enabled:
                return False
            if self._failure is not None:
                if self._failure is not failure:
                    log.debug("muted %s: %s", type(failure).__name__, failure.reason)
                return self._failure is failure
            self._failure = failure
        log.warning("story failure recorded: %s", failure.reason)
        return True

    @property
    def failure(self) -> ExpectationError | None:
        with self._lock:
            return self._failure

    def raise_if_present(self) -> None:
        failure = self.failure
        if failure is not None:
            raise failure
