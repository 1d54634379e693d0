"""Execution guards: non-reentrancy and all-or-nothing transactions."""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Protocol

from ..errors import ReentrantCall

logger = logging.getLogger(__name__)


class Journaled(Protocol):
    """State holder that can be captured and rolled back."""

    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


def is_journaled(obj: object) -> bool:
    return callable(getattr(obj, "snapshot", None)) and callable(
        getattr(obj, "restore", None)
    )


class NonReentrantGuard:
    """Exclusive lock held for the duration of a mutating operation.

    Re-entry from the thread that holds the lock fails immediately with
    ``ReentrantCall`` instead of deadlocking, so a token callback that calls
    back into the engine is rejected. Other threads wait for the lock and
    then run their operation.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: int | None = None
        self._operation: str | None = None

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self, operation: str) -> Iterator[None]:
        if self._owner == threading.get_ident():
            logger.warning(
                "Rejected reentrant call to %s during %s", operation, self._operation
            )
            raise ReentrantCall(
                f"{operation} called while {self._operation} is in progress"
            )
        self._lock.acquire()
        self._owner = threading.get_ident()
        self._operation = operation
        try:
            yield
        finally:
            self._operation = None
            self._owner = None
            self._lock.release()


class Transaction:
    """Snapshot participants on entry; restore all of them if the body raises."""

    def __init__(self, participants: Iterable[Journaled], name: str = "tx") -> None:
        self.participants = list(participants)
        self.name = name
        self._snapshots: list[Any] = []

    def __enter__(self) -> "Transaction":
        self._snapshots = [p.snapshot() for p in self.participants]
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self._rollback()
            logger.debug("Rolled back %s after %s", self.name, exc_type.__name__)
        return False

    def _rollback(self) -> None:
        for participant, state in zip(self.participants, self._snapshots):
            participant.restore(state)
