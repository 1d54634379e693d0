"""Unit tests for the non-reentrant guard and transaction rollback."""
from __future__ import annotations

import threading

import pytest

from collateral_engine.engine.execution import NonReentrantGuard, Transaction, is_journaled
from collateral_engine.errors import ReentrantCall


class Box:
    def __init__(self, value: int) -> None:
        self.value = value

    def snapshot(self) -> int:
        return self.value

    def restore(self, state: int) -> None:
        self.value = state


class TestNonReentrantGuard:
    def test_nested_entry_rejected(self) -> None:
        guard = NonReentrantGuard()
        with guard.hold("outer"):
            assert guard.locked
            with pytest.raises(ReentrantCall):
                with guard.hold("inner"):
                    pass
        assert not guard.locked

    def test_released_on_exception(self) -> None:
        guard = NonReentrantGuard()
        with pytest.raises(RuntimeError):
            with guard.hold("op"):
                raise RuntimeError("fail")
        with guard.hold("op"):
            pass

    def test_other_thread_waits_instead_of_failing(self) -> None:
        guard = NonReentrantGuard()
        outcome: list[str] = []

        def worker() -> None:
            try:
                with guard.hold("worker"):
                    outcome.append("worker ran")
            except ReentrantCall:
                outcome.append("rejected")

        with guard.hold("main"):
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join(timeout=0.2)
            assert thread.is_alive()
            assert outcome == []

        thread.join(timeout=5)
        assert outcome == ["worker ran"]
        assert not guard.locked


class TestTransaction:
    def test_commit_keeps_changes(self) -> None:
        a, b = Box(1), Box(2)
        with Transaction([a, b]):
            a.value = 10
            b.value = 20
        assert (a.value, b.value) == (10, 20)

    def test_rollback_restores_all(self) -> None:
        a, b = Box(1), Box(2)
        with pytest.raises(ValueError):
            with Transaction([a, b], name="t"):
                a.value = 10
                b.value = 20
                raise ValueError("abort")
        assert (a.value, b.value) == (1, 2)

    def test_is_journaled(self) -> None:
        assert is_journaled(Box(0))
        assert not is_journaled(object())
