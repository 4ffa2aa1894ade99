"""Shared test fixtures."""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Callable

import pytest

from pxargs.models import Invocation, InvocationOutcome


def python_command(code: str) -> tuple[str, ...]:
    """Command template running ``code`` with the current interpreter."""

    return (sys.executable, "-c", code)


class RecordingRunner:
    """In-process runner that records what ran and how many ran at once."""

    def __init__(
        self,
        *,
        fail_when: Callable[[Invocation], bool] | None = None,
        delay_seconds: float | Callable[[Invocation], float] = 0.0,
    ) -> None:
        self.fail_when = fail_when or (lambda _invocation: False)
        self.delay_seconds = delay_seconds
        self.executed: list[Invocation] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def run(self, invocation: Invocation) -> InvocationOutcome:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.executed.append(invocation)
        try:
            delay = (
                self.delay_seconds(invocation)
                if callable(self.delay_seconds)
                else self.delay_seconds
            )
            if delay:
                time.sleep(delay)
            text = " ".join(invocation.argv[1:]).encode()
            if self.fail_when(invocation):
                return InvocationOutcome.failure(invocation, b"failed: " + text, exit_code=1)
            return InvocationOutcome.success(invocation, text)
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture()
def make_runner() -> type[RecordingRunner]:
    return RecordingRunner


@pytest.fixture()
def python_cmd() -> Callable[[str], tuple[str, ...]]:
    return python_command
