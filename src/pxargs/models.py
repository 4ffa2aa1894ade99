"""Domain models for invocations and their outcomes."""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, slots=True)
class Invocation:
    """One fully-built argument vector for a single command execution."""

    index: int
    argv: tuple[str, ...]

    @property
    def program(self) -> str:
        return self.argv[0]

    def display(self) -> str:
        """Render the argument vector for log lines."""

        return shlex.join(self.argv)


class OutcomeStatus(str, Enum):
    """Whether the command produced output or failed."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class InvocationOutcome:
    """Captured result of one invocation.

    ``payload`` carries the standard output of a successful run or the
    standard error (or a synthesized description) of a failed one; the two
    channels are never combined.
    """

    invocation: Invocation
    status: OutcomeStatus
    payload: bytes
    exit_code: int | None = None

    @classmethod
    def success(cls, invocation: Invocation, stdout: bytes) -> InvocationOutcome:
        return cls(
            invocation=invocation,
            status=OutcomeStatus.SUCCEEDED,
            payload=stdout,
            exit_code=0,
        )

    @classmethod
    def failure(
        cls,
        invocation: Invocation,
        stderr: bytes,
        *,
        exit_code: int | None,
    ) -> InvocationOutcome:
        return cls(
            invocation=invocation,
            status=OutcomeStatus.FAILED,
            payload=stderr,
            exit_code=exit_code,
        )

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED


@dataclass(slots=True)
class RunSummary:
    """Aggregate counters for one run."""

    tokens: int = 0
    emitted: int = 0
    executed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: bool = False
    first_failure: InvocationOutcome | None = None

    def record(self, outcome: InvocationOutcome) -> None:
        self.executed += 1
        if outcome.ok:
            self.succeeded += 1
            return
        self.failed += 1
        if self.first_failure is None:
            self.first_failure = outcome

    def exit_code(self, *, exit_on_error: bool) -> int:
        if exit_on_error and self.failed:
            return 1
        return 0
