"""Subprocess-based invocation runner."""

from __future__ import annotations

import signal
import subprocess

from pxargs.models import Invocation, InvocationOutcome

EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127


class SubprocessRunner:
    """Run each invocation as a child process with an empty standard input."""

    def run(self, invocation: Invocation) -> InvocationOutcome:
        try:
            completed = subprocess.run(  # noqa: S603
                list(invocation.argv),
                stdin=subprocess.DEVNULL,
                capture_output=True,
                check=False,
            )
        except FileNotFoundError:
            return _spawn_failure(invocation, "command not found", EXIT_NOT_FOUND)
        except PermissionError:
            return _spawn_failure(invocation, "permission denied", EXIT_NOT_EXECUTABLE)
        except OSError as error:
            return _spawn_failure(
                invocation,
                f"failed to start: {error.strerror or error}",
                EXIT_NOT_EXECUTABLE,
            )

        if completed.returncode == 0:
            return InvocationOutcome.success(invocation, completed.stdout)

        stderr = completed.stderr
        if not stderr.strip():
            stderr = _describe(invocation, _exit_reason(completed.returncode))
        return InvocationOutcome.failure(invocation, stderr, exit_code=completed.returncode)


def _spawn_failure(invocation: Invocation, reason: str, exit_code: int) -> InvocationOutcome:
    return InvocationOutcome.failure(
        invocation,
        _describe(invocation, reason),
        exit_code=exit_code,
    )


def _exit_reason(returncode: int) -> str:
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = f"signal {-returncode}"
        return f"terminated by {name}"
    return f"exited with status {returncode}"


def _describe(invocation: Invocation, reason: str) -> bytes:
    return f"{invocation.program}: {reason}".encode("utf-8", errors="surrogateescape")
