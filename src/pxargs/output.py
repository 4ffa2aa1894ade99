"""Write outcomes to the process's output streams."""

from __future__ import annotations

import threading
from typing import BinaryIO

from pxargs.models import InvocationOutcome


class OutputMultiplexer:
    """Route successful output to ``stdout`` and failures to ``stderr``.

    Each outcome is written and flushed as a single unit ending in exactly one
    newline.
    """

    def __init__(self, stdout: BinaryIO, stderr: BinaryIO) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self._lock = threading.Lock()

    def emit(self, outcome: InvocationOutcome) -> None:
        stream = self.stdout if outcome.ok else self.stderr
        data = normalize_line(outcome.payload)
        with self._lock:
            stream.write(data)
            stream.flush()


def normalize_line(payload: bytes) -> bytes:
    return payload.removesuffix(b"\n") + b"\n"
