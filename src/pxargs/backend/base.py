"""Runner interface used by the worker pool."""

from __future__ import annotations

from typing import Protocol

from pxargs.models import Invocation, InvocationOutcome


class InvocationRunner(Protocol):
    """Protocol implemented by invocation runners."""

    def run(self, invocation: Invocation) -> InvocationOutcome:
        """Execute one invocation to completion and return its outcome.

        Implementations report failures through the outcome and do not raise.
        """
