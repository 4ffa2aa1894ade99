"""Invocation runners."""

from pxargs.backend.base import InvocationRunner
from pxargs.backend.subprocess_runner import SubprocessRunner

__all__ = ["InvocationRunner", "SubprocessRunner"]
