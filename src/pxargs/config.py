"""Run configuration and environment defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum


class Delimiter(str, Enum):
    """Separator between input tokens."""

    NEWLINE = "\n"
    NUL = "\0"

    @property
    def byte(self) -> bytes:
        return self.value.encode("ascii")


class RunMode(str, Enum):
    """How the run reacts to a failed invocation."""

    CONTINUE_ON_ERROR = "continue_on_error"
    EXIT_ON_ERROR = "exit_on_error"


@dataclass(frozen=True, slots=True)
class RunConfiguration:
    """Immutable settings for one run, built once from command-line input."""

    command: tuple[str, ...]
    delimiter: Delimiter = Delimiter.NEWLINE
    max_procs: int = 1
    max_args: int = 1
    replace: str | None = None
    mode: RunMode = RunMode.CONTINUE_ON_ERROR
    verbose: bool = False

    @classmethod
    def build(  # noqa: PLR0913
        cls,
        *,
        command: tuple[str, ...] | list[str],
        null_delimited: bool = False,
        max_procs: int = 1,
        max_args: int = 1,
        replace: str | None = None,
        exit_on_error: bool = False,
        verbose: bool = False,
    ) -> RunConfiguration:
        """Validate raw option values and return a normalised configuration.

        A replacement token forces one token per invocation, as classic xargs
        does for ``-I``.
        """

        command = tuple(command)
        if not command:
            raise ValueError("No command specified.")
        if max_procs < 1:
            raise ValueError(f"max-procs must be >= 1, got {max_procs}.")
        if max_args < 1:
            raise ValueError(f"max-args must be >= 1, got {max_args}.")
        if replace is not None and not replace:
            raise ValueError("Replacement token must not be empty.")

        return cls(
            command=command,
            delimiter=Delimiter.NUL if null_delimited else Delimiter.NEWLINE,
            max_procs=max_procs,
            max_args=1 if replace is not None else max_args,
            replace=replace,
            mode=RunMode.EXIT_ON_ERROR if exit_on_error else RunMode.CONTINUE_ON_ERROR,
            verbose=verbose,
        )

    @property
    def exit_on_error(self) -> bool:
        return self.mode is RunMode.EXIT_ON_ERROR


@dataclass(slots=True)
class Settings:
    """Process-wide defaults that command-line flags override."""

    default_max_procs: int = 1
    log_level: int = logging.WARNING

    @classmethod
    def from_env(cls, *, max_procs: int | None = None) -> Settings:
        """Load defaults from ``PXARGS_*`` environment variables.

        An explicit ``max_procs`` wins and ``PXARGS_MAX_PROCS`` is not read.
        """

        return cls(
            default_max_procs=(
                max_procs
                if max_procs is not None
                else _env_positive_int("PXARGS_MAX_PROCS", default=1)
            ),
            log_level=_env_log_level("PXARGS_LOG_LEVEL", default=logging.WARNING),
        )


def _env_positive_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {raw!r}") from error
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got {value}.")
    return value


def _env_log_level(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    level = logging.getLevelName(raw.upper())
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level for {name}: {raw!r}")
    return level
