"""Group input tokens into command invocations."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from pxargs.config import RunConfiguration
from pxargs.models import Invocation


def iter_invocations(
    tokens: Iterable[str],
    config: RunConfiguration,
) -> Iterator[Invocation]:
    """Yield invocations for ``tokens`` using the batch policy of ``config``."""

    if config.max_args == 1:
        return _single(tokens, config.command, config.replace)
    return _grouped(tokens, config.command, config.max_args)


def substitute(template: tuple[str, ...], replace: str, token: str) -> tuple[str, ...]:
    """Replace every occurrence of ``replace`` in every template argument."""

    return tuple(arg.replace(replace, token) if replace in arg else arg for arg in template)


def _single(
    tokens: Iterable[str],
    template: tuple[str, ...],
    replace: str | None,
) -> Iterator[Invocation]:
    for index, token in enumerate(tokens):
        if replace is None:
            argv = (*template, token)
        else:
            argv = substitute(template, replace, token)
        yield Invocation(index=index, argv=argv)


def _grouped(
    tokens: Iterable[str],
    template: tuple[str, ...],
    max_args: int,
) -> Iterator[Invocation]:
    index = 0
    group: list[str] = []
    for token in tokens:
        group.append(token)
        if len(group) == max_args:
            yield Invocation(index=index, argv=(*template, *group))
            index += 1
            group = []

    if group:
        yield Invocation(index=index, argv=(*template, *group))
