"""Split a byte stream into delimiter-separated tokens."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import BinaryIO

from pxargs.config import Delimiter

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


def iter_tokens(
    stream: BinaryIO,
    delimiter: Delimiter = Delimiter.NEWLINE,
    *,
    chunk_size: int = READ_CHUNK_SIZE,
) -> Iterator[str]:
    """Yield tokens lazily as delimiters arrive on ``stream``.

    Empty tokens between adjacent delimiters are kept. Trailing bytes after the
    last delimiter form a final token. A read error ends the sequence; tokens
    already yielded stay valid.
    """

    separator = delimiter.byte
    # read1 returns what is available instead of waiting for a full chunk
    read = getattr(stream, "read1", stream.read)
    pending = bytearray()

    while True:
        try:
            chunk = read(chunk_size)
        except OSError as error:
            logger.warning("Input read failed, treating as end of input: %s", error)
            break
        if not chunk:
            break

        # the delimiter is one byte, so only the new bytes can contain it
        search_from = len(pending)
        pending += chunk
        start = 0
        end = pending.find(separator, search_from)
        while end != -1:
            yield _decode(pending[start:end])
            start = end + 1
            end = pending.find(separator, start)
        del pending[:start]

    if pending:
        yield _decode(pending)


def _decode(raw: bytes | bytearray) -> str:
    return raw.decode("utf-8", errors="surrogateescape")
