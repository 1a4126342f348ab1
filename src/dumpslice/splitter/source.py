"""Dump input: a named file, a gzipped file or standard input."""

from __future__ import annotations

import gzip
import io
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from ..utils.exceptions import InputReadError
from ..utils.logging_config import get_logger
from .writer import ENCODING, ENCODING_ERRORS

logger = get_logger(__name__)


@contextmanager
def open_dump(path: str | Path | None = None) -> Iterator[Iterator[str]]:
    """
    Open a dump for line-by-line reading.

    Line terminators are preserved as they appear in the input.

    Args:
        path: Dump file path. ``None`` or ``"-"`` reads standard input.
            Paths ending in ``.gz`` are decompressed.

    Yields:
        Iterator over the dump lines

    Raises:
        InputReadError: If the file cannot be opened
    """
    if path is None or str(path) == "-":
        logger.debug("Reading dump from stdin")
        stream = io.TextIOWrapper(
            sys.stdin.buffer, encoding=ENCODING, errors=ENCODING_ERRORS, newline=""
        )
        try:
            yield iter(stream)
        finally:
            stream.detach()
        return

    path = Path(path)
    logger.debug(f"Reading dump from {path}")
    try:
        if path.suffix == ".gz":
            handle = gzip.open(
                path, "rt", encoding=ENCODING, errors=ENCODING_ERRORS, newline=""
            )
        else:
            handle = open(path, encoding=ENCODING, errors=ENCODING_ERRORS, newline="")
    except OSError as e:
        raise InputReadError(f"Could not read {path}: {e}") from e

    with handle:
        yield iter(handle)
