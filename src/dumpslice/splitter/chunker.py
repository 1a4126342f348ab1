"""Rolls large data sections over into numbered chunk files."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..config import DEFAULT_CHUNK_SIZE
from ..utils.logging_config import get_logger
from .classifier import is_insert_statement
from .targets import OutputTarget, Table, WriteMode

if TYPE_CHECKING:
    from .writer import OutputFileManager

logger = get_logger(__name__)


class ChunkManager:
    """
    Splits a table's data into files of at most ``chunk_size`` inserts.

    The first chunk is the table's base data file. Each later chunk is named
    after the number of insert statements written before it.
    """

    def __init__(
        self, files: OutputFileManager, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> None:
        self.files = files
        self.chunk_size = chunk_size

    def route(self, table: Table, current: OutputTarget, line: str) -> OutputTarget:
        """
        Write one data line, rolling over to a new chunk when needed.

        Args:
            table: Table owning the data section
            current: Data target currently receiving lines
            line: Line to write

        Returns:
            Target the line was written to, which becomes the active target
        """
        if not is_insert_statement(line):
            self.files.write(current, line)
            return current

        emitted = table.insert_statement_count
        table.insert_statement_count += 1
        if emitted == 0 or emitted % self.chunk_size != 0:
            self.files.write(current, line)
            return current

        # Trailing blank line marks the end of the last statement for
        # line-oriented post-processing.
        self.files.write(current, "\n")
        chunk = OutputTarget.data_chunk(table.name, emitted)
        self.files.activate(chunk, WriteMode.TRUNCATE, line)
        logger.debug(f"Table {table.name}: rolled over to {chunk.filename}")
        return chunk
