"""Single-pass routing of dump lines to output files."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..utils.exceptions import InputReadError
from ..utils.logging_config import get_logger
from .chunker import ChunkManager
from .classifier import ROUTINES_BANNER, Event, EventKind, classify
from .targets import OutputTarget, Table, TargetKind, WriteMode
from .writer import OutputFileManager

logger = get_logger(__name__)

HEAD_MARKER = "-- \n"

_DROPPED = frozenset(
    {
        EventKind.IGNORABLE_COMMENT,
        EventKind.HEADER_BOILERPLATE,
        EventKind.DUMP_COMPLETED,
    }
)


@dataclass
class RouterStats:
    """Counters collected during a pass."""

    lines_read: int = 0
    lines_dropped: int = 0
    tables: list[str] = field(default_factory=list)

    @property
    def lines_written(self) -> int:
        return self.lines_read - self.lines_dropped


class StreamRouter:
    """
    Drives the split as a state machine over the dump lines.

    ``active`` is the only cursor: every content line goes to the target
    activated by the most recent banner.
    """

    def __init__(
        self,
        files: OutputFileManager,
        chunker: ChunkManager,
        structure_only: bool = False,
    ) -> None:
        self.files = files
        self.chunker = chunker
        self.structure_only = structure_only
        self.tables: dict[str, Table] = {}
        self.active = OutputTarget.head()
        self.started = False
        self.data_table: Table | None = None
        self.structure_table: Table | None = None
        self.header_table = Table(OutputTarget.head().basename)
        self.stats = RouterStats()

    @property
    def in_header(self) -> bool:
        return self.active.kind == TargetKind.HEAD

    def start(self) -> None:
        """Truncate the head file and make it the active target."""
        self._activate(OutputTarget.head(), HEAD_MARKER)
        self.started = True

    def run(self, lines: Iterable[str]) -> RouterStats:
        """Route every line of the dump."""
        if not self.started:
            self.start()
        for line in lines:
            self.step(line)
        logger.info(
            f"Routed {self.stats.lines_read:,} lines for "
            f"{len(self.stats.tables)} tables ({self.stats.lines_dropped:,} dropped)"
        )
        return self.stats

    def step(self, line: str) -> OutputTarget:
        """
        Route a single line.

        Returns:
            The active target after the line was handled
        """
        if not self.started:
            self.start()
        self.stats.lines_read += 1

        event = classify(line, in_header=self.in_header)
        if event.kind in _DROPPED:
            self.stats.lines_dropped += 1
        elif event.kind == EventKind.TABLE_STRUCTURE_START:
            self._on_structure_start(event)
        elif event.kind == EventKind.DATA_DUMP_START:
            self._on_data_start(event)
        elif event.kind == EventKind.AUX_BLOCK_START:
            self._on_aux_start(event)
        elif event.kind == EventKind.ROUTINES_START:
            self._activate(OutputTarget.tail(), ROUTINES_BANNER)
        else:
            self._on_content(event.line)

        return self.active

    def _table(self, name: str) -> Table:
        table = self.tables.get(name)
        if table is None:
            table = Table(name)
            self.tables[name] = table
            self.stats.tables.append(name)
        return table

    def _banner_table(self, event: Event) -> Table:
        if event.table is None:
            raise InputReadError(f"No table name in banner: {event.line.rstrip()}")
        return self._table(event.table)

    def _activate(self, target: OutputTarget, text: str) -> None:
        self.files.activate(target, WriteMode.TRUNCATE, text)
        self.active = target

    def _keep_data(self, table: Table) -> OutputTarget:
        """Reference a table's existing data files without rewriting them."""
        target = OutputTarget.data(table.name)
        self.files.register(target)
        for chunk in self.files.existing_chunks(table.name):
            self.files.register(chunk)
        return target

    def _on_structure_start(self, event: Event) -> None:
        table = self._banner_table(event)
        self.structure_table = table
        logger.info(f"Table {table.name}")
        self._activate(OutputTarget.structure(table.name), event.line)
        if self.structure_only:
            self._keep_data(table)

    def _on_data_start(self, event: Event) -> None:
        table = self._banner_table(event)
        self.data_table = table
        if self.structure_only:
            self.active = self._keep_data(table)
            self.stats.lines_dropped += 1
        else:
            self._activate(OutputTarget.data(table.name), event.line)

    def _on_aux_start(self, event: Event) -> None:
        table = self.structure_table or self.header_table
        table.aux_block_count += 1
        self._activate(OutputTarget.aux(table.name, table.aux_block_count), event.line)

    def _on_content(self, line: str) -> None:
        if not self.active.is_data:
            self.files.write(self.active, line)
        elif self.structure_only or self.data_table is None:
            self.stats.lines_dropped += 1
        else:
            self.active = self.chunker.route(self.data_table, self.active, line)
