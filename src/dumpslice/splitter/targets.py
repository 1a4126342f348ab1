"""Data models for output targets and per-table counters."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

SQL_SUFFIX = ".sql"


class TargetKind(Enum):
    """Kinds of output file produced by a split."""

    HEAD = "head"
    TAIL = "tail"
    STRUCTURE = "structure"
    DATA = "data"
    DATA_CHUNK = "data_chunk"
    AUX = "aux"


class WriteMode(Enum):
    """How an output file is opened when a target becomes active."""

    TRUNCATE = "truncate"
    APPEND = "append"


@dataclass(frozen=True)
class OutputTarget:
    """
    Logical identity of one output file.

    Each target maps to exactly one file name inside the output directory.
    """

    kind: TargetKind
    table: str | None = None
    sequence: int | None = None

    @classmethod
    def head(cls) -> OutputTarget:
        return cls(TargetKind.HEAD)

    @classmethod
    def tail(cls) -> OutputTarget:
        return cls(TargetKind.TAIL)

    @classmethod
    def structure(cls, table: str) -> OutputTarget:
        return cls(TargetKind.STRUCTURE, table)

    @classmethod
    def data(cls, table: str) -> OutputTarget:
        return cls(TargetKind.DATA, table)

    @classmethod
    def data_chunk(cls, table: str, sequence: int) -> OutputTarget:
        return cls(TargetKind.DATA_CHUNK, table, sequence)

    @classmethod
    def aux(cls, table: str, number: int) -> OutputTarget:
        return cls(TargetKind.AUX, table, number)

    @property
    def is_data(self) -> bool:
        """True for the base data file and its sequence-suffixed chunks."""
        return self.kind in (TargetKind.DATA, TargetKind.DATA_CHUNK)

    @property
    def basename(self) -> str:
        """File name without the .sql suffix."""
        if self.kind == TargetKind.HEAD:
            return "head"
        if self.kind == TargetKind.TAIL:
            return "tail"
        if self.kind == TargetKind.STRUCTURE:
            return f"{self.table}"
        if self.kind == TargetKind.DATA:
            return f"{self.table}.data"
        if self.kind == TargetKind.DATA_CHUNK:
            return f"{self.table}.{self.sequence:010d}.data"
        return f"{self.table}.aux.{self.sequence}"

    @property
    def filename(self) -> str:
        return self.basename + SQL_SUFFIX

    def __str__(self) -> str:
        return self.filename


@dataclass
class Table:
    """Per-table counters kept for the duration of a run."""

    name: str
    aux_block_count: int = 0
    insert_statement_count: int = 0
