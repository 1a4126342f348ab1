"""Line classification for mysqldump output.

Each line of a dump is mapped to exactly one event by matching a fixed,
ordered list of rules. The first matching rule wins; a line matching no rule
is ordinary content.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

ROUTINES_BANNER = "-- Dumping routines for database\n"
INSERT_PREFIX = "INSERT INTO"


class EventKind(Enum):
    """Classification results for a single line."""

    IGNORABLE_COMMENT = "ignorable_comment"
    HEADER_BOILERPLATE = "header_boilerplate"
    TABLE_STRUCTURE_START = "table_structure_start"
    DATA_DUMP_START = "data_dump_start"
    AUX_BLOCK_START = "aux_block_start"
    ROUTINES_START = "routines_start"
    DUMP_COMPLETED = "dump_completed"
    CONTENT = "content"


@dataclass(frozen=True)
class Event:
    """A classified line. ``table`` is set for structure and data banners."""

    kind: EventKind
    line: str
    table: str | None = None


@dataclass(frozen=True)
class ClassificationRule:
    """
    One entry of the ordered rule list.

    Attributes:
        kind: Event produced when the rule matches
        pattern: Regex matched against the start of the line
        header_only: Rule only applies while still in the dump header
        captures_table: First regex group holds a table name
    """

    kind: EventKind
    pattern: re.Pattern[str]
    header_only: bool = False
    captures_table: bool = False

    def match(self, line: str, in_header: bool) -> re.Match[str] | None:
        if self.header_only and not in_header:
            return None
        return self.pattern.match(line)


# Banners mysqldump writes before the first table; they name the source
# host and database and are not replayed.
_HEADER_BOILERPLATE = re.compile(
    r"-- MySQL dump"
    r"|-- Host:"
    r"|-- Server version"
    r"|-- Current Database: `[^`]+`"
    r"|CREATE DATABASE .*`[^`]+`"
    r"|USE `[^`]+`"
)

RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(EventKind.IGNORABLE_COMMENT, re.compile(r"--\r?\n?\Z")),
    ClassificationRule(
        EventKind.HEADER_BOILERPLATE, _HEADER_BOILERPLATE, header_only=True
    ),
    ClassificationRule(
        EventKind.TABLE_STRUCTURE_START,
        re.compile(r"-- Table structure for table `([^`]+)`"),
        captures_table=True,
    ),
    ClassificationRule(
        EventKind.DATA_DUMP_START,
        re.compile(r"-- Dumping data for table `([^`]+)`"),
        captures_table=True,
    ),
    ClassificationRule(
        EventKind.AUX_BLOCK_START, re.compile(r"/\*![0-9]+ SET @SAVE_SQL_MODE")
    ),
    ClassificationRule(
        EventKind.ROUTINES_START, re.compile(r"-- Dumping routines for database")
    ),
    ClassificationRule(EventKind.DUMP_COMPLETED, re.compile(r"-- Dump completed on ")),
)


def classify(line: str, in_header: bool = False) -> Event:
    """
    Classify one dump line.

    Args:
        line: Line text including its terminator
        in_header: True while output still goes to the head file

    Returns:
        The event for the first matching rule, or a CONTENT event
    """
    for rule in RULES:
        match = rule.match(line, in_header)
        if match is None:
            continue
        table = match.group(1) if rule.captures_table else None
        return Event(rule.kind, line, table)
    return Event(EventKind.CONTENT, line)


def is_insert_statement(line: str) -> bool:
    """Whether the line starts a row-insert statement."""
    return line.startswith(INSERT_PREFIX)

