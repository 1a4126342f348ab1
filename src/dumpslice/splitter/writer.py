"""File output handling for split dumps."""

from __future__ import annotations

import glob
import re
from pathlib import Path
from typing import IO, Protocol

from ..utils.exceptions import OutputDirectoryError, OutputWriteError
from ..utils.logging_config import get_logger
from .manifest import ManifestBuilder
from .reaper import StaleFileReaper
from .targets import SQL_SUFFIX, OutputTarget, WriteMode

logger = get_logger(__name__)

ENCODING = "utf-8"
# Dumps may carry bytes that are not valid UTF-8 inside string literals;
# surrogateescape writes them back unchanged.
ENCODING_ERRORS = "surrogateescape"

CHUNK_SEQUENCE = re.compile(r"\d{10}")


class FileSink(Protocol):
    """Physical write operations used by the splitter."""

    def truncate(self, path: Path, text: str = "") -> None: ...

    def append(self, path: Path, text: str) -> None: ...

    def close(self) -> None: ...


class LocalFileSink:
    """
    Writes to the local filesystem.

    Keeps at most one file open at a time. Successive appends to the same
    path reuse the handle; switching paths closes the previous file.
    """

    def __init__(self) -> None:
        self._path: Path | None = None
        self._handle: IO[str] | None = None

    def truncate(self, path: Path, text: str = "") -> None:
        self._open(path, "w")
        self._write(text)

    def append(self, path: Path, text: str) -> None:
        if self._path != path or self._handle is None:
            self._open(path, "a")
        self._write(text)

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
        self._handle = None
        self._path = None

    def _open(self, path: Path, mode: str) -> None:
        self.close()
        self._handle = open(
            path, mode, encoding=ENCODING, errors=ENCODING_ERRORS, newline=""
        )
        self._path = path

    def _write(self, text: str) -> None:
        if text and self._handle is not None:
            self._handle.write(text)


def check_output_directory(directory: Path) -> None:
    """
    Fail early when the output directory path is taken by a regular file.

    Raises:
        OutputDirectoryError: If the path exists and is not a directory
    """
    if directory.exists() and not directory.is_dir():
        raise OutputDirectoryError(f"'{directory}' exists and it is not a directory")


def prepare_output_directory(directory: Path) -> bool:
    """
    Make sure the output directory exists.

    Args:
        directory: Directory that will hold the per-table files

    Returns:
        True if the directory had to be created

    Raises:
        OutputDirectoryError: If the path exists and is not a directory
    """
    check_output_directory(directory)
    if directory.is_dir():
        return False

    try:
        directory.mkdir(parents=True)
    except OSError as e:
        raise OutputDirectoryError(
            f"Could not create directory {directory}: {e}"
        ) from e
    logger.info(f"Created output directory {directory}")
    return True


class OutputFileManager:
    """
    Owns the physical files behind output targets.

    Every target that is activated, registered or written is marked as
    touched, claimed in the stale file set and recorded in the manifest.
    Two targets may never share a file name.
    """

    def __init__(
        self,
        directory: Path,
        sink: FileSink,
        manifest: ManifestBuilder,
        stale_files: StaleFileReaper | None = None,
    ) -> None:
        self.directory = Path(directory)
        self.sink = sink
        self.manifest = manifest
        self.stale_files = stale_files
        self._touched: dict[OutputTarget, WriteMode | None] = {}
        self._owners: dict[str, OutputTarget] = {}

    @property
    def touched(self) -> list[OutputTarget]:
        """Targets touched this run, in first-touch order."""
        return list(self._touched)

    def path_for(self, target: OutputTarget) -> Path:
        return self.directory / target.filename

    def is_touched(self, target: OutputTarget) -> bool:
        return target in self._touched

    def register(self, target: OutputTarget) -> None:
        """Claim a target and add it to the manifest without writing to it."""
        self._touch(target, None)

    def activate(
        self, target: OutputTarget, mode: WriteMode, text: str = ""
    ) -> None:
        """
        Start writing a target.

        Args:
            target: Target to activate
            mode: TRUNCATE discards existing content, APPEND keeps it
            text: Written right after the file is opened

        Raises:
            OutputWriteError: If the file cannot be written
        """
        self._touch(target, mode)
        path = self.path_for(target)
        logger.debug(f"Activating {path} ({mode.value})")
        try:
            if mode == WriteMode.TRUNCATE:
                self.sink.truncate(path, text)
            elif text:
                self.sink.append(path, text)
        except OSError as e:
            raise OutputWriteError(f"Failed to write to {path}: {e}") from e

    def write(self, target: OutputTarget, text: str) -> None:
        """
        Append text to an activated target.

        Raises:
            OutputWriteError: If the target was never activated this run or
                the write fails
        """
        if self._touched.get(target) is None:
            raise OutputWriteError(f"Target {target} has not been activated")
        path = self.path_for(target)
        try:
            self.sink.append(path, text)
        except OSError as e:
            raise OutputWriteError(f"Failed to write to {path}: {e}") from e

    def existing_chunks(self, table: str) -> list[OutputTarget]:
        """
        Find the data chunks of a table already present in the directory.

        Returns:
            Chunk targets in sequence order
        """
        prefix = f"{table}."
        suffix = f".data{SQL_SUFFIX}"
        pattern = f"{glob.escape(prefix)}*{suffix}"
        chunks = []
        for path in self.directory.glob(pattern):
            sequence = path.name[len(prefix) : -len(suffix)]
            if path.is_file() and CHUNK_SEQUENCE.fullmatch(sequence):
                chunks.append(OutputTarget.data_chunk(table, int(sequence)))
        return sorted(chunks, key=lambda chunk: chunk.sequence or 0)

    def close(self) -> None:
        self.sink.close()

    def _touch(self, target: OutputTarget, mode: WriteMode | None) -> None:
        owner = self._owners.setdefault(target.filename, target)
        if owner != target:
            raise OutputWriteError(
                f"{target.kind.value} file of table `{target.table}` would "
                f"overwrite {owner.filename}"
            )
        if self._touched.get(target) is None:
            self._touched[target] = mode
        if self.stale_files is not None:
            self.stale_files.claim(self.path_for(target))
        self.manifest.record(target)
