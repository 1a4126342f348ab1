"""Detection and removal of output files left over from earlier runs."""

from __future__ import annotations

import glob
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from ..utils.exceptions import OutputWriteError
from ..utils.logging_config import get_logger
from .targets import SQL_SUFFIX

logger = get_logger(__name__)

ConfirmCallback = Callable[[Path], bool]


class ReaperState(Enum):
    """Lifecycle of a reaper within one run."""

    IDLE = "idle"
    SNAPSHOTTING = "snapshotting"
    CONFIRMING = "confirming"
    ABORTED = "aborted"
    REAPING = "reaping"
    DONE = "done"


class StaleFileReaper:
    """
    Tracks which existing output files were rewritten during a run.

    Files present before the run (restricted to the table filter) start out
    unclaimed. Any file still unclaimed after the run is deleted.
    """

    def __init__(
        self,
        directory: Path,
        table_filter: str | None = None,
        force: bool = False,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        """
        Initialize reaper.

        Args:
            directory: Output directory to scan
            table_filter: Only consider files whose names start with this
            force: Skip confirmation
            confirm: Asked with the directory before anything is deleted
        """
        self.directory = Path(directory)
        self.table_filter = table_filter or ""
        self.force = force
        self.confirm_callback = confirm
        self.state = ReaperState.IDLE
        self.candidates: dict[Path, bool] = {}

    @property
    def pattern(self) -> str:
        return f"{glob.escape(self.table_filter)}*{SQL_SUFFIX}"

    @property
    def unclaimed(self) -> list[Path]:
        return sorted(path for path, claimed in self.candidates.items() if not claimed)

    def snapshot(self) -> int:
        """
        Record existing files as deletion candidates.

        Returns:
            Number of candidates found
        """
        self.state = ReaperState.SNAPSHOTTING
        self.candidates = {}
        if self.directory.is_dir():
            for path in self.directory.glob(self.pattern):
                if path.is_file():
                    self.candidates[path] = False
        logger.debug(
            f"Found {len(self.candidates)} existing files matching "
            f"{self.directory / self.pattern}"
        )
        return len(self.candidates)

    def confirm(self) -> bool:
        """
        Decide whether the run may proceed.

        Returns:
            False if the user declined, in which case nothing must be written
        """
        self.state = ReaperState.CONFIRMING
        if self.force or not self.candidates:
            approved = True
        elif self.confirm_callback is None:
            approved = False
        else:
            approved = bool(self.confirm_callback(self.directory))

        if not approved:
            self.state = ReaperState.ABORTED
            logger.info(f"Deletion in {self.directory} declined")
        return approved

    def claim(self, path: Path) -> None:
        """Mark a file as rewritten this run."""
        if path in self.candidates:
            self.candidates[path] = True

    def reap(self) -> list[Path]:
        """
        Delete every candidate that was not claimed.

        Returns:
            Deleted paths

        Raises:
            OutputWriteError: If a stale file cannot be removed
        """
        if self.state == ReaperState.ABORTED:
            return []
        self.state = ReaperState.REAPING

        deleted = []
        for path in self.unclaimed:
            if not path.is_file():
                continue
            try:
                path.unlink()
            except OSError as e:
                raise OutputWriteError(f"Failed to delete {path}: {e}") from e
            logger.info(f"Deleted stale file {path}")
            deleted.append(path)

        self.state = ReaperState.DONE
        return deleted
