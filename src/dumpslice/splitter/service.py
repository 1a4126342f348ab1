"""Split service: wires the splitter components together for one run."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ..config import SplitConfig
from ..utils.logging_config import get_logger
from .chunker import ChunkManager
from .manifest import ManifestBuilder
from .reaper import ConfirmCallback, StaleFileReaper
from .router import RouterStats, StreamRouter
from .targets import OutputTarget
from .writer import (
    FileSink,
    LocalFileSink,
    OutputFileManager,
    check_output_directory,
    prepare_output_directory,
)

logger = get_logger(__name__)


@dataclass
class SplitResult:
    """Outcome of a split run."""

    manifest_path: Path
    directory: Path
    aborted: bool = False
    manifest_entries: list[OutputTarget] = field(default_factory=list)
    deleted_files: list[Path] = field(default_factory=list)
    stats: RouterStats = field(default_factory=RouterStats)

    @property
    def tables(self) -> list[str]:
        return self.stats.tables


class SplitService:
    """Runs a split of one dump into the configured output directory."""

    def __init__(
        self,
        config: SplitConfig,
        confirm: ConfirmCallback | None = None,
        sink_factory: Callable[[], FileSink] = LocalFileSink,
    ) -> None:
        """
        Initialize split service.

        Args:
            config: Run configuration
            confirm: Asked before stale files are deleted (unless forced)
            sink_factory: Creates the file sinks for outputs and manifest
        """
        self.config = config
        self.confirm = confirm
        self.sink_factory = sink_factory

    def split(self, lines: Iterable[str]) -> SplitResult:
        """
        Split a dump.

        Args:
            lines: Dump lines with their terminators

        Returns:
            SplitResult; ``aborted`` is set when deletion was declined and
            nothing was written

        Raises:
            OutputDirectoryError: If the output directory path is a file
            OutputWriteError: If an output file cannot be written
        """
        config = self.config
        directory = config.directory
        result = SplitResult(manifest_path=config.output, directory=directory)

        check_output_directory(directory)

        reaper = StaleFileReaper(
            directory,
            table_filter=config.table_filter,
            force=config.force,
            confirm=self.confirm,
        )
        reaper.snapshot()
        if not reaper.confirm():
            logger.info("Aborting split, no changes made")
            result.aborted = True
            return result

        prepare_output_directory(directory)
        if not config.output.parent.is_dir():
            config.output.parent.mkdir(parents=True)

        manifest = ManifestBuilder(
            config.output, config.directory_label, self.sink_factory()
        )
        files = OutputFileManager(directory, self.sink_factory(), manifest, reaper)
        router = StreamRouter(
            files,
            ChunkManager(files, config.chunk_size),
            structure_only=config.structure_only,
        )

        try:
            manifest.start(config.preamble)
            router.start()
            result.stats = router.run(lines)
        finally:
            files.close()
            manifest.close()

        result.deleted_files = reaper.reap()
        result.manifest_entries = manifest.entries
        logger.info(f"File '{config.output}' and directory '{directory}' updated")
        return result
