"""Manifest file that sources every split file in order."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from ..utils.exceptions import OutputWriteError
from ..utils.logging_config import get_logger
from .targets import OutputTarget

if TYPE_CHECKING:
    from .writer import FileSink

logger = get_logger(__name__)

INCLUDE_DIRECTIVE = "source"


class ManifestBuilder:
    """
    Accumulates ``source <dir>/<file>.sql`` directives.

    Each target is recorded once, in the order it was first referenced.
    """

    def __init__(self, path: Path, directory_label: str, sink: FileSink) -> None:
        """
        Initialize manifest builder.

        Args:
            path: Manifest file path
            directory_label: Directory name used in the include directives
            sink: File sink used for the manifest writes
        """
        self.path = Path(path)
        self.directory_label = directory_label
        self.sink = sink
        self._entries: list[OutputTarget] = []
        self._seen: set[OutputTarget] = set()

    @property
    def entries(self) -> list[OutputTarget]:
        return list(self._entries)

    def directive_for(self, target: OutputTarget) -> str:
        return f"{INCLUDE_DIRECTIVE} {self.directory_label}/{target.filename}\n"

    def start(self, preamble: str | None = None) -> None:
        """Truncate the manifest, optionally writing a preamble first."""
        text = f"{preamble}\n" if preamble is not None else ""
        self._write(truncate=True, text=text)

    def record(self, target: OutputTarget) -> bool:
        """
        Add an include directive for a target.

        Returns:
            False if the target was already recorded
        """
        if target in self._seen:
            return False
        self._seen.add(target)
        self._entries.append(target)
        self._write(truncate=False, text=self.directive_for(target))
        logger.debug(f"Manifest entry {self.directory_label}/{target.filename}")
        return True

    def close(self) -> None:
        self.sink.close()

    def _write(self, truncate: bool, text: str) -> None:
        try:
            if truncate:
                self.sink.truncate(self.path, text)
            else:
                self.sink.append(self.path, text)
        except OSError as e:
            raise OutputWriteError(f"Failed to write to {self.path}: {e}") from e
