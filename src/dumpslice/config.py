"""Configuration management for dumpslice."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .utils.exceptions import ConfigurationError

DEFAULT_DATABASE = "database_name"
DEFAULT_OUTPUT = "database.sql"
DEFAULT_CHUNK_SIZE = 10000
TABLES_DIR_SUFFIX = "_tables"


@dataclass
class SplitConfig:
    """Settings for one split run."""

    database: str = DEFAULT_DATABASE
    output: Path = Path(DEFAULT_OUTPUT)
    base_dir: Path = Path(".")
    table_filter: str | None = None
    force: bool = False
    structure_only: bool = False
    preamble: str | None = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    verbose: bool = False
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        """Normalize paths and validate values."""
        self.output = Path(self.output)
        self.base_dir = Path(self.base_dir)
        if not self.database:
            raise ConfigurationError("Database name must not be empty")
        if self.chunk_size <= 0:
            raise ConfigurationError(
                f"Chunk size must be a positive integer, got {self.chunk_size}"
            )

    @property
    def directory_label(self) -> str:
        """Name of the directory holding the per-table files."""
        return f"{self.database}{TABLES_DIR_SUFFIX}"

    @property
    def directory(self) -> Path:
        """Full path of the directory holding the per-table files."""
        return self.base_dir / self.directory_label


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def load_config() -> SplitConfig:
    """
    Load configuration from environment variables and .env file.

    Returns:
        SplitConfig with defaults for anything not set

    Raises:
        ConfigurationError: If a value cannot be parsed
    """
    # Load .env file if it exists
    load_dotenv()

    return SplitConfig(
        database=os.getenv("DUMPSLICE_DATABASE", DEFAULT_DATABASE),
        output=Path(os.getenv("DUMPSLICE_OUTPUT", DEFAULT_OUTPUT)),
        base_dir=Path(os.getenv("DUMPSLICE_BASE_DIR", ".")),
        chunk_size=_parse_int("DUMPSLICE_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
        log_level=os.getenv("LOG_LEVEL", "WARNING"),
    )
