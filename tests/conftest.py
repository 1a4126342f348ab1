"""Shared pytest fixtures for dumpslice tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from faker import Faker
from factories import DumpFactory

from dumpslice.config import SplitConfig
from dumpslice.splitter.chunker import ChunkManager
from dumpslice.splitter.manifest import ManifestBuilder
from dumpslice.splitter.router import StreamRouter
from dumpslice.splitter.writer import OutputFileManager

# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handler changes made by setup_logging during a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# =============================================================================
# Faker Instance
# =============================================================================


@pytest.fixture
def fake() -> Faker:
    """Provide a Faker instance for test data generation."""
    return Faker()


# =============================================================================
# File Sink Fixtures
# =============================================================================


class InMemorySink:
    """File sink that keeps file contents in a dict."""

    def __init__(self) -> None:
        self.files: dict[Path, str] = {}
        self.close_calls = 0

    def truncate(self, path: Path, text: str = "") -> None:
        self.files[path] = text

    def append(self, path: Path, text: str) -> None:
        self.files[path] = self.files.get(path, "") + text

    def close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def sink() -> InMemorySink:
    """Provide an in-memory file sink."""
    return InMemorySink()


# =============================================================================
# Splitter Fixtures
# =============================================================================


@pytest.fixture
def output_dir() -> Path:
    """Logical output directory used with the in-memory sink."""
    return Path("out") / "shop_tables"


@pytest.fixture
def manifest_path() -> Path:
    return Path("out") / "shop.sql"


@pytest.fixture
def manifest(manifest_path: Path, sink: InMemorySink) -> ManifestBuilder:
    builder = ManifestBuilder(manifest_path, "shop_tables", sink)
    builder.start()
    return builder


@pytest.fixture
def files(
    output_dir: Path, sink: InMemorySink, manifest: ManifestBuilder
) -> OutputFileManager:
    return OutputFileManager(output_dir, sink, manifest)


@pytest.fixture
def make_router(files: OutputFileManager):
    """Factory for routers over the in-memory sink."""

    def _make(structure_only: bool = False, chunk_size: int = 10000) -> StreamRouter:
        return StreamRouter(
            files, ChunkManager(files, chunk_size), structure_only=structure_only
        )

    return _make


@pytest.fixture
def make_dump() -> type[DumpFactory]:
    """Provide the dump builder class for tests needing several dumps."""
    return DumpFactory


@pytest.fixture
def dump(make_dump: type[DumpFactory]) -> DumpFactory:
    """Provide an empty dump builder for the 'shop' database."""
    return make_dump("shop")


@pytest.fixture
def split_config(tmp_path: Path) -> SplitConfig:
    """Configuration writing into a temporary directory with --force."""
    return SplitConfig(
        database="shop",
        output=tmp_path / "shop.sql",
        base_dir=tmp_path,
        force=True,
    )
