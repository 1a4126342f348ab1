"""Tests for dumpslice.splitter.writer module."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from dumpslice.splitter.manifest import ManifestBuilder
from dumpslice.splitter.reaper import StaleFileReaper
from dumpslice.splitter.targets import OutputTarget, WriteMode
from dumpslice.splitter.writer import (
    LocalFileSink,
    OutputFileManager,
    check_output_directory,
    prepare_output_directory,
)
from dumpslice.utils.exceptions import OutputDirectoryError, OutputWriteError


class TestLocalFileSink:
    """Tests for LocalFileSink class."""

    def test_truncate_creates_file(self, tmp_path: Path) -> None:
        sink = LocalFileSink()
        path = tmp_path / "a.sql"

        sink.truncate(path, "-- \n")
        sink.close()

        assert path.read_text() == "-- \n"

    def test_truncate_discards_existing_content(self, tmp_path: Path) -> None:
        path = tmp_path / "a.sql"
        path.write_text("old content\n")
        sink = LocalFileSink()

        sink.truncate(path)
        sink.close()

        assert path.read_text() == ""

    def test_append_preserves_existing_content(self, tmp_path: Path) -> None:
        path = tmp_path / "a.sql"
        path.write_text("first\n")
        sink = LocalFileSink()

        sink.append(path, "second\n")
        sink.append(path, "third\n")
        sink.close()

        assert path.read_text() == "first\nsecond\nthird\n"

    def test_switching_paths(self, tmp_path: Path) -> None:
        """Writes interleaved across files land in the right file."""
        a, b = tmp_path / "a.sql", tmp_path / "b.sql"
        sink = LocalFileSink()

        sink.truncate(a, "a1\n")
        sink.truncate(b, "b1\n")
        sink.append(a, "a2\n")
        sink.append(b, "b2\n")
        sink.close()

        assert a.read_text() == "a1\na2\n"
        assert b.read_text() == "b1\nb2\n"

    def test_preserves_line_terminators(self, tmp_path: Path) -> None:
        path = tmp_path / "crlf.sql"
        sink = LocalFileSink()

        sink.truncate(path, "USE `x`;\r\n")
        sink.append(path, "SELECT 1;\n")
        sink.close()

        assert path.read_bytes() == b"USE `x`;\r\nSELECT 1;\n"

    def test_round_trips_invalid_utf8(self, tmp_path: Path) -> None:
        """Undecodable bytes read with surrogateescape are written back as-is."""
        raw = b"INSERT INTO `b` VALUES ('\xff\xfe');\n"
        path = tmp_path / "bin.sql"
        sink = LocalFileSink()

        sink.truncate(path, raw.decode("utf-8", errors="surrogateescape"))
        sink.close()

        assert path.read_bytes() == raw

    def test_unwritable_path_raises_oserror(self, tmp_path: Path) -> None:
        sink = LocalFileSink()
        with pytest.raises(OSError):
            sink.truncate(tmp_path / "missing" / "a.sql", "x")


class TestOutputDirectory:
    """Tests for output directory checks."""

    def test_creates_missing_directory(self, tmp_path: Path) -> None:
        directory = tmp_path / "shop_tables"

        assert prepare_output_directory(directory) is True
        assert directory.is_dir()

    def test_existing_directory(self, tmp_path: Path) -> None:
        assert prepare_output_directory(tmp_path) is False

    def test_file_in_place_of_directory(self, tmp_path: Path) -> None:
        """A regular file where the directory should be is fatal."""
        directory = tmp_path / "shop_tables"
        directory.write_text("not a directory")

        with pytest.raises(OutputDirectoryError, match="not a directory"):
            check_output_directory(directory)
        with pytest.raises(OutputDirectoryError):
            prepare_output_directory(directory)

        assert directory.read_text() == "not a directory"


class TestOutputFileManager:
    """Tests for OutputFileManager class."""

    def test_path_for(self, files: OutputFileManager, output_dir: Path) -> None:
        target = OutputTarget.data("accounts")
        assert files.path_for(target) == output_dir / "accounts.data.sql"

    def test_activate_truncate_writes_text(
        self, files: OutputFileManager, sink: Any, output_dir: Path
    ) -> None:
        sink.files[output_dir / "accounts.sql"] = "stale\n"
        target = OutputTarget.structure("accounts")

        files.activate(target, WriteMode.TRUNCATE, "banner\n")

        assert sink.files[output_dir / "accounts.sql"] == "banner\n"

    def test_activate_append_keeps_content(
        self, files: OutputFileManager, sink: Any, output_dir: Path
    ) -> None:
        sink.files[output_dir / "head.sql"] = "kept\n"

        files.activate(OutputTarget.head(), WriteMode.APPEND, "more\n")

        assert sink.files[output_dir / "head.sql"] == "kept\nmore\n"

    def test_write_appends(
        self, files: OutputFileManager, sink: Any, output_dir: Path
    ) -> None:
        target = OutputTarget.structure("accounts")
        files.activate(target, WriteMode.TRUNCATE, "a\n")

        files.write(target, "b\n")

        assert sink.files[output_dir / "accounts.sql"] == "a\nb\n"

    def test_write_requires_activation(self, files: OutputFileManager) -> None:
        with pytest.raises(OutputWriteError, match="not been activated"):
            files.write(OutputTarget.structure("accounts"), "x\n")

    def test_write_to_registered_target_rejected(
        self, files: OutputFileManager
    ) -> None:
        """Registered targets are referenced but never written."""
        target = OutputTarget.data("accounts")
        files.register(target)

        with pytest.raises(OutputWriteError):
            files.write(target, "x\n")

    def test_register_does_not_touch_file(
        self, files: OutputFileManager, sink: Any, output_dir: Path
    ) -> None:
        files.register(OutputTarget.data("accounts"))

        assert output_dir / "accounts.data.sql" not in sink.files
        assert files.is_touched(OutputTarget.data("accounts"))

    def test_records_manifest_entry_once(
        self, files: OutputFileManager, manifest: ManifestBuilder
    ) -> None:
        target = OutputTarget.structure("accounts")

        files.activate(target, WriteMode.TRUNCATE, "a\n")
        files.activate(target, WriteMode.TRUNCATE, "b\n")
        files.register(target)

        assert manifest.entries == [target]

    def test_touched_in_first_touch_order(self, files: OutputFileManager) -> None:
        head = OutputTarget.head()
        data = OutputTarget.data("a")
        structure = OutputTarget.structure("a")

        files.activate(head, WriteMode.TRUNCATE)
        files.register(data)
        files.activate(structure, WriteMode.TRUNCATE)
        files.activate(data, WriteMode.TRUNCATE)

        assert files.touched == [head, data, structure]

    def test_claims_stale_files(
        self, output_dir: Path, sink: Any, manifest: ManifestBuilder, mocker: Any
    ) -> None:
        reaper = mocker.Mock(spec=StaleFileReaper)
        files = OutputFileManager(output_dir, sink, manifest, reaper)

        files.activate(OutputTarget.structure("a"), WriteMode.TRUNCATE)
        files.register(OutputTarget.data("a"))

        reaper.claim.assert_has_calls(
            [
                mocker.call(output_dir / "a.sql"),
                mocker.call(output_dir / "a.data.sql"),
            ]
        )

    def test_oserror_becomes_output_write_error(
        self, output_dir: Path, manifest: ManifestBuilder, mocker: Any
    ) -> None:
        broken = mocker.Mock()
        broken.truncate.side_effect = PermissionError("denied")
        files = OutputFileManager(output_dir, broken, manifest)

        with pytest.raises(OutputWriteError, match="denied"):
            files.activate(OutputTarget.head(), WriteMode.TRUNCATE, "-- \n")

    def test_close_closes_sink(self, files: OutputFileManager, sink: Any) -> None:
        files.close()
        assert sink.close_calls == 1

    @pytest.mark.parametrize("reserved", [OutputTarget.head(), OutputTarget.tail()])
    def test_table_sharing_reserved_file_name_rejected(
        self,
        files: OutputFileManager,
        sink: Any,
        output_dir: Path,
        manifest: ManifestBuilder,
        reserved: OutputTarget,
    ) -> None:
        """A table called head or tail must not overwrite the dump header or routines."""
        files.activate(reserved, WriteMode.TRUNCATE, "-- kept\n")
        clashing = OutputTarget.structure(reserved.basename)

        with pytest.raises(OutputWriteError, match=f"overwrite {reserved.filename}"):
            files.activate(clashing, WriteMode.TRUNCATE, "-- Table structure\n")

        assert sink.files[output_dir / reserved.filename] == "-- kept\n"
        assert manifest.entries == [reserved]
        assert not files.is_touched(clashing)


class TestExistingChunks:
    """Tests for OutputFileManager.existing_chunks."""

    @pytest.fixture
    def disk_files(
        self, tmp_path: Path, sink: Any, manifest: ManifestBuilder
    ) -> OutputFileManager:
        return OutputFileManager(tmp_path, sink, manifest)

    def test_chunks_in_sequence_order(
        self, disk_files: OutputFileManager, tmp_path: Path
    ) -> None:
        for name in [
            "orders.0000020000.data.sql",
            "orders.0000010000.data.sql",
            "orders.data.sql",
            "orders.sql",
            "orders.aux.1.sql",
            "orders_archive.0000010000.data.sql",
            "orders.v2.0000010000.data.sql",
        ]:
            (tmp_path / name).write_text("-- x\n")

        assert disk_files.existing_chunks("orders") == [
            OutputTarget.data_chunk("orders", 10000),
            OutputTarget.data_chunk("orders", 20000),
        ]

    def test_missing_directory(self, files: OutputFileManager) -> None:
        assert files.existing_chunks("orders") == []

    def test_glob_characters_in_table_name(
        self, disk_files: OutputFileManager, tmp_path: Path
    ) -> None:
        (tmp_path / "ord[e]rs.0000000002.data.sql").write_text("-- x\n")
        (tmp_path / "orders.0000000002.data.sql").write_text("-- x\n")

        assert disk_files.existing_chunks("ord[e]rs") == [
            OutputTarget.data_chunk("ord[e]rs", 2)
        ]
