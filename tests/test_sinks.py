"""Tests for swagpipe.sinks."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from swagpipe.models import Artifact
from swagpipe.sinks import FileSink, MemorySink, StdoutSink, atomic_write


class TestAtomicWrite:
    def test_writes_and_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "dir" / "out.json"
        atomic_write(target, b"{}")
        assert target.read_bytes() == b"{}"

    def test_replaces_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "out.json"
        target.write_bytes(b"old")
        atomic_write(target, b"new")
        assert target.read_bytes() == b"new"

    def test_failure_leaves_no_temp_file(self, tmp_path: Path) -> None:
        target = tmp_path / "out.json"
        with patch("swagpipe.sinks.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                atomic_write(target, b"data")
        assert list(tmp_path.iterdir()) == []


class TestFileSink:
    def test_writes_under_out_dir(self, tmp_path: Path) -> None:
        sink = FileSink(tmp_path / "dist")
        sink(Artifact(path=Path("api/client.js"), content=b"code"))

        written = tmp_path / "dist" / "api" / "client.js"
        assert written.read_bytes() == b"code"
        assert sink.written == [written]

    def test_absolute_path_is_kept(self, tmp_path: Path) -> None:
        target = tmp_path / "abs.json"
        sink = FileSink("ignored")
        sink(Artifact(path=target, content=b"{}"))
        assert target.read_bytes() == b"{}"


class TestStdoutSink:
    def test_writes_bytes_to_stdout(self, capfdbinary: pytest.CaptureFixture) -> None:
        StdoutSink()(Artifact(path=Path("-"), content="é".encode("utf-8")))
        assert capfdbinary.readouterr().out == "é".encode("utf-8")


class TestMemorySink:
    def test_collects_in_order(self) -> None:
        sink = MemorySink()
        first = Artifact(path=Path("a"), content=b"1")
        second = Artifact(path=Path("b"), content=b"2")
        sink(first)
        sink(second)
        assert sink.artifacts == [first, second]
