"""Tests for archive accumulation and file sinks."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from modelpub.archive import ArchiveUnit
from modelpub.cto import FileWriter
from modelpub.sinks import ArchivingSink, DirectFileSink


def test_archive_unit_without_entries_writes_nothing(tmp_path: Path) -> None:
    unit = ArchiveUnit.open(tmp_path / "model.jar")

    assert unit.finalize() is False
    assert not (tmp_path / "model.jar").exists()
    assert unit.written is False


def test_archive_unit_rewrites_container_per_entry(tmp_path: Path) -> None:
    unit = ArchiveUnit.open(tmp_path / "out" / "model.go.zip", comment="Generated from model.cto")

    unit.write("a.go", b"package main\n")
    assert unit.finalize() is True
    with zipfile.ZipFile(tmp_path / "out" / "model.go.zip") as archive:
        assert archive.namelist() == ["a.go"]

    unit.write("b.go", b"package main\n")
    unit.finalize()
    with zipfile.ZipFile(tmp_path / "out" / "model.go.zip") as archive:
        assert archive.namelist() == ["a.go", "b.go"]
        info = archive.getinfo("b.go")
        assert info.comment == b"Generated from model.cto"
        assert info.date_time == (1980, 1, 1, 0, 0, 0)
        assert archive.read("a.go") == b"package main\n"


def test_archive_unit_produces_identical_entries_on_rebuild(tmp_path: Path) -> None:
    payloads = []
    for attempt in range(2):
        unit = ArchiveUnit.open(tmp_path / f"run{attempt}.zip", comment="Generated from x")
        unit.write("x.xsd", b"<xs:schema/>\n")
        unit.finalize()
        payloads.append((tmp_path / f"run{attempt}.zip").read_bytes())

    assert payloads[0] == payloads[1]


def test_archive_unit_rejects_absolute_entry_names(tmp_path: Path) -> None:
    unit = ArchiveUnit.open(tmp_path / "model.zip")

    with pytest.raises(ValueError):
        unit.write("/etc/passwd", b"")


def test_direct_sink_writes_files_through_writer(tmp_path: Path) -> None:
    sink = DirectFileSink(tmp_path, "typescript")
    writer = FileWriter(sink)

    writer.open_file("org.example.ts")
    writer.write_line(0, "export interface IThing {")
    writer.write_line(1, "name: string;")
    writer.write_line(0, "}")
    writer.close_file()

    assert (tmp_path / "org.example.ts").read_text(encoding="utf-8") == (
        "export interface IThing {\n   name: string;\n}\n"
    )
    artifact = sink.artifacts[0]
    assert artifact.path == tmp_path.resolve() / "org.example.ts"
    assert artifact.container is None
    assert artifact.format == "typescript"


def test_direct_sink_refuses_to_escape_directory(tmp_path: Path) -> None:
    sink = DirectFileSink(tmp_path / "build", "typescript")

    with pytest.raises(ValueError):
        sink.commit("../outside.ts", b"")


def test_archiving_sink_records_container(tmp_path: Path) -> None:
    unit = ArchiveUnit.open(tmp_path / "model.jar")
    sink = ArchivingSink(unit, "java")
    writer = FileWriter(sink)

    writer.open_file("org/example/Thing.java")
    writer.write_line(0, "package org.example;")
    writer.close_file()

    artifact = sink.artifacts[0]
    assert artifact.container == tmp_path / "model.jar"
    assert artifact.base_name == "Thing.java"
    assert artifact.directory == Path("org/example")
    with zipfile.ZipFile(tmp_path / "model.jar") as archive:
        assert archive.read("org/example/Thing.java") == b"package org.example;\n"


def test_file_writer_requires_open_file(tmp_path: Path) -> None:
    writer = FileWriter(DirectFileSink(tmp_path, "any"))

    with pytest.raises(RuntimeError, match="No file open"):
        writer.write_line(0, "text")
