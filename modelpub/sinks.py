"""Destinations for files produced through a FileWriter."""

from __future__ import annotations

from pathlib import Path
from typing import List, Protocol

from .archive import ArchiveUnit
from .models import GeneratedArtifact


class FileSink(Protocol):
    """Receives each file a writer closes."""

    format: str
    artifacts: List[GeneratedArtifact]

    def commit(self, entry_name: str, payload: bytes) -> GeneratedArtifact:
        """Persist one closed file and return the artifact describing it."""


class DirectFileSink:
    """Writes every closed file straight into a directory."""

    def __init__(self, directory: Path, format: str) -> None:
        self.directory = directory
        self.format = format
        self.artifacts: List[GeneratedArtifact] = []

    def commit(self, entry_name: str, payload: bytes) -> GeneratedArtifact:
        target = (self.directory / entry_name).resolve()
        root = self.directory.resolve()
        if target != root and root not in target.parents:
            raise ValueError(f"Refusing to write {entry_name!r} outside {self.directory}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload)
        artifact = GeneratedArtifact(
            directory=target.parent,
            base_name=target.name,
            format=self.format,
            payload=payload,
        )
        self.artifacts.append(artifact)
        return artifact


class ArchivingSink:
    """Routes every closed file into an ArchiveUnit, rewriting the container each time."""

    def __init__(self, unit: ArchiveUnit, format: str) -> None:
        self.unit = unit
        self.format = format
        self.artifacts: List[GeneratedArtifact] = []

    def commit(self, entry_name: str, payload: bytes) -> GeneratedArtifact:
        self.unit.write(entry_name, payload)
        self.unit.finalize()
        entry_dir, _, base_name = entry_name.rpartition("/")
        artifact = GeneratedArtifact(
            directory=Path(entry_dir) if entry_dir else Path(),
            base_name=base_name,
            format=self.format,
            payload=payload,
            container=self.unit.path,
        )
        self.artifacts.append(artifact)
        return artifact


__all__ = ["ArchivingSink", "DirectFileSink", "FileSink"]
