"""Core data models shared across modelpub components."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .cto import ModelFile, ModelManager


@dataclass(frozen=True)
class SourceModelFile:
    """One input model file as read from the source tree."""

    path: Path
    text: str
    name: str
    relative_dir: str

    @classmethod
    def read(cls, path: Path, root: Path) -> "SourceModelFile":
        """Read `path` and derive its short name and directory relative to `root`."""
        text = path.read_text(encoding="utf-8")
        relative_parent = path.parent.relative_to(root).as_posix()
        return cls(
            path=path,
            text=text,
            name=path.stem,
            relative_dir="" if relative_parent == "." else relative_parent,
        )


@dataclass
class ModelGraph:
    """A linked model graph built for exactly one source file."""

    manager: ModelManager
    model_file: ModelFile
    source: SourceModelFile

    @property
    def namespace(self) -> str:
        return self.model_file.namespace


@dataclass(frozen=True)
class GeneratedArtifact:
    """One physical output: a standalone file or a named entry inside an archive."""

    directory: Path
    base_name: str
    format: str
    payload: bytes
    container: Optional[Path] = None

    @property
    def path(self) -> Path:
        return self.directory / self.base_name


@dataclass(frozen=True)
class PublishRecord:
    """Summary of one successfully published model, consumed by the site index."""

    namespace: str
    name: str
    page_path: str
    file_path: str
    version_label: str = ""
    diagram_url: str = ""
    source_path: Optional[Path] = None


@dataclass(frozen=True)
class ModelRejected:
    """A source file that failed parsing, validation or external resolution."""

    source_path: Path
    kind: str
    message: str
    namespace: Optional[str] = None


@dataclass(frozen=True)
class EmitFailure:
    """A format backend that failed for one model; that artifact is absent."""

    format: str
    destination: Path
    message: str
    kind: str = "emit"


@dataclass(frozen=True)
class PersistenceFailure:
    """A write outside the emitters (source copy, model page) that failed."""

    path: Path
    message: str


@dataclass(frozen=True)
class IndexFailure:
    """The site index could not be rendered or written."""

    path: Path
    message: str


__all__ = [
    "EmitFailure",
    "GeneratedArtifact",
    "IndexFailure",
    "ModelGraph",
    "ModelRejected",
    "PersistenceFailure",
    "PublishRecord",
    "SourceModelFile",
]
