"""Emitters that pack every generated file into one archive per model."""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path

from ..archive import ArchiveUnit
from ..codegen import GoLangVisitor, JavaVisitor, ModelVisitor, XmlSchemaVisitor
from ..cto import FileWriter
from ..models import ModelGraph
from ..sinks import ArchivingSink
from .base import EmitResult, Emitter


class ArchiveEmitter(Emitter):
    """Walks the whole model graph and collects the output into `<name><extension>`."""

    scope = "graph"
    extension: str = ".zip"

    @abstractmethod
    def create_visitor(self) -> ModelVisitor:
        """Return the code generation visitor for this format."""

    def generate(self, graph: ModelGraph, destination: Path, base_name: str) -> EmitResult:
        unit = ArchiveUnit.open(
            destination / f"{base_name}{self.extension}",
            comment=f"Generated from {graph.model_file.name}",
        )
        sink = ArchivingSink(unit, self.name)
        writer = FileWriter(sink)
        graph.manager.accept(self.create_visitor(), {"file_writer": writer})
        if not unit.written:
            self.logger.debug("%s produced no files for %s", self.describe(), graph.namespace)
        return EmitResult(format=self.name, artifacts=list(sink.artifacts))


class XmlSchemaEmitter(ArchiveEmitter):
    name = "xmlschema"
    label = "XmlSchema"
    extension = ".xsd.zip"

    def create_visitor(self) -> ModelVisitor:
        return XmlSchemaVisitor()


class JavaEmitter(ArchiveEmitter):
    name = "java"
    label = "Java"
    extension = ".jar"

    def create_visitor(self) -> ModelVisitor:
        return JavaVisitor()


class GoEmitter(ArchiveEmitter):
    name = "go"
    label = "Go"
    extension = ".go.zip"

    def create_visitor(self) -> ModelVisitor:
        return GoLangVisitor()


__all__ = ["ArchiveEmitter", "GoEmitter", "JavaEmitter", "XmlSchemaEmitter"]
