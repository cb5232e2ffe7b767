"""Emitters that write single-file schema and stub outputs directly."""

from __future__ import annotations

import json
from pathlib import Path

from ..codegen import JSONSchemaVisitor, TypescriptVisitor
from ..cto import FileWriter
from ..models import ModelGraph
from ..sinks import DirectFileSink
from .base import EmitResult, Emitter


class TypescriptEmitter(Emitter):
    """TypeScript stubs for the published file, written unarchived next to it."""

    name = "typescript"
    label = "Typescript"
    scope = "file"

    def generate(self, graph: ModelGraph, destination: Path, base_name: str) -> EmitResult:
        sink = DirectFileSink(destination, self.name)
        graph.model_file.accept(TypescriptVisitor(), {"file_writer": FileWriter(sink)})
        return EmitResult(format=self.name, artifacts=list(sink.artifacts))


class JSONSchemaEmitter(Emitter):
    """Serialises the JSON Schema visitor's result to `<name>.json`."""

    name = "jsonschema"
    label = "JsonSchema"
    scope = "file"

    def generate(self, graph: ModelGraph, destination: Path, base_name: str) -> EmitResult:
        schemas = graph.model_file.accept(JSONSchemaVisitor(), {})
        payload = json.dumps(schemas, indent=2).encode("utf-8")
        sink = DirectFileSink(destination, self.name)
        sink.commit(f"{base_name}.json", payload)
        return EmitResult(format=self.name, artifacts=list(sink.artifacts))


__all__ = ["JSONSchemaEmitter", "TypescriptEmitter"]
