"""PlantUML diagram emitter."""

from __future__ import annotations

from pathlib import Path

from ..codegen import PlantUMLVisitor, encode_plantuml
from ..cto import FileWriter
from ..models import ModelGraph
from ..sinks import DirectFileSink
from .base import DEFAULT_DIAGRAM_SERVER, EmitResult, Emitter, EmitterSettings


class PlantUMLEmitter(Emitter):
    """Writes `<name>.puml` for the published file and links to a hosted SVG rendering."""

    name = "plantuml"
    label = "PlantUML"
    scope = "file"

    def __init__(self, settings: EmitterSettings | None = None) -> None:
        super().__init__()
        server = (settings.diagram_server if settings else None) or DEFAULT_DIAGRAM_SERVER
        self.diagram_server = server.rstrip("/")

    def generate(self, graph: ModelGraph, destination: Path, base_name: str) -> EmitResult:
        sink = DirectFileSink(destination, self.name)
        writer = FileWriter(sink)
        writer.open_file(f"{base_name}.puml")
        writer.write_line(0, "@startuml")
        graph.model_file.accept(PlantUMLVisitor(), {"file_writer": writer})
        writer.write_line(0, "@enduml")
        writer.close_file()

        diagram = sink.artifacts[-1]
        encoded = encode_plantuml(diagram.payload.decode("utf-8"))
        return EmitResult(
            format=self.name,
            artifacts=list(sink.artifacts),
            link=self.rendering_url(encoded),
        )

    def rendering_url(self, encoded: str) -> str:
        return f"{self.diagram_server}/svg/{encoded}"


__all__ = ["PlantUMLEmitter"]
