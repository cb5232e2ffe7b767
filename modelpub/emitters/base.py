"""Base classes for format emitter plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..logging import get_logger
from ..models import EmitFailure, GeneratedArtifact, ModelGraph

DEFAULT_DIAGRAM_SERVER = "https://www.plantuml.com/plantuml"


@dataclass
class EmitterSettings:
    """Options shared by the built-in emitters."""

    diagram_server: str = DEFAULT_DIAGRAM_SERVER


@dataclass
class EmitResult:
    """Outcome of one emitter for one model."""

    format: str
    artifacts: List[GeneratedArtifact] = field(default_factory=list)
    link: str = ""
    failure: Optional[EmitFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class Emitter(ABC):
    """Contract for format backends invoked once per published model.

    `scope` is "file" for emitters that only look at the model file being
    published and "graph" for emitters that walk every model in its graph.
    """

    name: str = ""
    label: str = ""
    scope: str = "file"

    def __init__(self) -> None:
        self.logger = get_logger(f"emitters.{self.name or type(self).__name__}")

    def emit(self, graph: ModelGraph, destination: Path, base_name: str) -> EmitResult:
        """Run the backend, converting any failure into an EmitFailure result."""
        try:
            return self.generate(graph, destination, base_name)
        except OSError as exc:
            return self._failed(destination, base_name, exc, kind="persistence")
        except Exception as exc:  # noqa: BLE001 - reported per format
            return self._failed(destination, base_name, exc, kind="emit")

    @abstractmethod
    def generate(self, graph: ModelGraph, destination: Path, base_name: str) -> EmitResult:
        """Produce this format's artifacts for `graph` under `destination`."""

    def describe(self) -> str:
        return self.label or self.name

    def _failed(self, destination: Path, base_name: str, exc: Exception, *, kind: str) -> EmitResult:
        message = str(exc) or type(exc).__name__
        self.logger.warning(
            "Generating %s for %s/%s: %s", self.describe(), destination, base_name, message
        )
        failure = EmitFailure(
            format=self.name,
            destination=destination / base_name,
            message=message,
            kind=kind,
        )
        return EmitResult(format=self.name, failure=failure)


__all__ = ["DEFAULT_DIAGRAM_SERVER", "EmitResult", "Emitter", "EmitterSettings"]
