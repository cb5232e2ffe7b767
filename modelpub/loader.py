"""Build one validated, linked model graph per source file."""

from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import Callable, Optional, Union

from .cto import (
    ModelError,
    ModelFile,
    ModelManager,
    ModelResolutionError,
    ModelResolver,
    ModelSyntaxError,
)
from .logging import get_logger
from .models import ModelGraph, ModelRejected, SourceModelFile

BASE_MODEL_NAME = "base.cto"

LoadResult = Union[ModelGraph, ModelRejected]


def bundled_base_model() -> str:
    """Return the text of the system model shipped with the package."""
    return resources.files("modelpub.cto").joinpath("system.cto").read_text(encoding="utf-8")


class ModelLoader:
    """Parses a source file against the trusted base model and links its imports.

    Every call to `load` starts from a fresh `ModelManager`, so one file's
    failure can never leak declarations into the next file's graph.
    """

    def __init__(
        self,
        base_text: str,
        *,
        resolver: Optional[Callable[[str], str]] = None,
        force_publish: bool = False,
    ) -> None:
        # Fails fast on a broken base model before any source file is touched.
        self.base_namespace = ModelFile.parse(base_text, BASE_MODEL_NAME).namespace
        self.base_text = base_text
        self.resolver = resolver or ModelResolver()
        self.force_publish = force_publish
        self.logger = get_logger("loader")

    @classmethod
    def from_path(
        cls,
        base_model: Optional[Path],
        *,
        resolver: Optional[Callable[[str], str]] = None,
        force_publish: bool = False,
    ) -> "ModelLoader":
        text = base_model.read_text(encoding="utf-8") if base_model else bundled_base_model()
        return cls(text, resolver=resolver, force_publish=force_publish)

    def load(self, source: SourceModelFile) -> LoadResult:
        file_name = source.path.name
        try:
            candidate = ModelFile.parse(source.text, file_name)
        except ModelSyntaxError as exc:
            return self._rejected(source, "syntax", exc)

        manager = ModelManager()
        if candidate.namespace != self.base_namespace:
            manager.add_model_file(
                self.base_text, BASE_MODEL_NAME, disable_validation=True, system=True
            )
        else:
            self.logger.debug("%s redefines the base namespace %s", file_name, self.base_namespace)

        try:
            manager.add_model_file(
                candidate, system=candidate.namespace == self.base_namespace
            )
        except ModelError as exc:
            return self._rejected(source, _kind_for(exc), exc, namespace=candidate.namespace)

        if not self.force_publish:
            try:
                manager.update_external_models(self.resolver)
            except ModelError as exc:
                return self._rejected(source, _kind_for(exc), exc, namespace=candidate.namespace)

        return ModelGraph(manager=manager, model_file=candidate, source=source)

    def _rejected(
        self,
        source: SourceModelFile,
        kind: str,
        exc: Exception,
        *,
        namespace: Optional[str] = None,
    ) -> ModelRejected:
        self.logger.debug("Rejected %s (%s): %s", source.path, kind, exc)
        return ModelRejected(
            source_path=source.path, kind=kind, message=str(exc), namespace=namespace
        )


def _kind_for(exc: ModelError) -> str:
    if isinstance(exc, ModelSyntaxError):
        return "syntax"
    if isinstance(exc, ModelResolutionError):
        return "resolution"
    return "validation"


__all__ = ["BASE_MODEL_NAME", "LoadResult", "ModelLoader", "bundled_base_model"]
