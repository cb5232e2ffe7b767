"""Pipeline orchestration for one publishing batch."""

from __future__ import annotations

import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from jinja2 import TemplateError

from .config import PublishConfig
from .cto import ModelError, ModelResolver
from .discovery import ModelDiscovery
from .emitters import EmitResult, Emitter, EmitterSettings, discover_emitters
from .loader import ModelLoader
from .logging import get_logger
from .models import (
    EmitFailure,
    ModelGraph,
    ModelRejected,
    PersistenceFailure,
    PublishRecord,
    SourceModelFile,
)
from .site import ModelPage, SiteIndexBuilder, SiteRenderer
from .stores import ModelCache

_VERSION_PATTERN = re.compile(r"v\d+(?:\.\d+){0,2}")


class PublishError(RuntimeError):
    """Raised when a batch cannot start at all."""


@dataclass
class PublishReport:
    """Everything one batch produced, kept in discovery order."""

    records: List[PublishRecord] = field(default_factory=list)
    rejections: List[ModelRejected] = field(default_factory=list)
    emit_failures: List[EmitFailure] = field(default_factory=list)
    persistence_failures: List[PersistenceFailure] = field(default_factory=list)
    index_path: Optional[Path] = None
    index_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not (
            self.rejections or self.emit_failures or self.persistence_failures or self.index_error
        )

    @property
    def published(self) -> List[str]:
        return [record.namespace for record in self.records]


def extract_version_label(relative_dir: str) -> str:
    """Return `" (vX.Y.Z)"` when the directory names exactly one version, else ""."""
    matches = [match.group(0) for match in _VERSION_PATTERN.finditer(relative_dir)]
    if len(matches) == 1:
        return f" ({matches[0]})"
    return ""


def derive_file_path(relative_dir: str, name: str) -> str:
    return f"{relative_dir}/{name}" if relative_dir else name


def derive_page_path(relative_dir: str, name: str) -> str:
    return f"{derive_file_path(relative_dir, name)}.html"


class PublishOrchestrator:
    """Coordinates discovery, loading, emitting and site generation for a source tree."""

    def __init__(
        self,
        config: PublishConfig,
        *,
        emitters: Optional[Iterable[Emitter]] = None,
        resolver: Optional[Callable[[str], str]] = None,
        renderer: SiteRenderer | None = None,
    ) -> None:
        self.config = config
        self._emitter_overrides = list(emitters) if emitters is not None else None
        self._resolver = resolver
        self.renderer = renderer or SiteRenderer(
            templates_dir=config.site.templates_dir,
            server_root=config.site.server_root,
            title=config.site.title,
        )
        self.logger = get_logger("orchestrator")

    def run(self) -> PublishReport:
        """Publish every model under the source directory into the build directory."""
        source_dir = self.config.source_dir
        build_dir = self.config.build_dir
        if not source_dir.is_dir():
            raise PublishError(f"Source directory not found: {source_dir}")

        loader = self._create_loader()
        emitters = self._select_emitters()
        self.logger.info("Publishing %s into %s", source_dir, build_dir)
        self.logger.debug("Selected formats: %s", ", ".join(e.name for e in emitters) or "none")

        if self.config.clean:
            self._clean(build_dir)

        discovery = ModelDiscovery(
            source_dir,
            extensions=self.config.extensions,
            exclude_paths=self.config.exclude_paths,
        )
        report = PublishReport()
        for path in discovery.discover():
            self._publish_file(path, loader, emitters, report)
        self._prune_resolver_cache(loader)

        index = SiteIndexBuilder(self.renderer, build_dir).build(report.records)
        report.index_path = index.path
        if index.failure is not None:
            report.index_error = index.failure.message

        self.logger.info(
            "Published %d model(s), rejected %d", len(report.records), len(report.rejections)
        )
        return report

    # ------------------------------------------------------------------
    # Per-file pipeline

    def _publish_file(
        self,
        path: Path,
        loader: ModelLoader,
        emitters: Sequence[Emitter],
        report: PublishReport,
    ) -> None:
        try:
            source = SourceModelFile.read(path, self.config.source_dir)
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.warning("Error reading %s: %s", path, exc)
            report.rejections.append(ModelRejected(source_path=path, kind="read", message=str(exc)))
            return

        loaded = loader.load(source)
        if isinstance(loaded, ModelRejected):
            if loaded.namespace:
                self.logger.warning("Error handling %s (%s)", loaded.namespace, path)
            else:
                self.logger.warning("Error handling %s", path)
            self.logger.warning("%s", loaded.message)
            report.rejections.append(loaded)
            return

        destination = self.config.build_dir / source.relative_dir if source.relative_dir else self.config.build_dir
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self.logger.error("Failed to create %s: %s", destination, exc)
            report.persistence_failures.append(PersistenceFailure(path=destination, message=str(exc)))
            return

        results = [emitter.emit(loaded, destination, source.name) for emitter in emitters]
        for result in results:
            if result.failure is not None:
                report.emit_failures.append(result.failure)
        diagram_url = next((result.link for result in results if result.link), "")

        self._copy_source(source, destination, report)

        file_path = derive_file_path(source.relative_dir, source.name)
        record = PublishRecord(
            namespace=loaded.namespace,
            name=source.name,
            page_path=derive_page_path(source.relative_dir, source.name),
            file_path=file_path,
            version_label=extract_version_label(source.relative_dir),
            diagram_url=diagram_url,
            source_path=source.path,
        )
        self._write_page(loaded, record, results, report)
        report.records.append(record)
        self.logger.info("Processed %s", loaded.namespace)

    def _copy_source(self, source: SourceModelFile, destination: Path, report: PublishReport) -> None:
        target = destination / source.path.name
        try:
            shutil.copyfile(source.path, target)
        except OSError as exc:
            self.logger.error("Failed to copy %s to %s: %s", source.path, target, exc)
            report.persistence_failures.append(PersistenceFailure(path=target, message=str(exc)))

    def _write_page(
        self,
        graph: ModelGraph,
        record: PublishRecord,
        results: Sequence[EmitResult],
        report: PublishReport,
    ) -> None:
        target = self.config.build_dir / record.page_path
        page = ModelPage.from_model(
            graph.model_file,
            name=record.name,
            file_path=record.file_path,
            version_label=record.version_label,
            diagram_url=record.diagram_url,
            downloads=self._downloads(results),
        )
        try:
            target.write_text(self.renderer.render_model(page), encoding="utf-8")
        except (OSError, TemplateError) as exc:
            self.logger.error("Failed to write model page %s: %s", target, exc)
            report.persistence_failures.append(PersistenceFailure(path=target, message=str(exc)))

    def _downloads(self, results: Sequence[EmitResult]) -> List[Dict[str, str]]:
        build_dir = self.config.build_dir.resolve()
        downloads: List[Dict[str, str]] = []
        seen = set()
        for result in results:
            for artifact in result.artifacts:
                location = artifact.container or artifact.path
                try:
                    href = location.resolve().relative_to(build_dir).as_posix()
                except ValueError:
                    continue
                if href in seen:
                    continue
                seen.add(href)
                downloads.append({"href": href, "label": location.name, "format": result.format})
        return downloads

    # ------------------------------------------------------------------
    # Setup

    def _create_loader(self) -> ModelLoader:
        try:
            return ModelLoader.from_path(
                self.config.base_model,
                resolver=self._resolver or self._create_resolver(),
                force_publish=self.config.force_publish,
            )
        except (OSError, ModelError) as exc:
            raise PublishError(f"Unable to load base model: {exc}") from exc

    def _create_resolver(self) -> ModelResolver:
        cache = None
        if self.config.resolver.cache_path is not None:
            cache = ModelCache(self.config.resolver.cache_path)
        return ModelResolver(timeout=self.config.resolver.timeout, cache=cache)

    def _prune_resolver_cache(self, loader: ModelLoader) -> None:
        resolver = loader.resolver
        # force-publish requests nothing; leave the cache untouched.
        if self.config.force_publish or not isinstance(resolver, ModelResolver):
            return
        if resolver.cache is None:
            return
        resolver.cache.prune(resolver.requested)
        try:
            resolver.cache.persist()
        except OSError as exc:
            self.logger.warning("Failed to update resolver cache: %s", exc)

    def _select_emitters(self) -> List[Emitter]:
        if self._emitter_overrides is not None:
            return list(self._emitter_overrides)
        settings = EmitterSettings()
        if self.config.site.diagram_server:
            settings.diagram_server = self.config.site.diagram_server
        try:
            return discover_emitters(self.config.formats, settings)
        except ValueError as exc:
            raise PublishError(str(exc)) from exc

    def _clean(self, build_dir: Path) -> None:
        if not build_dir.exists():
            return
        self.logger.debug("Removing previous build directory %s", build_dir)
        try:
            shutil.rmtree(build_dir)
        except OSError as exc:
            raise PublishError(f"Unable to clean build directory {build_dir}: {exc}") from exc


__all__ = [
    "PublishError",
    "PublishOrchestrator",
    "PublishReport",
    "derive_file_path",
    "derive_page_path",
    "extract_version_label",
]
