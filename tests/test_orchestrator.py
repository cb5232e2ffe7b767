"""Tests for modelpub.orchestrator."""

from __future__ import annotations

import json
import logging
import zipfile
from pathlib import Path
from typing import Dict

import pytest

from modelpub.codegen import ModelVisitor
from modelpub.emitters import ArchiveEmitter, EmitResult, Emitter, discover_emitters
from modelpub.models import ModelGraph
from modelpub.orchestrator import (
    PublishError,
    PublishOrchestrator,
    derive_page_path,
    extract_version_label,
)
from tests._fixtures.model_tree import ModelTreeBuilder
from tests._fixtures.models import VEHICLE_MODEL

FLEET_TEMPLATE = """
namespace org.example.fleet

import org.example.vehicle.Vehicle from {uri}

concept Fleet {{
  o String name
  --> Vehicle[] vehicles
}}
"""


class SilentEmitter(ArchiveEmitter):
    """Archive emitter whose visitor writes no files."""

    name = "silent"
    extension = ".silent.zip"

    def create_visitor(self) -> ModelVisitor:
        return ModelVisitor()


class ExplodingEmitter(Emitter):
    """Emitter whose backend always raises."""

    name = "exploding"

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    def generate(self, graph: ModelGraph, destination: Path, base_name: str) -> EmitResult:
        self.calls.append(base_name)
        raise RuntimeError(f"backend crashed on {graph.namespace}")


def _write_vehicle_tree(model_tree: ModelTreeBuilder) -> None:
    model_tree.write({"vehicle/v1.0/vehicle.cto": VEHICLE_MODEL})
    vehicle_uri = (model_tree.source / "vehicle" / "v1.0" / "vehicle.cto").as_uri()
    model_tree.write({"fleet/fleet.cto": FLEET_TEMPLATE.format(uri=vehicle_uri)})


def _snapshot(build: Path) -> Dict[str, bytes]:
    return {
        path.relative_to(build).as_posix(): path.read_bytes()
        for path in sorted(build.rglob("*"))
        if path.is_file()
    }


def _archive_entries(path: Path) -> Dict[str, bytes]:
    with zipfile.ZipFile(path) as archive:
        return {name: archive.read(name) for name in archive.namelist()}


def test_valid_models_produce_every_artifact_and_record(model_tree: ModelTreeBuilder) -> None:
    _write_vehicle_tree(model_tree)
    config = model_tree.config()

    report = PublishOrchestrator(config).run()

    out = model_tree.build / "vehicle" / "v1.0"
    for name in (
        "vehicle.puml",
        "org.example.vehicle.ts",
        "vehicle.xsd.zip",
        "vehicle.json",
        "vehicle.jar",
        "vehicle.go.zip",
        "vehicle.cto",
        "vehicle.html",
    ):
        assert (out / name).exists(), name
    assert [record.namespace for record in report.records] == [
        "org.example.fleet",
        "org.example.vehicle",
    ]
    assert report.rejections == []
    assert report.emit_failures == []
    assert report.index_path == model_tree.build / "index.html"
    assert report.ok


def test_record_carries_page_path_version_and_diagram(model_tree: ModelTreeBuilder) -> None:
    _write_vehicle_tree(model_tree)

    report = PublishOrchestrator(model_tree.config()).run()
    vehicle = next(r for r in report.records if r.namespace == "org.example.vehicle")
    fleet = next(r for r in report.records if r.namespace == "org.example.fleet")

    assert vehicle.page_path == "vehicle/v1.0/vehicle.html"
    assert vehicle.file_path == "vehicle/v1.0/vehicle"
    assert vehicle.version_label == " (v1.0)"
    assert vehicle.diagram_url.startswith("https://www.plantuml.com/plantuml/svg/")
    assert fleet.version_label == ""

    page = (model_tree.build / vehicle.page_path).read_text(encoding="utf-8")
    assert "org.example.vehicle (v1.0)" in page
    assert vehicle.diagram_url in page
    assert "vehicle/v1.0/vehicle.jar" in page


def test_invalid_models_are_skipped_without_artifacts(model_tree: ModelTreeBuilder) -> None:
    model_tree.write(
        {
            "a/broken.cto": "namespace org.broken\nconcept {\n",
            "b/orders.cto": (
                "namespace org.example.orders\n"
                "import org.example.money.Amount from https://models.example.org/money.cto\n"
                "concept Order {\n  o Amount total\n}\n"
            ),
            "c/vehicle.cto": VEHICLE_MODEL,
        }
    )

    def resolver(uri: str) -> str:
        raise OSError("offline")

    report = PublishOrchestrator(model_tree.config(), resolver=resolver).run()

    assert [record.namespace for record in report.records] == ["org.example.vehicle"]
    assert [(r.source_path.name, r.kind) for r in report.rejections] == [
        ("broken.cto", "syntax"),
        ("orders.cto", "resolution"),
    ]
    assert not (model_tree.build / "a").exists()
    assert not (model_tree.build / "b").exists()
    assert (model_tree.build / "c" / "vehicle.jar").exists()
    assert not report.ok


def test_archives_hold_entries_for_the_whole_graph(model_tree: ModelTreeBuilder) -> None:
    _write_vehicle_tree(model_tree)

    PublishOrchestrator(model_tree.config()).run()

    entries = _archive_entries(model_tree.build / "fleet" / "fleet.go.zip")
    assert sorted(entries) == [
        "org_accordproject_base.go",
        "org_example_fleet.go",
        "org_example_vehicle.go",
    ]
    xsd = _archive_entries(model_tree.build / "fleet" / "fleet.xsd.zip")
    assert "org.example.vehicle.xsd" in xsd


def test_empty_archive_emitter_writes_no_container(model_tree: ModelTreeBuilder) -> None:
    model_tree.write({"vehicle.cto": VEHICLE_MODEL})
    emitters = discover_emitters(["go"]) + [SilentEmitter()]

    report = PublishOrchestrator(model_tree.config(), emitters=emitters).run()

    assert report.emit_failures == []
    assert (model_tree.build / "vehicle.go.zip").exists()
    assert not (model_tree.build / "vehicle.silent.zip").exists()


def test_rejections_are_logged_with_namespace_and_path(
    model_tree: ModelTreeBuilder, caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(logging.getLogger("modelpub"), "propagate", True)
    model_tree.write({"bad/thing.cto": "namespace org.bad\nconcept Thing extends Missing {\n}\n"})

    with caplog.at_level(logging.WARNING, logger="modelpub"):
        report = PublishOrchestrator(model_tree.config(), emitters=[]).run()

    assert report.rejections[0].namespace == "org.bad"
    path = model_tree.source / "bad" / "thing.cto"
    assert f"Error handling org.bad ({path})" in caplog.messages


def test_resolver_cache_keeps_only_models_requested_by_the_batch(model_tree: ModelTreeBuilder) -> None:
    _write_vehicle_tree(model_tree)
    cache_path = model_tree.root / ".cache" / "models.json"
    cache_path.parent.mkdir()
    stale = {"text": "namespace org.stale\n", "sha256": "0", "fetched_at": "2020-01-01T00:00:00Z"}
    cache_path.write_text(
        json.dumps({"version": 1, "entries": {"https://models.example.org/stale.cto": stale}}),
        encoding="utf-8",
    )
    config = model_tree.config()
    config.resolver.cache_path = cache_path

    report = PublishOrchestrator(config, emitters=[]).run()

    assert report.rejections == []
    entries = json.loads(cache_path.read_text(encoding="utf-8"))["entries"]
    vehicle_uri = (model_tree.source / "vehicle" / "v1.0" / "vehicle.cto").as_uri()
    assert list(entries) == [vehicle_uri]


def test_failing_emitter_does_not_stop_other_formats_or_files(model_tree: ModelTreeBuilder) -> None:
    _write_vehicle_tree(model_tree)
    exploding = ExplodingEmitter()
    emitters = discover_emitters(["typescript"]) + [exploding] + discover_emitters(["go"])

    report = PublishOrchestrator(model_tree.config(), emitters=emitters).run()

    assert exploding.calls == ["fleet", "vehicle"]
    assert report.published == ["org.example.fleet", "org.example.vehicle"]
    assert [failure.format for failure in report.emit_failures] == ["exploding", "exploding"]
    assert all(failure.kind == "emit" for failure in report.emit_failures)
    assert "backend crashed on org.example.fleet" in report.emit_failures[0].message
    assert report.rejections == []
    for folder, name, namespace in (
        ("fleet", "fleet", "org.example.fleet"),
        ("vehicle/v1.0", "vehicle", "org.example.vehicle"),
    ):
        out = model_tree.build / folder
        assert (out / f"{namespace}.ts").exists()
        assert (out / f"{name}.go.zip").exists()
        assert (out / f"{name}.html").exists()
    index = (model_tree.build / "index.html").read_text(encoding="utf-8")
    assert "fleet/fleet.html" in index
    assert not report.ok


def test_single_file_outputs_exclude_imported_namespaces(model_tree: ModelTreeBuilder) -> None:
    _write_vehicle_tree(model_tree)

    PublishOrchestrator(model_tree.config()).run()

    diagram = (model_tree.build / "fleet" / "fleet.puml").read_text(encoding="utf-8")
    assert "class org.example.fleet.Fleet" in diagram
    assert "class org.example.vehicle" not in diagram
    stubs = (model_tree.build / "fleet" / "org.example.fleet.ts").read_text(encoding="utf-8")
    assert "export interface IFleet" in stubs
    assert "export interface IVehicle" not in stubs
    assert not (model_tree.build / "fleet" / "org.example.vehicle.ts").exists()


def test_index_sorts_records_by_namespace(model_tree: ModelTreeBuilder) -> None:
    model_tree.write(
        {
            "a/zeta.cto": "namespace org.zeta\nconcept Z {}\n",
            "b/alpha.cto": "namespace org.alpha\nconcept A {}\n",
            "c/mid.cto": "namespace org.mid\nconcept M {}\n",
        }
    )

    report = PublishOrchestrator(model_tree.config()).run()

    assert [r.namespace for r in report.records] == ["org.zeta", "org.alpha", "org.mid"]
    index = (model_tree.build / "index.html").read_text(encoding="utf-8")
    positions = [index.index(namespace) for namespace in ("org.alpha", "org.mid", "org.zeta")]
    assert positions == sorted(positions)


def test_rerun_produces_identical_outputs(model_tree: ModelTreeBuilder) -> None:
    _write_vehicle_tree(model_tree)
    config = model_tree.config()

    PublishOrchestrator(config).run()
    first = _snapshot(model_tree.build)
    PublishOrchestrator(config).run()
    second = _snapshot(model_tree.build)

    assert sorted(first) == sorted(second)
    for name, payload in first.items():
        if name.endswith((".zip", ".jar")):
            assert _archive_entries(model_tree.build / name) == _archive_entries_from_bytes(payload)
        else:
            assert second[name] == payload, name


def _archive_entries_from_bytes(payload: bytes) -> Dict[str, bytes]:
    import io

    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        return {name: archive.read(name) for name in archive.namelist()}


def test_clean_disabled_keeps_previous_build(model_tree: ModelTreeBuilder) -> None:
    model_tree.write({"vehicle.cto": VEHICLE_MODEL})
    stale = model_tree.build / "stale.txt"
    stale.parent.mkdir(parents=True)
    stale.write_text("keep", encoding="utf-8")

    PublishOrchestrator(model_tree.config(clean=False)).run()
    assert stale.exists()

    PublishOrchestrator(model_tree.config()).run()
    assert not stale.exists()


def test_missing_source_directory_is_fatal(model_tree: ModelTreeBuilder, tmp_path: Path) -> None:
    config = model_tree.config(source_dir=tmp_path / "nowhere")

    with pytest.raises(PublishError, match="Source directory not found"):
        PublishOrchestrator(config).run()


def test_unreadable_base_model_is_fatal(model_tree: ModelTreeBuilder, tmp_path: Path) -> None:
    model_tree.write({"vehicle.cto": VEHICLE_MODEL})
    config = model_tree.config(base_model=tmp_path / "missing-base.cto")

    with pytest.raises(PublishError, match="Unable to load base model"):
        PublishOrchestrator(config).run()
    assert not model_tree.build.exists()


def test_unknown_format_is_fatal(model_tree: ModelTreeBuilder) -> None:
    model_tree.write({"vehicle.cto": VEHICLE_MODEL})

    with pytest.raises(PublishError, match="cobol"):
        PublishOrchestrator(model_tree.config(formats=["cobol"])).run()


@pytest.mark.parametrize(
    ("relative_dir", "expected"),
    [
        ("org/vehicle/v2.1", " (v2.1)"),
        ("org/v3/vehicle", " (v3)"),
        ("org/v1.2.3", " (v1.2.3)"),
        ("org/vehicle", ""),
        ("v1/v2", ""),
        ("", ""),
    ],
)
def test_extract_version_label(relative_dir: str, expected: str) -> None:
    assert extract_version_label(relative_dir) == expected


def test_derive_page_path_handles_root_files() -> None:
    assert derive_page_path("", "vehicle") == "vehicle.html"
    assert derive_page_path("org/v1", "vehicle") == "org/v1/vehicle.html"
