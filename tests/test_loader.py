"""Tests for building model graphs from source files."""

from __future__ import annotations

from pathlib import Path

import pytest

from modelpub.cto import ModelSyntaxError
from modelpub.loader import ModelLoader, bundled_base_model
from modelpub.models import ModelGraph, ModelRejected, SourceModelFile
from tests._fixtures.models import VEHICLE_MODEL


def _source(tmp_path: Path, relative: str, text: str) -> SourceModelFile:
    root = tmp_path / "src"
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return SourceModelFile.read(path, root)


def test_source_model_file_derives_name_and_directory(tmp_path: Path) -> None:
    source = _source(tmp_path, "org/vehicle/v1.0/vehicle.cto", VEHICLE_MODEL)
    top_level = _source(tmp_path, "top.cto", VEHICLE_MODEL)

    assert source.name == "vehicle"
    assert source.relative_dir == "org/vehicle/v1.0"
    assert top_level.relative_dir == ""


def test_loader_links_against_base_model(tmp_path: Path) -> None:
    loader = ModelLoader(bundled_base_model())

    graph = loader.load(_source(tmp_path, "vehicle.cto", VEHICLE_MODEL))

    assert isinstance(graph, ModelGraph)
    assert graph.namespace == "org.example.vehicle"
    assert sorted(graph.manager.get_namespaces()) == ["org.accordproject.base", "org.example.vehicle"]
    assert graph.manager.is_system_namespace("org.accordproject.base")


def test_loader_uses_fresh_manager_per_file(tmp_path: Path) -> None:
    loader = ModelLoader(bundled_base_model())

    first = loader.load(_source(tmp_path, "a/vehicle.cto", VEHICLE_MODEL))
    second = loader.load(_source(tmp_path, "b/vehicle.cto", VEHICLE_MODEL))

    assert isinstance(first, ModelGraph)
    assert isinstance(second, ModelGraph)
    assert first.manager is not second.manager


def test_loader_rejects_syntax_errors(tmp_path: Path) -> None:
    loader = ModelLoader(bundled_base_model())

    result = loader.load(_source(tmp_path, "bad.cto", "namespace org.bad\nconcept {\n"))

    assert isinstance(result, ModelRejected)
    assert result.kind == "syntax"
    assert result.source_path.name == "bad.cto"


def test_loader_rejects_validation_errors(tmp_path: Path) -> None:
    loader = ModelLoader(bundled_base_model())
    text = "namespace org.bad\nconcept Thing extends Missing {\n}\n"

    result = loader.load(_source(tmp_path, "bad.cto", text))

    assert isinstance(result, ModelRejected)
    assert result.kind == "validation"
    assert "Missing" in result.message


def test_loader_resolves_external_imports(tmp_path: Path) -> None:
    money = tmp_path / "remote" / "money.cto"
    money.parent.mkdir()
    money.write_text("namespace org.example.money\nconcept Amount {\n  o Double value\n}\n", encoding="utf-8")
    text = (
        "namespace org.example.orders\n"
        f"import org.example.money.Amount from {money.as_uri()}\n"
        "concept Order {\n  o Amount total\n}\n"
    )
    loader = ModelLoader(bundled_base_model())

    graph = loader.load(_source(tmp_path, "orders.cto", text))

    assert isinstance(graph, ModelGraph)
    assert "org.example.money" in graph.manager.get_namespaces()


def test_loader_rejects_unreachable_external_models(tmp_path: Path) -> None:
    text = (
        "namespace org.example.orders\n"
        "import org.example.money.Amount from https://models.example.org/money.cto\n"
        "concept Order {\n  o Amount total\n}\n"
    )

    def resolver(uri: str) -> str:
        raise OSError("network unreachable")

    loader = ModelLoader(bundled_base_model(), resolver=resolver)
    result = loader.load(_source(tmp_path, "orders.cto", text))

    assert isinstance(result, ModelRejected)
    assert result.kind == "resolution"


def test_force_publish_skips_external_resolution(tmp_path: Path) -> None:
    text = (
        "namespace org.example.orders\n"
        "import org.example.money.Amount from https://models.example.org/money.cto\n"
        "concept Order {\n  o Amount total\n}\n"
    )
    calls: list[str] = []

    def resolver(uri: str) -> str:
        calls.append(uri)
        raise AssertionError("resolver must not be called")

    loader = ModelLoader(bundled_base_model(), resolver=resolver, force_publish=True)
    graph = loader.load(_source(tmp_path, "orders.cto", text))

    assert isinstance(graph, ModelGraph)
    assert calls == []
    assert graph.manager.get_missing_external_imports() == {
        "org.example.money": "https://models.example.org/money.cto"
    }


def test_candidate_in_base_namespace_replaces_trusted_copy(tmp_path: Path) -> None:
    text = "namespace org.accordproject.base\nabstract asset Asset {\n}\nconcept Extra {\n  o String note\n}\n"
    loader = ModelLoader(bundled_base_model())

    graph = loader.load(_source(tmp_path, "base.cto", text))

    assert isinstance(graph, ModelGraph)
    assert graph.manager.get_namespaces() == ["org.accordproject.base"]
    assert graph.manager.get_model_file("org.accordproject.base") is graph.model_file


def test_loader_rejects_broken_base_model() -> None:
    with pytest.raises(ModelSyntaxError):
        ModelLoader("this is not a model")


def test_loader_from_path_reads_custom_base_model(tmp_path: Path) -> None:
    base = tmp_path / "base.cto"
    base.write_text("namespace org.custom.base\nabstract asset Thing {\n}\n", encoding="utf-8")

    loader = ModelLoader.from_path(base)

    assert loader.base_namespace == "org.custom.base"


def test_loader_links_subtype_declaring_extends_before_identifier(tmp_path: Path) -> None:
    loader = ModelLoader(bundled_base_model())
    text = (
        "namespace org.example.fleet\n"
        "abstract asset Base identified by vin {\n  o String vin\n}\n"
        "asset Truck extends Base identified by vin {\n  o Integer axles\n}\n"
    )

    graph = loader.load(_source(tmp_path, "fleet.cto", text))

    assert isinstance(graph, ModelGraph)
    assert graph.model_file.get_declaration("Truck").super_type == "Base"


def test_rejections_name_the_declared_namespace_once_parsed(tmp_path: Path) -> None:
    loader = ModelLoader(bundled_base_model())

    invalid = loader.load(_source(tmp_path, "bad.cto", "namespace org.bad\nconcept Thing extends Missing {\n}\n"))
    unparsable = loader.load(_source(tmp_path, "worse.cto", "namespace org.worse\nconcept {\n"))

    assert isinstance(invalid, ModelRejected)
    assert invalid.namespace == "org.bad"
    assert isinstance(unparsable, ModelRejected)
    assert unparsable.namespace is None
