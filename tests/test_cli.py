"""CLI behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from modelpub.cli import _build_parser, main
from tests._fixtures.model_tree import ModelTreeBuilder
from tests._fixtures.models import VEHICLE_MODEL


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "build"])
    assert args.verbose is True
    assert args.command == "build"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["build", "--verbose"])
    assert args.verbose is True
    assert args.command == "build"


def test_cli_collects_repeated_formats() -> None:
    parser = _build_parser()
    args = parser.parse_args(["build", "--format", "go", "--format", "java", "--no-clean"])
    assert args.formats == ["go", "java"]
    assert args.no_clean is True
    assert args.path == "."


def test_cli_build_publishes_site(
    model_tree: ModelTreeBuilder, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("FORCE_PUBLISH", raising=False)
    monkeypatch.delenv("MODELPUB_FORCE_PUBLISH", raising=False)
    model_tree.write({"v2/vehicle.cto": VEHICLE_MODEL, "broken.cto": "namespace org.broken\nconcept {\n"})

    main(["build", str(model_tree.path()), "--format", "typescript", "--server-root", "/models"])

    output = capsys.readouterr().out
    assert "Published 1 model(s)" in output
    assert "Rejected 1 model(s):" in output
    assert "[syntax]" in output
    assert (model_tree.build / "v2" / "org.example.vehicle.ts").exists()
    assert not (model_tree.build / "v2" / "vehicle.jar").exists()
    index = (model_tree.build / "index.html").read_text(encoding="utf-8")
    assert 'href="/models/v2/vehicle.html"' in index


def test_cli_build_honours_output_override(model_tree: ModelTreeBuilder, tmp_path: Path) -> None:
    model_tree.write({"vehicle.cto": VEHICLE_MODEL})
    output = tmp_path / "site"

    main(["build", str(model_tree.path()), "--output", str(output), "--format", "jsonschema"])

    assert (output / "vehicle.json").exists()
    assert (output / "index.html").exists()


def test_cli_build_exits_on_missing_source(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["build", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "Source directory not found" in capsys.readouterr().err


def test_cli_formats_lists_builtin_emitters(capsys: pytest.CaptureFixture[str]) -> None:
    main(["formats"])

    lines = capsys.readouterr().out.splitlines()
    names = [line.split("\t")[0] for line in lines]
    assert names[:6] == ["plantuml", "typescript", "xmlschema", "jsonschema", "java", "go"]


def test_cli_build_writes_log_file(model_tree: ModelTreeBuilder, tmp_path: Path) -> None:
    model_tree.write({"vehicle.cto": VEHICLE_MODEL})
    log_file = tmp_path / "logs" / "build.log"

    main(["build", str(model_tree.path()), "--format", "typescript", "--quiet", "--log-file", str(log_file)])

    # quiet keeps per-file progress out of the log as well
    text = log_file.read_text(encoding="utf-8")
    assert "Processed org.example.vehicle" not in text


def test_cli_build_verbose_log_file_records_progress(model_tree: ModelTreeBuilder, tmp_path: Path) -> None:
    model_tree.write({"vehicle.cto": VEHICLE_MODEL})
    log_file = tmp_path / "build.log"

    main(["build", str(model_tree.path()), "--format", "typescript", "-v", "--log-file", str(log_file)])

    text = log_file.read_text(encoding="utf-8")
    assert "modelpub.orchestrator: Processed org.example.vehicle" in text


def test_cli_build_reads_project_config(
    model_tree: ModelTreeBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("SERVER_ROOT", raising=False)
    monkeypatch.delenv("MODELPUB_SERVER_ROOT", raising=False)
    model_tree.write_project(
        {
            ".modelpub.yml": """
                source_dir: models
                build_dir: public
                formats: [go]
                site:
                  server_root: /catalog
                  title: Fleet Models
            """,
            "models/vehicle.cto": VEHICLE_MODEL,
        }
    )

    main(["build", str(model_tree.path())])

    public = model_tree.root / "public"
    assert (public / "vehicle.go.zip").exists()
    assert not (public / "vehicle.puml").exists()
    index = (public / "index.html").read_text(encoding="utf-8")
    assert 'href="/catalog/vehicle.html"' in index
    assert "Fleet Models" in index
