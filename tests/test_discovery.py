"""Tests for walking the model source tree."""

from __future__ import annotations

from pathlib import Path

import pytest

from modelpub.discovery import ModelDiscovery
from tests._fixtures.model_tree import ModelTreeBuilder

MODEL = "namespace org.example.{name}\n"


def test_discovery_walks_depth_first_in_name_order(model_tree: ModelTreeBuilder) -> None:
    model_tree.write(
        {
            "b.cto": MODEL.format(name="b"),
            "a/z.cto": MODEL.format(name="z"),
            "a/m/deep.cto": MODEL.format(name="deep"),
            "a/c.cto": MODEL.format(name="c"),
            "c.cto": MODEL.format(name="c2"),
        }
    )

    files = ModelDiscovery(model_tree.source).discover()

    assert [path.relative_to(model_tree.source).as_posix() for path in files] == [
        "a/c.cto",
        "a/m/deep.cto",
        "a/z.cto",
        "b.cto",
        "c.cto",
    ]


def test_discovery_filters_extensions_and_exclusions(model_tree: ModelTreeBuilder) -> None:
    model_tree.write(
        {
            "keep.cto": MODEL.format(name="keep"),
            "README.md": "# models\n",
            "drafts/skip.cto": MODEL.format(name="skip"),
            "nested/drafts/also.cto": MODEL.format(name="also"),
            "legacy/old.cto": MODEL.format(name="old"),
            "other.concerto": MODEL.format(name="other"),
        }
    )

    discovery = ModelDiscovery(
        model_tree.source,
        extensions=[".cto", "concerto"],
        exclude_paths=["drafts/", "/legacy"],
    )
    names = [path.name for path in discovery.discover()]

    assert names == ["keep.cto", "other.concerto"]


def test_discovery_requires_existing_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        ModelDiscovery(tmp_path / "missing").discover()
