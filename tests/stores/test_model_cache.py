"""Tests for the external model cache store."""

from __future__ import annotations

import json
from pathlib import Path

from modelpub.stores import ModelCache

URI = "https://models.example.org/money.cto"
TEXT = "namespace org.example.money\n"


def test_model_cache_round_trip(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    cache = ModelCache(cache_path)
    cache.store(URI, TEXT)
    cache.persist()

    loaded = ModelCache(cache_path)

    assert URI in loaded
    assert loaded.get(URI) == TEXT


def test_model_cache_ignores_tampered_entries(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    cache = ModelCache(cache_path)
    cache.store(URI, TEXT)
    cache.persist()

    payload = json.loads(cache_path.read_text(encoding="utf-8"))
    payload["entries"][URI]["text"] = "namespace org.example.other\n"
    cache_path.write_text(json.dumps(payload), encoding="utf-8")

    assert ModelCache(cache_path).get(URI) is None


def test_model_cache_discards_other_versions(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    cache_path.write_text(json.dumps({"version": 99, "entries": {}}), encoding="utf-8")

    cache = ModelCache(cache_path)

    assert cache.get(URI) is None


def test_model_cache_prune_removes_unused(tmp_path: Path) -> None:
    cache = ModelCache(tmp_path / "cache.json")
    cache.store("a", "namespace a\n")
    cache.store("b", "namespace b\n")

    cache.prune(["a"])
    cache.persist()

    reloaded = ModelCache(tmp_path / "cache.json")
    assert reloaded.get("a") == "namespace a\n"
    assert reloaded.get("b") is None
