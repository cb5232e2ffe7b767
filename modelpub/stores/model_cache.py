"""Persistent cache for downloaded external models."""

from __future__ import annotations

from datetime import UTC, datetime
import hashlib
import json
from pathlib import Path
from typing import Dict, Iterable, Optional

_CACHE_VERSION = 1


class ModelCache:
    """Stores external model text keyed by source URI."""

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._entries: Dict[str, Dict[str, object]] = {}
        self._dirty = False
        if self._path is not None:
            self._load(self._path)

    def get(self, uri: str) -> Optional[str]:
        entry = self._entries.get(uri)
        if not entry:
            return None
        text = entry.get("text")
        if not isinstance(text, str):
            return None
        if entry.get("sha256") != _digest(text):
            return None
        return text

    def store(self, uri: str, text: str) -> None:
        self._entries[uri] = {
            "text": text,
            "sha256": _digest(text),
            "fetched_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        self._dirty = True

    def prune(self, uris_to_keep: Iterable[str]) -> None:
        """Forget every entry whose URI is not in `uris_to_keep`."""
        keep = set(uris_to_keep)
        removed = [uri for uri in self._entries if uri not in keep]
        if removed:
            for uri in removed:
                self._entries.pop(uri, None)
            self._dirty = True

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        payload = {
            "version": _CACHE_VERSION,
            "entries": self._entries,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8"
        )
        self._dirty = False

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError):
            return
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            return
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return
        valid_entries: Dict[str, Dict[str, object]] = {}
        for uri, raw in entries.items():
            if not isinstance(uri, str) or not isinstance(raw, dict):
                continue
            if "text" not in raw or "sha256" not in raw:
                continue
            valid_entries[uri] = raw
        self._entries = valid_entries
        self._dirty = False


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


__all__ = ["ModelCache"]
