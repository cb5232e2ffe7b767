"""Zip container accumulation for multi-file emitter output."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Tuple
import zipfile

# Fixed entry timestamp so regenerated entries carry identical metadata.
_ENTRY_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


class ArchiveUnit:
    """Collects the entries generated for one (model, format) pair.

    `write` stages a single entry; `finalize` moves it into the container and
    rewrites the whole zip file on disk. A unit that never had an entry
    finalized leaves no file behind.
    """

    def __init__(self, path: Path, *, comment: str = "") -> None:
        self.path = path
        self.comment = comment
        self._entries: Dict[str, bytes] = {}
        self._staged: Optional[Tuple[str, bytes]] = None

    @classmethod
    def open(cls, path: Path, *, comment: str = "") -> "ArchiveUnit":
        return cls(path, comment=comment)

    @property
    def written(self) -> bool:
        return bool(self._entries)

    def write(self, entry_name: str, payload: bytes) -> None:
        if not entry_name or entry_name.startswith("/"):
            raise ValueError(f"Invalid archive entry name: {entry_name!r}")
        self._staged = (entry_name, bytes(payload))

    def finalize(self) -> bool:
        """Commit the staged entry and rewrite the container; False when nothing was staged."""
        if self._staged is None:
            return False
        entry_name, payload = self._staged
        self._staged = None
        self._entries[entry_name] = payload
        self._flush()
        return True

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        comment = self.comment.encode("utf-8")
        with zipfile.ZipFile(self.path, "w", zipfile.ZIP_DEFLATED) as archive:
            for entry_name, payload in self._entries.items():
                info = zipfile.ZipInfo(entry_name, date_time=_ENTRY_TIMESTAMP)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = 0o644 << 16
                info.comment = comment
                archive.writestr(info, payload)


__all__ = ["ArchiveUnit"]
