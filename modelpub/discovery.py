"""Source tree walking for model files."""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

from .logging import get_logger

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".modelpub",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}

DEFAULT_EXTENSIONS = (".cto",)


@dataclass
class ExcludeRule:
    """A gitignore-style exclusion pattern from `exclude_paths`."""

    pattern: str
    directory_only: bool
    anchored: bool
    has_slash: bool

    @classmethod
    def parse(cls, pattern: str) -> "ExcludeRule | None":
        pattern = pattern.strip()
        if not pattern:
            return None
        directory_only = pattern.endswith("/")
        if directory_only:
            pattern = pattern[:-1]
        anchored = pattern.startswith("/")
        if anchored:
            pattern = pattern[1:]
        return cls(
            pattern=pattern,
            directory_only=directory_only,
            anchored=anchored,
            has_slash="/" in pattern,
        )

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False
        if self.anchored or self.has_slash:
            return fnmatchcase(rel_path, self.pattern)
        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


class ModelDiscovery:
    """Yields model files under a source root in depth-first, name-sorted order.

    Files and sub-directories of one directory are visited together in name
    order, and a sub-directory is exhausted before its next sibling.
    """

    def __init__(
        self,
        root: Path,
        *,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        exclude_paths: Sequence[str] = (),
    ) -> None:
        self.root = root
        self.extensions = tuple(ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions)
        self.rules: List[ExcludeRule] = [
            rule for rule in (ExcludeRule.parse(pattern) for pattern in exclude_paths) if rule is not None
        ]
        self.logger = get_logger("discovery")

    def discover(self) -> List[Path]:
        if not self.root.exists():
            raise FileNotFoundError(f"Source directory not found: {self.root}")
        if not self.root.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {self.root}")
        files = list(self._walk(self.root))
        self.logger.debug("Discovered %d model file(s) under %s", len(files), self.root)
        return files

    def __iter__(self) -> Iterator[Path]:
        return iter(self.discover())

    def _walk(self, directory: Path) -> Iterator[Path]:
        for entry in sorted(directory.iterdir(), key=lambda item: item.name):
            rel_path = entry.relative_to(self.root).as_posix()
            if entry.is_dir():
                if entry.name in _EXCLUDED_DIRS or self._excluded(rel_path, True):
                    continue
                yield from self._walk(entry)
                continue
            if entry.name in _EXCLUDED_FILES or self._excluded(rel_path, False):
                continue
            if entry.suffix.lower() in self.extensions:
                yield entry

    def _excluded(self, rel_path: str, is_dir: bool) -> bool:
        return any(rule.matches(rel_path, is_dir) for rule in self.rules)


__all__ = ["DEFAULT_EXTENSIONS", "ExcludeRule", "ModelDiscovery"]
