"""Site index assembly over every published model."""

from __future__ import annotations

import locale
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from jinja2 import TemplateError

from ..logging import get_logger
from ..models import IndexFailure, PublishRecord
from .renderer import SiteRenderer

INDEX_FILENAME = "index.html"

_logger = get_logger("site.index")


def use_system_collation() -> bool:
    """Adopt the user's LC_COLLATE so index ordering follows their locale."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as exc:
        _logger.debug("Keeping default collation: %s", exc)
        return False
    return True


def namespace_sort_key(namespace: str) -> tuple[str, str]:
    # Case-folded primary key, exact spelling breaks ties.
    return (locale.strxfrm(namespace.casefold()), locale.strxfrm(namespace))


@dataclass
class SiteIndex:
    """Published records ordered by namespace using the active locale's collation."""

    records: List[PublishRecord] = field(default_factory=list)

    @classmethod
    def from_records(cls, records: Sequence[PublishRecord]) -> "SiteIndex":
        # sorted() is stable, so equal namespaces keep discovery order.
        ordered = sorted(records, key=lambda record: namespace_sort_key(record.namespace))
        return cls(records=ordered)

    @property
    def namespaces(self) -> List[str]:
        return [record.namespace for record in self.records]

    def __len__(self) -> int:
        return len(self.records)


@dataclass
class IndexOutcome:
    index: SiteIndex
    path: Optional[Path] = None
    failure: Optional[IndexFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class SiteIndexBuilder:
    """Renders `index.html` at the build root once the whole batch is done."""

    def __init__(self, renderer: SiteRenderer, build_dir: Path) -> None:
        self.renderer = renderer
        self.build_dir = build_dir
        self.logger = get_logger("site.index")

    def build(self, records: Sequence[PublishRecord]) -> IndexOutcome:
        index = SiteIndex.from_records(records)
        target = self.build_dir / INDEX_FILENAME
        try:
            html = self.renderer.render_index(index.records)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(html, encoding="utf-8")
        except (OSError, TemplateError) as exc:
            self.logger.error("Failed to write site index %s: %s", target, exc)
            return IndexOutcome(index=index, failure=IndexFailure(path=target, message=str(exc)))
        self.logger.debug("Wrote site index with %d model(s) to %s", len(index), target)
        return IndexOutcome(index=index, path=target)


__all__ = [
    "INDEX_FILENAME",
    "IndexOutcome",
    "SiteIndex",
    "SiteIndexBuilder",
    "namespace_sort_key",
    "use_system_collation",
]
