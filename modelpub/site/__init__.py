"""Static documentation site generation."""

from .index import (
    INDEX_FILENAME,
    IndexOutcome,
    SiteIndex,
    SiteIndexBuilder,
    namespace_sort_key,
    use_system_collation,
)
from .renderer import ModelPage, SiteRenderer

__all__ = [
    "INDEX_FILENAME",
    "IndexOutcome",
    "ModelPage",
    "SiteIndex",
    "SiteIndexBuilder",
    "SiteRenderer",
    "namespace_sort_key",
    "use_system_collation",
]
