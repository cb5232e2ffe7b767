from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.model_tree import ModelTreeBuilder


@pytest.fixture
def model_tree(tmp_path: Path) -> ModelTreeBuilder:
    """Provide a reusable model tree builder rooted at the pytest tmp_path."""
    return ModelTreeBuilder(tmp_path)
