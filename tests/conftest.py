from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.module_builder import ModuleBuilder


@pytest.fixture
def module_builder(tmp_path: Path) -> ModuleBuilder:
    """Provide a reusable Go module builder rooted at the pytest tmp_path."""
    return ModuleBuilder(tmp_path)
