from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.baselines import BaselineBuilder


@pytest.fixture
def baseline_builder(tmp_path: Path) -> BaselineBuilder:
    """Provide a baseline writer rooted at the pytest tmp_path."""
    return BaselineBuilder(tmp_path)
