from __future__ import annotations

from unittest.mock import MagicMock

GRID_URL = "http://grid.local:4444/wd/hub"


def call_names(mock: MagicMock) -> list[str]:
    return [name for name, _, _ in mock.mock_calls]
