from __future__ import annotations

import pytest

from tests._fixtures.fakes import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    """Provide a manually advanced clock starting at zero."""
    return FakeClock()
