import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from settings import settings  # noqa: E402


@pytest.fixture(autouse=True)
def _no_debug_artifacts(monkeypatch):
    """Keep a developer's CARD_DEBUG_ARTIFACTS=1 from writing files during tests."""
    monkeypatch.setattr(settings, "CARD_DEBUG_ARTIFACTS", False)
