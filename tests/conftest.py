from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import FakeChatClient  # noqa: E402


@pytest.fixture
def fake_client() -> FakeChatClient:
    """A chat client with an empty reply queue."""

    return FakeChatClient()


@pytest.fixture
def workspace_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point MATHQUIZ_HOME at a per-test directory."""

    home = tmp_path / "home"
    monkeypatch.setenv("MATHQUIZ_HOME", str(home))
    monkeypatch.delenv("MATHQUIZ_CONFIG", raising=False)
    return home


@pytest.fixture(autouse=True)
def _release_mathquiz_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("mathquiz")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
