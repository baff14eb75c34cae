import sys
from pathlib import Path

import pytest

# Make top-level packages (core, providers, downloads, ...) importable
# without installing the project.
REPO_ROOT = Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from core.settings import get_settings  # noqa: E402
from providers.factory import reset_providers  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    reset_providers()
    yield
    get_settings.cache_clear()
    reset_providers()


@pytest.fixture
def storage_env(monkeypatch, tmp_path):
    """Point every storage location at a temp dir."""
    monkeypatch.setenv("DOWNLOADS_DIR", str(tmp_path / "public" / "Download"))
    monkeypatch.setenv("CONTENT_ROOT", str(tmp_path / "media"))
    monkeypatch.setenv("MEDIA_INDEX_FILE", str(tmp_path / "media" / "scanned.jsonl"))
    return tmp_path
