import sys
from pathlib import Path

import pytest


def _ensure_local_backend_on_path() -> None:
    root_dir = Path(__file__).resolve().parents[1]
    if str(root_dir) not in sys.path:
        sys.path.insert(0, str(root_dir))


_ensure_local_backend_on_path()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep tests independent from developer .env files and cached clients."""
    from serenity.api import deps
    from serenity.core.config import get_settings

    for name in ("DATABASE_URL", "AI_GATEWAY_API_KEY", "AUTH_JWT_SECRET", "SUPABASE_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(deps, "_gateway_client", None)
    monkeypatch.setattr(deps, "_auth_client", None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
