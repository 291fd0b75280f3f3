from __future__ import annotations

import os
from pathlib import Path

import pytest


_LIVE_STORE_PATHS = ("src/aceload/tests/test_live_store.py",)


def _db_enabled() -> bool:
    flag = os.getenv("ACELOAD_PYTEST_DB") or os.getenv("PYTEST_DB")
    if flag:
        return flag.strip().lower() in {"1", "true", "yes", "on"}
    return False


def pytest_ignore_collect(collection_path: Path, config: pytest.Config):  # type: ignore[override]
    if _db_enabled():
        return None

    path_str = collection_path.as_posix()
    if any(path_str.endswith(marker) for marker in _LIVE_STORE_PATHS):
        return True
    return None


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "requires_db: marks tests that need a running store (enable with ACELOAD_PYTEST_DB=1)",
    )


@pytest.fixture(autouse=True)
def _fast_retries(monkeypatch):
    from aceload.config import get_settings

    monkeypatch.setenv("ACELOAD_TX_RETRY_BACKOFF_SECONDS", "0")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def engine():
    from aceload.database import create_db_engine, init_db

    eng = create_db_engine("sqlite:///:memory:")
    init_db(eng, drop_existing=False)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture()
def session_factory(engine):
    from aceload.database import create_session_factory

    return create_session_factory(engine)
