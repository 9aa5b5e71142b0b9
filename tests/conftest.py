"""
Shared fixtures: a temp SQLite store, a zero-delay backend router and the
FastAPI app wired to both (lifespan is not run; globals are set directly).
"""

import pytest

from voxbench.backends.router import MODEL_NAMES, SpeechBackendRouter
from voxbench.storage.sqlite_store import SQLiteStore


@pytest.fixture
def store(tmp_path):
    """Create a fresh SQLite store for each test."""
    return SQLiteStore(str(tmp_path / "test.db"))


@pytest.fixture
def router():
    """Router whose stub backends answer immediately."""
    zero = {"min_delay_ms": 0, "max_delay_ms": 0}
    return SpeechBackendRouter({name: dict(zero) for name in MODEL_NAMES})


@pytest.fixture
def app(router, store):
    """The FastAPI app with its globals pointed at the test router/store."""
    from voxbench import main

    main.backend_router = router
    main.sqlite_store = store
    yield main.app
    main.backend_router = None
    main.sqlite_store = None
