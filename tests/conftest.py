from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (e.g. TRIBUTE_SIM_LOG_LEVEL).

    Skipped in CI unless TRIBUTE_SIM_LOAD_DOTENV_FOR_TESTS=1.
    """

    if os.environ.get("CI") and os.environ.get("TRIBUTE_SIM_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture(scope="session", autouse=True)
def _init_catalog_from_repo_assets() -> Generator[None, None, None]:
    """Initialize the catalog from the repo's `assets/` and forbid the built-in fallback."""

    from tribute_sim.catalog.singleton import init_catalog, reset_catalog_for_tests

    with pytest.MonkeyPatch.context() as mp:
        mp.setenv("TRIBUTE_SIM_STRICT_ASSETS", "1")
        reset_catalog_for_tests()
        init_catalog(project_root=Path(__file__).resolve().parents[1])
        yield

    reset_catalog_for_tests()


@pytest.fixture()
def catalog():
    from tribute_sim.catalog.singleton import get_catalog

    return get_catalog()


@pytest.fixture()
def client_and_redis():
    """FastAPI TestClient wired to a fakeredis instance."""

    import fakeredis
    from fastapi.testclient import TestClient

    from tribute_sim.api.deps import get_redis
    from tribute_sim.main import app

    r = fakeredis.FakeRedis(decode_responses=True)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
