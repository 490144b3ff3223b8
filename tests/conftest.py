from __future__ import annotations
from typing import Any, Callable, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

from kitchen_inventory.database import close_db, create_engine, create_session_factory, init_db
from kitchen_inventory.main import create_app
from kitchen_inventory.services.reconciliation import ReconciliationService
from kitchen_inventory.settings import Settings
from kitchen_inventory.store import InventoryStore


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATA_ROOT=tmp_path,
        DATABASE_URL=f"sqlite+aiosqlite:///{(tmp_path / 'test.db').as_posix()}",
        LOG_TO_FILE=False,
        RECIPES_API_URL="https://recipes.test",
        RECIPES_API_KEY="test-key",
    )


@pytest.fixture
async def engine(settings):
    engine = create_engine(settings)
    await init_db(engine)
    yield engine
    await close_db(engine)


@pytest.fixture
async def db(engine):
    factory = create_session_factory(engine)
    async with factory() as session:
        yield session


@pytest.fixture
def store(db) -> InventoryStore:
    return InventoryStore(db)


@pytest.fixture
def service(db) -> ReconciliationService:
    return ReconciliationService(db)


class RecipeApiStub:
    """Stands in for the spoonacular API; records every request it gets."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.payloads: Dict[str, Any] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"message": "boom"})
        for suffix, payload in self.payloads.items():
            if request.url.path.endswith(suffix):
                return httpx.Response(200, json=payload)
        return httpx.Response(404, json={"message": "not found"})


@pytest.fixture
def recipe_api() -> RecipeApiStub:
    return RecipeApiStub()


@pytest.fixture
def make_client(settings, recipe_api) -> Callable[..., TestClient]:
    def _make(**overrides) -> TestClient:
        cfg = settings.model_copy(update=overrides) if overrides else settings
        app = create_app(cfg, recipe_transport=httpx.MockTransport(recipe_api))
        return TestClient(app)
    return _make


@pytest.fixture
def client(make_client):
    with make_client() as c:
        yield c
