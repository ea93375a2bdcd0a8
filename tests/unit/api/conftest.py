"""Fixtures for API route tests."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from frontdesk.api.app import register_exception_handlers
from frontdesk.api.dependencies import get_engine, get_settings, reset_engine
from frontdesk.api.routes import register_routes
from frontdesk.config.settings import Settings
from frontdesk.conversation.stores.inmemory import InMemoryCallStateStore
from frontdesk.engine import FrontDeskEngine
from frontdesk.policy.cache import InMemoryArtifactCache
from frontdesk.tenants.stores.inmemory import InMemoryTenantPolicyRepository


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def engine(
    repository: InMemoryTenantPolicyRepository,
    artifact_cache: InMemoryArtifactCache,
    state_store: InMemoryCallStateStore,
    settings: Settings,
) -> FrontDeskEngine:
    return FrontDeskEngine(repository, artifact_cache, state_store, settings)


@pytest.fixture
def app(engine: FrontDeskEngine, settings: Settings) -> FastAPI:
    """Create test FastAPI app."""
    reset_engine()

    app = FastAPI()
    register_exception_handlers(app)
    register_routes(app)

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_engine] = lambda: engine

    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app)
