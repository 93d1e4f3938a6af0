"""API-specific test fixtures."""

from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from taskboard.core.auth import require_actor


@pytest.fixture
def api_app(database_url, seed):
    """FastAPI app with the real routes and error handlers on a fresh database.

    The database is initialized inside the TestClient's own event loop so
    route handlers can use get_session_factory().
    """
    from fastapi.middleware.cors import CORSMiddleware

    from taskboard.api.routes import api_router
    from taskboard.core.config import get_settings
    from taskboard.db import close_db, get_session_factory, init_db
    from taskboard.main import register_exception_handlers
    from taskboard.middleware.correlation import setup_correlation_middleware

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        """Test lifespan - initialize and seed the DB in TestClient's event loop."""
        import taskboard.db.base as db_mod

        db_mod._engine = None
        db_mod._session_factory = None
        await init_db(database_url)
        async with db_mod._engine.begin() as conn:
            await conn.run_sync(db_mod.Base.metadata.drop_all)
            await conn.run_sync(db_mod.Base.metadata.create_all)
        async with get_session_factory()() as session:
            await seed(session)
        yield
        await close_db()

    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Taskboard - Test Client",
        version="0.1.0",
        lifespan=test_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_correlation_middleware(app)
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app


@pytest.fixture
def act_as(api_app, actor_factory):
    """Switch the authenticated caller: ``act_as("owner@acme.test")``."""

    def _act_as(email: str = "member@acme.test", role: str = "member", **kwargs):
        actor = actor_factory(email, role=role, **kwargs)
        api_app.dependency_overrides[require_actor] = lambda: actor
        return actor

    yield _act_as
    api_app.dependency_overrides.clear()


@pytest.fixture
def api_client(api_app, act_as):
    """Test client acting as the tenant admin unless a test switches caller."""
    act_as("admin@acme.test", role="admin", display_name="Ada Admin")
    with TestClient(api_app) as client:
        yield client
