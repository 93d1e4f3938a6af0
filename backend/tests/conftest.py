"""Shared test fixtures for all test groups.

Tests run against a throwaway SQLite file (aiosqlite) unless TEST_DATABASE_URL
points somewhere else, e.g. a PostgreSQL test database.
"""

import os
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from taskboard.db.base import Base, create_engine_for
from taskboard.db.models.project import Project
from taskboard.db.models.project_stage import ProjectStage
from taskboard.db.models.task import Task
from taskboard.db.models.tenant import Tenant, TenantMember
from taskboard.domain.access import Actor

TENANT_ID = "tenant-acme"
OTHER_TENANT_ID = "tenant-globex"


def database_url_for(tmp_path) -> str:
    return os.getenv("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'taskboard_test.db'}")


def make_actor(
    email: str = "member@acme.test",
    role: str = "member",
    tenant_id: str = TENANT_ID,
    display_name: str = "",
) -> Actor:
    return Actor(
        user_id=f"auth0|{email}",
        email=email,
        display_name=display_name or email.split("@")[0].title(),
        tenant_id=tenant_id,
        role=role,
        is_tenant_admin=role in ("admin", "owner"),
    )


@pytest.fixture
def admin():
    return make_actor("admin@acme.test", role="admin", display_name="Ada Admin")


@pytest.fixture
def task_owner():
    return make_actor("owner@acme.test", display_name="Olly Owner")


@pytest.fixture
def stage_owner():
    return make_actor("designer@acme.test", display_name="Dee Designer")


@pytest.fixture
def member():
    return make_actor("member@acme.test", display_name="Max Member")


@pytest.fixture
def outsider():
    """Admin of a different tenant."""
    return make_actor("admin@globex.test", role="admin", tenant_id=OTHER_TENANT_ID)


@pytest.fixture
async def engine(tmp_path) -> AsyncEngine:
    """Create a test engine with all tables."""
    import taskboard.db.models  # noqa: F401

    engine = create_engine_for(database_url_for(tmp_path))

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncSession:
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


async def seed_launch_project(session: AsyncSession, task_stage: str = "Design") -> Task:
    """Project "Launch" with stages Brief/Design/Approval (10/20/30) and task "task-1".

    Design is owned by designer@acme.test; the task is owned by owner@acme.test.
    """
    now = datetime.now(timezone.utc)
    session.add_all([Tenant(id=TENANT_ID, name="Acme"), Tenant(id=OTHER_TENANT_ID, name="Globex")])
    await session.flush()
    session.add_all(
        [
            TenantMember(tenant_id=TENANT_ID, user_id="auth0|admin", email="admin@acme.test", name="Ada", role="admin"),
            TenantMember(tenant_id=TENANT_ID, user_id="", email="member@acme.test", name="Max", role="member"),
        ]
    )
    project = Project(
        id="project-launch",
        tenant_id=TENANT_ID,
        name="Launch",
        owner_name="Olly",
        owner_email="owner@acme.test",
    )
    session.add(project)
    await session.flush()
    for index, (name, owner) in enumerate([("Brief", ""), ("Design", "designer@acme.test"), ("Approval", "")]):
        session.add(
            ProjectStage(
                project_id=project.id,
                stage_name=name,
                sort_order=(index + 1) * 10,
                stage_owner_email=owner,
                created_at=now,
            )
        )
    task = Task(
        id="task-1",
        tenant_id=TENANT_ID,
        project_id=project.id,
        task_name="Landing page",
        owner="Olly",
        owner_email="owner@acme.test",
        stage=task_stage,
    )
    session.add(task)
    await session.commit()
    return task


@pytest.fixture
async def launch_task(db_session: AsyncSession) -> Task:
    return await seed_launch_project(db_session)


@pytest.fixture
def actor_factory():
    """The ``make_actor`` helper, for tests that need ad-hoc actors."""
    return make_actor


@pytest.fixture
def database_url(tmp_path) -> str:
    return database_url_for(tmp_path)


@pytest.fixture
def seed():
    """The ``seed_launch_project`` helper, for fixtures that own their session."""
    return seed_launch_project
