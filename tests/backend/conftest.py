"""DB-backed fixtures: 인메모리 SQLite(aiosqlite) 위에 실제 스키마를 만든다."""

from datetime import timedelta

import pytest
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

import learnpath.models  # noqa: F401  (테이블 등록)
from learnpath.core.database import Base
from learnpath.models.resource import Resource, ResourceType
from learnpath.models.user import User, UserRole
from learnpath.services.plan_store import SqlAlchemyPlanStore
from learnpath.services.progression import PlanProgressionEngine
from tests.conftest import FIXED_NOW


@compiles(JSONB, "sqlite")
def _jsonb_as_sqlite_json(type_, compiler, **kw):
    return "JSON"


@pytest.fixture
async def db():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with session_factory() as session:
        yield session
    await engine.dispose()


async def _add_user(db, email: str, role: UserRole = UserRole.USER) -> dict:
    user = User(
        email=email,
        password_hash="not-a-real-hash",
        first_name="Test",
        last_name="User",
        role=role,
        coins=0,
        is_email_verified=False,
    )
    db.add(user)
    await db.commit()
    return {"id": user.id, "email": email, "role": role.value}


@pytest.fixture
async def owner(db):
    return await _add_user(db, "owner@example.com")


@pytest.fixture
async def stranger(db):
    return await _add_user(db, "stranger@example.com")


@pytest.fixture
async def admin(db):
    return await _add_user(db, "admin@example.com", UserRole.ADMIN)


@pytest.fixture
def sql_engine(db):
    """Progression engine over the real SQLAlchemy store."""
    return PlanProgressionEngine(SqlAlchemyPlanStore(db), clock=lambda: FIXED_NOW)


@pytest.fixture
def make_resource(db):
    async def _make(resource_type: ResourceType = ResourceType.VIDEO, title: str = "Arrays 101"):
        resource = Resource(
            title=title,
            description="Resource used by the service tests",
            type=resource_type,
            url="https://example.com/" + title.lower().replace(" ", "-"),
            created_at=FIXED_NOW - timedelta(days=1),
            updated_at=FIXED_NOW - timedelta(days=1),
        )
        db.add(resource)
        await db.commit()
        return resource

    return _make
