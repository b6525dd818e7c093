"""Pytest fixtures for Toolcrib service and API tests.

Service tests run against an in-memory SQLite database created from the
model metadata; API tests drive the real app through ``httpx`` with
``get_db`` pointed at that same session.
"""

import uuid
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from toolcrib.app import app, limiter
from toolcrib.database.base import Base
from toolcrib.database.session import get_db
from toolcrib.models.enums import UserRole
from toolcrib.modules.auth.auth import AuthenticatedUser, create_access_token
from toolcrib.modules.catalog.cache import EffectiveSchemaCache, get_schema_cache

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

limiter.enabled = False


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session bound to a fresh in-memory database with all tables created."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(test_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await test_engine.dispose()


@pytest_asyncio.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Yield an httpx AsyncClient wired to the FastAPI app with the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session
        await db_session.flush()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_schema_cache] = lambda: EffectiveSchemaCache(enabled=False)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def make_user(role: UserRole = UserRole.ADMIN) -> AuthenticatedUser:
    return AuthenticatedUser(id=uuid.uuid4(), email=f"{role.value.lower()}@toolcrib.test", role=role)


def auth_headers(role: UserRole) -> dict[str, str]:
    user = make_user(role)
    token = create_access_token(user.id, user.email, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth_headers(UserRole.ADMIN)


@pytest.fixture
def manager_headers() -> dict[str, str]:
    return auth_headers(UserRole.MANAGER)


@pytest.fixture
def user_headers() -> dict[str, str]:
    return auth_headers(UserRole.USER)


@pytest.fixture
def admin_user() -> AuthenticatedUser:
    return make_user(UserRole.ADMIN)


@pytest_asyncio.fixture
async def cutting_tools(db_session: AsyncSession) -> dict[str, uuid.UUID]:
    """Cutting Tools > End Mills, with a diameter NUMBER and a material SELECT_SINGLE."""
    from toolcrib.models.enums import AttributeType
    from toolcrib.modules.catalog.attribute_group_service import AttributeGroupService
    from toolcrib.modules.catalog.attribute_service import AttributeService
    from toolcrib.modules.catalog.category_service import CategoryService
    from toolcrib.modules.catalog.schemas import (
        AttributeDefinitionCreate,
        AttributeGroupCreate,
        AttributeOption,
        CategoryCreate,
    )

    categories = CategoryService(db_session)
    root = await categories.create_category(CategoryCreate(name="Cutting Tools"))
    group = await AttributeGroupService(db_session).create_group(
        root.id, AttributeGroupCreate(name="Physical Properties", sort_order=1)
    )
    attributes = AttributeService(db_session)
    diameter = await attributes.create_attribute(
        root.id,
        AttributeDefinitionCreate(
            name="diameter",
            label="Diameter",
            attribute_type=AttributeType.NUMBER,
            attribute_group_id=group.id,
            is_required=True,
            validation_rules={"min": 0.1, "max": 100, "step": 0.1},
            sort_order=1,
        ),
    )
    material = await attributes.create_attribute(
        root.id,
        AttributeDefinitionCreate(
            name="material",
            label="Material",
            attribute_type=AttributeType.SELECT_SINGLE,
            attribute_group_id=group.id,
            options=[
                AttributeOption(value="hss", label="High Speed Steel"),
                AttributeOption(value="carbide", label="Carbide"),
                AttributeOption(value="diamond", label="Diamond"),
                AttributeOption(value="ceramic", label="Ceramic"),
            ],
            sort_order=2,
        ),
    )
    end_mills = await categories.create_category(CategoryCreate(name="End Mills", parent_id=root.id))
    return {
        "root": root.id,
        "group": group.id,
        "diameter": diameter.id,
        "material": material.id,
        "end_mills": end_mills.id,
    }
