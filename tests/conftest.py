"""Test fixtures for orgtree-api."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from orgtree_api.auth import AccessTokenPayload, get_token
from orgtree_api.db import get_db
from orgtree_api.main import app
from orgtree_api.models import Base, Organization, OrganizationMember, User
from orgtree_api.models.enums import OrganizationRole, OrganizationType, PlanTier
from orgtree_api.services.slug import slugify

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def async_engine():
    """Create a test database engine with schema initialized.

    SQLite gets Base.metadata.create_all(); the alembic migrations target
    PostgreSQL.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def async_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(async_engine, expire_on_commit=False)
    async with async_session_maker() as session:
        yield session


@pytest.fixture
async def client(async_engine) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with isolated database."""
    async_session_maker = async_sessionmaker(async_engine, expire_on_commit=False)

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with async_session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Authenticate subsequent client requests as the given user."""

    def _login(user: User) -> None:
        user_id = user.id

        async def override_get_token():
            return AccessTokenPayload(
                sub=user_id,
                iss="orgtree-api",
                aud="orgtree",
                exp=9999999999,
                iat=1234567800,
            )

        app.dependency_overrides[get_token] = override_get_token

    return _login


# --- Data factories ---


@pytest.fixture
def make_user(async_session: AsyncSession):
    async def _make_user(email: str, is_superadmin: bool = False) -> User:
        user = User(
            email=email,
            display_name=email.split("@")[0],
            is_superadmin=is_superadmin,
        )
        async_session.add(user)
        await async_session.commit()
        return user

    return _make_user


@pytest.fixture
def make_org(async_session: AsyncSession):
    """Insert an organization row directly, bypassing the creation workflow."""

    async def _make_org(
        name: str,
        parent: Organization | None = None,
        org_type: OrganizationType = OrganizationType.STANDARD,
        allow_child_orgs: bool = True,
        **fields,
    ) -> Organization:
        fields.setdefault("slug", slugify(name))
        fields.setdefault("plan_tier", PlanTier.STARTER)
        org = Organization(
            name=name,
            org_type=org_type,
            parent_org_id=parent.id if parent else None,
            hierarchy_level=parent.hierarchy_level + 1 if parent else 0,
            allow_child_orgs=allow_child_orgs,
            **fields,
        )
        async_session.add(org)
        await async_session.commit()
        return org

    return _make_org


@pytest.fixture
def add_member(async_session: AsyncSession):
    async def _add_member(
        org: Organization,
        user: User,
        role: OrganizationRole = OrganizationRole.MEMBER,
    ) -> OrganizationMember:
        membership = OrganizationMember(
            organization_id=org.id, user_id=user.id, role=role
        )
        async_session.add(membership)
        await async_session.commit()
        return membership

    return _add_member


@pytest.fixture
async def owner(make_user) -> User:
    return await make_user("owner@acme.example")


@pytest.fixture
async def acme(make_org, add_member, owner) -> Organization:
    """Root holding company owned by ``owner``."""
    org = await make_org(
        "Acme Group",
        org_type=OrganizationType.HOLDING_COMPANY,
        plan_tier=PlanTier.ENTERPRISE,
        settings={"locale": "en", "theme": "dark"},
    )
    await add_member(org, owner, OrganizationRole.OWNER)
    return org


@pytest.fixture
async def chain(make_org, acme) -> list[Organization]:
    """Linear chain acme -> level1 -> ... -> level10 (the deepest allowed level)."""
    orgs = [acme]
    for level in range(1, 11):
        orgs.append(await make_org(f"Level {level}", parent=orgs[-1]))
    return orgs


@pytest.fixture
async def superadmin(make_user) -> User:
    return await make_user("root@backoffice.example", is_superadmin=True)
