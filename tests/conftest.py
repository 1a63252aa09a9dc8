"""
Pytest fixtures for access engine tests.
"""

import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable, Dict, Iterable, Optional

# File-based SQLite so every connection sees the same database. Must be set
# before anything reads the cached settings.
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_tmp.name}")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only")
os.environ.setdefault("JWT_AUDIENCE", "authenticated")

import pytest
import pytest_asyncio
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from opsconsole.config import get_settings
from opsconsole.kernel.access import Account, Principal
from opsconsole.kernel.models import (
    AccessLevel,
    AccountRole,
    AccountStatus,
    Base,
    ModuleKey,
    Profile,
    UserRoleAssignment,
)

get_settings.cache_clear()

TEST_JWT_SECRET = os.environ["JWT_SECRET"]


def pytest_sessionfinish(session, exitstatus):
    """Clean up the shared temp DB file after the run."""
    if os.path.exists(_tmp.name):
        os.unlink(_tmp.name)


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Session factory over a fresh SQLite database per test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'access.db'}",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session on the per-test database."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed_account(session_factory) -> Callable:
    """Insert a profile (and optionally a role row) directly."""

    async def _seed(
        *,
        account_id: Optional[uuid.UUID] = None,
        email: Optional[str] = None,
        status: AccountStatus = AccountStatus.ACTIVE,
        role: Optional[AccountRole] = AccountRole.MEMBER,
        module_permissions: Optional[Dict[str, str]] = None,
        allowed_modules: Optional[Iterable[str]] = None,
    ) -> uuid.UUID:
        account_id = account_id or uuid.uuid4()
        async with session_factory() as session:
            session.add(Profile(
                id=account_id,
                email=email or f"{account_id.hex[:8]}@example.com",
                status=status,
                module_permissions=module_permissions,
                allowed_modules=list(allowed_modules) if allowed_modules is not None else None,
            ))
            await session.flush()
            if role is not None:
                session.add(UserRoleAssignment(user_id=account_id, role=role))
            await session.commit()
        return account_id

    return _seed


@pytest.fixture
def make_account() -> Callable[..., Account]:
    """Build a resolved Account value."""

    def _make(
        role: AccountRole = AccountRole.MEMBER,
        status: AccountStatus = AccountStatus.ACTIVE,
        permissions: Optional[Dict[ModuleKey, AccessLevel]] = None,
        account_id: Optional[uuid.UUID] = None,
    ) -> Account:
        return Account(
            id=account_id or uuid.uuid4(),
            role=role,
            status=status,
            permissions=permissions or {},
        )

    return _make


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Encode an access token the way the identity provider does."""

    def _make(
        subject: uuid.UUID,
        email: str = "user@example.com",
        secret: str = TEST_JWT_SECRET,
        audience: Optional[str] = "authenticated",
        expires_in: timedelta = timedelta(minutes=30),
    ) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "sub": str(subject),
            "email": email,
            "iat": now,
            "exp": now + expires_in,
            "role": "authenticated",
        }
        if audience is not None:
            claims["aud"] = audience
        return jwt.encode(claims, secret, algorithm="HS256")

    return _make


@pytest.fixture
def principal() -> Principal:
    return Principal(id=uuid.uuid4(), email="member@example.com")
