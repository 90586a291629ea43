"""
Shared fixtures: in-memory resource/grant store and a token minting helper.
The core never issues tokens; minting here stands in for the external issuer.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "development")

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from joserfc import jwt as jose_jwt
from joserfc.jwk import OctKey
from joserfc.jws import JWSRegistry
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from workspace_authz.core.config import settings
from workspace_authz.core.database import init_database
from workspace_authz.core.permissions import SUPER_ADMIN_GROUP_ID
from workspace_authz.core.token_validator import AccessTokenCodec
from workspace_authz.models import Deployment, PermissionGrant

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
BASE_CREATED_AT = datetime(2026, 1, 1, tzinfo=timezone.utc)


# ==================== Clock ====================

@pytest.fixture
def now() -> datetime:
    """Fixed verification instant; minted tokens are valid at this time"""
    return NOW


@pytest.fixture
def base_created_at() -> datetime:
    """Creation time of the oldest seeded resource"""
    return BASE_CREATED_AT


# ==================== Store ====================

@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory store with every table created"""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_database(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    """Async session over the in-memory store"""
    session_factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def workspace_id() -> UUID:
    return uuid4()


@pytest.fixture
def group_id() -> UUID:
    return uuid4()


@pytest.fixture
def identity() -> UUID:
    return uuid4()


@pytest.fixture
def super_admin_groups():
    return [SUPER_ADMIN_GROUP_ID]


@pytest.fixture
def add_grant(db):
    """Insert a (group, prefix, permission) grant and flush it"""

    async def _add(group_id: UUID, resource_prefix: str, permission: str) -> PermissionGrant:
        grant = PermissionGrant(
            group_id=group_id,
            resource_prefix=str(resource_prefix),
            permission=permission,
        )
        db.add(grant)
        await db.flush()
        return grant

    return _add


@pytest.fixture
def add_deployments(db, base_created_at):
    """Insert ``count`` deployments, one minute apart, oldest first"""

    async def _add(workspace_id: UUID, count: int, prefix: str = "dep") -> list:
        deployments = [
            Deployment(
                workspace_id=workspace_id,
                name=f"{prefix}-{i:02d}",
                image_name="registry.example.com/app",
                image_tag="latest",
                created_at=base_created_at + timedelta(minutes=i),
            )
            for i in range(count)
        ]
        db.add_all(deployments)
        await db.flush()
        return deployments

    return _add


# ==================== Tokens ====================

@pytest.fixture
def codec() -> AccessTokenCodec:
    return AccessTokenCodec(
        secret_key=settings.JWT_SECRET_KEY,
        algorithm="HS256",
        issuer=settings.AUTH_ISSUER,
        max_lifetime_seconds=settings.ACCESS_TOKEN_MAX_LIFETIME_SECONDS,
        leeway_seconds=0,
    )


@pytest.fixture
def make_token(now):
    """Mint a signed access token; claims default to a valid token at ``now``

    Algorithms outside the default joserfc registry (HS512 and friends) are
    minted through a registry that allows exactly that algorithm.
    """

    def _make(
        sub: Any = None,
        groups: Iterable[Any] = (),
        iat: Optional[int] = None,
        exp: Optional[int] = None,
        *,
        key: Optional[str] = None,
        alg: str = "HS256",
        extra: Optional[Dict[str, Any]] = None,
        omit: Iterable[str] = (),
    ) -> str:
        issued = int(now.timestamp())
        claims: Dict[str, Any] = {
            "sub": str(sub or uuid4()),
            "groups": [str(g) for g in groups],
            "iat": issued - 60 if iat is None else iat,
            "exp": issued + 600 if exp is None else exp,
            "iss": settings.AUTH_ISSUER,
            "type": "access",
        }
        claims.update(extra or {})
        for name in omit:
            claims.pop(name, None)
        signing_key = OctKey.import_key(key or settings.JWT_SECRET_KEY)
        registry = JWSRegistry(algorithms=[alg])
        return jose_jwt.encode({"alg": alg}, claims, signing_key, registry=registry)

    return _make
