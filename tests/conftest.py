"""Shared fixtures: fast hashing config, in-memory registry and sessions."""

from __future__ import annotations

from typing import Callable

import pytest
import pytest_asyncio

from tenantcore import (
    AuthService,
    AuthorizationGuard,
    BusinessType,
    MemorySessionStore,
    MemoryStorage,
    Role,
    Session,
    SessionManager,
    Tenant,
    TenantCoreConfig,
    TenantRegistry,
    User,
    UserStatus,
    reset_config,
    set_config,
)
from tenantcore.config import SecretPolicy

OWNER_SECRET = "Owner#2024"
STAFF_SECRET = "Staff#2024"
OWNER_EMAIL = "asha@acme.example"


@pytest.fixture(autouse=True)
def fast_config():
    """Low PBKDF2 work factor for the whole suite."""
    config = TenantCoreConfig(secrets=SecretPolicy(hash_iterations=1_000))
    set_config(config)
    yield config
    reset_config()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def registry(storage: MemoryStorage, fast_config: TenantCoreConfig) -> TenantRegistry:
    return TenantRegistry(storage, fast_config)


@pytest.fixture
def session_store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def sessions(registry: TenantRegistry, session_store: MemorySessionStore) -> SessionManager:
    return SessionManager(registry, session_store)


@pytest.fixture
def guard(sessions: SessionManager) -> AuthorizationGuard:
    return AuthorizationGuard(sessions)


@pytest.fixture
def auth(registry: TenantRegistry, sessions: SessionManager) -> AuthService:
    return AuthService(registry, sessions)


@pytest_asyncio.fixture
async def acme(registry: TenantRegistry) -> tuple[Tenant, User]:
    """The Acme Retail business and its owner."""
    return await registry.create_tenant(
        "Acme Retail",
        BusinessType.RETAILER,
        {"name": "Asha Rao", "email": OWNER_EMAIL},
        OWNER_SECRET,
        STAFF_SECRET,
    )


@pytest.fixture
def make_session() -> Callable[..., Session]:
    """Build a detached Session without touching storage."""

    def _make(
        business_type: BusinessType | str = BusinessType.RETAILER,
        role: Role | str = Role.STAFF,
        *,
        is_owner: bool = False,
        status: UserStatus = UserStatus.ACTIVE,
    ) -> Session:
        tenant = Tenant(
            name="Test Business",
            business_type=business_type,
            owner_email="owner@test.example",
            owner_secret_hash="x",
            staff_secret_hash="y",
        )
        user = User(
            tenant_id=tenant.id,
            name="Test User",
            email="user@test.example",
            role=Role.OWNER if is_owner else role,
            status=status,
            is_owner=is_owner,
        )
        return Session.build(user, tenant, strict=False)

    return _make
