"""Tests for TenantRegistry: creation, enrollment, sign-in and administration."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio

from tenantcore import (
    AccessDeniedError,
    BusinessType,
    Capabilities as C,
    ConfigurationError,
    InvalidCredentialError,
    MemoryStorage,
    Role,
    RegistryEvent,
    SecretKind,
    Session,
    StorageError,
    Tenant,
    TenantRegistry,
    User,
    UserStatus,
    ValidationError,
)
from tenantcore.config import EnrollmentConfig, SecretPolicy, TenantCoreConfig

from conftest import OWNER_EMAIL, OWNER_SECRET, STAFF_SECRET


async def _enroll(
    registry: TenantRegistry,
    email: str,
    *,
    role: Optional[str] = None,
    phone: str = "",
    business: str = "Acme Retail",
) -> User:
    profile: dict[str, Any] = {"name": email.split("@")[0].title(), "email": email, "phone": phone}
    if role is not None:
        profile["role"] = role
    return await registry.enroll(business, STAFF_SECRET, profile)


def _as(user: User, tenant: Tenant) -> Session:
    return Session.build(user, tenant)


class _FailingPutStorage(MemoryStorage):
    """Fails every write whose key contains ``fail_on``."""

    def __init__(self, fail_on: str) -> None:
        super().__init__()
        self.fail_on = fail_on

    async def put(self, key: str, value: Any) -> None:
        if self.fail_on in key:
            raise ConnectionError("storage went away")
        await super().put(key, value)


class _AppliedThenFailedStorage(MemoryStorage):
    """Stores the value, then reports failure, for keys containing ``fail_on``.

    Only the first ``times`` matching writes fail.
    """

    def __init__(self, fail_on: str, times: int = 1) -> None:
        super().__init__()
        self.fail_on = fail_on
        self.times = times

    async def put(self, key: str, value: Any) -> None:
        await super().put(key, value)
        if self.fail_on in key and self.times > 0:
            self.times -= 1
            raise TimeoutError("write not acknowledged")


class TestCreateTenant:
    @pytest.mark.asyncio
    async def test_creates_tenant_and_owner(self, acme: tuple[Tenant, User], registry: TenantRegistry) -> None:
        tenant, owner = acme
        assert tenant.id.startswith("biz_")
        assert tenant.business_type == BusinessType.RETAILER
        assert tenant.owner_id == owner.id
        assert tenant.owner_email == OWNER_EMAIL
        assert tenant.settings.currency == "INR"
        assert owner.role == Role.OWNER
        assert owner.is_owner
        assert owner.tenant_id == tenant.id

        stored = await registry.get_tenant(tenant.id)
        assert stored == tenant
        assert [u.id for u in await registry.list_users(tenant.id)] == [owner.id]

    @pytest.mark.asyncio
    async def test_secrets_are_never_stored_plain(self, acme: tuple[Tenant, User], storage: MemoryStorage) -> None:
        tenant, _ = acme
        assert OWNER_SECRET not in tenant.owner_secret_hash
        assert STAFF_SECRET not in tenant.staff_secret_hash
        record = await storage.get(f"tenantcore:tenant:{tenant.id}")
        assert OWNER_SECRET not in str(record)
        assert STAFF_SECRET not in str(record)

    @pytest.mark.asyncio
    async def test_equal_secrets_rejected(self, registry: TenantRegistry, storage: MemoryStorage) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await registry.create_tenant(
                "Acme Retail", "retailer", {"name": "Asha", "email": OWNER_EMAIL}, OWNER_SECRET, OWNER_SECRET
            )
        assert exc_info.value.field == "staff_secret"
        assert storage.keys() == []

    @pytest.mark.asyncio
    async def test_weak_owner_secret(self, registry: TenantRegistry) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await registry.create_tenant(
                "Acme Retail", "retailer", {"name": "Asha", "email": OWNER_EMAIL}, "weak", STAFF_SECRET
            )
        assert exc_info.value.field == "owner_secret"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("name", "business_type", "profile", "field"),
        [
            ("   ", "retailer", {"name": "Asha", "email": OWNER_EMAIL}, "name"),
            ("Acme", "spaceport", {"name": "Asha", "email": OWNER_EMAIL}, "business_type"),
            ("Acme", "retailer", {"name": " ", "email": OWNER_EMAIL}, "owner_name"),
            ("Acme", "retailer", {"name": "Asha", "email": "not-an-email"}, "owner_email"),
            ("Acme", "retailer", {"name": "Asha", "email": "a@."}, "owner_email"),
            ("Acme", "retailer", {"name": "Asha", "email": "a@b.c@d"}, "owner_email"),
            ("Acme", "retailer", {"name": "Asha"}, "owner_email"),
        ],
    )
    async def test_bad_input(
        self,
        registry: TenantRegistry,
        name: str,
        business_type: str,
        profile: dict[str, str],
        field: str,
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await registry.create_tenant(name, business_type, profile, OWNER_SECRET, STAFF_SECRET)
        assert exc_info.value.field == field

    @pytest.mark.asyncio
    async def test_duplicate_name_is_case_insensitive(self, acme, registry: TenantRegistry) -> None:
        with pytest.raises(ValidationError, match="already exists") as exc_info:
            await registry.create_tenant(
                "  ACME retail ", "service", {"name": "Bo", "email": "bo@other.example"}, OWNER_SECRET, STAFF_SECRET
            )
        assert exc_info.value.field == "name"

    @pytest.mark.asyncio
    async def test_duplicate_owner_email(self, acme, registry: TenantRegistry) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await registry.create_tenant(
                "Other Co", "service", {"name": "Asha", "email": OWNER_EMAIL.upper()}, OWNER_SECRET, STAFF_SECRET
            )
        assert exc_info.value.field == "owner_email"

    @pytest.mark.asyncio
    async def test_partial_write_is_rolled_back(self, fast_config: TenantCoreConfig) -> None:
        storage = _FailingPutStorage("tenant-name")
        registry = TenantRegistry(storage, fast_config)
        with pytest.raises(StorageError):
            await registry.create_tenant(
                "Acme Retail", "retailer", {"name": "Asha", "email": OWNER_EMAIL}, OWNER_SECRET, STAFF_SECRET
            )
        assert storage.keys() == []

    @pytest.mark.asyncio
    async def test_unacknowledged_write_is_rolled_back(self, fast_config: TenantCoreConfig) -> None:
        storage = _AppliedThenFailedStorage(":user:")
        registry = TenantRegistry(storage, fast_config)
        with pytest.raises(StorageError):
            await registry.create_tenant(
                "Acme Retail", "retailer", {"name": "Asha", "email": OWNER_EMAIL}, OWNER_SECRET, STAFF_SECRET
            )
        assert storage.keys() == []

        tenant, _ = await registry.create_tenant(
            "Acme Retail", "retailer", {"name": "Asha", "email": OWNER_EMAIL}, OWNER_SECRET, STAFF_SECRET
        )
        assert (await registry.find_tenant("Acme Retail")).id == tenant.id

    @pytest.mark.asyncio
    async def test_concurrent_creates_with_same_name(self, registry: TenantRegistry) -> None:
        results = await asyncio.gather(
            registry.create_tenant(
                "Acme Retail", "retailer", {"name": "Asha", "email": OWNER_EMAIL}, OWNER_SECRET, STAFF_SECRET
            ),
            registry.create_tenant(
                "ACME Retail", "service", {"name": "Bo", "email": "bo@other.example"}, OWNER_SECRET, STAFF_SECRET
            ),
            return_exceptions=True,
        )
        created = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(created) == len(failures) == 1
        assert isinstance(failures[0], ValidationError)
        assert failures[0].field == "name"
        winner, _ = created[0]
        assert (await registry.find_tenant("acme retail")).id == winner.id

    @pytest.mark.asyncio
    async def test_concurrent_creates_with_same_owner_email(self, registry: TenantRegistry) -> None:
        results = await asyncio.gather(
            registry.create_tenant(
                "Acme Retail", "retailer", {"name": "Asha", "email": OWNER_EMAIL}, OWNER_SECRET, STAFF_SECRET
            ),
            registry.create_tenant(
                "Forge Works", "manufacturer", {"name": "Asha", "email": OWNER_EMAIL}, OWNER_SECRET, STAFF_SECRET
            ),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert failures[0].field == "owner_email"
        tenant, owner = await registry.authenticate_owner(OWNER_EMAIL, OWNER_SECRET)
        assert owner.id == tenant.owner_id

    @pytest.mark.asyncio
    async def test_dangling_name_index_is_free(self, registry: TenantRegistry, storage: MemoryStorage) -> None:
        await storage.put("tenantcore:tenant-name:acme retail", {"tenant_id": "biz_gone"})
        tenant, _ = await registry.create_tenant(
            "Acme Retail", "retailer", {"name": "Asha", "email": OWNER_EMAIL}, OWNER_SECRET, STAFF_SECRET
        )
        assert (await registry.find_tenant("acme retail")).id == tenant.id


class TestReads:
    @pytest.mark.asyncio
    async def test_find_tenant(self, acme, registry: TenantRegistry) -> None:
        tenant, _ = acme
        assert (await registry.find_tenant(tenant.id)).id == tenant.id
        assert (await registry.find_tenant("acme RETAIL")).id == tenant.id
        assert await registry.find_tenant("Nobody Ltd") is None
        assert await registry.find_tenant("") is None

    @pytest.mark.asyncio
    async def test_corrupt_record_reads_as_missing(self, registry: TenantRegistry, storage: MemoryStorage) -> None:
        await storage.put("tenantcore:tenant:biz_bad", {"name": 42})
        await storage.put("tenantcore:user:usr_bad", {"email": "x"})
        assert await registry.get_tenant("biz_bad") is None
        assert await registry.get_user("usr_bad") is None

    @pytest.mark.asyncio
    async def test_storage_outage_reads_as_missing(self, fast_config: TenantCoreConfig) -> None:
        storage = MagicMock()
        storage.get = AsyncMock(side_effect=ConnectionError("down"))
        registry = TenantRegistry(storage, fast_config)
        assert await registry.get_tenant("biz_1") is None
        assert await registry.list_users("biz_1") == []
        with pytest.raises(InvalidCredentialError):
            await registry.enroll("Acme Retail", STAFF_SECRET, {"name": "Ravi", "email": "ravi@acme.example"})


class TestEnroll:
    @pytest.mark.asyncio
    async def test_default_role(self, acme, registry: TenantRegistry) -> None:
        tenant, _ = acme
        user = await _enroll(registry, "ravi@acme.example")
        assert user.role == Role.STAFF
        assert user.tenant_id == tenant.id
        assert not user.is_owner
        assert user.is_active
        assert user.id in {u.id for u in await registry.list_users(tenant.id)}

    @pytest.mark.asyncio
    async def test_by_tenant_id_and_requested_role(self, acme, registry: TenantRegistry) -> None:
        tenant, _ = acme
        user = await _enroll(registry, "meena@acme.example", role="accountant", business=tenant.id)
        assert user.role == Role.ACCOUNTANT

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", ["owner", "co_founder", "production"])
    async def test_role_not_open_to_enrollment(self, acme, registry: TenantRegistry, role: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await _enroll(registry, "ravi@acme.example", role=role)
        assert exc_info.value.field == "role"

    @pytest.mark.asyncio
    async def test_wrong_secret_and_unknown_business_look_the_same(self, acme, registry: TenantRegistry) -> None:
        profile = {"name": "Ravi", "email": "ravi@acme.example"}
        with pytest.raises(InvalidCredentialError) as wrong_secret:
            await registry.enroll("Acme Retail", "Wrong#2024", profile)
        with patch("tenantcore.registry.burn_verification") as burn:
            with pytest.raises(InvalidCredentialError) as unknown:
                await registry.enroll("Nobody Ltd", STAFF_SECRET, profile)
        burn.assert_called_once()
        assert wrong_secret.value.message == unknown.value.message
        assert wrong_secret.value.code == unknown.value.code == "INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_owner_secret_does_not_enroll(self, acme, registry: TenantRegistry) -> None:
        with pytest.raises(InvalidCredentialError):
            await registry.enroll("Acme Retail", OWNER_SECRET, {"name": "Ravi", "email": "ravi@acme.example"})

    @pytest.mark.asyncio
    async def test_role_selection_disabled(self, acme, storage: MemoryStorage) -> None:
        config = TenantCoreConfig(
            secrets=SecretPolicy(hash_iterations=1_000),
            enrollment=EnrollmentConfig(allow_role_selection=False),
        )
        user = await _enroll(TenantRegistry(storage, config), "ravi@acme.example", role="manager")
        assert user.role == Role.STAFF

    @pytest.mark.asyncio
    @pytest.mark.parametrize("default_role", ["co_founder", "production", "janitor"])
    async def test_misconfigured_default_role(self, acme, storage: MemoryStorage, default_role: str) -> None:
        config = TenantCoreConfig(
            secrets=SecretPolicy(hash_iterations=1_000),
            enrollment=EnrollmentConfig(default_role=default_role),
        )
        with pytest.raises(ConfigurationError):
            await _enroll(TenantRegistry(storage, config), "ravi@acme.example")

    @pytest.mark.asyncio
    async def test_profile_checks(self, acme, registry: TenantRegistry) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await registry.enroll("Acme Retail", STAFF_SECRET, {"name": "", "email": "ravi@acme.example"})
        assert exc_info.value.field == "name"
        with pytest.raises(ValidationError) as exc_info:
            await registry.enroll("Acme Retail", STAFF_SECRET, {"name": "Ravi", "email": "ravi"})
        assert exc_info.value.field == "email"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["a@.", "a@b.c@d", "ravi@acme", "ravi acme@acme.example"])
    async def test_malformed_email(self, acme, registry: TenantRegistry, email: str) -> None:
        tenant, _ = acme
        with pytest.raises(ValidationError) as exc_info:
            await registry.enroll("Acme Retail", STAFF_SECRET, {"name": "Ravi", "email": email})
        assert exc_info.value.field == "email"
        assert len(await registry.list_users(tenant.id)) == 1

    @pytest.mark.asyncio
    async def test_unique_within_tenant(self, acme, registry: TenantRegistry) -> None:
        await _enroll(registry, "ravi@acme.example", phone="+91 98450 00001")

        with pytest.raises(ValidationError) as exc_info:
            await _enroll(registry, "RAVI@acme.example")
        assert exc_info.value.field == "email"

        with pytest.raises(ValidationError) as exc_info:
            await _enroll(registry, "meena@acme.example", phone="+91 98450 00001")
        assert exc_info.value.field == "phone"

        with pytest.raises(ValidationError, match="reserved") as exc_info:
            await _enroll(registry, OWNER_EMAIL)
        assert exc_info.value.field == "email"

    @pytest.mark.asyncio
    async def test_same_email_in_another_tenant(self, acme, registry: TenantRegistry) -> None:
        await registry.create_tenant(
            "Forge Works", "manufacturer", {"name": "Dev", "email": "dev@forge.example"}, OWNER_SECRET, STAFF_SECRET
        )
        first = await _enroll(registry, "ravi@shared.example")
        second = await _enroll(registry, "ravi@shared.example", business="Forge Works")
        assert first.tenant_id != second.tenant_id

    @pytest.mark.asyncio
    async def test_concurrent_enrollments_are_all_listed(self, acme, registry: TenantRegistry) -> None:
        tenant, _ = acme
        emails = ["ravi@acme.example", "meena@acme.example", "mona@acme.example"]
        joined = await asyncio.gather(*(_enroll(registry, email) for email in emails))

        members = {u.id for u in await registry.list_users(tenant.id)}
        assert {u.id for u in joined} <= members
        for user, email in zip(joined, emails):
            _, found = await registry.authenticate_member("Acme Retail", email, STAFF_SECRET)
            assert found.id == user.id

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_email(self, acme, registry: TenantRegistry) -> None:
        tenant, _ = acme
        results = await asyncio.gather(
            _enroll(registry, "ravi@acme.example"),
            _enroll(registry, "RAVI@acme.example"),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], ValidationError)
        assert failures[0].field == "email"
        assert len(await registry.list_users(tenant.id)) == 2

    @pytest.mark.asyncio
    async def test_unacknowledged_member_write_is_undone(self, fast_config: TenantCoreConfig) -> None:
        storage = _AppliedThenFailedStorage("tenant-users", times=0)
        registry = TenantRegistry(storage, fast_config)
        tenant, owner = await registry.create_tenant(
            "Acme Retail", "retailer", {"name": "Asha", "email": OWNER_EMAIL}, OWNER_SECRET, STAFF_SECRET
        )
        before = storage.keys()
        storage.times = 1

        with pytest.raises(StorageError):
            await _enroll(registry, "ravi@acme.example")

        assert storage.keys() == before
        assert [u.id for u in await registry.list_users(tenant.id)] == [owner.id]


class TestApproval:
    @pytest_asyncio.fixture
    async def gated(self, acme, storage: MemoryStorage) -> TenantRegistry:
        config = TenantCoreConfig(
            secrets=SecretPolicy(hash_iterations=1_000),
            enrollment=EnrollmentConfig(require_approval=True),
        )
        return TenantRegistry(storage, config)

    @pytest.mark.asyncio
    async def test_enrollee_waits_for_owner(self, acme, gated: TenantRegistry) -> None:
        tenant, owner = acme
        user = await _enroll(gated, "ravi@acme.example")
        assert user.status == UserStatus.PENDING
        assert not user.is_active
        assert [u.id for u in await gated.pending_members(_as(owner, tenant))] == [user.id]

        with pytest.raises(AccessDeniedError, match="awaiting approval"):
            await gated.authenticate_member("Acme Retail", "ravi@acme.example", STAFF_SECRET)

    @pytest.mark.asyncio
    async def test_pending_email_is_taken(self, acme, gated: TenantRegistry) -> None:
        await _enroll(gated, "ravi@acme.example")
        with pytest.raises(ValidationError) as exc_info:
            await _enroll(gated, "ravi@acme.example")
        assert exc_info.value.field == "email"

    @pytest.mark.asyncio
    async def test_approve(self, acme, gated: TenantRegistry) -> None:
        tenant, owner = acme
        user = await _enroll(gated, "ravi@acme.example")
        events: list[RegistryEvent] = []
        gated.add_listener(events.append)

        approved = await gated.approve_member(_as(owner, tenant), user.id)

        assert approved.status == UserStatus.ACTIVE
        assert [(e.kind, e.user.id) for e in events] == [("user_updated", user.id)]
        _, found = await gated.authenticate_member("Acme Retail", "ravi@acme.example", STAFF_SECRET)
        assert found.id == user.id
        assert await gated.pending_members(_as(owner, tenant)) == []

    @pytest.mark.asyncio
    async def test_reject(self, acme, gated: TenantRegistry) -> None:
        tenant, owner = acme
        user = await _enroll(gated, "ravi@acme.example")
        events: list[RegistryEvent] = []
        gated.add_listener(events.append)

        rejected = await gated.reject_member(_as(owner, tenant), user.id)

        assert rejected.status == UserStatus.REMOVED
        assert [e.kind for e in events] == ["user_updated"]
        with pytest.raises(InvalidCredentialError):
            await gated.authenticate_member("Acme Retail", "ravi@acme.example", STAFF_SECRET)
        again = await _enroll(gated, "ravi@acme.example")
        assert again.status == UserStatus.PENDING

    @pytest.mark.asyncio
    async def test_only_owner_decides(self, acme, registry: TenantRegistry, gated: TenantRegistry) -> None:
        tenant, owner = acme
        manager = await _enroll(registry, "mona@acme.example", role="manager")
        user = await _enroll(gated, "ravi@acme.example")
        with pytest.raises(AccessDeniedError, match="Owner access only"):
            await gated.approve_member(_as(manager, tenant), user.id)
        with pytest.raises(AccessDeniedError, match="Owner access only"):
            await gated.reject_member(_as(manager, tenant), user.id)
        with pytest.raises(AccessDeniedError):
            await gated.pending_members(_as(manager, tenant))
        assert (await gated.get_user(user.id)).status == UserStatus.PENDING

    @pytest.mark.asyncio
    async def test_decision_is_made_once(self, acme, gated: TenantRegistry) -> None:
        tenant, owner = acme
        user = await _enroll(gated, "ravi@acme.example")
        await gated.approve_member(_as(owner, tenant), user.id)
        with pytest.raises(ValidationError, match="not awaiting approval"):
            await gated.reject_member(_as(owner, tenant), user.id)

    @pytest.mark.asyncio
    async def test_status_changes_skip_pending(self, acme, gated: TenantRegistry) -> None:
        tenant, owner = acme
        user = await _enroll(gated, "ravi@acme.example")
        with pytest.raises(ValidationError) as exc_info:
            await gated.set_user_status(_as(owner, tenant), user.id, UserStatus.ACTIVE)
        assert exc_info.value.field == "status"
        active = await _enroll(gated, "meena@acme.example")
        approved = await gated.approve_member(_as(owner, tenant), active.id)
        with pytest.raises(ValidationError):
            await gated.set_user_status(_as(owner, tenant), approved.id, UserStatus.PENDING)


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_owner(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        found_tenant, found_owner = await registry.authenticate_owner(OWNER_EMAIL.upper(), OWNER_SECRET)
        assert found_tenant.id == tenant.id
        assert found_owner.id == owner.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("email", "secret"),
        [(OWNER_EMAIL, STAFF_SECRET), (OWNER_EMAIL, ""), ("nobody@acme.example", OWNER_SECRET), ("", OWNER_SECRET)],
    )
    async def test_owner_failures(self, acme, registry: TenantRegistry, email: str, secret: str) -> None:
        with pytest.raises(InvalidCredentialError):
            await registry.authenticate_owner(email, secret)

    @pytest.mark.asyncio
    async def test_member(self, acme, registry: TenantRegistry) -> None:
        user = await _enroll(registry, "ravi@acme.example")
        _, found = await registry.authenticate_member("Acme Retail", "Ravi@Acme.example", STAFF_SECRET)
        assert found.id == user.id

    @pytest.mark.asyncio
    async def test_member_path_never_reaches_owner(self, acme, registry: TenantRegistry) -> None:
        with pytest.raises(InvalidCredentialError):
            await registry.authenticate_member("Acme Retail", OWNER_EMAIL, STAFF_SECRET)

    @pytest.mark.asyncio
    async def test_member_wrong_secret(self, acme, registry: TenantRegistry) -> None:
        await _enroll(registry, "ravi@acme.example")
        with pytest.raises(InvalidCredentialError):
            await registry.authenticate_member("Acme Retail", "ravi@acme.example", OWNER_SECRET)

    @pytest.mark.asyncio
    async def test_suspended_member(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        user = await _enroll(registry, "ravi@acme.example")
        await registry.set_user_status(_as(owner, tenant), user.id, UserStatus.SUSPENDED)
        with pytest.raises(AccessDeniedError, match="not active"):
            await registry.authenticate_member("Acme Retail", "ravi@acme.example", STAFF_SECRET)

    @pytest.mark.asyncio
    async def test_removed_member_is_unknown(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        user = await _enroll(registry, "ravi@acme.example")
        await registry.remove_user(_as(owner, tenant), user.id)
        with pytest.raises(InvalidCredentialError):
            await registry.authenticate_member("Acme Retail", "ravi@acme.example", STAFF_SECRET)


class TestRotateSecret:
    @pytest.mark.asyncio
    async def test_rotate_staff_secret(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        updated = await registry.rotate_secret(_as(owner, tenant), SecretKind.STAFF, "Fresh#2025")
        assert updated.staff_secret_hash != tenant.staff_secret_hash
        assert updated.owner_secret_hash == tenant.owner_secret_hash

        with pytest.raises(InvalidCredentialError):
            await _enroll(registry, "ravi@acme.example")
        user = await registry.enroll("Acme Retail", "Fresh#2025", {"name": "Ravi", "email": "ravi@acme.example"})
        assert user.role == Role.STAFF

    @pytest.mark.asyncio
    async def test_rotate_owner_secret(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        await registry.rotate_secret(_as(owner, tenant), "owner", "Fresh#2025")
        with pytest.raises(InvalidCredentialError):
            await registry.authenticate_owner(OWNER_EMAIL, OWNER_SECRET)
        await registry.authenticate_owner(OWNER_EMAIL, "Fresh#2025")

    @pytest.mark.asyncio
    async def test_secrets_stay_distinct(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        with pytest.raises(ValidationError, match="must be different") as exc_info:
            await registry.rotate_secret(_as(owner, tenant), SecretKind.STAFF, OWNER_SECRET)
        assert exc_info.value.field == "staff_secret"

    @pytest.mark.asyncio
    async def test_weak_or_unknown_kind(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        with pytest.raises(ValidationError) as exc_info:
            await registry.rotate_secret(_as(owner, tenant), SecretKind.OWNER, "weak")
        assert exc_info.value.field == "owner_secret"
        with pytest.raises(ValidationError) as exc_info:
            await registry.rotate_secret(_as(owner, tenant), "admin", "Fresh#2025")
        assert exc_info.value.field == "kind"

    @pytest.mark.asyncio
    async def test_owner_only(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        manager = await _enroll(registry, "mona@acme.example", role="manager")
        with pytest.raises(AccessDeniedError, match="Owner access only"):
            await registry.rotate_secret(_as(manager, tenant), SecretKind.STAFF, "Fresh#2025")

    @pytest.mark.asyncio
    async def test_deleted_actor(self, acme, registry: TenantRegistry, storage: MemoryStorage) -> None:
        tenant, owner = acme
        await storage.delete(f"tenantcore:user:{owner.id}")
        with pytest.raises(AccessDeniedError, match="no longer resolves"):
            await registry.rotate_secret(_as(owner, tenant), SecretKind.STAFF, "Fresh#2025")


class TestAssignRole:
    @pytest.mark.asyncio
    async def test_owner_promotes(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        user = await _enroll(registry, "ravi@acme.example")
        updated = await registry.assign_role(_as(owner, tenant), user.id, "accountant")
        assert updated.role == Role.ACCOUNTANT
        assert (await registry.get_user(user.id)).role == Role.ACCOUNTANT

    @pytest.mark.asyncio
    async def test_change_is_logged_for_the_actor(
        self, acme, registry: TenantRegistry, caplog: pytest.LogCaptureFixture
    ) -> None:
        tenant, owner = acme
        user = await _enroll(registry, "ravi@acme.example")
        with caplog.at_level(logging.INFO, logger="tenantcore.registry"):
            await registry.assign_role(_as(owner, tenant), user.id, "accountant")
        record = next(r for r in caplog.records if r.getMessage().startswith("Role of"))
        assert record.tenant_id == tenant.id
        assert record.user_id == owner.id

    @pytest.mark.asyncio
    async def test_only_owner_appoints_co_founder(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        manager = await _enroll(registry, "mona@acme.example", role="manager")
        user = await _enroll(registry, "ravi@acme.example")
        with pytest.raises(AccessDeniedError, match="co-founder"):
            await registry.assign_role(_as(manager, tenant), user.id, Role.CO_FOUNDER)
        updated = await registry.assign_role(_as(owner, tenant), user.id, Role.CO_FOUNDER)
        assert updated.role == Role.CO_FOUNDER

    @pytest.mark.asyncio
    async def test_manager_within_own_level(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        manager = await _enroll(registry, "mona@acme.example", role="manager")
        user = await _enroll(registry, "ravi@acme.example")
        updated = await registry.assign_role(_as(manager, tenant), user.id, Role.ACCOUNTANT)
        assert updated.role == Role.ACCOUNTANT

    @pytest.mark.asyncio
    async def test_manager_cannot_touch_senior(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        manager = await _enroll(registry, "mona@acme.example", role="manager")
        partner = await _enroll(registry, "kiran@acme.example")
        await registry.assign_role(_as(owner, tenant), partner.id, Role.CO_FOUNDER)
        with pytest.raises(AccessDeniedError, match="more senior"):
            await registry.assign_role(_as(manager, tenant), partner.id, Role.STAFF)

    @pytest.mark.asyncio
    async def test_needs_manage_team(self, acme, registry: TenantRegistry) -> None:
        tenant, _ = acme
        accountant = await _enroll(registry, "meena@acme.example", role="accountant")
        user = await _enroll(registry, "ravi@acme.example")
        with pytest.raises(AccessDeniedError, match=C.MANAGE_TEAM):
            await registry.assign_role(_as(accountant, tenant), user.id, Role.HR)

    @pytest.mark.asyncio
    async def test_owner_role_is_fixed(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        with pytest.raises(ValidationError) as exc_info:
            await registry.assign_role(_as(owner, tenant), owner.id, Role.MANAGER)
        assert exc_info.value.field == "user_id"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", ["janitor", "production", "owner"])
    async def test_role_must_fit_business(self, acme, registry: TenantRegistry, role: str) -> None:
        tenant, owner = acme
        user = await _enroll(registry, "ravi@acme.example")
        with pytest.raises(ValidationError) as exc_info:
            await registry.assign_role(_as(owner, tenant), user.id, role)
        assert exc_info.value.field == "role"

    @pytest.mark.asyncio
    async def test_cross_tenant_target(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        await registry.create_tenant(
            "Forge Works", "manufacturer", {"name": "Dev", "email": "dev@forge.example"}, OWNER_SECRET, STAFF_SECRET
        )
        outsider = await _enroll(registry, "ravi@forge.example", business="Forge Works")
        with pytest.raises(ValidationError, match="No such team member"):
            await registry.assign_role(_as(owner, tenant), outsider.id, Role.MANAGER)
        assert (await registry.get_user(outsider.id)).role == Role.STAFF


class TestUserStatus:
    @pytest.mark.asyncio
    async def test_suspend_and_reactivate(self, acme, registry: TenantRegistry) -> None:
        tenant, _ = acme
        manager = await _enroll(registry, "mona@acme.example", role="manager")
        user = await _enroll(registry, "ravi@acme.example")
        suspended = await registry.set_user_status(_as(manager, tenant), user.id, "suspended")
        assert suspended.status == UserStatus.SUSPENDED
        active = await registry.set_user_status(_as(manager, tenant), user.id, UserStatus.ACTIVE)
        assert active.is_active

    @pytest.mark.asyncio
    async def test_owner_status_is_fixed(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        with pytest.raises(ValidationError):
            await registry.set_user_status(_as(owner, tenant), owner.id, UserStatus.SUSPENDED)

    @pytest.mark.asyncio
    async def test_unknown_status(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        user = await _enroll(registry, "ravi@acme.example")
        with pytest.raises(ValidationError) as exc_info:
            await registry.set_user_status(_as(owner, tenant), user.id, "on_holiday")
        assert exc_info.value.field == "status"

    @pytest.mark.asyncio
    async def test_removed_is_final(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        user = await _enroll(registry, "ravi@acme.example")
        removed = await registry.remove_user(_as(owner, tenant), user.id)
        assert removed.status == UserStatus.REMOVED
        with pytest.raises(ValidationError, match="cannot be reinstated"):
            await registry.set_user_status(_as(owner, tenant), user.id, UserStatus.ACTIVE)
        with pytest.raises(ValidationError):
            await registry.assign_role(_as(owner, tenant), user.id, Role.MANAGER)

    @pytest.mark.asyncio
    async def test_removal_frees_email_and_phone(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        user = await _enroll(registry, "ravi@acme.example", phone="+91 98450 00001")
        await registry.remove_user(_as(owner, tenant), user.id)
        again = await _enroll(registry, "ravi@acme.example", phone="+91 98450 00001")
        assert again.id != user.id

    @pytest.mark.asyncio
    async def test_suspended_actor_is_denied(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        manager = await _enroll(registry, "mona@acme.example", role="manager")
        user = await _enroll(registry, "ravi@acme.example")
        manager_session = _as(manager, tenant)
        await registry.set_user_status(_as(owner, tenant), manager.id, UserStatus.SUSPENDED)
        with pytest.raises(AccessDeniedError, match="not active"):
            await registry.set_user_status(manager_session, user.id, UserStatus.SUSPENDED)

    @pytest.mark.asyncio
    async def test_manager_cannot_suspend_senior(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        manager = await _enroll(registry, "mona@acme.example", role="manager")
        partner = await _enroll(registry, "kiran@acme.example")
        await registry.assign_role(_as(owner, tenant), partner.id, Role.CO_FOUNDER)
        with pytest.raises(AccessDeniedError):
            await registry.set_user_status(_as(manager, tenant), partner.id, UserStatus.SUSPENDED)


class TestChangeBusinessType:
    @pytest.mark.asyncio
    async def test_owner_changes_type(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        updated = await registry.change_business_type(_as(owner, tenant), "wholesaler")
        assert updated.business_type == BusinessType.WHOLESALER
        assert (await registry.get_tenant(tenant.id)).business_type == BusinessType.WHOLESALER

    @pytest.mark.asyncio
    async def test_unknown_type(self, acme, registry: TenantRegistry) -> None:
        tenant, owner = acme
        with pytest.raises(ValidationError) as exc_info:
            await registry.change_business_type(_as(owner, tenant), "spaceport")
        assert exc_info.value.field == "business_type"

    @pytest.mark.asyncio
    async def test_owner_only(self, acme, registry: TenantRegistry) -> None:
        tenant, _ = acme
        manager = await _enroll(registry, "mona@acme.example", role="manager")
        with pytest.raises(AccessDeniedError):
            await registry.change_business_type(_as(manager, tenant), "trader")

    @pytest.mark.asyncio
    async def test_warns_about_stranded_members(
        self, registry: TenantRegistry, caplog: pytest.LogCaptureFixture
    ) -> None:
        tenant, owner = await registry.create_tenant(
            "Forge Works", "manufacturer", {"name": "Dev", "email": "dev@forge.example"}, OWNER_SECRET, STAFF_SECRET
        )
        worker = await _enroll(registry, "ravi@forge.example", role="production", business="Forge Works")

        with caplog.at_level(logging.WARNING, logger="tenantcore.registry"):
            await registry.change_business_type(_as(owner, tenant), BusinessType.RETAILER)

        assert any("hold a role it does not have" in r.getMessage() for r in caplog.records)
        assert (await registry.get_user(worker.id)).role == Role.PRODUCTION


class TestListeners:
    @pytest.mark.asyncio
    async def test_events(self, registry: TenantRegistry) -> None:
        events = []
        registry.add_listener(events.append)
        tenant, owner = await registry.create_tenant(
            "Acme Retail", "retailer", {"name": "Asha", "email": OWNER_EMAIL}, OWNER_SECRET, STAFF_SECRET
        )
        user = await _enroll(registry, "ravi@acme.example")
        await registry.assign_role(_as(owner, tenant), user.id, Role.HR)

        assert [e.kind for e in events] == ["tenant_created", "user_enrolled", "user_updated"]
        assert events[-1].user.role == Role.HR

        registry.remove_listener(events.append)
        await registry.rotate_secret(_as(owner, tenant), SecretKind.STAFF, "Fresh#2025")
        assert len(events) == 3

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_undo_change(
        self, registry: TenantRegistry, caplog: pytest.LogCaptureFixture
    ) -> None:
        registry.add_listener(MagicMock(side_effect=RuntimeError("listener bug")))
        with caplog.at_level(logging.ERROR, logger="tenantcore.registry"):
            tenant, _ = await registry.create_tenant(
                "Acme Retail", "retailer", {"name": "Asha", "email": OWNER_EMAIL}, OWNER_SECRET, STAFF_SECRET
            )
        assert await registry.get_tenant(tenant.id) is not None
        assert any("Registry listener failed" in r.getMessage() for r in caplog.records)
