"""Credential & tenant registry.

Owns tenant and user records in a ``Storage`` backend and is the only
place secrets are verified.

Provides:
- ``create_tenant()`` — business creation with the owner/staff secret pair.
- ``enroll()`` — join an existing tenant with its staff secret.
- ``authenticate_owner()`` / ``authenticate_member()`` — re-sign-in.
- ``rotate_secret()``, ``assign_role()``, ``set_user_status()``,
  ``remove_user()``, ``change_business_type()`` — administration, each
  checked with the same ``allow()`` the guards use.
- ``pending_members()``, ``approve_member()``, ``reject_member()`` — the
  owner's review of enrollments when ``enrollment.require_approval`` is on.
- ``get_tenant()``, ``get_user()``, ``find_tenant()``, ``list_users()`` —
  reads that treat storage failure as "not found".

Key layout (``<p>`` is ``config.storage_prefix``)::

    <p>:tenant:<tenant_id>         Tenant record
    <p>:user:<user_id>             User record
    <p>:tenant-users:<tenant_id>   list of user ids
    <p>:tenant-name:<name_lower>   {"tenant_id": ...}
    <p>:owner-email:<email_lower>  {"tenant_id": ...}
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .config import TenantCoreConfig, get_config
from .credentials import (
    burn_verification,
    hash_secret,
    validate_secret,
    validate_secret_pair,
    verify_secret,
)
from .exceptions import (
    AccessDeniedError,
    ConfigurationError,
    InvalidCredentialError,
    StorageError,
    ValidationError,
)
from .guard import OWNER_ONLY, Requirement, denial_reason, require_capability
from .logging import get_tenant_logger
from .models import MemberProfile, OwnerProfile, Tenant, User, UserStatus
from .permissions.constants import BusinessType, Capabilities as C, Role
from .permissions.roles import enrollable_roles, has_role_level, is_role_legal
from .session import Session
from .storage import Storage

logger = get_tenant_logger(__name__)


class SecretKind(str, Enum):
    OWNER = "owner"
    STAFF = "staff"


@dataclass(frozen=True)
class RegistryEvent:
    """Change notification delivered to registry listeners.

    ``kind`` is one of ``tenant_created``, ``user_enrolled``,
    ``user_updated``, ``tenant_updated``, ``secret_rotated``.
    """

    kind: str
    tenant: Tenant
    user: Optional[User] = None


RegistryListener = Callable[[RegistryEvent], None]


class TenantRegistry:
    """Tenant and user records plus the dual-secret credential scheme.

    Args:
        storage: Durable key/value storage (``MemoryStorage``, ``RedisStorage``).
        config: Configuration. Defaults to ``get_config()``.
    """

    def __init__(self, storage: Storage, config: Optional[TenantCoreConfig] = None) -> None:
        self._storage = storage
        self._config = config or get_config()
        self._listeners: list[RegistryListener] = []
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def config(self) -> TenantCoreConfig:
        return self._config

    # ── Listeners ─────────────────────────────────────────────

    def add_listener(self, listener: RegistryListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: RegistryListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, kind: str, tenant: Tenant, user: Optional[User] = None) -> None:
        event = RegistryEvent(kind=kind, tenant=tenant, user=user)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # Mutation is already committed.
                logger.exception("Registry listener failed on %s", kind)

    # ── Keys ──────────────────────────────────────────────────

    def _key(self, *parts: str) -> str:
        return ":".join((self._config.storage_prefix, *parts))

    def _tenant_key(self, tenant_id: str) -> str:
        return self._key("tenant", tenant_id)

    def _user_key(self, user_id: str) -> str:
        return self._key("user", user_id)

    def _members_key(self, tenant_id: str) -> str:
        return self._key("tenant-users", tenant_id)

    def _name_key(self, name: str) -> str:
        return self._key("tenant-name", name.strip().lower())

    def _owner_email_key(self, email: str) -> str:
        return self._key("owner-email", email.strip().lower())

    # ── Storage access ────────────────────────────────────────

    def _lock(self, key: str) -> asyncio.Lock:
        """Serializes check-then-write sequences on ``key`` within this process."""
        return self._locks.setdefault(key, asyncio.Lock())

    async def _read(self, key: str) -> Any | None:
        try:
            return await self._storage.get(key)
        except Exception as e:
            logger.warning("Storage read failed for %s: %s", key, e)
            return None

    async def _write(self, key: str, value: Any) -> None:
        try:
            await self._storage.put(key, value)
        except Exception as e:
            raise StorageError(f"Storage write failed for {key}", key=key) from e

    async def _rollback(self, keys: list[str]) -> None:
        for key in reversed(keys):
            try:
                await self._storage.delete(key)
            except Exception as e:
                logger.error("Rollback could not delete %s: %s", key, e)

    async def _write_all(self, records: list[tuple[str, Any]], *, restore: Optional[dict[str, Any]] = None) -> None:
        """Write ``records`` in order; on failure undo what was written.

        Keys present in ``restore`` are put back to their previous value
        instead of being deleted. The key whose write failed is undone too,
        since the backend may have applied it before reporting the error.
        """
        restore = restore or {}
        written: list[str] = []
        try:
            for key, value in records:
                written.append(key)
                await self._write(key, value)
        except StorageError:
            fresh = [k for k in written if k not in restore]
            await self._rollback(fresh)
            for key in written:
                if key in restore:
                    try:
                        await self._storage.put(key, restore[key])
                    except Exception as e:
                        logger.error("Rollback could not restore %s: %s", key, e)
            raise

    # ── Reads ─────────────────────────────────────────────────

    async def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        data = await self._read(self._tenant_key(tenant_id))
        if data is None:
            return None
        try:
            return Tenant.model_validate(data)
        except PydanticValidationError as e:
            logger.warning("Unreadable tenant record %s: %s", tenant_id, e.error_count())
            return None

    async def get_user(self, user_id: str) -> Optional[User]:
        data = await self._read(self._user_key(user_id))
        if data is None:
            return None
        try:
            return User.model_validate(data)
        except PydanticValidationError as e:
            logger.warning("Unreadable user record %s: %s", user_id, e.error_count())
            return None

    async def find_tenant(self, lookup: str) -> Optional[Tenant]:
        """Resolve a tenant by id or (case-insensitive) business name."""
        lookup = (lookup or "").strip()
        if not lookup:
            return None
        tenant = await self.get_tenant(lookup)
        if tenant is not None:
            return tenant
        return await self._tenant_from_index(self._name_key(lookup))

    async def list_users(self, tenant_id: str) -> list[User]:
        """All users of a tenant, including suspended and removed ones."""
        ids = await self._read(self._members_key(tenant_id))
        if not isinstance(ids, list):
            return []
        users = []
        for user_id in ids:
            user = await self.get_user(user_id)
            if user is not None and user.tenant_id == tenant_id:
                users.append(user)
        return users

    async def _tenant_from_index(self, key: str) -> Optional[Tenant]:
        entry = await self._read(key)
        if not isinstance(entry, dict) or "tenant_id" not in entry:
            return None
        # A dangling index entry (tenant gone) reads as free.
        return await self.get_tenant(entry["tenant_id"])

    # ── Creation ──────────────────────────────────────────────

    async def create_tenant(
        self,
        name: str,
        business_type: Union[BusinessType, str],
        owner_profile: Union[OwnerProfile, dict[str, Any]],
        owner_secret: str,
        staff_secret: str,
    ) -> tuple[Tenant, User]:
        """Create a business and its sole owner.

        Raises:
            ValidationError: Bad input, weak or equal secrets, name or owner
                email already taken. Nothing is persisted.
            StorageError: Write failed; partial writes were rolled back.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Business name is required", field="name")
        try:
            bt = BusinessType(business_type)
        except ValueError:
            raise ValidationError(f"Unknown business type {business_type!r}", field="business_type")

        profile = self._owner_profile(owner_profile)
        policy = self._config.secrets
        validate_secret_pair(owner_secret, staff_secret, policy)

        owner_hash, staff_hash = await asyncio.gather(
            asyncio.to_thread(hash_secret, owner_secret, iterations=policy.hash_iterations),
            asyncio.to_thread(hash_secret, staff_secret, iterations=policy.hash_iterations),
        )

        tenant = Tenant(
            name=name,
            business_type=bt,
            owner_email=profile.email,
            owner_secret_hash=owner_hash,
            staff_secret_hash=staff_hash,
        )
        owner = User(
            tenant_id=tenant.id,
            name=profile.name,
            email=profile.email,
            phone=profile.phone,
            role=Role.OWNER,
            is_owner=True,
        )
        tenant = tenant.model_copy(update={"owner_id": owner.id})

        await asyncio.shield(self._commit_tenant(tenant, owner))

        logger.info(
            "Created tenant %s (%s) with owner %s", tenant.id, bt.value, owner.id, tenant_id=tenant.id, user_id=owner.id
        )
        self._notify("tenant_created", tenant, owner)
        return tenant, owner

    async def _commit_tenant(self, tenant: Tenant, owner: User) -> None:
        name_key = self._name_key(tenant.name)
        email_key = self._owner_email_key(tenant.owner_email)
        first, second = sorted((name_key, email_key))
        async with self._lock(first), self._lock(second):
            if await self.find_tenant(tenant.name) is not None:
                raise ValidationError("A business with this name already exists", field="name")
            if await self._tenant_from_index(email_key) is not None:
                raise ValidationError("An owner account with this email already exists", field="owner_email")

            records = [
                (self._tenant_key(tenant.id), tenant.model_dump(mode="json")),
                (self._user_key(owner.id), owner.model_dump(mode="json")),
                (self._members_key(tenant.id), [owner.id]),
                (name_key, {"tenant_id": tenant.id}),
                (email_key, {"tenant_id": tenant.id}),
            ]
            await self._write_all(records)

    def _owner_profile(self, profile: Union[OwnerProfile, dict[str, Any]]) -> OwnerProfile:
        try:
            profile = OwnerProfile.model_validate(profile)
        except PydanticValidationError as e:
            raise _profile_error(e, prefix="owner_")
        name = profile.name.strip()
        email = profile.email.strip().lower()
        if not name:
            raise ValidationError("Owner name is required", field="owner_name")
        return OwnerProfile(name=name, email=email, phone=profile.phone.strip())

    # ── Enrollment and sign-in ────────────────────────────────

    async def enroll(
        self,
        tenant_lookup: str,
        staff_secret: str,
        profile: Union[MemberProfile, dict[str, Any]],
    ) -> User:
        """Join a tenant with its staff secret.

        Unknown tenant and wrong secret raise the same
        ``InvalidCredentialError`` after the same amount of hashing work.
        With ``enrollment.require_approval`` the new user is stored
        ``pending`` until the owner approves them.

        Raises:
            InvalidCredentialError: Tenant not found or secret mismatch.
            ValidationError: Profile problems or a role not open to enrollment.
            StorageError: Write failed; partial writes were rolled back.
        """
        tenant = await self._verify_tenant_secret(tenant_lookup, staff_secret, SecretKind.STAFF)

        try:
            profile = MemberProfile.model_validate(profile)
        except PydanticValidationError as e:
            raise _profile_error(e)
        name = profile.name.strip()
        email = profile.email.strip().lower()
        phone = profile.phone.strip()
        if not name:
            raise ValidationError("Name is required", field="name")

        role = self._enrollment_role(tenant, profile.role)
        status = UserStatus.PENDING if self._config.enrollment.require_approval else UserStatus.ACTIVE
        user = User(tenant_id=tenant.id, name=name, email=email, phone=phone, role=role, status=status)
        await asyncio.shield(self._commit_member(tenant, user))

        logger.info(
            "Enrolled %s into %s as %s (%s)",
            user.id,
            tenant.id,
            role.value,
            status.value,
            tenant_id=tenant.id,
            user_id=user.id,
        )
        self._notify("user_enrolled", tenant, user)
        return user

    async def _commit_member(self, tenant: Tenant, user: User) -> None:
        members_key = self._members_key(tenant.id)
        async with self._lock(members_key):
            await self._check_member_unique(tenant, user.email, user.phone)
            members = await self._read(members_key)
            previous = members if isinstance(members, list) else []
            records = [
                (self._user_key(user.id), user.model_dump(mode="json")),
                (members_key, [*previous, user.id]),
            ]
            restore = {members_key: previous} if isinstance(members, list) else None
            await self._write_all(records, restore=restore)

    async def authenticate_owner(self, email: str, owner_secret: str) -> tuple[Tenant, User]:
        """Owner sign-in by email and owner secret.

        Raises:
            InvalidCredentialError: For every failure.
        """
        email = (email or "").strip().lower()
        tenant = await self._tenant_from_index(self._owner_email_key(email)) if email else None
        if tenant is None:
            await self._burn(owner_secret)
            raise InvalidCredentialError()
        if not await asyncio.to_thread(verify_secret, owner_secret or "", tenant.owner_secret_hash):
            raise InvalidCredentialError()

        owner = await self.get_user(tenant.owner_id) if tenant.owner_id else None
        if owner is None or not owner.is_owner or owner.tenant_id != tenant.id:
            logger.warning("Tenant %s has no resolvable owner", tenant.id, tenant_id=tenant.id)
            raise InvalidCredentialError()
        return tenant, owner

    async def authenticate_member(
        self,
        tenant_lookup: str,
        email: str,
        staff_secret: str,
    ) -> tuple[Tenant, User]:
        """Sign an enrolled member back in with the staff secret.

        The owner account is never reachable this way.

        Raises:
            InvalidCredentialError: Unknown tenant, wrong secret or no such member.
            AccessDeniedError: The member exists but is not active.
        """
        tenant = await self._verify_tenant_secret(tenant_lookup, staff_secret, SecretKind.STAFF)
        email = (email or "").strip().lower()
        for user in await self.list_users(tenant.id):
            if user.is_owner or user.status == UserStatus.REMOVED:
                continue
            if user.email.lower() == email:
                if user.status == UserStatus.PENDING:
                    raise AccessDeniedError("This account is awaiting approval by the owner", status=user.status.value)
                if not user.is_active:
                    raise AccessDeniedError("This account is not active", status=user.status.value)
                return tenant, user
        raise InvalidCredentialError()

    async def _verify_tenant_secret(self, lookup: str, secret: str, kind: SecretKind) -> Tenant:
        tenant = await self.find_tenant(lookup)
        if tenant is None:
            await self._burn(secret)
            raise InvalidCredentialError()
        stored = tenant.owner_secret_hash if kind == SecretKind.OWNER else tenant.staff_secret_hash
        if not await asyncio.to_thread(verify_secret, secret or "", stored):
            raise InvalidCredentialError()
        return tenant

    async def _burn(self, secret: str) -> None:
        await asyncio.to_thread(
            burn_verification,
            secret or "",
            iterations=self._config.secrets.hash_iterations,
        )

    def _enrollment_role(self, tenant: Tenant, requested: Optional[Role]) -> Role:
        policy = self._config.enrollment
        open_roles = {opt.role for opt in enrollable_roles(tenant.business_type)}
        try:
            default = Role(policy.default_role)
        except ValueError:
            raise ConfigurationError(f"Enrollment default role {policy.default_role!r} is not a role")
        if default not in open_roles:
            raise ConfigurationError(
                f"Enrollment default role {default.value!r} is not open to {tenant.business_type.value} tenants"
            )

        if requested is None or not policy.allow_role_selection:
            return default
        if requested not in open_roles:
            raise ValidationError(f"Role {requested.value!r} is not available for this business", field="role")
        return requested

    async def _check_member_unique(
        self,
        tenant: Tenant,
        email: str,
        phone: str,
        *,
        exclude_id: Optional[str] = None,
    ) -> None:
        if email == tenant.owner_email.lower():
            raise ValidationError("This email is reserved for the business owner", field="email")
        for user in await self.list_users(tenant.id):
            if user.id == exclude_id or user.status == UserStatus.REMOVED:
                continue
            if user.email.lower() == email:
                raise ValidationError("A team member with this email already exists", field="email")
            if phone and user.phone == phone:
                raise ValidationError("A team member with this phone number already exists", field="phone")

    # ── Administration ────────────────────────────────────────

    async def _authorize(self, actor: Session, requirement: Requirement) -> tuple[Tenant, User]:
        """Re-resolve the acting session from storage and check ``requirement``.

        Raises:
            AccessDeniedError: Actor no longer resolves or lacks the requirement.
        """
        tenant = await self.get_tenant(actor.tenant_id)
        user = await self.get_user(actor.user_id)
        if tenant is None or user is None or user.tenant_id != tenant.id:
            raise AccessDeniedError("Acting session no longer resolves")
        fresh = Session.build(user, tenant, issued_at=actor.issued_at, strict=False)
        reason = denial_reason(requirement, fresh)
        if reason is not None:
            logger.info("Denied registry change for %s: %s", user.id, reason, session=fresh)
            raise AccessDeniedError(reason)
        return tenant, user

    async def _load_member(self, tenant: Tenant, user_id: str) -> User:
        user = await self.get_user(user_id)
        if user is None or user.tenant_id != tenant.id:
            raise ValidationError("No such team member", field="user_id")
        return user

    async def rotate_secret(
        self,
        actor: Session,
        kind: Union[SecretKind, str],
        new_secret: str,
    ) -> Tenant:
        """Replace the owner or staff secret. Owner only.

        Existing sessions stay valid; only future sign-ins and enrollments
        see the new secret.
        """
        tenant, _ = await self._authorize(actor, OWNER_ONLY)
        try:
            kind = SecretKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown secret kind {kind!r}", field="kind")

        field_name = f"{kind.value}_secret"
        validate_secret(new_secret, self._config.secrets, field=field_name)
        other = tenant.staff_secret_hash if kind == SecretKind.OWNER else tenant.owner_secret_hash
        if await asyncio.to_thread(verify_secret, new_secret, other):
            raise ValidationError("Owner and staff secrets must be different", field=field_name)

        new_hash = await asyncio.to_thread(
            hash_secret, new_secret, iterations=self._config.secrets.hash_iterations
        )
        updated = tenant.model_copy(update={f"{field_name}_hash": new_hash})
        await self._write(self._tenant_key(tenant.id), updated.model_dump(mode="json"))

        logger.info("Rotated %s secret for tenant %s", kind.value, tenant.id, session=actor)
        self._notify("secret_rotated", updated)
        return updated

    async def assign_role(self, actor: Session, user_id: str, role: Union[Role, str]) -> User:
        """Give a team member a new role.

        Requires ``manage_team``. The owner's role never changes,
        ``co_founder`` is appointed by the owner only, and non-owners can
        neither grant a role above their own nor re-assign someone senior.
        """
        tenant, acting = await self._authorize(actor, require_capability(C.MANAGE_TEAM))
        target = await self._load_member(tenant, user_id)
        if target.is_owner:
            raise ValidationError("The owner's role cannot be changed", field="user_id")
        if target.status == UserStatus.REMOVED:
            raise ValidationError("Removed team members cannot be changed", field="user_id")
        try:
            new_role = Role(role)
        except ValueError:
            raise ValidationError(f"Unknown role {role!r}", field="role")

        if new_role == Role.CO_FOUNDER:
            if not acting.is_owner:
                raise AccessDeniedError("Only the owner can appoint a co-founder")
        elif new_role not in {opt.role for opt in enrollable_roles(tenant.business_type)}:
            raise ValidationError(f"Role {new_role.value!r} is not available for this business", field="role")

        if not acting.is_owner:
            if not has_role_level(acting.role, new_role):
                raise AccessDeniedError("Cannot grant a role above your own")
            if not has_role_level(acting.role, target.role):
                raise AccessDeniedError("Cannot change the role of a more senior team member")

        if target.role == new_role:
            return target
        updated = target.model_copy(update={"role": new_role})
        await self._write(self._user_key(updated.id), updated.model_dump(mode="json"))

        logger.info(
            "Role of %s changed %s -> %s by %s", updated.id, target.role.value, new_role.value, acting.id, session=actor
        )
        self._notify("user_updated", tenant, updated)
        return updated

    async def set_user_status(
        self,
        actor: Session,
        user_id: str,
        status: Union[UserStatus, str],
    ) -> User:
        """Suspend, deactivate, reactivate or remove a team member.

        Requires ``manage_team``. The owner's status never changes and
        ``removed`` is final.
        """
        tenant, acting = await self._authorize(actor, require_capability(C.MANAGE_TEAM))
        target = await self._load_member(tenant, user_id)
        try:
            new_status = UserStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown status {status!r}", field="status")

        if target.is_owner:
            raise ValidationError("The owner's status cannot be changed", field="user_id")
        if target.status == UserStatus.REMOVED:
            if new_status == UserStatus.REMOVED:
                return target
            raise ValidationError("Removed team members cannot be reinstated", field="status")
        if target.status == UserStatus.PENDING or new_status == UserStatus.PENDING:
            raise ValidationError("Pending enrollments are approved or rejected by the owner", field="status")
        if not acting.is_owner and not has_role_level(acting.role, target.role):
            raise AccessDeniedError("Cannot change the status of a more senior team member")

        if target.status == new_status:
            return target
        updated = target.model_copy(update={"status": new_status})
        await self._write(self._user_key(updated.id), updated.model_dump(mode="json"))

        logger.info(
            "Status of %s changed %s -> %s by %s",
            updated.id,
            target.status.value,
            new_status.value,
            acting.id,
            session=actor,
        )
        self._notify("user_updated", tenant, updated)
        return updated

    async def remove_user(self, actor: Session, user_id: str) -> User:
        """Remove a team member for good (terminal ``removed`` status)."""
        return await self.set_user_status(actor, user_id, UserStatus.REMOVED)

    async def pending_members(self, actor: Session) -> list[User]:
        """Enrollments waiting for the owner's decision. Owner only."""
        tenant, _ = await self._authorize(actor, OWNER_ONLY)
        return [u for u in await self.list_users(tenant.id) if u.status == UserStatus.PENDING]

    async def approve_member(self, actor: Session, user_id: str) -> User:
        """Activate a pending enrollment. Owner only."""
        return await self._decide_pending(actor, user_id, UserStatus.ACTIVE)

    async def reject_member(self, actor: Session, user_id: str) -> User:
        """Turn down a pending enrollment; the user ends up ``removed``. Owner only."""
        return await self._decide_pending(actor, user_id, UserStatus.REMOVED)

    async def _decide_pending(self, actor: Session, user_id: str, outcome: UserStatus) -> User:
        tenant, _ = await self._authorize(actor, OWNER_ONLY)
        async with self._lock(self._members_key(tenant.id)):
            target = await self._load_member(tenant, user_id)
            if target.status != UserStatus.PENDING:
                raise ValidationError("This team member is not awaiting approval", field="user_id")
            updated = target.model_copy(update={"status": outcome})
            await self._write(self._user_key(updated.id), updated.model_dump(mode="json"))

        verb = "Approved" if outcome == UserStatus.ACTIVE else "Rejected"
        logger.info("%s enrollment of %s", verb, updated.id, session=actor)
        self._notify("user_updated", tenant, updated)
        return updated

    async def change_business_type(self, actor: Session, business_type: Union[BusinessType, str]) -> Tenant:
        """Switch the tenant's business type. Owner only.

        Members whose role does not exist in the new type keep their record
        but resolve to no capabilities until re-assigned.
        """
        tenant, _ = await self._authorize(actor, OWNER_ONLY)
        try:
            bt = BusinessType(business_type)
        except ValueError:
            raise ValidationError(f"Unknown business type {business_type!r}", field="business_type")
        if bt == tenant.business_type:
            return tenant

        updated = tenant.model_copy(update={"business_type": bt})
        await self._write(self._tenant_key(tenant.id), updated.model_dump(mode="json"))

        stranded = [
            u.id
            for u in await self.list_users(tenant.id)
            if u.status != UserStatus.REMOVED and not is_role_legal(bt, u.role)
        ]
        if stranded:
            logger.warning(
                "Tenant %s is now %s; %d member(s) hold a role it does not have: %s",
                tenant.id,
                bt.value,
                len(stranded),
                ", ".join(stranded),
                session=actor,
            )
        logger.info(
            "Business type of %s changed %s -> %s", tenant.id, tenant.business_type.value, bt.value, session=actor
        )
        self._notify("tenant_updated", updated)
        return updated


def _profile_error(error: PydanticValidationError, *, prefix: str = "") -> ValidationError:
    """First problem of a profile payload as a field-tagged ValidationError."""
    first = error.errors()[0]
    loc = first.get("loc") or ("profile",)
    field = f"{prefix}{loc[0]}"
    return ValidationError(f"Invalid {field.replace('_', ' ')}: {first.get('msg', 'invalid value')}", field=field)



__all__ = [
    "RegistryEvent",
    "RegistryListener",
    "SecretKind",
    "TenantRegistry",
]
