"""Session manager: who is signed in, in which tenant, holding what.

Provides:
- ``Session`` — immutable snapshot of (user, tenant, capabilities, issued_at).
- ``SessionManager`` — owns the current session for this process, persists
  a minimal record to a ``SessionStore`` and keeps capabilities in step
  with registry changes.

There is no global current-user: the manager is created by the app and
handed to whatever guards need it.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from .exceptions import OrphanedSessionError
from .logging import get_tenant_logger
from .models import Tenant, User
from .permissions.catalog import effective_capabilities
from .storage import SessionStore, session_store_from_config

if TYPE_CHECKING:
    from .registry import RegistryEvent, TenantRegistry

logger = get_tenant_logger(__name__)


@dataclass(frozen=True)
class Session:
    """A signed-in user within one tenant.

    Capabilities are computed once when the snapshot is built. Changes to
    the role or business type produce a new ``Session``; an existing one is
    never mutated.
    """

    user: User
    tenant: Tenant
    capabilities: frozenset[str] = field(default_factory=frozenset)
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def build(
        cls,
        user: User,
        tenant: Tenant,
        *,
        issued_at: Optional[datetime] = None,
        strict: Optional[bool] = None,
    ) -> "Session":
        """Snapshot ``user`` in ``tenant`` with freshly resolved capabilities.

        Raises:
            OrphanedSessionError: The user does not belong to the tenant.
            ConfigurationError: Unmapped role in strict mode.
        """
        if user.tenant_id != tenant.id:
            raise OrphanedSessionError(
                "User does not belong to tenant",
                user_id=user.id,
                tenant_id=tenant.id,
            )
        capabilities = effective_capabilities(tenant.business_type, user.role, user.is_owner, strict=strict)
        return cls(
            user=user,
            tenant=tenant,
            capabilities=capabilities,
            issued_at=issued_at or datetime.now(timezone.utc),
        )

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def tenant_id(self) -> str:
        return self.tenant.id

    @property
    def is_owner(self) -> bool:
        return self.user.is_owner

    @property
    def is_active(self) -> bool:
        return self.user.is_active

    def has_capability(self, capability: str) -> bool:
        return self.user.is_owner or capability in self.capabilities

    def to_record(self) -> dict[str, Any]:
        """Minimal client-side record; capabilities are never persisted."""
        return {
            "user_id": self.user.id,
            "tenant_id": self.tenant.id,
            "issued_at": self.issued_at.isoformat(),
        }


class SessionManager:
    """Single writer for the current session of this process.

    Readers get whole ``Session`` snapshots via ``current``. Updates are
    applied under a lock and replace the snapshot in one assignment.

    Args:
        registry: Tenant registry used to re-resolve persisted sessions. The
            manager subscribes to its change notifications.
        store: Client-side session storage. Defaults to
            ``session_store_from_config()``.
    """

    def __init__(self, registry: "TenantRegistry", store: Optional[SessionStore] = None) -> None:
        self._registry = registry
        self._store = store if store is not None else session_store_from_config()
        self._lock = threading.RLock()
        self._session: Optional[Session] = None
        self._resolved = False
        self._generation = 0
        registry.add_listener(self._on_registry_event)

    @property
    def current(self) -> Optional[Session]:
        return self._session

    @property
    def resolved(self) -> bool:
        """True once ``restore`` has finished or a session was started/ended."""
        return self._resolved

    # ── Lifecycle ─────────────────────────────────────────────

    def start(self, user: User, tenant: Tenant) -> Session:
        """Begin a session after signup or sign-in and persist its record."""
        session = Session.build(user, tenant)
        with self._lock:
            self._publish(session)
        self._save(session)
        logger.info("Session started for %s in %s", user.id, tenant.id, session=session)
        return session

    async def restore(self) -> Optional[Session]:
        """Re-establish the persisted session, if it still resolves.

        Any dangling reference, tenant/user mismatch, non-active user or
        storage failure returns None. A user whose role maps to no
        capabilities is still restored; the guards deny them. Calling this
        twice returns equal sessions.
        """
        generation = self._generation
        try:
            record = self._store.load()
        except Exception as e:
            logger.warning("Stored session is unreadable, discarding: %s", e)
            record = None
            self._clear_store()

        session: Optional[Session] = None
        if record is not None:
            try:
                session = await self._resolve(record)
            except OrphanedSessionError as e:
                logger.info("Discarding stored session: %s", e.message)
                self._clear_store()

        with self._lock:
            if generation != self._generation:
                # start()/end() ran while we were resolving; theirs wins.
                return self._session
            self._publish(session)
        return session

    def end(self) -> None:
        """Sign out: drop the in-memory session and the persisted record."""
        with self._lock:
            previous = self._session
            self._publish(None)
        self._clear_store()
        if previous is not None:
            logger.info("Session ended for %s in %s", previous.user_id, previous.tenant_id, session=previous)

    def refresh(self, *, user: Optional[User] = None, tenant: Optional[Tenant] = None) -> Optional[Session]:
        """Recompute the current session from updated records.

        Records that do not belong to the current session are ignored. A
        user that is no longer active ends the session.
        """
        with self._lock:
            current = self._session
            if current is None:
                return None
            new_user = user if user is not None and user.id == current.user_id else current.user
            new_tenant = tenant if tenant is not None and tenant.id == current.tenant_id else current.tenant
            if new_user is current.user and new_tenant is current.tenant:
                return current

            if not new_user.is_active:
                logger.info("User %s is %s: ending session", new_user.id, new_user.status.value, session=current)
                self.end()
                return None

            updated = Session.build(new_user, new_tenant, issued_at=current.issued_at, strict=False)
            if not updated.capabilities:
                logger.warning("Session resolves to no capabilities", session=updated)
            self._session = updated
        logger.debug("Session refreshed for %s (role=%s)", updated.user_id, updated.user.role.value, session=updated)
        return updated

    # ── Internals ─────────────────────────────────────────────

    def _publish(self, session: Optional[Session]) -> None:
        self._session = session
        self._resolved = True
        self._generation += 1

    async def _resolve(self, record: dict[str, Any]) -> Session:
        user_id = record.get("user_id")
        tenant_id = record.get("tenant_id")
        if not isinstance(user_id, str) or not isinstance(tenant_id, str):
            raise OrphanedSessionError("Stored session record is incomplete")
        try:
            issued_at = datetime.fromisoformat(record["issued_at"])
        except (KeyError, TypeError, ValueError):
            raise OrphanedSessionError("Stored session record has no valid issue time")

        tenant = await self._registry.get_tenant(tenant_id)
        if tenant is None:
            raise OrphanedSessionError("Tenant no longer exists", tenant_id=tenant_id)
        user = await self._registry.get_user(user_id)
        if user is None:
            raise OrphanedSessionError("User no longer exists", user_id=user_id)
        if not user.is_active:
            raise OrphanedSessionError(f"User is {user.status.value}", user_id=user_id)

        return Session.build(user, tenant, issued_at=issued_at)

    def _save(self, session: Session) -> None:
        try:
            self._store.save(session.to_record())
        except OSError as e:
            logger.warning("Could not persist session record: %s", e)

    def _clear_store(self) -> None:
        try:
            self._store.clear()
        except OSError as e:
            logger.warning("Could not clear session record: %s", e)

    def _on_registry_event(self, event: "RegistryEvent") -> None:
        if self._session is None:
            return
        self.refresh(user=event.user, tenant=event.tenant)


__all__ = [
    "Session",
    "SessionManager",
]
