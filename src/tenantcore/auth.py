"""Sign-up and sign-in entry points for forms.

``AuthService`` wraps the registry and the session manager. Expected
failures (bad input, wrong secret, inactive account, storage outage) come
back as ``AuthResult`` values the form can show; configuration defects
still raise.

Usage:
    auth = AuthService(registry, sessions)
    result = await auth.owner_signup(
        business_name="Acme Retail",
        business_type="retailer",
        owner_name="Asha",
        owner_email="asha@acme.example",
        owner_secret="Owner#2024",
        staff_secret="Staff#2024",
    )
    if not result.success:
        form.show_error(result.field, result.message)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from .exceptions import (
    AccessDeniedError,
    InvalidCredentialError,
    StorageError,
    TenantCoreError,
    ValidationError,
    error_registry,
)
from .models import Tenant, User, UserStatus
from .permissions.constants import BusinessType, Role
from .registry import TenantRegistry
from .session import Session, SessionManager

logger = logging.getLogger(__name__)

# Failures a form is expected to display; anything else propagates.
_FORM_ERRORS = (ValidationError, InvalidCredentialError, AccessDeniedError, StorageError)

PENDING_APPROVAL = "PENDING_APPROVAL"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a sign-up or sign-in attempt."""

    success: bool
    session: Optional[Session] = None
    code: str = ""
    message: str = ""
    field: Optional[str] = None

    @property
    def user(self) -> Optional[User]:
        return self.session.user if self.session else None

    @property
    def tenant(self) -> Optional[Tenant]:
        return self.session.tenant if self.session else None

    @property
    def pending(self) -> bool:
        """Enrollment recorded but waiting for the owner; nobody is signed in."""
        return self.success and self.code == PENDING_APPROVAL

    @classmethod
    def ok(cls, session: Optional[Session] = None) -> "AuthResult":
        return cls(success=True, session=session)

    @classmethod
    def from_error(cls, error: TenantCoreError) -> "AuthResult":
        return cls(
            success=False,
            code=error.code,
            message=error.message,
            field=getattr(error, "field", None),
        )

    def raise_for_error(self) -> None:
        """Re-raise a failed result as its registered exception type."""
        if self.success:
            return
        error_cls = error_registry.get(self.code) or TenantCoreError
        if issubclass(error_cls, ValidationError):
            raise error_cls(self.message, field=self.field)
        raise error_cls(self.message, code=self.code)


class AuthService:
    """Form-facing authentication flows.

    Args:
        registry: Tenant registry.
        sessions: Session manager that receives the signed-in session.
    """

    def __init__(self, registry: TenantRegistry, sessions: SessionManager) -> None:
        self._registry = registry
        self._sessions = sessions

    async def owner_signup(
        self,
        *,
        business_name: str,
        business_type: Union[BusinessType, str],
        owner_name: str,
        owner_email: str,
        owner_secret: str,
        staff_secret: str,
        owner_phone: str = "",
    ) -> AuthResult:
        """Create a business and sign its owner in."""
        try:
            tenant, owner = await self._registry.create_tenant(
                business_name,
                business_type,
                {"name": owner_name, "email": owner_email, "phone": owner_phone},
                owner_secret,
                staff_secret,
            )
        except _FORM_ERRORS as e:
            return self._failed("owner_signup", e)
        return AuthResult.ok(self._sessions.start(owner, tenant))

    async def staff_signin(
        self,
        *,
        business: str,
        staff_secret: str,
        name: str,
        email: str,
        phone: str = "",
        role: Union[Role, str, None] = None,
    ) -> AuthResult:
        """Join ``business`` (id or name) with the staff secret and sign in.

        When enrollments need approval the result is ``pending`` and no
        session is started; the current one, if any, is kept.
        """
        try:
            user = await self._registry.enroll(
                business,
                staff_secret,
                {"name": name, "email": email, "phone": phone, "role": role or None},
            )
            tenant = await self._registry.get_tenant(user.tenant_id)
            if tenant is None:
                raise StorageError("Business could not be loaded after enrollment")
        except _FORM_ERRORS as e:
            return self._failed("staff_signin", e)
        if user.status == UserStatus.PENDING:
            logger.info("staff_signin pending approval")
            return AuthResult(success=True, code=PENDING_APPROVAL, message="Request sent to owner for approval.")
        return AuthResult.ok(self._sessions.start(user, tenant))

    async def owner_signin(self, *, email: str, owner_secret: str) -> AuthResult:
        """Sign the owner back in with their email and the owner secret."""
        try:
            tenant, owner = await self._registry.authenticate_owner(email, owner_secret)
        except _FORM_ERRORS as e:
            return self._failed("owner_signin", e)
        return AuthResult.ok(self._sessions.start(owner, tenant))

    async def member_signin(self, *, business: str, email: str, staff_secret: str) -> AuthResult:
        """Sign an enrolled team member back in with the staff secret."""
        try:
            tenant, user = await self._registry.authenticate_member(business, email, staff_secret)
        except _FORM_ERRORS as e:
            return self._failed("member_signin", e)
        return AuthResult.ok(self._sessions.start(user, tenant))

    def sign_out(self) -> AuthResult:
        self._sessions.end()
        return AuthResult.ok()

    @staticmethod
    def _failed(flow: str, error: TenantCoreError) -> AuthResult:
        if isinstance(error, StorageError):
            logger.error("%s failed: %s", flow, error.message)
        else:
            logger.info("%s rejected: %s", flow, error.code)
        return AuthResult.from_error(error)


__all__ = [
    "PENDING_APPROVAL",
    "AuthResult",
    "AuthService",
]
