"""Authorization guard: one requirement type, one decision function.

Provides:
- ``Requirement`` and its constructors — ``NO_REQUIREMENT``,
  ``require_capability()``, ``OWNER_ONLY``, ``all_of()``.
- ``allow()`` — the single decision function used by routes, controls,
  actions and registry administration alike.
- ``GuardResult`` — tri-state result (unresolved / denied / granted).
- ``AuthorizationGuard`` — binds ``allow()`` to a ``SessionManager`` and
  offers ``evaluate``, ``render`` and the ``protect`` action decorator.
"""

from __future__ import annotations

import functools
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

from .exceptions import ConfigurationError
from .permissions.constants import Capabilities

if TYPE_CHECKING:
    from .session import Session, SessionManager

logger = logging.getLogger(__name__)


# ── Requirements ─────────────────────────────────────────────────


class RequirementKind(str, Enum):
    NONE = "none"
    CAPABILITY = "capability"
    OWNER = "owner"
    ALL = "all"


@dataclass(frozen=True)
class Requirement:
    """What a screen or action needs. Build with the helpers below."""

    kind: RequirementKind
    capability: Optional[str] = None
    children: tuple["Requirement", ...] = ()


NO_REQUIREMENT = Requirement(RequirementKind.NONE)
OWNER_ONLY = Requirement(RequirementKind.OWNER)

RequirementLike = Union[Requirement, str]


def require_capability(capability: str) -> Requirement:
    """Require ``capability`` in the session (the owner always passes).

    Raises:
        ConfigurationError: ``capability`` is not in the catalog.
    """
    if not Capabilities.is_known(capability):
        raise ConfigurationError(f"Unknown capability {capability!r}", capability=capability)
    return Requirement(RequirementKind.CAPABILITY, capability=capability)


def all_of(*requirements: RequirementLike) -> Requirement:
    """Every requirement must pass. Nested ``all_of`` are flattened."""
    flat: list[Requirement] = []
    for req in requirements:
        req = as_requirement(req)
        if req.kind == RequirementKind.ALL:
            flat.extend(req.children)
        elif req.kind != RequirementKind.NONE:
            flat.append(req)
    if not flat:
        return NO_REQUIREMENT
    if len(flat) == 1:
        return flat[0]
    return Requirement(RequirementKind.ALL, children=tuple(flat))


def as_requirement(value: RequirementLike) -> Requirement:
    """Accept a bare capability key wherever a requirement is expected."""
    if isinstance(value, Requirement):
        return value
    if isinstance(value, str):
        return require_capability(value)
    raise ConfigurationError(f"Not a requirement: {value!r}")


# ── Decision ─────────────────────────────────────────────────────


def allow(requirement: Requirement, session: Optional["Session"]) -> bool:
    """Decide ``requirement`` for ``session``.

    No session, or a non-active user, is denied for every requirement
    including ``NO_REQUIREMENT``.
    """
    return denial_reason(requirement, session) is None


def denial_reason(requirement: Requirement, session: Optional["Session"]) -> Optional[str]:
    """Why ``requirement`` fails for ``session``, or None when it passes."""
    if session is None:
        return "Not signed in"
    if not session.is_active:
        return "Account is not active"

    kind = requirement.kind
    if kind == RequirementKind.NONE:
        return None
    if kind == RequirementKind.OWNER:
        return None if session.is_owner else "Owner access only"
    if kind == RequirementKind.CAPABILITY:
        if session.is_owner or requirement.capability in session.capabilities:
            return None
        return f"Missing capability {requirement.capability!r}"
    if kind == RequirementKind.ALL:
        for child in requirement.children:
            reason = denial_reason(child, session)
            if reason is not None:
                return reason
        return None
    return f"Unsupported requirement {kind!r}"


# ── Guard Result ─────────────────────────────────────────────────


class GuardState(str, Enum):
    UNRESOLVED = "unresolved"
    DENIED = "denied"
    GRANTED = "granted"


@dataclass
class GuardResult:
    """Result from a guard evaluation."""

    state: GuardState
    reason: str = ""

    @property
    def granted(self) -> bool:
        return self.state == GuardState.GRANTED

    @property
    def denied(self) -> bool:
        return self.state == GuardState.DENIED


@dataclass(frozen=True)
class Surface:
    """Placeholder shown instead of protected content."""

    kind: str
    title: str = ""
    message: str = ""


LOADING_SURFACE = Surface(kind="loading", message="Loading...")
ACCESS_RESTRICTED = Surface(
    kind="access_restricted",
    title="Access Denied",
    message="You don't have permission to access this feature.",
)


# ── Authorization Guard ──────────────────────────────────────────


class AuthorizationGuard:
    """Declarative checks against the session owned by ``session_manager``.

    Until the manager has resolved (restore finished, or a session was
    started or ended) every evaluation is ``UNRESOLVED``: neither content
    nor the denial surface is shown.
    """

    def __init__(self, session_manager: "SessionManager") -> None:
        self._sessions = session_manager

    def evaluate(self, *requirements: RequirementLike) -> GuardResult:
        if not self._sessions.resolved:
            return GuardResult(GuardState.UNRESOLVED, "Session not yet resolved")
        requirement = all_of(*requirements)
        reason = denial_reason(requirement, self._sessions.current)
        if reason is None:
            return GuardResult(GuardState.GRANTED)
        return GuardResult(GuardState.DENIED, reason)

    def allow(self, *requirements: RequirementLike) -> bool:
        return self.evaluate(*requirements).granted

    def render(
        self,
        requirement: RequirementLike,
        content: Any,
        *,
        loading: Any = LOADING_SURFACE,
        denied: Any = ACCESS_RESTRICTED,
    ) -> Any:
        """Pick what to show for a protected screen.

        ``content`` may be a zero-argument callable; it is only called
        when access is granted.
        """
        result = self.evaluate(requirement)
        if result.state == GuardState.UNRESOLVED:
            return loading
        if result.state == GuardState.DENIED:
            return denied
        return content() if callable(content) else content

    def protect(self, *requirements: RequirementLike) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator: run the action only when the requirement is granted.

        A denied (or unresolved) call does not execute and returns None.
        Works for plain and ``async`` functions. Requirements are checked
        against the catalog when the decorator is applied.
        """
        requirement = all_of(*requirements)

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            name = getattr(func, "__qualname__", repr(func))
            if inspect.iscoroutinefunction(func):

                @functools.wraps(func)
                async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                    result = self.evaluate(requirement)
                    if not result.granted:
                        logger.info("Action %s blocked: %s", name, result.reason)
                        return None
                    return await func(*args, **kwargs)

                return async_wrapper

            @functools.wraps(func)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                result = self.evaluate(requirement)
                if not result.granted:
                    logger.info("Action %s blocked: %s", name, result.reason)
                    return None
                return func(*args, **kwargs)

            return wrapper

        return decorator


__all__ = [
    "ACCESS_RESTRICTED",
    "AuthorizationGuard",
    "GuardResult",
    "GuardState",
    "LOADING_SURFACE",
    "NO_REQUIREMENT",
    "OWNER_ONLY",
    "Requirement",
    "RequirementKind",
    "Surface",
    "all_of",
    "allow",
    "as_requirement",
    "denial_reason",
    "require_capability",
]
