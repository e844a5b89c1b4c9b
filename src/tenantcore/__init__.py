from .config import TenantCoreConfig, LogLevel, Environment, load_config_from_env, get_config, set_config, reset_config
from .exceptions import (
    TenantCoreError,
    ValidationError,
    InvalidCredentialError,
    OrphanedSessionError,
    ConfigurationError,
    AccessDeniedError,
    StorageError,
)
from .logging import (
    safe_preview,
    redact_secrets,
    safe_log_value,
    TenantCoreFormatter,
    TenantLoggerAdapter,
    setup_logging,
    get_tenant_logger,
)
from .permissions import BusinessType, Role, Capabilities, roles_for, enrollable_roles, capabilities_for
from .models import Tenant, User, UserStatus, OwnerProfile, MemberProfile
from .storage import Storage, SessionStore, MemoryStorage, RedisStorage, MemorySessionStore, FileSessionStore
from .guard import (
    AuthorizationGuard,
    GuardResult,
    GuardState,
    Requirement,
    NO_REQUIREMENT,
    OWNER_ONLY,
    require_capability,
    all_of,
    allow,
)
from .session import Session, SessionManager
from .registry import TenantRegistry, RegistryEvent, SecretKind
from .auth import PENDING_APPROVAL, AuthResult, AuthService
from .permissions.modules import BusinessModule, available_modules, has_module_access

__all__ = [
    'TenantCoreConfig',
    'LogLevel',
    'Environment',
    'load_config_from_env',
    'get_config',
    'set_config',
    'reset_config',
    'TenantCoreError',
    'ValidationError',
    'InvalidCredentialError',
    'OrphanedSessionError',
    'ConfigurationError',
    'AccessDeniedError',
    'StorageError',
    'safe_preview',
    'redact_secrets',
    'safe_log_value',
    'TenantCoreFormatter',
    'TenantLoggerAdapter',
    'setup_logging',
    'get_tenant_logger',
    'BusinessType',
    'Role',
    'Capabilities',
    'roles_for',
    'enrollable_roles',
    'capabilities_for',
    'Tenant',
    'User',
    'UserStatus',
    'OwnerProfile',
    'MemberProfile',
    'Storage',
    'SessionStore',
    'MemoryStorage',
    'RedisStorage',
    'MemorySessionStore',
    'FileSessionStore',
    'AuthorizationGuard',
    'GuardResult',
    'GuardState',
    'Requirement',
    'NO_REQUIREMENT',
    'OWNER_ONLY',
    'require_capability',
    'all_of',
    'allow',
    'Session',
    'SessionManager',
    'TenantRegistry',
    'RegistryEvent',
    'SecretKind',
    'AuthResult',
    'PENDING_APPROVAL',
    'AuthService',
    'BusinessModule',
    'available_modules',
    'has_module_access',
]
