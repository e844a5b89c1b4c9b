"""Shared configuration contract for tenantcore.

This module provides Pydantic-validated configuration models for the
authorization core: logging, storage, secret strength policy and the
staff enrollment policy.

Direct os.environ/os.getenv usage is FORBIDDEN outside
``load_config_from_env()``. Everything else reads the config object,
usually through ``get_config()``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Environment(str, Enum):
    """Build flavour.

    - DEVELOPMENT: catalog defects raise ConfigurationError.
    - PRODUCTION: catalog defects are logged and degrade to no capabilities.
    """

    DEVELOPMENT = "development"
    PRODUCTION = "production"


class SecretPolicy(BaseModel):
    """Minimum-strength policy for owner and staff secrets."""

    model_config = {"extra": "ignore"}

    min_length: int = Field(default=8, ge=1, description="Minimum secret length")
    max_length: int = Field(default=50, ge=1, description="Maximum secret length")
    require_lowercase: bool = Field(default=True, description="At least one lowercase letter")
    require_uppercase: bool = Field(default=True, description="At least one uppercase letter")
    require_digit: bool = Field(default=True, description="At least one digit")
    hash_iterations: int = Field(
        default=200_000,
        ge=1,
        description="PBKDF2-SHA256 iterations for stored secret digests",
    )


class EnrollmentConfig(BaseModel):
    """Role policy for users joining a tenant with the staff secret.

    When ``allow_role_selection`` is False every enrollee receives
    ``default_role`` regardless of what they asked for, pending promotion by
    a team manager. With ``require_approval`` new members start ``pending``
    and cannot sign in until the owner approves them.
    """

    model_config = {"extra": "ignore"}

    allow_role_selection: bool = Field(
        default=True,
        description="Let the joining user pick an enrollable role",
    )
    default_role: str = Field(
        default="staff",
        description="Role used when none is requested or selection is disabled",
    )
    require_approval: bool = Field(
        default=False,
        description="Hold new enrollments for owner approval",
    )


class TenantCoreConfig(BaseModel):
    """Configuration for the tenant authorization core."""

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="development raises on catalog defects, production degrades",
    )

    # Storage
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for the tenant registry (e.g., redis://localhost:6379/0)",
    )
    storage_prefix: str = Field(
        default="tenantcore",
        description="Key prefix for tenant and user records",
    )
    session_file: Optional[str] = Field(
        default=None,
        description="Path of the client-side session file (None = in-memory only)",
    )

    secrets: SecretPolicy = Field(default_factory=SecretPolicy)
    enrollment: EnrollmentConfig = Field(default_factory=EnrollmentConfig)

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate Redis URL format."""
        if v is None:
            return v
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("Redis URL must start with redis://, rediss://, or unix://")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str | Environment) -> Environment:
        if isinstance(v, Environment):
            return v
        if isinstance(v, str):
            try:
                return Environment(v.strip().lower())
            except ValueError:
                raise ValueError(f"Invalid environment: {v}. Must be one of {[e.value for e in Environment]}")
        raise ValueError(f"Environment must be string or Environment enum, got {type(v)}")

    model_config = {
        "extra": "forbid",
    }


def load_config_from_env() -> TenantCoreConfig:
    """Load configuration from environment variables.

    This is the ONLY place where os.getenv is allowed.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_JSON: Use JSON log format (true/false, default: false)
    - TENANTCORE_ENV: development | production
    - REDIS_URL: Redis connection URL
    - TENANTCORE_STORAGE_PREFIX: Key prefix for records
    - TENANTCORE_SESSION_FILE: Client session file path
    - SECRET_MIN_LENGTH / SECRET_MAX_LENGTH: Secret length bounds
    - SECRET_HASH_ITERATIONS: PBKDF2 iterations
    - ENROLLMENT_ALLOW_ROLE_SELECTION: true/false
    - ENROLLMENT_DEFAULT_ROLE: Role for enrollees without a selection
    - ENROLLMENT_REQUIRE_APPROVAL: true/false

    Returns:
        TenantCoreConfig instance with values from environment or defaults.
    """
    import os

    truthy = ("true", "1", "yes", "on")

    secrets = SecretPolicy(
        min_length=int(os.getenv("SECRET_MIN_LENGTH", "8")),
        max_length=int(os.getenv("SECRET_MAX_LENGTH", "50")),
        hash_iterations=int(os.getenv("SECRET_HASH_ITERATIONS", "200000")),
    )
    enrollment = EnrollmentConfig(
        allow_role_selection=os.getenv("ENROLLMENT_ALLOW_ROLE_SELECTION", "true").lower() in truthy,
        default_role=os.getenv("ENROLLMENT_DEFAULT_ROLE", "staff"),
        require_approval=os.getenv("ENROLLMENT_REQUIRE_APPROVAL", "false").lower() in truthy,
    )

    return TenantCoreConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=os.getenv("LOG_JSON", "false").lower() in truthy,
        environment=os.getenv("TENANTCORE_ENV", "development"),
        redis_url=os.getenv("REDIS_URL"),
        storage_prefix=os.getenv("TENANTCORE_STORAGE_PREFIX", "tenantcore"),
        session_file=os.getenv("TENANTCORE_SESSION_FILE"),
        secrets=secrets,
        enrollment=enrollment,
    )


# ── Singleton ────────────────────────────────────────────────────

_config: TenantCoreConfig | None = None


def get_config() -> TenantCoreConfig:
    """Get or load the process-wide configuration."""
    global _config
    if _config is None:
        _config = load_config_from_env()
    return _config


def set_config(config: TenantCoreConfig) -> None:
    """Install an explicit configuration (embedding apps, tests)."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the singleton (for testing)."""
    global _config
    _config = None


__all__ = [
    "EnrollmentConfig",
    "Environment",
    "LogLevel",
    "SecretPolicy",
    "TenantCoreConfig",
    "get_config",
    "load_config_from_env",
    "reset_config",
    "set_config",
]
