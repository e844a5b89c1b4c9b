"""Centralized logging utilities for tenantcore.

This module provides:
- Logging configuration from TenantCoreConfig
- Safe preview utilities for sensitive data
- Secret redaction (owner/staff secrets must never reach a log line)
- Structured logging with tenant_id / user_id propagation
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from .config import LogLevel, TenantCoreConfig


# Patterns for detecting secrets (common patterns to redact)
SECRET_PATTERNS = [
    r'(?i)(?:password|passwd|pwd|secret|token|key|api[_-]?key|auth[_-]?token)\s*[:=]\s*["\']?([^"\'\s]+)',
    r'(?i)(?:bearer|basic)\s+([a-zA-Z0-9+/=]+)',
    r'(?i)pbkdf2_sha256\$\d+\$[A-Za-z0-9+/=_-]+\$[A-Za-z0-9+/=_-]+',  # Stored secret digests
    r'[a-f0-9]{32,}',  # Long hex strings (could be hashes or keys)
]

_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName", "tenant_id", "user_id",
}


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a safe, length-bounded, single-line preview of a value for logging.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


def redact_secrets(text: str, replacement: str = "[REDACTED]") -> str:
    """Redact secret patterns from text.

    Removes secrets in ``key=value`` form, bearer/basic credentials,
    stored PBKDF2 digests and long hex strings.

    Args:
        text: The text to redact
        replacement: String to replace secrets with (default: "[REDACTED]")

    Returns:
        Text with secrets redacted
    """
    if not isinstance(text, str):
        return text

    result = text
    for pattern in SECRET_PATTERNS:
        result = re.sub(pattern, replacement, result, flags=re.IGNORECASE | re.DOTALL)

    return result


def safe_log_value(value: Any, limit: int = 240, redact: bool = True) -> str:
    """Combine safe_preview() and redact_secrets() for a potentially sensitive value."""
    preview = safe_preview(value, limit=limit)
    if redact:
        preview = redact_secrets(preview)
    return preview


class TenantCoreFormatter(logging.Formatter):
    """Formatter that includes tenant/user context and optional JSON output.

    Extra fields on the record are previewed and redacted; the message
    itself is redacted too.
    """

    def __init__(
        self,
        include_identity: bool = True,
        json_format: bool = True,
        redact_secrets: bool = True,
        *args: Any,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.include_identity = include_identity
        self.json_format = json_format
        self.redact_secrets = redact_secrets

    def format(self, record: logging.LogRecord) -> str:
        tenant_id = getattr(record, "tenant_id", None)
        user_id = getattr(record, "user_id", None)

        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_identity:
            if tenant_id:
                log_data["tenant_id"] = str(tenant_id)
            if user_id:
                log_data["user_id"] = str(user_id)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = safe_log_value(value, redact=self.redact_secrets)

        if self.redact_secrets:
            log_data["message"] = redact_secrets(log_data["message"])

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            f"{log_data['level']}",
            f"{log_data['logger']}",
        ]
        if self.include_identity and tenant_id:
            parts.append(f"tenant_id={log_data['tenant_id']}")
        if self.include_identity and user_id:
            parts.append(f"user_id={log_data['user_id']}")
        parts.append(f": {log_data['message']}")
        return " ".join(parts)


class TenantLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds tenant_id and user_id to log records.

    Usage:
        logger = get_tenant_logger(__name__)
        logger.info("Capability refreshed", session=current_session)
    """

    def __init__(
        self,
        logger: logging.Logger,
        tenant_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ):
        super().__init__(logger, {})
        self.tenant_id = tenant_id
        self.user_id = user_id

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        tenant_id = kwargs.pop("tenant_id", self.tenant_id)
        user_id = kwargs.pop("user_id", self.user_id)

        session = kwargs.pop("session", None)
        if session is not None:
            tenant_id = tenant_id or getattr(session, "tenant_id", None)
            user_id = user_id or getattr(session, "user_id", None)

        extra = dict(kwargs.get("extra") or {})
        if tenant_id:
            extra["tenant_id"] = tenant_id
        if user_id:
            extra["user_id"] = user_id
        kwargs["extra"] = extra

        return msg, kwargs


def setup_logging(
    config: Optional[TenantCoreConfig] = None,
    json_format: Optional[bool] = None,
    redact_secrets: bool = True,
) -> None:
    """Configure root logging from TenantCoreConfig.

    Args:
        config: Configuration (if None, uses ``get_config()``)
        json_format: Override ``config.log_json``
        redact_secrets: Whether to redact secrets (default: True)
    """
    if config is None:
        from .config import get_config
        config = get_config()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(config.log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        TenantCoreFormatter(
            include_identity=True,
            json_format=config.log_json if json_format is None else json_format,
            redact_secrets=redact_secrets,
        )
    )
    root_logger.addHandler(console_handler)


def get_tenant_logger(
    name: str,
    tenant_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> TenantLoggerAdapter:
    """Get a logger adapter carrying tenant/user identity.

    Example:
        logger = get_tenant_logger(__name__)
        logger.info("Session started", session=session)
    """
    return TenantLoggerAdapter(logging.getLogger(name), tenant_id=tenant_id, user_id=user_id)


__all__ = [
    "safe_preview",
    "redact_secrets",
    "safe_log_value",
    "TenantCoreFormatter",
    "TenantLoggerAdapter",
    "setup_logging",
    "get_tenant_logger",
]
