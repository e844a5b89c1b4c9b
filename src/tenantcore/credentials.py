"""Owner/staff secret policy and digests.

Stored format::

    pbkdf2_sha256$<iterations>$<salt_b64>$<digest_b64>

Digests are salted per secret, so two stored hashes never compare equal
even for equal inputs; secret distinctness is checked against the
plaintext at creation and by verifying against the other stored digest
at rotation.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import os
import re

from .config import SecretPolicy
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

ALGORITHM = "pbkdf2_sha256"
_SALT_BYTES = 16

_LOWER = re.compile(r"[a-z]")
_UPPER = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"\d")


def check_secret_strength(secret: str, policy: SecretPolicy) -> str | None:
    """Return the first policy violation for ``secret``, or None if it passes."""
    if not secret:
        return "is required"
    if len(secret) < policy.min_length:
        return f"must be at least {policy.min_length} characters long"
    if len(secret) > policy.max_length:
        return f"must be at most {policy.max_length} characters long"
    if policy.require_lowercase and not _LOWER.search(secret):
        return "must contain at least one lowercase letter"
    if policy.require_uppercase and not _UPPER.search(secret):
        return "must contain at least one uppercase letter"
    if policy.require_digit and not _DIGIT.search(secret):
        return "must contain at least one number"
    return None


def validate_secret(secret: str, policy: SecretPolicy, *, field: str) -> None:
    """Raise ValidationError naming ``field`` if ``secret`` violates the policy."""
    problem = check_secret_strength(secret, policy)
    if problem:
        label = field.replace("_", " ").capitalize()
        raise ValidationError(f"{label} {problem}", field=field)


def validate_secret_pair(owner_secret: str, staff_secret: str, policy: SecretPolicy) -> None:
    """Strength-check both secrets and require them to differ."""
    validate_secret(owner_secret, policy, field="owner_secret")
    validate_secret(staff_secret, policy, field="staff_secret")
    if hmac.compare_digest(owner_secret.encode(), staff_secret.encode()):
        raise ValidationError("Owner and staff secrets must be different", field="staff_secret")


def hash_secret(secret: str, *, iterations: int) -> str:
    """Salted PBKDF2-SHA256 digest of ``secret``."""
    salt = os.urandom(_SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", secret.encode("utf-8"), salt, iterations)
    return "$".join(
        (
            ALGORITHM,
            str(iterations),
            base64.urlsafe_b64encode(salt).decode("ascii"),
            base64.urlsafe_b64encode(digest).decode("ascii"),
        )
    )


def verify_secret(secret: str, stored: str) -> bool:
    """Constant-time check of ``secret`` against a stored digest.

    Malformed digests verify as False.
    """
    try:
        algorithm, iterations, salt_b64, digest_b64 = stored.split("$")
        if algorithm != ALGORITHM:
            return False
        salt = base64.urlsafe_b64decode(salt_b64)
        expected = base64.urlsafe_b64decode(digest_b64)
        rounds = int(iterations)
    except (ValueError, TypeError, AttributeError):
        logger.warning("Unreadable secret digest")
        return False
    actual = hashlib.pbkdf2_hmac("sha256", (secret or "").encode("utf-8"), salt, rounds)
    return hmac.compare_digest(actual, expected)


_dummy_hashes: dict[int, str] = {}


def burn_verification(secret: str, *, iterations: int) -> None:
    """Spend the same work as a real verification against a throwaway digest.

    Used when the tenant does not exist so the failure costs as much as a
    wrong secret.
    """
    dummy = _dummy_hashes.get(iterations)
    if dummy is None:
        dummy = _dummy_hashes[iterations] = hash_secret(os.urandom(12).hex(), iterations=iterations)
    verify_secret(secret, dummy)


__all__ = [
    "ALGORITHM",
    "burn_verification",
    "check_secret_strength",
    "hash_secret",
    "validate_secret",
    "validate_secret_pair",
    "verify_secret",
]
