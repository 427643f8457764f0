"""
BreachWatch - Email Hasher
Emails are never stored for lookups; only a SHA-256 digest of the
normalized address is used as the key into email_breach_records.
"""

import hashlib

from errors import ValidationError


def normalize_email(email: str) -> str:
    return email.strip().lower()


def require_email(email) -> str:
    """Return the normalized email, or raise ValidationError if it is unusable."""
    if not isinstance(email, str) or "@" not in email:
        raise ValidationError("Valid email is required")
    normalized = normalize_email(email)
    if normalized in ("", "@"):
        raise ValidationError("Valid email is required")
    return normalized


def hash_email(email: str) -> str:
    """Stable one-way digest (hex SHA-256) of the normalized address."""
    return hashlib.sha256(normalize_email(email).encode("utf-8")).hexdigest()
