import hashlib
import re
import secrets
import uuid
from datetime import datetime, timezone
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# =========================
# Email handling
# =========================
def normalize_email(email: Optional[str]) -> str:
    """Trim and lower-case an email address; emails compare case-insensitively."""
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(email) and len(email) <= 254 and EMAIL_PATTERN.match(email) is not None


def hash_email(email: str) -> str:
    """One-way hash used wherever an address would otherwise reach the logs."""
    return hashlib.sha256(normalize_email(email).encode()).hexdigest()


def redact_email(email: str) -> str:
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


# =========================
# One-time codes
# =========================
def is_valid_code(code: Optional[str], length: int = 6) -> bool:
    # str.isdigit accepts unicode digits such as "²"; only ASCII 0-9 are codes
    return code is not None and len(code) == length and all(c in "0123456789" for c in code)


def generate_numeric_code(length: int = 6) -> str:
    """Generate a cryptographically random numeric code."""
    return "".join(secrets.choice("0123456789") for _ in range(length))


# =========================
# Identifiers and time
# =========================
def generate_session_id() -> str:
    """Generate a unique session ID"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands datetimes back naive; treat those as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
