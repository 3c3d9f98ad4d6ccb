"""Column default helpers shared by the ORM models."""

import uuid
from datetime import datetime, timezone


def generate_uuid() -> str:
    """Primary key default: a random UUID4 string."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Timestamp default; stored naive-UTC by SQLite and read back via ensure_utc."""
    return datetime.now(timezone.utc)
