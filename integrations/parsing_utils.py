"""Shared datetime helpers for aggregator clients and token bookkeeping."""

from datetime import datetime, timedelta, timezone


def ensure_utc(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware (UTC).

    SQLite hands back naive datetimes for values that were stored as UTC,
    so everything read from the store goes through here before comparison.

    Args:
        dt: A datetime object.

    Returns:
        The same datetime, guaranteed to be timezone-aware.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def expires_at(seconds, now: datetime | None = None) -> datetime | None:
    """Convert a relative ``*_expires`` lifetime in seconds to an absolute UTC time.

    Args:
        seconds: Lifetime as reported by the aggregator (int, float, numeric
            string) or None.
        now: Reference time; defaults to the current UTC time.

    Returns:
        A timezone-aware UTC datetime, or None if the value cannot be parsed.
    """
    if seconds is None:
        return None
    try:
        delta = timedelta(seconds=int(seconds))
    except (ValueError, TypeError, OverflowError):
        return None
    return (now or datetime.now(timezone.utc)) + delta


def mask_iban(iban: str) -> str:
    """Mask an IBAN down to its first and last four characters.

    IBANs of eight characters or fewer are returned unchanged.
    """
    if len(iban) > 8:
        return iban[:4] + "****" + iban[-4:]
    return iban
