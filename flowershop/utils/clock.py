from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC, matching the DateTime columns and SQLite's CURRENT_TIMESTAMP."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
