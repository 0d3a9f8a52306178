"""Clock helpers shared by entities and services."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware current UTC time. Used as a column default callable."""
    return datetime.now(timezone.utc)
