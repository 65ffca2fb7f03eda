"""Time helpers shared by models and services."""
from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_ago(days: float) -> datetime:
    return utcnow() - timedelta(days=days)
