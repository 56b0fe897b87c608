from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite drops tzinfo so everything stored is naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
