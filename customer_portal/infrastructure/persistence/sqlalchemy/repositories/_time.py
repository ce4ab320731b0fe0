from datetime import datetime, timezone


def to_db(value: datetime) -> datetime:
    """Columns hold naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
