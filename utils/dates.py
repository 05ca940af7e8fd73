from datetime import datetime, timezone


def parse_iso(value) -> datetime:
    """
    Parse a caller-supplied ISO-8601 string into a naive UTC datetime.
    Raises ValueError for anything that is not a date; callers decide what that means.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt
