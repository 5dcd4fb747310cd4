from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso_timestamp(dt: datetime) -> str:
    """
    ISO-8601 text with millisecond precision and a trailing 'Z' for UTC.
    Example: 2024-05-01T08:30:00.123Z
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_file_timestamp(dt: datetime) -> str:
    """
    Timestamp safe for file names (seconds precision, ':' replaced by '-').
    Example: 2024-05-01T08-30-00
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H-%M-%S")


def to_file_date(dt: datetime) -> str:
    """Example: 2024-05-01"""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%d")
