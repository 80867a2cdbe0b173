"""Time utilities for UTC timestamp formatting."""

from datetime import datetime, timedelta, timezone


def utc_now_z() -> str:
    """
    Get current UTC time as ISO 8601 string with Z suffix.

    Returns:
        ISO 8601 UTC timestamp ending with 'Z' (e.g., '2025-12-23T00:27:07.804867Z')
    """
    return to_utc_z(datetime.now(timezone.utc))


def to_utc_z(dt: datetime) -> str:
    """
    Convert datetime to ISO 8601 UTC string with Z suffix.

    Microseconds are always written, so two timestamps compare
    lexicographically in the same order as in time.

    Args:
        dt: Datetime object (must be timezone-aware)

    Returns:
        ISO 8601 UTC timestamp ending with 'Z' (e.g., '2025-12-23T00:27:07.000000Z')

    Raises:
        ValueError: If datetime is naive (not timezone-aware)
    """
    if dt.tzinfo is None:
        raise ValueError(
            f"Naive datetime not allowed. Got {dt}. "
            "Use datetime.now(timezone.utc) or dt.replace(tzinfo=timezone.utc)"
        )

    dt_utc = dt.astimezone(timezone.utc)
    return dt_utc.isoformat(timespec="microseconds").replace('+00:00', 'Z')


def parse_utc_z(value: str) -> datetime:
    """Parse a timestamp produced by to_utc_z() back into an aware datetime."""
    if not value.endswith("Z"):
        raise ValueError(f"Expected UTC timestamp ending with 'Z', got: {value}")
    return datetime.fromisoformat(value[:-1]).replace(tzinfo=timezone.utc)


def utc_now_after(previous: str | None) -> str:
    """
    Current UTC time, bumped by one microsecond if needed so it is strictly
    later than `previous`.

    Used for last-update timestamps: two mutations inside the same clock tick
    still produce increasing values.
    """
    now = datetime.now(timezone.utc)
    if previous:
        floor = parse_utc_z(previous) + timedelta(microseconds=1)
        if now < floor:
            now = floor
    return to_utc_z(now)
