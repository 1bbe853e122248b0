from datetime import datetime, timezone
from zoneinfo import ZoneInfo
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC "now", matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def seconds_between(later: Optional[datetime], earlier: Optional[datetime]) -> float:
    if later is None or earlier is None:
        return 0.0
    return (later - earlier).total_seconds()


def utc_to_local(dt: Optional[datetime], tz_name: Optional[str] = None) -> Optional[datetime]:
    if not dt:
        return None

    # Treat naive DB values as UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    if not tz_name or tz_name.upper() == "UTC":
        return dt
    return dt.astimezone(ZoneInfo(tz_name))


def format_remaining(seconds) -> str:
    """Human readable countdown: 3725 -> "1:02:05", 65 -> "1:05"."""
    seconds = int(seconds or 0)
    if seconds <= 0:
        return "0:00"

    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
