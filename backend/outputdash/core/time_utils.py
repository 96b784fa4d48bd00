from datetime import date, datetime, time, timezone, tzinfo
from zoneinfo import ZoneInfo


END_OF_DAY = time(23, 59, 59, 999000)


def get_zone(tz_name: str | None = None) -> tzinfo:
    """Resolve the configured calendar zone.

    - 'local' or None: system local timezone.
    - IANA name (e.g. 'America/New_York'): that zone.
    - 'UTC': UTC.
    """
    if not tz_name or tz_name == "local":
        return datetime.now().astimezone().tzinfo or timezone.utc
    if tz_name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(tz_name)


def to_zone(dt: datetime, tz: tzinfo) -> datetime:
    """Convert a datetime into `tz`, assuming UTC when it is naive."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def parse_completed_date(value: str, tz: tzinfo) -> datetime:
    """Parse an upstream ISO-8601 timestamp into an aware datetime in `tz`.

    Accepts a trailing 'Z'. Raises ValueError for anything unparseable.
    Example: '2025-03-04T18:30:00.000Z' in Europe/Dublin -> 2025-03-04 18:30+00:00
    """
    if not isinstance(value, str) or value.strip() == "":
        raise ValueError(f"Invalid completedDate: {value!r}")
    s = value.strip()
    if s.endswith("Z") or s.endswith("z"):
        s = s[:-1] + "+00:00"
    return to_zone(datetime.fromisoformat(s), tz)


def start_of_day(d: date, tz: tzinfo) -> datetime:
    """Midnight (00:00:00.000) of calendar day `d` in `tz`."""
    return datetime.combine(d, time.min, tzinfo=tz)


def end_of_day(d: date, tz: tzinfo) -> datetime:
    """23:59:59.999 of calendar day `d` in `tz`."""
    return datetime.combine(d, END_OF_DAY, tzinfo=tz)


def month_day(d: date) -> str:
    """Format as 'M/D' without zero padding. Example: 2025-03-04 -> '3/4'"""
    return f"{d.month}/{d.day}"


def clock(dt: datetime) -> str:
    """Format as 'H:MM'. Example: 07:05 -> '7:05'"""
    return f"{dt.hour}:{dt.minute:02d}"


def month_day_clock(dt: datetime) -> str:
    """Format as 'M/D H:MM'. Example: 2025-03-04 18:30 -> '3/4 18:30'"""
    return f"{month_day(dt)} {clock(dt)}"


def parse_ymd(value: str) -> date:
    """Parse a strict 'YYYY-MM-DD' calendar date."""
    parts = value.split("-")
    if len(parts) != 3 or len(parts[0]) != 4 or len(parts[1]) != 2 or len(parts[2]) != 2:
        raise ValueError("Date must be in YYYY-MM-DD format")
    return date.fromisoformat(value)
