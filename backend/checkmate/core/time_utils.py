from datetime import date, datetime, timedelta

from checkmate.core.constants import SCOPE_DAY, SCOPE_WEEK
from checkmate.core.errors import InvalidDate


def _require_date(d) -> date:
    # datetime is a date subclass; callers must truncate explicitly
    if not isinstance(d, date) or isinstance(d, datetime):
        raise InvalidDate(f"Expected a calendar date, got {d!r}")
    return d


def parse_date(raw) -> date:
    """Parse 'YYYY-MM-DD' (or pass through a date) -> date."""
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str):
        raise InvalidDate(f"Expected a calendar date, got {raw!r}")
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        raise InvalidDate(f"Date must be in YYYY-MM-DD format, got {raw!r}")


def truncate_to_day(value) -> date:
    """Drop the time-of-day part of a datetime."""
    if isinstance(value, datetime):
        return value.date()
    return _require_date(value)


def day_of_week(d: date) -> int:
    """
    Day of week with Sunday first.
    Example: 2024-06-02 (a Sunday) -> 0, 2024-06-03 (Monday) -> 1
    """
    return (_require_date(d).weekday() + 1) % 7


def is_within(d: date, start: date, end: date) -> bool:
    """True when start <= d <= end (both ends inclusive)."""
    return _require_date(start) <= _require_date(d) <= _require_date(end)


def add_days(d: date, n: int) -> date:
    try:
        return _require_date(d) + timedelta(days=n)
    except OverflowError:
        raise InvalidDate(f"{d!r} + {n} days is out of range")


def add_years(d: date, n: int) -> date:
    """Same month/day n years later; Feb 29 falls back to Feb 28."""
    d = _require_date(d)
    try:
        return d.replace(year=d.year + n)
    except ValueError:
        # Feb 29 in a non-leap target year, or year out of range
        if d.month == 2 and d.day == 29:
            return d.replace(year=d.year + n, day=28)
        raise InvalidDate(f"{d!r} + {n} years is out of range")


def start_of_week(d: date) -> date:
    """Sunday on or before d."""
    return add_days(d, -day_of_week(d))


def end_of_week(d: date) -> date:
    """Saturday on or after d."""
    return add_days(start_of_week(d), 6)


def format_period_key(d: date, scope: str) -> str:
    """
    Key identifying the period containing d.

    - day:  ISO date, e.g. '2024-06-01'
    - week: ISO year/week of the Monday inside the Sunday..Saturday week,
            e.g. '2024-W23' for the week 2024-06-02..2024-06-08
    """
    if scope == SCOPE_DAY:
        return _require_date(d).isoformat()
    if scope == SCOPE_WEEK:
        iso_year, iso_week, _ = add_days(start_of_week(d), 1).isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    raise ValueError(f"Unknown period scope: {scope!r}")


def hhmm_to_time(hhmm: str):
    """Parse time strings into datetime.time.

    Accepts common formats:
      - 'HH:MM' (24h)
      - 'HH:MM:SS' (24h)
      - 'H:MM AM/PM' (12h), case-insensitive
      - 'H AM/PM'

    Returns None for empty strings.
    """
    if hhmm is None:
        return None
    s = hhmm.strip()
    if s == "":
        return None

    candidates = [
        "%H:%M",
        "%H:%M:%S",
        "%I:%M %p",
        "%I %p",
    ]
    for fmt in candidates:
        try:
            return datetime.strptime(s, fmt).time()
        except ValueError:
            continue
    raise ValueError("Reset time must be in formats like 'HH:MM' or '10:00 PM'")


def time_to_hhmm(t) -> str | None:
    """Format datetime.time -> 'HH:MM'. Returns None if t is None."""
    if t is None:
        return None
    return f"{t.hour:02d}:{t.minute:02d}"


def to_local_datetime(dt, tz_name: str | None = None):
    """Convert a datetime from source tz (assume UTC if naive) to local or given tz.

    - If `tz_name` is 'local' or None: use system local timezone.
    - If `tz_name` is IANA tz name (e.g., 'America/New_York'): use that.
    - If `dt` has no tzinfo, assume UTC.
    """
    from datetime import timezone
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    if tz_name and tz_name != "local":
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
        try:
            return dt.astimezone(ZoneInfo(tz_name))
        except ZoneInfoNotFoundError:
            return dt.astimezone()
    return dt.astimezone()


def local_now(tz_name: str | None = None) -> datetime:
    """Current wall-clock time in tz_name as a naive datetime.

    The engine compares naive local datetimes against reset times, so the
    tzinfo is dropped after conversion.
    """
    from datetime import timezone
    return to_local_datetime(datetime.now(timezone.utc), tz_name).replace(tzinfo=None)


def as_local_naive(dt: datetime, tz_name: str | None = None) -> datetime:
    """Normalize a caller-supplied `now`: aware values are converted, naive kept."""
    if dt.tzinfo is None:
        return dt
    return to_local_datetime(dt, tz_name).replace(tzinfo=None)
