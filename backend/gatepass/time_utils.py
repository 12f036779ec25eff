from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

DateLike = Union[date, datetime, str]

# Business timezone for pass dates on the wire (IST, UTC+05:30).
# Fixed offset: never derived from the host's local timezone.
BUSINESS_TZ = timezone(timedelta(hours=5, minutes=30), "IST")

# Day-first layouts accepted besides ISO-8601
_DAY_FIRST_FORMATS = ("%d-%m-%Y", "%d/%m/%Y", "%d.%m.%Y")


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt.replace(tzinfo=None)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def parse_date_like(value: DateLike) -> Union[date, datetime]:
    """
    Turn a date, datetime or date string into a date/datetime.

    Strings may be ISO-8601 (date or datetime, "Z" allowed) or day-first
    ("05-03-2024", "05/03/2024"). Timezone information is kept as given;
    no conversion happens here.

    Raises ValueError when the value cannot be understood.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")

    s = value.strip()
    if not s:
        raise ValueError("Date value is empty")

    iso = s[:-1] + "+00:00" if s.endswith("Z") else s
    try:
        if len(iso) == 10:
            return date.fromisoformat(iso)
        return datetime.fromisoformat(iso)
    except ValueError:
        pass

    for fmt in _DAY_FIRST_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue

    raise ValueError(f"Unrecognised date: {value!r}")


def to_business_iso(value: Union[date, datetime]) -> str:
    """
    Serialize a pass date as ISO-8601 with the fixed +05:30 offset.

    - date -> midnight of that calendar day in IST
    - naive datetime -> taken as IST wall-clock time
    - aware datetime -> converted to IST
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            dt = value.replace(tzinfo=BUSINESS_TZ)
        else:
            dt = value.astimezone(BUSINESS_TZ)
    else:
        dt = datetime(value.year, value.month, value.day, tzinfo=BUSINESS_TZ)
    return dt.isoformat(timespec="milliseconds")


def business_date(value: DateLike) -> date:
    """Calendar date of a pass date value as seen in the business timezone."""
    parsed = parse_date_like(value)
    if isinstance(parsed, datetime):
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(BUSINESS_TZ)
        return parsed.date()
    return parsed
