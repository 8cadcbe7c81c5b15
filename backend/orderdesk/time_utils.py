from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DD" is midnight UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    if dt.tzinfo is None:
        return dt
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


def month_period(dt: datetime) -> str:
    """YYMM bucket used by order serials (e.g. 2610 for October 2026)."""
    return f"{dt.year % 100:02d}{dt.month:02d}"


@dataclass(frozen=True)
class DateRangeFilter:
    """
    Explicit date window for listings and reports.

    Both bounds are inclusive and UTC-naive. None means unbounded.
    """
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @classmethod
    def from_args(cls, start: Optional[str], end: Optional[str]) -> "DateRangeFilter":
        start_dt = parse_iso_datetime(start)
        end_dt = parse_iso_datetime(end)
        # A bare date as the upper bound covers that whole day
        if end_dt is not None and end and len(end.strip()) == 10:
            end_dt = end_dt.replace(hour=23, minute=59, second=59, microsecond=999999)
        if start_dt and end_dt and start_dt > end_dt:
            raise ValueError("start must be before end")
        return cls(start=start_dt, end=end_dt)

    def apply(self, query, column):
        if self.start is not None:
            query = query.filter(column >= self.start)
        if self.end is not None:
            query = query.filter(column <= self.end)
        return query

    def to_dict(self) -> dict:
        return {"start": to_utc_z(self.start), "end": to_utc_z(self.end)}
