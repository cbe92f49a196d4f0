from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Clock:
    """Single source of wall-clock time for boundary and reminder decisions.

    Every value is derived from the injected instant source and read in the
    reference zone, so the host's local zone never leaks into a day key.
    """

    def __init__(self, timezone_name: str = "Asia/Kolkata", now_fn: Optional[Callable[[], datetime]] = None):
        self.timezone_name = timezone_name
        self.tzinfo = ZoneInfo(timezone_name)
        self._now_fn = now_fn or _utc_now

    def now(self) -> datetime:
        value = self._now_fn()
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def local_now(self) -> datetime:
        return self.now().astimezone(self.tzinfo)

    def day_key(self) -> str:
        return self.local_now().strftime("%Y-%m-%d")

    def minute_of_day(self) -> int:
        local = self.local_now()
        return local.hour * 60 + local.minute

    def month_key(self) -> str:
        local = self.local_now()
        return f"{local.year}-{local.month}"


def parse_timestamp(value) -> datetime | None:
    """Parse an ISO timestamp from a snapshot; naive values are UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        raw = str(value).strip()
        if not raw:
            return None
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
