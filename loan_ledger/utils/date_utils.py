"""Date manipulation utilities"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Timezone-aware current time in UTC"""
    return datetime.now(tz=timezone.utc)


def in_timezone(moment: datetime, tz_name: str) -> datetime:
    """Convert an instant to wall-clock time in an IANA zone (naive input is taken as UTC)"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(tz_name))


def month_key(moment: datetime) -> str:
    """Calendar month identifier, e.g. 2024-05"""
    return f"{moment.year:04d}-{moment.month:02d}"
