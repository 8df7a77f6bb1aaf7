"""
Utilitas zona waktu.
Waktu disimpan sebagai UTC naive di database, ditampilkan dalam WIB (Asia/Jakarta).
"""
from datetime import datetime, timezone
from typing import Optional
import pytz

from ..core.config import settings


JAKARTA_TZ = pytz.timezone(settings.default_timezone)


def utc_now() -> datetime:
    """Waktu sekarang dalam UTC tanpa tzinfo, format penyimpanan database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_jakarta_now() -> datetime:
    return datetime.now(JAKARTA_TZ)


def utc_to_jakarta(utc_dt: datetime) -> datetime:
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=pytz.UTC)
    return utc_dt.astimezone(JAKARTA_TZ)


def format_jakarta_time(dt: Optional[datetime], format_str: Optional[str] = None) -> Optional[str]:
    if dt is None:
        return None
    return utc_to_jakarta(dt).strftime(format_str or settings.timezone_display_format)


def get_jakarta_timezone_info() -> dict:
    now = get_jakarta_now()
    return {
        "timezone": settings.default_timezone,
        "offset": now.strftime("%z"),
        "name": "WIB",
        "current_time": now.strftime(settings.timezone_display_format)
    }


def epoch_millis() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)
