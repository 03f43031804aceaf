# response_formatters.py

from datetime import datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

from constants import OFFER_CONFIRMED_TEMPLATE, OFFER_FOUND_TEMPLATE, PLACEHOLDERS

DEFAULT_TZ = "Asia/Ho_Chi_Minh"


def parse_start_time(value: Any) -> Optional[datetime]:
    """
    ISO timestamp -> datetime, or None when it does not describe a real instant.
    A trailing ``Z`` is accepted as UTC.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    s = value.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        return None


def format_local_time(value: Any, tz: str = DEFAULT_TZ) -> Optional[str]:
    dt = parse_start_time(value)
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(ZoneInfo(tz))
    return dt.strftime("%H:%M")


def format_local_date(value: Any, tz: str = DEFAULT_TZ) -> Optional[str]:
    dt = parse_start_time(value)
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(ZoneInfo(tz))
    return dt.strftime("%d/%m/%Y")


def format_vnd(amount: int) -> str:
    """85000 -> '85.000đ'"""
    return f"{int(amount):,}".replace(",", ".") + "đ"


def format_offer_message(offer, *, confirming: bool, tz: str = DEFAULT_TZ) -> str:
    time_str = format_local_time(offer.start_time, tz) or PLACEHOLDERS["time"]
    if confirming:
        return OFFER_CONFIRMED_TEMPLATE.format(
            title=offer.title or PLACEHOLDERS["title"],
            time=time_str,
            cinema=offer.cinema_name or PLACEHOLDERS["cinema"],
        )
    return OFFER_FOUND_TEMPLATE.format(
        title=offer.title or "phim",
        time=time_str,
        cinema=offer.cinema_name or "rạp",
    )
