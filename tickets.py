# tickets.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from response_formatters import parse_start_time


def _seats_str(seats: Any) -> str:
    if isinstance(seats, (list, tuple)):
        return ", ".join(str(s) for s in seats)
    return seats or "N/A"


def partition_bookings(bookings: List[Dict[str, Any]],
                       now: Optional[datetime] = None) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Split the user's bookings into (upcoming, used) by showtime start.
    Bookings without a readable start time count as used.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    upcoming, used = [], []
    for b in bookings:
        item = {**b, "seats": _seats_str(b.get("seats"))}
        start = parse_start_time(b.get("start_time"))
        if start is not None and start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        if start is not None and start >= now:
            upcoming.append(item)
        else:
            used.append(item)
    return upcoming, used
