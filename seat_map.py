# -*- coding: utf-8 -*-
"""
Seat grid, tiers and pricing for a single auditorium layout.

Rows A..J, seats 1..12. A seat id is the row letter followed by the number
with no separator (``"H5"``). Tier and price are pure functions of the id:

* rows H, I, J                         -> vip
* seat 5 or 6 in any other row         -> couple
* everything else                      -> standard

The occupied-seat list is a point-in-time snapshot. If it cannot be fetched
the map fails open (every seat selectable) and flags ``loading_failed``; the
booking endpoint re-checks availability anyway.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import AbstractSet, Any, Dict, Iterable, List, Optional, Sequence, Tuple

from api_clients import CinemaApiError
from constants import (
    COUPLE_SEAT_NUMBERS,
    DEFAULT_FORMAT,
    MAX_SEATS_PER_BOOKING,
    ROWS,
    SEATS_PER_ROW,
    TICKET_PRICES,
    UI_TEXT,
    VIP_ROWS,
)
from models import BookingPayload

logger = logging.getLogger(__name__)

SEAT_ID_RE = re.compile(r"^([A-J])(1[0-2]|[1-9])$")

STANDARD, VIP, COUPLE = "standard", "vip", "couple"


# ──────────────────────────────────────────────────────────────────────────────
# Pure helpers

def parse_seat_id(seat_id: str) -> Optional[Tuple[str, int]]:
    m = SEAT_ID_RE.match(seat_id or "")
    if not m:
        return None
    return m.group(1), int(m.group(2))


def is_valid_seat_id(seat_id: str) -> bool:
    return parse_seat_id(seat_id) is not None


def classify(row: str, seat_number: int) -> str:
    if row in VIP_ROWS:
        return VIP
    if seat_number in COUPLE_SEAT_NUMBERS:
        return COUPLE
    return STANDARD


def price_of(seat_id: str) -> int:
    parsed = parse_seat_id(seat_id)
    if parsed is None:
        raise ValueError(f"invalid seat id: {seat_id!r}")
    return TICKET_PRICES[classify(*parsed)]


def total_price(selection: Iterable[str]) -> int:
    return sum(price_of(s) for s in selection)


def toggle(seat_id: str, selection: Sequence[str], occupied: AbstractSet[str],
           max_seats: int = MAX_SEATS_PER_BOOKING) -> Tuple[str, ...]:
    """
    Select / deselect one seat and return the new selection.

    Occupied or unknown seats are ignored, and once ``max_seats`` are picked
    further additions are ignored too; the caller disables those seats.
    """
    current = tuple(selection)
    if not is_valid_seat_id(seat_id):
        logger.warning("Ignoring toggle of invalid seat id %r", seat_id)
        return current
    if seat_id in occupied:
        return current
    if seat_id in current:
        return tuple(s for s in current if s != seat_id)
    if len(current) < max_seats:
        return current + (seat_id,)
    return current


def seat_grid() -> List[List[str]]:
    return [[f"{row}{n}" for n in range(1, SEATS_PER_ROW + 1)] for row in ROWS]


# ──────────────────────────────────────────────────────────────────────────────
# Occupied snapshot

@dataclass(frozen=True)
class OccupiedSnapshot:
    showtime_id: Any
    seats: frozenset = frozenset()
    loading_failed: bool = False
    error: Optional[str] = None


def load_occupied(client, showtime_id: Any) -> OccupiedSnapshot:
    if showtime_id in (None, ""):
        return OccupiedSnapshot(showtime_id=showtime_id)
    try:
        seats = client.occupied_seats(showtime_id)
    except CinemaApiError as exc:
        logger.warning("Occupied seats for showtime %s unavailable, assuming all free: %s",
                       showtime_id, exc.message)
        return OccupiedSnapshot(
            showtime_id=showtime_id,
            loading_failed=True,
            error=UI_TEXT["seats_load_failed"],
        )
    return OccupiedSnapshot(showtime_id=showtime_id, seats=frozenset(seats))


# ──────────────────────────────────────────────────────────────────────────────
# Selection for one seat-selection visit

@dataclass
class SeatSelection:
    occupied: OccupiedSnapshot
    max_seats: int = MAX_SEATS_PER_BOOKING
    seats: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def start(cls, client, showtime_id: Any, max_seats: int = MAX_SEATS_PER_BOOKING) -> "SeatSelection":
        return cls(occupied=load_occupied(client, showtime_id), max_seats=max_seats)

    def toggle(self, seat_id: str) -> Tuple[str, ...]:
        self.seats = toggle(seat_id, self.seats, self.occupied.seats, self.max_seats)
        return self.seats

    def clear(self) -> None:
        self.seats = ()

    @property
    def total(self) -> int:
        return total_price(self.seats)

    @property
    def is_full(self) -> bool:
        return len(self.seats) >= self.max_seats

    def cells(self) -> List[List[Dict[str, Any]]]:
        rows = []
        for row in seat_grid():
            cells = []
            for seat_id in row:
                tier = classify(*parse_seat_id(seat_id))
                occupied = seat_id in self.occupied.seats
                selected = seat_id in self.seats
                cells.append({
                    "seat_id": seat_id,
                    "tier": tier,
                    "price": TICKET_PRICES[tier],
                    "occupied": occupied,
                    "selected": selected,
                    "selectable": not occupied and (selected or not self.is_full),
                })
            rows.append(cells)
        return rows

    def build_payload(self, booking_data: Dict[str, Any]) -> BookingPayload:
        """Freeze the current selection into a checkout payload."""
        if not self.seats:
            raise ValueError("no seats selected")
        return BookingPayload(
            movie=dict(booking_data.get("movie") or {}),
            showtime=dict(booking_data.get("showtime") or {}),
            format=booking_data.get("format") or DEFAULT_FORMAT,
            seats=tuple(self.seats),
            total_price=self.total,
        )
