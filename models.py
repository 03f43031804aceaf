# models.py
from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Stage(str, Enum):
    LOOKUP = "lookup"
    CONFIRMING = "confirming"


class CheckoutState(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ShowtimeOffer:
    """A candidate showtime, pending user confirmation."""

    showtime_id: Any
    movie_id: Any = None
    title: Optional[str] = None
    cinema_name: Optional[str] = None
    start_time: Optional[str] = None
    ticket_price: Any = None
    features: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShowtimeOffer":
        features = data.get("features") or ()
        if isinstance(features, str):
            features = (features,)
        return cls(
            showtime_id=data.get("showtime_id"),
            movie_id=data.get("movie_id"),
            title=data.get("title"),
            cinema_name=data.get("cinema_name"),
            start_time=data.get("start_time"),
            ticket_price=data.get("ticket_price"),
            features=tuple(str(f) for f in features),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "showtime_id": self.showtime_id,
            "movie_id": self.movie_id,
            "title": self.title,
            "cinema_name": self.cinema_name,
            "start_time": self.start_time,
            "ticket_price": self.ticket_price,
            "features": list(self.features),
        }


_turn_seq = itertools.count(1)


def _turn_id(sender: str) -> str:
    return f"{sender}-{int(time.time() * 1000)}-{next(_turn_seq)}"


@dataclass
class ChatTurn:
    text: str
    sender: str  # "user" | "bot"
    id: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    booking_data: Optional[ShowtimeOffer] = None

    def __post_init__(self):
        if self.sender not in ("user", "bot"):
            raise ValueError(f"unknown sender: {self.sender!r}")
        if not self.id:
            self.id = _turn_id(self.sender)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "sender": self.sender,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.booking_data is not None:
            out["bookingData"] = self.booking_data.to_dict()
        return out


@dataclass(frozen=True)
class NavigationIntent:
    route: str
    state: Dict[str, Any]


@dataclass(frozen=True)
class BookingPayload:
    movie: Dict[str, Any]
    showtime: Dict[str, Any]
    format: str
    seats: Tuple[str, ...]
    total_price: int

    @property
    def showtime_id(self) -> Any:
        return self.showtime.get("showtime_id")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "movie": dict(self.movie),
            "showtime": dict(self.showtime),
            "format": self.format,
            "seats": list(self.seats),
            "totalPrice": self.total_price,
        }


@dataclass(frozen=True)
class User:
    id: Any
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
