# -*- coding: utf-8 -*-
"""Navigation intents that move a booking from one page to the next."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from constants import CHECKOUT_ROUTE, DEFAULT_FORMAT, SEAT_SELECTION_ROUTE
from models import BookingPayload, NavigationIntent, ShowtimeOffer

logger = logging.getLogger(__name__)


def _missing(v: Any) -> bool:
    return v is None or v == ""


def build_booking_intent(offer: Optional[ShowtimeOffer]) -> Optional[NavigationIntent]:
    """Offer from the assistant -> seat-selection intent, or None if it lacks ids."""
    if offer is None or _missing(offer.movie_id) or _missing(offer.showtime_id):
        logger.error("Booking data from chat is missing movie_id/showtime_id: %r", offer)
        return None

    state = {
        "movie": {"movie_id": offer.movie_id, "title": offer.title},
        "showtime": {
            "showtime_id": offer.showtime_id,
            "cinema_name": offer.cinema_name,
            "start_time": offer.start_time,
            "ticket_price": offer.ticket_price,
        },
        "format": offer.features[0] if offer.features else DEFAULT_FORMAT,
    }
    return NavigationIntent(
        route=SEAT_SELECTION_ROUTE.format(movie_id=offer.movie_id),
        state=state,
    )


def intent_from_showtime(movie: Dict[str, Any], showtime: Dict[str, Any],
                         fmt: Optional[str] = None) -> Optional[NavigationIntent]:
    """Same intent, built from a movie + showtime picked on the movie detail page."""
    features = showtime.get("features") or ()
    offer = ShowtimeOffer(
        showtime_id=showtime.get("showtime_id"),
        movie_id=movie.get("movie_id"),
        title=movie.get("title"),
        cinema_name=showtime.get("cinema_name"),
        start_time=showtime.get("start_time"),
        ticket_price=showtime.get("ticket_price"),
        features=(fmt,) if fmt else tuple(features),
    )
    return build_booking_intent(offer)


def checkout_intent(payload: BookingPayload) -> NavigationIntent:
    return NavigationIntent(route=CHECKOUT_ROUTE, state=payload.to_dict())
