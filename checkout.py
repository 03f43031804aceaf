# -*- coding: utf-8 -*-
"""
Checkout: charge the (stubbed) payment and submit the booking.

State machine per orchestrator::

    idle -> processing -> success
                       -> failed -> processing -> ...

Only one submission can be ``processing`` at a time; a second call made while
one is in flight is rejected, never interleaved. ``reset`` (back to idle for
the next payload) is refused while a submit runs. The service fee is added for
display only: the booking request carries ``showtime_id`` and ``seats`` and
the server prices it on its own.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from api_clients import CinemaApiError
from constants import SERVICE_FEE, UI_TEXT
from models import BookingPayload, CheckoutState

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    pass


class AuthRequiredError(CheckoutError):
    def __init__(self, message: str = UI_TEXT["checkout_login_required"]):
        super().__init__(message)
        self.message = message


class CheckoutInProgressError(CheckoutError):
    def __init__(self, message: str = UI_TEXT["checkout_in_progress"]):
        super().__init__(message)
        self.message = message


class AlreadyBookedError(CheckoutError):
    pass


@dataclass(frozen=True)
class CheckoutResult:
    ok: bool
    charged_total: int
    booking: Dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None


class PaymentStub:
    """Stand-in for the payment gateway: waits, then approves."""

    def __init__(self, delay_sec: float = 2.0, sleep: Callable[[float], None] = time.sleep):
        self.delay_sec = delay_sec
        self._sleep = sleep

    def charge(self, amount: int) -> bool:
        if self.delay_sec > 0:
            self._sleep(self.delay_sec)
        logger.info("Payment stub approved %s", amount)
        return True


def charged_total(payload: BookingPayload, service_fee: int = SERVICE_FEE) -> int:
    return payload.total_price + service_fee


class CheckoutOrchestrator:
    def __init__(self, client, payment: Optional[PaymentStub] = None, service_fee: int = SERVICE_FEE):
        self.client = client
        self.payment = payment or PaymentStub()
        self.service_fee = service_fee
        self.state = CheckoutState.IDLE
        self.last_error: Optional[str] = None
        self.booking: Optional[Dict[str, Any]] = None
        self._lock = threading.Lock()

    @property
    def processing(self) -> bool:
        return self.state is CheckoutState.PROCESSING

    def reset(self) -> None:
        """Back to ``idle`` for a new payload; refused while a submit is running."""
        if not self._lock.acquire(blocking=False):
            raise CheckoutInProgressError()
        try:
            self.state = CheckoutState.IDLE
            self.last_error = None
            self.booking = None
        finally:
            self._lock.release()

    def submit(self, payload: BookingPayload, auth_token: Optional[str]) -> CheckoutResult:
        if not auth_token:
            raise AuthRequiredError()
        if not payload.seats:
            raise ValueError("booking payload has no seats")
        if not self._lock.acquire(blocking=False):
            raise CheckoutInProgressError()
        try:
            if self.state is CheckoutState.SUCCESS:
                raise AlreadyBookedError("booking already completed")
            self.state = CheckoutState.PROCESSING
            self.last_error = None
            total = charged_total(payload, self.service_fee)

            self.payment.charge(total)
            try:
                booking = self.client.create_booking(payload.showtime_id, list(payload.seats), auth_token)
            except CinemaApiError as exc:
                self.state = CheckoutState.FAILED
                self.last_error = exc.message or UI_TEXT["booking_failed"]
                logger.warning("Booking for showtime %s failed: %s", payload.showtime_id, self.last_error)
                # the stub charge above stays; there is no refund call
                logger.warning("Payment of %s for showtime %s is not refunded", total, payload.showtime_id)
                return CheckoutResult(ok=False, charged_total=total, message=self.last_error)

            self.state = CheckoutState.SUCCESS
            self.booking = booking
            logger.info("Booked %s for showtime %s", ",".join(payload.seats), payload.showtime_id)
            return CheckoutResult(ok=True, charged_total=total, booking=booking)
        except Exception:
            if self.state is CheckoutState.PROCESSING:
                self.state = CheckoutState.FAILED
            raise
        finally:
            self._lock.release()
