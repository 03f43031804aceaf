# session_store.py
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from assistant import BookingAssistant
from auth import AuthContext
from checkout import CheckoutOrchestrator
from models import BookingPayload
from seat_map import SeatSelection


@dataclass
class SessionState:
    auth: AuthContext
    assistant: BookingAssistant
    # navigation state of the seat-selection page currently open
    booking_data: Dict[str, Any] = field(default_factory=dict)
    selection: Optional[SeatSelection] = None
    payload: Optional[BookingPayload] = None
    # one per session, reset per payload so a running submit is never replaced
    checkout: Optional[CheckoutOrchestrator] = None

    def leave_seat_selection(self) -> None:
        self.booking_data = {}
        self.selection = None
        self.payload = None


class MemoryStore:
    def __init__(self, factory: Callable[[], SessionState], ttl_seconds: int = 3600):
        self._factory = factory
        self._ttl = ttl_seconds
        self._mem: Dict[str, SessionState] = {}
        self._exp: Dict[str, float] = {}
        self._lock = threading.RLock()

    def get(self, sid: str) -> SessionState:
        with self._lock:
            exp = self._exp.get(sid)
            if exp and time.time() > exp:
                self._mem.pop(sid, None)
                self._exp.pop(sid, None)
            st = self._mem.get(sid)
            if st is None:
                st = self._factory()
                self._mem[sid] = st
            self._exp[sid] = time.time() + self._ttl
            return st

    def clear(self, sid: str) -> None:
        with self._lock:
            self._mem.pop(sid, None)
            self._exp.pop(sid, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._mem)
