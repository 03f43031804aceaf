# file: main.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from api_clients import CinemaApiError, CinemaClient
from assistant import BookingAssistant
from auth import AuthContext
from booking_intent import checkout_intent, intent_from_showtime
from checkout import (
    AlreadyBookedError,
    AuthRequiredError,
    CheckoutInProgressError,
    CheckoutOrchestrator,
    PaymentStub,
    charged_total,
)
from config import Settings
from constants import DEFAULT_FORMAT, MY_TICKETS_ROUTE, UI_TEXT
from response_formatters import format_local_date, format_local_time, format_vnd
from seat_map import SeatSelection
from session_store import MemoryStore, SessionState
from tickets import partition_bookings

# ──────────────────────────────────────────────────────────────────────────────
# .env + settings
load_dotenv()
settings = Settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Cinema Booking Assistant")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.ALLOWED_ORIGINS or ["http://localhost:3000"]),
    allow_origin_regex=settings.ALLOWED_ORIGIN_REGEX,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)

client = CinemaClient(settings=settings)


def _new_session() -> SessionState:
    auth = AuthContext(client)
    assistant = BookingAssistant(
        client, auth, history_limit=settings.CHAT_HISTORY_LIMIT, tz=settings.LOCAL_TIMEZONE,
    )
    checkout = CheckoutOrchestrator(
        client, PaymentStub(settings.PAYMENT_STUB_DELAY_SEC), service_fee=settings.SERVICE_FEE,
    )
    return SessionState(auth=auth, assistant=assistant, checkout=checkout)


STORE = MemoryStore(_new_session, ttl_seconds=settings.SESS_TTL_SECONDS)


# ──────────────────────────────────────────────────────────────────────────────
# Request bodies

class LoginRequest(BaseModel):
    email: str
    password: str


class ChatRequest(BaseModel):
    message: str = ""


class BookRequest(BaseModel):
    turn_id: str


class SeatSelectionStart(BaseModel):
    movie: Dict[str, Any] = {}
    showtime: Dict[str, Any] = {}
    format: Optional[str] = None


class ToggleRequest(BaseModel):
    seat_id: str


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    phone: Optional[str] = None


class ShowtimeBookRequest(BaseModel):
    title: Optional[str] = None
    showtime: Dict[str, Any] = {}
    format: Optional[str] = None


def _error(status: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status, content={"ok": False, "error": message, **extra})


def _session(sid: Optional[str]) -> SessionState:
    return STORE.get((sid or "default").strip() or "default")


def _checkout_busy(st: SessionState) -> Optional[JSONResponse]:
    # the seat page is frozen while its booking is being submitted
    if st.checkout is not None and st.checkout.processing:
        return _error(409, UI_TEXT["checkout_in_progress"], state=st.checkout.state.value)
    return None


def _user_view(user) -> Dict[str, Any]:
    return {"id": user.id, "name": user.name, "email": user.email, "phone": user.phone}


def _seat_view(st: SessionState) -> Dict[str, Any]:
    sel = st.selection
    return {
        "booking_data": st.booking_data,
        "showtime_id": sel.occupied.showtime_id,
        "loading_failed": sel.occupied.loading_failed,
        "error": sel.occupied.error,
        "rows": sel.cells(),
        "selected": list(sel.seats),
        "count": len(sel.seats),
        "max_seats": sel.max_seats,
        "total": sel.total,
        "total_display": format_vnd(sel.total),
    }


# ──────────────────────────────────────────────────────────────────────────────
@app.get("/healthz")
def healthz():
    return PlainTextResponse("OK")


# ---- auth ----

@app.post("/auth/login")
def login(body: LoginRequest, x_session_id: Optional[str] = Header(default=None)):
    st = _session(x_session_id)
    try:
        data = st.auth.login(body.email, body.password)
    except CinemaApiError as exc:
        return _error(401, exc.message)
    if not st.auth.is_authenticated:
        return _error(401, data.get("message") or UI_TEXT["login_failed"])
    return {"ok": True, "user": _user_view(st.auth.user)}


@app.post("/auth/register")
def register(body: RegisterRequest, x_session_id: Optional[str] = Header(default=None)):
    st = _session(x_session_id)
    extra = {"phone": body.phone} if body.phone else {}
    try:
        data = st.auth.register(body.name, body.email, body.password, **extra)
    except CinemaApiError as exc:
        return _error(400, exc.message)
    return {"ok": True, "data": data}


@app.get("/auth/me")
def me(x_session_id: Optional[str] = Header(default=None)):
    # resuming a session: the stored token may have expired upstream
    st = _session(x_session_id)
    if not st.auth.validate():
        return _error(401, UI_TEXT["login_required"])
    return {"ok": True, "user": _user_view(st.auth.user)}


@app.post("/auth/logout")
def logout(x_session_id: Optional[str] = Header(default=None)):
    st = _session(x_session_id)
    st.auth.logout()
    return {"ok": True}


# ---- movies ----

@app.get("/movies/{movie_id}")
def movie_detail(movie_id: int):
    try:
        movie = client.movie(movie_id)
    except CinemaApiError as exc:
        return _error(exc.status or 502, exc.message)
    return {"ok": True, "movie": movie}


@app.get("/movies/{movie_id}/showtimes")
def movie_showtimes(movie_id: int):
    try:
        showtimes = client.movie_showtimes(movie_id)
    except CinemaApiError as exc:
        return _error(exc.status or 502, exc.message)
    tz = settings.LOCAL_TIMEZONE
    return {
        "ok": True,
        "showtimes": [
            {
                **s,
                "date": format_local_date(s.get("start_time"), tz),
                "time": format_local_time(s.get("start_time"), tz),
            }
            for s in showtimes
        ],
    }


@app.post("/movies/{movie_id}/book")
def movie_book(movie_id: int, body: ShowtimeBookRequest):
    intent = intent_from_showtime({"movie_id": movie_id, "title": body.title}, body.showtime, body.format)
    if intent is None:
        return _error(422, UI_TEXT["showtime_missing"])
    return {"ok": True, "route": intent.route, "state": intent.state}


# ---- chat ----

@app.post("/chat")
def chat(body: ChatRequest, x_session_id: Optional[str] = Header(default=None)):
    if len(body.message) > settings.MAX_MESSAGE_CHARS:
        return _error(413, UI_TEXT["message_too_long"])
    st = _session(x_session_id)
    if not body.message.strip():
        return _error(400, UI_TEXT["message_empty"])
    if st.assistant.busy:
        return _error(409, UI_TEXT["chat_busy"])

    turn = st.assistant.send(body.message)
    if turn is None:
        return _error(409, UI_TEXT["chat_busy"])
    return {
        "ok": True,
        "reply": turn.text,
        "turn_id": turn.id,
        "booking_data": turn.booking_data.to_dict() if turn.booking_data else None,
    }


@app.get("/chat/history")
def chat_history(x_session_id: Optional[str] = Header(default=None)):
    st = _session(x_session_id)
    return {"turns": [t.to_dict() for t in st.assistant.turns], "busy": st.assistant.busy}


@app.post("/chat/reset")
def chat_reset(x_session_id: Optional[str] = Header(default=None)):
    st = _session(x_session_id)
    st.assistant.reset()
    return {"ok": True}


@app.post("/chat/book")
def chat_book(body: BookRequest, x_session_id: Optional[str] = Header(default=None)):
    st = _session(x_session_id)
    intent = st.assistant.book(body.turn_id)
    if intent is None:
        return _error(422, UI_TEXT["showtime_missing"])
    return {"ok": True, "route": intent.route, "state": intent.state}


# ---- seat selection ----

@app.post("/seat-selection/start")
def seat_selection_start(body: SeatSelectionStart, x_session_id: Optional[str] = Header(default=None)):
    st = _session(x_session_id)
    showtime_id = body.showtime.get("showtime_id")
    if not body.movie or showtime_id in (None, ""):
        return _error(422, UI_TEXT["showtime_missing"])
    busy = _checkout_busy(st)
    if busy is not None:
        return busy

    st.leave_seat_selection()
    st.booking_data = {"movie": body.movie, "showtime": body.showtime, "format": body.format or DEFAULT_FORMAT}
    st.selection = SeatSelection.start(client, showtime_id, max_seats=settings.MAX_SEATS)
    return {"ok": True, **_seat_view(st)}


@app.get("/seat-selection")
def seat_selection(x_session_id: Optional[str] = Header(default=None)):
    st = _session(x_session_id)
    if st.selection is None:
        return _error(404, UI_TEXT["showtime_missing"])
    return {"ok": True, **_seat_view(st)}


@app.post("/seat-selection/toggle")
def seat_toggle(body: ToggleRequest, x_session_id: Optional[str] = Header(default=None)):
    st = _session(x_session_id)
    if st.selection is None:
        return _error(404, UI_TEXT["showtime_missing"])
    busy = _checkout_busy(st)
    if busy is not None:
        return busy
    st.selection.toggle(body.seat_id)
    st.payload = None
    return {"ok": True, **_seat_view(st)}


@app.post("/seat-selection/clear")
def seat_clear(x_session_id: Optional[str] = Header(default=None)):
    st = _session(x_session_id)
    if st.selection is None:
        return _error(404, UI_TEXT["showtime_missing"])
    busy = _checkout_busy(st)
    if busy is not None:
        return busy
    st.selection.clear()
    st.payload = None
    return {"ok": True, **_seat_view(st)}


@app.post("/seat-selection/continue")
def seat_continue(x_session_id: Optional[str] = Header(default=None)):
    st = _session(x_session_id)
    if st.selection is None:
        return _error(404, UI_TEXT["showtime_missing"])
    if not st.selection.seats:
        return _error(422, UI_TEXT["no_seats_selected"])
    try:
        st.checkout.reset()
    except CheckoutInProgressError as exc:
        return _error(409, exc.message, state=st.checkout.state.value)
    st.payload = st.selection.build_payload(st.booking_data)
    intent = checkout_intent(st.payload)
    return {
        "ok": True,
        "route": intent.route,
        "state": intent.state,
        "service_fee": settings.SERVICE_FEE,
        "charged_total": charged_total(st.payload, settings.SERVICE_FEE),
    }


# ---- checkout ----

@app.post("/checkout")
def checkout(x_session_id: Optional[str] = Header(default=None)):
    st = _session(x_session_id)
    payload, orchestrator = st.payload, st.checkout
    if payload is None or orchestrator is None:
        return _error(404, UI_TEXT["showtime_missing"])
    try:
        result = orchestrator.submit(payload, st.auth.token)
    except AuthRequiredError as exc:
        return _error(401, exc.message)
    except CheckoutInProgressError as exc:
        return _error(409, exc.message, state=orchestrator.state.value)
    except AlreadyBookedError:
        return _error(409, UI_TEXT["booking_success"], state=orchestrator.state.value)

    if not result.ok:
        return _error(400, result.message, state=orchestrator.state.value,
                      charged_total=result.charged_total)

    # only close the page this booking was made from
    if st.payload is payload:
        st.leave_seat_selection()
    return {
        "ok": True,
        "state": orchestrator.state.value,
        "booking": result.booking,
        "charged_total": result.charged_total,
        "message": UI_TEXT["booking_success"],
        "route": MY_TICKETS_ROUTE,
    }


# ---- my tickets ----

@app.get("/my-tickets")
def my_tickets(x_session_id: Optional[str] = Header(default=None)):
    st = _session(x_session_id)
    if not st.auth.is_authenticated:
        return _error(401, UI_TEXT["login_required"])
    try:
        bookings = client.my_bookings(st.auth.token)
    except CinemaApiError as exc:
        return _error(502, exc.message)
    upcoming, used = partition_bookings(bookings)
    return {"ok": True, "upcoming": upcoming, "used": used}
